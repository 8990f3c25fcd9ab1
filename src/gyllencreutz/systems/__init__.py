"""Rules systems: creation, dice, conditions, headquarters, advancement and recovery."""

from .conditions import (
    active_count,
    heal_with_memento,
    is_broken,
    take_condition,
    toggle_condition,
)
from .creation import (
    CharacterDraft,
    finalize_character,
    validate_attribute_allocation,
    validate_skill_allocation,
)
from .dice import (
    DicePoolEngine,
    compute_fear_pool,
    compute_skill_pool,
    push_roll,
    roll_dice,
)
from .headquarters import evaluate_prerequisite, new_headquarters, purchase_upgrade

__all__ = [
    "CharacterDraft",
    "DicePoolEngine",
    "active_count",
    "compute_fear_pool",
    "compute_skill_pool",
    "evaluate_prerequisite",
    "finalize_character",
    "heal_with_memento",
    "is_broken",
    "new_headquarters",
    "push_roll",
    "purchase_upgrade",
    "roll_dice",
    "take_condition",
    "toggle_condition",
    "validate_attribute_allocation",
    "validate_skill_allocation",
]
