"""Condition tracking for investigators.

Every character carries six conditions, three physical and three mental.
Three active conditions in one category leave the character broken in that
category. Toggling is unrestricted; only the push and fear rules limit which
condition may be taken automatically.
"""

from dataclasses import dataclass, field

import structlog

from gyllencreutz.errors import IllegalAction, NoConditionSlot, ValidationError
from gyllencreutz.models import Character, Condition
from gyllencreutz.rules.tables import BROKEN_THRESHOLD, CONDITION_NAMES, ConditionCategory

logger = structlog.get_logger(__name__)


@dataclass
class FearConditions:
    """Mental conditions taken after a failed fear test."""

    taken: list[Condition] = field(default_factory=list)
    shortfall: int = 0  # Required conditions with no free slot left


def initial_conditions() -> list[Condition]:
    """Create the six inactive conditions of a new character."""
    return [
        Condition(name=name, category=category, active=False)
        for category, names in CONDITION_NAMES.items()
        for name in names
    ]


def _require_condition(character: Character, name: str) -> Condition:
    condition = character.get_condition(name)
    if condition is None:
        raise ValidationError(f"Unknown condition: {name}")
    return condition


def toggle_condition(character: Character, name: str) -> Condition:
    """
    Flip one condition's active flag.

    Args:
        character: Character to update in place
        name: Condition name (case-insensitive)

    Returns:
        The toggled condition

    Raises:
        ValidationError: If the character has no such condition
    """
    condition = _require_condition(character, name)
    condition.active = not condition.active
    return condition


def set_condition(character: Character, name: str, active: bool) -> Condition:
    """Set one condition's active flag explicitly."""
    condition = _require_condition(character, name)
    condition.active = active
    return condition


def active_count(character: Character, category: ConditionCategory) -> int:
    """Count active conditions in a category."""
    category = ConditionCategory(category)
    return sum(1 for c in character.conditions if c.category == category and c.active)


def total_active(character: Character) -> int:
    """Count active conditions across both categories."""
    return sum(1 for c in character.conditions if c.active)


def is_broken(character: Character, category: ConditionCategory) -> bool:
    """Check if a character is broken in a category."""
    return active_count(character, category) >= BROKEN_THRESHOLD


def broken_categories(character: Character) -> list[ConditionCategory]:
    """List every category the character is broken in."""
    return [category for category in ConditionCategory if is_broken(character, category)]


def take_condition(character: Character, category: ConditionCategory) -> Condition:
    """
    Activate the first inactive condition of a category.

    Raises:
        NoConditionSlot: If every condition of the category is already active
    """
    category = ConditionCategory(category)
    for condition in character.conditions:
        if condition.category == category and not condition.active:
            condition.active = True
            logger.debug(
                "condition_taken",
                character_name=character.name,
                condition=condition.name,
                category=category.value,
            )
            return condition

    raise NoConditionSlot(
        f"{character.name} is already broken and cannot take another {category.value} condition"
    )


def apply_fear_conditions(character: Character, count: int) -> FearConditions:
    """
    Take the mental conditions demanded by a failed fear test.

    Takes as many as there are free mental slots; the rest is reported as a
    shortfall for the caller to handle.
    """
    if count < 0:
        raise ValidationError("Condition count cannot be negative")

    result = FearConditions()
    for _ in range(count):
        try:
            result.taken.append(take_condition(character, ConditionCategory.MENTAL))
        except NoConditionSlot:
            result.shortfall = count - len(result.taken)
            break

    return result


def heal_with_memento(character: Character, name: str) -> Condition:
    """
    Heal one active condition by interacting with the character's memento.

    Raises:
        ValidationError: If the character has no such condition
        IllegalAction: If the condition is not active
    """
    condition = _require_condition(character, name)
    if not condition.active:
        raise IllegalAction(f"{condition.name} is not active")
    condition.active = False

    logger.info("condition_healed", character_name=character.name, condition=condition.name)
    return condition
