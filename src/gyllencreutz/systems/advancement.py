"""Experience and advances.

Investigators earn XP at the end of each mystery and spend it in blocks of
five on a skill step or a new talent.
"""

import structlog

from gyllencreutz.config import get_settings
from gyllencreutz.errors import AdvanceNotAllowed, InsufficientXP, ValidationError
from gyllencreutz.models import Character
from gyllencreutz.rules.loader import RulesTables, get_rules_tables
from gyllencreutz.rules.tables import SKILL_CAP, Skill

logger = structlog.get_logger(__name__)


def advance_cost() -> int:
    """XP spent per advance."""
    return get_settings().advance_xp_cost


def can_advance(character: Character) -> bool:
    """Check if the character has enough XP for an advance."""
    return character.xp >= advance_cost()


def adjust_xp(character: Character, amount: int) -> int:
    """
    Change a character's XP by hand.

    Args:
        character: Character to update in place
        amount: XP to add (negative to remove)

    Returns:
        The new XP total, never below 0
    """
    character.xp = max(0, character.xp + amount)
    return character.xp


def _spend(character: Character) -> None:
    cost = advance_cost()
    if character.xp < cost:
        raise InsufficientXP(f"Not enough XP. You need {cost} XP to buy an advance.")
    character.xp -= cost


def buy_skill_advance(character: Character, skill: Skill) -> int:
    """
    Raise a skill by one for an advance.

    Returns:
        The new skill value

    Raises:
        InsufficientXP: If the character cannot afford an advance
        AdvanceNotAllowed: If the skill is already at 5
    """
    skill = Skill(skill)
    current = character.skill(skill)
    if current >= SKILL_CAP:
        raise AdvanceNotAllowed(f"{skill} is already at maximum level ({SKILL_CAP})")

    _spend(character)
    character.skills[skill] = current + 1

    logger.info(
        "skill_advanced",
        character_name=character.name,
        skill=skill.value,
        new_value=current + 1,
        xp_remaining=character.xp,
    )
    return current + 1


def available_talents(character: Character, tables: RulesTables | None = None) -> list[str]:
    """List talents the character does not have yet."""
    tables = tables or get_rules_tables()
    return [t for t in tables.all_talents() if t not in character.talents]


def buy_talent_advance(
    character: Character, talent: str, tables: RulesTables | None = None
) -> list[str]:
    """
    Learn a new talent for an advance.

    Returns:
        The character's talents after the purchase

    Raises:
        ValidationError: If the talent does not exist
        InsufficientXP: If the character cannot afford an advance
        AdvanceNotAllowed: If the character already has it
    """
    tables = tables or get_rules_tables()
    if talent not in tables.talents:
        raise ValidationError(f"Unknown talent: {talent}")
    if talent in character.talents:
        raise AdvanceNotAllowed(f"You already have {talent}")

    _spend(character)
    character.talents.append(talent)

    logger.info(
        "talent_learned",
        character_name=character.name,
        talent=talent,
        xp_remaining=character.xp,
    )
    return list(character.talents)
