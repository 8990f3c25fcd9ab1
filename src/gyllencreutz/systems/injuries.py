"""Critical injuries: defects and insights.

A critical injury whose description grants a bonus ("+") is an insight;
anything else is a defect.
"""

from typing import Literal

import structlog

from gyllencreutz.errors import ValidationError
from gyllencreutz.models import Character, DefectInsight

logger = structlog.get_logger(__name__)

InjuryKind = Literal["defect", "insight"]


def is_insight(injury: DefectInsight) -> bool:
    return "+" in injury.description


def add_injury(character: Character, injury: DefectInsight) -> InjuryKind:
    """
    Record a critical injury on the character.

    Returns:
        Which list received it: "insight" or "defect"
    """
    entry = injury.model_copy()
    if is_insight(entry):
        character.insights.append(entry)
        kind: InjuryKind = "insight"
    else:
        character.defects.append(entry)
        kind = "defect"

    logger.info(
        "injury_added",
        character_name=character.name,
        injury=entry.name,
        kind=kind,
        category=entry.category.value,
    )
    return kind


def remove_defect(character: Character, index: int) -> DefectInsight:
    """Remove and return the defect at ``index``."""
    if not 0 <= index < len(character.defects):
        raise ValidationError(f"No defect at position {index}")
    return character.defects.pop(index)


def remove_insight(character: Character, index: int) -> DefectInsight:
    """Remove and return the insight at ``index``."""
    if not 0 <= index < len(character.insights):
        raise ValidationError(f"No insight at position {index}")
    return character.insights.pop(index)
