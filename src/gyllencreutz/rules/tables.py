"""Fixed rules tables.

Enumerations and the small constant tables every other module leans on. The
larger catalogs (archetypes, upgrades, injuries, talents) live in YAML next to
this module and are read by :mod:`gyllencreutz.rules.loader`.
"""

from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType


class Attribute(StrEnum):
    """The four investigator attributes."""

    PHYSIQUE = "Physique"
    PRECISION = "Precision"
    LOGIC = "Logic"
    EMPATHY = "Empathy"


class Skill(StrEnum):
    """The twelve investigator skills."""

    AGILITY = "Agility"
    CLOSE_COMBAT = "Close Combat"
    FORCE = "Force"
    MEDICINE = "Medicine"
    RANGED_COMBAT = "Ranged Combat"
    STEALTH = "Stealth"
    INVESTIGATION = "Investigation"
    LEARNING = "Learning"
    VIGILANCE = "Vigilance"
    INSPIRATION = "Inspiration"
    MANIPULATION = "Manipulation"
    OBSERVATION = "Observation"


class AgeGroup(StrEnum):
    """Age bands chosen at creation."""

    YOUNG = "Young"
    MIDDLE_AGED = "Middle-aged"
    OLD = "Old"


class ConditionCategory(StrEnum):
    """Category shared by conditions, defects and insights."""

    PHYSICAL = "physical"
    MENTAL = "mental"


class UpgradeCategory(StrEnum):
    """Headquarters upgrade kinds."""

    FACILITY = "Facility"
    CONTACT = "Contact"
    PERSONNEL = "Personnel"


@dataclass(frozen=True)
class AgeBudget:
    """Point budget granted by an age group at creation."""

    attribute_points: int
    skill_points: int


ATTRIBUTE_NAMES = [attr.value for attr in Attribute]
SKILL_NAMES = [skill.value for skill in Skill]

SKILL_ATTRIBUTES = MappingProxyType(
    {
        Skill.AGILITY: Attribute.PHYSIQUE,
        Skill.CLOSE_COMBAT: Attribute.PHYSIQUE,
        Skill.FORCE: Attribute.PHYSIQUE,
        Skill.MEDICINE: Attribute.PRECISION,
        Skill.RANGED_COMBAT: Attribute.PRECISION,
        Skill.STEALTH: Attribute.PRECISION,
        Skill.INVESTIGATION: Attribute.LOGIC,
        Skill.LEARNING: Attribute.LOGIC,
        Skill.VIGILANCE: Attribute.LOGIC,
        Skill.INSPIRATION: Attribute.EMPATHY,
        Skill.MANIPULATION: Attribute.EMPATHY,
        Skill.OBSERVATION: Attribute.EMPATHY,
    }
)

AGE_BUDGETS = MappingProxyType(
    {
        AgeGroup.YOUNG: AgeBudget(attribute_points=15, skill_points=10),
        AgeGroup.MIDDLE_AGED: AgeBudget(attribute_points=14, skill_points=12),
        AgeGroup.OLD: AgeBudget(attribute_points=13, skill_points=14),
    }
)

# Which condition category an attribute's tests strain (and push into)
ATTRIBUTE_CATEGORIES = MappingProxyType(
    {
        Attribute.PHYSIQUE: ConditionCategory.PHYSICAL,
        Attribute.PRECISION: ConditionCategory.PHYSICAL,
        Attribute.LOGIC: ConditionCategory.MENTAL,
        Attribute.EMPATHY: ConditionCategory.MENTAL,
    }
)

FEAR_ATTRIBUTES = (Attribute.LOGIC, Attribute.EMPATHY)

# Conditions in the order they are taken
CONDITION_NAMES = MappingProxyType(
    {
        ConditionCategory.PHYSICAL: ("Exhausted", "Battered", "Wounded"),
        ConditionCategory.MENTAL: ("Angry", "Frightened", "Hopeless"),
    }
)
BROKEN_THRESHOLD = 3

# Creation bounds
MIN_ATTRIBUTE = 2
MAX_ATTRIBUTE = 4
MAX_MAIN_ATTRIBUTE = 5
MIN_SKILL = 0
MAX_SKILL = 2
MAX_MAIN_SKILL = 3

# Hard caps for the life of the character
ATTRIBUTE_CAP = 5
SKILL_CAP = 5

EQUIPMENT_CHOICE_SEPARATOR = " or "
DISCOVERED_MARKER = "(Discovered)"


def attribute_for_skill(skill: Skill) -> Attribute:
    """Get the attribute a skill is tested with."""
    return SKILL_ATTRIBUTES[Skill(skill)]


def category_for_attribute(attribute: Attribute) -> ConditionCategory:
    """Get the condition category tied to an attribute."""
    return ATTRIBUTE_CATEGORIES[Attribute(attribute)]


def skills_for_attribute(attribute: Attribute) -> list[Skill]:
    """List the skills tested with an attribute, in table order."""
    return [skill for skill, attr in SKILL_ATTRIBUTES.items() if attr == attribute]
