"""
Character aggregate for the rules engine.

Defines archetypes, conditions, defects/insights and the investigator record
that flows between creation, play and the persistence layer.
"""

from typing import Any

from pydantic import ConfigDict, Field, field_validator, model_validator

from gyllencreutz.errors import ValidationError
from gyllencreutz.rules.tables import (
    ATTRIBUTE_CAP,
    CONDITION_NAMES,
    EQUIPMENT_CHOICE_SEPARATOR,
    SKILL_CAP,
    AgeGroup,
    Attribute,
    ConditionCategory,
    Skill,
)

from .base import RulesModel


class Archetype(RulesModel):
    """
    Immutable investigator template.

    Attributes:
        name: Archetype name (e.g., "Doctor")
        description: Short flavour text
        main_attribute: Attribute whose creation cap is raised to 5
        main_skill: Skill whose creation cap is raised to 3
        talents: Talent options offered at creation
        equipment: Starting kit; "A or B" entries are a choice of one
        resources: Inclusive (min, max) starting resources
        motivations: Motivation options
        traumas: Trauma options
        dark_secrets: Dark secret options
        relationships: Suggested relationships
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Archetype name")
    description: str = Field(default="", description="Flavour text")
    main_attribute: Attribute = Field(..., description="Attribute capped at 5 during creation")
    main_skill: Skill = Field(..., description="Skill capped at 3 during creation")
    talents: list[str] = Field(default_factory=list, description="Talent options")
    equipment: list[str] = Field(default_factory=list, description="Starting equipment")
    resources: tuple[int, int] = Field(..., description="Inclusive resources range")
    motivations: list[str] = Field(default_factory=list)
    traumas: list[str] = Field(default_factory=list)
    dark_secrets: list[str] = Field(default_factory=list)
    relationships: list[str] = Field(default_factory=list)

    @field_validator("resources")
    @classmethod
    def _check_resources(cls, value: tuple[int, int]) -> tuple[int, int]:
        low, high = value
        if low < 0 or high < low:
            raise ValueError(f"invalid resources range {value}")
        return value

    @property
    def min_resources(self) -> int:
        return self.resources[0]

    @property
    def max_resources(self) -> int:
        return self.resources[1]

    def equipment_options(self) -> dict[int, list[str]]:
        """Map each choice entry's index to its options."""
        return {
            index: [option.strip() for option in item.split(EQUIPMENT_CHOICE_SEPARATOR)]
            for index, item in enumerate(self.equipment)
            if EQUIPMENT_CHOICE_SEPARATOR in item
        }


class Condition(RulesModel):
    """A temporary physical or mental impairment."""

    name: str
    category: ConditionCategory = Field(..., alias="type")
    active: bool = False


class DefectInsight(RulesModel):
    """A lasting injury (defect) or hard-won lesson (insight)."""

    name: str
    description: str = ""
    category: ConditionCategory = Field(..., alias="type")


class Relationship(RulesModel):
    """A named bond to another investigator or NPC."""

    name: str
    description: str = ""


class Character(RulesModel):
    """
    A finished investigator.

    Created once by :func:`gyllencreutz.systems.creation.finalize_character`
    and then mutated field by field for the life of the campaign.
    """

    name: str
    archetype: Archetype
    age: AgeGroup
    attributes: dict[Attribute, int]
    skills: dict[Skill, int]
    talents: list[str] = Field(default_factory=list)
    motivation: str = ""
    trauma: str = ""
    dark_secret: str = ""
    relationships: list[Relationship] = Field(default_factory=list)
    memento: str = ""
    equipment: list[str] = Field(default_factory=list)
    resources: int = Field(default=0, ge=0)
    conditions: list[Condition]
    xp: int = Field(default=0, ge=0)
    defects: list[DefectInsight] = Field(default_factory=list)
    insights: list[DefectInsight] = Field(default_factory=list)
    portrait_url: str = ""

    @field_validator("attributes")
    @classmethod
    def _check_attributes(cls, value: dict[Attribute, int]) -> dict[Attribute, int]:
        missing = [attr.value for attr in Attribute if attr not in value]
        if missing:
            raise ValueError(f"missing attributes: {', '.join(missing)}")
        for attr, score in value.items():
            if not 0 <= score <= ATTRIBUTE_CAP:
                raise ValueError(f"{attr} must be between 0 and {ATTRIBUTE_CAP}, got {score}")
        return value

    @field_validator("skills")
    @classmethod
    def _check_skills(cls, value: dict[Skill, int]) -> dict[Skill, int]:
        for skill, rank in value.items():
            if not 0 <= rank <= SKILL_CAP:
                raise ValueError(f"{skill} must be between 0 and {SKILL_CAP}, got {rank}")
        # Untrained skills may be absent in stored data
        return {skill: value.get(skill, 0) for skill in Skill}

    @model_validator(mode="after")
    def _check_conditions(self) -> "Character":
        for category, names in CONDITION_NAMES.items():
            found = [c for c in self.conditions if c.category == category]
            if len(found) != len(names):
                raise ValueError(
                    f"expected {len(names)} {category} conditions, got {len(found)}"
                )
        return self

    def attribute(self, attribute: Attribute) -> int:
        """Get an attribute value."""
        return self.attributes[Attribute(attribute)]

    def skill(self, skill: Skill) -> int:
        """Get a skill value (0 when untrained)."""
        return self.skills.get(Skill(skill), 0)

    def get_condition(self, name: str) -> Condition | None:
        """Find a condition by name (case-insensitive)."""
        wanted = name.strip().lower()
        for condition in self.conditions:
            if condition.name.lower() == wanted:
                return condition
        return None

    def add_relationship(self, name: str, description: str = "") -> Relationship | None:
        """
        Append a relationship.

        Args:
            name: Who the relationship is with; blank names are ignored
            description: Free text

        Returns:
            The new relationship, or None if the name was blank
        """
        if not name.strip():
            return None
        relationship = Relationship(name=name.strip(), description=description.strip())
        self.relationships.append(relationship)
        return relationship

    def remove_relationship(self, index: int) -> Relationship:
        """Remove and return the relationship at ``index``."""
        if not 0 <= index < len(self.relationships):
            raise ValidationError(f"No relationship at position {index}")
        return self.relationships.pop(index)

    def to_record(self) -> dict[str, Any]:
        """Serialize to the stored campaign shape."""
        return self.model_dump(mode="json", by_alias=True)
