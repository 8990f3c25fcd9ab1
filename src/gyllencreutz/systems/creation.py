"""Point-buy character creation.

The age group fixes how many attribute and skill points a new investigator
must spend. Attributes run 2-4 (5 for the archetype's main attribute), skills
0-2 (3 for the main skill). Raising resources above the archetype minimum
costs skill points one for one. Both budgets must be spent exactly.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field

import structlog

from gyllencreutz.errors import ValidationError
from gyllencreutz.models import Archetype, Character
from gyllencreutz.rules.tables import (
    AGE_BUDGETS,
    MAX_ATTRIBUTE,
    MAX_MAIN_ATTRIBUTE,
    MAX_MAIN_SKILL,
    MAX_SKILL,
    MIN_ATTRIBUTE,
    MIN_SKILL,
    AgeGroup,
    Attribute,
    Skill,
)
from gyllencreutz.systems.conditions import initial_conditions

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AllocationResult:
    """Outcome of checking an allocation against its budget."""

    legal: bool
    remaining: int


def attribute_budget(age: AgeGroup) -> int:
    """Attribute points granted by an age group."""
    return AGE_BUDGETS[AgeGroup(age)].attribute_points


def skill_budget(age: AgeGroup) -> int:
    """Skill points granted by an age group."""
    return AGE_BUDGETS[AgeGroup(age)].skill_points


def max_attribute(archetype: Archetype, attribute: Attribute) -> int:
    """Creation cap for an attribute."""
    return MAX_MAIN_ATTRIBUTE if attribute == archetype.main_attribute else MAX_ATTRIBUTE


def max_skill(archetype: Archetype, skill: Skill) -> int:
    """Creation cap for a skill."""
    return MAX_MAIN_SKILL if skill == archetype.main_skill else MAX_SKILL


def resource_cost(archetype: Archetype, resources: int) -> int:
    """Skill points spent on resources above the archetype minimum."""
    return max(0, resources - archetype.min_resources)


def attribute_total(attributes: Mapping[Attribute, int]) -> int:
    return sum(attributes.values())


def skill_total(skills: Mapping[Skill, int]) -> int:
    return sum(skills.values())


def validate_attribute_allocation(
    archetype: Archetype, age: AgeGroup, attributes: Mapping[Attribute, int]
) -> AllocationResult:
    """
    Check an attribute allocation.

    Legal when every attribute is present and within its bounds and the total
    equals the age group's budget exactly.
    """
    remaining = attribute_budget(age) - attribute_total(attributes)
    in_bounds = all(
        attr in attributes
        and MIN_ATTRIBUTE <= attributes[attr] <= max_attribute(archetype, attr)
        for attr in Attribute
    )
    return AllocationResult(legal=in_bounds and remaining == 0, remaining=remaining)


def validate_skill_allocation(
    archetype: Archetype, age: AgeGroup, skills: Mapping[Skill, int], resources: int
) -> AllocationResult:
    """
    Check a skill and resources allocation.

    Legal when every skill is within its bounds, resources lie in the
    archetype's range, and skills plus resource cost equal the budget.
    """
    remaining = skill_budget(age) - skill_total(skills) - resource_cost(archetype, resources)
    in_bounds = all(
        MIN_SKILL <= skills.get(skill, 0) <= max_skill(archetype, skill) for skill in Skill
    )
    resources_ok = archetype.min_resources <= resources <= archetype.max_resources
    return AllocationResult(
        legal=in_bounds and resources_ok and remaining == 0, remaining=remaining
    )


@dataclass
class CharacterDraft:
    """
    A character under construction.

    Every setter validates a single field change and either applies it or
    raises ``ValidationError`` leaving the draft untouched.
    """

    archetype: Archetype
    age: AgeGroup
    name: str = ""
    attributes: dict[Attribute, int] = field(default_factory=dict)
    skills: dict[Skill, int] = field(default_factory=dict)
    resources: int | None = None
    motivation: str = ""
    trauma: str = ""
    dark_secret: str = ""
    talent: str = ""
    memento: str = ""
    portrait_url: str = ""
    equipment_choices: dict[int, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.age = AgeGroup(self.age)
        given_attributes, given_skills = self.attributes, self.skills
        self.attributes = {attr: given_attributes.get(attr, MIN_ATTRIBUTE) for attr in Attribute}
        self.skills = {skill: given_skills.get(skill, MIN_SKILL) for skill in Skill}
        if self.resources is None:
            self.resources = self.archetype.min_resources

        # Background choices default to the archetype's first option
        self.motivation = self.motivation or _first(self.archetype.motivations)
        self.trauma = self.trauma or _first(self.archetype.traumas)
        self.dark_secret = self.dark_secret or _first(self.archetype.dark_secrets)
        self.talent = self.talent or _first(self.archetype.talents)

    @property
    def attribute_remaining(self) -> int:
        return attribute_budget(self.age) - attribute_total(self.attributes)

    @property
    def skill_remaining(self) -> int:
        return (
            skill_budget(self.age)
            - skill_total(self.skills)
            - resource_cost(self.archetype, self.resources)
        )

    def set_attribute(self, attribute: Attribute, value: int) -> None:
        """
        Set one attribute.

        Raises:
            ValidationError: If the value is outside [2, cap] or overspends the budget
        """
        attribute = Attribute(attribute)
        cap = max_attribute(self.archetype, attribute)
        if not MIN_ATTRIBUTE <= value <= cap:
            raise ValidationError(f"{attribute} must be between {MIN_ATTRIBUTE} and {cap}")

        current = self.attributes.get(attribute, MIN_ATTRIBUTE)
        if value > current and self.attribute_remaining - (value - current) < 0:
            raise ValidationError(
                f"Not enough attribute points: {self.attribute_remaining} remaining"
            )

        self.attributes[attribute] = value

    def set_skill(self, skill: Skill, value: int) -> None:
        """
        Set one skill.

        Raises:
            ValidationError: If the value is outside [0, cap] or overspends the budget
        """
        skill = Skill(skill)
        cap = max_skill(self.archetype, skill)
        if not MIN_SKILL <= value <= cap:
            raise ValidationError(f"{skill} must be between {MIN_SKILL} and {cap}")

        current = self.skills.get(skill, MIN_SKILL)
        if value > current and self.skill_remaining - (value - current) < 0:
            raise ValidationError(f"Not enough skill points: {self.skill_remaining} remaining")

        self.skills[skill] = value

    def set_resources(self, value: int) -> None:
        """
        Set starting resources.

        Raises:
            ValidationError: If outside the archetype's range or overspends skill points
        """
        low, high = self.archetype.resources
        if not low <= value <= high:
            raise ValidationError(f"Resources must be between {low} and {high}")

        extra = resource_cost(self.archetype, value) - resource_cost(
            self.archetype, self.resources
        )
        if extra > 0 and self.skill_remaining - extra < 0:
            raise ValidationError(f"Not enough skill points: {self.skill_remaining} remaining")

        self.resources = value

    def choose_equipment(self, index: int, option: str) -> None:
        """
        Record the option picked for an "A or B" equipment entry.

        Raises:
            ValidationError: If the entry is fixed or the option is not offered
        """
        options = self.archetype.equipment_options()
        if index not in options:
            raise ValidationError(f"Equipment entry {index} is not a choice")
        if option not in options[index]:
            raise ValidationError(
                f"'{option}' is not one of: {', '.join(options[index])}"
            )
        self.equipment_choices[index] = option

    def pending_equipment_choices(self) -> list[int]:
        """Indexes of choice entries with no option recorded yet."""
        return [i for i in self.archetype.equipment_options() if i not in self.equipment_choices]

    def choose_background(
        self,
        motivation: str | None = None,
        trauma: str | None = None,
        dark_secret: str | None = None,
    ) -> None:
        """Pick background options from the archetype's lists."""
        checks = [
            ("motivation", motivation, self.archetype.motivations),
            ("trauma", trauma, self.archetype.traumas),
            ("dark secret", dark_secret, self.archetype.dark_secrets),
        ]
        for label, value, options in checks:
            if value is not None and value not in options:
                raise ValidationError(f"'{value}' is not a {self.archetype.name} {label}")

        if motivation is not None:
            self.motivation = motivation
        if trauma is not None:
            self.trauma = trauma
        if dark_secret is not None:
            self.dark_secret = dark_secret

    def choose_talent(self, talent: str) -> None:
        """Pick the starting talent from the archetype's list."""
        if talent not in self.archetype.talents:
            raise ValidationError(f"'{talent}' is not a {self.archetype.name} talent")
        self.talent = talent

    def finalize(self) -> Character:
        return finalize_character(self)


def _first(options: list[str]) -> str:
    return options[0] if options else ""


def finalize_character(draft: CharacterDraft) -> Character:
    """
    Turn a completed draft into a character.

    Returns:
        A character with all six conditions inactive, no XP and empty
        defects, insights and relationships

    Raises:
        ValidationError: If the name is blank, a budget is not spent exactly,
            or an equipment choice is missing
    """
    archetype = draft.archetype

    if not draft.name.strip():
        raise ValidationError("Please enter a character name")

    attrs = validate_attribute_allocation(archetype, draft.age, draft.attributes)
    if not attrs.legal:
        raise ValidationError(
            f"You must use all {attribute_budget(draft.age)} attribute points. "
            f"You have {attrs.remaining} remaining."
        )

    skills = validate_skill_allocation(archetype, draft.age, draft.skills, draft.resources)
    if not skills.legal:
        raise ValidationError(
            f"You must use all {skill_budget(draft.age)} skill points. "
            f"You have {skills.remaining} remaining."
        )

    pending = draft.pending_equipment_choices()
    if pending:
        missing = ", ".join(archetype.equipment[i] for i in pending)
        raise ValidationError(f"Choose one option for: {missing}")

    equipment = [
        draft.equipment_choices.get(index, item) for index, item in enumerate(archetype.equipment)
    ]

    character = Character(
        name=draft.name.strip(),
        archetype=archetype,
        age=draft.age,
        attributes=dict(draft.attributes),
        skills=dict(draft.skills),
        talents=[draft.talent] if draft.talent else [],
        motivation=draft.motivation,
        trauma=draft.trauma,
        dark_secret=draft.dark_secret,
        relationships=[],
        memento=draft.memento,
        equipment=equipment,
        resources=draft.resources,
        conditions=initial_conditions(),
        xp=0,
        defects=[],
        insights=[],
        portrait_url=draft.portrait_url,
    )

    logger.info(
        "character_created",
        character_name=character.name,
        archetype=archetype.name,
        age=character.age.value,
    )
    return character
