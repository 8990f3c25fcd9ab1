"""Dice pool resolution.

Tests roll a pool of six-sided dice; every 6 is a success. A skill test may be
pushed once: the character takes a condition matching the tested attribute
and rerolls every die that did not show a 6. Fear tests resist with Logic or
Empathy, gain help from companions and can never be pushed.

Conditions subtract from every pool, whatever the category. Separately, a
character broken in a category cannot roll skill tests tied to that
category's attributes at all.
"""

import random
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

import structlog

from gyllencreutz.config import get_settings
from gyllencreutz.errors import PushUnavailable, RollForbidden, ValidationError
from gyllencreutz.models import Character, Condition
from gyllencreutz.rules.tables import (
    FEAR_ATTRIBUTES,
    Attribute,
    ConditionCategory,
    Skill,
    attribute_for_skill,
    category_for_attribute,
)
from gyllencreutz.systems.conditions import active_count, is_broken, take_condition

logger = structlog.get_logger(__name__)

DIE_SIDES = 6
SUCCESS_FACE = 6
MAX_COMPANION_BONUS = 3
MIN_POOL = 1


@dataclass(frozen=True)
class SkillPool:
    """Dice pool for a skill (or bare attribute) test."""

    skill: Skill
    attribute: Attribute
    base: int
    modifier: int
    condition_penalty: int
    pool: int  # 0 when blocked
    blocked: bool


@dataclass(frozen=True)
class FearPool:
    """Dice pool for a fear test."""

    attribute: Attribute
    base: int
    companion_bonus: int
    condition_penalty: int
    pool: int


@dataclass(frozen=True)
class RollResult:
    """Faces rolled and the successes among them."""

    faces: tuple[int, ...]
    successes: int

    @property
    def dice(self) -> int:
        return len(self.faces)


@dataclass(frozen=True)
class FearOutcome:
    """Result of a fear test."""

    faces: tuple[int, ...]
    successes: int
    fear_value: int
    resisted: bool
    conditions_required: int  # Mental conditions the caller must apply


@dataclass(frozen=True)
class PushResult:
    """Result of pushing a skill roll."""

    faces: tuple[int, ...]  # Kept 6s followed by the rerolled dice
    new_faces: tuple[int, ...]
    successes: int
    character: Character  # Updated copy with the pushed condition active
    condition: Condition


@dataclass(frozen=True)
class RollRecord:
    """One entry of the roll history."""

    label: str
    faces: tuple[int, ...]
    successes: int
    pushed: bool

    @property
    def dice(self) -> int:
        return len(self.faces)


class RollState(Enum):
    """Roll session state machine states."""

    IDLE = "idle"
    ROLLED = "rolled"
    PUSHED = "pushed"


def count_successes(faces: Sequence[int]) -> int:
    """Count dice showing a 6."""
    return sum(1 for face in faces if face == SUCCESS_FACE)


def roll_die(rng: random.Random | None = None) -> int:
    """Roll a single d6."""
    return (rng or random).randint(1, DIE_SIDES)


def condition_penalty(character: Character) -> int:
    """Dice lost to active conditions (both categories always count)."""
    return active_count(character, ConditionCategory.PHYSICAL) + active_count(
        character, ConditionCategory.MENTAL
    )


def compute_skill_pool(
    character: Character,
    skill: Skill,
    modifier: int = 0,
    attribute_only: bool = False,
) -> SkillPool:
    """
    Compute the dice pool for a skill test.

    Args:
        character: The character rolling
        skill: Skill being tested; its attribute supplies the base dice
        modifier: Situational bonus or penalty chosen by the player
        attribute_only: Roll the bare attribute without adding the skill

    Returns:
        The pool; ``blocked`` is set and ``pool`` is 0 when the character is
        broken in the category of the skill's attribute

    Examples:
        Physique 3, Force 2, modifier +1, one active condition:
        max(1, 3 + 2 + 1 - 1) = 5 dice
    """
    skill = Skill(skill)
    attribute = attribute_for_skill(skill)
    base = character.attribute(attribute) + (0 if attribute_only else character.skill(skill))
    penalty = condition_penalty(character)

    # Broken lockout is its own check; the penalty above always sums both categories
    blocked = is_broken(character, category_for_attribute(attribute))
    pool = 0 if blocked else max(MIN_POOL, base + modifier - penalty)

    return SkillPool(
        skill=skill,
        attribute=attribute,
        base=base,
        modifier=modifier,
        condition_penalty=penalty,
        pool=pool,
        blocked=blocked,
    )


def compute_fear_pool(
    character: Character,
    resisting_attribute: Attribute,
    companions: int = 0,
) -> FearPool:
    """
    Compute the dice pool for a fear test.

    Fear tests are never blocked by the broken state, but conditions still
    reduce the pool.

    Raises:
        ValidationError: If the attribute is not Logic or Empathy, or companions is negative
    """
    attribute = Attribute(resisting_attribute)
    if attribute not in FEAR_ATTRIBUTES:
        raise ValidationError(f"Fear is resisted with Logic or Empathy, not {attribute}")
    if companions < 0:
        raise ValidationError("Companions cannot be negative")

    base = character.attribute(attribute)
    bonus = min(MAX_COMPANION_BONUS, companions)
    penalty = condition_penalty(character)

    return FearPool(
        attribute=attribute,
        base=base,
        companion_bonus=bonus,
        condition_penalty=penalty,
        pool=max(MIN_POOL, base + bonus - penalty),
    )


def roll_dice(pool: int, rng: random.Random | None = None) -> RollResult:
    """
    Roll a pool of d6 and count successes.

    Raises:
        ValidationError: If the pool is smaller than one die
    """
    if pool < MIN_POOL:
        raise ValidationError(f"Cannot roll a pool of {pool} dice")

    faces = tuple(roll_die(rng) for _ in range(pool))
    return RollResult(faces=faces, successes=count_successes(faces))


def resolve_fear(successes: int, fear_value: int, faces: Sequence[int] = ()) -> FearOutcome:
    """
    Decide a fear test.

    Args:
        successes: Successes rolled
        fear_value: Successes needed to resist
        faces: Faces of the roll, carried into the outcome

    Returns:
        FearOutcome with ``resisted`` and the mental ``conditions_required``

    Examples:
        2 successes against fear 4 -> resisted False, conditions_required 2
    """
    if fear_value < 1:
        raise ValidationError("Fear value must be at least 1")

    required = max(0, fear_value - successes)
    return FearOutcome(
        faces=tuple(faces),
        successes=successes,
        fear_value=fear_value,
        resisted=required == 0,
        conditions_required=required,
    )


def push_roll(
    character: Character,
    attribute: Attribute,
    prior_faces: Sequence[int],
    rng: random.Random | None = None,
) -> PushResult:
    """
    Push a skill roll.

    The character takes the first free condition of the tested attribute's
    category, then every die that did not show a 6 is rerolled.

    Args:
        character: The character pushing; left untouched
        attribute: Attribute of the pushed test
        prior_faces: Faces of the initial roll
        rng: Random source

    Returns:
        PushResult with the combined faces and an updated copy of the character

    Raises:
        NoConditionSlot: If no inactive condition of that category remains
    """
    updated = character.model_copy(deep=True)
    condition = take_condition(updated, category_for_attribute(attribute))

    kept = tuple(face for face in prior_faces if face == SUCCESS_FACE)
    new_faces = tuple(roll_die(rng) for _ in range(len(prior_faces) - len(kept)))
    faces = kept + new_faces

    return PushResult(
        faces=faces,
        new_faces=new_faces,
        successes=count_successes(faces),
        character=updated,
        condition=condition,
    )


class DicePoolEngine:
    """
    A single roll session with a short trailing history.

    State machine: IDLE -> ROLLED -> {PUSHED | IDLE}. A skill roll can be
    pushed once, immediately after it is made; starting a new roll or closing
    the session ends the chance.
    """

    def __init__(
        self, rng: random.Random | None = None, history_size: int | None = None
    ) -> None:
        """
        Initialize a roll session.

        Args:
            rng: Random source; inject a seeded one for reproducible rolls
            history_size: Completed rolls kept for display (defaults to settings)
        """
        self.rng = rng
        self.history_size = (
            history_size if history_size is not None else get_settings().roll_history_size
        )
        self.state = RollState.IDLE
        self.history: list[RollRecord] = []
        self._faces: tuple[int, ...] = ()
        self._attribute: Attribute | None = None
        self._label = ""
        self._roller = ""

    @property
    def can_push(self) -> bool:
        """Check if the last roll may still be pushed."""
        return self.state == RollState.ROLLED and self._attribute is not None

    @property
    def faces(self) -> tuple[int, ...]:
        """Faces currently on the table."""
        return self._faces

    def roll_skill(
        self,
        character: Character,
        skill: Skill,
        modifier: int = 0,
        attribute_only: bool = False,
    ) -> RollResult:
        """
        Roll a skill test.

        Raises:
            RollForbidden: If the character is broken for this test
        """
        pool = compute_skill_pool(character, skill, modifier, attribute_only)
        label = f"{pool.attribute} Test" if attribute_only else f"{pool.skill} Test"

        if pool.blocked:
            logger.info("roll_forbidden", character_name=character.name, test=label)
            raise RollForbidden(f"{character.name} is broken and cannot roll a {label}")

        result = roll_dice(pool.pool, self.rng)
        self._begin(result, label, pool.attribute, character.name)

        logger.debug(
            "skill_rolled",
            character_name=character.name,
            test=label,
            dice=pool.pool,
            successes=result.successes,
        )
        return result

    def roll_fear(
        self,
        character: Character,
        resisting_attribute: Attribute,
        fear_value: int,
        companions: int = 0,
    ) -> FearOutcome:
        """Roll a fear test. The result cannot be pushed."""
        if fear_value < 1:
            raise ValidationError("Fear value must be at least 1")

        pool = compute_fear_pool(character, resisting_attribute, companions)
        result = roll_dice(pool.pool, self.rng)
        outcome = resolve_fear(result.successes, fear_value, result.faces)
        self._begin(result, f"Fear Test (vs {fear_value})", None, character.name)

        logger.debug(
            "fear_rolled",
            character_name=character.name,
            dice=pool.pool,
            successes=result.successes,
            fear_value=fear_value,
            resisted=outcome.resisted,
        )
        return outcome

    def push(self, character: Character) -> PushResult:
        """
        Push the last skill roll.

        Returns:
            PushResult carrying the updated character copy

        Raises:
            PushUnavailable: If nothing pushable was rolled, it was already pushed,
                or ``character`` is not the one who rolled
            NoConditionSlot: If the character cannot take the condition (state unchanged)
        """
        attribute = self._attribute
        if self.state != RollState.ROLLED or attribute is None:
            raise PushUnavailable("Only a fresh skill roll can be pushed, and only once")
        if character.name != self._roller:
            raise PushUnavailable(f"Only {self._roller} can push the {self._label}")

        result = push_roll(character, attribute, self._faces, self.rng)

        self._faces = result.faces
        self.state = RollState.PUSHED
        self._record(result.faces, result.successes, pushed=True)

        logger.info(
            "roll_pushed",
            character_name=character.name,
            test=self._label,
            condition=result.condition.name,
            successes=result.successes,
        )
        return result

    def close(self) -> None:
        """Close the session; the last roll can no longer be pushed."""
        self.state = RollState.IDLE
        self._faces = ()
        self._attribute = None
        self._label = ""
        self._roller = ""

    def _begin(
        self, result: RollResult, label: str, attribute: Attribute | None, roller: str
    ) -> None:
        self._faces = result.faces
        self._attribute = attribute
        self._label = label
        self._roller = roller
        self.state = RollState.ROLLED
        self._record(result.faces, result.successes, pushed=False)

    def _record(self, faces: tuple[int, ...], successes: int, pushed: bool) -> None:
        entry = RollRecord(label=self._label, faces=faces, successes=successes, pushed=pushed)
        self.history = [entry, *self.history][: self.history_size]
