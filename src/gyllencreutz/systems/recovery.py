"""End-of-mystery wrap-up: session XP and recovery from critical injuries.

After a mystery each "yes" to the session questions earns one XP. Then the
investigator rolls Physique + Precision for physical recovery and Logic +
Empathy for mental recovery. Each success heals one defect of that category
or keeps one insight. Insights that are not explicitly kept fade.
"""

import random
from collections.abc import Sequence

import structlog

from gyllencreutz.errors import IllegalAction, ValidationError
from gyllencreutz.models import Character
from gyllencreutz.rules.tables import Attribute, ConditionCategory
from gyllencreutz.systems.dice import RollResult, roll_dice

logger = structlog.get_logger(__name__)

SESSION_XP_QUESTIONS = [
    "Did you participate in the session?",
    "Did you confront any vaesen?",
    "Did you identify a previously unknown vaesen?",
    "Were you affected by your Dark Secret?",
    "Did you take risks to protect other people?",
    "Have you learned anything?",
    "Did you develop something in your headquarters?",
    "Did you perform an extraordinary action?",
]

RECOVERY_ATTRIBUTES = {
    ConditionCategory.PHYSICAL: (Attribute.PHYSIQUE, Attribute.PRECISION),
    ConditionCategory.MENTAL: (Attribute.LOGIC, Attribute.EMPATHY),
}


def award_session_xp(character: Character, answers: Sequence[bool]) -> int:
    """
    Award one XP per question answered "yes".

    Args:
        character: Character to update in place
        answers: One boolean per entry of SESSION_XP_QUESTIONS

    Returns:
        XP earned this session
    """
    if len(answers) != len(SESSION_XP_QUESTIONS):
        raise ValidationError(
            f"Expected {len(SESSION_XP_QUESTIONS)} answers, got {len(answers)}"
        )

    earned = sum(1 for answer in answers if answer)
    character.xp += earned

    logger.info("session_xp_awarded", character_name=character.name, xp=earned)
    return earned


def recovery_pool(character: Character, category: ConditionCategory) -> int:
    """Dice rolled for recovery in a category."""
    first, second = RECOVERY_ATTRIBUTES[ConditionCategory(category)]
    return character.attribute(first) + character.attribute(second)


class RecoverySession:
    """
    One recovery step for one character.

    The character passed in is not modified; :meth:`finish` returns the
    updated copy.
    """

    def __init__(self, character: Character, rng: random.Random | None = None) -> None:
        self.character = character
        self.rng = rng
        self.rolls: dict[ConditionCategory, RollResult] = {}
        self._spent = {category: 0 for category in ConditionCategory}
        self.healed: set[int] = set()
        self.kept: set[int] = set()

    def roll(self, category: ConditionCategory) -> RollResult:
        """
        Roll recovery for a category. Each category is rolled once.

        Raises:
            IllegalAction: If this category was already rolled
        """
        category = ConditionCategory(category)
        if category in self.rolls:
            raise IllegalAction(f"{category.value.capitalize()} recovery was already rolled")

        result = roll_dice(recovery_pool(self.character, category), self.rng)
        self.rolls[category] = result

        logger.debug(
            "recovery_rolled",
            character_name=self.character.name,
            category=category.value,
            successes=result.successes,
        )
        return result

    def successes_remaining(self, category: ConditionCategory) -> int:
        category = ConditionCategory(category)
        roll = self.rolls.get(category)
        if roll is None:
            return 0
        return roll.successes - self._spent[category]

    def _spend(self, category: ConditionCategory) -> None:
        if self.successes_remaining(category) < 1:
            raise IllegalAction(f"No {category.value} successes left to spend")
        self._spent[category] += 1

    def heal_defect(self, index: int) -> None:
        """
        Spend a success to heal the defect at ``index``.

        Raises:
            ValidationError: If there is no defect at that position
            IllegalAction: If it is already healed or no success of its category remains
        """
        if not 0 <= index < len(self.character.defects):
            raise ValidationError(f"No defect at position {index}")
        if index in self.healed:
            raise IllegalAction("That defect is already healed")

        self._spend(self.character.defects[index].category)
        self.healed.add(index)

    def keep_insight(self, index: int) -> None:
        """
        Spend a success to keep the insight at ``index``.

        Raises:
            ValidationError: If there is no insight at that position
            IllegalAction: If it is already kept or no success of its category remains
        """
        if not 0 <= index < len(self.character.insights):
            raise ValidationError(f"No insight at position {index}")
        if index in self.kept:
            raise IllegalAction("That insight is already kept")

        self._spend(self.character.insights[index].category)
        self.kept.add(index)

    def finish(self) -> Character:
        """Return the character with healed defects removed and only kept insights left."""
        updated = self.character.model_copy(deep=True)
        updated.defects = [d for i, d in enumerate(updated.defects) if i not in self.healed]
        updated.insights = [n for i, n in enumerate(updated.insights) if i in self.kept]

        logger.info(
            "recovery_finished",
            character_name=updated.name,
            defects_healed=len(self.healed),
            insights_kept=len(self.kept),
            insights_lost=len(self.character.insights) - len(self.kept),
        )
        return updated
