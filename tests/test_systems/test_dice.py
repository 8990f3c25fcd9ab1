"""Tests for dice pools, fear tests and pushed rolls."""

import random

import pytest

from gyllencreutz.config import get_settings
from gyllencreutz.errors import NoConditionSlot, PushUnavailable, RollForbidden, ValidationError
from gyllencreutz.rules.tables import Attribute, Skill
from gyllencreutz.systems.dice import (
    DicePoolEngine,
    FearOutcome,
    RollState,
    compute_fear_pool,
    compute_skill_pool,
    count_successes,
    push_roll,
    resolve_fear,
    roll_dice,
)


class TestSkillPool:
    """Test skill pool arithmetic."""

    def test_pool_adds_attribute_skill_and_modifier(self, make_character):
        """Test Physique 3, Force 2, +1 modifier and one condition gives five dice."""
        character = make_character(skills={Skill.FORCE: 2}, active=["Exhausted"])

        pool = compute_skill_pool(character, Skill.FORCE, modifier=1)

        assert pool.attribute == Attribute.PHYSIQUE
        assert pool.base == 5
        assert pool.condition_penalty == 1
        assert pool.pool == 5
        assert not pool.blocked

    def test_attribute_only_ignores_skill(self, make_character):
        """Test a bare attribute roll leaves the skill out."""
        character = make_character(skills={Skill.FORCE: 2})

        pool = compute_skill_pool(character, Skill.FORCE, attribute_only=True)

        assert pool.pool == 3

    def test_pool_never_drops_below_one(self, make_character):
        """Test heavy penalties still leave a single die."""
        character = make_character(attributes={Attribute.PHYSIQUE: 2})

        pool = compute_skill_pool(character, Skill.AGILITY, modifier=-5)

        assert pool.pool == 1

    def test_mental_conditions_reduce_physical_pool(self, make_character):
        """Test conditions of either category reduce any pool."""
        character = make_character(skills={Skill.FORCE: 2}, active=["Angry", "Frightened"])

        pool = compute_skill_pool(character, Skill.FORCE)

        assert pool.condition_penalty == 2
        assert pool.pool == 3

    def test_broken_physical_blocks_physique_skills(self, make_character):
        """Test three physical conditions lock out Physique tests."""
        character = make_character(
            skills={Skill.FORCE: 2}, active=["Exhausted", "Battered", "Wounded"]
        )

        pool = compute_skill_pool(character, Skill.FORCE)

        assert pool.blocked
        assert pool.pool == 0

    def test_broken_physical_does_not_block_logic_skills(self, make_character):
        """Test the lockout only applies to the broken category."""
        character = make_character(active=["Exhausted", "Battered", "Wounded"])

        pool = compute_skill_pool(character, Skill.INVESTIGATION)

        assert not pool.blocked
        assert pool.pool == 1


class TestFearPool:
    """Test fear pool arithmetic."""

    def test_companion_bonus_is_capped(self, make_character):
        """Test Logic 3 with five companions gives six dice."""
        character = make_character()

        pool = compute_fear_pool(character, Attribute.LOGIC, companions=5)

        assert pool.companion_bonus == 3
        assert pool.pool == 6

    def test_fear_requires_logic_or_empathy(self, make_character):
        """Test fear cannot be resisted with Physique."""
        with pytest.raises(ValidationError):
            compute_fear_pool(make_character(), Attribute.PHYSIQUE)

    def test_negative_companions_rejected(self, make_character):
        """Test companions cannot be negative."""
        with pytest.raises(ValidationError):
            compute_fear_pool(make_character(), Attribute.EMPATHY, companions=-1)

    def test_broken_mental_still_rolls_fear(self, make_character):
        """Test fear tests are never blocked, only reduced."""
        character = make_character(active=["Angry", "Frightened", "Hopeless"])

        pool = compute_fear_pool(character, Attribute.LOGIC)

        assert pool.pool == 1


class TestRollDice:
    """Test rolling and counting successes."""

    def test_only_sixes_succeed(self, scripted):
        """Test successes count dice showing 6."""
        result = roll_dice(4, scripted([6, 2, 6, 1]))

        assert result.faces == (6, 2, 6, 1)
        assert result.successes == 2
        assert result.dice == 4

    def test_empty_pool_rejected(self):
        """Test a pool must hold at least one die."""
        with pytest.raises(ValidationError):
            roll_dice(0)

    def test_successes_within_pool(self):
        """Test successes never exceed the number of dice."""
        rng = random.Random(7)
        for pool in range(1, 12):
            result = roll_dice(pool, rng)
            assert 0 <= result.successes <= pool
            assert all(1 <= face <= 6 for face in result.faces)

    def test_success_rate_is_one_in_six(self):
        """Test a large seeded sample lands near one success per six dice."""
        result = roll_dice(10_000, random.Random(1234))

        assert abs(result.successes - 10_000 / 6) < 250

    def test_count_successes(self):
        """Test counting successes on fixed faces."""
        assert count_successes([6, 6, 6]) == 3
        assert count_successes([1, 2, 3, 4, 5]) == 0


class TestResolveFear:
    """Test fear test outcomes."""

    def test_failure_reports_missing_successes(self):
        """Test 2 successes against fear 4 require 2 conditions."""
        outcome = resolve_fear(2, 4, faces=[6, 3, 6, 1])

        assert isinstance(outcome, FearOutcome)
        assert not outcome.resisted
        assert outcome.conditions_required == 2
        assert outcome.faces == (6, 3, 6, 1)
        assert outcome.fear_value == 4

    def test_meeting_fear_value_resists(self):
        """Test matching the fear value resists it."""
        for successes, fear_value in [(4, 4), (5, 1)]:
            outcome = resolve_fear(successes, fear_value)
            assert outcome.resisted
            assert outcome.conditions_required == 0

    def test_fear_value_must_be_positive(self):
        """Test fear value 0 is rejected."""
        with pytest.raises(ValidationError):
            resolve_fear(0, 0)


class TestPushRoll:
    """Test pushing a roll."""

    def test_push_keeps_sixes_and_rerolls_the_rest(self, make_character, scripted):
        """Test sixes are kept and only the other dice are rerolled."""
        character = make_character()

        result = push_roll(character, Attribute.PHYSIQUE, [6, 3, 6, 1], scripted([2, 6]))

        assert result.faces == (6, 6, 2, 6)
        assert result.new_faces == (2, 6)
        assert result.successes == 3

    def test_push_takes_condition_on_a_copy(self, make_character, scripted):
        """Test the pushed condition lands on the returned copy only."""
        character = make_character()

        result = push_roll(character, Attribute.PHYSIQUE, [1, 1], scripted([1, 1]))

        assert result.condition.name == "Exhausted"
        assert result.character.get_condition("Exhausted").active
        assert not character.get_condition("Exhausted").active

    def test_push_uses_category_of_tested_attribute(self, make_character, scripted):
        """Test pushing a Logic test takes the first mental condition."""
        result = push_roll(make_character(), Attribute.LOGIC, [2], scripted([3]))

        assert result.condition.name == "Angry"

    def test_push_without_free_slot_fails(self, make_character, scripted):
        """Test pushing with every mental condition active raises."""
        character = make_character(active=["Angry", "Frightened", "Hopeless"])

        with pytest.raises(NoConditionSlot):
            push_roll(character, Attribute.EMPATHY, [2, 3], scripted([6, 6]))

        assert sum(c.active for c in character.conditions) == 3

    def test_push_never_loses_successes(self, make_character):
        """Test the pushed result has at least the prior successes."""
        character = make_character()
        for seed in range(50):
            rng = random.Random(seed)
            prior = roll_dice(6, rng)
            pushed = push_roll(character, Attribute.PRECISION, prior.faces, rng)
            assert pushed.successes >= prior.successes
            assert len(pushed.faces) == len(prior.faces)


class TestDicePoolEngine:
    """Test the roll session state machine."""

    def test_roll_then_push(self, make_character, scripted):
        """Test a skill roll can be pushed once."""
        character = make_character(skills={Skill.FORCE: 2})
        engine = DicePoolEngine(rng=scripted([6, 1, 2, 3, 6, 6, 6, 1]))

        first = engine.roll_skill(character, Skill.FORCE)
        assert first.successes == 2
        assert engine.can_push

        pushed = engine.push(character)

        assert pushed.successes == 4
        assert pushed.character.get_condition("Exhausted").active
        assert engine.state == RollState.PUSHED
        assert not engine.can_push

    def test_second_push_rejected(self, make_character, scripted):
        """Test a roll can never be pushed twice."""
        character = make_character()
        engine = DicePoolEngine(rng=scripted([1, 1, 1, 1, 1, 1]))
        engine.roll_skill(character, Skill.AGILITY)
        result = engine.push(character)

        with pytest.raises(PushUnavailable):
            engine.push(result.character)

    def test_only_roller_can_push(self, make_character, scripted):
        """Test another character cannot push the roll on the table."""
        roller = make_character()
        other = make_character()
        other.name = "Someone Else"
        engine = DicePoolEngine(rng=scripted([1, 1, 1, 1, 1, 1]))
        engine.roll_skill(roller, Skill.AGILITY)

        with pytest.raises(PushUnavailable):
            engine.push(other)

        assert engine.can_push
        assert not other.get_condition("Exhausted").active
        assert engine.push(roller).character.name == roller.name

    def test_push_before_roll_rejected(self, make_character):
        """Test pushing from an idle session raises."""
        with pytest.raises(PushUnavailable):
            DicePoolEngine().push(make_character())

    def test_fear_roll_cannot_be_pushed(self, make_character, scripted):
        """Test fear tests are never pushable."""
        character = make_character()
        engine = DicePoolEngine(rng=scripted([6, 2, 6, 3, 4, 5]))

        outcome = engine.roll_fear(character, Attribute.LOGIC, fear_value=4, companions=3)

        assert outcome.successes == 2
        assert not outcome.resisted
        assert outcome.conditions_required == 2
        assert not engine.can_push
        with pytest.raises(PushUnavailable):
            engine.push(character)

    def test_close_ends_push_window(self, make_character, scripted):
        """Test closing the session forfeits the push."""
        character = make_character()
        engine = DicePoolEngine(rng=scripted([2, 2, 2]))
        engine.roll_skill(character, Skill.AGILITY)

        engine.close()

        assert engine.state == RollState.IDLE
        assert engine.faces == ()
        with pytest.raises(PushUnavailable):
            engine.push(character)

    def test_new_roll_allows_new_push(self, make_character, scripted):
        """Test a fresh roll after a push can be pushed again."""
        character = make_character()
        engine = DicePoolEngine(rng=scripted([1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1]))
        engine.roll_skill(character, Skill.AGILITY)
        character = engine.push(character).character

        engine.roll_skill(character, Skill.STEALTH)

        assert engine.can_push

    def test_broken_character_cannot_roll(self, make_character):
        """Test a blocked roll raises and leaves the session idle."""
        character = make_character(active=["Exhausted", "Battered", "Wounded"])
        engine = DicePoolEngine()

        with pytest.raises(RollForbidden):
            engine.roll_skill(character, Skill.CLOSE_COMBAT)

        assert engine.state == RollState.IDLE
        assert engine.history == []

    def test_history_is_capped_most_recent_first(self, make_character):
        """Test history keeps only the last five rolls, newest first."""
        character = make_character()
        engine = DicePoolEngine(rng=random.Random(3), history_size=5)
        skills = [Skill.AGILITY, Skill.FORCE, Skill.STEALTH, Skill.MEDICINE, Skill.LEARNING,
                  Skill.INSPIRATION, Skill.OBSERVATION]

        for skill in skills:
            engine.roll_skill(character, skill)

        assert len(engine.history) == 5
        assert engine.history[0].label == "Observation Test"
        assert engine.history[-1].label == "Stealth Test"

    def test_push_is_recorded_in_history(self, make_character, scripted):
        """Test the pushed result is added on top of the initial roll."""
        character = make_character()
        engine = DicePoolEngine(rng=scripted([6, 1, 1, 5, 6]), history_size=5)

        engine.roll_skill(character, Skill.AGILITY, attribute_only=True)
        engine.push(character)

        assert [r.pushed for r in engine.history] == [True, False]
        assert engine.history[0].label == "Physique Test"
        assert engine.history[0].faces == (6, 5, 6)

    def test_history_size_defaults_to_settings(self, monkeypatch):
        """Test the history size comes from configuration."""
        monkeypatch.setenv("GYLLENCREUTZ_ROLL_HISTORY_SIZE", "2")
        get_settings.cache_clear()

        assert DicePoolEngine().history_size == 2
