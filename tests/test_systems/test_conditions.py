"""Tests for condition tracking."""

import pytest

from gyllencreutz.errors import IllegalAction, NoConditionSlot, ValidationError
from gyllencreutz.rules.tables import ConditionCategory
from gyllencreutz.systems.conditions import (
    active_count,
    apply_fear_conditions,
    broken_categories,
    heal_with_memento,
    initial_conditions,
    is_broken,
    set_condition,
    take_condition,
    toggle_condition,
    total_active,
)


class TestInitialConditions:
    """Test the starting condition set."""

    def test_six_inactive_conditions(self):
        """Test a new character has three inactive conditions per category."""
        conditions = initial_conditions()

        assert [c.name for c in conditions] == [
            "Exhausted", "Battered", "Wounded", "Angry", "Frightened", "Hopeless",
        ]
        assert not any(c.active for c in conditions)
        assert sum(c.category == ConditionCategory.PHYSICAL for c in conditions) == 3


class TestToggle:
    """Test manual condition toggles."""

    def test_toggle_flips_and_restores(self, make_character):
        """Test toggling twice returns to the starting state."""
        character = make_character()

        assert toggle_condition(character, "Battered").active
        assert not toggle_condition(character, "battered").active

    def test_unknown_condition_rejected(self, make_character):
        """Test toggling a condition that does not exist raises."""
        with pytest.raises(ValidationError):
            toggle_condition(make_character(), "Sleepy")

    def test_toggle_is_unrestricted_when_broken(self, make_character):
        """Test a broken character can still clear conditions by hand."""
        character = make_character(active=["Angry", "Frightened", "Hopeless"])

        set_condition(character, "Frightened", False)

        assert active_count(character, ConditionCategory.MENTAL) == 2


class TestBroken:
    """Test the broken state."""

    def test_three_conditions_break_a_category(self, make_character):
        """Test broken needs all three conditions of one category."""
        character = make_character(active=["Exhausted", "Battered", "Angry"])

        assert not is_broken(character, ConditionCategory.PHYSICAL)
        set_condition(character, "Wounded", True)

        assert is_broken(character, ConditionCategory.PHYSICAL)
        assert not is_broken(character, ConditionCategory.MENTAL)
        assert broken_categories(character) == [ConditionCategory.PHYSICAL]
        assert total_active(character) == 4


class TestTakeCondition:
    """Test automatic condition selection."""

    def test_takes_first_inactive_in_order(self, make_character):
        """Test the first free slot of the category is used."""
        character = make_character(active=["Exhausted"])

        taken = take_condition(character, ConditionCategory.PHYSICAL)

        assert taken.name == "Battered"
        assert character.get_condition("Battered").active

    def test_full_category_raises(self, make_character):
        """Test taking a condition with no free slot raises."""
        character = make_character(active=["Exhausted", "Battered", "Wounded"])

        with pytest.raises(NoConditionSlot):
            take_condition(character, ConditionCategory.PHYSICAL)


class TestFearConditions:
    """Test applying conditions after a failed fear test."""

    def test_takes_required_conditions(self, make_character):
        """Test two required conditions are both taken."""
        character = make_character()

        result = apply_fear_conditions(character, 2)

        assert [c.name for c in result.taken] == ["Angry", "Frightened"]
        assert result.shortfall == 0

    def test_reports_shortfall(self, make_character):
        """Test conditions beyond the free slots are reported, not raised."""
        character = make_character(active=["Angry", "Frightened"])

        result = apply_fear_conditions(character, 3)

        assert [c.name for c in result.taken] == ["Hopeless"]
        assert result.shortfall == 2


class TestMemento:
    """Test healing with a memento."""

    def test_heals_active_condition(self, make_character):
        """Test an active condition is cleared."""
        character = make_character(active=["Wounded"])

        heal_with_memento(character, "Wounded")

        assert not character.get_condition("Wounded").active

    def test_inactive_condition_rejected(self, make_character):
        """Test healing an inactive condition raises."""
        with pytest.raises(IllegalAction):
            heal_with_memento(make_character(), "Wounded")
