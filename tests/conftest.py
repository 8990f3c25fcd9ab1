"""Shared fixtures for all tests."""

from collections.abc import Iterable

import pytest

from gyllencreutz.config import get_settings
from gyllencreutz.models import Character
from gyllencreutz.rules.loader import RulesTables, get_rules_tables, load_rules_tables
from gyllencreutz.rules.tables import AgeGroup, Attribute, Skill
from gyllencreutz.systems.conditions import initial_conditions, set_condition


class ScriptedRandom:
    """Random source that hands out queued die faces in order."""

    def __init__(self, faces: Iterable[int]) -> None:
        self.faces = list(faces)

    def randint(self, a: int, b: int) -> int:
        face = self.faces.pop(0)
        assert a <= face <= b
        return face


@pytest.fixture(autouse=True)
def reset_cached_settings():
    """Clear cached settings and tables so environment changes never leak between tests."""
    get_settings.cache_clear()
    get_rules_tables.cache_clear()
    yield
    get_settings.cache_clear()
    get_rules_tables.cache_clear()


@pytest.fixture
def tables() -> RulesTables:
    """Rules tables loaded from the packaged YAML data."""
    return load_rules_tables()


@pytest.fixture
def scripted():
    """Factory for a scripted random source."""
    return ScriptedRandom


@pytest.fixture
def make_character(tables: RulesTables):
    """Factory building a ready-to-play character.

    Attributes default to 3 across the board and skills to 0; pass
    ``active`` to switch conditions on by name.
    """

    def _make(
        archetype: str = "Officer",
        attributes: dict[Attribute, int] | None = None,
        skills: dict[Skill, int] | None = None,
        resources: int | None = None,
        active: Iterable[str] = (),
        xp: int = 0,
    ) -> Character:
        arch = tables.get_archetype(archetype)
        base = {attr: 3 for attr in Attribute}
        base.update(attributes or {})
        character = Character(
            name="Test Investigator",
            archetype=arch,
            age=AgeGroup.YOUNG,
            attributes=base,
            skills=skills or {},
            resources=arch.min_resources if resources is None else resources,
            conditions=initial_conditions(),
            xp=xp,
        )
        for name in active:
            set_condition(character, name, True)
        return character

    return _make
