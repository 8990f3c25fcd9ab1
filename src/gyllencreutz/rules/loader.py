"""
Rules table loader.

Reads the archetype, upgrade, injury and talent catalogs from YAML and
validates them into immutable :class:`RulesTables`.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any

import structlog
import yaml
from pydantic import ValidationError as PydanticValidationError

from gyllencreutz.config import get_settings
from gyllencreutz.errors import ValidationError
from gyllencreutz.models import Archetype, DefectInsight, Upgrade
from gyllencreutz.rules.tables import ConditionCategory

logger = structlog.get_logger(__name__)


class RulesLoadError(Exception):
    """Raised when a rules table cannot be loaded or is inconsistent."""

    pass


@dataclass(frozen=True)
class RulesTables:
    """
    Read-only reference data injected into the rules operations.

    Attributes:
        archetypes: Archetypes keyed by name
        upgrades: Headquarters upgrade catalog, in display order
        physical_injuries: Physical critical injury catalog
        mental_injuries: Mental critical injury catalog
        talents: Talent name to rules text
    """

    archetypes: Mapping[str, Archetype]
    upgrades: tuple[Upgrade, ...]
    physical_injuries: tuple[DefectInsight, ...]
    mental_injuries: tuple[DefectInsight, ...]
    talents: Mapping[str, str]

    def get_archetype(self, name: str) -> Archetype:
        """
        Look up an archetype by name.

        Raises:
            ValidationError: If no archetype has that name
        """
        try:
            return self.archetypes[name]
        except KeyError:
            raise ValidationError(f"Unknown archetype: {name}") from None

    def all_talents(self) -> list[str]:
        """Get every talent name, sorted."""
        return sorted(self.talents)

    def talent_description(self, talent: str) -> str:
        """Get a talent's rules text."""
        return self.talents.get(talent, "No description available.")

    def injuries(self, category: ConditionCategory) -> tuple[DefectInsight, ...]:
        """Get the critical injury catalog for a category."""
        if ConditionCategory(category) == ConditionCategory.PHYSICAL:
            return self.physical_injuries
        return self.mental_injuries


def load_yaml_file(file_path: Path, key: str) -> Any:
    """
    Load one rules YAML file and return the value under ``key``.

    Args:
        file_path: Path to the YAML file
        key: Top-level key holding the table

    Returns:
        The table stored under ``key``

    Raises:
        RulesLoadError: If the file cannot be loaded or parsed
    """
    try:
        with open(file_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise RulesLoadError(f"YAML parsing error in {file_path}: {e}") from e
    except FileNotFoundError as e:
        raise RulesLoadError(f"File not found: {file_path}") from e
    except OSError as e:
        raise RulesLoadError(f"Error loading {file_path}: {e}") from e

    if not data:
        raise RulesLoadError(f"Empty YAML file: {file_path}")

    if key not in data:
        raise RulesLoadError(f"Missing '{key}' key in {file_path}")

    return data[key]


def _load_archetypes(directory: Path, talents: Mapping[str, str]) -> dict[str, Archetype]:
    file_path = directory / "archetypes.yaml"
    rows = load_yaml_file(file_path, "archetypes")
    if not isinstance(rows, list):
        raise RulesLoadError(f"'archetypes' must be a list in {file_path}")

    archetypes: dict[str, Archetype] = {}
    for row in rows:
        try:
            archetype = Archetype.model_validate(row)
        except PydanticValidationError as e:
            name = row.get("name", "unknown") if isinstance(row, dict) else "unknown"
            raise RulesLoadError(f"Invalid archetype '{name}' in {file_path}: {e}") from e

        if archetype.name in archetypes:
            raise RulesLoadError(f"Duplicate archetype '{archetype.name}' in {file_path}")

        unknown = [t for t in archetype.talents if t not in talents]
        if unknown:
            raise RulesLoadError(
                f"Archetype '{archetype.name}' lists unknown talents: {', '.join(unknown)}"
            )

        archetypes[archetype.name] = archetype

    return archetypes


def _load_upgrades(directory: Path) -> tuple[Upgrade, ...]:
    file_path = directory / "upgrades.yaml"
    rows = load_yaml_file(file_path, "upgrades")
    if not isinstance(rows, list):
        raise RulesLoadError(f"'upgrades' must be a list in {file_path}")

    upgrades: list[Upgrade] = []
    seen: set[str] = set()
    for row in rows:
        try:
            upgrade = Upgrade.model_validate(row)
        except PydanticValidationError as e:
            upgrade_id = row.get("id", "unknown") if isinstance(row, dict) else "unknown"
            raise RulesLoadError(f"Invalid upgrade '{upgrade_id}' in {file_path}: {e}") from e

        if upgrade.id in seen:
            raise RulesLoadError(f"Duplicate upgrade id '{upgrade.id}' in {file_path}")
        seen.add(upgrade.id)
        upgrades.append(upgrade)

    return tuple(upgrades)


def _load_injuries(directory: Path) -> dict[ConditionCategory, tuple[DefectInsight, ...]]:
    file_path = directory / "injuries.yaml"
    catalogs: dict[ConditionCategory, tuple[DefectInsight, ...]] = {}

    for category in ConditionCategory:
        rows = load_yaml_file(file_path, category.value)
        if not isinstance(rows, list):
            raise RulesLoadError(f"'{category.value}' must be a list in {file_path}")
        try:
            catalogs[category] = tuple(
                DefectInsight.model_validate({**row, "type": category.value}) for row in rows
            )
        except (PydanticValidationError, TypeError) as e:
            raise RulesLoadError(f"Invalid {category.value} injury in {file_path}: {e}") from e

    return catalogs


def _load_talents(directory: Path) -> dict[str, str]:
    file_path = directory / "talents.yaml"
    talents = load_yaml_file(file_path, "talents")
    if not isinstance(talents, dict):
        raise RulesLoadError(f"'talents' must be a mapping in {file_path}")
    return {str(name): str(text) for name, text in talents.items()}


def load_rules_tables(directory: Path | None = None) -> RulesTables:
    """
    Load every rules table from a directory.

    Args:
        directory: Directory holding the YAML files (defaults to the configured data dir)

    Returns:
        Validated, read-only rules tables

    Raises:
        RulesLoadError: If any table is missing, malformed or inconsistent
    """
    if directory is None:
        directory = get_settings().data_dir

    talents = _load_talents(directory)
    archetypes = _load_archetypes(directory, talents)
    upgrades = _load_upgrades(directory)
    injuries = _load_injuries(directory)

    tables = RulesTables(
        archetypes=MappingProxyType(archetypes),
        upgrades=upgrades,
        physical_injuries=injuries[ConditionCategory.PHYSICAL],
        mental_injuries=injuries[ConditionCategory.MENTAL],
        talents=MappingProxyType(talents),
    )

    logger.info(
        "rules_tables_loaded",
        directory=str(directory),
        archetypes=len(archetypes),
        upgrades=len(upgrades),
        talents=len(talents),
    )

    return tables


@lru_cache
def get_rules_tables() -> RulesTables:
    """Get the cached rules tables loaded from the configured data dir."""
    return load_rules_tables()
