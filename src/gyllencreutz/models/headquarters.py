"""Headquarters and upgrade models."""

from typing import Any

from pydantic import Field

from gyllencreutz.rules.tables import DISCOVERED_MARKER, UpgradeCategory

from .base import RulesModel


class Upgrade(RulesModel):
    """
    A purchasable headquarters improvement.

    Attributes:
        id: Unique upgrade identifier (e.g., "library")
        name: Display name; a "(Discovered)" marker hides it until its prerequisite holds
        category: Facility, Contact or Personnel
        prerequisite: Prerequisite expression (see systems.headquarters)
        cost: Development point cost
        description: Rules text
        purchased: Whether the headquarters owns it
    """

    id: str = Field(..., description="Unique upgrade identifier")
    name: str = Field(..., description="Display name")
    category: UpgradeCategory = Field(..., alias="type")
    prerequisite: str = Field(default="None", description="Prerequisite expression")
    cost: int = Field(default=0, ge=0, description="Development point cost")
    description: str = ""
    purchased: bool = False

    @property
    def is_discovered(self) -> bool:
        """Check if this upgrade stays hidden until its prerequisite is met."""
        return DISCOVERED_MARKER in self.name

    @property
    def display_name(self) -> str:
        """Name without the discovered marker."""
        return self.name.replace(DISCOVERED_MARKER, "").strip()


class Headquarters(RulesModel):
    """The investigators' shared home base."""

    name: str
    development_points: int = Field(default=0, ge=0)
    upgrades: list[Upgrade] = Field(default_factory=list)

    def purchased_ids(self) -> set[str]:
        """Get the ids of every purchased upgrade."""
        return {u.id for u in self.upgrades if u.purchased}

    def get_upgrade(self, upgrade_id: str) -> Upgrade | None:
        """Find an upgrade by id."""
        for upgrade in self.upgrades:
            if upgrade.id == upgrade_id:
                return upgrade
        return None

    def to_record(self) -> dict[str, Any]:
        """Serialize to the stored campaign shape."""
        return self.model_dump(mode="json", by_alias=True)
