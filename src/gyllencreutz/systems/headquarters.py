"""Headquarters upgrades and their prerequisites.

Prerequisites are stored as short strings in the upgrade catalog::

    "None" / "Available from start"   always satisfied
    ""                                an unknown upgrade name, never satisfied
    "A & B"                           both sides
    "A or B"                          either side
    "Resources N"                     character resources >= N
    "Doctor", "Hunter", "Occultist"   the character's archetype
    anything else                     the exact name of another upgrade, purchased

``&`` is split before ``or``, so in "A & B or C" the AND is the outer
operator. Each string is parsed once into a small expression tree.
"""

import re
import warnings
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from functools import lru_cache

import structlog

from gyllencreutz.config import get_settings
from gyllencreutz.errors import (
    AlreadyPurchased,
    DataIntegrityWarning,
    InsufficientPoints,
    PrerequisiteNotMet,
    ValidationError,
)
from gyllencreutz.models import Character, Headquarters, Upgrade
from gyllencreutz.rules.loader import RulesTables, get_rules_tables

logger = structlog.get_logger(__name__)

ALWAYS_LITERALS = ("None", "Available from start")
AND_SEPARATOR = "&"
OR_SEPARATOR = " or "
ARCHETYPE_TERMS = {"doctor": "Doctor", "hunter": "Hunter", "occultist": "Occultist"}

_RESOURCES_PATTERN = re.compile(r"^Resources\s+(\d+)$")


@dataclass(frozen=True)
class Always:
    """Satisfied unconditionally."""


@dataclass(frozen=True)
class And:
    terms: tuple["Prerequisite", ...]


@dataclass(frozen=True)
class Or:
    terms: tuple["Prerequisite", ...]


@dataclass(frozen=True)
class ResourcesAtLeast:
    amount: int


@dataclass(frozen=True)
class ArchetypeIs:
    name: str


@dataclass(frozen=True)
class UpgradeNamed:
    name: str


Prerequisite = Always | And | Or | ResourcesAtLeast | ArchetypeIs | UpgradeNamed


@dataclass(frozen=True)
class UpgradeStatus:
    """Listing and purchase flags for one upgrade, computed independently."""

    upgrade: Upgrade
    visible: bool
    purchasable: bool


@dataclass(frozen=True)
class PurchaseResult:
    """Outcome of a successful purchase."""

    ok: bool
    headquarters: Headquarters
    upgrade: Upgrade


@lru_cache(maxsize=256)
def parse_prerequisite(expression: str) -> Prerequisite:
    """
    Parse a prerequisite string into an expression tree.

    Args:
        expression: Prerequisite as stored in the catalog

    Returns:
        The root node

    Examples:
        >>> parse_prerequisite("Resources 3 & Hunter")
        And(terms=(ResourcesAtLeast(amount=3), ArchetypeIs(name='Hunter')))
    """
    text = expression.strip()

    if text in ALWAYS_LITERALS:
        return Always()

    if AND_SEPARATOR in text:
        return And(tuple(parse_prerequisite(part.strip()) for part in text.split(AND_SEPARATOR)))

    if OR_SEPARATOR in text:
        return Or(tuple(parse_prerequisite(part.strip()) for part in text.split(OR_SEPARATOR)))

    match = _RESOURCES_PATTERN.match(text)
    if match:
        return ResourcesAtLeast(int(match.group(1)))

    lowered = text.lower()
    for term, archetype_name in ARCHETYPE_TERMS.items():
        if term in lowered:
            return ArchetypeIs(archetype_name)

    return UpgradeNamed(text)


def _evaluate(
    node: Prerequisite,
    character: Character,
    purchased_ids: set[str],
    catalog: Sequence[Upgrade],
) -> bool:
    match node:
        case Always():
            return True
        case And(terms):
            return all(_evaluate(t, character, purchased_ids, catalog) for t in terms)
        case Or(terms):
            return any(_evaluate(t, character, purchased_ids, catalog) for t in terms)
        case ResourcesAtLeast(amount):
            return character.resources >= amount
        case ArchetypeIs(name):
            return character.archetype.name == name
        case UpgradeNamed(name):
            required = next((u for u in catalog if u.name == name), None)
            if required is None:
                logger.warning("prerequisite_unknown_upgrade", upgrade_name=name)
                warnings.warn(
                    f"Prerequisite references unknown upgrade '{name}'",
                    DataIntegrityWarning,
                    stacklevel=2,
                )
                return False
            return required.id in purchased_ids
    return False


def evaluate_prerequisite(
    expression: str,
    character: Character,
    purchased_ids: Iterable[str],
    catalog: Sequence[Upgrade],
) -> bool:
    """
    Decide whether a prerequisite holds.

    Args:
        expression: Prerequisite string
        character: Character whose archetype and resources are checked
        purchased_ids: Ids of purchased upgrades
        catalog: Upgrades used to resolve upgrade names to ids

    Returns:
        True if satisfied; an unknown upgrade name counts as unsatisfied and
        emits a DataIntegrityWarning
    """
    return _evaluate(parse_prerequisite(expression), character, set(purchased_ids), catalog)


def _catalog(headquarters: Headquarters, catalog: Sequence[Upgrade] | None) -> Sequence[Upgrade]:
    return catalog if catalog is not None else headquarters.upgrades


def prerequisite_met(
    upgrade: Upgrade,
    headquarters: Headquarters,
    character: Character,
    catalog: Sequence[Upgrade] | None = None,
) -> bool:
    return evaluate_prerequisite(
        upgrade.prerequisite,
        character,
        headquarters.purchased_ids(),
        _catalog(headquarters, catalog),
    )


def is_visible(
    upgrade: Upgrade,
    headquarters: Headquarters,
    character: Character,
    catalog: Sequence[Upgrade] | None = None,
) -> bool:
    """Check if an upgrade shows up in listings (discovered ones wait for their prerequisite)."""
    if not upgrade.is_discovered:
        return True
    return prerequisite_met(upgrade, headquarters, character, catalog)


def is_purchasable(
    upgrade: Upgrade,
    headquarters: Headquarters,
    character: Character,
    catalog: Sequence[Upgrade] | None = None,
) -> bool:
    """Check if an upgrade could be bought right now."""
    return (
        not upgrade.purchased
        and headquarters.development_points >= upgrade.cost
        and prerequisite_met(upgrade, headquarters, character, catalog)
    )


def upgrade_status(
    upgrade: Upgrade,
    headquarters: Headquarters,
    character: Character,
    catalog: Sequence[Upgrade] | None = None,
) -> UpgradeStatus:
    return UpgradeStatus(
        upgrade=upgrade,
        visible=is_visible(upgrade, headquarters, character, catalog),
        purchasable=is_purchasable(upgrade, headquarters, character, catalog),
    )


def available_upgrades(
    headquarters: Headquarters,
    character: Character,
    catalog: Sequence[Upgrade] | None = None,
) -> list[Upgrade]:
    """List unpurchased upgrades that are visible."""
    return [
        u
        for u in headquarters.upgrades
        if not u.purchased and is_visible(u, headquarters, character, catalog)
    ]


def purchased_upgrades(headquarters: Headquarters) -> list[Upgrade]:
    return [u for u in headquarters.upgrades if u.purchased]


def purchase_upgrade(
    headquarters: Headquarters,
    upgrade_id: str,
    character: Character,
    catalog: Sequence[Upgrade] | None = None,
) -> PurchaseResult:
    """
    Buy an upgrade.

    Args:
        headquarters: Current headquarters; left untouched
        upgrade_id: Id of the upgrade to buy
        character: Character whose state the prerequisite checks
        catalog: Upgrades used to resolve prerequisite names (defaults to the headquarters list)

    Returns:
        PurchaseResult holding an updated copy with the cost deducted and only
        that upgrade flipped to purchased

    Raises:
        ValidationError: If no upgrade has that id
        AlreadyPurchased: If it is already owned
        InsufficientPoints: If development points fall short
        PrerequisiteNotMet: If the prerequisite evaluates false
    """
    upgrade = headquarters.get_upgrade(upgrade_id)
    if upgrade is None:
        raise ValidationError(f"Unknown upgrade: {upgrade_id}")

    if upgrade.purchased:
        raise AlreadyPurchased(f"{upgrade.display_name} is already purchased")

    if headquarters.development_points < upgrade.cost:
        raise InsufficientPoints(
            f"Not enough Development Points! {upgrade.display_name} costs {upgrade.cost}, "
            f"you have {headquarters.development_points}"
        )

    if not prerequisite_met(upgrade, headquarters, character, catalog):
        raise PrerequisiteNotMet(
            f"{upgrade.display_name} requires: {upgrade.prerequisite}"
        )

    updated = headquarters.model_copy(deep=True)
    updated.development_points -= upgrade.cost
    index = next(i for i, u in enumerate(updated.upgrades) if u.id == upgrade_id)
    bought = updated.upgrades[index]
    bought.purchased = True

    logger.info(
        "upgrade_purchased",
        headquarters=updated.name,
        upgrade_id=upgrade_id,
        cost=upgrade.cost,
        development_points=updated.development_points,
    )
    return PurchaseResult(ok=True, headquarters=updated, upgrade=bought)


def adjust_development_points(headquarters: Headquarters, amount: int) -> Headquarters:
    """Return a copy with development points changed by ``amount``, floored at 0."""
    updated = headquarters.model_copy(deep=True)
    updated.development_points = max(0, headquarters.development_points + amount)
    return updated


def new_headquarters(tables: RulesTables | None = None, name: str | None = None) -> Headquarters:
    """Create a headquarters with a fresh copy of the upgrade catalog."""
    tables = tables or get_rules_tables()
    return Headquarters(
        name=name or get_settings().headquarters_name,
        development_points=0,
        upgrades=[u.model_copy(deep=True) for u in tables.upgrades],
    )
