#!/usr/bin/env python3
"""
Check script for the Gyllencreutz rules tables.

Loads every YAML table, prints a summary and verifies that each upgrade
prerequisite only names upgrades that exist in the catalog.
"""

import sys

from gyllencreutz.rules.loader import RulesLoadError, load_rules_tables
from gyllencreutz.systems.headquarters import And, Or, UpgradeNamed, parse_prerequisite


def referenced_upgrades(node) -> list[str]:
    """Collect upgrade names referenced by a parsed prerequisite."""
    if isinstance(node, UpgradeNamed):
        return [node.name]
    if isinstance(node, (And, Or)):
        names = []
        for term in node.terms:
            names.extend(referenced_upgrades(term))
        return names
    return []


def main() -> int:
    """Main check function."""
    print("=" * 70)
    print("Gyllencreutz - Rules Tables Check")
    print("=" * 70)

    try:
        tables = load_rules_tables()
    except RulesLoadError as e:
        print(f"\n❌ {e}")
        return 1

    print("\n📊 Table Statistics:")
    print(f"   Archetypes: {len(tables.archetypes)}")
    for archetype in tables.archetypes.values():
        low, high = archetype.resources
        print(
            f"     - {archetype.name}: {archetype.main_attribute} / {archetype.main_skill}, "
            f"resources {low}-{high}"
        )
    print(f"   Talents: {len(tables.talents)}")
    print(f"   Upgrades: {len(tables.upgrades)}")
    print(f"   Physical injuries: {len(tables.physical_injuries)}")
    print(f"   Mental injuries: {len(tables.mental_injuries)}")

    print("\n" + "=" * 70)
    print("Upgrade Prerequisites")
    print("=" * 70)

    names = {u.name for u in tables.upgrades}
    problems = 0
    for upgrade in tables.upgrades:
        node = parse_prerequisite(upgrade.prerequisite)
        missing = [n for n in referenced_upgrades(node) if n not in names]
        marker = "❌" if missing else "✅"
        print(f"{marker} {upgrade.id}: {upgrade.prerequisite}")
        for name in missing:
            print(f"     unknown upgrade: {name}")
        problems += len(missing)

    print(f"\n{'✅ All prerequisites resolve' if not problems else f'❌ {problems} problem(s)'}")
    return 1 if problems else 0


if __name__ == "__main__":
    sys.exit(main())
