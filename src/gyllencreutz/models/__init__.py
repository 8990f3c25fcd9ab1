"""Pydantic models for characters, headquarters and campaigns."""

from .campaign import Campaign
from .character import Archetype, Character, Condition, DefectInsight, Relationship
from .headquarters import Headquarters, Upgrade

__all__ = [
    "Archetype",
    "Campaign",
    "Character",
    "Condition",
    "DefectInsight",
    "Headquarters",
    "Relationship",
    "Upgrade",
]
