"""Gyllencreutz: rules engine for investigative-horror investigators and their headquarters."""

__version__ = "0.1.0"
