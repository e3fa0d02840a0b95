"""Memoryscape: collaborative memory capsules with live presence."""

__version__ = "1.0.0"
