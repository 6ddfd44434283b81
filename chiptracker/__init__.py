"""Chip and cash tracking for home poker sessions."""

__version__ = "0.1.0"
