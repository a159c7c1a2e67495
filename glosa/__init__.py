"""Spaced-repetition progress engine for Swedish/English vocabulary."""

__version__ = "0.1.0"
