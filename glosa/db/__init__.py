"""Persistence layer: declarative base, models, engine and sessions."""
