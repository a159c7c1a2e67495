"""Utility helpers package."""

from glosa.utils.exceptions import (
    ConflictError,
    GlosaError,
    NotFoundError,
    SessionStateError,
    StoreError,
    ValidationError,
)

__all__ = [
    "ConflictError",
    "GlosaError",
    "NotFoundError",
    "SessionStateError",
    "StoreError",
    "ValidationError",
]
