"""Typed errors raised by the progress engine.

Every operation either succeeds or raises one of these. The engine knows
nothing about transports; ``http_status`` is only a hint for whichever layer
turns errors into responses.
"""
from typing import Any, Dict, Optional


class GlosaError(Exception):
    """Base exception for the engine."""

    http_status: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly error body."""

        return {"error": type(self).__name__, "message": self.message, "details": self.details}


class NotFoundError(GlosaError):
    """Unknown user, word or quiz session. Nothing was written."""

    http_status = 404


class ValidationError(GlosaError):
    """Malformed input rejected before any write."""

    http_status = 422


class SessionStateError(ValidationError):
    """Quiz session lifecycle violation, e.g. answering a completed session."""

    http_status = 409


class ConflictError(GlosaError):
    """Unique constraint violation that could not be resolved as an update."""

    http_status = 409


class StoreError(GlosaError):
    """Backing store unavailable. Transient; reads are safe to retry."""

    http_status = 503
