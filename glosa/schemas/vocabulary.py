"""Pydantic models for the word catalog."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

WordType = Literal[
    "noun",
    "verb",
    "adjective",
    "adverb",
    "pronoun",
    "preposition",
    "conjunction",
    "interjection",
]


class WordCreate(BaseModel):
    """Payload for adding a word pair to the catalog."""

    swedish: str = Field(..., min_length=1, max_length=100)
    english: str = Field(..., min_length=1, max_length=100)
    type: WordType = "noun"
    difficulty_level: int = Field(1, ge=1, le=5)


class WordRef(BaseModel):
    """Catalog entry as seen by the progress engine."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    swedish: str
    english: str
    type: str
    difficulty_level: int = Field(..., ge=1, le=5)
