"""Pydantic models for learner records."""
from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserCreate(BaseModel):
    """Payload for registering a learner record with the engine."""

    email: EmailStr
    username: str = Field(..., min_length=3, max_length=30)


class UserRead(BaseModel):
    """Learner record with its aggregate counters."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    username: str
    total_words_learned: int
    current_streak: int
    longest_streak: int
    total_quizzes_taken: int
    average_quiz_score: float


class UserLookup(BaseModel):
    """Identifier of the learner a read or rebuild is for."""

    user_id: uuid.UUID
