"""Pydantic models for quiz session operations."""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from glosa.db.models.quiz import QuizStatus, QuizType


class QuizStartRequest(BaseModel):
    """Payload for starting a quiz."""

    user_id: uuid.UUID
    quiz_type: QuizType
    total_questions: int = Field(..., ge=1, le=200)


class QuizAnswerRequest(BaseModel):
    """Payload for answering one question."""

    session_id: uuid.UUID
    word_id: int = Field(..., ge=1)
    user_answer: str = Field(..., max_length=500)
    correct_answer: str = Field(..., max_length=500)
    answer_time: int = Field(0, ge=0, description="Milliseconds spent on the question")

    @field_validator("correct_answer")
    @classmethod
    def correct_answer_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("correct_answer must not be blank")
        return value


class QuizFinishRequest(BaseModel):
    """Payload for finishing a quiz."""

    session_id: uuid.UUID
    time_spent: int = Field(..., ge=0, description="Seconds spent on the whole quiz")


class QuizAnswerRead(BaseModel):
    """Stored answer."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    session_id: uuid.UUID
    word_id: int
    user_answer: str
    correct_answer: str
    is_correct: bool
    answer_time: int
    answered_at: datetime | None = None


class AnswerResult(BaseModel):
    """Response after answering a question."""

    answer: QuizAnswerRead
    is_correct: bool


class QuizSessionRead(BaseModel):
    """Quiz session summary."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    quiz_type: QuizType
    status: QuizStatus
    total_questions: int
    correct_answers: int
    score: float = Field(..., ge=0, le=100)
    time_spent: int
    started_at: datetime | None = None
    completed_at: datetime | None = None


class QuizSessionDetail(QuizSessionRead):
    """Quiz session with its answers."""

    answers: list[QuizAnswerRead] = Field(default_factory=list)


class QuizSessionLookup(BaseModel):
    """Identifier of a stored quiz session."""

    session_id: uuid.UUID
