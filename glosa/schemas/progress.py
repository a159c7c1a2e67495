"""Pydantic models for word progress operations."""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictBool

from glosa.config import settings
from glosa.db.models.progress import MasteryLevel
from glosa.schemas.vocabulary import WordRef


class ProgressAttempt(BaseModel):
    """Payload for recording one attempt on a word."""

    user_id: uuid.UUID
    word_id: int = Field(..., ge=1)
    is_correct: StrictBool


class MarkShownRequest(BaseModel):
    """Words (by Swedish form) that were displayed to the learner."""

    user_id: uuid.UUID
    words: list[str] = Field(default_factory=list)


class ReviewQueueRequest(BaseModel):
    """Parameters for the due-review query."""

    user_id: uuid.UUID
    limit: int = Field(
        settings.REVIEW_QUEUE_DEFAULT_LIMIT, ge=1, le=settings.REVIEW_QUEUE_MAX_LIMIT
    )


class WordProgressRequest(BaseModel):
    """Learner and word a single progress record is looked up by."""

    user_id: uuid.UUID
    word_id: int = Field(..., ge=1)


class FlashcardDeckRequest(BaseModel):
    """Parameters for building a flashcard deck."""

    user_id: uuid.UUID
    limit: int = Field(10, ge=1, le=50)
    difficulty: int | None = Field(None, ge=1, le=5, description="Only words of this level; None means all")


class FlashcardCard(BaseModel):
    """One card of a deck with the learner's progress on the word."""

    word: WordRef
    is_new: bool
    mastery_level: str = "new"
    correct_attempts: int = 0
    total_attempts: int = 0
    success_rate: float = 0.0


class FlashcardDeck(BaseModel):
    """Due review cards first, then words the learner has never seen."""

    cards: list[FlashcardCard] = Field(default_factory=list)
    review_words: int = 0
    new_words: int = 0


class FlashcardSubmission(BaseModel):
    """Result of a flashcard round."""

    user_id: uuid.UUID
    learned_words: list[str] = Field(default_factory=list)
    shown_words: list[str] = Field(default_factory=list)


class FlashcardResult(BaseModel):
    """Counts reported back after a flashcard round."""

    words_processed: int
    newly_learned: int
    shown_words_tracked: int


class ProgressRecordRead(BaseModel):
    """A learner's progress on one word, joined with the catalog entry."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    word_id: int
    mastery_level: MasteryLevel
    correct_attempts: int = Field(..., ge=0)
    total_attempts: int = Field(..., ge=0)
    repetition_interval: int = Field(..., ge=1, le=30)
    last_review_date: datetime | None = None
    next_review_date: datetime | None = None
    first_mastered_at: datetime | None = None
    word: WordRef | None = None
