"""Pydantic models for learner statistics."""
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from glosa.schemas.quiz import QuizSessionRead


class ActivityRequest(BaseModel):
    """Window for the daily activity query."""

    user_id: uuid.UUID
    days: int = Field(30, ge=1, le=365)


class StreakDay(BaseModel):
    """One day of recorded learning activity."""

    model_config = ConfigDict(from_attributes=True)

    date: date
    words_learned: int
    quizzes_taken: int
    time_spent: int
    is_active: bool


class ActivityDelta(BaseModel):
    """Activity to merge into one day of a learner's history."""

    words_learned: int = Field(0, ge=0)
    quizzes_taken: int = Field(0, ge=0)
    time_spent: int = Field(0, ge=0, description="Minutes")


class StreakSummary(BaseModel):
    """Current and longest streak lengths in days."""

    current: int = 0
    longest: int = 0


class MasteryStats(BaseModel):
    """Counts of words per advanced mastery level."""

    practicing: int = 0
    mastered: int = 0


class WordTypeStats(BaseModel):
    """Learned words grouped by part of speech."""

    nouns: int = 0
    verbs: int = 0
    adjectives: int = 0
    other: int = 0


class UserCounters(BaseModel):
    """Aggregate counters stored on the user record."""

    total_words_learned: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    total_quizzes_taken: int = 0
    average_quiz_score: float = 0.0


class UserStats(UserCounters):
    """Headline learner statistics."""

    mastery_stats: MasteryStats = Field(default_factory=MasteryStats)
    word_type_stats: WordTypeStats = Field(default_factory=WordTypeStats)
    recent_quizzes: List[QuizSessionRead] = Field(default_factory=list)
    learning_activity: List[StreakDay] = Field(default_factory=list)


class TypeBucket(BaseModel):
    """Catalog size and learned count for one word type bucket."""

    total: int = 0
    learned: int = 0


class WordStats(BaseModel):
    """Catalog coverage per word type bucket."""

    nouns: TypeBucket = Field(default_factory=TypeBucket)
    verbs: TypeBucket = Field(default_factory=TypeBucket)
    adjectives: TypeBucket = Field(default_factory=TypeBucket)
    other: TypeBucket = Field(default_factory=TypeBucket)


class ActivityEntry(BaseModel):
    """Dashboard feed entry."""

    timestamp: datetime
    description: str
    type: str = "word_progress"


class CounterReconciliation(BaseModel):
    """Aggregate counters before and after a rebuild from history."""

    user_id: uuid.UUID
    before: UserCounters
    after: UserCounters

    @property
    def changed(self) -> bool:
        return self.before != self.after


class RecentActivityRequest(BaseModel):
    """Size of the recent-activity feed."""

    user_id: uuid.UUID
    limit: int = Field(10, ge=1, le=50)
