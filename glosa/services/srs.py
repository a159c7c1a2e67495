"""Mastery-tier spaced repetition scheduling.

Each attempt on a word moves it through ordered mastery tiers. The tier is a
pure function of the attempt counters, and every tier scales the review
interval its own way:

* ``mastered`` (10+ attempts, 90%+ correct): interval doubles, capped at 30 days
* ``practicing`` (5+ attempts, 70%+ correct): interval grows by half, capped at 14
* ``learning`` (anything else): one day longer on a correct answer (capped at 7),
  one day shorter on a miss (never below 1)

The scheduler only computes values. ``ProgressService`` owns persistence.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from glosa.db.models.progress import MasteryLevel

FIRST_INTERVAL_DAYS = 1
MAX_INTERVAL_DAYS = 30


@dataclass(frozen=True, slots=True)
class MasteryTier:
    """Thresholds and interval cap for one mastery tier."""

    level: MasteryLevel
    min_attempts: int
    min_success_rate: float
    max_interval: int


MASTERED_TIER = MasteryTier(MasteryLevel.MASTERED, 10, 0.9, MAX_INTERVAL_DAYS)
PRACTICING_TIER = MasteryTier(MasteryLevel.PRACTICING, 5, 0.7, 14)
LEARNING_TIER = MasteryTier(MasteryLevel.LEARNING, 0, 0.0, 7)

# Evaluated in order; the first tier whose thresholds are met wins.
TIERS = (MASTERED_TIER, PRACTICING_TIER, LEARNING_TIER)


@dataclass(slots=True)
class SchedulerState:
    """State parameters required by the scheduler."""

    correct_attempts: int
    total_attempts: int
    repetition_interval: int
    mastery_level: MasteryLevel


@dataclass(slots=True)
class ReviewOutcome:
    """Result returned after processing an attempt."""

    mastery_level: MasteryLevel
    correct_attempts: int
    total_attempts: int
    repetition_interval: int
    reviewed_at: datetime
    next_review: datetime
    previous_level: MasteryLevel | None

    @property
    def entered_mastery(self) -> bool:
        return (
            self.mastery_level == MasteryLevel.MASTERED
            and self.previous_level != MasteryLevel.MASTERED
        )


def classify(correct_attempts: int, total_attempts: int) -> MasteryLevel:
    """Return the mastery level implied by the attempt counters."""

    if total_attempts <= 0:
        return MasteryLevel.SHOWN
    success_rate = correct_attempts / total_attempts
    for tier in TIERS:
        if total_attempts >= tier.min_attempts and success_rate >= tier.min_success_rate:
            return tier.level
    return MasteryLevel.LEARNING  # pragma: no cover - LEARNING_TIER always matches


class MasteryScheduler:
    """Apply the tier policy to a single attempt."""

    @staticmethod
    def _ensure_timezone(dt: datetime) -> datetime:
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt

    @staticmethod
    def _next_interval(level: MasteryLevel, interval: int, is_correct: bool) -> int:
        if level == MasteryLevel.MASTERED:
            return min(interval * 2, MASTERED_TIER.max_interval)
        if level == MasteryLevel.PRACTICING:
            return min(math.floor(interval * 1.5), PRACTICING_TIER.max_interval)
        if level == MasteryLevel.LEARNING:
            if is_correct:
                return min(interval + 1, LEARNING_TIER.max_interval)
            return max(1, interval - 1)
        raise ValueError(f"No interval policy for mastery level {level!r}")

    def first_attempt(self, *, is_correct: bool, now: datetime | None = None) -> ReviewOutcome:
        """Return the outcome for a word that has never been attempted."""

        now = self._ensure_timezone(now or datetime.now(timezone.utc))
        return ReviewOutcome(
            mastery_level=MasteryLevel.LEARNING,
            correct_attempts=1 if is_correct else 0,
            total_attempts=1,
            repetition_interval=FIRST_INTERVAL_DAYS,
            reviewed_at=now,
            next_review=now + timedelta(days=FIRST_INTERVAL_DAYS),
            previous_level=None,
        )

    def review(
        self,
        *,
        state: SchedulerState,
        is_correct: bool,
        now: datetime | None = None,
    ) -> ReviewOutcome:
        """Return the outcome of one more attempt on an already attempted word."""

        if state.total_attempts <= 0:
            outcome = self.first_attempt(is_correct=is_correct, now=now)
            outcome.previous_level = state.mastery_level
            return outcome

        now = self._ensure_timezone(now or datetime.now(timezone.utc))
        total = state.total_attempts + 1
        correct = state.correct_attempts + (1 if is_correct else 0)
        level = classify(correct, total)
        # Stored intervals are always >= 1; guard against hand-edited rows.
        interval = self._next_interval(level, max(1, state.repetition_interval or 1), is_correct)
        interval = max(1, min(interval, MAX_INTERVAL_DAYS))

        return ReviewOutcome(
            mastery_level=level,
            correct_attempts=correct,
            total_attempts=total,
            repetition_interval=interval,
            reviewed_at=now,
            next_review=now + timedelta(days=interval),
            previous_level=state.mastery_level,
        )
