"""Read-only learner statistics."""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from glosa.config import settings
from glosa.db.models.progress import MasteryLevel, UserWordProgress
from glosa.db.models.quiz import QuizSession, QuizStatus
from glosa.db.models.vocabulary import Word
from glosa.db.types import ensure_utc, utcnow
from glosa.schemas.quiz import QuizSessionRead
from glosa.schemas.stats import (
    ActivityEntry,
    MasteryStats,
    RecentActivityRequest,
    StreakDay,
    TypeBucket,
    UserStats,
    WordStats,
    WordTypeStats,
)
from glosa.schemas.user import UserLookup
from glosa.services.progress import ProgressService
from glosa.services.streaks import StreakService
from glosa.services.users import UserService
from glosa.utils.validation import validate_request

ADVANCED_LEVELS = (MasteryLevel.PRACTICING, MasteryLevel.MASTERED)

_TYPE_BUCKETS = {"noun": "nouns", "verb": "verbs", "adjective": "adjectives"}


def type_bucket(word_type: str | None) -> str:
    """Map a part of speech onto the nouns/verbs/adjectives/other buckets."""

    return _TYPE_BUCKETS.get((word_type or "").strip().lower(), "other")


class StatsService:
    """Compose dashboard statistics from progress, quiz and streak history."""

    def __init__(
        self,
        db: Session,
        *,
        users: UserService | None = None,
        progress_service: ProgressService | None = None,
        streak_service: StreakService | None = None,
    ) -> None:
        self.db = db
        self.users = users or UserService(db)
        self.streaks = streak_service or StreakService(db, users=self.users)
        self.progress = progress_service or ProgressService(db, users=self.users, streaks=self.streaks)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _mastery_counts(self, user_id: uuid.UUID) -> MasteryStats:
        rows = self.db.execute(
            select(UserWordProgress.mastery_level, func.count(UserWordProgress.id))
            .where(
                UserWordProgress.user_id == user_id,
                UserWordProgress.mastery_level.in_(ADVANCED_LEVELS),
            )
            .group_by(UserWordProgress.mastery_level)
        ).all()
        counts = {level: int(count or 0) for level, count in rows}
        return MasteryStats(
            practicing=counts.get(MasteryLevel.PRACTICING, 0),
            mastered=counts.get(MasteryLevel.MASTERED, 0),
        )

    def _learned_by_type(self, user_id: uuid.UUID) -> dict[str, int]:
        rows = self.db.execute(
            select(Word.type, func.count(UserWordProgress.id))
            .join(Word, UserWordProgress.word_id == Word.id)
            .where(
                UserWordProgress.user_id == user_id,
                UserWordProgress.mastery_level.in_(ADVANCED_LEVELS),
            )
            .group_by(Word.type)
        ).all()
        buckets: dict[str, int] = {}
        for word_type, count in rows:
            key = type_bucket(word_type)
            buckets[key] = buckets.get(key, 0) + int(count or 0)
        return buckets

    def _recent_quizzes(self, user_id: uuid.UUID, now: datetime) -> list[QuizSession]:
        since = now - timedelta(days=settings.RECENT_QUIZ_DAYS)
        stmt = (
            select(QuizSession)
            .where(
                QuizSession.user_id == user_id,
                QuizSession.status == QuizStatus.COMPLETED,
                QuizSession.completed_at >= since,
            )
            .order_by(QuizSession.completed_at.desc())
            .limit(settings.RECENT_QUIZ_LIMIT)
        )
        return list(self.db.scalars(stmt))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get_user_stats(self, *, user_id: uuid.UUID, now: datetime | None = None) -> UserStats:
        """Return headline counters plus mastery, word type, quiz and activity breakdowns.

        Every figure comes from one read of the current state; nothing is written.
        """

        request = validate_request(UserLookup, user_id=user_id)
        now = ensure_utc(now) if now else utcnow()
        user = self.users.get(request.user_id)

        activity = self.streaks.get_activity(
            user_id=user.id,
            days=settings.ACTIVITY_WINDOW_DAYS,
            today=now.date(),
            newest_first=True,
        )
        return UserStats(
            **{
                **user.counters(),
                "total_words_learned": self.progress.get_learned_words_count(user_id=user.id),
            },
            mastery_stats=self._mastery_counts(user.id),
            word_type_stats=WordTypeStats(**self._learned_by_type(user.id)),
            recent_quizzes=[
                QuizSessionRead.model_validate(session)
                for session in self._recent_quizzes(user.id, now)
            ],
            learning_activity=[StreakDay.model_validate(row) for row in activity],
        )

    def get_word_stats(self, *, user_id: uuid.UUID) -> WordStats:
        """Return catalog size and learned count per word type bucket."""

        user = self.users.get(validate_request(UserLookup, user_id=user_id).user_id)
        totals: dict[str, int] = {}
        for word_type, count in self.progress.vocabulary.count_by_type().items():
            key = type_bucket(word_type)
            totals[key] = totals.get(key, 0) + count
        learned = self._learned_by_type(user.id)

        buckets: dict[str, Any] = {
            key: TypeBucket(total=totals.get(key, 0), learned=learned.get(key, 0))
            for key in ("nouns", "verbs", "adjectives", "other")
        }
        return WordStats(**buckets)

    def get_recent_activity(self, *, user_id: uuid.UUID, limit: int = 10) -> list[ActivityEntry]:
        """Return the learner's most recently touched words as feed entries."""

        request = validate_request(RecentActivityRequest, user_id=user_id, limit=limit)
        self.users.get(request.user_id)
        stmt = (
            select(UserWordProgress)
            .options(joinedload(UserWordProgress.word))
            .where(UserWordProgress.user_id == request.user_id)
            .order_by(UserWordProgress.updated_at.desc())
            .limit(request.limit)
        )
        return [
            ActivityEntry(
                timestamp=progress.updated_at,
                description=f'Practiced "{progress.word.swedish}" - Mastery: {progress.mastery_level.value}',
            )
            for progress in self.db.scalars(stmt)
        ]
