"""Daily activity rows and streak computation."""
from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from glosa.config import settings
from glosa.db.models.streak import LearningStreak
from glosa.db.session import insert_in_savepoint, unit_of_work
from glosa.db.types import ensure_utc, utcnow
from glosa.schemas.stats import ActivityDelta, ActivityRequest, StreakSummary
from glosa.schemas.user import UserLookup
from glosa.services.users import UserService
from glosa.utils.exceptions import ConflictError
from glosa.utils.validation import validate_request


def compute_streaks(days: Iterable[date], *, today: date, grace_days: int = 1) -> StreakSummary:
    """Return current and longest runs of consecutive active days.

    The current run has to end no more than ``grace_days`` before ``today``,
    otherwise it is zero. Days after ``today`` never count toward it.
    """

    ordered = sorted(set(days), reverse=True)

    current = 0
    past = [day for day in ordered if day <= today]
    if past and (today - past[0]).days <= grace_days:
        current = 1
        for previous, day in zip(past, past[1:]):
            if previous - day != timedelta(days=1):
                break
            current += 1

    longest = 0
    run = 0
    previous = None
    for day in ordered:
        run = run + 1 if previous is not None and previous - day == timedelta(days=1) else 1
        longest = max(longest, run)
        previous = day

    return StreakSummary(current=current, longest=longest)


class StreakService:
    """Record daily activity and keep the learner's streak counters current."""

    def __init__(
        self,
        db: Session,
        *,
        users: UserService | None = None,
        grace_days: int | None = None,
    ) -> None:
        self.db = db
        self.users = users or UserService(db)
        self.grace_days = settings.STREAK_GRACE_DAYS if grace_days is None else grace_days

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------
    def _day_query(self, user_id: uuid.UUID, day: date):
        return select(LearningStreak).where(
            LearningStreak.user_id == user_id,
            LearningStreak.date == day,
        )

    def _locked_day(self, user_id: uuid.UUID, day: date) -> LearningStreak | None:
        stmt = (
            self._day_query(user_id, day)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.scalars(stmt).first()

    def get_day(self, *, user_id: uuid.UUID, day: date) -> LearningStreak | None:
        """Return the activity row for one day if present."""

        return self.db.scalars(self._day_query(user_id, day)).first()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def record_activity(
        self,
        *,
        user_id: uuid.UUID,
        day: date | None = None,
        words_learned: int = 0,
        quizzes_taken: int = 0,
        time_spent: int = 0,
        now: datetime | None = None,
    ) -> LearningStreak:
        """Merge activity into the learner's row for ``day`` and refresh the streak.

        ``time_spent`` is in minutes. ``day`` defaults to the UTC date of ``now``.
        """

        user_id = validate_request(UserLookup, user_id=user_id).user_id
        delta = validate_request(
            ActivityDelta,
            words_learned=words_learned,
            quizzes_taken=quizzes_taken,
            time_spent=time_spent,
        )
        now = ensure_utc(now) if now else utcnow()
        day = day or now.date()

        with unit_of_work(self.db):
            self.users.lock(user_id)
            row = self._locked_day(user_id, day)
            if row is None:
                row = LearningStreak(
                    user_id=user_id,
                    date=day,
                    words_learned=0,
                    quizzes_taken=0,
                    time_spent=0,
                )
                if not insert_in_savepoint(self.db, row):
                    row = self._locked_day(user_id, day)
                    if row is None:
                        raise ConflictError(
                            "Could not create activity row",
                            details={"user_id": str(user_id), "date": day.isoformat()},
                        )

            row.add_activity(**delta.model_dump())
            self.db.flush([row])
            summary = self.recompute_current_streak(user_id=user_id, today=now.date())

        logger.debug(
            "Recorded learning activity",
            user_id=str(user_id),
            day=day.isoformat(),
            current_streak=summary.current,
            **delta.model_dump(),
        )
        return row

    def recompute_current_streak(self, *, user_id: uuid.UUID, today: date | None = None) -> StreakSummary:
        """Recalculate and store the current and longest streak from history."""

        user_id = validate_request(UserLookup, user_id=user_id).user_id
        today = today or utcnow().date()
        with unit_of_work(self.db):
            user = self.users.lock(user_id)
            days = self.db.scalars(
                select(LearningStreak.date)
                .where(LearningStreak.user_id == user_id, LearningStreak.is_active.is_(True))
                .order_by(LearningStreak.date.desc())
            ).all()
            summary = compute_streaks(days, today=today, grace_days=self.grace_days)
            user.current_streak = summary.current
            user.longest_streak = summary.longest
            self.db.flush([user])
        return summary

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_activity(
        self,
        *,
        user_id: uuid.UUID,
        days: int | None = None,
        today: date | None = None,
        newest_first: bool = False,
    ) -> list[LearningStreak]:
        """Return activity rows for the trailing ``days`` window, ``today`` included."""

        request = validate_request(
            ActivityRequest,
            user_id=user_id,
            days=settings.ACTIVITY_WINDOW_DAYS if days is None else days,
        )
        self.users.get(request.user_id)
        today = today or utcnow().date()
        since = today - timedelta(days=request.days - 1)
        order = LearningStreak.date.desc() if newest_first else LearningStreak.date.asc()
        stmt = (
            select(LearningStreak)
            .where(
                LearningStreak.user_id == request.user_id,
                LearningStreak.date >= since,
                LearningStreak.date <= today,
            )
            .order_by(order)
        )
        return list(self.db.scalars(stmt))
