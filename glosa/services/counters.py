"""Rebuild the cached counters on a user from the underlying history."""
from __future__ import annotations

import uuid
from datetime import date

from loguru import logger
from sqlalchemy.orm import Session

from glosa.db.session import unit_of_work
from glosa.db.types import utcnow
from glosa.schemas.stats import CounterReconciliation, UserCounters
from glosa.schemas.user import UserLookup
from glosa.services.progress import ProgressService
from glosa.services.quiz import QuizService
from glosa.services.streaks import StreakService
from glosa.services.users import UserService
from glosa.utils.validation import validate_request


class CounterService:
    """Recompute every aggregate counter of a learner in one transaction."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.users = UserService(db)
        self.streaks = StreakService(db, users=self.users)
        self.progress = ProgressService(db, users=self.users, streaks=self.streaks)
        self.quizzes = QuizService(
            db,
            progress_service=self.progress,
            streak_service=self.streaks,
            users=self.users,
        )

    def reconcile(
        self,
        *,
        user_id: uuid.UUID,
        today: date | None = None,
        dry_run: bool = False,
    ) -> CounterReconciliation:
        """Recompute counters from history and store them unless ``dry_run``.

        ``total_words_learned`` becomes the number of words that ever reached
        ``mastered``; quiz figures come from completed sessions; streaks from
        the daily activity rows.
        """

        user_id = validate_request(UserLookup, user_id=user_id).user_id
        today = today or utcnow().date()
        with unit_of_work(self.db):
            savepoint = self.db.begin_nested() if dry_run else None
            user = self.users.lock(user_id)
            before = UserCounters(**user.counters())

            user.total_words_learned = self.progress.count_first_mastered(user_id=user.id)
            self.db.flush([user])
            self.quizzes.refresh_quiz_counters(user)
            self.streaks.recompute_current_streak(user_id=user.id, today=today)
            after = UserCounters(**user.counters())

            if savepoint is not None:
                savepoint.rollback()

        result = CounterReconciliation(user_id=user_id, before=before, after=after)
        if result.changed:
            logger.info(
                "Reconciled learner counters",
                user_id=str(user_id),
                dry_run=dry_run,
                before=before.model_dump(),
                after=after.model_dump(),
            )
        return result

    def reconcile_all(self, *, today: date | None = None, dry_run: bool = False) -> list[CounterReconciliation]:
        """Reconcile every learner, one transaction each."""

        return [
            self.reconcile(user_id=user_id, today=today, dry_run=dry_run)
            for user_id in self.users.list_user_ids()
        ]
