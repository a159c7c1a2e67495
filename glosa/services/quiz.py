"""Quiz session lifecycle: start, answer, finish."""
from __future__ import annotations

import math
import uuid
from datetime import datetime

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from glosa.config import settings
from glosa.db.models.quiz import QuizAnswer, QuizSession, QuizStatus
from glosa.db.models.user import User
from glosa.db.session import unit_of_work
from glosa.db.types import ensure_utc, utcnow
from glosa.schemas.quiz import (
    QuizAnswerRequest,
    QuizFinishRequest,
    QuizSessionLookup,
    QuizStartRequest,
)
from glosa.services.progress import ProgressService
from glosa.services.streaks import StreakService
from glosa.services.users import UserService
from glosa.utils.exceptions import NotFoundError, SessionStateError
from glosa.utils.validation import validate_request


def is_answer_correct(user_answer: str, correct_answer: str) -> bool:
    """Compare answers ignoring case and surrounding whitespace."""

    return user_answer.strip().lower() == correct_answer.strip().lower()


def seconds_to_minutes(seconds: int) -> int:
    """Round seconds to whole minutes, halves rounding up."""

    return int(math.floor(seconds / 60 + 0.5))


class QuizService:
    """Drive quiz sessions and fold their results into progress and counters."""

    def __init__(
        self,
        db: Session,
        *,
        progress_service: ProgressService | None = None,
        streak_service: StreakService | None = None,
        users: UserService | None = None,
        replay_progress_on_finish: bool | None = None,
    ) -> None:
        self.db = db
        self.users = users or UserService(db)
        self.streaks = streak_service or StreakService(db, users=self.users)
        self.progress = progress_service or ProgressService(db, users=self.users, streaks=self.streaks)
        self.replay_progress_on_finish = (
            settings.REPLAY_PROGRESS_ON_FINISH
            if replay_progress_on_finish is None
            else replay_progress_on_finish
        )

    def _locked_session(self, session_id: uuid.UUID) -> QuizSession:
        stmt = (
            select(QuizSession)
            .where(QuizSession.id == session_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        session = self.db.scalars(stmt).first()
        if session is None:
            raise NotFoundError("Quiz session not found", details={"session_id": str(session_id)})
        return session

    def get_session(self, session_id: uuid.UUID) -> QuizSession:
        """Return a quiz session with its answers loaded."""

        session_id = validate_request(QuizSessionLookup, session_id=session_id).session_id
        stmt = (
            select(QuizSession)
            .options(selectinload(QuizSession.answers))
            .where(QuizSession.id == session_id)
        )
        session = self.db.scalars(stmt).first()
        if session is None:
            raise NotFoundError("Quiz session not found", details={"session_id": str(session_id)})
        return session

    def start_session(
        self,
        *,
        user_id: uuid.UUID,
        quiz_type: str,
        total_questions: int,
        now: datetime | None = None,
    ) -> QuizSession:
        """Open a new session with a zero score."""

        request = validate_request(
            QuizStartRequest, user_id=user_id, quiz_type=quiz_type, total_questions=total_questions
        )
        now = ensure_utc(now) if now else utcnow()

        with unit_of_work(self.db):
            self.users.get(request.user_id)
            session = QuizSession(
                user_id=request.user_id,
                quiz_type=request.quiz_type,
                status=QuizStatus.CREATED,
                total_questions=request.total_questions,
                correct_answers=0,
                score=0.0,
                time_spent=0,
                started_at=now,
            )
            self.db.add(session)
            self.db.flush([session])

        logger.info(
            "Quiz session started",
            user_id=str(request.user_id),
            session_id=str(session.id),
            quiz_type=request.quiz_type.value,
            total_questions=request.total_questions,
        )
        return session

    def record_answer(
        self,
        *,
        session_id: uuid.UUID,
        word_id: int,
        user_answer: str,
        correct_answer: str,
        answer_time: int = 0,
        now: datetime | None = None,
    ) -> tuple[QuizAnswer, bool]:
        """Store one answer, update the running score and the word's progress."""

        request = validate_request(
            QuizAnswerRequest,
            session_id=session_id,
            word_id=word_id,
            user_answer=user_answer,
            correct_answer=correct_answer,
            answer_time=answer_time,
        )
        now = ensure_utc(now) if now else utcnow()

        with unit_of_work(self.db):
            session = self._locked_session(request.session_id)
            if session.is_completed:
                raise SessionStateError(
                    "Quiz session is already completed",
                    details={"session_id": str(session.id)},
                )
            if session.answered_count >= session.total_questions:
                raise SessionStateError(
                    "Quiz session has no questions left",
                    details={"session_id": str(session.id), "total_questions": session.total_questions},
                )
            self.progress.vocabulary.get_word(request.word_id)

            correct = is_answer_correct(request.user_answer, request.correct_answer)
            answer = QuizAnswer(
                word_id=request.word_id,
                user_answer=request.user_answer,
                correct_answer=request.correct_answer,
                is_correct=correct,
                answer_time=request.answer_time,
                answered_at=now,
            )
            session.answers.append(answer)
            if correct:
                session.correct_answers = (session.correct_answers or 0) + 1
            session.score = session.correct_answers * 100 / session.total_questions
            session.status = QuizStatus.ANSWERING
            self.db.flush([session, answer])

            self.progress.record_progress(
                user_id=session.user_id, word_id=request.word_id, is_correct=correct, now=now
            )

        logger.debug(
            "Quiz answer recorded",
            session_id=str(session.id),
            word_id=request.word_id,
            is_correct=correct,
            score=session.score,
        )
        return answer, correct

    def finish_session(
        self,
        *,
        session_id: uuid.UUID,
        time_spent: int,
        now: datetime | None = None,
    ) -> QuizSession:
        """Complete a session and fold it into the learner's counters and streak.

        ``time_spent`` is in seconds; the daily activity row stores minutes.
        """

        request = validate_request(QuizFinishRequest, session_id=session_id, time_spent=time_spent)
        now = ensure_utc(now) if now else utcnow()

        with unit_of_work(self.db):
            session = self._locked_session(request.session_id)
            if session.is_completed:
                raise SessionStateError(
                    "Quiz session is already completed",
                    details={"session_id": str(session.id)},
                )
            user = self.users.lock(session.user_id)
            session.time_spent = request.time_spent
            session.completed_at = now
            session.status = QuizStatus.COMPLETED
            self.db.flush([session])

            if self.replay_progress_on_finish:
                for answer in session.answers:
                    self.progress.record_progress(
                        user_id=session.user_id,
                        word_id=answer.word_id,
                        is_correct=answer.is_correct,
                        now=now,
                    )

            self.refresh_quiz_counters(user)
            self.streaks.record_activity(
                user_id=session.user_id,
                quizzes_taken=1,
                time_spent=seconds_to_minutes(request.time_spent),
                now=now,
            )

        logger.info(
            "Quiz session completed",
            session_id=str(session.id),
            user_id=str(session.user_id),
            score=session.score,
            time_spent=session.time_spent,
        )
        return session

    def refresh_quiz_counters(self, user: User) -> User:
        """Recompute quiz count and average score from the learner's completed sessions.

        Sessions still in progress do not count toward either figure.
        """

        count, average = self.db.execute(
            select(func.count(QuizSession.id), func.avg(QuizSession.score)).where(
                QuizSession.user_id == user.id,
                QuizSession.status == QuizStatus.COMPLETED,
            )
        ).one()
        user.total_quizzes_taken = int(count or 0)
        user.average_quiz_score = float(average or 0.0)
        self.db.flush([user])
        return user
