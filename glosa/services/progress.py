"""Business logic for learner word progress."""
from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime

from loguru import logger
from sqlalchemy import and_, func, select, update
from sqlalchemy.orm import Session, contains_eager, joinedload

from glosa.db.models.progress import MasteryLevel, UserWordProgress
from glosa.db.models.user import User
from glosa.db.models.vocabulary import Word
from glosa.db.session import insert_in_savepoint, unit_of_work
from glosa.db.types import ensure_utc, utcnow
from glosa.schemas.progress import (
    FlashcardCard,
    FlashcardDeck,
    FlashcardDeckRequest,
    FlashcardResult,
    FlashcardSubmission,
    MarkShownRequest,
    ProgressAttempt,
    ReviewQueueRequest,
    WordProgressRequest,
)
from glosa.schemas.user import UserLookup
from glosa.schemas.vocabulary import WordRef
from glosa.services.srs import FIRST_INTERVAL_DAYS, MasteryScheduler, ReviewOutcome, SchedulerState
from glosa.services.streaks import StreakService
from glosa.services.users import UserService
from glosa.services.vocabulary import VocabularyService, normalize_terms
from glosa.utils.exceptions import ConflictError, NotFoundError
from glosa.utils.validation import validate_request

# Levels counted as "learned" by the learned-words figure.
LEARNED_LEVELS = (MasteryLevel.SHOWN, MasteryLevel.PRACTICING, MasteryLevel.MASTERED)

# Flashcard decks: review cards come from these levels and take this share of the deck.
REVIEW_LEVELS = (MasteryLevel.LEARNING, MasteryLevel.PRACTICING)
REVIEW_SHARE_PERCENT = 70
MIN_NEW_CARDS = 3


class ProgressService:
    """High level helper for word progress workflows."""

    def __init__(
        self,
        db: Session,
        *,
        scheduler: MasteryScheduler | None = None,
        users: UserService | None = None,
        vocabulary: VocabularyService | None = None,
        streaks: StreakService | None = None,
    ) -> None:
        self.db = db
        self.scheduler = scheduler or MasteryScheduler()
        self.users = users or UserService(db)
        self.vocabulary = vocabulary or VocabularyService(db)
        self.streaks = streaks or StreakService(db, users=self.users)

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------
    def _progress_query(self, user_id: uuid.UUID, word_id: int):
        return select(UserWordProgress).where(
            and_(
                UserWordProgress.user_id == user_id,
                UserWordProgress.word_id == word_id,
            )
        )

    def _locked_progress(self, user_id: uuid.UUID, word_id: int) -> UserWordProgress | None:
        stmt = (
            self._progress_query(user_id, word_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.scalars(stmt).first()

    def _state_from_progress(self, progress: UserWordProgress) -> SchedulerState:
        return SchedulerState(
            correct_attempts=progress.correct_attempts or 0,
            total_attempts=progress.total_attempts or 0,
            repetition_interval=progress.repetition_interval or FIRST_INTERVAL_DAYS,
            mastery_level=progress.mastery_level or MasteryLevel.SHOWN,
        )

    @staticmethod
    def _apply_outcome(progress: UserWordProgress, outcome: ReviewOutcome) -> None:
        progress.mastery_level = outcome.mastery_level
        progress.correct_attempts = outcome.correct_attempts
        progress.total_attempts = outcome.total_attempts
        progress.repetition_interval = outcome.repetition_interval
        progress.last_review_date = outcome.reviewed_at
        progress.next_review_date = outcome.next_review
        progress.updated_at = outcome.reviewed_at

    def _existing_levels(self, user_id: uuid.UUID, word_ids: Iterable[int]) -> dict[int, MasteryLevel]:
        ids = list(word_ids)
        if not ids:
            return {}
        rows = self.db.execute(
            select(UserWordProgress.word_id, UserWordProgress.mastery_level).where(
                UserWordProgress.user_id == user_id,
                UserWordProgress.word_id.in_(ids),
            )
        ).all()
        return {word_id: level for word_id, level in rows}

    def get_progress(self, *, user_id: uuid.UUID, word_id: int) -> UserWordProgress | None:
        """Return an existing progress row if present."""

        stmt = self._progress_query(user_id, word_id).options(joinedload(UserWordProgress.word))
        return self.db.scalars(stmt).first()

    # ------------------------------------------------------------------
    # Attempts
    # ------------------------------------------------------------------
    def record_progress(
        self,
        *,
        user_id: uuid.UUID,
        word_id: int,
        is_correct: bool,
        now: datetime | None = None,
    ) -> UserWordProgress:
        """Apply one attempt to the learner's record for ``word_id``.

        Creates the record on the first attempt. The learner row and then the
        progress row stay locked for the rest of the transaction, so
        concurrent attempts for one learner serialize.
        The first time a word reaches ``mastered`` the learner's
        ``total_words_learned`` goes up by one; later re-entries do not count.
        """

        attempt = validate_request(
            ProgressAttempt, user_id=user_id, word_id=word_id, is_correct=is_correct
        )
        now = ensure_utc(now) if now else utcnow()

        with unit_of_work(self.db):
            self.users.lock(attempt.user_id)
            self.vocabulary.get_word(attempt.word_id)

            progress = self._locked_progress(attempt.user_id, attempt.word_id)
            if progress is None:
                progress = UserWordProgress(user_id=attempt.user_id, word_id=attempt.word_id)
                self._apply_outcome(
                    progress, self.scheduler.first_attempt(is_correct=attempt.is_correct, now=now)
                )
                progress.created_at = now
                if insert_in_savepoint(self.db, progress):
                    outcome = None
                else:
                    progress = self._locked_progress(attempt.user_id, attempt.word_id)
                    if progress is None:
                        raise ConflictError(
                            "Could not create progress record",
                            details={"user_id": str(attempt.user_id), "word_id": attempt.word_id},
                        )
                    outcome = self.scheduler.review(
                        state=self._state_from_progress(progress),
                        is_correct=attempt.is_correct,
                        now=now,
                    )
            else:
                outcome = self.scheduler.review(
                    state=self._state_from_progress(progress),
                    is_correct=attempt.is_correct,
                    now=now,
                )

            if outcome is not None:
                self._apply_outcome(progress, outcome)

            if progress.mastery_level == MasteryLevel.MASTERED and progress.first_mastered_at is None:
                progress.first_mastered_at = now
                self.db.execute(
                    update(User)
                    .where(User.id == attempt.user_id)
                    .values(total_words_learned=User.total_words_learned + 1)
                )
                logger.info(
                    "Word mastered for the first time",
                    user_id=str(attempt.user_id),
                    word_id=attempt.word_id,
                )

            self.db.flush([progress])

        logger.debug(
            "Recorded word attempt",
            user_id=str(attempt.user_id),
            word_id=attempt.word_id,
            is_correct=attempt.is_correct,
            mastery_level=progress.mastery_level.value,
            interval=progress.repetition_interval,
        )
        return progress

    def mark_shown(self, *, user_id: uuid.UUID, words: Iterable[str]) -> int:
        """Create ``shown`` records for displayed words the learner has no record of.

        Words are matched by their Swedish form. Unknown forms are skipped,
        existing records are left untouched. Returns the number of catalog
        words matched.
        """

        request = validate_request(MarkShownRequest, user_id=user_id, words=list(words or []))
        with unit_of_work(self.db):
            self.users.get(request.user_id)
            catalog = self.vocabulary.find_by_swedish(request.words)
            matched = {word.swedish for word in catalog}
            skipped = [term for term in normalize_terms(request.words) if term not in matched]
            if skipped:
                logger.debug("Skipping unknown shown words", user_id=str(request.user_id), words=skipped)
            if not catalog:
                return 0

            existing = self._existing_levels(request.user_id, (word.id for word in catalog))
            created = 0
            for word in catalog:
                if word.id in existing:
                    continue
                record = UserWordProgress(
                    user_id=request.user_id,
                    word_id=word.id,
                    mastery_level=MasteryLevel.SHOWN,
                    correct_attempts=0,
                    total_attempts=0,
                    repetition_interval=FIRST_INTERVAL_DAYS,
                )
                # A concurrent insert of the same pair already did our job.
                if insert_in_savepoint(self.db, record):
                    created += 1

        logger.debug(
            "Marked words as shown",
            user_id=str(request.user_id),
            matched=len(catalog),
            created=created,
        )
        return len(catalog)

    def record_flashcard_session(
        self,
        *,
        user_id: uuid.UUID,
        learned_words: Iterable[str] = (),
        shown_words: Iterable[str] = (),
        now: datetime | None = None,
    ) -> FlashcardResult:
        """Apply a flashcard round: shown words, then a correct attempt per learned word.

        A learned word counts as newly learned when the learner had no record
        of it or had only seen it. Any learned words also mark the day active.
        """

        submission = validate_request(
            FlashcardSubmission,
            user_id=user_id,
            learned_words=list(learned_words or []),
            shown_words=list(shown_words or []),
        )
        now = ensure_utc(now) if now else utcnow()

        with unit_of_work(self.db):
            self.users.lock(submission.user_id)
            shown_tracked = 0
            if submission.shown_words:
                shown_tracked = self.mark_shown(user_id=submission.user_id, words=submission.shown_words)

            learned = self.vocabulary.find_by_swedish(submission.learned_words)
            levels = self._existing_levels(submission.user_id, (word.id for word in learned))
            newly_learned = sum(
                1 for word in learned if levels.get(word.id) in (None, MasteryLevel.SHOWN)
            )
            for word in learned:
                self.record_progress(
                    user_id=submission.user_id, word_id=word.id, is_correct=True, now=now
                )

            if submission.learned_words:
                self.streaks.record_activity(
                    user_id=submission.user_id,
                    words_learned=newly_learned,
                    time_spent=0,
                    now=now,
                )

        logger.info(
            "Recorded flashcard session",
            user_id=str(submission.user_id),
            words_processed=len(learned),
            newly_learned=newly_learned,
        )
        return FlashcardResult(
            words_processed=len(learned),
            newly_learned=newly_learned,
            shown_words_tracked=shown_tracked,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_words_for_review(
        self,
        *,
        user_id: uuid.UUID,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> list[UserWordProgress]:
        """Return records due at ``now``, most overdue first, with their words loaded."""

        data = {"user_id": user_id}
        if limit is not None:
            data["limit"] = limit
        request = validate_request(ReviewQueueRequest, **data)
        now = ensure_utc(now) if now else utcnow()
        self.users.get(request.user_id)

        stmt = (
            select(UserWordProgress)
            .options(joinedload(UserWordProgress.word))
            .where(
                UserWordProgress.user_id == request.user_id,
                UserWordProgress.next_review_date.isnot(None),
                UserWordProgress.next_review_date <= now,
            )
            .order_by(UserWordProgress.next_review_date.asc(), UserWordProgress.word_id.asc())
            .limit(request.limit)
        )
        return list(self.db.scalars(stmt))

    def get_learned_words_count(self, *, user_id: uuid.UUID) -> int:
        """Return the learner's learned-words figure.

        The larger of the stored counter and the number of records that are
        shown, practicing or mastered, so the figure never lags behind either.
        """

        request = validate_request(UserLookup, user_id=user_id)
        user = self.users.get(request.user_id)
        count = self.db.scalar(
            select(func.count(UserWordProgress.id)).where(
                UserWordProgress.user_id == user.id,
                UserWordProgress.mastery_level.in_(LEARNED_LEVELS),
            )
        )
        return max(user.total_words_learned or 0, int(count or 0))

    def get_word_progress(self, *, user_id: uuid.UUID, word_id: int) -> UserWordProgress:
        """Return the learner's record for one word or raise ``NotFoundError``."""

        request = validate_request(WordProgressRequest, user_id=user_id, word_id=word_id)
        self.users.get(request.user_id)
        self.vocabulary.get_word(request.word_id)
        progress = self.get_progress(user_id=request.user_id, word_id=request.word_id)
        if progress is None:
            raise NotFoundError(
                "No progress found for this word",
                details={"user_id": str(request.user_id), "word_id": request.word_id},
            )
        return progress

    def get_flashcards(
        self,
        *,
        user_id: uuid.UUID,
        limit: int = 10,
        difficulty: int | None = None,
        now: datetime | None = None,
    ) -> FlashcardDeck:
        """Build a deck of due review words topped up with unseen words.

        Up to 70% of ``limit`` (rounded up) goes to ``learning`` and
        ``practicing`` records that are due, oldest review date first. The
        rest are catalog words the learner has no record of, easiest first,
        at least ``MIN_NEW_CARDS`` of them before the deck is cut to
        ``limit``. Words marked as shown have a record and are never offered
        as new. ``difficulty`` restricts both parts to one level.
        """

        request = validate_request(
            FlashcardDeckRequest, user_id=user_id, limit=limit, difficulty=difficulty
        )
        now = ensure_utc(now) if now else utcnow()
        self.users.get(request.user_id)

        review_slots = -(-request.limit * REVIEW_SHARE_PERCENT // 100)
        review_stmt = (
            select(UserWordProgress)
            .join(UserWordProgress.word)
            .options(contains_eager(UserWordProgress.word))
            .where(
                UserWordProgress.user_id == request.user_id,
                UserWordProgress.mastery_level.in_(REVIEW_LEVELS),
                UserWordProgress.next_review_date.isnot(None),
                UserWordProgress.next_review_date <= now,
            )
            .order_by(UserWordProgress.next_review_date.asc(), UserWordProgress.word_id.asc())
            .limit(review_slots)
        )
        seen = select(UserWordProgress.word_id).where(UserWordProgress.user_id == request.user_id)
        new_stmt = (
            select(Word)
            .where(Word.id.notin_(seen))
            .order_by(Word.difficulty_level.asc(), Word.id.asc())
        )
        if request.difficulty is not None:
            review_stmt = review_stmt.where(Word.difficulty_level == request.difficulty)
            new_stmt = new_stmt.where(Word.difficulty_level == request.difficulty)

        review = list(self.db.scalars(review_stmt))
        new_stmt = new_stmt.limit(max(request.limit - len(review), MIN_NEW_CARDS))
        fresh = list(self.db.scalars(new_stmt))

        cards = [
            FlashcardCard(
                word=WordRef.model_validate(record.word),
                is_new=False,
                mastery_level=record.mastery_level.value,
                correct_attempts=record.correct_attempts,
                total_attempts=record.total_attempts,
                success_rate=round(record.correct_attempts * 100 / record.total_attempts, 1)
                if record.total_attempts
                else 0.0,
            )
            for record in review
        ]
        cards.extend(FlashcardCard(word=WordRef.model_validate(word), is_new=True) for word in fresh)
        cards = cards[: request.limit]

        deck = FlashcardDeck(
            cards=cards,
            review_words=sum(1 for card in cards if not card.is_new),
            new_words=sum(1 for card in cards if card.is_new),
        )
        logger.debug(
            "Built flashcard deck",
            user_id=str(request.user_id),
            review_words=deck.review_words,
            new_words=deck.new_words,
            difficulty=request.difficulty,
        )
        return deck

    def count_first_mastered(self, *, user_id: uuid.UUID) -> int:
        """Return how many words the learner has ever brought to ``mastered``."""

        count = self.db.scalar(
            select(func.count(UserWordProgress.id)).where(
                UserWordProgress.user_id == user_id,
                UserWordProgress.first_mastered_at.isnot(None),
            )
        )
        return int(count or 0)
