"""Tests for quiz session lifecycle."""
from __future__ import annotations

import uuid
from datetime import timedelta

import pytest

from glosa.db.models.quiz import QuizStatus, QuizType
from glosa.schemas.quiz import AnswerResult, QuizAnswerRead, QuizSessionDetail
from glosa.services.quiz import QuizService, is_answer_correct, seconds_to_minutes
from glosa.utils.exceptions import NotFoundError, SessionStateError, StoreError, ValidationError


def _answer(quiz_service, session, word, user_answer, now):
    return quiz_service.record_answer(
        session_id=session.id,
        word_id=word.id,
        user_answer=user_answer,
        correct_answer=word.english,
        answer_time=1500,
        now=now,
    )


def _play(quiz_service, user, words, answers, now, *, total_questions=None):
    session = quiz_service.start_session(
        user_id=user.id,
        quiz_type="vocabulary",
        total_questions=total_questions or len(answers),
        now=now,
    )
    for index, (key, user_answer) in enumerate(answers, start=1):
        _answer(quiz_service, session, words[key], user_answer, now + timedelta(seconds=index))
    return session


@pytest.fixture()
def replaying_quiz_service(db_session, user_service, streak_service, progress_service) -> QuizService:
    return QuizService(
        db_session,
        progress_service=progress_service,
        streak_service=streak_service,
        users=user_service,
        replay_progress_on_finish=True,
    )


SCENARIO = [
    ("hund:dog", " DOG "),
    ("katt:cat", "cat"),
    ("springa:run", "walk"),
    ("stor:big", "Big"),
    ("snabbt:quickly", "fast"),
]


def test_answer_comparison_ignores_case_and_whitespace() -> None:
    assert is_answer_correct("  Hund ", "hund")
    assert is_answer_correct("ÖGA", "öga")
    assert not is_answer_correct("", "dog")


def test_seconds_round_to_nearest_minute() -> None:
    assert seconds_to_minutes(0) == 0
    assert seconds_to_minutes(29) == 0
    assert seconds_to_minutes(90) == 2
    assert seconds_to_minutes(150) == 3


def test_start_session_begins_empty(quiz_service, user, now) -> None:
    session = quiz_service.start_session(user_id=user.id, quiz_type="mixed", total_questions=5, now=now)

    assert session.quiz_type == QuizType.MIXED
    assert session.status == QuizStatus.CREATED
    assert (session.correct_answers, session.score, session.time_spent) == (0, 0.0, 0)
    assert session.started_at == now
    assert session.completed_at is None


@pytest.mark.parametrize(
    ("quiz_type", "total_questions"),
    [("spelling", 5), ("vocabulary", 0), ("vocabulary", -3)],
)
def test_start_session_validates_input(quiz_service, user, quiz_type, total_questions) -> None:
    with pytest.raises(ValidationError):
        quiz_service.start_session(user_id=user.id, quiz_type=quiz_type, total_questions=total_questions)


def test_start_session_requires_known_user(quiz_service) -> None:
    with pytest.raises(NotFoundError):
        quiz_service.start_session(user_id=uuid.uuid4(), quiz_type="vocabulary", total_questions=5)


def test_five_answers_three_correct_score_sixty(quiz_service, user, words, now) -> None:
    session = _play(quiz_service, user, words, SCENARIO, now)

    assert session.correct_answers == 3
    assert session.score == pytest.approx(60.0)
    assert session.status == QuizStatus.ANSWERING
    assert [answer.is_correct for answer in session.answers] == [True, True, False, True, False]


def test_each_answer_updates_word_progress(quiz_service, progress_service, user, words, now) -> None:
    _play(quiz_service, user, words, SCENARIO[:2] + [("springa:run", "walk")], now, total_questions=5)

    hund = progress_service.get_word_progress(user_id=user.id, word_id=words["hund:dog"].id)
    springa = progress_service.get_word_progress(user_id=user.id, word_id=words["springa:run"].id)
    assert (hund.correct_attempts, hund.total_attempts) == (1, 1)
    assert (springa.correct_attempts, springa.total_attempts) == (0, 1)


def test_empty_answer_is_recorded_as_wrong(quiz_service, user, words, now) -> None:
    session = quiz_service.start_session(user_id=user.id, quiz_type="translation", total_questions=1, now=now)

    answer, is_correct = _answer(quiz_service, session, words["hund:dog"], "", now)

    assert not is_correct
    result = AnswerResult(answer=QuizAnswerRead.model_validate(answer), is_correct=is_correct)
    assert result.answer.user_answer == ""
    assert result.answer.session_id == session.id


@pytest.mark.parametrize(
    "overrides",
    [{"user_answer": None}, {"correct_answer": "  "}, {"answer_time": -5}, {"word_id": 0}],
)
def test_record_answer_validates_input(quiz_service, user, words, now, overrides) -> None:
    session = quiz_service.start_session(user_id=user.id, quiz_type="vocabulary", total_questions=3, now=now)
    payload = {
        "session_id": session.id,
        "word_id": words["hund:dog"].id,
        "user_answer": "dog",
        "correct_answer": "dog",
        "answer_time": 100,
    }
    payload.update(overrides)

    with pytest.raises(ValidationError):
        quiz_service.record_answer(**payload)

    assert quiz_service.get_session(session.id).answers == []


def test_unknown_word_leaves_session_untouched(quiz_service, user, now) -> None:
    session = quiz_service.start_session(user_id=user.id, quiz_type="vocabulary", total_questions=3, now=now)

    with pytest.raises(NotFoundError):
        quiz_service.record_answer(
            session_id=session.id, word_id=9999, user_answer="dog", correct_answer="dog", now=now
        )

    stored = quiz_service.get_session(session.id)
    assert stored.answers == []
    assert (stored.correct_answers, stored.status) == (0, QuizStatus.CREATED)


def test_answers_beyond_question_count_are_rejected(quiz_service, user, words, now) -> None:
    session = _play(quiz_service, user, words, SCENARIO[:2], now)

    with pytest.raises(SessionStateError):
        _answer(quiz_service, session, words["stor:big"], "big", now)


def test_finish_session_completes_and_updates_counters(
    quiz_service, streak_service, db_session, user, words, now
) -> None:
    session = _play(quiz_service, user, words, SCENARIO, now)

    finished = quiz_service.finish_session(session_id=session.id, time_spent=150, now=now)

    assert finished.status == QuizStatus.COMPLETED
    assert finished.completed_at == now
    assert finished.time_spent == 150
    db_session.refresh(user)
    assert user.total_quizzes_taken == 1
    assert user.average_quiz_score == pytest.approx(60.0)
    assert user.current_streak == 1

    day = streak_service.get_day(user_id=user.id, day=now.date())
    assert (day.quizzes_taken, day.time_spent) == (1, 3)


def test_finished_session_rejects_further_changes(quiz_service, user, words, now) -> None:
    session = _play(quiz_service, user, words, SCENARIO[:1], now, total_questions=3)
    quiz_service.finish_session(session_id=session.id, time_spent=30, now=now)

    with pytest.raises(SessionStateError):
        quiz_service.finish_session(session_id=session.id, time_spent=30, now=now)
    with pytest.raises(SessionStateError):
        _answer(quiz_service, session, words["katt:cat"], "cat", now)


def test_finish_session_requires_time_spent(quiz_service, user, now) -> None:
    session = quiz_service.start_session(user_id=user.id, quiz_type="vocabulary", total_questions=1, now=now)

    with pytest.raises(ValidationError):
        quiz_service.finish_session(session_id=session.id, time_spent=None)

    assert quiz_service.get_session(session.id).status == QuizStatus.CREATED


def test_finish_unknown_session(quiz_service) -> None:
    with pytest.raises(NotFoundError):
        quiz_service.finish_session(session_id=uuid.uuid4(), time_spent=10)


def test_average_covers_completed_sessions_only(quiz_service, db_session, user, words, now) -> None:
    first = _play(quiz_service, user, words, SCENARIO, now)
    quiz_service.finish_session(session_id=first.id, time_spent=60, now=now)
    second = _play(quiz_service, user, words, [(key, words[key].english) for key, _ in SCENARIO[:2]], now)
    quiz_service.finish_session(session_id=second.id, time_spent=60, now=now + timedelta(minutes=5))
    _play(quiz_service, user, words, [("hund:dog", "wrong")], now, total_questions=4)

    db_session.refresh(user)
    assert user.total_quizzes_taken == 2
    assert user.average_quiz_score == pytest.approx(80.0)


def test_finish_does_not_replay_progress_by_default(quiz_service, progress_service, user, words, now) -> None:
    session = _play(quiz_service, user, words, SCENARIO[:1], now)
    quiz_service.finish_session(session_id=session.id, time_spent=20, now=now)

    progress = progress_service.get_word_progress(user_id=user.id, word_id=words["hund:dog"].id)
    assert progress.total_attempts == 1


def test_finish_can_replay_progress(replaying_quiz_service, progress_service, user, words, now) -> None:
    session = _play(replaying_quiz_service, user, words, SCENARIO[:1], now)
    replaying_quiz_service.finish_session(session_id=session.id, time_spent=20, now=now)

    progress = progress_service.get_word_progress(user_id=user.id, word_id=words["hund:dog"].id)
    assert (progress.correct_attempts, progress.total_attempts) == (2, 2)


def test_get_session_includes_answers(quiz_service, user, words, now) -> None:
    session = _play(quiz_service, user, words, SCENARIO[:2], now, total_questions=4)

    detail = QuizSessionDetail.model_validate(quiz_service.get_session(session.id))

    assert [answer.word_id for answer in detail.answers] == [words["hund:dog"].id, words["katt:cat"].id]
    assert detail.score == pytest.approx(50.0)
    with pytest.raises(NotFoundError):
        quiz_service.get_session(uuid.uuid4())


def test_get_session_rejects_malformed_id(quiz_service) -> None:
    with pytest.raises(ValidationError):
        quiz_service.get_session("not-a-uuid")


def test_failed_finish_leaves_nothing_behind(
    replaying_quiz_service, streak_service, progress_service, db_session, user, words, now, monkeypatch
) -> None:
    session = _play(replaying_quiz_service, user, words, SCENARIO[:1], now)

    def unavailable(**kwargs):
        raise StoreError("Progress store unavailable")

    monkeypatch.setattr(streak_service, "record_activity", unavailable)

    with pytest.raises(StoreError):
        replaying_quiz_service.finish_session(session_id=session.id, time_spent=20, now=now)

    db_session.expire_all()
    stored = replaying_quiz_service.get_session(session.id)
    assert stored.status == QuizStatus.ANSWERING
    assert stored.completed_at is None
    progress = progress_service.get_word_progress(user_id=user.id, word_id=words["hund:dog"].id)
    assert progress.total_attempts == 1
    db_session.refresh(user)
    assert user.total_quizzes_taken == 0


def test_finish_with_replay_locks_learner_before_progress_rows(
    replaying_quiz_service, user_service, progress_service, user, words, now, monkeypatch
) -> None:
    session = _play(replaying_quiz_service, user, words, SCENARIO[:2], now)
    events = []
    lock_user = user_service.lock
    lock_progress = progress_service._locked_progress

    def lock(user_id):
        events.append("user")
        return lock_user(user_id)

    def locked_progress(user_id, word_id):
        events.append("progress")
        return lock_progress(user_id, word_id)

    monkeypatch.setattr(user_service, "lock", lock)
    monkeypatch.setattr(progress_service, "_locked_progress", locked_progress)

    replaying_quiz_service.finish_session(session_id=session.id, time_spent=20, now=now)

    assert events[0] == "user"
    assert events.count("progress") == 2
