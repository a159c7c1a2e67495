"""Tests for rebuilding learner counters from history."""
from __future__ import annotations

import uuid
from datetime import timedelta

import pytest

from glosa.services.counters import CounterService
from glosa.utils.exceptions import NotFoundError, ValidationError


@pytest.fixture()
def history(progress_service, quiz_service, user, words, now):
    for step in range(10):
        progress_service.record_progress(
            user_id=user.id, word_id=words["hund:dog"].id, is_correct=True, now=now - timedelta(days=12 - step)
        )
    session = quiz_service.start_session(user_id=user.id, quiz_type="vocabulary", total_questions=2, now=now)
    for word, answer in ((words["katt:cat"], "cat"), (words["stor:big"], "small")):
        quiz_service.record_answer(
            session_id=session.id, word_id=word.id, user_answer=answer, correct_answer=word.english, now=now
        )
    quiz_service.finish_session(session_id=session.id, time_spent=120, now=now)
    return session


def _drift(db_session, user):
    user.total_words_learned = 42
    user.current_streak = 9
    user.longest_streak = 9
    user.total_quizzes_taken = 0
    user.average_quiz_score = 0.0
    db_session.commit()


def test_reconcile_rebuilds_drifted_counters(db_session, user, history, now) -> None:
    _drift(db_session, user)

    result = CounterService(db_session).reconcile(user_id=user.id, today=now.date())

    assert result.changed
    assert result.before.total_words_learned == 42
    assert result.after.model_dump() == {
        "total_words_learned": 1,
        "current_streak": 1,
        "longest_streak": 1,
        "total_quizzes_taken": 1,
        "average_quiz_score": 50.0,
    }
    db_session.expire_all()
    db_session.refresh(user)
    assert user.total_words_learned == 1
    assert user.average_quiz_score == pytest.approx(50.0)


def test_reconcile_is_a_no_op_for_consistent_counters(db_session, user, history, now) -> None:
    result = CounterService(db_session).reconcile(user_id=user.id, today=now.date())

    assert not result.changed


def test_dry_run_leaves_counters_untouched(db_session, user, history, now) -> None:
    _drift(db_session, user)

    result = CounterService(db_session).reconcile(user_id=user.id, today=now.date(), dry_run=True)

    assert result.after.total_words_learned == 1
    db_session.expire_all()
    db_session.refresh(user)
    assert user.total_words_learned == 42
    assert user.current_streak == 9


def test_reconcile_all_covers_every_user(db_session, user, now) -> None:
    results = CounterService(db_session).reconcile_all(today=now.date())

    assert [result.user_id for result in results] == [user.id]


def test_reconcile_unknown_user(db_session) -> None:
    with pytest.raises(NotFoundError):
        CounterService(db_session).reconcile(user_id=uuid.uuid4())


def test_reconcile_rejects_malformed_user_id(db_session) -> None:
    with pytest.raises(ValidationError):
        CounterService(db_session).reconcile(user_id="not-a-uuid")
