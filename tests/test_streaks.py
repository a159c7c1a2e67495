"""Tests for daily activity and streaks."""
from __future__ import annotations

import uuid
from datetime import date, timedelta

import pytest

from glosa.services.streaks import compute_streaks
from glosa.utils.exceptions import NotFoundError, ValidationError

TODAY = date(2024, 3, 15)


def _days(*offsets: int) -> list[date]:
    return [TODAY - timedelta(days=offset) for offset in offsets]


def test_gap_resets_current_streak_but_keeps_longest() -> None:
    summary = compute_streaks(_days(0, 3, 4, 5), today=TODAY)

    assert (summary.current, summary.longest) == (1, 3)


def test_streak_may_end_yesterday() -> None:
    summary = compute_streaks(_days(1, 2), today=TODAY, grace_days=1)

    assert (summary.current, summary.longest) == (2, 2)


def test_streak_lapses_after_grace_period() -> None:
    assert compute_streaks(_days(2, 3), today=TODAY, grace_days=1).current == 0
    assert compute_streaks(_days(1, 2), today=TODAY, grace_days=0).current == 0


def test_no_history_means_no_streak() -> None:
    summary = compute_streaks([], today=TODAY)

    assert (summary.current, summary.longest) == (0, 0)


def test_future_days_do_not_extend_current_streak() -> None:
    summary = compute_streaks([TODAY + timedelta(days=1), TODAY, TODAY - timedelta(days=1)], today=TODAY)

    assert summary.current == 2
    assert summary.longest == 3


def test_record_activity_merges_into_one_row_per_day(streak_service, db_session, user, now) -> None:
    streak_service.record_activity(user_id=user.id, words_learned=2, now=now)
    row = streak_service.record_activity(user_id=user.id, quizzes_taken=1, time_spent=3, now=now)

    assert (row.words_learned, row.quizzes_taken, row.time_spent) == (2, 1, 3)
    assert row.is_active
    assert len(streak_service.get_activity(user_id=user.id, today=now.date())) == 1
    db_session.refresh(user)
    assert (user.current_streak, user.longest_streak) == (1, 1)


def test_consecutive_days_build_current_streak(streak_service, db_session, user, now) -> None:
    for offset in (5, 4, 3, 0):
        streak_service.record_activity(user_id=user.id, words_learned=1, now=now - timedelta(days=offset))

    db_session.refresh(user)
    assert (user.current_streak, user.longest_streak) == (1, 3)


def test_recompute_after_missed_days_clears_current_streak(streak_service, db_session, user, now) -> None:
    streak_service.record_activity(user_id=user.id, words_learned=1, now=now - timedelta(days=1))

    summary = streak_service.recompute_current_streak(user_id=user.id, today=now.date() + timedelta(days=2))

    assert summary.current == 0
    db_session.refresh(user)
    assert (user.current_streak, user.longest_streak) == (0, 1)


def test_record_activity_rejects_negative_deltas(streak_service, user, now) -> None:
    with pytest.raises(ValidationError):
        streak_service.record_activity(user_id=user.id, time_spent=-1, now=now)

    assert streak_service.get_activity(user_id=user.id, today=now.date()) == []


def test_record_activity_requires_known_user(streak_service, now) -> None:
    with pytest.raises(NotFoundError):
        streak_service.record_activity(user_id=uuid.uuid4(), words_learned=1, now=now)


def test_activity_window_is_ordered_and_bounded(streak_service, user, now) -> None:
    for offset in (40, 6, 2, 0):
        streak_service.record_activity(user_id=user.id, words_learned=1, now=now - timedelta(days=offset))

    rows = streak_service.get_activity(user_id=user.id, days=7, today=now.date())

    assert [row.date for row in rows] == [now.date() - timedelta(days=offset) for offset in (6, 2, 0)]
    newest_first = streak_service.get_activity(user_id=user.id, days=7, today=now.date(), newest_first=True)
    assert [row.date for row in newest_first] == [row.date for row in reversed(rows)]


def test_streak_writes_reject_malformed_user_id(streak_service, now) -> None:
    with pytest.raises(ValidationError):
        streak_service.recompute_current_streak(user_id="not-a-uuid", today=now.date())
    with pytest.raises(ValidationError):
        streak_service.record_activity(user_id="not-a-uuid", words_learned=1, now=now)
