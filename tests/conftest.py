"""Pytest fixtures for engine tests."""

import os
from collections.abc import Generator
from datetime import datetime, timezone

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from glosa.db import models  # noqa: F401  # Imported for side effects
from glosa.db.base import Base
from glosa.db.models import User, Word
from glosa.db.session import configure_sqlite
from glosa.services.progress import ProgressService
from glosa.services.quiz import QuizService
from glosa.services.stats import StatsService
from glosa.services.streaks import StreakService
from glosa.services.users import UserService

WORDS = [
    ("hund", "dog", "noun", 1),
    ("katt", "cat", "noun", 1),
    ("springa", "run", "verb", 2),
    ("stor", "big", "adjective", 1),
    ("snabbt", "quickly", "adverb", 3),
    ("får", "sheep", "noun", 2),
    ("får", "gets", "verb", 2),
]


@pytest.fixture()
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(db_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=db_engine, expire_on_commit=False
    )
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def now() -> datetime:
    return datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def user(db_session: Session) -> User:
    learner = User(email="learner@example.com", username="learner")
    db_session.add(learner)
    db_session.commit()
    return learner


@pytest.fixture()
def words(db_session: Session) -> dict[str, Word]:
    """Catalog entries keyed by ``swedish:english``."""

    entries = [
        Word(swedish=swedish, english=english, type=word_type, difficulty_level=level)
        for swedish, english, word_type, level in WORDS
    ]
    db_session.add_all(entries)
    db_session.commit()
    return {f"{word.swedish}:{word.english}": word for word in entries}


@pytest.fixture()
def user_service(db_session: Session) -> UserService:
    return UserService(db_session)


@pytest.fixture()
def streak_service(db_session: Session, user_service: UserService) -> StreakService:
    return StreakService(db_session, users=user_service, grace_days=1)


@pytest.fixture()
def progress_service(
    db_session: Session, user_service: UserService, streak_service: StreakService
) -> ProgressService:
    return ProgressService(db_session, users=user_service, streaks=streak_service)


@pytest.fixture()
def quiz_service(
    db_session: Session,
    user_service: UserService,
    streak_service: StreakService,
    progress_service: ProgressService,
) -> QuizService:
    return QuizService(
        db_session,
        progress_service=progress_service,
        streak_service=streak_service,
        users=user_service,
        replay_progress_on_finish=False,
    )


@pytest.fixture()
def stats_service(
    db_session: Session,
    user_service: UserService,
    streak_service: StreakService,
    progress_service: ProgressService,
) -> StatsService:
    return StatsService(
        db_session,
        users=user_service,
        progress_service=progress_service,
        streak_service=streak_service,
    )
