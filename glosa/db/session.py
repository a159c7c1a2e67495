"""Database session and engine management."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from glosa.config import settings
from glosa.db.base import Base
from glosa.utils.exceptions import ConflictError, GlosaError, StoreError

_UNIT_DEPTH_KEY = "glosa.unit_of_work_depth"


def _engine_options(url: str) -> dict[str, Any]:
    options: dict[str, Any] = {
        "pool_pre_ping": True,
        "echo": settings.DATABASE_ECHO,
    }
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        return options
    options.update(
        poolclass=QueuePool,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_recycle=settings.DATABASE_POOL_RECYCLE,
    )
    return options


def configure_sqlite(target: Engine) -> None:
    """Enforce foreign keys and let SAVEPOINT work on pysqlite connections.

    pysqlite defers BEGIN until the first DML statement, which turns a leading
    SAVEPOINT into its own transaction. Emitting BEGIN ourselves keeps nested
    blocks inside the outer unit of work.
    """

    @event.listens_for(target, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    @event.listens_for(target, "begin")
    def _on_begin(connection):
        connection.exec_driver_sql("BEGIN")


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))
if engine.dialect.name == "sqlite":
    configure_sqlite(engine)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,  # Keep objects usable after commit
)


def get_db() -> Iterator[Session]:
    """Yield a database session for request lifecycle."""
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database session error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def get_db_context() -> Session:
    """Get database session as context manager."""
    return SessionLocal()


def init_db(bind: Engine | None = None) -> None:
    """Create every engine table that does not exist yet."""

    from glosa.db import models  # noqa: F401  # Imported for side effects

    Base.metadata.create_all(bind=bind or engine)


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """Run a block as one transaction on ``db``.

    The outermost block commits on success and rolls back on any error.
    Nested blocks join the enclosing transaction, so a multi-step operation
    either lands completely or not at all. Driver errors are translated into
    ``ConflictError`` (constraint violations) or ``StoreError``.
    """

    depth = db.info.get(_UNIT_DEPTH_KEY, 0)
    db.info[_UNIT_DEPTH_KEY] = depth + 1
    outermost = depth == 0
    try:
        yield db
        if outermost:
            db.commit()
    except GlosaError as exc:
        if outermost:
            db.rollback()
            logger.warning("Operation rejected", error=type(exc).__name__, message=exc.message)
        raise
    except IntegrityError as exc:
        if outermost:
            db.rollback()
        logger.warning("Conflicting write rejected", error=str(exc.orig))
        raise ConflictError("Conflicting write", details={"error": str(exc.orig)}) from exc
    except DBAPIError as exc:
        if outermost:
            db.rollback()
        logger.error("Progress store unavailable", error=str(exc.orig))
        raise StoreError("Progress store unavailable") from exc
    except Exception:
        if outermost:
            db.rollback()
        raise
    finally:
        db.info[_UNIT_DEPTH_KEY] = depth


def insert_in_savepoint(db: Session, instance: Any) -> bool:
    """Insert ``instance`` inside a savepoint.

    Returns False when the database rejects the row, typically because a
    concurrent writer inserted the same unique key first. The enclosing
    transaction stays usable either way.
    """

    try:
        with db.begin_nested():
            db.add(instance)
    except IntegrityError as exc:
        logger.debug("Insert lost to a concurrent writer", table=instance.__tablename__, error=str(exc.orig))
        return False
    return True
