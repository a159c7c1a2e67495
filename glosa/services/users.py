"""Service layer for learner records."""
from __future__ import annotations

import uuid

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from glosa.db.models.user import User
from glosa.db.session import unit_of_work
from glosa.schemas.user import UserCreate
from glosa.utils.exceptions import NotFoundError
from glosa.utils.validation import validate_request


class UserService:
    """Encapsulates reusable user-related data access operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: uuid.UUID) -> User:
        """Return a user by identifier or raise ``NotFoundError``."""

        user = self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found", details={"user_id": str(user_id)})
        return user

    def lock(self, user_id: uuid.UUID) -> User:
        """Return the user row locked for update within the current transaction.

        Writers that touch the aggregate counters lock the row first so two
        concurrent updates cannot both read the same stale value.
        """

        stmt = (
            select(User)
            .where(User.id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        user = self.db.scalars(stmt).first()
        if not user:
            raise NotFoundError("User not found", details={"user_id": str(user_id)})
        return user

    def create_user(self, *, email: str, username: str) -> User:
        """Register a learner with zeroed counters."""

        payload = validate_request(UserCreate, email=email, username=username)
        user = User(email=payload.email, username=payload.username)
        with unit_of_work(self.db):
            self.db.add(user)
            self.db.flush([user])
        logger.info("Registered learner", user_id=str(user.id))
        return user

    def list_user_ids(self) -> list[uuid.UUID]:
        """Return every learner id, oldest first."""

        stmt = select(User.id).order_by(User.created_at, User.id)
        return list(self.db.scalars(stmt))
