"""User database model."""
import uuid

from sqlalchemy import Column, Float, Integer, String
from sqlalchemy.dialects.postgresql import UUID

from glosa.db.base import Base
from glosa.db.types import UTCDateTime, utcnow


class User(Base):
    """A learner and the aggregate counters derived from their history.

    The counters are caches. Progress, quiz and streak services keep them in
    step with the underlying rows on every write, and
    ``CounterService.reconcile`` can rebuild them from scratch.
    """

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(30), unique=True, nullable=False)

    total_words_learned = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    total_quizzes_taken = Column(Integer, nullable=False, default=0)
    average_quiz_score = Column(Float, nullable=False, default=0.0)

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    def counters(self) -> dict[str, float]:
        """Return the aggregate counters as a plain mapping."""

        return {
            "total_words_learned": self.total_words_learned or 0,
            "current_streak": self.current_streak or 0,
            "longest_streak": self.longest_streak or 0,
            "total_quizzes_taken": self.total_quizzes_taken or 0,
            "average_quiz_score": self.average_quiz_score or 0.0,
        }

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<User username={self.username!r}>"
