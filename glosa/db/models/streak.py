"""Daily learning activity model."""
import uuid

from sqlalchemy import Boolean, CheckConstraint, Column, Date, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from glosa.db.base import Base
from glosa.db.types import UTCDateTime, utcnow


class LearningStreak(Base):
    """Activity totals for one learner on one calendar day (UTC)."""

    __tablename__ = "learning_streaks"
    __table_args__ = (
        UniqueConstraint("user_id", "date"),
        CheckConstraint(
            "words_learned >= 0 AND quizzes_taken >= 0 AND time_spent >= 0",
            name="activity_non_negative",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date = Column(Date, nullable=False, index=True)

    words_learned = Column(Integer, nullable=False, default=0)
    quizzes_taken = Column(Integer, nullable=False, default=0)
    time_spent = Column(Integer, nullable=False, default=0)  # minutes
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", backref="learning_streaks")

    def add_activity(self, *, words_learned: int = 0, quizzes_taken: int = 0, time_spent: int = 0) -> None:
        """Merge activity deltas into the day's totals."""

        self.words_learned = (self.words_learned or 0) + words_learned
        self.quizzes_taken = (self.quizzes_taken or 0) + quizzes_taken
        self.time_spent = (self.time_spent or 0) + time_spent
        self.is_active = True
