"""Per-user word progress model."""
import uuid
from enum import Enum

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from glosa.db.base import Base
from glosa.db.types import UTCDateTime, utcnow


class MasteryLevel(str, Enum):
    """Ordered proficiency tags for a (user, word) pair."""

    SHOWN = "shown"
    LEARNING = "learning"
    PRACTICING = "practicing"
    MASTERED = "mastered"


class UserWordProgress(Base):
    """Spaced-repetition state for one word and one learner."""

    __tablename__ = "user_word_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "word_id"),
        CheckConstraint("correct_attempts >= 0", name="correct_attempts_non_negative"),
        CheckConstraint("correct_attempts <= total_attempts", name="correct_within_total"),
        CheckConstraint(
            "repetition_interval BETWEEN 1 AND 30", name="repetition_interval_range"
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    word_id = Column(
        Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True
    )

    mastery_level = Column(
        SAEnum(
            MasteryLevel,
            name="mastery_level",
            native_enum=False,
            length=20,
            values_callable=lambda levels: [level.value for level in levels],
        ),
        nullable=False,
        default=MasteryLevel.LEARNING,
    )
    correct_attempts = Column(Integer, nullable=False, default=0)
    total_attempts = Column(Integer, nullable=False, default=0)
    repetition_interval = Column(Integer, nullable=False, default=1)

    last_review_date = Column(UTCDateTime)
    next_review_date = Column(UTCDateTime, index=True)
    first_mastered_at = Column(UTCDateTime)

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", backref="word_progress")
    word = relationship("Word")

    @property
    def success_rate(self) -> float:
        """Return the share of correct attempts, 0.0 before the first attempt."""

        if not self.total_attempts:
            return 0.0
        return self.correct_attempts / self.total_attempts

    @property
    def is_attempted(self) -> bool:
        return bool(self.total_attempts)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return (
            f"<UserWordProgress word_id={self.word_id!r} level={self.mastery_level!r} "
            f"{self.correct_attempts}/{self.total_attempts}>"
        )
