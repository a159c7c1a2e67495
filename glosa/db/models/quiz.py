"""Quiz session and answer models."""
import uuid
from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, Column, Float, ForeignKey, Integer, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from glosa.db.base import Base
from glosa.db.types import UTCDateTime, utcnow


class QuizType(str, Enum):
    VOCABULARY = "vocabulary"
    TRANSLATION = "translation"
    MULTIPLE_CHOICE = "multiple_choice"
    FLASHCARD = "flashcard"
    MIXED = "mixed"


class QuizStatus(str, Enum):
    """Linear quiz lifecycle: created -> answering -> completed."""

    CREATED = "created"
    ANSWERING = "answering"
    COMPLETED = "completed"


def _enum_column(enum_cls: type[Enum], name: str) -> SAEnum:
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=20,
        values_callable=lambda members: [member.value for member in members],
    )


class QuizSession(Base):
    """One bounded quiz attempt."""

    __tablename__ = "quiz_sessions"
    __table_args__ = (
        CheckConstraint("total_questions >= 1", name="total_questions_positive"),
        CheckConstraint("score >= 0 AND score <= 100", name="score_range"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quiz_type = Column(_enum_column(QuizType, "quiz_type"), nullable=False)
    status = Column(
        _enum_column(QuizStatus, "quiz_status"), nullable=False, default=QuizStatus.CREATED
    )

    total_questions = Column(Integer, nullable=False)
    correct_answers = Column(Integer, nullable=False, default=0)
    score = Column(Float, nullable=False, default=0.0)
    time_spent = Column(Integer, nullable=False, default=0)

    started_at = Column(UTCDateTime, default=utcnow)
    completed_at = Column(UTCDateTime, index=True)

    user = relationship("User", backref="quiz_sessions")
    answers = relationship(
        "QuizAnswer",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="QuizAnswer.answered_at",
    )

    @property
    def is_completed(self) -> bool:
        return self.status == QuizStatus.COMPLETED

    @property
    def answered_count(self) -> int:
        return len(self.answers)


class QuizAnswer(Base):
    """A single answered question. Never modified after insert."""

    __tablename__ = "quiz_answers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_id = Column(
        UUID(as_uuid=True), ForeignKey("quiz_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False)

    user_answer = Column(Text, nullable=False)
    correct_answer = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False)
    answer_time = Column(Integer, nullable=False, default=0)

    answered_at = Column(UTCDateTime, default=utcnow)

    session = relationship("QuizSession", back_populates="answers")
    word = relationship("Word")
