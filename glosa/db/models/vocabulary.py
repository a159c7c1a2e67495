"""Word catalog model."""
from sqlalchemy import CheckConstraint, Column, Integer, String

from glosa.db.base import Base
from glosa.db.types import UTCDateTime, utcnow


class Word(Base):
    """A Swedish/English word pair from the dictionary catalog."""

    __tablename__ = "words"
    __table_args__ = (
        CheckConstraint(
            "difficulty_level BETWEEN 1 AND 5", name="difficulty_level_range"
        ),
    )

    id = Column(Integer, primary_key=True)
    swedish = Column(String(100), nullable=False, index=True)
    english = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False, default="noun")
    difficulty_level = Column(Integer, nullable=False, default=1)

    created_at = Column(UTCDateTime, default=utcnow)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Word swedish={self.swedish!r} english={self.english!r}>"
