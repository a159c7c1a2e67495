"""Database models package."""
from glosa.db.models.user import User
from glosa.db.models.vocabulary import Word
from glosa.db.models.progress import MasteryLevel, UserWordProgress
from glosa.db.models.quiz import QuizAnswer, QuizSession, QuizStatus, QuizType
from glosa.db.models.streak import LearningStreak

__all__ = [
    "User",
    "Word",
    "MasteryLevel",
    "UserWordProgress",
    "QuizAnswer",
    "QuizSession",
    "QuizStatus",
    "QuizType",
    "LearningStreak",
]
