"""Pydantic schemas package."""

from glosa.schemas.progress import (
    FlashcardCard,
    FlashcardDeck,
    FlashcardDeckRequest,
    FlashcardResult,
    FlashcardSubmission,
    MarkShownRequest,
    ProgressAttempt,
    ProgressRecordRead,
    ReviewQueueRequest,
    WordProgressRequest,
)
from glosa.schemas.quiz import (
    AnswerResult,
    QuizAnswerRead,
    QuizAnswerRequest,
    QuizFinishRequest,
    QuizSessionDetail,
    QuizSessionLookup,
    QuizSessionRead,
    QuizStartRequest,
)
from glosa.schemas.stats import (
    ActivityDelta,
    ActivityEntry,
    ActivityRequest,
    CounterReconciliation,
    MasteryStats,
    RecentActivityRequest,
    StreakDay,
    StreakSummary,
    TypeBucket,
    UserCounters,
    UserStats,
    WordStats,
    WordTypeStats,
)
from glosa.schemas.user import UserCreate, UserLookup, UserRead
from glosa.schemas.vocabulary import WordCreate, WordRef

__all__ = [
    "FlashcardCard",
    "FlashcardDeck",
    "FlashcardDeckRequest",
    "FlashcardResult",
    "FlashcardSubmission",
    "MarkShownRequest",
    "ProgressAttempt",
    "ProgressRecordRead",
    "ReviewQueueRequest",
    "WordProgressRequest",
    "AnswerResult",
    "QuizAnswerRead",
    "QuizAnswerRequest",
    "QuizFinishRequest",
    "QuizSessionDetail",
    "QuizSessionLookup",
    "QuizSessionRead",
    "QuizStartRequest",
    "ActivityDelta",
    "ActivityEntry",
    "ActivityRequest",
    "CounterReconciliation",
    "MasteryStats",
    "RecentActivityRequest",
    "StreakDay",
    "StreakSummary",
    "TypeBucket",
    "UserCounters",
    "UserStats",
    "WordStats",
    "WordTypeStats",
    "UserCreate",
    "UserLookup",
    "UserRead",
    "WordCreate",
    "WordRef",
]
