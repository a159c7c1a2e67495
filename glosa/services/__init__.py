"""Service layer for the progress engine."""

from glosa.services.counters import CounterService
from glosa.services.progress import ProgressService
from glosa.services.quiz import QuizService
from glosa.services.srs import MasteryScheduler
from glosa.services.stats import StatsService
from glosa.services.streaks import StreakService
from glosa.services.users import UserService
from glosa.services.vocabulary import VocabularyService

__all__ = [
    "CounterService",
    "MasteryScheduler",
    "ProgressService",
    "QuizService",
    "StatsService",
    "StreakService",
    "UserService",
    "VocabularyService",
]
