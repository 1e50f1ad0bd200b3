# SQLAlchemy models
from .adaptive import UserAnswer, UserMastery
from .base import Base
from .quiz import EssayQuestion, Quiz, QuizQuestion

__all__ = [
    # Base
    "Base",
    # Quiz content
    "Quiz",
    "QuizQuestion",
    "EssayQuestion",
    # Adaptive practice
    "UserMastery",
    "UserAnswer",
]
