"""Quiz payload schemas and validation helpers."""

from quizwise.quiz.schema import (
    Essay,
    MultipleChoice,
    QuizMetadata,
    QuizMetadataPatch,
    QuizPayload,
    ensure_quiz_payload,
)

__all__ = [
    "Essay",
    "MultipleChoice",
    "QuizMetadata",
    "QuizMetadataPatch",
    "QuizPayload",
    "ensure_quiz_payload",
]
