"""
Adaptive practice: Elo rating, review scheduling and question selection.

The engine lives in `quizwise.adaptive.engine` and is imported from there;
this package namespace only exposes the pure building blocks.
"""

from quizwise.adaptive.mastery import compute_mastery_update
from quizwise.adaptive.models import (
    AnswerHistoryEntry,
    AnswerSubmission,
    MasterySnapshot,
    MasteryUpdate,
    NextQuestion,
    QuestionBank,
    QuestionView,
    RecordOutcome,
    Selection,
    SelectionMeta,
    SelectionStrategy,
)
from quizwise.adaptive.rating import difficulty_from_quiz_level, expected_score, update_rating
from quizwise.adaptive.scheduler import next_review_date, review_interval_days
from quizwise.adaptive.selector import QuestionSelector, rank_weakest

__all__ = [
    "AnswerHistoryEntry",
    "AnswerSubmission",
    "MasterySnapshot",
    "MasteryUpdate",
    "NextQuestion",
    "QuestionBank",
    "QuestionSelector",
    "QuestionView",
    "RecordOutcome",
    "Selection",
    "SelectionMeta",
    "SelectionStrategy",
    "compute_mastery_update",
    "difficulty_from_quiz_level",
    "expected_score",
    "next_review_date",
    "rank_weakest",
    "review_interval_days",
    "update_rating",
]
