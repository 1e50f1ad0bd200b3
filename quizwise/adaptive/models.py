"""
Data models for the adaptive practice engine.

Plain dataclasses passed between the repositories, the selector and the
engine. None of them hold database sessions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from quizwise.core.exceptions import AnswerValidationError

DEFAULT_TOPIC = "General"
OPTION_COUNT = 4


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_due(next_review_at: datetime | None, now: datetime) -> bool:
    """A topic is due once its scheduled review time has passed."""
    if next_review_at is None:
        return False
    return as_utc(next_review_at) <= as_utc(now)


class SelectionStrategy(str, Enum):
    """How the selector picked the question."""

    UNANSWERED_FIRST = "unanswered-first"
    WEAKEST_FIRST = "weakest-first"


@dataclass(frozen=True)
class QuestionView:
    """A multiple choice question as presented to the learner."""

    id: str
    question: str
    options: tuple[str, ...]
    answer_index: int
    explanation: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "question": self.question,
            "options": list(self.options),
            "answer_index": self.answer_index,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class QuestionBank:
    """The ordered multiple choice questions of one quiz."""

    quiz_id: str
    topic: str | None
    level: str | None
    questions: tuple[QuestionView, ...]


@dataclass(frozen=True)
class AnswerHistoryEntry:
    question_id: str | None
    correct: bool
    answered_at: datetime | None = None

    @property
    def timestamp(self) -> float:
        """Epoch seconds, 0 when unknown."""
        if self.answered_at is None:
            return 0.0
        return as_utc(self.answered_at).timestamp()


@dataclass(frozen=True)
class MasterySnapshot:
    """Read-only copy of a user's mastery record for one topic."""

    user_id: str
    topic: str
    rating: float = 1200.0
    streak: int = 0
    total_answered: int = 0
    last_reviewed_at: datetime | None = None
    next_review_at: datetime | None = None

    def is_due(self, now: datetime) -> bool:
        return is_due(self.next_review_at, now)

    def to_dict(self, now: datetime | None = None) -> dict[str, Any]:
        data = {
            "topic": self.topic,
            "rating": self.rating,
            "streak": self.streak,
            "total_answered": self.total_answered,
            "last_reviewed_at": self.last_reviewed_at,
            "next_review_at": self.next_review_at,
        }
        if now is not None:
            data["due"] = self.is_due(now)
        return data


@dataclass(frozen=True)
class MasteryUpdate:
    """New mastery values computed from one answer."""

    rating_before: float
    rating_after: float
    streak: int
    reviewed_at: datetime
    next_review_at: datetime


@dataclass
class AnswerSubmission:
    """
    One answer to record.

    `question_id` and `essay_id` are mutually exclusive; `level` is only used
    to look up the opponent difficulty.
    """

    topic: Any
    correct: Any
    quiz_id: str | None = None
    question_id: str | None = None
    essay_id: str | None = None
    answer_index: int | None = None
    time_ms: int | None = None
    level: str | None = None

    def validate(self) -> None:
        """Raise AnswerValidationError before anything is computed or persisted."""
        if not isinstance(self.topic, str) or not self.topic.strip():
            raise AnswerValidationError("topic must be a non-empty string")
        if not isinstance(self.correct, bool):
            raise AnswerValidationError("correct must be a boolean")
        if self.question_id and self.essay_id:
            raise AnswerValidationError("provide either question_id or essay_id, not both")
        if self.answer_index is not None:
            if isinstance(self.answer_index, bool) or not isinstance(self.answer_index, int):
                raise AnswerValidationError("answer_index must be an integer")
            if not 0 <= self.answer_index < OPTION_COUNT:
                raise AnswerValidationError(f"answer_index must be between 0 and {OPTION_COUNT - 1}")
        if self.time_ms is not None:
            if isinstance(self.time_ms, bool) or not isinstance(self.time_ms, int) or self.time_ms < 0:
                raise AnswerValidationError("time_ms must be a non-negative integer")


@dataclass(frozen=True)
class Selection:
    """Outcome of one selector call. `question` is None at end of session."""

    question: QuestionView | None
    strategy: SelectionStrategy
    total_questions: int
    unanswered_count: int
    due: bool = False
    candidate_ids: tuple[str, ...] = ()

    @property
    def end_of_session(self) -> bool:
        return self.question is None


@dataclass(frozen=True)
class SelectionMeta:
    quiz_id: str
    topic: str
    total_questions: int
    unanswered_count: int
    due: bool
    strategy: SelectionStrategy
    excluded: str | None = None
    excluded_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "quiz_id": self.quiz_id,
            "topic": self.topic,
            "total_questions": self.total_questions,
            "unanswered_count": self.unanswered_count,
            "due": self.due,
            "strategy": self.strategy.value,
            "excluded": self.excluded,
            "excluded_count": self.excluded_count,
        }


@dataclass(frozen=True)
class NextQuestion:
    question: QuestionView | None
    meta: SelectionMeta

    def to_dict(self) -> dict[str, Any]:
        return {
            "question": self.question.to_dict() if self.question else None,
            "meta": self.meta.to_dict(),
        }


@dataclass(frozen=True)
class RecordOutcome:
    """Acknowledgement returned after recording an answer."""

    ok: bool = True
    rating_before: float | None = None
    rating_after: float | None = None
    streak: int | None = None
    next_review_at: datetime | None = None
    notice: str | None = None

    @property
    def persisted(self) -> bool:
        return self.notice is None

    @classmethod
    def skipped(cls, notice: str) -> RecordOutcome:
        return cls(ok=True, notice=notice)

    def to_dict(self) -> dict[str, Any]:
        if not self.persisted:
            return {"ok": self.ok, "notice": self.notice}
        return {
            "ok": self.ok,
            "rating_before": self.rating_before,
            "rating_after": self.rating_after,
            "streak": self.streak,
            "next_review_at": self.next_review_at,
        }
