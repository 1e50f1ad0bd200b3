"""
Quiz payload schemas.

Strict validation for quizzes submitted by clients or produced by the
generation service:
- MultipleChoice: exactly 4 non-empty options, answer_index 0-3
- Essay: question plus grading rubric
- QuizMetadata: topic, level (X, XI, XII, General), status
- QuizPayload: 1-50 multiple choice questions, 0-10 essays, no unknown keys
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from quizwise.core.exceptions import QuizValidationError

QuizLevel = Literal["X", "XI", "XII", "General"]
QuizStatus = Literal["draft", "published", "archived"]


def _normalize_level(v: Any) -> Any:
    """Accept any casing; the database stores GENERAL, clients send General."""
    if not isinstance(v, str):
        return v
    v = v.strip().upper()
    return "General" if v == "GENERAL" else v


def _normalize_status(v: Any) -> Any:
    return v.strip().lower() if isinstance(v, str) else v


class MultipleChoice(BaseModel):
    """A multiple choice question with exactly four options."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = Field(None, description="Stored question id (ignored on create)")
    question: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=4, max_length=4)
    answer_index: int = Field(..., ge=0, le=3, description="Zero-based index of the correct option")
    explanation: str | None = None

    @field_validator("options")
    @classmethod
    def options_not_empty(cls, v: list[str]) -> list[str]:
        if any(not option.strip() for option in v):
            raise ValueError("Option cannot be empty")
        return v


class Essay(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    question: str = Field(..., min_length=1)
    rubric: str = Field(..., min_length=1)


class QuizMetadata(BaseModel):
    model_config = ConfigDict(extra="forbid")

    topic: str = Field(..., min_length=1)
    level: QuizLevel = "General"
    status: QuizStatus = "draft"
    title: str | None = None
    description: str | None = None
    author: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return _normalize_level(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return _normalize_status(v)


class QuizPayload(BaseModel):
    """Complete quiz structure as exchanged with clients."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    metadata: QuizMetadata
    multiple_choice: list[MultipleChoice] = Field(..., min_length=1, max_length=50)
    essay: list[Essay] = Field(default_factory=list, max_length=10)


class QuizMetadataPatch(BaseModel):
    """Partial update of quiz metadata; omitted fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    description: str | None = None
    topic: str | None = Field(None, min_length=1)
    level: QuizLevel | None = None
    status: QuizStatus | None = None

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return _normalize_level(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return _normalize_status(v)


def format_validation_issues(error: ValidationError) -> list[str]:
    """Render pydantic errors as `path: message` lines."""
    issues = []
    for err in error.errors():
        path = ".".join(str(p) for p in err["loc"])
        issues.append(f"{path or 'root'}: {err['msg']}")
    return issues


def ensure_quiz_payload(data: Any) -> QuizPayload:
    """
    Validate raw JSON data as a QuizPayload.

    Raises:
        QuizValidationError: With one readable line per failing field
    """
    if isinstance(data, QuizPayload):
        return data
    try:
        return QuizPayload.model_validate(data)
    except ValidationError as e:
        issues = format_validation_issues(e)
        raise QuizValidationError("Quiz validation failed:\n" + "\n".join(issues), issues) from e
