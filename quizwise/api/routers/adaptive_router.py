"""
Adaptive Practice API Router.

Endpoints for the practice loop:
- Next question (unanswered-first, then weakest-first)
- Answer recording with Elo rating and review scheduling
- Mastery overview per topic
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr

from quizwise.adaptive.engine import PracticeEngine
from quizwise.adaptive.models import AnswerSubmission
from quizwise.api.auth import AuthUser, get_current_user
from quizwise.api.dependencies import get_practice_engine

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class QuestionResponse(BaseModel):
    """A multiple choice question as served to the practice page."""

    id: str
    question: str
    options: list[str]
    answer_index: int
    explanation: str | None = None


class SelectionMetaResponse(BaseModel):
    quiz_id: str
    topic: str
    total_questions: int
    unanswered_count: int
    due: bool
    strategy: str = Field(..., description="unanswered-first or weakest-first")
    excluded: str | None = None
    excluded_count: int = 0


class NextQuestionResponse(BaseModel):
    """Next question, or null question at end of session."""

    question: QuestionResponse | None
    meta: SelectionMetaResponse


class RecordAnswerRequest(BaseModel):
    """Request model for recording an answer."""

    model_config = ConfigDict(extra="ignore")

    topic: StrictStr = Field(..., min_length=1, description="Mastery topic")
    correct: StrictBool = Field(..., description="Whether the answer was correct")
    quiz_id: str | None = Field(None, description="Quiz the question belongs to")
    question_id: str | None = Field(None, description="Multiple choice question id")
    essay_id: str | None = Field(None, description="Essay question id")
    answer_index: StrictInt | None = Field(None, ge=0, le=3, description="Selected option")
    time_ms: StrictInt | None = Field(None, ge=0, description="Time spent answering")
    level: str | None = Field(None, description="Quiz level, sets the opponent difficulty")


class RecordAnswerResponse(BaseModel):
    ok: bool
    rating_before: float | None = None
    rating_after: float | None = None
    streak: int | None = None
    next_review_at: datetime | None = None
    notice: str | None = None


class MasteryResponse(BaseModel):
    topic: str
    rating: float
    streak: int
    total_answered: int
    last_reviewed_at: datetime | None
    next_review_at: datetime | None
    due: bool


# ========================================
# Practice Endpoints
# ========================================


@router.get(
    "/next",
    response_model=NextQuestionResponse,
    summary="Get next practice question",
)
def next_question(
    quiz_id: str = Query(..., min_length=1, description="Quiz to practice"),
    topic: str | None = Query(None, description="Mastery topic (defaults to the quiz topic)"),
    exclude: str = Query("", description="Comma-separated question ids shown this session"),
    exclude_id: str | None = Query(None, description="Single question id to exclude"),
    user: AuthUser = Depends(get_current_user),
    engine: PracticeEngine = Depends(get_practice_engine),
) -> NextQuestionResponse:
    """
    Pick the next question for the caller.

    Unanswered questions come first, in random order. Once everything has
    been answered the three weakest questions (lowest accuracy, stalest) are
    drawn from at random. `question` is null when every question is excluded.
    """
    exclude_ids = [part.strip() for part in exclude.split(",") if part.strip()]
    result = engine.next_question(
        user.user_id,
        quiz_id,
        topic=topic or None,
        exclude=exclude_ids,
        exclude_id=exclude_id or None,
    )
    return NextQuestionResponse.model_validate(result.to_dict())


@router.post(
    "/record",
    response_model=RecordAnswerResponse,
    response_model_exclude_none=True,
    summary="Record an answer",
)
def record_answer(
    request: RecordAnswerRequest,
    user: AuthUser = Depends(get_current_user),
    engine: PracticeEngine = Depends(get_practice_engine),
) -> RecordAnswerResponse:
    """
    Record an answer and update the caller's topic mastery.

    Returns the rating before and after, the new streak and the next review
    time. When the adaptive tables are not provisioned the answer is
    acknowledged with a notice instead.
    """
    submission = AnswerSubmission(**request.model_dump())
    outcome = engine.record_answer(user.user_id, submission)
    if not outcome.persisted:
        logger.info(f"Answer from {user.user_id} not persisted: {outcome.notice}")
    return RecordAnswerResponse.model_validate(outcome.to_dict())


@router.get(
    "/mastery",
    response_model=list[MasteryResponse],
    summary="List topic mastery",
)
def list_mastery(
    user: AuthUser = Depends(get_current_user),
    engine: PracticeEngine = Depends(get_practice_engine),
) -> list[MasteryResponse]:
    """The caller's rating, streak and review schedule per topic."""
    return [MasteryResponse.model_validate(row) for row in engine.list_mastery(user.user_id)]
