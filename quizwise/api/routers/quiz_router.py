"""
Quiz router for quiz management.

Endpoints for:
- Quiz CRUD (multiple choice and essay questions)
- Listing with topic/level/status filters and pagination

Every endpoint is scoped to the authenticated caller: quizzes owned by
someone else are reported as not found.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from pydantic import ValidationError

from quizwise.api.auth import AuthUser, get_current_user
from quizwise.api.dependencies import get_quiz_repository
from quizwise.core.exceptions import QuizNotFoundError, QuizValidationError
from quizwise.db.quiz_repository import QuizRepository
from quizwise.quiz.schema import QuizMetadataPatch, ensure_quiz_payload, format_validation_issues

router = APIRouter()


def _require_owned(repo: QuizRepository, quiz_id: str, user: AuthUser) -> None:
    if repo.get_owner(quiz_id) != user.user_id:
        raise QuizNotFoundError(quiz_id)


# ========================================
# Quiz CRUD Endpoints
# ========================================


@router.post("", status_code=201, summary="Create quiz")
def create_quiz(
    payload: dict[str, Any] = Body(..., description="Quiz document"),
    user: AuthUser = Depends(get_current_user),
    repo: QuizRepository = Depends(get_quiz_repository),
) -> dict[str, Any]:
    """Validate a quiz document and store it with its questions."""
    quiz = ensure_quiz_payload(payload)
    return repo.create_quiz(quiz, user.user_id)


@router.get("", summary="List quizzes")
def list_quizzes(
    topic: str | None = Query(None, description="Case-insensitive topic filter"),
    level: str | None = Query(None, description="X, XI, XII or General"),
    status: str | None = Query(None, description="draft, published or archived"),
    limit: int = Query(10, ge=1, description="Page size"),
    offset: int = Query(0, ge=0, description="Quizzes to skip"),
    user: AuthUser = Depends(get_current_user),
    repo: QuizRepository = Depends(get_quiz_repository),
) -> dict[str, Any]:
    """List the caller's quizzes, newest first."""
    page = repo.list_quizzes(user.user_id, topic=topic, level=level, status=status, limit=limit, offset=offset)
    return page.to_dict()


@router.get("/{quiz_id}", summary="Get quiz")
def get_quiz(
    quiz_id: str,
    user: AuthUser = Depends(get_current_user),
    repo: QuizRepository = Depends(get_quiz_repository),
) -> dict[str, Any]:
    _require_owned(repo, quiz_id, user)
    quiz = repo.get_quiz(quiz_id)
    if quiz is None:
        raise QuizNotFoundError(quiz_id)
    return quiz


@router.put("/{quiz_id}", summary="Replace quiz")
def replace_quiz(
    quiz_id: str,
    payload: dict[str, Any] = Body(..., description="Complete quiz document"),
    user: AuthUser = Depends(get_current_user),
    repo: QuizRepository = Depends(get_quiz_repository),
) -> dict[str, Any]:
    """
    Replace metadata and all questions.

    Questions get new ids, so earlier answers no longer count towards the
    unanswered/weakest statistics of the new questions.
    """
    _require_owned(repo, quiz_id, user)
    quiz = ensure_quiz_payload(payload)
    return repo.update_quiz(quiz_id, quiz)


@router.patch("/{quiz_id}", summary="Update quiz metadata")
def update_quiz_metadata(
    quiz_id: str,
    payload: dict[str, Any] = Body(..., description="Metadata fields to change"),
    user: AuthUser = Depends(get_current_user),
    repo: QuizRepository = Depends(get_quiz_repository),
) -> dict[str, Any]:
    """Change title, description, topic, level or status without touching questions."""
    _require_owned(repo, quiz_id, user)
    try:
        patch = QuizMetadataPatch.model_validate(payload)
    except ValidationError as e:
        issues = format_validation_issues(e)
        raise QuizValidationError("Quiz validation failed:\n" + "\n".join(issues), issues) from e
    return repo.update_quiz_metadata(quiz_id, patch)


@router.delete("/{quiz_id}", summary="Delete quiz")
def delete_quiz(
    quiz_id: str,
    user: AuthUser = Depends(get_current_user),
    repo: QuizRepository = Depends(get_quiz_repository),
) -> dict[str, Any]:
    """Delete a quiz and its questions. Answer history is kept."""
    _require_owned(repo, quiz_id, user)
    if not repo.delete_quiz(quiz_id):
        raise QuizNotFoundError(quiz_id)
    return {"ok": True, "id": quiz_id}
