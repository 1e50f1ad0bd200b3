"""
Shared FastAPI dependencies.

Repositories are built once per process from the configured session factory.
Tests replace them through `app.dependency_overrides`.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from config import get_settings
from quizwise.adaptive.engine import PracticeEngine
from quizwise.db.adaptive_repository import AdaptiveRepository
from quizwise.db.database import get_session_factory
from quizwise.db.quiz_repository import QuizRepository


@lru_cache(maxsize=1)
def get_quiz_repository() -> QuizRepository:
    return QuizRepository(get_session_factory(), max_page_size=get_settings().quiz_list_max_limit)


@lru_cache(maxsize=1)
def get_adaptive_repository() -> AdaptiveRepository:
    """
    Built lazily so table detection runs after startup created the schema.

    A failed detection raises and is not cached; the next request retries.
    """
    return AdaptiveRepository(get_session_factory())


def get_practice_engine(
    quizzes: QuizRepository = Depends(get_quiz_repository),
    store: AdaptiveRepository = Depends(get_adaptive_repository),
) -> PracticeEngine:
    return PracticeEngine(quizzes, store)


def reset_dependencies() -> None:
    """Forget cached repositories, e.g. after the schema changed."""
    get_quiz_repository.cache_clear()
    get_adaptive_repository.cache_clear()
