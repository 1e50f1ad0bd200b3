"""API routers for quizwise."""

from quizwise.api.routers import adaptive_router, quiz_router

__all__ = [
    "adaptive_router",
    "quiz_router",
]
