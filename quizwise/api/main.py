"""
FastAPI application for quizwise.

Provides REST API for:
- Adaptive practice (next question, answer recording, mastery)
- Quiz management
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from quizwise import __version__
from quizwise.core.exceptions import (
    AnswerValidationError,
    AuthenticationError,
    QuizNotFoundError,
    QuizValidationError,
)
from quizwise.core.schema_validator import SchemaValidator
from quizwise.db.database import check_database, get_engine, init_db
from quizwise.logging_setup import configure_logging

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    configure_logging(settings)
    logger.info("Starting quizwise service...")
    init_db()
    logger.info(f"Service started on {settings.api_host}:{settings.api_port}")

    yield

    # Shutdown
    logger.info("Shutting down quizwise service...")


app = FastAPI(
    title="quizwise",
    description="""
    Adaptive quiz practice service.

    ## Features

    - **Adaptive Practice**: unanswered-first, then weakest-first question selection
    - **Mastery Tracking**: per-topic Elo rating, streak and review schedule
    - **Quiz Management**: create, list, update and delete quizzes
    """,
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ========================================
# Error Handlers
# ========================================


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": "Unauthorized"})


@app.exception_handler(QuizNotFoundError)
async def quiz_not_found_handler(request: Request, exc: QuizNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": exc.reason})


@app.exception_handler(AnswerValidationError)
async def answer_validation_handler(request: Request, exc: AnswerValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid payload", "detail": str(exc)})


@app.exception_handler(QuizValidationError)
async def quiz_validation_handler(request: Request, exc: QuizValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid quiz data format", "issues": exc.issues})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug(f"Rejected request to {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Invalid payload"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Server error"})


# ========================================
# Health & Status Endpoints
# ========================================


@app.get("/", tags=["Health"])
def root() -> dict[str, str]:
    """Root endpoint returning service info."""
    return {
        "service": "quizwise",
        "version": __version__,
        "status": "ok",
    }


@app.get("/health", tags=["Health"])
def health_check() -> dict[str, Any]:
    """Database connectivity plus which features have their tables provisioned."""
    db_status, db_error = check_database()

    features: dict[str, bool] = {}
    if db_status == "ok":
        try:
            features = SchemaValidator(get_engine()).get_available_features()
        except SQLAlchemyError as e:
            logger.warning(f"Schema inspection failed: {e}")

    result: dict[str, Any] = {
        "status": "healthy" if db_status == "ok" else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {"database": db_status},
        "features": features,
        "config": settings.get_public_config(),
    }
    if db_error:
        result["errors"] = {"database": db_error}
    return result


# ========================================
# Import and mount routers
# ========================================

from quizwise.api.routers import adaptive_router, quiz_router  # noqa: E402

app.include_router(adaptive_router.router, prefix="/api/adaptive", tags=["Adaptive Practice"])
app.include_router(quiz_router.router, prefix="/api/quizzes", tags=["Quizzes"])
