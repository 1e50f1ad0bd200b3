"""
Core Module - Shared errors and schema capability checks.

Components:
- exceptions: Domain error hierarchy mapped to HTTP responses by the API
- schema_validator: Detects which optional tables are provisioned
"""

from quizwise.core.exceptions import (
    AnswerValidationError,
    AuthenticationError,
    PersistenceUnavailableError,
    QuizNotFoundError,
    QuizValidationError,
    QuizwiseError,
)
from quizwise.core.schema_validator import SchemaValidator, StoreCapabilities

__all__ = [
    "QuizwiseError",
    "AuthenticationError",
    "QuizNotFoundError",
    "AnswerValidationError",
    "QuizValidationError",
    "PersistenceUnavailableError",
    "SchemaValidator",
    "StoreCapabilities",
]
