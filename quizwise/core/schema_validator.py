"""
Schema Validator - Detect which database objects are provisioned.

Each feature declares the tables it needs. The adaptive feature is optional:
when its tables are missing the service keeps serving questions with empty
history and skips answer persistence, instead of failing requests.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger
from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from quizwise.core.exceptions import PersistenceUnavailableError


@dataclass(frozen=True)
class SchemaRequirement:
    """A single schema requirement (table)."""

    name: str
    feature: str
    required: bool = True


# ============================================================================
# SCHEMA REQUIREMENTS BY FEATURE
# ============================================================================

CORE_REQUIREMENTS = [
    SchemaRequirement("quizzes", "QUIZ_BASIC"),
    SchemaRequirement("quiz_questions", "QUIZ_BASIC"),
    SchemaRequirement("essay_questions", "QUIZ_BASIC", required=False),
]

ADAPTIVE_REQUIREMENTS = [
    SchemaRequirement("user_answers", "ADAPTIVE"),
    SchemaRequirement("user_mastery", "ADAPTIVE"),
]


@dataclass(frozen=True)
class StoreCapabilities:
    """Which adaptive tables exist, computed once per repository."""

    answers_table: bool = True
    mastery_table: bool = True

    @property
    def adaptive_ready(self) -> bool:
        return self.answers_table and self.mastery_table

    def require_adaptive(self) -> None:
        if not self.adaptive_ready:
            raise PersistenceUnavailableError("Adaptive tables not found")

    def to_dict(self) -> dict[str, bool]:
        return {
            "answers_table": self.answers_table,
            "mastery_table": self.mastery_table,
            "adaptive_ready": self.adaptive_ready,
        }


class SchemaValidator:
    """Validates database schema against feature requirements."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._cache: dict[str, bool] = {}

    def table_exists(self, table_name: str) -> bool:
        """
        Check if a table exists in the database.

        Only a completed inspection is cached. Connection failures propagate,
        so an unreachable database is never mistaken for a missing table.
        """
        if table_name in self._cache:
            return self._cache[table_name]

        try:
            exists = inspect(self.engine).has_table(table_name)
        except SQLAlchemyError as e:
            logger.error(f"Failed to check table {table_name}: {e}")
            raise

        self._cache[table_name] = exists
        return exists

    def missing(self, requirements: list[SchemaRequirement]) -> list[SchemaRequirement]:
        """Return the requirements whose tables are absent, logging each one."""
        absent = []
        for req in requirements:
            if self.table_exists(req.name):
                continue
            absent.append(req)
            if req.required:
                logger.warning(f"SCHEMA MISSING: table '{req.name}' required by {req.feature}")
            else:
                logger.info(f"SCHEMA MISSING: table '{req.name}' (optional for {req.feature})")
        return absent

    def validate_for_feature(self, feature: str) -> bool:
        """Validate schema for a specific feature."""
        requirements_map = {
            "QUIZ_BASIC": CORE_REQUIREMENTS,
            "ADAPTIVE": ADAPTIVE_REQUIREMENTS,
        }
        reqs = requirements_map.get(feature, [])
        return not any(r.required for r in self.missing(reqs))

    def get_available_features(self) -> dict[str, bool]:
        """Get which features have their schema requirements met."""
        return {f: self.validate_for_feature(f) for f in ("QUIZ_BASIC", "ADAPTIVE")}

    def detect_capabilities(self) -> StoreCapabilities:
        """Probe the adaptive tables once and return the result as flags."""
        capabilities = StoreCapabilities(
            answers_table=self.table_exists("user_answers"),
            mastery_table=self.table_exists("user_mastery"),
        )
        if not capabilities.adaptive_ready:
            logger.warning(
                "Adaptive tables not provisioned; history reads fall back to empty "
                "and answer persistence is skipped"
            )
        return capabilities
