"""
Answer history and mastery persistence.

The mastery update and the answer insert for one submission happen in a
single transaction. The mastery row is selected FOR UPDATE so concurrent
answers for the same (user, topic) serialize instead of losing a rating
update. A first answer creates the row with INSERT ... ON CONFLICT DO
NOTHING before locking it, so concurrent first answers share one row.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from loguru import logger
from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session, sessionmaker

from quizwise.adaptive.models import (
    AnswerHistoryEntry,
    AnswerSubmission,
    MasterySnapshot,
    MasteryUpdate,
)
from quizwise.core.schema_validator import SchemaValidator, StoreCapabilities
from quizwise.db.database import session_scope
from quizwise.db.models import UserAnswer, UserMastery
from quizwise.db.models.adaptive import DEFAULT_RATING

MasteryFn = Callable[[MasterySnapshot], MasteryUpdate]

# SQLite "no such table: x" and PostgreSQL 'relation "x" does not exist'; a missing
# column reads 'column "y" of relation "x" does not exist' and must not match
_MISSING_TABLE_PATTERN = re.compile(r'no such table|(?<!of )\brelation "[^"]+" does not exist', re.IGNORECASE)

# Dialects with INSERT ... ON CONFLICT DO NOTHING
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def is_missing_table_error(error: BaseException) -> bool:
    """True when a database error means the adaptive tables are not migrated."""
    if not isinstance(error, (OperationalError, ProgrammingError)):
        return False
    if type(error.orig).__name__ == "UndefinedTable":
        return True
    return bool(_MISSING_TABLE_PATTERN.search(str(error)))


def _snapshot(row: UserMastery) -> MasterySnapshot:
    return MasterySnapshot(
        user_id=row.user_id,
        topic=row.topic,
        rating=row.rating,
        streak=row.streak,
        total_answered=row.total_answered,
        last_reviewed_at=row.last_reviewed_at,
        next_review_at=row.next_review_at,
    )


class AdaptiveRepository:
    """
    Persistence collaborator for the practice engine.

    Table availability is detected once at construction and exposed as
    `capabilities`; callers branch on the flags instead of probing per call.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        capabilities: StoreCapabilities | None = None,
    ):
        self.session_factory = session_factory
        if capabilities is None:
            engine = session_factory.kw.get("bind")
            capabilities = detect_capabilities(engine)
        self.capabilities = capabilities

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_answer_history(self, user_id: str, quiz_id: str) -> list[AnswerHistoryEntry]:
        """All of a user's answers for one quiz, oldest first."""
        if not self.capabilities.answers_table:
            return []
        with session_scope(self.session_factory) as session:
            rows = session.execute(
                select(UserAnswer.mcq_id, UserAnswer.is_correct, UserAnswer.created_at)
                .where(UserAnswer.user_id == user_id, UserAnswer.quiz_id == quiz_id)
                .order_by(UserAnswer.created_at)
            ).all()
            return [
                AnswerHistoryEntry(question_id=mcq_id, correct=bool(is_correct), answered_at=created_at)
                for mcq_id, is_correct, created_at in rows
            ]

    def find_mastery(self, user_id: str, topic: str) -> MasterySnapshot | None:
        if not self.capabilities.mastery_table:
            return None
        with session_scope(self.session_factory) as session:
            row = session.scalar(
                select(UserMastery).where(UserMastery.user_id == user_id, UserMastery.topic == topic)
            )
            return _snapshot(row) if row else None

    def list_mastery(self, user_id: str) -> list[MasterySnapshot]:
        if not self.capabilities.mastery_table:
            return []
        with session_scope(self.session_factory) as session:
            rows = session.scalars(
                select(UserMastery).where(UserMastery.user_id == user_id).order_by(UserMastery.topic)
            )
            return [_snapshot(row) for row in rows]

    # ------------------------------------------------------------------
    # Atomic write
    # ------------------------------------------------------------------

    def upsert_mastery_and_record_answer(
        self,
        user_id: str,
        submission: AnswerSubmission,
        apply: MasteryFn,
    ) -> MasteryUpdate:
        """
        Update the (user, topic) mastery and append the answer atomically.

        Args:
            user_id: Authenticated learner
            submission: The validated answer
            apply: Computes new mastery values from the locked current values

        Returns:
            The MasteryUpdate that was persisted
        """
        self.capabilities.require_adaptive()

        with session_scope(self.session_factory) as session:
            mastery = self._lock_mastery(session, user_id, submission.topic)
            update = apply(_snapshot(mastery))

            mastery.rating = update.rating_after
            mastery.streak = update.streak
            mastery.total_answered = (mastery.total_answered or 0) + 1
            mastery.last_reviewed_at = update.reviewed_at
            mastery.next_review_at = update.next_review_at
            session.flush()

            session.add(self._build_answer(user_id, submission, update))
            session.flush()

        logger.debug(
            f"Recorded answer for {user_id}/{submission.topic}: "
            f"{update.rating_before:.1f} -> {update.rating_after:.1f}, streak {update.streak}"
        )
        return update

    def _lock_mastery(self, session: Session, user_id: str, topic: str) -> UserMastery:
        """Create the mastery row if absent, then fetch it FOR UPDATE."""
        dialect = session.get_bind().dialect.name
        if dialect in _UPSERT_INSERTS:
            session.execute(
                _UPSERT_INSERTS[dialect](UserMastery)
                .values(user_id=user_id, topic=topic)
                .on_conflict_do_nothing(index_elements=["user_id", "topic"])
            )

        stmt = (
            select(UserMastery)
            .where(UserMastery.user_id == user_id, UserMastery.topic == topic)
            .with_for_update()
        )
        mastery = session.scalar(stmt)
        if mastery is None:
            mastery = UserMastery(user_id=user_id, topic=topic, rating=DEFAULT_RATING, streak=0, total_answered=0)
            session.add(mastery)
            session.flush()
        return mastery

    def _build_answer(self, user_id: str, submission: AnswerSubmission, update: MasteryUpdate) -> UserAnswer:
        return UserAnswer(
            user_id=user_id,
            quiz_id=submission.quiz_id,
            mcq_id=submission.question_id,
            essay_id=submission.essay_id,
            topic=submission.topic,
            is_correct=submission.correct,
            answer_index=submission.answer_index,
            time_ms=submission.time_ms,
            rating_before=update.rating_before,
            rating_after=update.rating_after,
            created_at=update.reviewed_at,
        )


def detect_capabilities(engine: Engine | None) -> StoreCapabilities:
    """Probe the adaptive tables on `engine`; assume present when unknown."""
    if engine is None:
        return StoreCapabilities()
    return SchemaValidator(engine).detect_capabilities()
