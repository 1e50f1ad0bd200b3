"""
Practice Engine.

Ties the pure rating/scheduling functions and the question selector to the
repositories:

    next_question: question bank + answer history + mastery -> one question
    record_answer: validate -> Elo update -> streak -> next review -> persist

The engine holds no per-request state; repositories, selector and clock are
injected so tests can swap any of them.
"""

from __future__ import annotations

from collections.abc import Callable, Collection
from datetime import datetime
from typing import Protocol

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from quizwise.adaptive.mastery import compute_mastery_update
from quizwise.adaptive.models import (
    DEFAULT_TOPIC,
    AnswerHistoryEntry,
    AnswerSubmission,
    MasterySnapshot,
    MasteryUpdate,
    NextQuestion,
    QuestionBank,
    RecordOutcome,
    SelectionMeta,
    is_due,
)
from quizwise.adaptive.rating import difficulty_from_quiz_level
from quizwise.adaptive.selector import QuestionSelector
from quizwise.core.exceptions import PersistenceUnavailableError, QuizNotFoundError
from quizwise.core.schema_validator import StoreCapabilities
from quizwise.db.adaptive_repository import MasteryFn, is_missing_table_error
from quizwise.db.models.base import utcnow

TABLES_NOT_FOUND_NOTICE = "Adaptive tables not found. Skipping persistence."
TABLES_MISSING_NOTICE = "Adaptive tables missing. Persistence skipped."


class QuestionBankSource(Protocol):
    def get_question_bank(self, quiz_id: str) -> QuestionBank | None: ...


class AdaptiveStore(Protocol):
    capabilities: StoreCapabilities

    def find_answer_history(self, user_id: str, quiz_id: str) -> list[AnswerHistoryEntry]: ...

    def find_mastery(self, user_id: str, topic: str) -> MasterySnapshot | None: ...

    def list_mastery(self, user_id: str) -> list[MasterySnapshot]: ...

    def upsert_mastery_and_record_answer(
        self, user_id: str, submission: AnswerSubmission, apply: MasteryFn
    ) -> MasteryUpdate: ...


class PracticeEngine:
    """Adaptive practice operations for one learner at a time."""

    def __init__(
        self,
        quizzes: QuestionBankSource,
        store: AdaptiveStore,
        selector: QuestionSelector | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.quizzes = quizzes
        self.store = store
        self.selector = selector or QuestionSelector()
        self.clock = clock or utcnow

    # ========================================
    # GetNextQuestion
    # ========================================

    def next_question(
        self,
        user_id: str,
        quiz_id: str,
        topic: str | None = None,
        exclude: Collection[str] = (),
        exclude_id: str | None = None,
    ) -> NextQuestion:
        """
        Pick the next question for a practice session.

        Args:
            user_id: Authenticated learner
            quiz_id: Quiz to practice
            topic: Mastery topic; defaults to the quiz topic, then "General"
            exclude: Question ids already shown this session
            exclude_id: One more id to exclude, echoed back in the metadata

        Returns:
            NextQuestion; `question` is None when every question is excluded

        Raises:
            QuizNotFoundError: Unknown quiz or quiz without questions
        """
        bank = self.quizzes.get_question_bank(quiz_id)
        if bank is None:
            raise QuizNotFoundError(quiz_id)
        if not bank.questions:
            raise QuizNotFoundError(quiz_id, reason="Quiz has no questions")

        excluded = {qid for qid in exclude if qid}
        if exclude_id:
            excluded.add(exclude_id)
        resolved_topic = topic or bank.topic or DEFAULT_TOPIC

        history = self._load_history(user_id, quiz_id)
        mastery = self._load_mastery(user_id, resolved_topic)
        due = is_due(mastery.next_review_at, self.clock()) if mastery else False

        selection = self.selector.select(bank.questions, history, exclude=excluded, due=due)
        if selection.end_of_session:
            logger.info(f"End of session for {user_id} on quiz {quiz_id}: all {len(excluded)} questions excluded")

        meta = SelectionMeta(
            quiz_id=bank.quiz_id,
            topic=resolved_topic,
            total_questions=selection.total_questions,
            unanswered_count=selection.unanswered_count,
            due=due,
            strategy=selection.strategy,
            excluded=exclude_id or None,
            excluded_count=len(excluded),
        )
        return NextQuestion(question=selection.question, meta=meta)

    def _load_history(self, user_id: str, quiz_id: str) -> list[AnswerHistoryEntry]:
        try:
            return self.store.find_answer_history(user_id, quiz_id)
        except SQLAlchemyError as e:
            logger.warning(f"Answer history unavailable for {user_id}/{quiz_id}, treating as empty: {e}")
            return []

    def _load_mastery(self, user_id: str, topic: str) -> MasterySnapshot | None:
        try:
            return self.store.find_mastery(user_id, topic)
        except SQLAlchemyError as e:
            logger.warning(f"Mastery unavailable for {user_id}/{topic}: {e}")
            return None

    # ========================================
    # RecordAnswer
    # ========================================

    def record_answer(self, user_id: str, submission: AnswerSubmission) -> RecordOutcome:
        """
        Record one answer and update the learner's topic mastery.

        Validation happens before any persistence access. When the adaptive
        tables are not provisioned the answer is acknowledged with a notice
        and nothing is written.

        Raises:
            AnswerValidationError: Malformed submission
        """
        submission.validate()

        if not self.store.capabilities.adaptive_ready:
            logger.warning(f"Skipping answer persistence for {user_id}: adaptive tables not provisioned")
            return RecordOutcome.skipped(TABLES_NOT_FOUND_NOTICE)

        opponent = difficulty_from_quiz_level(submission.level)
        now = self.clock()

        def apply(snapshot: MasterySnapshot) -> MasteryUpdate:
            return compute_mastery_update(snapshot, submission.correct, now, opponent)

        try:
            update = self.store.upsert_mastery_and_record_answer(user_id, submission, apply)
        except PersistenceUnavailableError:
            logger.warning(f"Skipping answer persistence for {user_id}: adaptive tables not provisioned")
            return RecordOutcome.skipped(TABLES_NOT_FOUND_NOTICE)
        except SQLAlchemyError as e:
            if not is_missing_table_error(e):
                raise
            logger.warning(f"Adaptive tables missing while recording answer for {user_id}: {e}")
            return RecordOutcome.skipped(TABLES_MISSING_NOTICE)

        logger.info(
            f"{user_id} answered {'correctly' if submission.correct else 'incorrectly'} on "
            f"'{submission.topic}': rating {update.rating_before:.1f} -> {update.rating_after:.1f}"
        )
        return RecordOutcome(
            ok=True,
            rating_before=update.rating_before,
            rating_after=update.rating_after,
            streak=update.streak,
            next_review_at=update.next_review_at,
        )

    # ========================================
    # Mastery overview
    # ========================================

    def list_mastery(self, user_id: str) -> list[dict]:
        """All of a learner's topic mastery records with their due flag."""
        now = self.clock()
        return [snapshot.to_dict(now=now) for snapshot in self.store.list_mastery(user_id)]
