"""
Question selection for adaptive practice.

Strategy:
1. Unanswered-first: any question the learner has never answered (and that
   is not excluded for this session) is picked uniformly at random.
2. Weakest-first: once everything has been seen, rank questions by accuracy
   (lowest first), then by last answer time (stalest first), then by quiz
   order, and pick at random among the three weakest so the same item does
   not loop on every call.

A question with no recorded answers has accuracy 0 and ranks as weak as one
that was always missed.
"""

from __future__ import annotations

import random
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass

from loguru import logger

from quizwise.adaptive.models import (
    AnswerHistoryEntry,
    QuestionView,
    Selection,
    SelectionStrategy,
)

WEAKEST_POOL_SIZE = 3


@dataclass
class QuestionStats:
    """Per-question answer statistics used for weakest-first ranking."""

    question: QuestionView
    position: int
    total: int = 0
    correct: int = 0
    last_answered_at: float = 0.0

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total > 0 else 0.0

    def sort_key(self) -> tuple[float, float, int]:
        return (self.accuracy, self.last_answered_at, self.position)


class QuestionSelector:
    """
    Pick the next question for a learner.

    Stateless apart from the random source, which can be injected for
    deterministic tests.
    """

    def __init__(self, rng: random.Random | None = None, pool_size: int = WEAKEST_POOL_SIZE):
        self.rng = rng or random.Random()
        self.pool_size = pool_size

    def select(
        self,
        questions: Sequence[QuestionView],
        history: Iterable[AnswerHistoryEntry],
        exclude: Collection[str] = (),
        due: bool = False,
    ) -> Selection:
        """
        Select exactly one question, or none at end of session.

        Args:
            questions: The quiz's questions in their original order
            history: The learner's answers for this quiz
            exclude: Question ids already shown this session
            due: Whether the topic's review is due (reported, not weighted)

        Returns:
            Selection with the chosen question and the strategy used
        """
        history = list(history)
        excluded = set(exclude)
        answered = {entry.question_id for entry in history if entry.question_id}

        unanswered = [q for q in questions if q.id not in answered and q.id not in excluded]

        if unanswered:
            chosen = self.rng.choice(unanswered)
            logger.debug(f"Unanswered-first pick {chosen.id} from {len(unanswered)} candidates")
            return Selection(
                question=chosen,
                strategy=SelectionStrategy.UNANSWERED_FIRST,
                total_questions=len(questions),
                unanswered_count=len(unanswered),
                due=due,
                candidate_ids=tuple(q.id for q in unanswered),
            )

        weakest = self.weakest_slice(questions, history, excluded)
        if not weakest:
            logger.debug("No questions left after exclusions; end of session")
            return Selection(
                question=None,
                strategy=SelectionStrategy.WEAKEST_FIRST,
                total_questions=len(questions),
                unanswered_count=0,
                due=due,
            )

        chosen = self.rng.choice(weakest).question
        logger.debug(f"Weakest-first pick {chosen.id} from {[s.question.id for s in weakest]}")
        return Selection(
            question=chosen,
            strategy=SelectionStrategy.WEAKEST_FIRST,
            total_questions=len(questions),
            unanswered_count=0,
            due=due,
            candidate_ids=tuple(s.question.id for s in weakest),
        )

    def weakest_slice(
        self,
        questions: Sequence[QuestionView],
        history: Iterable[AnswerHistoryEntry],
        exclude: Collection[str] = (),
    ) -> list[QuestionStats]:
        """Return the top `min(pool_size, n)` weakest non-excluded questions."""
        ranked = rank_weakest(questions, history, exclude)
        return ranked[: min(self.pool_size, len(ranked))]


def build_stats(
    questions: Sequence[QuestionView],
    history: Iterable[AnswerHistoryEntry],
) -> dict[str, QuestionStats]:
    """Aggregate answer counts and last answer time per question id."""
    stats = {q.id: QuestionStats(question=q, position=idx) for idx, q in enumerate(questions)}
    for entry in history:
        s = stats.get(entry.question_id or "")
        if s is None:
            continue
        s.total += 1
        if entry.correct:
            s.correct += 1
        s.last_answered_at = max(s.last_answered_at, entry.timestamp)
    return stats


def rank_weakest(
    questions: Sequence[QuestionView],
    history: Iterable[AnswerHistoryEntry],
    exclude: Collection[str] = (),
) -> list[QuestionStats]:
    """Rank non-excluded questions weakest first (accuracy, staleness, order)."""
    excluded = set(exclude)
    stats = build_stats(questions, history)
    candidates = [s for s in stats.values() if s.question.id not in excluded]
    return sorted(candidates, key=QuestionStats.sort_key)
