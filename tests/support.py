"""Test doubles and builders shared across the test suite."""

import random
from datetime import datetime, timezone

from quizwise.adaptive.models import (
    AnswerHistoryEntry,
    MasterySnapshot,
    QuestionBank,
    QuestionView,
)
from quizwise.core.schema_validator import StoreCapabilities

FIXED_NOW = datetime(2025, 3, 10, 9, 30, tzinfo=timezone.utc)


class FirstChoiceRandom(random.Random):
    """Random source whose choice() always returns the first element."""

    def choice(self, seq):
        return seq[0]


def make_questions(*ids: str) -> tuple[QuestionView, ...]:
    return tuple(
        QuestionView(
            id=qid,
            question=f"Question {qid}?",
            options=("alpha", "beta", "gamma", "delta"),
            answer_index=idx % 4,
        )
        for idx, qid in enumerate(ids)
    )


def answer(question_id: str, correct: bool, minute: int = 0) -> AnswerHistoryEntry:
    return AnswerHistoryEntry(
        question_id=question_id,
        correct=correct,
        answered_at=datetime(2025, 3, 1, 8, minute, tzinfo=timezone.utc),
    )


class InMemoryQuizSource:
    """Question bank lookup backed by a dict."""

    def __init__(self, *banks: QuestionBank):
        self.banks = {bank.quiz_id: bank for bank in banks}

    def get_question_bank(self, quiz_id):
        return self.banks.get(quiz_id)


class InMemoryAdaptiveStore:
    """Adaptive repository fake keeping answers and mastery in memory."""

    def __init__(self, capabilities=None):
        self.capabilities = capabilities or StoreCapabilities()
        self.answers: list[tuple[str, str | None, AnswerHistoryEntry]] = []
        self.mastery: dict[tuple[str, str], MasterySnapshot] = {}
        self.submissions = []

    def find_answer_history(self, user_id, quiz_id):
        return [entry for uid, qid, entry in self.answers if uid == user_id and qid == quiz_id]

    def find_mastery(self, user_id, topic):
        return self.mastery.get((user_id, topic))

    def list_mastery(self, user_id):
        return [snap for (uid, _), snap in sorted(self.mastery.items()) if uid == user_id]

    def upsert_mastery_and_record_answer(self, user_id, submission, apply):
        current = self.mastery.get((user_id, submission.topic)) or MasterySnapshot(user_id=user_id, topic=submission.topic)
        update = apply(current)
        self.mastery[(user_id, submission.topic)] = MasterySnapshot(
            user_id=user_id,
            topic=submission.topic,
            rating=update.rating_after,
            streak=update.streak,
            total_answered=current.total_answered + 1,
            last_reviewed_at=update.reviewed_at,
            next_review_at=update.next_review_at,
        )
        self.answers.append(
            (
                user_id,
                submission.quiz_id,
                AnswerHistoryEntry(submission.question_id, submission.correct, update.reviewed_at),
            )
        )
        self.submissions.append(submission)
        return update
