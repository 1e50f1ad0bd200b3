"""
Unit tests for PracticeEngine with in-memory collaborators.

The database-backed behaviour is covered in tests/integration.
"""

import random
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from quizwise.adaptive.engine import TABLES_MISSING_NOTICE, TABLES_NOT_FOUND_NOTICE, PracticeEngine
from quizwise.adaptive.models import AnswerSubmission, MasterySnapshot, QuestionBank, SelectionStrategy
from quizwise.adaptive.selector import QuestionSelector
from quizwise.core.exceptions import AnswerValidationError, QuizNotFoundError
from quizwise.core.schema_validator import StoreCapabilities
from tests.support import FIXED_NOW, InMemoryAdaptiveStore, InMemoryQuizSource, answer, make_questions


@pytest.fixture
def bank():
    return QuestionBank(quiz_id="quiz-1", topic="Optics", level="XII", questions=make_questions("a", "b", "c"))


@pytest.fixture
def practice(bank, memory_store, clock):
    return PracticeEngine(
        InMemoryQuizSource(bank),
        memory_store,
        selector=QuestionSelector(rng=random.Random(5)),
        clock=clock,
    )


class TestNextQuestion:
    def test_unknown_quiz_raises(self, practice):
        with pytest.raises(QuizNotFoundError):
            practice.next_question("u1", "missing")

    def test_quiz_without_questions_raises(self, memory_store):
        empty = QuestionBank(quiz_id="empty", topic=None, level=None, questions=())
        engine = PracticeEngine(InMemoryQuizSource(empty), memory_store)

        with pytest.raises(QuizNotFoundError) as exc_info:
            engine.next_question("u1", "empty")
        assert exc_info.value.reason == "Quiz has no questions"

    def test_topic_defaults_to_quiz_topic_then_general(self, practice, memory_store):
        assert practice.next_question("u1", "quiz-1").meta.topic == "Optics"
        assert practice.next_question("u1", "quiz-1", topic="Lenses").meta.topic == "Lenses"

        untitled = QuestionBank(quiz_id="q2", topic=None, level=None, questions=make_questions("x"))
        engine = PracticeEngine(InMemoryQuizSource(untitled), memory_store)
        assert engine.next_question("u1", "q2").meta.topic == "General"

    def test_exclude_id_is_merged_and_echoed(self, practice):
        result = practice.next_question("u1", "quiz-1", exclude=["a", "b"], exclude_id="c")

        assert result.question is None
        assert result.meta.excluded == "c"
        assert result.meta.excluded_count == 3

    def test_meta_shape(self, practice):
        data = practice.next_question("u1", "quiz-1", exclude=["a"]).to_dict()

        assert data["question"]["id"] in {"b", "c"}
        assert data["meta"] == {
            "quiz_id": "quiz-1",
            "topic": "Optics",
            "total_questions": 3,
            "unanswered_count": 2,
            "due": False,
            "strategy": "unanswered-first",
            "excluded": None,
            "excluded_count": 1,
        }

    def test_due_flag_from_mastery(self, practice, memory_store):
        memory_store.mastery[("u1", "Optics")] = MasterySnapshot(
            user_id="u1", topic="Optics", next_review_at=FIXED_NOW - timedelta(hours=1)
        )
        assert practice.next_question("u1", "quiz-1").meta.due is True

        memory_store.mastery[("u1", "Optics")] = MasterySnapshot(
            user_id="u1", topic="Optics", next_review_at=FIXED_NOW + timedelta(days=2)
        )
        assert practice.next_question("u1", "quiz-1").meta.due is False

    def test_weakest_first_after_everything_answered(self, practice, memory_store):
        memory_store.answers = [
            ("u1", "quiz-1", answer("a", True, 1)),
            ("u1", "quiz-1", answer("b", True, 2)),
            ("u1", "quiz-1", answer("c", True, 3)),
        ]
        result = practice.next_question("u1", "quiz-1")

        assert result.meta.strategy is SelectionStrategy.WEAKEST_FIRST
        assert result.meta.unanswered_count == 0
        assert result.question is not None

    def test_history_read_error_degrades_to_empty(self, practice, memory_store, monkeypatch):
        def broken(*args):
            raise OperationalError("SELECT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(memory_store, "find_answer_history", broken)
        monkeypatch.setattr(memory_store, "find_mastery", broken)

        result = practice.next_question("u1", "quiz-1")

        assert result.meta.strategy is SelectionStrategy.UNANSWERED_FIRST
        assert result.meta.unanswered_count == 3
        assert result.meta.due is False


class TestRecordAnswer:
    def test_first_correct_answer(self, practice, memory_store):
        outcome = practice.record_answer(
            "u1", AnswerSubmission(topic="Optics", correct=True, quiz_id="quiz-1", question_id="a")
        )

        assert outcome.persisted
        assert outcome.rating_before == 1200
        assert outcome.rating_after == pytest.approx(1212.0)
        assert outcome.streak == 1
        assert outcome.next_review_at == FIXED_NOW + timedelta(days=1)

        snapshot = memory_store.mastery[("u1", "Optics")]
        assert snapshot.total_answered == 1
        assert snapshot.last_reviewed_at == FIXED_NOW

    def test_level_sets_opponent_difficulty(self, practice):
        easy = practice.record_answer("u1", AnswerSubmission(topic="T1", correct=True, level="X"))
        hard = practice.record_answer("u1", AnswerSubmission(topic="T2", correct=True, level="XII"))

        assert hard.rating_after > easy.rating_after

    def test_streak_and_schedule_progression(self, practice):
        days = []
        for _ in range(3):
            outcome = practice.record_answer("u1", AnswerSubmission(topic="Optics", correct=True))
            days.append((outcome.next_review_at - FIXED_NOW).days)
        assert days == [1, 3, 7]

        miss = practice.record_answer("u1", AnswerSubmission(topic="Optics", correct=False))
        assert miss.streak == 0
        assert miss.next_review_at == FIXED_NOW + timedelta(days=1)

    @pytest.mark.parametrize(
        "submission",
        [
            AnswerSubmission(topic="", correct=True),
            AnswerSubmission(topic=None, correct=True),
            AnswerSubmission(topic="Optics", correct="yes"),
            AnswerSubmission(topic="Optics", correct=1),
            AnswerSubmission(topic="Optics", correct=True, question_id="a", essay_id="e"),
            AnswerSubmission(topic="Optics", correct=True, answer_index=4),
            AnswerSubmission(topic="Optics", correct=True, answer_index=True),
            AnswerSubmission(topic="Optics", correct=True, time_ms=-1),
        ],
    )
    def test_invalid_submission_touches_nothing(self, practice, memory_store, submission):
        with pytest.raises(AnswerValidationError):
            practice.record_answer("u1", submission)

        assert memory_store.mastery == {}
        assert memory_store.answers == []

    def test_missing_tables_skip_persistence(self, bank, clock):
        store = InMemoryAdaptiveStore(capabilities=StoreCapabilities(answers_table=False, mastery_table=True))
        engine = PracticeEngine(InMemoryQuizSource(bank), store, clock=clock)

        outcome = engine.record_answer("u1", AnswerSubmission(topic="Optics", correct=True))

        assert outcome.to_dict() == {"ok": True, "notice": TABLES_NOT_FOUND_NOTICE}
        assert store.mastery == {}

    def test_missing_relation_error_skips_persistence(self, practice, memory_store, monkeypatch):
        def missing(*args):
            raise OperationalError("INSERT", {}, Exception("no such table: user_answers"))

        monkeypatch.setattr(memory_store, "upsert_mastery_and_record_answer", missing)

        outcome = practice.record_answer("u1", AnswerSubmission(topic="Optics", correct=False))

        assert outcome.ok is True
        assert outcome.notice == TABLES_MISSING_NOTICE

    def test_other_write_errors_propagate(self, practice, memory_store, monkeypatch):
        def locked(*args):
            raise OperationalError("UPDATE", {}, Exception("database is locked"))

        monkeypatch.setattr(memory_store, "upsert_mastery_and_record_answer", locked)

        with pytest.raises(OperationalError):
            practice.record_answer("u1", AnswerSubmission(topic="Optics", correct=True))


class TestListMastery:
    def test_includes_due_flag(self, practice, memory_store):
        memory_store.mastery[("u1", "Optics")] = MasterySnapshot(
            user_id="u1", topic="Optics", rating=1300, next_review_at=FIXED_NOW - timedelta(days=1)
        )
        memory_store.mastery[("u2", "Optics")] = MasterySnapshot(user_id="u2", topic="Optics")

        rows = practice.list_mastery("u1")

        assert len(rows) == 1
        assert rows[0]["rating"] == 1300
        assert rows[0]["due"] is True
