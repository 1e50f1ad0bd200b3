"""
Quiz persistence.

Maps QuizPayload documents to the quizzes / quiz_questions / essay_questions
tables and back. Each public method runs in its own transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload, sessionmaker

from quizwise.adaptive.models import QuestionBank, QuestionView
from quizwise.core.exceptions import QuizNotFoundError
from quizwise.db.database import session_scope
from quizwise.db.models import EssayQuestion, Quiz, QuizQuestion
from quizwise.quiz.schema import QuizMetadataPatch, QuizPayload


@dataclass(frozen=True)
class QuizPage:
    quizzes: list[dict[str, Any]]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.quizzes) < self.total

    def to_dict(self) -> dict[str, Any]:
        return {
            "quizzes": self.quizzes,
            "pagination": {
                "total": self.total,
                "limit": self.limit,
                "offset": self.offset,
                "has_more": self.has_more,
            },
        }


def _level_to_db(level: str) -> str:
    return level.upper()


def _level_from_db(level: str | None) -> str:
    if not level or level.upper() == "GENERAL":
        return "General"
    return level.upper()


def _build_questions(quiz: Quiz, payload: QuizPayload) -> None:
    quiz.multiple_choice = [
        QuizQuestion(
            position=idx,
            question=mcq.question,
            option_a=mcq.options[0],
            option_b=mcq.options[1],
            option_c=mcq.options[2],
            option_d=mcq.options[3],
            answer_index=mcq.answer_index,
            explanation=mcq.explanation,
        )
        for idx, mcq in enumerate(payload.multiple_choice)
    ]
    quiz.essays = [
        EssayQuestion(position=idx, question=essay.question, rubric=essay.rubric)
        for idx, essay in enumerate(payload.essay)
    ]


def _apply_metadata(quiz: Quiz, payload: QuizPayload) -> None:
    meta = payload.metadata
    quiz.topic = meta.topic
    quiz.level = _level_to_db(meta.level)
    quiz.status = meta.status.upper()
    quiz.title = meta.title
    quiz.description = meta.description
    quiz.author = meta.author


def quiz_to_payload(quiz: Quiz) -> dict[str, Any]:
    """Convert a loaded Quiz row (with questions) to the payload shape."""
    return {
        "id": quiz.id,
        "metadata": {
            "topic": quiz.topic,
            "level": _level_from_db(quiz.level),
            "status": (quiz.status or "DRAFT").lower(),
            "title": quiz.title,
            "description": quiz.description,
            "author": quiz.author,
            "created_at": quiz.created_at,
            "updated_at": quiz.updated_at,
        },
        "multiple_choice": [
            {
                "id": q.id,
                "question": q.question,
                "options": q.options,
                "answer_index": q.answer_index,
                "explanation": q.explanation,
            }
            for q in quiz.multiple_choice
        ],
        "essay": [{"id": e.id, "question": e.question, "rubric": e.rubric} for e in quiz.essays],
    }


class QuizRepository:
    """Quiz CRUD plus the read-only question bank used by the selector."""

    def __init__(self, session_factory: sessionmaker[Session], max_page_size: int = 100):
        self.session_factory = session_factory
        self.max_page_size = max_page_size

    def _load(self, session: Session, quiz_id: str) -> Quiz | None:
        stmt = (
            select(Quiz)
            .where(Quiz.id == quiz_id)
            .options(selectinload(Quiz.multiple_choice), selectinload(Quiz.essays))
        )
        return session.scalar(stmt)

    def create_quiz(self, payload: QuizPayload, user_id: str) -> dict[str, Any]:
        """Create a quiz together with its questions in one transaction."""
        with session_scope(self.session_factory) as session:
            quiz = Quiz(user_id=user_id)
            _apply_metadata(quiz, payload)
            _build_questions(quiz, payload)
            session.add(quiz)
            session.flush()
            logger.info(
                f"Created quiz {quiz.id} for {user_id}: "
                f"{len(quiz.multiple_choice)} MCQ, {len(quiz.essays)} essay"
            )
            return quiz_to_payload(quiz)

    def get_quiz(self, quiz_id: str) -> dict[str, Any] | None:
        with session_scope(self.session_factory) as session:
            quiz = self._load(session, quiz_id)
            return quiz_to_payload(quiz) if quiz else None

    def get_owner(self, quiz_id: str) -> str | None:
        with session_scope(self.session_factory) as session:
            return session.scalar(select(Quiz.user_id).where(Quiz.id == quiz_id))

    def list_quizzes(
        self,
        user_id: str,
        topic: str | None = None,
        level: str | None = None,
        status: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> QuizPage:
        """
        List a user's quizzes, newest first.

        Args:
            user_id: Owner of the quizzes
            topic: Case-insensitive substring filter
            level: X, XI, XII or General (any casing)
            status: draft, published or archived (any casing)
            limit: Page size, capped at max_page_size
            offset: Number of quizzes to skip
        """
        limit = max(1, min(limit, self.max_page_size))
        offset = max(0, offset)

        filters = [Quiz.user_id == user_id]
        if topic:
            filters.append(func.lower(Quiz.topic).contains(topic.lower()))
        if level:
            filters.append(Quiz.level == level.upper())
        if status:
            filters.append(Quiz.status == status.upper())

        with session_scope(self.session_factory) as session:
            total = session.scalar(select(func.count()).select_from(Quiz).where(*filters)) or 0
            stmt = (
                select(Quiz)
                .where(*filters)
                .options(selectinload(Quiz.multiple_choice), selectinload(Quiz.essays))
                .order_by(Quiz.created_at.desc(), Quiz.id)
                .limit(limit)
                .offset(offset)
            )
            quizzes = []
            for quiz in session.scalars(stmt):
                data = quiz_to_payload(quiz)
                data["question_counts"] = {
                    "mcq": len(quiz.multiple_choice),
                    "essay": len(quiz.essays),
                    "total": len(quiz.multiple_choice) + len(quiz.essays),
                }
                quizzes.append(data)
            return QuizPage(quizzes=quizzes, total=total, limit=limit, offset=offset)

    def update_quiz(self, quiz_id: str, payload: QuizPayload) -> dict[str, Any]:
        """Replace metadata and questions of an existing quiz."""
        with session_scope(self.session_factory) as session:
            quiz = self._load(session, quiz_id)
            if quiz is None:
                raise QuizNotFoundError(quiz_id)
            _apply_metadata(quiz, payload)
            _build_questions(quiz, payload)
            session.flush()
            logger.info(f"Replaced content of quiz {quiz_id}")
            return quiz_to_payload(quiz)

    def update_quiz_metadata(self, quiz_id: str, patch: QuizMetadataPatch) -> dict[str, Any]:
        """Update only the metadata fields present in the patch."""
        changes = patch.model_dump(exclude_unset=True)
        with session_scope(self.session_factory) as session:
            quiz = self._load(session, quiz_id)
            if quiz is None:
                raise QuizNotFoundError(quiz_id)
            for name, value in changes.items():
                if name == "level" and value is not None:
                    value = _level_to_db(value)
                elif name == "status" and value is not None:
                    value = value.upper()
                setattr(quiz, name, value)
            session.flush()
            return quiz_to_payload(quiz)

    def delete_quiz(self, quiz_id: str) -> bool:
        """Delete a quiz and its questions. Answer history is kept."""
        with session_scope(self.session_factory) as session:
            quiz = self._load(session, quiz_id)
            if quiz is None:
                return False
            session.delete(quiz)
        logger.info(f"Deleted quiz {quiz_id}")
        return True

    def get_question_bank(self, quiz_id: str) -> QuestionBank | None:
        """Load the ordered multiple choice questions of a quiz."""
        with session_scope(self.session_factory) as session:
            quiz = session.get(Quiz, quiz_id)
            if quiz is None:
                return None
            rows = session.scalars(
                select(QuizQuestion)
                .where(QuizQuestion.quiz_id == quiz_id)
                .order_by(QuizQuestion.position, QuizQuestion.id)
            ).all()
            questions = tuple(
                QuestionView(
                    id=q.id,
                    question=q.question,
                    options=tuple(q.options),
                    answer_index=q.answer_index,
                    explanation=q.explanation,
                )
                for q in rows
            )
            return QuestionBank(quiz_id=quiz.id, topic=quiz.topic, level=_level_from_db(quiz.level), questions=questions)
