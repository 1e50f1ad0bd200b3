"""
Adaptive Practice Models.

SQLAlchemy models for the adaptive practice system:
- Per-user, per-topic mastery (Elo rating, streak, review schedule)
- Append-only answer history
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, new_id, utcnow

DEFAULT_RATING = 1200.0


class UserMastery(Base):
    """
    Tracks the current skill estimate per learner per topic.

    Created lazily on the first answer for a topic and updated in place on
    every later answer. Rows are never deleted by the practice engine.
    """

    __tablename__ = "user_mastery"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    topic: Mapped[str] = mapped_column(Text, nullable=False)

    rating: Mapped[float] = mapped_column(Float, nullable=False, default=DEFAULT_RATING)  # 800-2000
    streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_answered: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    last_reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    next_review_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (UniqueConstraint("user_id", "topic", name="uq_user_topic"),)

    def __repr__(self) -> str:
        return f"<UserMastery user={self.user_id} topic={self.topic} rating={self.rating:.1f}>"


class UserAnswer(Base):
    """
    One submitted answer. Append-only.

    `mcq_id` is null for essay answers; `quiz_id` is kept as a plain column so
    history survives quiz deletion.
    """

    __tablename__ = "user_answers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    quiz_id: Mapped[str | None] = mapped_column(String(36))
    mcq_id: Mapped[str | None] = mapped_column(String(36))
    essay_id: Mapped[str | None] = mapped_column(String(36))
    topic: Mapped[str] = mapped_column(Text, nullable=False)

    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    answer_index: Mapped[int | None] = mapped_column(Integer)
    time_ms: Mapped[int | None] = mapped_column(Integer)

    rating_before: Mapped[float] = mapped_column(Float, nullable=False)
    rating_after: Mapped[float] = mapped_column(Float, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("idx_user_answers_user_quiz", "user_id", "quiz_id"),
        Index("idx_user_answers_user_topic", "user_id", "topic"),
    )

    def __repr__(self) -> str:
        return f"<UserAnswer user={self.user_id} mcq={self.mcq_id} correct={self.is_correct}>"
