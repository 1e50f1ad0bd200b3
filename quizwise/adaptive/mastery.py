"""Apply one answer to a mastery snapshot: rating, then streak, then schedule."""

from __future__ import annotations

from datetime import datetime

from quizwise.adaptive.models import MasterySnapshot, MasteryUpdate
from quizwise.adaptive.rating import DEFAULT_OPPONENT_DIFFICULTY, update_rating, next_streak
from quizwise.adaptive.scheduler import next_review_date


def compute_mastery_update(
    snapshot: MasterySnapshot,
    correct: bool,
    now: datetime,
    opponent_difficulty: float = DEFAULT_OPPONENT_DIFFICULTY,
) -> MasteryUpdate:
    """
    Compute the new mastery values for one answer.

    Args:
        snapshot: Current values (defaults when the topic was never answered)
        correct: Whether the answer was correct
        now: Time of the answer, also the new last-reviewed time
        opponent_difficulty: Baseline difficulty of the quiz

    Returns:
        MasteryUpdate with the rating before/after, new streak and next review
    """
    rating_after = update_rating(snapshot.rating, correct, opponent_difficulty)
    streak = next_streak(snapshot.streak, correct)
    return MasteryUpdate(
        rating_before=snapshot.rating,
        rating_after=rating_after,
        streak=streak,
        reviewed_at=now,
        next_review_at=next_review_date(now, streak, correct),
    )
