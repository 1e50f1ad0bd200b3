"""
Review scheduling (simplified spaced repetition).

A miss brings the topic back the next day. Consecutive hits space reviews
out: 1 day, 3 days, then round(1.9 ** streak) days, never more than 30.
"""

from __future__ import annotations

from datetime import datetime, timedelta

GROWTH_BASE = 1.9
MIN_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 3
MAX_INTERVAL_DAYS = 30

# 1.9 ** 6 already exceeds the cap; larger exponents would only risk overflow
_MAX_GROWTH_STREAK = 16


def review_interval_days(streak: int, correct: bool) -> int:
    """Whole days until the next review after an answer."""
    if not correct or streak <= 1:
        return MIN_INTERVAL_DAYS
    if streak == 2:
        return SECOND_INTERVAL_DAYS
    grown = round(GROWTH_BASE ** min(streak, _MAX_GROWTH_STREAK))
    return min(MAX_INTERVAL_DAYS, grown)


def next_review_date(current: datetime, streak_after_answer: int, correct: bool) -> datetime:
    """
    Compute when the topic becomes eligible for review again.

    Args:
        current: Time of the answer
        streak_after_answer: Streak including this answer
        correct: Whether the answer was correct

    Returns:
        `current` plus a whole number of days (same time of day)
    """
    return current + timedelta(days=review_interval_days(streak_after_answer, correct))
