"""
Elo-style skill rating.

    expected = 1 / (1 + 10^((D - R) / 400))
    R' = clamp(R + K * (actual - expected), 800, 2000)

The learner plays against the quiz: D is a baseline difficulty looked up from
the quiz level, not a per-question estimate.
"""

from __future__ import annotations

K_FACTOR = 24
ELO_SCALE = 400.0
RATING_FLOOR = 800.0
RATING_CEILING = 2000.0
DEFAULT_RATING = 1200.0
DEFAULT_OPPONENT_DIFFICULTY = 1200.0

# Keeps 10 ** exponent finite for any finite rating/difficulty pair
_MAX_EXPONENT = 300.0

# Quiz level -> opponent baseline. Policy table, independent of the update rule.
LEVEL_DIFFICULTY = {
    "X": 1150.0,
    "XI": 1250.0,
    "XII": 1350.0,
}


def clamp_rating(rating: float) -> float:
    return max(RATING_FLOOR, min(RATING_CEILING, rating))


def expected_score(rating: float, opponent_difficulty: float = DEFAULT_OPPONENT_DIFFICULTY) -> float:
    """Probability of a correct answer given the learner's rating."""
    exponent = (opponent_difficulty - rating) / ELO_SCALE
    exponent = max(-_MAX_EXPONENT, min(_MAX_EXPONENT, exponent))
    return 1.0 / (1.0 + 10.0**exponent)


def update_rating(
    current_rating: float,
    correct: bool,
    opponent_difficulty: float = DEFAULT_OPPONENT_DIFFICULTY,
) -> float:
    """
    Apply one Elo update and clamp the result to [800, 2000].

    Args:
        current_rating: Rating before the answer
        correct: Whether the answer was correct
        opponent_difficulty: Baseline difficulty of the quiz

    Returns:
        New rating, always inside the bound
    """
    expected = expected_score(current_rating, opponent_difficulty)
    actual = 1.0 if correct else 0.0
    return clamp_rating(current_rating + K_FACTOR * (actual - expected))


def difficulty_from_quiz_level(level: str | None) -> float:
    """Map a quiz level (X, XI, XII, General) to its opponent baseline."""
    return LEVEL_DIFFICULTY.get((level or "").strip().upper(), DEFAULT_OPPONENT_DIFFICULTY)


def next_streak(streak: int, correct: bool) -> int:
    """Consecutive-correct counter: +1 on a hit, back to 0 on a miss."""
    return max(0, streak) + 1 if correct else 0
