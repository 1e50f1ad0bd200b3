"""
Unit tests for the Elo rating model.

Pure functions only; no database.
"""

import math

import pytest

from quizwise.adaptive.rating import (
    K_FACTOR,
    RATING_CEILING,
    RATING_FLOOR,
    difficulty_from_quiz_level,
    expected_score,
    next_streak,
    update_rating,
)


class TestUpdateRating:
    def test_even_match_correct_gains_half_k(self):
        assert update_rating(1200, True, 1200) == pytest.approx(1212.0)

    def test_even_match_incorrect_loses_half_k(self):
        assert update_rating(1200, False, 1200) == pytest.approx(1188.0)

    def test_default_opponent_is_1200(self):
        assert update_rating(1300, True) == update_rating(1300, True, 1200)

    def test_harder_opponent_rewards_more(self):
        easy = update_rating(1200, True, 1150) - 1200
        hard = update_rating(1200, True, 1350) - 1200
        assert hard > easy > 0

    def test_change_never_exceeds_k(self):
        for rating in (800, 1000, 1200, 1700, 2000):
            for opponent in (0, 1150, 1350, 5000):
                for correct in (True, False):
                    assert abs(update_rating(rating, correct, opponent) - rating) <= K_FACTOR

    def test_ceiling_clamp(self):
        assert update_rating(1995, True, 2000) == RATING_CEILING

    def test_floor_clamp(self):
        assert update_rating(805, False, 800) == RATING_FLOOR


class TestRatingBounds:
    @pytest.mark.parametrize("rating", [-1e9, -50.0, 0.0, 799.9, 1200.0, 2000.1, 1e9])
    @pytest.mark.parametrize("opponent", [-1e9, 0.0, 1200.0, 1e9])
    @pytest.mark.parametrize("correct", [True, False])
    def test_result_always_in_range(self, rating, opponent, correct):
        result = update_rating(rating, correct, opponent)
        assert math.isfinite(result)
        assert RATING_FLOOR <= result <= RATING_CEILING

    def test_extreme_difference_does_not_overflow(self):
        assert expected_score(800, 1e12) == pytest.approx(0.0)
        assert expected_score(1e12, 800) == pytest.approx(1.0)


class TestMonotonicity:
    @pytest.mark.parametrize("rating", [800, 950, 1200, 1640, 2000])
    @pytest.mark.parametrize("opponent", [1150, 1200, 1250, 1350])
    def test_correct_never_lowers_incorrect_never_raises(self, rating, opponent):
        assert update_rating(rating, True, opponent) >= rating
        assert update_rating(rating, False, opponent) <= rating

    @pytest.mark.parametrize("rating", [800.5, 801, 950, 1200, 1640, 1999, 1999.5])
    @pytest.mark.parametrize("opponent", [800, 1150, 1200, 1250, 1350, 2000])
    def test_correct_strictly_beats_incorrect_inside_bounds(self, rating, opponent):
        assert update_rating(rating, True, opponent) > update_rating(rating, False, opponent)


class TestDifficultyFromQuizLevel:
    @pytest.mark.parametrize(
        "level,expected",
        [
            ("X", 1150),
            ("XI", 1250),
            ("XII", 1350),
            ("xii", 1350),
            (" xi ", 1250),
            ("General", 1200),
            ("", 1200),
            (None, 1200),
            ("IX", 1200),
        ],
    )
    def test_policy_table(self, level, expected):
        assert difficulty_from_quiz_level(level) == expected


class TestNextStreak:
    def test_correct_increments(self):
        assert next_streak(0, True) == 1
        assert next_streak(4, True) == 5

    def test_incorrect_resets(self):
        assert next_streak(7, False) == 0
