"""
Unit tests for mapping a mean score to the published integer rating.
"""

import pytest

from rating_core.exceptions import InvariantError
from rating_core.rating.rating_engine import round_average_to_integer


class TestRoundAverageToInteger:
    """Test cases for round_average_to_integer."""

    @pytest.mark.parametrize(
        "average, expected",
        [
            (0.0, 0),
            (1.0, 1),
            (1.59, 1),
            (1.6, 2),
            (2.0, 2),
            (2.59, 2),
            (2.6, 3),
            (3.5, 3),
            (3.6, 4),
            (4.59, 4),
            (4.6, 5),
            (5.0, 5),
            (5.59, 5),
        ],
    )
    def test_bins(self, average, expected):
        assert round_average_to_integer(average) == expected

    def test_below_one_is_lowest_rating(self):
        # no ledger produces it, but a positive mean never reads as "unrated"
        assert round_average_to_integer(0.5) == 1

    @pytest.mark.parametrize("average", [5.6, 6.0, -0.1, float("nan"), float("inf")])
    def test_out_of_domain(self, average):
        with pytest.raises(InvariantError) as exc_info:
            round_average_to_integer(average)

        assert "out of range" in str(exc_info.value)

    def test_monotonic(self):
        averages = [i / 100 for i in range(0, 560)]
        ratings = [round_average_to_integer(a) for a in averages]

        assert ratings == sorted(ratings)
