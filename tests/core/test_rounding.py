"""Tests for half-up rounding."""

import pytest

from edutrack.core.rounding import round_half_up, round_to_int


@pytest.mark.parametrize(
    ("value", "expected"),
    [(12.5, 13), (0.5, 1), (2.5, 3), (46.666, 47), (49.4, 49), (0, 0), (100, 100)],
)
def test_round_to_int(value, expected):
    assert round_to_int(value) == expected


@pytest.mark.parametrize(
    ("value", "places", "expected"),
    [(33.333333, 2, 33.33), (1.005, 2, 1.01), (66.666666, 2, 66.67), (90.5, 0, 91.0)],
)
def test_round_half_up(value, places, expected):
    assert round_half_up(value, places) == expected


def test_builtin_round_differs():
    """Test the case the helper exists for: banker's rounding of halves."""
    assert round(12.5) == 12
    assert round_to_int(12.5) == 13
