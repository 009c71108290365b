"""
Tests for statement rounding.
"""

from __future__ import annotations

import pytest

from app.services.modeling.rounding import round_half_up


@pytest.mark.parametrize(
    "value, digits, expected",
    [
        (2.5, 0, 3),
        (3.5, 0, 4),
        (-2.5, 0, -2),
        (-2.6, 0, -3),
        (0.125, 2, 0.13),
        (0.12, 2, 0.12),
        (0.5, 0, 1),
    ],
)
def test_halves_round_toward_positive_infinity(value, digits, expected):
    assert round_half_up(value, digits) == pytest.approx(expected)


def test_whole_amounts_are_unchanged():
    assert round_half_up(1_000_000.0) == 1_000_000
    assert round_half_up(0.0) == 0
