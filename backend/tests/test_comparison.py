"""
Tests for the valuation comparison and scenario revenue.
"""

from __future__ import annotations

import pytest

from app.services.modeling.comparison import estimate_earnings_growth, run_valuation_comparison
from app.services.modeling.scenarios import build_scenario_revenue
from app.services.modeling.types import IncomeStatementRow, ScenarioMultipliers, ValuationMultiples


def _eps_rows(*eps_values):
    return [IncomeStatementRow(year=2024 + i, eps=e) for i, e in enumerate(eps_values)]


# ============================================================================
# Scenario revenue
# ============================================================================


def test_scenario_revenue_scales_growth():
    points = build_scenario_revenue([2024, 2025], {2024: 100, 2025: 120}, ScenarioMultipliers())
    assert len(points) == 1
    point = points[0]
    assert (point.year, point.bull, point.base, point.bear) == (2025, 124, 120, 116)


def test_scenario_revenue_without_prior_revenue_is_flat():
    points = build_scenario_revenue([2024, 2025], {2024: 0, 2025: 80}, ScenarioMultipliers())
    assert (points[0].bull, points[0].base, points[0].bear) == (80, 80, 80)


# ============================================================================
# Earnings growth
# ============================================================================


@pytest.mark.parametrize(
    "eps_values, expected",
    [
        ((1.0, 0.0, 1.5), 0.5),
        ((0.0, 2.0), 0.25),
        ((2.0, 0.0), -1.0),
        ((3.0,), 0.25),
    ],
)
def test_estimate_earnings_growth(eps_values, expected):
    assert estimate_earnings_growth(_eps_rows(*eps_values)) == pytest.approx(expected)


# ============================================================================
# Comparison
# ============================================================================


def _compare(eps_values, shares=100, dcf_price=50.0, current_price=45.0):
    years = [2024, 2025][: len(eps_values)]
    return run_valuation_comparison(
        years=years,
        annual_revenue={2024: 800, 2025: 1_000},
        income_statement=_eps_rows(*eps_values),
        shares_outstanding=shares,
        dcf_target_price=dcf_price,
        current_share_price=current_price,
        multiples=ValuationMultiples(),
        scenario_multipliers=ScenarioMultipliers(),
    )


def test_nine_targets_average_and_percent():
    result = _compare((1.0, 1.2))

    assert result.revenue_per_share == 10
    assert (result.pr_bull_target, result.pr_base_target, result.pr_bear_target) == (100, 75, 50)
    assert (result.pe_bull_target, result.pe_base_target, result.pe_bear_target) == (48, 36, 24)
    assert (result.dcf_bull_target, result.dcf_base_target, result.dcf_bear_target) == (60, 50, 40)
    assert result.average_target == 53.67
    assert result.percent_to_target == pytest.approx(0.1927)


def test_tiny_eps_gives_zero_pe_targets():
    result = _compare((0.0004, 0.0005))
    assert result.pe_bull_target == result.pe_base_target == result.pe_bear_target == 0


def test_guards_on_shares_and_current_price():
    result = _compare((1.0, 1.2), shares=0, current_price=0)
    assert result.revenue_per_share == 0
    assert result.pr_bull_target == 0
    assert result.percent_to_target == 0


def test_negative_growth_uses_one_percent_floor():
    result = _compare((2.0, 1.0))
    # growth -50% -> floored at 1%: 1.0 * 1 * 1.5
    assert result.pe_base_target == 1.5
