"""
Tests for forward revenue forecasting (pure planning, no database).
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from app.services.modeling.forecaster import base_growth_rate, plan_forecast
from app.services.modeling.types import ScenarioMultipliers


def _period(year, amount, quarter=None, item="rev"):
    return SimpleNamespace(line_item_id=item, year=year, quarter=quarter, amount=amount)


def _plan(periods, years, decay=0.0, items=("rev",)):
    return plan_forecast(list(items), periods, years, decay, ScenarioMultipliers())


def _amounts(plan):
    return {(p.year, p.quarter): p.amount for p in plan.projections}


# ============================================================================
# Growth rate
# ============================================================================


def test_base_growth_rate_is_mean_of_yoy_ratios():
    assert base_growth_rate({2020: 100, 2021: 110, 2022: 132}) == pytest.approx(0.15)


def test_base_growth_rate_defaults_and_clamps():
    assert base_growth_rate({2020: 100}) == 0.05
    assert base_growth_rate({2020: 100, 2021: 1_000}) == 2.0
    assert base_growth_rate({2020: 100, 2021: 10}) == -0.5


# ============================================================================
# Fill strategies
# ============================================================================


def test_gaps_between_known_points_are_interpolated():
    plan = _plan([_period(2020, 100), _period(2023, 400)], [2020, 2021, 2022, 2023])
    assert _amounts(plan) == {(2021, None): 200, (2022, None): 300}
    assert {p.method for p in plan.projections} == {"interpolation"}


def test_quarterly_series_are_interpolated_per_quarter():
    plan = _plan(
        [_period(2020, 100, quarter=1), _period(2023, 400, quarter=1)],
        [2020, 2021, 2022, 2023],
    )
    assert _amounts(plan) == {(2021, 1): 200, (2022, 1): 300}


def test_forward_growth_decays_each_year():
    plan = _plan([_period(2020, 100), _period(2021, 110)], [2020, 2021, 2022, 2023], decay=0.5)
    amounts = _amounts(plan)
    assert amounts[(2022, None)] == pytest.approx(115.5)
    assert amounts[(2023, None)] == pytest.approx(118.39, abs=0.01)
    assert plan.forecasted_years == [2022, 2023]


def test_forward_growth_without_decay_compounds():
    plan = _plan([_period(2020, 100), _period(2021, 110)], [2020, 2021, 2022, 2023])
    amounts = _amounts(plan)
    assert amounts[(2022, None)] == pytest.approx(121)
    assert amounts[(2023, None)] == pytest.approx(133.1)


def test_years_before_first_known_point_are_back_filled():
    plan = _plan([_period(2021, 100), _period(2022, 110)], [2020, 2021, 2022])
    projection = plan.projections[0]
    assert projection.method == "backward"
    assert projection.amount == pytest.approx(90.91)


def test_single_known_point_uses_default_growth():
    plan = _plan([_period(2020, 100)], [2020, 2021])
    assert _amounts(plan) == {(2021, None): pytest.approx(105)}


def test_clamped_growth_is_applied_forward():
    plan = _plan([_period(2020, 100), _period(2021, 1_000)], [2020, 2021, 2022])
    assert _amounts(plan)[(2022, None)] == pytest.approx(3_000)


def test_zero_amount_periods_are_fillable():
    plan = _plan([_period(2020, 100), _period(2021, 0), _period(2022, 300)], [2020, 2021, 2022])
    assert _amounts(plan) == {(2021, None): 200}
    assert plan.fillable_slots == 1


def test_years_with_annual_amount_block_quarterly_fill():
    periods = [_period(2020, 25, quarter=q) for q in (1, 2, 3, 4)]
    periods += [_period(2021, 30, quarter=q) for q in (1, 2, 3, 4)]
    periods.append(_period(2022, 200))
    plan = _plan(periods, [2020, 2021, 2022, 2023])

    assert plan.forecasted_years == [2023]
    assert _amounts(plan) == {(2023, q): pytest.approx(36) for q in (1, 2, 3, 4)}


def test_nothing_to_fill():
    plan = _plan([_period(2020, 100), _period(2021, 110)], [2020, 2021])
    assert plan.projections == []
    assert plan.fillable_slots == 0


# ============================================================================
# Scenario revenue
# ============================================================================


def test_scenario_revenue_for_years_after_last_known():
    plan = _plan([_period(2020, 100), _period(2021, 110)], [2020, 2021, 2022])
    assert plan.scenario_revenues == {2022: {"bull": 123, "base": 121, "bear": 119}}


def test_interpolated_years_have_no_scenario_revenue():
    plan = _plan([_period(2020, 100), _period(2023, 400)], [2020, 2021, 2022, 2023])
    assert plan.scenario_revenues == {}


def test_growth_applied_is_mean_over_series():
    periods = [
        _period(2020, 100, item="a"), _period(2021, 110, item="a"),
        _period(2020, 100, item="b"), _period(2021, 130, item="b"),
    ]
    plan = _plan(periods, [2020, 2021, 2022], items=("a", "b"))
    assert plan.growth_applied == pytest.approx(0.2)
