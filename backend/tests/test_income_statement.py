"""
Tests for income statement projection and the margin glide path.
"""

from __future__ import annotations

import pytest

from app.services.modeling.income_statement import (
    MIN_COST_PCT,
    glide_path_percentages,
    implied_net_margin,
    project_income_statement_year,
    run_income_statement,
)
from app.services.modeling.types import AssumptionInputs, CostPercentages, IncomeStatementRow


@pytest.fixture
def baseline() -> CostPercentages:
    return AssumptionInputs().baseline_costs()


# ============================================================================
# Single-year projection
# ============================================================================


def test_projected_year_with_default_costs(baseline):
    row = project_income_statement_year(2025, 1_000_000, baseline, 1_000_000)

    assert row.is_actual is False
    assert row.revenue == 1_000_000
    assert row.cogs == 280_000
    assert row.gross_profit == 720_000
    assert row.total_expenses == 495_000
    assert row.operating_income == 225_000
    assert row.ebitda == 240_000
    assert row.other_income == 2_000
    assert row.pre_tax_income == 227_000
    assert row.income_tax == 56_750
    assert row.net_income == 170_250
    assert row.eps == 0.17
    assert row.non_gaap_eps == 0.2


def test_no_tax_on_a_pre_tax_loss():
    pct = CostPercentages(cogs=0.9, sales_marketing=0.3, rd=0.0, ga=0.0, depreciation=0.0, tax_rate=0.25)
    row = project_income_statement_year(2025, 1_000, pct, 10)
    assert row.pre_tax_income < 0
    assert row.income_tax == 0
    assert row.net_income == row.pre_tax_income


def test_zero_shares_gives_zero_eps(baseline):
    row = project_income_statement_year(2025, 1_000_000, baseline, 0)
    assert row.eps == 0
    assert row.non_gaap_eps == 0


def test_exact_halves_round_up(baseline):
    row = project_income_statement_year(2025, 1_250, baseline, 1.0)
    assert row.other_income == 3


def test_eps_half_cent_rounds_up():
    no_costs = CostPercentages(cogs=0.0, sales_marketing=0.0, rd=0.0, ga=0.0, depreciation=0.0, tax_rate=0.0)
    row = project_income_statement_year(2025, 1_000, no_costs, 8_016)
    assert row.net_income == 1_002
    assert row.eps == 0.13


# ============================================================================
# Glide path
# ============================================================================


def test_target_equal_to_implied_margin_leaves_costs_unchanged(baseline):
    target = implied_net_margin(baseline)
    for idx in range(5):
        assert glide_path_percentages(baseline, idx, 5, target) == baseline


def test_no_target_or_single_year_disables_glide(baseline):
    assert glide_path_percentages(baseline, 3, 5, None) == baseline
    assert glide_path_percentages(baseline, 0, 1, 0.5) == baseline


def test_glide_reaches_target_margin_in_last_year(baseline):
    years = [2024, 2025, 2026, 2027]
    revenue = {y: 1_000_000 for y in years}
    rows = run_income_statement(years, revenue, baseline, 1_000_000, target_net_margin=0.30)

    first, last = rows[0], rows[-1]
    assert first.cogs_percent == pytest.approx(baseline.cogs)
    assert first.sm_percent == pytest.approx(baseline.sales_marketing)
    assert last.net_income / last.revenue == pytest.approx(0.30, abs=1e-4)
    # depreciation never moves
    assert all(r.depreciation_percent == baseline.depreciation for r in rows)
    # margin improves monotonically toward the target
    margins = [r.net_income / r.revenue for r in rows]
    assert margins == sorted(margins)


def test_glide_floors_cost_percentages(baseline):
    pct = glide_path_percentages(baseline, 4, 5, 0.9)
    assert pct.cogs == MIN_COST_PCT
    assert pct.sales_marketing == MIN_COST_PCT
    assert pct.rd == MIN_COST_PCT
    assert pct.ga == MIN_COST_PCT


def test_full_tax_rate_disables_glide():
    pct = CostPercentages(cogs=0.3, sales_marketing=0.2, rd=0.1, ga=0.1, depreciation=0.01, tax_rate=1.0)
    assert glide_path_percentages(pct, 2, 3, 0.2) == pct


# ============================================================================
# Actual rows
# ============================================================================


def test_actual_rows_are_copied_through(baseline):
    actual = IncomeStatementRow(year=2024, is_actual=True, revenue=5.0, net_income=1.0)
    rows = run_income_statement(
        [2024, 2025], {2024: 1_000_000, 2025: 1_000_000}, baseline, 1_000_000,
        actuals={2024: actual},
    )
    assert rows[0] is actual
    assert rows[1].is_actual is False
    assert rows[1].revenue == 1_000_000
