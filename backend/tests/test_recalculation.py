"""
Tests for recalculate_model against an in-memory database.
"""

from __future__ import annotations

import pytest

from app.models import (
    BalanceSheetLine,
    CashFlowLine,
    DcfValuation,
    IncomeStatementLine,
    ScenarioRevenue,
    ValuationComparison,
)
from app.services import recalculation
from app.services.recalculation import ModelNotFoundError, recalculate_model
from conftest import add_assumptions, add_line_item, add_period, make_model


@pytest.fixture
def seeded_model(db):
    """2024-2026 model: 2024 is an actual year, 2025/2026 are projected."""
    model = make_model(db, start_year=2024, end_year=2026, shares_outstanding=1_000_000)
    add_assumptions(
        db, model,
        cogs_percent=0.30, sales_marketing_percent=0.20, rd_percent=0.15, ga_percent=0.10,
        depreciation_percent=0.01, tax_rate=0.25, capex_percent=0.05, ar_percent=0.15,
        ap_percent=0.15, initial_cash=100_000,
    )
    item = add_line_item(db, model)
    add_period(db, item, 2024, 1_000_000, is_actual=True)
    add_period(db, item, 2025, 1_200_000)
    add_period(db, item, 2026, 1_500_000)
    db.add(IncomeStatementLine(model_id=model.id, year=2024, is_actual=True, revenue=1_000_000, net_income=123))
    db.commit()
    return model


def _rows(db, table, model_id):
    return db.query(table).filter(table.model_id == model_id).order_by(table.year).all()


def _snapshot(row):
    return {c.name: getattr(row, c.name) for c in row.__table__.columns}


# ============================================================================
# Statements
# ============================================================================


def test_projected_income_statement_uses_stored_assumptions(db, seeded_model):
    result = recalculate_model(db, seeded_model.id)

    assert result.revenue == {2024: 1_000_000, 2025: 1_200_000, 2026: 1_500_000}
    by_year = {r.year: r for r in result.income_statement}
    assert by_year[2025].cogs == 360_000
    assert by_year[2025].gross_profit == 840_000
    assert by_year[2026].cogs == 450_000
    assert by_year[2026].gross_profit == 1_050_000


def test_actual_rows_are_left_untouched(db, seeded_model):
    recalculate_model(db, seeded_model.id)

    rows = _rows(db, IncomeStatementLine, seeded_model.id)
    actual = [r for r in rows if r.is_actual]
    assert len(actual) == 1
    assert actual[0].year == 2024
    assert actual[0].net_income == 123
    assert actual[0].cogs == 0


def test_actual_balance_sheet_and_cash_flow_rows_are_left_untouched(db, seeded_model):
    actual_bs = BalanceSheetLine(
        model_id=seeded_model.id, year=2024, is_actual=True,
        cash=777_777, accounts_receivable=12_345, total_assets=790_122,
        retained_earnings=790_122, total_equity=790_122, total_liabilities_and_equity=790_122,
    )
    actual_cf = CashFlowLine(
        model_id=seeded_model.id, year=2024, is_actual=True,
        net_income=123, operating_cash_flow=4_567, beginning_cash=1_000, ending_cash=5_690,
    )
    db.add_all([actual_bs, actual_cf])
    db.commit()
    before = {table: _snapshot(_rows(db, table, seeded_model.id)[0]) for table in (BalanceSheetLine, CashFlowLine)}

    recalculate_model(db, seeded_model.id)
    recalculate_model(db, seeded_model.id)
    db.expire_all()

    for table in (BalanceSheetLine, CashFlowLine):
        rows = _rows(db, table, seeded_model.id)
        assert _snapshot(rows[0]) == before[table]
        assert [(r.year, r.is_actual) for r in rows[1:]] == [(2025, False), (2026, False)]


def test_one_row_per_year_per_statement(db, seeded_model):
    recalculate_model(db, seeded_model.id)
    recalculate_model(db, seeded_model.id)

    for table in (IncomeStatementLine, BalanceSheetLine, CashFlowLine):
        years = [r.year for r in _rows(db, table, seeded_model.id)]
        assert years == [2024, 2025, 2026]


def test_recalculation_is_deterministic(db, seeded_model):
    first = recalculate_model(db, seeded_model.id).to_dict()
    second = recalculate_model(db, seeded_model.id).to_dict()
    assert first == second


def test_stored_balance_sheets_balance(db, seeded_model):
    recalculate_model(db, seeded_model.id)
    for row in _rows(db, BalanceSheetLine, seeded_model.id):
        assert row.total_assets == row.total_liabilities_and_equity


def test_balance_sheet_retained_earnings_start_from_actual_net_income(db, seeded_model):
    result = recalculate_model(db, seeded_model.id)
    assert result.balance_sheet[0].retained_earnings == 20_000_123


def test_actual_year_only_model_projects_zero_revenue_years(db):
    model = make_model(db, start_year=2024, end_year=2026)
    add_assumptions(db, model, cogs_percent=0.30)
    item = add_line_item(db, model)
    add_period(db, item, 2024, 1_000_000, is_actual=True)
    db.add(IncomeStatementLine(
        model_id=model.id, year=2024, is_actual=True,
        revenue=1_000_000, cogs=300_000, gross_profit=700_000,
    ))
    db.commit()
    actual_before = _snapshot(_rows(db, IncomeStatementLine, model.id)[0])

    result = recalculate_model(db, model.id)
    db.expire_all()

    assert result.revenue == {2024: 1_000_000, 2025: 0, 2026: 0}
    rows = _rows(db, IncomeStatementLine, model.id)
    assert [(r.year, r.is_actual) for r in rows] == [(2024, True), (2025, False), (2026, False)]
    assert _snapshot(rows[0]) == actual_before
    for row in rows[1:]:
        assert row.cogs == pytest.approx(row.revenue * 0.30)
        assert row.gross_profit == row.revenue - row.cogs
        assert row.revenue == 0


# ============================================================================
# Valuations
# ============================================================================


def test_dcf_parameters_survive_recalculation(db, seeded_model):
    db.add(DcfValuation(model_id=seeded_model.id, beta=2.0, current_share_price=30))
    db.commit()

    result = recalculate_model(db, seeded_model.id)

    stored = db.query(DcfValuation).filter(DcfValuation.model_id == seeded_model.id).one()
    assert stored.beta == 2.0
    assert stored.cost_of_equity == pytest.approx(0.157)
    assert stored.target_price_per_share == result.dcf.target_price_per_share
    assert result.valuation.current_share_price == 30


def test_valuation_rows_are_created_once(db, seeded_model):
    recalculate_model(db, seeded_model.id)
    recalculate_model(db, seeded_model.id)

    assert db.query(DcfValuation).filter(DcfValuation.model_id == seeded_model.id).count() == 1
    assert db.query(ValuationComparison).filter(ValuationComparison.model_id == seeded_model.id).count() == 1
    scenario_years = {
        r.year for r in db.query(ScenarioRevenue).filter(ScenarioRevenue.model_id == seeded_model.id)
    }
    assert scenario_years == {2025, 2026}


def test_missing_shares_fall_back_to_default(db):
    model = make_model(db, start_year=2024, end_year=2025, shares_outstanding=None)
    result = recalculate_model(db, model.id)
    assert result.dcf.shares_outstanding == 50_000_000


def test_model_without_inputs_still_recalculates(db):
    model = make_model(db, start_year=2024, end_year=2025)
    result = recalculate_model(db, model.id)
    assert result.revenue == {2024: 0, 2025: 0}
    assert len(result.cash_flow) == 2


# ============================================================================
# Errors
# ============================================================================


def test_unknown_model_raises(db):
    with pytest.raises(ModelNotFoundError):
        recalculate_model(db, "does-not-exist")


def test_failure_rolls_back_every_write(db, seeded_model, monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("dcf exploded")

    monkeypatch.setattr(recalculation, "run_dcf", _boom)

    with pytest.raises(RuntimeError, match="dcf exploded"):
        recalculate_model(db, seeded_model.id)

    rows = _rows(db, IncomeStatementLine, seeded_model.id)
    assert [(r.year, r.is_actual) for r in rows] == [(2024, True)]
    assert db.query(BalanceSheetLine).count() == 0
    assert db.query(CashFlowLine).count() == 0
