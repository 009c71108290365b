"""
recalculation.py — Recalculation & Forward Forecast Orchestrator

Purpose:
- `recalculate_model`: rebuild every projected statement row of a model and
  refresh its DCF and valuation comparison.
- `forecast_forward`: fill empty revenue periods from historical growth, then
  run the full recalculation.

Pipeline (each stage consumes the previous stage's rows for the same year):
    revenue aggregation -> income statement -> balance sheet -> cash flow
    -> DCF -> valuation comparison

Transactions:
- One call is one transaction. Nothing is committed until every stage and
  every write has succeeded; any error rolls the session back and is
  re-raised unchanged.

Concurrency:
- The engine takes no locks. Callers must hold
  `app.core.locks.model_lock(model_id)` for the duration of the call.

This module does NOT:
- Touch actual statement rows, assumptions or revenue line items.
- Fetch external data.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.logging import get_logger
from app.models import (
    BalanceSheetLine,
    CashFlowLine,
    DcfValuation,
    FinancialModel,
    IncomeStatementLine,
    ValuationComparison,
)
from app.services.model_repository import ModelRepository
from app.services.modeling.balance_sheet import run_balance_sheet
from app.services.modeling.cash_flow import run_cash_flow
from app.services.modeling.comparison import run_valuation_comparison
from app.services.modeling.dcf import run_dcf
from app.services.modeling.forecaster import plan_forecast
from app.services.modeling.income_statement import run_income_statement
from app.services.modeling.revenue import aggregate_annual_revenue
from app.services.modeling.scenarios import points_to_mapping
from app.services.modeling.types import (
    AssumptionInputs,
    BalanceSheetRow,
    CashFlowRow,
    DcfParameters,
    DcfResult,
    IncomeStatementRow,
    ScenarioMultipliers,
    ValuationMultiples,
    ValuationResult,
    Year,
    dataclass_from_orm,
)

logger = get_logger(__name__)

COMPARISON_SOURCE = "comparison"
FORECAST_SOURCE = "forecast"


class ModelNotFoundError(Exception):
    """Raised when a model id does not resolve."""
    pass


class ForecastPreconditionError(Exception):
    """Raised when a model has nothing the forward forecaster can work from."""
    pass


# -----------------------------------------------------------------------------
# Results
# -----------------------------------------------------------------------------


@dataclass
class RecalculationResult:
    revenue: Dict[Year, float]
    income_statement: List[IncomeStatementRow]
    balance_sheet: List[BalanceSheetRow]
    cash_flow: List[CashFlowRow]
    dcf: DcfResult
    valuation: ValuationResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "revenue": dict(self.revenue),
            "income_statement": [asdict(r) for r in self.income_statement],
            "balance_sheet": [asdict(r) for r in self.balance_sheet],
            "cash_flow": [asdict(r) for r in self.cash_flow],
            "dcf": self.dcf.to_dict(),
            "valuation": self.valuation.to_dict(),
        }


@dataclass
class ForecastForwardResult:
    forecasted_years: List[Year]
    periods_created: int
    periods_updated: int
    growth_applied: float
    growth_decay_rate: float
    scenario_revenues: Dict[Year, Dict[str, float]]
    recalculation: RecalculationResult = field(repr=False)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "forecasted_years": self.forecasted_years,
            "periods_created": self.periods_created,
            "periods_updated": self.periods_updated,
            "growth_applied": self.growth_applied,
            "growth_decay_rate": self.growth_decay_rate,
            "scenario_revenues": self.scenario_revenues,
        }
        data.update(self.recalculation.to_dict())
        return data


# -----------------------------------------------------------------------------
# Input resolution
# -----------------------------------------------------------------------------


def _resolve_assumptions(row) -> AssumptionInputs:
    """Base-case Assumptions row -> AssumptionInputs (fallbacks when absent)."""
    if row is None:
        return AssumptionInputs()
    defaults = AssumptionInputs()
    values = {}
    for name in asdict(defaults):
        value = getattr(row, name, None)
        values[name] = float(value) if value is not None else getattr(defaults, name)
    return AssumptionInputs(**values)


def _shares_outstanding(model: FinancialModel) -> float:
    if model.shares_outstanding is None:
        return float(settings.DEFAULT_SHARES_OUTSTANDING)
    return float(model.shares_outstanding)


def _scenario_multipliers(model: FinancialModel) -> ScenarioMultipliers:
    defaults = ScenarioMultipliers()
    return ScenarioMultipliers(
        bull=model.scenario_bull_multiplier if model.scenario_bull_multiplier is not None else defaults.bull,
        base=model.scenario_base_multiplier if model.scenario_base_multiplier is not None else defaults.base,
        bear=model.scenario_bear_multiplier if model.scenario_bear_multiplier is not None else defaults.bear,
    )


def _load_model(repo: ModelRepository, model_id: str) -> FinancialModel:
    model = repo.get_model(model_id)
    if model is None:
        raise ModelNotFoundError(f"Model not found: {model_id}")
    return model


# -----------------------------------------------------------------------------
# Pipeline
# -----------------------------------------------------------------------------


def _run_pipeline(repo: ModelRepository, model: FinancialModel) -> RecalculationResult:
    """All stages plus writes, without committing."""
    model_id = model.id
    years = model.years
    shares = _shares_outstanding(model)

    line_items = repo.list_line_items(model_id)
    periods = repo.list_periods(model_id)
    assumptions = _resolve_assumptions(repo.get_base_assumptions(model_id))

    annual_revenue = aggregate_annual_revenue([li.id for li in line_items], periods, years)

    income_statement = run_income_statement(
        years=years,
        annual_revenue=annual_revenue,
        baseline=assumptions.baseline_costs(),
        shares_outstanding=shares,
        target_net_margin=model.target_net_margin,
        actuals=repo.actual_records(model_id, IncomeStatementLine, IncomeStatementRow),
    )
    balance_sheet = run_balance_sheet(
        years=years,
        annual_revenue=annual_revenue,
        income_statement=income_statement,
        assumptions=assumptions,
        actuals=repo.actual_records(model_id, BalanceSheetLine, BalanceSheetRow),
    )
    cash_flow = run_cash_flow(
        years=years,
        income_statement=income_statement,
        balance_sheet=balance_sheet,
        initial_cash=assumptions.initial_cash,
        actuals=repo.actual_records(model_id, CashFlowLine, CashFlowRow),
    )

    repo.replace_projected_rows(model_id, IncomeStatementLine, income_statement)
    repo.replace_projected_rows(model_id, BalanceSheetLine, balance_sheet)
    repo.replace_projected_rows(model_id, CashFlowLine, cash_flow)

    # DCF: parameters persist from the stored row, outputs are recomputed
    existing_dcf = repo.get_dcf(model_id)
    dcf_params = dataclass_from_orm(DcfParameters, existing_dcf)
    dcf = run_dcf(dcf_params, [r.free_cash_flow for r in cash_flow], shares)
    dcf_values = dcf.to_dict()
    repo.upsert(existing_dcf, DcfValuation, model_id, dcf_values)

    existing_comparison = repo.get_comparison(model_id)
    multiples = dataclass_from_orm(ValuationMultiples, existing_comparison)
    valuation = run_valuation_comparison(
        years=years,
        annual_revenue=annual_revenue,
        income_statement=income_statement,
        shares_outstanding=shares,
        dcf_target_price=dcf.target_price_per_share,
        current_share_price=dcf_params.current_share_price,
        multiples=multiples,
        scenario_multipliers=_scenario_multipliers(model),
    )
    comparison_values = valuation.to_dict()
    comparison_values.pop("scenario_revenue")
    repo.upsert(existing_comparison, ValuationComparison, model_id, comparison_values)
    repo.replace_scenario_revenue(
        model_id, COMPARISON_SOURCE, points_to_mapping(valuation.scenario_revenue)
    )

    logger.info(
        "Model %s recalculated: %d years, DCF target %.2f, average target %.2f",
        model_id, len(years), dcf.target_price_per_share, valuation.average_target,
    )
    return RecalculationResult(
        revenue=annual_revenue,
        income_statement=income_statement,
        balance_sheet=balance_sheet,
        cash_flow=cash_flow,
        dcf=dcf,
        valuation=valuation,
    )


# -----------------------------------------------------------------------------
# Entry Points
# -----------------------------------------------------------------------------


def recalculate_model(db: Session, model_id: str) -> RecalculationResult:
    """
    Regenerate projected statements, DCF and valuation comparison for a model.

    Raises:
        ModelNotFoundError: If `model_id` does not resolve
    """
    logger.info("Recalculating model %s", model_id)
    repo = ModelRepository(db)
    try:
        model = _load_model(repo, model_id)
        result = _run_pipeline(repo, model)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return result


def forecast_forward(db: Session, model_id: str) -> ForecastForwardResult:
    """
    Fill empty revenue periods from historical growth, then recalculate.

    Raises:
        ModelNotFoundError: If `model_id` does not resolve
        ForecastPreconditionError: If there is nothing to forecast from or to
    """
    logger.info("Forecasting forward for model %s", model_id)
    repo = ModelRepository(db)
    try:
        model = _load_model(repo, model_id)

        line_items = repo.list_line_items(model_id)
        if not line_items:
            raise ForecastPreconditionError(
                "No revenue line items found. Add at least one revenue stream before forecasting."
            )
        periods = repo.list_periods(model_id)
        if not any((p.amount or 0) > 0 for p in periods):
            raise ForecastPreconditionError(
                "No revenue data found. Enter at least one revenue amount before forecasting."
            )

        decay_rate = model.growth_decay_rate or 0.0
        plan = plan_forecast(
            line_item_ids=[li.id for li in line_items],
            periods=periods,
            years=model.years,
            decay_rate=decay_rate,
            multipliers=_scenario_multipliers(model),
        )
        if plan.fillable_slots == 0:
            raise ForecastPreconditionError(
                "No empty revenue periods to forecast. Every period in the model range already has data."
            )
        if not plan.projections:
            raise ForecastPreconditionError("No projections could be generated from the revenue data.")

        counts = repo.upsert_periods(model_id, plan.projections)
        logger.info(
            "Model %s: %d periods projected (%d new, %d updated) across years %s",
            model_id, len(plan.projections), counts["created"], counts["updated"],
            plan.forecasted_years,
        )

        recalculation = _run_pipeline(repo, model)
        repo.merge_scenario_revenue(model_id, FORECAST_SOURCE, plan.scenario_revenues)
        scenario_revenues = repo.list_scenario_revenue(model_id, FORECAST_SOURCE)
        db.commit()
    except Exception:
        db.rollback()
        raise

    return ForecastForwardResult(
        forecasted_years=plan.forecasted_years,
        periods_created=counts["created"],
        periods_updated=counts["updated"],
        growth_applied=plan.growth_applied,
        growth_decay_rate=decay_rate,
        scenario_revenues=scenario_revenues,
        recalculation=recalculation,
    )
