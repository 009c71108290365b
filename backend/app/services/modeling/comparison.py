"""
comparison.py — Multiple-Based Valuation Comparison

Purpose:
- Put three valuation methods side by side for bull / base / bear:
    * Price / revenue:  revenue per share * P/R multiple
    * PEG-based P/E:    EPS * growth% * PEG
    * DCF:              DCF target price * scenario multiplier
- Average the nine targets and express the average against the current price.

Inputs:
- income statement rows (EPS series), last-year revenue, share count
- DCF target price and current share price from the DCF stage
- multiples from the stored comparison row (defaults otherwise)

Guards:
- revenue per share is 0 when shares <= 0
- P/E target is 0 when |EPS| < 0.001
- percent to target is 0 when the current price <= 0
"""

from typing import List, Mapping

from app.services.modeling.rounding import round_half_up
from app.services.modeling.scenarios import build_scenario_revenue
from app.services.modeling.types import (
    IncomeStatementRow,
    ScenarioMultipliers,
    ValuationMultiples,
    ValuationResult,
    Year,
)

DEFAULT_EARNINGS_GROWTH = 0.25
MIN_GROWTH_PCT = 1.0
EPS_EPSILON = 0.001


def estimate_earnings_growth(income_statement: List[IncomeStatementRow]) -> float:
    """
    YoY change between the latest two non-zero EPS values.

    Falls back to the latest two raw EPS values, then to 25% when no usable
    pair exists.
    """
    non_zero = [r.eps for r in income_statement if r.eps]
    if len(non_zero) >= 2:
        prev, last = non_zero[-2], non_zero[-1]
        return (last - prev) / abs(prev)

    if len(income_statement) >= 2:
        prev, last = income_statement[-2].eps, income_statement[-1].eps
        if prev:
            return (last - prev) / abs(prev)

    return DEFAULT_EARNINGS_GROWTH


def run_valuation_comparison(
    years: List[Year],
    annual_revenue: Mapping[Year, float],
    income_statement: List[IncomeStatementRow],
    shares_outstanding: float,
    dcf_target_price: float,
    current_share_price: float,
    multiples: ValuationMultiples,
    scenario_multipliers: ScenarioMultipliers,
) -> ValuationResult:
    """Compute the nine scenario x method targets and the scenario revenue series."""
    last_revenue = annual_revenue.get(years[-1], 0.0) if years else 0.0
    last_eps = income_statement[-1].eps if income_statement else 0.0

    revenue_per_share = last_revenue / shares_outstanding if shares_outstanding > 0 else 0.0
    earnings_growth = estimate_earnings_growth(income_statement)
    growth_pct = max(earnings_growth * 100, MIN_GROWTH_PCT)

    def _pe_target(peg: float) -> float:
        if abs(last_eps) < EPS_EPSILON:
            return 0.0
        return round_half_up(last_eps * growth_pct * peg, 2)

    pr_bull = round_half_up(revenue_per_share * multiples.pr_bull_multiple, 2)
    pr_base = round_half_up(revenue_per_share * multiples.pr_base_multiple, 2)
    pr_bear = round_half_up(revenue_per_share * multiples.pr_bear_multiple, 2)
    pe_bull = _pe_target(multiples.pe_bull_peg)
    pe_base = _pe_target(multiples.pe_base_peg)
    pe_bear = _pe_target(multiples.pe_bear_peg)
    dcf_bull = round_half_up(dcf_target_price * scenario_multipliers.bull, 2)
    dcf_base = round_half_up(dcf_target_price * scenario_multipliers.base, 2)
    dcf_bear = round_half_up(dcf_target_price * scenario_multipliers.bear, 2)

    targets = [pr_bull, pr_base, pr_bear, pe_bull, pe_base, pe_bear, dcf_bull, dcf_base, dcf_bear]
    average_target = round_half_up(sum(targets) / len(targets), 2)
    if current_share_price > 0:
        percent_to_target = round_half_up((average_target - current_share_price) / current_share_price, 4)
    else:
        percent_to_target = 0.0

    return ValuationResult(
        multiples=multiples,
        current_share_price=current_share_price,
        revenue_per_share=round_half_up(revenue_per_share, 4),
        earnings_growth=round_half_up(earnings_growth, 4),
        pr_bull_target=pr_bull,
        pr_base_target=pr_base,
        pr_bear_target=pr_bear,
        pe_bull_target=pe_bull,
        pe_base_target=pe_base,
        pe_bear_target=pe_bear,
        dcf_bull_target=dcf_bull,
        dcf_base_target=dcf_base,
        dcf_bear_target=dcf_bear,
        average_target=average_target,
        percent_to_target=percent_to_target,
        scenario_revenue=build_scenario_revenue(years, annual_revenue, scenario_multipliers),
    )
