"""
dcf.py — Discounted Cash Flow Valuation

Purpose:
- Discount the model's free cash flow series to a target share price.

Method:
    cost of equity = rf + beta * (market return - rf)              [CAPM]
    WACC           = ke * equity weight + kd * (1 - tax) * debt weight
    NPV            = sum(FCF_i / (1 + WACC)^i), i = 1..N
    terminal value = FCF_N * (1 + g) / (WACC - g)   if WACC > g else 0
    equity value   = NPV + TV / (1 + WACC)^N - total debt
    target price   = equity value / shares           (0 if shares <= 0)

Only derived fields are computed here; the parameters (rates, weights,
current price, debt) come from the stored DCF row and are passed through.
"""

from typing import List

from app.services.modeling.rounding import round_half_up
from app.services.modeling.types import DcfParameters, DcfResult


def cost_of_equity(params: DcfParameters) -> float:
    return params.risk_free_rate + params.beta * (params.market_return - params.risk_free_rate)


def weighted_average_cost_of_capital(params: DcfParameters) -> float:
    ke = cost_of_equity(params)
    return ke * params.equity_weight + params.cost_of_debt * (1 - params.tax_rate) * params.debt_weight


def run_dcf(
    params: DcfParameters,
    free_cash_flows: List[float],
    shares_outstanding: float,
) -> DcfResult:
    """
    Value the free cash flow series.

    Args:
        params: User-set DCF parameters
        free_cash_flows: FCF per model year, first year discounted one period
        shares_outstanding: Share count for the per-share target

    Returns:
        DcfResult with rates rounded to 4 decimals, values to whole units and
        the target price to cents
    """
    ke = cost_of_equity(params)
    wacc = weighted_average_cost_of_capital(params)
    g = params.long_term_growth

    npv = 0.0
    for i, fcf in enumerate(free_cash_flows, start=1):
        npv += fcf / (1 + wacc) ** i

    n = len(free_cash_flows)
    last_fcf = free_cash_flows[-1] if free_cash_flows else 0.0
    if wacc > g:
        terminal_value = last_fcf * (1 + g) / (wacc - g)
    else:
        terminal_value = 0.0
    terminal_value_discounted = terminal_value / (1 + wacc) ** n

    target_value = npv + terminal_value_discounted
    target_equity_value = target_value - params.total_debt
    target_price = target_equity_value / shares_outstanding if shares_outstanding > 0 else 0.0

    return DcfResult(
        parameters=params,
        shares_outstanding=shares_outstanding,
        cost_of_equity=round_half_up(ke, 4),
        wacc=round_half_up(wacc, 4),
        npv=round_half_up(npv),
        terminal_value=round_half_up(terminal_value),
        terminal_value_discounted=round_half_up(terminal_value_discounted),
        target_equity_value=round_half_up(target_equity_value),
        target_value=round_half_up(target_value),
        target_price_per_share=round_half_up(target_price, 2),
    )
