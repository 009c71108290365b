"""
cash_flow.py — Cash Flow Statement Derivation

Derives projected cash flow rows from the income statement and balance sheet
rows of the same run:

    operating  = net income + depreciation - dAR - dInventory + dAP
    investing  = -capex
    financing  = dShortTermDebt (0) + dLongTermDebt + dCommonShares (0)
    FCF        = operating + investing

Deltas are year-over-year changes of the balance sheet rows and are zero for
the first model year. Beginning cash is the prior year's balance sheet cash,
or the initial cash assumption for the first year.
"""

from typing import List, Mapping, Optional

from app.services.modeling.rounding import round_half_up
from app.services.modeling.types import (
    BalanceSheetRow,
    CashFlowRow,
    IncomeStatementRow,
    Year,
)


def derive_cash_flow_year(
    income: IncomeStatementRow,
    balance: BalanceSheetRow,
    prior_balance: Optional[BalanceSheetRow],
    initial_cash: float,
) -> CashFlowRow:
    """Derive one projected cash flow row."""
    net_income = income.net_income
    depreciation_add = income.depreciation

    if prior_balance is not None:
        ar_change = balance.accounts_receivable - prior_balance.accounts_receivable
        inventory_change = balance.inventory - prior_balance.inventory
        ap_change = balance.accounts_payable - prior_balance.accounts_payable
        long_term_debt_change = balance.long_term_debt - prior_balance.long_term_debt
        beginning_cash = prior_balance.cash
    else:
        ar_change = inventory_change = ap_change = long_term_debt_change = 0.0
        beginning_cash = initial_cash

    operating_cash_flow = net_income + depreciation_add - ar_change - inventory_change + ap_change
    capex = -balance.capex
    investing_cash_flow = capex
    short_term_debt_change = 0.0
    common_shares_change = 0.0
    financing_cash_flow = short_term_debt_change + long_term_debt_change + common_shares_change
    net_cash_change = operating_cash_flow + investing_cash_flow + financing_cash_flow
    ending_cash = beginning_cash + net_cash_change
    free_cash_flow = operating_cash_flow + investing_cash_flow

    return CashFlowRow(
        year=income.year,
        is_actual=False,
        net_income=round_half_up(net_income),
        depreciation_add=round_half_up(depreciation_add),
        ar_change=round_half_up(ar_change),
        inventory_change=round_half_up(inventory_change),
        ap_change=round_half_up(ap_change),
        operating_cash_flow=round_half_up(operating_cash_flow),
        capex=round_half_up(capex),
        investing_cash_flow=round_half_up(investing_cash_flow),
        short_term_debt_change=short_term_debt_change,
        long_term_debt_change=round_half_up(long_term_debt_change),
        common_shares_change=common_shares_change,
        financing_cash_flow=round_half_up(financing_cash_flow),
        net_cash_change=round_half_up(net_cash_change),
        beginning_cash=round_half_up(beginning_cash),
        ending_cash=round_half_up(ending_cash),
        free_cash_flow=round_half_up(free_cash_flow),
    )


def run_cash_flow(
    years: List[Year],
    income_statement: List[IncomeStatementRow],
    balance_sheet: List[BalanceSheetRow],
    initial_cash: float,
    actuals: Optional[Mapping[Year, CashFlowRow]] = None,
) -> List[CashFlowRow]:
    """
    Build the cash flow statement for every model year.

    `income_statement` and `balance_sheet` must hold one row per entry of
    `years`, in the same order.
    """
    actuals = actuals or {}
    rows: List[CashFlowRow] = []
    for idx, year in enumerate(years):
        if year in actuals:
            rows.append(actuals[year])
            continue
        prior_balance = balance_sheet[idx - 1] if idx > 0 else None
        rows.append(
            derive_cash_flow_year(
                income_statement[idx], balance_sheet[idx], prior_balance, initial_cash
            )
        )
    return rows
