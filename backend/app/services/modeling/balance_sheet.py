"""
balance_sheet.py — Balance Sheet Projection

Purpose:
- Copy actual balance sheet rows through unchanged.
- For every other year derive working capital (AR, inventory, AP) from
  revenue, step fixed-asset and debt balances linearly with the year index,
  roll retained earnings forward with net income, and solve cash.

Residual cash balancing:
- Cash is NOT derived from the cash flow statement. It is solved as whatever
  amount makes total assets equal total liabilities and equity. This is a
  balancing plug, and it means projected cash and the cash flow statement's
  ending cash can disagree.
- The plug lives behind `CashBalancer` so a cash-flow-driven balancer can be
  dropped in without touching the rest of the projection.

All lines are rounded to whole units before totals are taken, so
total_assets == total_liabilities_and_equity holds exactly.
"""

from abc import ABC, abstractmethod
from typing import List, Mapping, Optional

from app.core.logging import get_logger
from app.services.modeling.rounding import round_half_up
from app.services.modeling.types import (
    AssumptionInputs,
    BalanceSheetRow,
    IncomeStatementRow,
    Year,
)

logger = get_logger(__name__)

INVENTORY_PCT = 0.03

SHORT_TERM_INVESTMENTS_SEED = 10_000_000
SHORT_TERM_INVESTMENTS_STEP = 5_000_000
EQUIPMENT_SEED = 15_000_000
EQUIPMENT_STEP = 5_000_000
ACCUMULATED_DEPRECIATION_STEP = 3_000_000
SHORT_TERM_DEBT = 5_000_000
LONG_TERM_DEBT_SEED = 30_000_000
LONG_TERM_DEBT_STEP = 3_000_000
COMMON_SHARES = 100_000_000
OPENING_RETAINED_EARNINGS = 20_000_000


# -----------------------------------------------------------------------------
# Cash Balancing
# -----------------------------------------------------------------------------


class CashBalancer(ABC):
    """Strategy that decides the cash line of a projected balance sheet."""

    @abstractmethod
    def solve_cash(self, row: BalanceSheetRow, prior: Optional[BalanceSheetRow]) -> float:
        """
        Return cash for `row`. Every other line of `row` is already filled in;
        `prior` is the previous year's row (None for the first model year).
        """


class ResidualCashBalancer(CashBalancer):
    """Cash = total liabilities & equity minus every non-cash asset."""

    def solve_cash(self, row: BalanceSheetRow, prior: Optional[BalanceSheetRow]) -> float:
        non_cash_current = row.short_term_investments + row.accounts_receivable + row.inventory
        return row.total_liabilities_and_equity - non_cash_current - row.total_long_term_assets


# -----------------------------------------------------------------------------
# Projection
# -----------------------------------------------------------------------------


def project_balance_sheet_year(
    year: Year,
    year_index: int,
    revenue: float,
    net_income: float,
    assumptions: AssumptionInputs,
    prior: Optional[BalanceSheetRow],
    balancer: CashBalancer,
) -> BalanceSheetRow:
    """Derive one projected balance sheet row."""
    accounts_receivable = round_half_up(revenue * assumptions.ar_percent)
    inventory = round_half_up(revenue * INVENTORY_PCT)
    short_term_investments = SHORT_TERM_INVESTMENTS_SEED + year_index * SHORT_TERM_INVESTMENTS_STEP

    equipment = EQUIPMENT_SEED + year_index * EQUIPMENT_STEP
    depreciation_accum = year_index * ACCUMULATED_DEPRECIATION_STEP
    capex = round_half_up(revenue * assumptions.capex_percent)
    total_long_term_assets = equipment - depreciation_accum + capex

    accounts_payable = round_half_up(revenue * assumptions.ap_percent)
    short_term_debt = SHORT_TERM_DEBT
    total_current_liabilities = accounts_payable + short_term_debt
    long_term_debt = LONG_TERM_DEBT_SEED - year_index * LONG_TERM_DEBT_STEP
    total_long_term_liabilities = long_term_debt
    total_liabilities = total_current_liabilities + total_long_term_liabilities

    opening_re = prior.retained_earnings if prior is not None else OPENING_RETAINED_EARNINGS
    retained_earnings = round_half_up(opening_re + net_income)
    total_equity = COMMON_SHARES + retained_earnings
    total_liabilities_and_equity = total_liabilities + total_equity

    row = BalanceSheetRow(
        year=year,
        is_actual=False,
        short_term_investments=short_term_investments,
        accounts_receivable=accounts_receivable,
        inventory=inventory,
        equipment=equipment,
        depreciation_accum=depreciation_accum,
        capex=capex,
        total_long_term_assets=total_long_term_assets,
        accounts_payable=accounts_payable,
        short_term_debt=short_term_debt,
        total_current_liabilities=total_current_liabilities,
        long_term_debt=long_term_debt,
        total_long_term_liabilities=total_long_term_liabilities,
        total_liabilities=total_liabilities,
        retained_earnings=retained_earnings,
        common_shares=COMMON_SHARES,
        total_equity=total_equity,
        total_liabilities_and_equity=total_liabilities_and_equity,
        ar_percent=assumptions.ar_percent,
        inventory_percent=INVENTORY_PCT,
        ap_percent=assumptions.ap_percent,
        capex_percent=assumptions.capex_percent,
    )

    row.cash = balancer.solve_cash(row, prior)
    row.total_current_assets = row.cash + short_term_investments + accounts_receivable + inventory
    row.total_assets = row.total_current_assets + total_long_term_assets
    return row


def run_balance_sheet(
    years: List[Year],
    annual_revenue: Mapping[Year, float],
    income_statement: List[IncomeStatementRow],
    assumptions: AssumptionInputs,
    actuals: Optional[Mapping[Year, BalanceSheetRow]] = None,
    balancer: Optional[CashBalancer] = None,
) -> List[BalanceSheetRow]:
    """
    Build the balance sheet for every model year.

    Args:
        years: Model years in order
        annual_revenue: Output of the revenue aggregator
        income_statement: Rows from the income statement stage (same years)
        assumptions: Base-case working capital / capex drivers
        actuals: Existing actual rows by year; copied through unchanged
        balancer: Cash strategy (defaults to ResidualCashBalancer)

    Returns:
        One BalanceSheetRow per year
    """
    actuals = actuals or {}
    balancer = balancer or ResidualCashBalancer()
    net_income_by_year = {r.year: r.net_income for r in income_statement}

    rows: List[BalanceSheetRow] = []
    prior: Optional[BalanceSheetRow] = None
    for year_index, year in enumerate(years):
        if year in actuals:
            row = actuals[year]
        else:
            row = project_balance_sheet_year(
                year=year,
                year_index=year_index,
                revenue=annual_revenue.get(year, 0.0),
                net_income=net_income_by_year.get(year, 0.0),
                assumptions=assumptions,
                prior=prior,
                balancer=balancer,
            )
        rows.append(row)
        prior = row

    logger.debug("Balance sheet projected for %d years using %s", len(rows), type(balancer).__name__)
    return rows
