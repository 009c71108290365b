"""
types.py — Shared Data Layer for Modeling Modules

Purpose:
- Define the typed records passed between projection stages.
- One record per statement row (income statement, balance sheet, cash flow),
  plus the engine inputs (cost assumptions, DCF parameters, multiples) and
  the valuation outputs.
- Provide helpers converting records to / from ORM rows.

Every stage works on plain dataclasses so it can be unit-tested without a
database.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional, Type, TypeVar


Year = int

T = TypeVar("T")


# -----------------------------------------------------------------------------
# Inputs
# -----------------------------------------------------------------------------


@dataclass
class CostPercentages:
    """Income statement cost structure as fractions of revenue."""
    cogs: float
    sales_marketing: float
    rd: float
    ga: float
    depreciation: float
    tax_rate: float

    def total_costs(self) -> float:
        return self.cogs + self.sales_marketing + self.rd + self.ga + self.depreciation


@dataclass
class AssumptionInputs:
    """
    Base-case assumptions resolved with engine fallbacks.

    Fallbacks match the values used when a model has no Assumptions row.
    """
    cogs_percent: float = 0.28
    sales_marketing_percent: float = 0.22
    rd_percent: float = 0.18
    ga_percent: float = 0.08
    depreciation_percent: float = 0.015
    tax_rate: float = 0.25
    ar_percent: float = 0.12
    ap_percent: float = 0.08
    capex_percent: float = 0.04
    initial_cash: float = 50_000_000

    def baseline_costs(self) -> CostPercentages:
        return CostPercentages(
            cogs=self.cogs_percent,
            sales_marketing=self.sales_marketing_percent,
            rd=self.rd_percent,
            ga=self.ga_percent,
            depreciation=self.depreciation_percent,
            tax_rate=self.tax_rate,
        )


@dataclass
class ScenarioMultipliers:
    bull: float = 1.2
    base: float = 1.0
    bear: float = 0.8


@dataclass
class DcfParameters:
    """User-set DCF parameters (defaults apply when no DcfValuation row exists)."""
    risk_free_rate: float = 0.043
    beta: float = 1.25
    market_return: float = 0.10
    cost_of_debt: float = 0.055
    tax_rate: float = 0.25
    equity_weight: float = 0.70
    debt_weight: float = 0.30
    long_term_growth: float = 0.025
    current_share_price: float = 45.0
    total_debt: float = 35_000_000


@dataclass
class ValuationMultiples:
    """P/R multiples and PEG ratios per scenario."""
    pr_bull_multiple: float = 10.0
    pr_base_multiple: float = 7.5
    pr_bear_multiple: float = 5.0
    pe_bull_peg: float = 2.0
    pe_base_peg: float = 1.5
    pe_bear_peg: float = 1.0


# -----------------------------------------------------------------------------
# Statement Rows
# -----------------------------------------------------------------------------


@dataclass
class IncomeStatementRow:
    year: Year
    is_actual: bool = False
    revenue: float = 0.0
    cogs: float = 0.0
    gross_profit: float = 0.0
    sales_marketing: float = 0.0
    research_development: float = 0.0
    general_admin: float = 0.0
    depreciation: float = 0.0
    total_expenses: float = 0.0
    operating_income: float = 0.0
    ebitda: float = 0.0
    other_income: float = 0.0
    pre_tax_income: float = 0.0
    income_tax: float = 0.0
    net_income: float = 0.0
    shares_outstanding: float = 0.0
    eps: float = 0.0
    non_gaap_eps: float = 0.0
    cogs_percent: float = 0.0
    sm_percent: float = 0.0
    rd_percent: float = 0.0
    ga_percent: float = 0.0
    depreciation_percent: float = 0.0
    tax_rate: float = 0.0


@dataclass
class BalanceSheetRow:
    year: Year
    is_actual: bool = False
    cash: float = 0.0
    short_term_investments: float = 0.0
    accounts_receivable: float = 0.0
    inventory: float = 0.0
    total_current_assets: float = 0.0
    equipment: float = 0.0
    depreciation_accum: float = 0.0
    capex: float = 0.0
    total_long_term_assets: float = 0.0
    total_assets: float = 0.0
    accounts_payable: float = 0.0
    short_term_debt: float = 0.0
    total_current_liabilities: float = 0.0
    long_term_debt: float = 0.0
    total_long_term_liabilities: float = 0.0
    total_liabilities: float = 0.0
    retained_earnings: float = 0.0
    common_shares: float = 0.0
    total_equity: float = 0.0
    total_liabilities_and_equity: float = 0.0
    ar_percent: float = 0.0
    inventory_percent: float = 0.0
    ap_percent: float = 0.0
    capex_percent: float = 0.0


@dataclass
class CashFlowRow:
    year: Year
    is_actual: bool = False
    net_income: float = 0.0
    depreciation_add: float = 0.0
    ar_change: float = 0.0
    inventory_change: float = 0.0
    ap_change: float = 0.0
    operating_cash_flow: float = 0.0
    capex: float = 0.0
    investing_cash_flow: float = 0.0
    short_term_debt_change: float = 0.0
    long_term_debt_change: float = 0.0
    common_shares_change: float = 0.0
    financing_cash_flow: float = 0.0
    net_cash_change: float = 0.0
    beginning_cash: float = 0.0
    ending_cash: float = 0.0
    free_cash_flow: float = 0.0


# -----------------------------------------------------------------------------
# Valuation Outputs
# -----------------------------------------------------------------------------


@dataclass
class DcfResult:
    parameters: DcfParameters
    shares_outstanding: float
    cost_of_equity: float
    wacc: float
    npv: float
    terminal_value: float
    terminal_value_discounted: float
    target_equity_value: float
    target_value: float
    target_price_per_share: float

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self.parameters)
        data.update({k: v for k, v in asdict(self).items() if k != "parameters"})
        return data


@dataclass
class ScenarioRevenuePoint:
    year: Year
    bull: float
    base: float
    bear: float


@dataclass
class ValuationResult:
    multiples: ValuationMultiples
    current_share_price: float
    revenue_per_share: float
    earnings_growth: float
    pr_bull_target: float
    pr_base_target: float
    pr_bear_target: float
    pe_bull_target: float
    pe_base_target: float
    pe_bear_target: float
    dcf_bull_target: float
    dcf_base_target: float
    dcf_bear_target: float
    average_target: float
    percent_to_target: float
    scenario_revenue: List[ScenarioRevenuePoint] = field(default_factory=list)

    def targets(self) -> List[float]:
        return [
            self.pr_bull_target, self.pr_base_target, self.pr_bear_target,
            self.pe_bull_target, self.pe_base_target, self.pe_bear_target,
            self.dcf_bull_target, self.dcf_base_target, self.dcf_bear_target,
        ]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self.multiples)
        data.update({k: v for k, v in asdict(self).items() if k != "multiples"})
        return data


# -----------------------------------------------------------------------------
# Record <-> ORM helpers
# -----------------------------------------------------------------------------


def record_from_orm(record_cls: Type[T], row: Any) -> T:
    """
    Build a statement record from an ORM row with matching column names.
    NULL numeric columns read as 0.
    """
    values: Dict[str, Any] = {}
    for f in fields(record_cls):
        value = getattr(row, f.name, None)
        if value is None and f.name not in ("year", "is_actual"):
            value = 0.0
        values[f.name] = value
    values["is_actual"] = bool(values.get("is_actual"))
    return record_cls(**values)


def record_to_columns(record: Any) -> Dict[str, Any]:
    """Column values for inserting a record as an ORM row."""
    return asdict(record)


def dataclass_from_orm(record_cls: Type[T], row: Optional[Any]) -> T:
    """
    Build a parameter dataclass (DcfParameters, ValuationMultiples, ...) from an
    ORM row, falling back to the dataclass default for missing / NULL values.
    """
    if row is None:
        return record_cls()
    values: Dict[str, Any] = {}
    for f in fields(record_cls):
        value = getattr(row, f.name, None)
        if value is not None:
            values[f.name] = float(value)
    return record_cls(**values)
