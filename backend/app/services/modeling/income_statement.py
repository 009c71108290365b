"""
income_statement.py — Income Statement Projection

Purpose:
- Copy actual income statement rows through unchanged.
- Project a full P&L for every other year from annual revenue and the
  base-case cost percentages.
- Optionally walk the cost percentages along a margin glide path so the last
  model year lands on the model's target net margin.

Glide path:
    current_margin = (1 - sum(baseline costs) + OTHER_INCOME_PCT) * (1 - tax)
    gap            = target - current_margin
    shift          = -gap / (1 - tax)
    pct(year)      = max(MIN_COST_PCT, baseline + shift * weight * progress)
    progress       = year_index / (total_years - 1)

Depreciation is never moved by the glide path.
"""

from typing import Dict, List, Mapping, Optional

from app.core.logging import get_logger
from app.services.modeling.rounding import round_half_up
from app.services.modeling.types import (
    CostPercentages,
    IncomeStatementRow,
    Year,
)

logger = get_logger(__name__)

OTHER_INCOME_PCT = 0.002
NON_GAAP_EPS_FACTOR = 1.15
MIN_COST_PCT = 0.01
MARGIN_GAP_TOLERANCE = 0.001

# Share of the margin shift absorbed by each cost line
GLIDE_WEIGHTS: Dict[str, float] = {
    "cogs": 0.30,
    "sales_marketing": 0.35,
    "rd": 0.20,
    "ga": 0.15,
}


def implied_net_margin(baseline: CostPercentages) -> float:
    """Net margin produced by the baseline cost structure."""
    return (1 - baseline.total_costs() + OTHER_INCOME_PCT) * (1 - baseline.tax_rate)


def glide_path_percentages(
    baseline: CostPercentages,
    year_index: int,
    total_years: int,
    target_net_margin: Optional[float],
) -> CostPercentages:
    """
    Cost percentages for one model year.

    Returns the baseline unchanged when no target is set, the model spans a
    single year, the target is already met, or the tax rate leaves no
    after-tax margin to steer.
    """
    if target_net_margin is None or total_years <= 1:
        return baseline
    if baseline.tax_rate >= 1:
        return baseline

    margin_gap = target_net_margin - implied_net_margin(baseline)
    if abs(margin_gap) < MARGIN_GAP_TOLERANCE:
        return baseline

    shift = -margin_gap / (1 - baseline.tax_rate)
    progress = year_index / (total_years - 1)

    def _step(value: float, weight: float) -> float:
        return max(MIN_COST_PCT, value + shift * weight * progress)

    return CostPercentages(
        cogs=_step(baseline.cogs, GLIDE_WEIGHTS["cogs"]),
        sales_marketing=_step(baseline.sales_marketing, GLIDE_WEIGHTS["sales_marketing"]),
        rd=_step(baseline.rd, GLIDE_WEIGHTS["rd"]),
        ga=_step(baseline.ga, GLIDE_WEIGHTS["ga"]),
        depreciation=baseline.depreciation,
        tax_rate=baseline.tax_rate,
    )


def project_income_statement_year(
    year: Year,
    revenue: float,
    pct: CostPercentages,
    shares_outstanding: float,
) -> IncomeStatementRow:
    """Derive one projected P&L row. Money rounds to whole units, EPS to cents."""
    cogs = revenue * pct.cogs
    gross_profit = revenue - cogs
    sales_marketing = revenue * pct.sales_marketing
    rd = revenue * pct.rd
    ga = revenue * pct.ga
    depreciation = revenue * pct.depreciation
    total_expenses = sales_marketing + rd + ga + depreciation
    operating_income = gross_profit - total_expenses
    ebitda = operating_income + depreciation
    other_income = revenue * OTHER_INCOME_PCT
    pre_tax_income = operating_income + other_income
    income_tax = max(0.0, pre_tax_income) * pct.tax_rate
    net_income = pre_tax_income - income_tax
    eps = net_income / shares_outstanding if shares_outstanding > 0 else 0.0

    return IncomeStatementRow(
        year=year,
        is_actual=False,
        revenue=round_half_up(revenue),
        cogs=round_half_up(cogs),
        gross_profit=round_half_up(gross_profit),
        sales_marketing=round_half_up(sales_marketing),
        research_development=round_half_up(rd),
        general_admin=round_half_up(ga),
        depreciation=round_half_up(depreciation),
        total_expenses=round_half_up(total_expenses),
        operating_income=round_half_up(operating_income),
        ebitda=round_half_up(ebitda),
        other_income=round_half_up(other_income),
        pre_tax_income=round_half_up(pre_tax_income),
        income_tax=round_half_up(income_tax),
        net_income=round_half_up(net_income),
        shares_outstanding=shares_outstanding,
        eps=round_half_up(eps, 2),
        non_gaap_eps=round_half_up(eps * NON_GAAP_EPS_FACTOR, 2),
        cogs_percent=pct.cogs,
        sm_percent=pct.sales_marketing,
        rd_percent=pct.rd,
        ga_percent=pct.ga,
        depreciation_percent=pct.depreciation,
        tax_rate=pct.tax_rate,
    )


def run_income_statement(
    years: List[Year],
    annual_revenue: Mapping[Year, float],
    baseline: CostPercentages,
    shares_outstanding: float,
    target_net_margin: Optional[float] = None,
    actuals: Optional[Mapping[Year, IncomeStatementRow]] = None,
) -> List[IncomeStatementRow]:
    """
    Build the income statement for every model year.

    Args:
        years: Model years in order (year index 0 is the model start year)
        annual_revenue: Output of the revenue aggregator
        baseline: Base-case cost percentages
        shares_outstanding: Share count for EPS
        target_net_margin: Glide path end state (None disables the glide)
        actuals: Existing actual rows by year; copied through unchanged

    Returns:
        One IncomeStatementRow per year
    """
    actuals = actuals or {}
    total_years = len(years)
    rows: List[IncomeStatementRow] = []

    for year_index, year in enumerate(years):
        if year in actuals:
            rows.append(actuals[year])
            continue
        pct = glide_path_percentages(baseline, year_index, total_years, target_net_margin)
        rows.append(
            project_income_statement_year(
                year, annual_revenue.get(year, 0.0), pct, shares_outstanding
            )
        )

    logger.debug(
        "Income statement: %d actual, %d projected years",
        sum(1 for r in rows if r.is_actual),
        sum(1 for r in rows if not r.is_actual),
    )
    return rows
