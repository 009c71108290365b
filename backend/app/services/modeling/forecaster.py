"""
forecaster.py — Forward Revenue Forecasting

Purpose:
- Fill empty revenue periods from the growth trend of the periods the user
  did enter.
- Each (line item, quarter position) is an independent series. A line item
  without any quarterly rows is forecast as one annual series (quarter None).

Per series:
- base growth   = mean of consecutive YoY growth ratios of the known points,
                  clamped to [-50%, +200%] (5% with fewer than two points)
- interpolation = known point before and after: straight line between them
- forward       = only points before: prev * (1 + base * (1 - decay)^n),
                  n = years since the last known year; chains off earlier
                  projected years
- backward      = only points after: next / (1 + base)^years_behind

Projected amounts are floored at 0. For years past the last known year of the
whole model, bull / bear revenue accumulates with the same decayed growth
scaled by the scenario multipliers.

This module is pure: persistence and the follow-up recalculation live in
services/recalculation.py.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from app.services.modeling.rounding import round_half_up
from app.services.modeling.types import ScenarioMultipliers, Year

MIN_GROWTH = -0.5
MAX_GROWTH = 2.0
DEFAULT_GROWTH = 0.05
QUARTERS = (1, 2, 3, 4)


@dataclass
class ProjectedPeriod:
    line_item_id: str
    year: Year
    quarter: Optional[int]
    amount: float
    method: str  # "interpolation" | "forward" | "backward"


@dataclass
class ForecastPlan:
    projections: List[ProjectedPeriod] = field(default_factory=list)
    growth_rates: Dict[Tuple[str, Optional[int]], float] = field(default_factory=dict)
    scenario_revenues: Dict[Year, Dict[str, float]] = field(default_factory=dict)
    fillable_slots: int = 0

    @property
    def forecasted_years(self) -> List[Year]:
        return sorted({p.year for p in self.projections})

    @property
    def growth_applied(self) -> float:
        """Mean base growth rate over the series that were forecast."""
        if not self.growth_rates:
            return 0.0
        return round_half_up(sum(self.growth_rates.values()) / len(self.growth_rates), 4)


def base_growth_rate(known: Dict[Year, float]) -> float:
    """Mean YoY growth between consecutive known points, clamped."""
    ordered = [known[y] for y in sorted(known)]
    if len(ordered) < 2:
        return DEFAULT_GROWTH
    ratios = [(cur - prev) / prev for prev, cur in zip(ordered, ordered[1:])]
    mean = sum(ratios) / len(ratios)
    return max(MIN_GROWTH, min(MAX_GROWTH, mean))


def _latest_before(values: Dict[Year, float], year: Year) -> float:
    return values[max(y for y in values if y < year)]


def _build_series(
    periods: Iterable[Any],
    line_item_ids: Iterable[str],
) -> Dict[Tuple[str, Optional[int]], Dict[str, Any]]:
    """
    Group periods into series keyed by (line item, quarter position).

    Each series carries the existing amount per year and the years that are
    covered at another granularity (an annual amount on a quarterly item).
    """
    by_item: Dict[str, List[Any]] = defaultdict(list)
    for p in periods:
        by_item[p.line_item_id].append(p)

    series: Dict[Tuple[str, Optional[int]], Dict[str, Any]] = {}
    for item_id in line_item_ids:
        item_periods = by_item.get(item_id, [])
        quarterly = [p for p in item_periods if p.quarter]
        if quarterly:
            quarter_years = {p.year for p in quarterly}
            blocked = {
                p.year for p in item_periods
                if not p.quarter and (p.amount or 0) > 0 and p.year not in quarter_years
            }
            for q in QUARTERS:
                amounts = {p.year: p.amount or 0.0 for p in quarterly if p.quarter == q}
                series[(item_id, q)] = {"amounts": amounts, "blocked": blocked}
        else:
            amounts = {p.year: p.amount or 0.0 for p in item_periods}
            series[(item_id, None)] = {"amounts": amounts, "blocked": set()}
    return series


def plan_forecast(
    line_item_ids: List[str],
    periods: Iterable[Any],
    years: List[Year],
    decay_rate: float,
    multipliers: ScenarioMultipliers,
) -> ForecastPlan:
    """
    Work out every projected period for the model.

    Args:
        line_item_ids: Model revenue line items
        periods: Objects with `line_item_id`, `year`, `quarter`, `amount`
        years: Model years in order
        decay_rate: Fractional yearly decay applied to forward growth
        multipliers: Bull / bear multipliers for scenario revenue

    Returns:
        ForecastPlan (empty projections when nothing is fillable)
    """
    plan = ForecastPlan()
    series = _build_series(periods, line_item_ids)
    retention = 1 - (decay_rate or 0.0)

    known_by_series = {
        key: {y: a for y, a in s["amounts"].items() if a > 0}
        for key, s in series.items()
    }
    all_known_years = [y for known in known_by_series.values() for y in known]
    if not all_known_years:
        return plan
    model_last_known = max(all_known_years)

    scenario_totals: Dict[Year, Dict[str, float]] = defaultdict(
        lambda: {"bull": 0.0, "base": 0.0, "bear": 0.0}
    )

    for key, s in series.items():
        known = known_by_series[key]
        if not known:
            continue
        slots = [
            y for y in years
            if s["amounts"].get(y, 0.0) <= 0 and y not in s["blocked"]
        ]
        if not slots:
            continue
        plan.fillable_slots += len(slots)

        item_id, quarter = key
        growth = base_growth_rate(known)
        plan.growth_rates[key] = growth
        known_years = sorted(known)
        last_known = known_years[-1]

        values: Dict[Year, float] = dict(known)
        bull_values: Dict[Year, float] = {last_known: known[last_known]}
        bear_values: Dict[Year, float] = {last_known: known[last_known]}

        for year in slots:
            before = [y for y in known_years if y < year]
            after = [y for y in known_years if y > year]

            if before and after:
                y0, y1 = before[-1], after[0]
                a0, a1 = known[y0], known[y1]
                amount = a0 + (a1 - a0) * (year - y0) / (y1 - y0)
                method = "interpolation"
            elif before:
                decayed = growth * retention ** (year - last_known)
                amount = _latest_before(values, year) * (1 + decayed)
                method = "forward"
                bull_values[year] = max(
                    0.0, _latest_before(bull_values, year) * (1 + decayed * multipliers.bull)
                )
                bear_values[year] = max(
                    0.0, _latest_before(bear_values, year) * (1 + decayed * multipliers.bear)
                )
            else:
                y1 = after[0]
                amount = known[y1] / (1 + growth) ** (y1 - year)
                method = "backward"

            amount = round_half_up(max(0.0, amount), 2)
            values[year] = amount
            plan.projections.append(ProjectedPeriod(item_id, year, quarter, amount, method))

            if year > model_last_known and method == "forward":
                totals = scenario_totals[year]
                totals["base"] += amount
                totals["bull"] += bull_values[year]
                totals["bear"] += bear_values[year]

    plan.scenario_revenues = {
        year: {k: round_half_up(v) for k, v in totals.items()}
        for year, totals in sorted(scenario_totals.items())
    }
    return plan
