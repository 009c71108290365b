"""
scenarios.py — Bear/Bull/Base Scenario Revenue

Purpose:
- Build the bull / base / bear revenue series shown next to the valuation
  comparison.
- Base is the projected revenue itself; bull and bear re-apply the year's
  growth scaled by the model's scenario multipliers:

      g    = (revenue_t - revenue_{t-1}) / revenue_{t-1}
      bull = revenue_{t-1} * (1 + g * bull multiplier)
      bear = revenue_{t-1} * (1 + g * bear multiplier)

- Years where either revenue is missing or non-positive carry no growth, so
  all three scenarios equal the base revenue.
"""

from typing import Dict, List, Mapping

from app.services.modeling.rounding import round_half_up
from app.services.modeling.types import ScenarioMultipliers, ScenarioRevenuePoint, Year

SCENARIOS = ("bull", "base", "bear")


def build_scenario_revenue(
    years: List[Year],
    annual_revenue: Mapping[Year, float],
    multipliers: ScenarioMultipliers,
) -> List[ScenarioRevenuePoint]:
    """
    Scenario revenue for every year after the first model year.
    """
    points: List[ScenarioRevenuePoint] = []
    for prev_year, year in zip(years, years[1:]):
        current = annual_revenue.get(year, 0.0)
        previous = annual_revenue.get(prev_year, 0.0)

        if current > 0 and previous > 0:
            yoy_growth = (current - previous) / previous
            bull = previous * (1 + yoy_growth * multipliers.bull)
            bear = previous * (1 + yoy_growth * multipliers.bear)
        else:
            bull = bear = current

        points.append(
            ScenarioRevenuePoint(
                year=year,
                bull=round_half_up(bull),
                base=round_half_up(current),
                bear=round_half_up(bear),
            )
        )
    return points


def points_to_mapping(points: List[ScenarioRevenuePoint]) -> Dict[Year, Dict[str, float]]:
    """{year: {"bull": x, "base": y, "bear": z}}"""
    return {p.year: {"bull": p.bull, "base": p.base, "bear": p.bear} for p in points}
