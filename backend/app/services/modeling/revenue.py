"""
revenue.py — Annual Revenue Aggregation

Rolls per-line-item revenue periods up to one revenue figure per model year.

For each line item and year:
- quarterly periods present  -> sum of the quarterly amounts
- otherwise                  -> the single annual-period amount (0 if none)
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, List

from app.services.modeling.types import Year


def aggregate_annual_revenue(
    line_item_ids: Iterable[str],
    periods: Iterable[Any],
    years: List[Year],
) -> Dict[Year, float]:
    """
    Sum revenue periods into annual revenue.

    Args:
        line_item_ids: Ids of the model's revenue line items
        periods: Objects with `line_item_id`, `year`, `quarter`, `amount`
        years: Model years to aggregate (every year appears in the output)

    Returns:
        {year: annual revenue}
    """
    quarterly: Dict[tuple, float] = defaultdict(float)
    has_quarterly = set()
    annual: Dict[tuple, float] = {}

    for p in periods:
        key = (p.line_item_id, p.year)
        if p.quarter:
            quarterly[key] += p.amount or 0.0
            has_quarterly.add(key)
        elif key not in annual:
            annual[key] = p.amount or 0.0

    item_ids = list(line_item_ids)
    revenue: Dict[Year, float] = {}
    for year in years:
        total = 0.0
        for item_id in item_ids:
            key = (item_id, year)
            if key in has_quarterly:
                total += quarterly[key]
            else:
                total += annual.get(key, 0.0)
        revenue[year] = total
    return revenue
