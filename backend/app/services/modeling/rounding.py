"""
rounding.py — Statement Rounding

Purpose:
- Round projected amounts, prices and ratios the same way everywhere.
- Exact halves go up (toward +inf): 2.5 -> 3, -2.5 -> -2, 0.125 -> 0.13.
"""

import math


def round_half_up(value: float, digits: int = 0) -> float:
    """Round to `digits` decimals with halves rounded toward +inf."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
