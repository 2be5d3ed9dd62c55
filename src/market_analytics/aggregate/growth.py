"""Period-over-period growth.

Growth is the percentage change from the previous period to the current
one. A previous value of 0 has no defined ratio, so growth from nothing to
something is reported as 100% ("full growth") and 0 -> 0 as 0%.
Changes within +/-5% are treated as noise and reported as `flat`.
"""
from __future__ import annotations

from typing import Sequence

from market_analytics.models import Direction, GrowthMetric

FLAT_THRESHOLD = 5.0
FULL_GROWTH = 100.0


def trend_direction(value: float, threshold: float = FLAT_THRESHOLD) -> Direction:
    """Return `up` above +threshold, `down` below -threshold, else `flat`."""
    if value > threshold:
        return "up"
    if value < -threshold:
        return "down"
    return "flat"


def growth(current: float, previous: float) -> GrowthMetric:
    """Compute the percentage change from `previous` to `current`.

    Args:
        current: Value of the newer period.
        previous: Value of the older period.

    Returns:
        `GrowthMetric` with the percentage and its direction.
    """
    if previous > 0:
        value = (current - previous) * 100.0 / previous
    elif current > 0:
        value = FULL_GROWTH
    else:
        value = 0.0
    return GrowthMetric(value=value, direction=trend_direction(value))


def growth_series(values: Sequence[float]) -> list[GrowthMetric]:
    """Growth between each pair of adjacent values (oldest first).

    The result has one entry fewer than `values`; entry `i` compares
    `values[i + 1]` with `values[i]`.
    """
    return [growth(cur, prev) for prev, cur in zip(values, values[1:])]


def format_growth(metric: GrowthMetric | float) -> str:
    """Render growth the way the stat cards show it: "+40.0%", "-12.5%", "0.0%"."""
    value = metric.value if isinstance(metric, GrowthMetric) else float(metric)
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.1f}%"
