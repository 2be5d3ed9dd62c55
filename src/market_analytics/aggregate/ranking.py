"""Top-N ranking for leaderboards.

Entities are ordered by descending metric. Python's sort is stable, so
entities with equal metrics keep their input order.
"""
from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Sequence

from market_analytics.exceptions import InvalidRankingConfig
from market_analytics.models import AggregateMetric, Leaderboard, RankedEntity

RANK_METRICS = ("total", "completed", "pending", "rate")


def _check_size(n: Any) -> int:
    if isinstance(n, bool) or not isinstance(n, int) or n <= 0:
        raise InvalidRankingConfig(f"n must be a positive integer, got {n!r}")
    return n


def _pair(entity: Any) -> tuple[str, float]:
    """Return (name, metric) for the accepted entity shapes."""
    if isinstance(entity, RankedEntity):
        return entity.name, entity.value
    if isinstance(entity, Mapping):
        name = entity["key"] if "key" in entity else entity["name"]
        value = entity["metric"] if "metric" in entity else entity["value"]
        return str(name), float(value)
    if isinstance(entity, Sequence) and not isinstance(entity, str) and len(entity) == 2:
        return str(entity[0]), float(entity[1])
    raise TypeError(f"Cannot rank entity {entity!r}; expected (key, metric) or a mapping")


def top_n(entities: Iterable[Any], n: int) -> list[RankedEntity]:
    """Return the `n` highest entities by metric.

    Args:
        entities: `RankedEntity` objects, `(key, metric)` pairs, or mappings
            with `key`/`metric` (or `name`/`value`) entries.
        n: Positive maximum size; fewer entities are returned when the input
            is smaller.

    Entities whose metric is NaN are left off the board.

    Raises:
        InvalidRankingConfig: if `n` is not a positive integer.
    """
    size = _check_size(n)
    pairs = [p for p in map(_pair, entities) if not math.isnan(p[1])]
    ordered = sorted(pairs, key=lambda p: -p[1])
    return [
        RankedEntity(name=name, value=value, rank=i)
        for i, (name, value) in enumerate(ordered[:size], start=1)
    ]


def leaderboard(entities: Iterable[Any], n: int) -> Leaderboard:
    """Wrap `top_n` for leaderboard displays."""
    return Leaderboard(ranked_list=top_n(entities, n))


def rank_groups(
    grouped: Mapping[str, AggregateMetric],
    n: int,
    metric: str = "total",
) -> Leaderboard:
    """Build a leaderboard from grouped aggregates.

    Args:
        grouped: Output of `aggregate(..., group_by=...)`.
        n: Leaderboard size.
        metric: One of `RANK_METRICS`. Groups without a completion split
            rank as 0 for `completed` / `pending`.
    """
    if metric not in RANK_METRICS:
        raise InvalidRankingConfig(
            f"metric must be one of {', '.join(RANK_METRICS)}, got {metric!r}"
        )
    pairs = [(key, float(getattr(m, metric) or 0)) for key, m in grouped.items()]
    return leaderboard(pairs, n)
