"""Count and rate aggregation over buckets.

All functions are pure: they read a bucket (or a cleaned DataFrame) and
return new Pydantic metrics.

Grouping policy: records whose group key is null, NaN or a blank string are
left out of grouped results. They are never folded into a synthetic
"unknown" group, so grouped totals can be smaller than the bucket total.
"""
from __future__ import annotations

from typing import Any, Callable, Mapping, Union, cast

import pandas as pd

from market_analytics.aggregate.periods import Bucket
from market_analytics.models import AggregateMetric

GroupBy = Union[str, Callable[[Mapping[str, Any]], Any]]


def rate(completed: float, total: float) -> float:
    """Return `completed` as a percentage of `total`, 0.0 when total is 0."""
    if total <= 0:
        return 0.0
    return completed * 100.0 / total


def has_value(value: Any) -> bool:
    """True for a usable group key (not None, NaN or a blank string)."""
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None and not pd.isna(value)


def _is_done(value: Any) -> bool:
    return bool(value) if has_value(value) else False


def _column(frame: pd.DataFrame, name: str) -> pd.Series:
    if name in frame.columns:
        return frame[name]
    return pd.Series(None, index=frame.index, dtype=object)


def _status_done(value: Any) -> bool:
    return isinstance(value, str) and value.strip().lower() == "completed"


def completion_mask(frame: pd.DataFrame) -> pd.Series | None:
    """Return a boolean Series marking completed records, or None if untracked.

    A row's explicit `completed` flag wins where it is set; rows without one
    fall back to `status == "completed"` (case-insensitive). Completion is
    untracked when neither column exists, or when a non-empty frame carries
    no value in either.
    """
    if "completed" not in frame.columns and "status" not in frame.columns:
        return None

    flag = _column(frame, "completed")
    status = _column(frame, "status")
    flagged = flag.map(has_value).astype(bool)
    if len(frame) and not flagged.any() and not status.map(has_value).any():
        return None

    by_flag = flag.map(_is_done).astype(bool)
    by_status = status.map(_status_done).astype(bool)
    return by_flag.where(flagged, by_status).astype(bool)


def _frame(source: Bucket | pd.DataFrame) -> pd.DataFrame:
    return source.records if isinstance(source, Bucket) else source


def _metric(frame: pd.DataFrame) -> AggregateMetric:
    total = len(frame)
    done = completion_mask(frame)
    if done is None:
        return AggregateMetric(total=total)
    completed = int(done.sum())
    return AggregateMetric(
        total=total,
        completed=completed,
        pending=total - completed,
        rate=rate(completed, total),
    )


def group_keys(frame: pd.DataFrame, group_by: GroupBy) -> pd.Series:
    """Return the group key of every row, aligned with `frame.index`."""
    if callable(group_by):
        keys = [group_by(rec) for rec in frame.to_dict("records")]
        return pd.Series(keys, index=frame.index, dtype=object)
    if group_by in frame.columns:
        return frame[group_by].astype(object)
    return pd.Series(None, index=frame.index, dtype=object)


def aggregate(
    source: Bucket | pd.DataFrame,
    group_by: GroupBy | None = None,
) -> AggregateMetric | dict[str, AggregateMetric]:
    """Aggregate a bucket, optionally per group.

    Args:
        source: A `Bucket` or a cleaned records DataFrame.
        group_by: Column name (e.g. `market_name`) or a callable receiving a
            record dict and returning its group key.

    Returns:
        A single `AggregateMetric` without `group_by`; otherwise a dict of
        group key -> metric ordered by descending total, ties kept in the
        order the groups first appear.
    """
    frame = _frame(source)
    if group_by is None:
        return _metric(frame)

    keys = group_keys(frame, group_by)
    present = keys.map(has_value).astype(bool)
    grouped: list[tuple[str, AggregateMetric]] = []
    if present.any():
        subset = frame.loc[present]
        for key, sub in subset.groupby(keys.loc[present], sort=False):
            grouped.append((str(key), _metric(sub)))

    grouped.sort(key=lambda kv: -kv[1].total)
    return dict(grouped)


def group_counts(source: Bucket | pd.DataFrame, group_by: GroupBy) -> dict[str, int]:
    """Return group key -> record count, largest first."""
    grouped = cast(dict[str, AggregateMetric], aggregate(source, group_by))
    return {key: m.total for key, m in grouped.items()}
