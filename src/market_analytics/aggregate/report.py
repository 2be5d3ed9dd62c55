"""Presentation-ready trend reports.

These functions glue bucketing, aggregation, growth and ranking into the
structures consumed by chart and leaderboard widgets. They validate the
window configuration before touching any record, and report records with
unparseable timestamps through `skipped_records` instead of failing.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, cast

import pandas as pd

from market_analytics.aggregate.growth import growth, growth_series
from market_analytics.aggregate.metrics import GroupBy, aggregate, has_value, rate
from market_analytics.aggregate.periods import (
    SUNDAY,
    Bucket,
    as_date,
    assign_records,
    build_periods,
    day_start,
)
from market_analytics.aggregate.ranking import rank_groups
from market_analytics.clean.transform import clean_records, records_frame
from market_analytics.exceptions import InvalidWindowConfig
from market_analytics.models import (
    AggregateMetric,
    ChartSeries,
    PlatformSummary,
    TrendReport,
)

log = logging.getLogger(__name__)


def trend_series(
    buckets: list[Bucket],
    group_by: GroupBy | None = None,
    series_name: str = "count",
) -> ChartSeries:
    """Turn buckets into chart labels and numeric series.

    Without `group_by` there is a single series named `series_name`, plus a
    `completed` series when the records carry a completion flag. With
    `group_by` there is one series per group, largest group first, each
    holding that group's count per bucket.
    """
    labels = [b.period.label for b in buckets]
    if group_by is None:
        totals = [cast(AggregateMetric, aggregate(b)) for b in buckets]
        series: dict[str, list[float]] = {series_name: [m.total for m in totals]}
        if totals and all(m.completed is not None for m in totals):
            series["completed"] = [cast(int, m.completed) for m in totals]
        return ChartSeries(labels=labels, series=series)

    per_bucket = [cast(dict[str, AggregateMetric], aggregate(b, group_by)) for b in buckets]
    overall: dict[str, int] = {}
    for grouped in per_bucket:
        for key, metric in grouped.items():
            overall[key] = overall.get(key, 0) + metric.total
    keys = sorted(overall, key=lambda k: -overall[k])

    return ChartSeries(
        labels=labels,
        series={
            key: [grouped[key].total if key in grouped else 0 for grouped in per_bucket]
            for key in keys
        },
    )


def build_trend_report(
    records: Any,
    reference_date: Any,
    window_count: int,
    window_unit: str,
    group_by: str | None = None,
    top_n: int = 10,
    rank_metric: str = "total",
    week_start: int = SUNDAY,
) -> TrendReport:
    """Build a full trend report for a window.

    Args:
        records: DataFrame or iterable of records.
        reference_date: Date anchoring the newest period.
        window_count: Number of periods.
        window_unit: `day`, `week` or `month`.
        group_by: Optional column for the per-group series and leaderboard.
        top_n: Leaderboard size.
        rank_metric: Metric the leaderboard ranks groups by.
        week_start: First weekday for weekly windows.

    Returns:
        A `TrendReport`; `growth` compares the two newest periods.
    """
    periods = build_periods(reference_date, window_count, window_unit, week_start)
    frame, skipped = clean_records(records_frame(records))
    buckets = assign_records(frame, periods)

    totals = [cast(AggregateMetric, aggregate(b)) for b in buckets]
    counts = [m.total for m in totals]

    leaderboard = None
    if group_by is not None:
        in_span = pd.concat([b.records for b in buckets], ignore_index=True)
        grouped = cast(dict[str, AggregateMetric], aggregate(in_span, group_by))
        leaderboard = rank_groups(grouped, top_n, rank_metric)

    report = TrendReport(
        reference_date=as_date(reference_date),
        window_unit=window_unit.strip().lower(),
        window_count=window_count,
        group_by=group_by,
        chart=trend_series(buckets, group_by),
        totals=totals,
        growth=growth(counts[-1], counts[-2]) if len(counts) > 1 else None,
        growth_by_period=growth_series(counts),
        leaderboard=leaderboard,
        skipped_records=skipped,
    )
    log.info(
        "Trend report: %d %s periods, %d records in span, %d skipped",
        window_count,
        report.window_unit,
        sum(counts),
        skipped,
    )
    return report


def platform_summary(records: Any, reference_date: Any, days: int = 30) -> PlatformSummary:
    """Stat-card summary of everything created up to the reference date.

    `growth` compares the running total at the reference date with the
    running total `days` days earlier. `conversion_rate` is the share of
    records that carry a business name (`business_name`, else `name`).

    Raises:
        InvalidWindowConfig: if `days` is not a positive integer.
    """
    if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
        raise InvalidWindowConfig(f"days must be a positive integer, got {days!r}")

    ref = as_date(reference_date)
    end = day_start(ref) + timedelta(days=1)
    cutoff = end - timedelta(days=days)

    frame, skipped = clean_records(records_frame(records))
    frame = frame.loc[frame["created_at"] < end]
    total = len(frame)
    previous_total = int((frame["created_at"] < cutoff).sum())

    name_col = next((c for c in ("business_name", "name") if c in frame.columns), None)
    named = int(frame[name_col].map(has_value).sum()) if name_col else 0

    return PlatformSummary(
        reference_date=ref,
        days=days,
        total=total,
        previous_total=previous_total,
        new_in_window=total - previous_total,
        growth=growth(total, previous_total),
        conversion_rate=rate(named, total),
        skipped_records=skipped,
    )
