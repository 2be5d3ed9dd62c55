"""Period construction and record bucketing.

A window is `window_count` contiguous periods of one unit (day, week or
month) ending with the period that contains the reference date. Buckets are
always returned oldest-first, which is the order charts draw them in;
`Period.offset` records how many periods back from the reference a bucket
sits (0 = newest).

Periods are half-open intervals `[start, end)` over naive UTC datetimes, so
adjacent periods share a boundary and never overlap.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd

from market_analytics.clean.transform import clean_records, records_frame
from market_analytics.exceptions import InvalidWindowConfig

log = logging.getLogger(__name__)

WINDOW_UNITS = ("day", "week", "month")

# `date.weekday()` numbering
MONDAY = 0
SUNDAY = 6


@dataclass(frozen=True)
class Period:
    """A reporting period.

    Attributes:
        start: Inclusive start (midnight).
        end: Exclusive end (midnight of the following period).
        label: Display label, e.g. "Mar 2024" or "Week of Mar 10".
        offset: Periods back from the reference period (0 = newest).
    """
    start: datetime
    end: datetime
    label: str
    offset: int

    @property
    def last_day(self) -> date:
        """Inclusive last calendar day of the period."""
        return (self.end - timedelta(days=1)).date()

    @property
    def days(self) -> int:
        return (self.end - self.start).days


@dataclass(frozen=True, eq=False)
class Bucket:
    """A period and the records created within it."""
    period: Period
    records: pd.DataFrame = field(repr=False)

    @property
    def count(self) -> int:
        return len(self.records)


def as_date(value: Any) -> date:
    """Coerce a date, datetime, pandas Timestamp or ISO string to a calendar date.

    Timezone-aware values are converted to UTC first so they line up with the
    naive-UTC `created_at` column produced by `clean_records`.
    """
    ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.date()


def validate_window(window_count: Any, window_unit: Any) -> str:
    """Check a window configuration and return the normalized unit.

    Raises:
        InvalidWindowConfig: if the count is not a positive integer or the
            unit is not one of `WINDOW_UNITS`.
    """
    if isinstance(window_count, bool) or not isinstance(window_count, int):
        raise InvalidWindowConfig(f"window_count must be an integer, got {window_count!r}")
    if window_count <= 0:
        raise InvalidWindowConfig(f"window_count must be positive, got {window_count}")
    unit = str(window_unit).strip().lower()
    if unit not in WINDOW_UNITS:
        raise InvalidWindowConfig(
            f"window_unit must be one of {', '.join(WINDOW_UNITS)}, got {window_unit!r}"
        )
    return unit


def day_start(d: date) -> datetime:
    return datetime(d.year, d.month, d.day)


def _shift_month(year: int, month: int, back: int) -> tuple[int, int]:
    """Return (year, month) `back` months before the given month."""
    y, m = divmod(year * 12 + (month - 1) - back, 12)
    return y, m + 1


def _day_period(ref: date, offset: int) -> Period:
    day = ref - timedelta(days=offset)
    start = day_start(day)
    return Period(start, start + timedelta(days=1), f"{day:%b} {day.day}", offset)


def _week_period(ref: date, offset: int, week_start: int) -> Period:
    first = ref - timedelta(days=(ref.weekday() - week_start) % 7) - timedelta(weeks=offset)
    start = day_start(first)
    return Period(start, start + timedelta(days=7), f"Week of {first:%b} {first.day}", offset)


def _month_period(ref: date, offset: int) -> Period:
    y, m = _shift_month(ref.year, ref.month, offset)
    ny, nm = _shift_month(y, m, -1)
    start = datetime(y, m, 1)
    return Period(start, datetime(ny, nm, 1), f"{start:%b %Y}", offset)


def build_periods(
    reference_date: Any,
    window_count: int,
    window_unit: str,
    week_start: int = SUNDAY,
) -> list[Period]:
    """Build the contiguous periods of a window, oldest first.

    Args:
        reference_date: Date anchoring the newest period.
        window_count: Number of periods (positive).
        window_unit: `day`, `week` or `month`.
        week_start: First weekday of a week (`date.weekday()` numbering,
            Sunday by default).

    Returns:
        `window_count` periods ordered oldest to newest.

    Raises:
        InvalidWindowConfig: on a bad count, unit or week start.
    """
    unit = validate_window(window_count, window_unit)
    if isinstance(week_start, bool) or week_start not in range(7):
        raise InvalidWindowConfig(f"week_start must be 0-6, got {week_start!r}")
    ref = as_date(reference_date)

    periods: list[Period] = []
    for offset in range(window_count - 1, -1, -1):
        if unit == "day":
            periods.append(_day_period(ref, offset))
        elif unit == "week":
            periods.append(_week_period(ref, offset, week_start))
        else:
            periods.append(_month_period(ref, offset))
    return periods


def assign_records(frame: pd.DataFrame, periods: list[Period]) -> list[Bucket]:
    """Split a cleaned frame into one bucket per period.

    Records outside the overall span are not assigned to any bucket.
    """
    created = frame["created_at"]
    buckets = []
    for period in periods:
        mask = (created >= period.start) & (created < period.end)
        buckets.append(Bucket(period, frame.loc[mask].reset_index(drop=True)))

    if periods:
        assigned = sum(b.count for b in buckets)
        if assigned < len(frame):
            log.debug(
                "%d records fall outside %s .. %s",
                len(frame) - assigned,
                periods[0].start.date(),
                periods[-1].last_day,
            )
    return buckets


def bucketize(
    records: Any,
    reference_date: Any,
    window_count: int,
    window_unit: str,
    week_start: int = SUNDAY,
) -> list[Bucket]:
    """Group records into the periods of a window, oldest bucket first.

    The configuration is validated before any record is looked at. Records
    with an unparseable `created_at` are skipped with a logged warning; an
    empty input yields empty buckets.

    Args:
        records: DataFrame or iterable of record mappings / models.
        reference_date: Date anchoring the newest bucket.
        window_count: Number of buckets.
        window_unit: `day`, `week` or `month`.
        week_start: First weekday for weekly buckets.

    Returns:
        List of `Bucket` ordered oldest to newest.
    """
    periods = build_periods(reference_date, window_count, window_unit, week_start)
    frame, _ = clean_records(records_frame(records))
    return assign_records(frame, periods)
