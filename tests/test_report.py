from __future__ import annotations

from datetime import date

import pytest

from market_analytics.aggregate.growth import growth
from market_analytics.aggregate.periods import bucketize
from market_analytics.aggregate.report import build_trend_report, platform_summary, trend_series
from market_analytics.exceptions import InvalidWindowConfig


def _month_records() -> list[dict]:
    feb = [
        {"id": f"f{i}", "createdAt": f"2024-02-{i + 1:02d}T12:00:00Z", "status": "completed",
         "marketName": "Ariaria Market"}
        for i in range(5)
    ]
    mar = [
        {"id": f"m{i}", "createdAt": f"2024-03-{i + 1:02d}T12:00:00Z",
         "status": "completed" if i < 7 else "pending",
         "marketName": None if i % 5 == 0 else "Aba Main Market"}
        for i in range(10)
    ]
    return feb + mar


def test_trend_report_totals_and_growth() -> None:
    report = build_trend_report(_month_records(), date(2024, 3, 15), 2, "month")

    assert report.chart.labels == ["Feb 2024", "Mar 2024"]
    assert report.chart.series["count"] == [5, 10]
    assert report.chart.series["completed"] == [5, 7]

    current, previous = report.totals[1], report.totals[0]
    assert current.rate == pytest.approx(70.0)
    g = growth(current.completed, previous.completed)
    assert g.value == pytest.approx(40.0)
    assert g.direction == "up"

    assert report.growth is not None
    assert report.growth.value == pytest.approx(100.0)
    assert len(report.growth_by_period) == 1
    assert report.skipped_records == 0


def test_trend_report_leaderboard_skips_null_groups() -> None:
    report = build_trend_report(
        _month_records(), date(2024, 3, 15), 2, "month", group_by="market_name", top_n=5
    )
    assert report.leaderboard is not None
    assert [(e.name, e.value) for e in report.leaderboard.ranked_list] == [
        ("Aba Main Market", 8.0),
        ("Ariaria Market", 5.0),
    ]
    assert report.chart.series == {
        "Aba Main Market": [0, 8],
        "Ariaria Market": [5, 0],
    }


def test_trend_report_counts_skipped_records() -> None:
    records = _month_records() + [
        {"id": "bad-1", "createdAt": "yesterday"},
        {"id": "bad-2"},
    ]
    report = build_trend_report(records, date(2024, 3, 15), 2, "month")
    assert report.skipped_records == 2
    assert sum(m.total for m in report.totals) == 15


def test_single_period_has_no_growth() -> None:
    report = build_trend_report(_month_records(), date(2024, 3, 15), 1, "month")
    assert report.growth is None
    assert report.growth_by_period == []


def test_empty_records_give_zeroed_report() -> None:
    report = build_trend_report([], date(2024, 3, 15), 4, "week", group_by="market_name")
    assert report.chart.series == {}
    assert [m.total for m in report.totals] == [0, 0, 0, 0]
    assert report.growth is not None and report.growth.direction == "flat"
    assert report.leaderboard is not None and report.leaderboard.ranked_list == []


def test_trend_report_rejects_bad_window_first() -> None:
    with pytest.raises(InvalidWindowConfig):
        build_trend_report(None, date(2024, 3, 15), 3, "fortnight")


def test_trend_series_for_week_buckets() -> None:
    buckets = bucketize(_month_records(), date(2024, 3, 15), 2, "week")
    chart = trend_series(buckets, series_name="registrations")
    assert chart.labels == ["Week of Mar 3", "Week of Mar 10"]
    # Mar 3..9 and Mar 10
    assert chart.series["registrations"] == [7, 1]


def test_platform_summary() -> None:
    old = [{"id": f"o{i}", "created_at": f"2024-01-{i + 1:02d}", "business_name": "Shop" if i < 4 else None}
           for i in range(10)]
    new = [{"id": f"n{i}", "created_at": f"2024-03-{i + 10:02d}", "business_name": "Shop" if i < 2 else ""}
           for i in range(5)]
    future = [{"id": "later", "created_at": "2024-04-02", "business_name": "Shop"}]

    summary = platform_summary(old + new + future, date(2024, 3, 31), days=30)
    assert summary.total == 15
    assert summary.previous_total == 10
    assert summary.new_in_window == 5
    assert summary.growth.value == pytest.approx(50.0)
    assert summary.growth.direction == "up"
    assert summary.conversion_rate == pytest.approx(40.0)


def test_platform_summary_rejects_bad_days() -> None:
    with pytest.raises(InvalidWindowConfig):
        platform_summary([], date(2024, 3, 31), days=0)
