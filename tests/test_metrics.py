from __future__ import annotations

import pandas as pd
import pytest

from market_analytics.aggregate.metrics import aggregate, group_counts, rate
from market_analytics.aggregate.periods import bucketize
from market_analytics.clean.transform import clean_records, records_frame
from market_analytics.clean.validate import validate_records


def test_rate_is_zero_for_empty_total() -> None:
    assert rate(0, 0) == 0.0


@pytest.mark.parametrize("total", range(0, 12))
def test_rate_stays_within_percent_bounds(total: int) -> None:
    for completed in range(total + 1):
        assert 0.0 <= rate(completed, total) <= 100.0


def test_bucket_completion_split() -> None:
    records = [
        {"id": str(i), "created_at": f"2024-03-{i + 1:02d}", "status": "completed" if i < 7 else "pending"}
        for i in range(10)
    ]
    (bucket,) = bucketize(records, "2024-03-15", 1, "month")
    m = aggregate(bucket)
    assert m.total == 10
    assert m.completed == 7
    assert m.pending == 3
    assert m.completed + m.pending == m.total
    assert m.rate == pytest.approx(70.0)


def test_explicit_completed_flag_wins_where_set() -> None:
    frame = pd.DataFrame(
        {
            "completed": [True, False, None, True],
            "status": ["pending", "completed", "completed", "pending"],
        }
    )
    m = aggregate(frame)
    assert (m.completed, m.pending) == (3, 1)


def test_missing_flag_falls_back_to_status_per_row() -> None:
    frame, _ = clean_records(records_frame([
        {"id": "1", "created_at": "2024-03-01", "status": "completed"},
        {"id": "2", "created_at": "2024-03-02", "status": "completed", "completed": True},
    ]))
    m = aggregate(frame)
    assert (m.total, m.completed, m.pending) == (2, 2, 0)
    assert m.rate == pytest.approx(100.0)


def test_validated_records_keep_status_completion() -> None:
    valid, bad = validate_records([
        {"id": "1", "createdAt": "2024-03-01T08:00:00Z", "status": "completed"},
        {"id": "2", "createdAt": "2024-03-02T08:00:00Z", "status": "Completed"},
        {"id": "3", "createdAt": "2024-03-03T08:00:00Z", "status": "pending"},
    ])
    assert bad == 0
    frame, _ = clean_records(records_frame([r.model_dump() for r in valid]))
    m = aggregate(frame)
    assert (m.completed, m.pending) == (2, 1)


def test_all_null_completion_columns_are_untracked() -> None:
    m = aggregate(pd.DataFrame({"completed": [None, None], "status": [None, None]}))
    assert m.total == 2
    assert m.completed is None


def test_untracked_completion_reports_totals_only() -> None:
    m = aggregate(pd.DataFrame({"id": ["a", "b"]}))
    assert m.total == 2
    assert m.completed is None and m.pending is None
    assert m.rate == 0.0


def test_null_market_keys_are_excluded() -> None:
    frame = pd.DataFrame(
        {
            "market_name": ["Ariaria Market", None, "Aba Main Market", None, "Eziukwu Market"],
        }
    )
    grouped = aggregate(frame, "market_name")
    assert set(grouped) == {"Ariaria Market", "Aba Main Market", "Eziukwu Market"}
    assert sum(m.total for m in grouped.values()) == 3


def test_blank_and_nan_keys_are_excluded() -> None:
    frame = pd.DataFrame({"category_name": ["Electronics", "", "  ", float("nan"), "Electronics"]})
    assert group_counts(frame, "category_name") == {"Electronics": 2}


def test_groups_sorted_by_count_with_first_seen_ties() -> None:
    frame = pd.DataFrame({"market_name": ["B", "A", "C", "A", "C", "D"]})
    assert list(group_counts(frame, "market_name").items()) == [
        ("A", 2), ("C", 2), ("B", 1), ("D", 1),
    ]


def test_group_by_callable() -> None:
    frame = pd.DataFrame(
        {
            "market_name": ["Ariaria Market", "Aba Main Market", "Ariaria Market"],
            "status": ["completed", "completed", "pending"],
        }
    )
    grouped = aggregate(frame, lambda rec: rec["market_name"].split()[0])
    assert grouped["Ariaria"].total == 2
    assert grouped["Ariaria"].completed == 1
    assert grouped["Ariaria"].rate == pytest.approx(50.0)
    assert grouped["Aba"].rate == pytest.approx(100.0)


def test_group_by_missing_column_is_empty() -> None:
    assert aggregate(pd.DataFrame({"id": ["a"]}), "market_name") == {}
