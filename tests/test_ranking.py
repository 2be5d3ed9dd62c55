from __future__ import annotations

import pytest

from market_analytics.aggregate.ranking import leaderboard, rank_groups, top_n
from market_analytics.exceptions import InvalidRankingConfig
from market_analytics.models import AggregateMetric

ENTITIES = [("a", 3), ("b", 5), ("c", 3), ("d", 5), ("e", 1)]


@pytest.mark.parametrize("n", [1, 2, 5, 10])
def test_top_n_length(n: int) -> None:
    assert len(top_n(ENTITIES, n)) == min(n, len(ENTITIES))


def test_top_n_descending_and_stable_on_ties() -> None:
    ranked = top_n(ENTITIES, 4)
    assert [r.name for r in ranked] == ["b", "d", "a", "c"]
    assert [r.rank for r in ranked] == [1, 2, 3, 4]


def test_top_n_is_idempotent() -> None:
    once = top_n(ENTITIES, 3)
    assert top_n(once, 3) == once


def test_top_n_empty_input() -> None:
    assert top_n([], 5) == []


@pytest.mark.parametrize("n", [0, -2, 1.5, True, "3"])
def test_top_n_rejects_bad_size(n: object) -> None:
    with pytest.raises(InvalidRankingConfig):
        top_n(ENTITIES, n)  # type: ignore[arg-type]


def test_top_n_accepts_mappings() -> None:
    ranked = top_n([{"key": "x", "metric": 2}, {"name": "y", "value": 9}], 2)
    assert [(r.name, r.value) for r in ranked] == [("y", 9.0), ("x", 2.0)]


def test_leaderboard_wraps_ranked_list() -> None:
    board = leaderboard(ENTITIES, 2)
    assert [e.model_dump() for e in board.ranked_list] == [
        {"name": "b", "value": 5.0, "rank": 1},
        {"name": "d", "value": 5.0, "rank": 2},
    ]


def test_rank_groups_by_rate() -> None:
    grouped = {
        "Ariaria Market": AggregateMetric(total=10, completed=5, pending=5, rate=50.0),
        "Aba Main Market": AggregateMetric(total=4, completed=4, pending=0, rate=100.0),
    }
    board = rank_groups(grouped, 5, metric="rate")
    assert [e.name for e in board.ranked_list] == ["Aba Main Market", "Ariaria Market"]

    with pytest.raises(InvalidRankingConfig):
        rank_groups(grouped, 5, metric="revenue")


def test_top_n_leaves_out_nan_metrics() -> None:
    ranked = top_n([("a", 2), ("b", float("nan")), ("c", 7), ("d", 2)], 4)
    assert [(r.name, r.rank) for r in ranked] == [("c", 1), ("a", 2), ("d", 3)]
