"""Shared fixtures: synthetic portal records for bucketing and ranking tests."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

import numpy as np
import pytest

MARKETS = ["Ariaria Market", "Aba Main Market", "Eziukwu Market", "Cemetery Market", None]
CATEGORIES = ["Fashion & Textiles", "Electronics", "Food & Beverages", None]
STATUSES = ["completed", "pending", "failed"]


@pytest.fixture
def synthetic_records() -> list[dict[str, Any]]:
    """400 seeded random business registrations between Jun 2023 and Jun 2024."""
    rng = np.random.default_rng(42)
    start = datetime(2023, 6, 1)
    records = []
    for i in range(400):
        created = start + timedelta(minutes=int(rng.integers(0, 366 * 24 * 60)))
        records.append(
            {
                "id": f"biz-{i}",
                "createdAt": created.isoformat() + "Z",
                "agentId": f"agent-{int(rng.integers(1, 6))}",
                "marketName": MARKETS[int(rng.integers(0, len(MARKETS)))],
                "categoryName": CATEGORIES[int(rng.integers(0, len(CATEGORIES)))],
                "status": STATUSES[int(rng.integers(0, len(STATUSES)))],
            }
        )
    return records


@pytest.fixture
def make_records():
    """Factory building minimal records from (created_at, extra fields) pairs."""

    def _make(*rows: tuple[str | None, dict[str, Any]]) -> list[dict[str, Any]]:
        return [
            {"id": f"rec-{i}", "created_at": created, **extra}
            for i, (created, extra) in enumerate(rows)
        ]

    return _make
