from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from market_analytics.clean.validate import validate_records
from market_analytics.models import ActivityRecord, AggregateMetric


def test_activity_record_accepts_payload_aliases() -> None:
    rec = ActivityRecord.model_validate({
        "id": "b1",
        "createdAt": "2024-03-01T09:00:00Z",
        "created_by": "agent-1",
        "marketName": "Ariaria Market",
        "status": "completed",
    })
    assert rec.agent_id == "agent-1"
    assert rec.market_name == "Ariaria Market"
    assert rec.created_at == datetime(2024, 3, 1, 9, tzinfo=timezone.utc)
    assert rec.category_name is None


def test_activity_record_requires_created_at() -> None:
    with pytest.raises(ValidationError):
        ActivityRecord.model_validate({"id": "b1"})


def test_aggregate_metric_rejects_out_of_range_rate() -> None:
    with pytest.raises(ValidationError):
        AggregateMetric(total=1, rate=120.0)


def test_validate_records_counts_bad_rows() -> None:
    good, bad = validate_records([
        {"id": 1, "created_at": "2024-03-01"},
        {"id": 2, "created_at": "soon"},
        {"created_at": "2024-03-01"},
    ])
    assert [r.id for r in good] == [1]
    assert bad == 2
