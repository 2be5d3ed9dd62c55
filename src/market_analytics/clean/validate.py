"""Validation utilities for incoming records.

Documents are validated against the Pydantic `ActivityRecord` model. Invalid
documents are counted rather than raised so one bad row never stops a report.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from market_analytics.models import ActivityRecord

log = logging.getLogger(__name__)


def _check(rec: Mapping[str, Any]) -> ActivityRecord | None:
    try:
        return ActivityRecord.model_validate(dict(rec))
    except ValidationError as exc:
        log.debug("Rejected record %r: %s", rec.get("id"), exc)
        return None


def validate_records(rows: Iterable[Mapping[str, Any]]) -> tuple[list[ActivityRecord], int]:
    """Validate raw documents using Pydantic.

    Args:
        rows: Documents as returned by the store.

    Returns:
        A tuple of (list_of_validated_records, bad_count).
    """
    good: list[ActivityRecord] = []
    bad = 0

    for rec in rows:
        model = _check(rec)
        if model is None:
            bad += 1
        else:
            good.append(model)

    if bad:
        log.warning("Validation rejected %d of %d records", bad, bad + len(good))
    return good, bad


def keep_valid(rows: Iterable[Mapping[str, Any]]) -> tuple[list[dict[str, Any]], int]:
    """Filter raw documents down to the ones that validate.

    Passing documents are returned unchanged, so nested relations
    (`markets`, `business_categories`) and extra columns such as `name`
    still reach `clean_records`.

    Returns:
        A tuple of (kept documents, bad_count).
    """
    kept: list[dict[str, Any]] = []
    bad = 0

    for rec in rows:
        if _check(rec) is None:
            bad += 1
        else:
            kept.append(dict(rec))

    if bad:
        log.warning("Validation rejected %d of %d records", bad, bad + len(kept))
    return kept, bad
