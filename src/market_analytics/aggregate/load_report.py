"""Utilities for storing computed reports in MongoDB.

Reports are small, so each one becomes a single document upserted into a
dedicated collection keyed by the report's identifying fields.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from pydantic import BaseModel
from pymongo import UpdateOne
from pymongo.collection import Collection

log = logging.getLogger(__name__)


def report_document(report: BaseModel, extra: dict[str, Any] | None = None) -> dict[str, Any]:
    """Serialize a report model into a Mongo document.

    Dates become ISO strings; `extra` fields (e.g. the source collection)
    are merged on top and `generated_at` is stamped in UTC.
    """
    doc = report.model_dump(mode="json")
    doc.update(extra or {})
    doc["generated_at"] = datetime.now(timezone.utc)
    return doc


def load_reports(
    reports: Iterable[BaseModel],
    collection: Collection[dict[str, Any]],
    key_fields: list[str],
    extra: dict[str, Any] | None = None,
) -> int:
    """Upsert reports into a collection.

    Args:
        reports: Report models (`TrendReport`, `PlatformSummary`, ...).
        collection: Target PyMongo collection.
        key_fields: Document fields forming the upsert key.
        extra: Fields added to every document before upserting.

    Returns:
        Number of upsert operations written.

    Raises:
        KeyError: if a document lacks one of `key_fields`.
    """
    ops = []
    for report in reports:
        doc = report_document(report, extra)
        query = {k: doc[k] for k in key_fields}
        ops.append(UpdateOne(query, {"$set": doc}, upsert=True))

    if not ops:
        log.warning("No reports to load into %s", collection.name)
        return 0

    collection.bulk_write(ops, ordered=False)
    log.info("Report load complete for %s: %d documents", collection.name, len(ops))
    return len(ops)
