"""Cleaning and normalization utilities.

Rows fetched from the hosted store use a mix of camelCase payload keys,
snake_case column names and nested relation objects (`markets: {name}`).
`clean_records` maps them onto one stable schema with a parsed, naive-UTC
`created_at` column. `clean_records_ddf` runs the same function partition
by partition with Dask for large collection loads.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping
from typing import cast, Any as TypingAny

import pandas as pd
from dask import delayed, compute  # type: ignore[attr-defined]
from pydantic import BaseModel

log = logging.getLogger(__name__)

COLUMN_ALIASES = {
    "createdAt": "created_at",
    "agentId": "agent_id",
    "created_by": "agent_id",
    "marketName": "market_name",
    "categoryName": "category_name",
    "businessName": "business_name",
    "taskType": "task_type",
    "action_type": "task_type",
}

# relation column -> (target column, keys tried in order)
RELATIONS = {
    "markets": ("market_name", ("name",)),
    "business_categories": ("category_name", ("name", "title")),
}

TEXT_COLUMNS = ("agent_id", "market_name", "category_name", "business_name", "status", "task_type")


def records_frame(records: Any) -> pd.DataFrame:
    """Return a pandas DataFrame for a DataFrame, or an iterable of mappings / models."""
    if isinstance(records, pd.DataFrame):
        return records.copy()
    rows: list[dict[str, Any]] = []
    for rec in cast(Iterable[Any], records):
        if isinstance(rec, BaseModel):
            rows.append(rec.model_dump())
        else:
            rows.append(dict(cast(Mapping[str, Any], rec)))
    return pd.DataFrame(rows)


def _relation_value(value: Any, keys: tuple[str, ...]) -> Any:
    """Pull a display name out of `{name: ...}` or `[{name: ...}]` relation payloads."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, Mapping):
        for key in keys:
            if value.get(key):
                return value[key]
    return None


def _clean_text(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip() or None
    return value


def clean_records(pdf: pd.DataFrame) -> tuple[pd.DataFrame, int]:
    """Normalize a frame of raw records.

    Renames payload aliases, flattens relation objects, trims text dimensions
    (empty strings become null) and parses `created_at` as ISO-8601. Rows
    whose timestamp is missing or unparseable are dropped and counted.

    Args:
        pdf: Raw records as a pandas DataFrame.

    Returns:
        A tuple of (cleaned DataFrame, number of skipped rows).
    """
    pdf = pdf.copy()

    # -----------------------------
    # Column aliases
    # -----------------------------
    for src, dst in COLUMN_ALIASES.items():
        if src in pdf.columns and dst not in pdf.columns:
            pdf = pdf.rename(columns={src: dst})

    # -----------------------------
    # Nested relations
    # -----------------------------
    for relation, (target, keys) in RELATIONS.items():
        if relation in pdf.columns:
            flattened = pdf[relation].map(lambda v: _relation_value(v, keys))
            if target in pdf.columns:
                pdf[target] = pdf[target].where(pdf[target].notna(), flattened)
            else:
                pdf[target] = flattened
            pdf = pdf.drop(columns=[relation])

    # -----------------------------
    # Text dimensions
    # -----------------------------
    for col in TEXT_COLUMNS:
        if col in pdf.columns:
            pdf[col] = pdf[col].map(_clean_text)

    # -----------------------------
    # Timestamps
    # -----------------------------
    if "created_at" not in pdf.columns:
        skipped = len(pdf)
        if skipped:
            log.warning("Skipped %d records without a created_at column", skipped)
        empty = pdf.iloc[0:0].assign(created_at=pd.Series(dtype="datetime64[ns]"))
        return empty, skipped

    parsed = pd.to_datetime(pdf["created_at"], errors="coerce", utc=True, format="ISO8601")
    parsed = parsed.dt.tz_convert(None)
    valid = parsed.notna()
    skipped = int((~valid).sum())
    if skipped:
        log.warning("Skipped %d records with an unparseable created_at", skipped)

    pdf = pdf.loc[valid].assign(created_at=parsed.loc[valid]).reset_index(drop=True)
    return pdf, skipped


def clean_records_ddf(ddf: Any) -> tuple[pd.DataFrame, int]:
    """Clean every partition of a Dask DataFrame and gather the result.

    Uses `to_delayed()` so each partition can change its own schema (renamed
    and flattened columns) without declaring Dask metadata up front.

    Returns:
        A tuple of (cleaned pandas DataFrame, total skipped rows).
    """
    log.info("Cleaning %d record partitions", ddf.npartitions)

    tasks = [delayed(clean_records)(part) for part in ddf.to_delayed()]
    # `compute` is untyped in our environment; cast to Any before calling
    results = cast(TypingAny, compute)(*tasks)

    frames = [frame for frame, _ in results]
    skipped = sum(s for _, s in results)
    if not frames:
        return clean_records(pd.DataFrame())[0], 0

    pdf = pd.concat(frames, ignore_index=True)
    log.info("Cleaned %d records (skipped=%d)", len(pdf), skipped)
    return pdf, int(skipped)
