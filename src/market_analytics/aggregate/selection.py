"""Filter, search, sort and paginate table rows.

Listing pages (agents, businesses, markets) keep their filter and page
selection as plain arguments to `select_and_paginate`, which returns one
page plus the counts the pagination widget needs.
"""
from __future__ import annotations

import math
from typing import Any, Iterable, Mapping

import pandas as pd

from market_analytics.clean.transform import records_frame
from market_analytics.exceptions import InvalidPageRequest
from market_analytics.models import Page

# filter value meaning "no filter" in the portal's select boxes
ALL = "all"


def _sort_key(col: pd.Series) -> pd.Series:
    if pd.api.types.is_string_dtype(col) or col.dtype == object:
        return col.map(lambda v: v.lower() if isinstance(v, str) else v)
    return col


def select_and_paginate(
    rows: Any,
    filters: Mapping[str, Any] | None = None,
    search: str | None = None,
    search_fields: Iterable[str] = (),
    sort_by: str | None = None,
    descending: bool = True,
    page: int = 1,
    page_size: int = 10,
) -> Page:
    """Return one page of the rows matching the filters and search text.

    Args:
        rows: DataFrame or iterable of row mappings.
        filters: Column -> required value. `None` or "all" disables a filter.
        search: Case-insensitive substring matched against `search_fields`.
        search_fields: Columns searched; a row matches if any column does.
        sort_by: Optional column to sort on (strings compare case-insensitively).
        descending: Sort direction.
        page: 1-based page number; pages past the end are empty.
        page_size: Rows per page.

    Raises:
        InvalidPageRequest: if `page` or `page_size` is below 1.
    """
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise InvalidPageRequest(f"page must be an integer >= 1, got {page!r}")
    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
        raise InvalidPageRequest(f"page_size must be an integer >= 1, got {page_size!r}")

    frame = records_frame(rows)

    for col, value in (filters or {}).items():
        if value is None or value == ALL:
            continue
        if col not in frame.columns:
            frame = frame.iloc[0:0]
            break
        frame = frame.loc[frame[col] == value]

    fields = [f for f in search_fields if f in frame.columns]
    if search and search.strip() and fields:
        needle = search.strip().lower()
        mask = pd.Series(False, index=frame.index)
        for f in fields:
            mask |= frame[f].astype("string").str.lower().str.contains(needle, regex=False).fillna(False)
        frame = frame.loc[mask]

    if sort_by is not None and sort_by in frame.columns:
        frame = frame.sort_values(sort_by, ascending=not descending, kind="stable", key=_sort_key)

    total = len(frame)
    window = frame.iloc[(page - 1) * page_size : page * page_size]
    items = window.astype(object).where(window.notna(), None).to_dict("records")

    return Page(
        items=items,
        page=page,
        page_size=page_size,
        total=total,
        total_pages=math.ceil(total / page_size),
    )
