"""Exceptions raised for invalid analytics requests.

Only configuration problems are raised. Bad records are skipped and
reported through the `skipped_records` count of the result envelopes.
"""

from __future__ import annotations


class AnalyticsError(ValueError):
    """Base class for rejected analytics parameters."""


class InvalidWindowConfig(AnalyticsError):
    """Raised when a window count or window unit cannot be bucketed."""


class InvalidRankingConfig(AnalyticsError):
    """Raised when a top-N request has a non-positive size."""


class InvalidPageRequest(AnalyticsError):
    """Raised when a page number or page size is out of range."""
