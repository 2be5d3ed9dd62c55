"""Period aggregation and trend engine.

This package turns in-memory records into reporting periods, per-period
and per-group counts, period-over-period growth and top-N leaderboards.
Nothing in here opens a connection: records are fetched by the caller and
passed in as plain rows or DataFrames.
"""
