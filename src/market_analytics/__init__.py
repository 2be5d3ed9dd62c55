"""market_analytics package.

Period aggregation and trend engine for the marketplace admin and agent
portal: records fetched from the hosted store are cleaned, bucketed into
day/week/month periods, aggregated, compared period-over-period and ranked
into presentation-ready series and leaderboards.

Architecture:
- MongoDB is the external record store (read by the CLI only)
- The `aggregate` package is pure and works on in-memory records
- Dask is used for partitioned cleaning of large collection loads
- Pydantic models validate records and shape the output envelopes
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
