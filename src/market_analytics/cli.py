"""Command-line interface for computing marketplace analytics.

Provides subcommands: `trend`, `summary` and `agents`. Each command is
implemented as a `cmd_*` function that accepts an argparse namespace, reads
its records from MongoDB, runs the aggregation core and prints JSON.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, datetime, timezone
from typing import Any
from typing import cast, Any as TypingAny

import dask
import dask.dataframe as dd
import pandas as pd
from dotenv import load_dotenv

from market_analytics.config import Settings, get_settings
from market_analytics.db import fetch_records, get_client, get_db
from market_analytics.exceptions import AnalyticsError
from market_analytics.logging_config import configure_logging

# CLEAN
from market_analytics.clean.transform import clean_records_ddf
from market_analytics.clean.validate import keep_valid

# AGGREGATE
from market_analytics.aggregate.load_report import load_reports
from market_analytics.aggregate.performance import (
    agent_performance,
    dashboard_stats,
    performance_tiers,
)
from market_analytics.aggregate.periods import WINDOW_UNITS
from market_analytics.aggregate.ranking import leaderboard
from market_analytics.aggregate.report import build_trend_report, platform_summary

log = logging.getLogger(__name__)

RANKABLE_COLUMNS = ("completion_rate", "tasks_completed", "registrations", "total_tasks")


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _records_to_ddf(docs: list[dict[str, Any]], partition_rows: int = 200_000) -> Any:
    """Wrap fetched documents in a Dask DataFrame with a stable partitioning.

    Object columns stay as Python objects: relation payloads (`markets`) are
    dicts or lists that `clean_records` flattens, and must not be cast to
    pyarrow strings.
    """
    pdf = pd.DataFrame(docs)
    nparts = max(1, len(pdf) // partition_rows)
    dd_mod = cast(TypingAny, dd)
    with dask.config.set({"dataframe.convert-string": False}):
        return dd_mod.from_pandas(pdf, npartitions=nparts)


def _load_records(s: Settings, collection_name: str, validate: bool) -> tuple[pd.DataFrame, int]:
    """Fetch, optionally validate, and clean a collection.

    Returns:
        A tuple of (cleaned records, number of rejected or skipped rows).
    """
    client = get_client(s.mongo_uri)
    db = get_db(client, s.mongo_db)
    docs = fetch_records(db[collection_name])

    rejected = 0
    if validate:
        docs, rejected = keep_valid(docs)

    frame, skipped = clean_records_ddf(_records_to_ddf(docs))
    return frame, rejected + skipped


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _emit(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, default=str))


# --------------------------------------------------
# TREND
# --------------------------------------------------
def cmd_trend(args: argparse.Namespace) -> None:
    """Bucket a collection into a window of periods and print the trend report.

    Args:
        args: argparse namespace with `collection`, `unit`, `count`,
            `reference_date`, `group_by`, `top_n`, `rank_metric`, `validate`,
            `store`.
    """
    s = get_settings()
    collection = args.collection or s.records_collection
    unit = args.unit or s.default_window_unit
    count = args.count or s.default_window_count
    top_n = args.top_n or s.leaderboard_size

    frame, dropped = _load_records(s, collection, args.validate)
    report = build_trend_report(
        frame,
        args.reference_date,
        count,
        unit,
        group_by=args.group_by,
        top_n=top_n,
        rank_metric=args.rank_metric,
    )
    report = report.model_copy(update={"skipped_records": report.skipped_records + dropped})
    if report.skipped_records:
        log.warning("%d records were skipped while building the report", report.skipped_records)

    if args.store:
        client = get_client(s.mongo_uri)
        load_reports(
            [report],
            get_db(client, s.mongo_db)[s.reports_collection],
            ["kind", "source", "window_unit", "window_count", "reference_date", "group_by"],
            extra={"kind": "trend", "source": collection},
        )

    _emit(report.model_dump(mode="json"))


# --------------------------------------------------
# SUMMARY
# --------------------------------------------------
def cmd_summary(args: argparse.Namespace) -> None:
    """Print the stat-card summary (totals, new records, growth, conversion)."""
    s = get_settings()
    collection = args.collection or s.records_collection

    frame, dropped = _load_records(s, collection, args.validate)
    summary = platform_summary(frame, args.reference_date, args.days)
    summary = summary.model_copy(update={"skipped_records": summary.skipped_records + dropped})

    if args.store:
        client = get_client(s.mongo_uri)
        load_reports(
            [summary],
            get_db(client, s.mongo_db)[s.reports_collection],
            ["kind", "source", "reference_date", "days"],
            extra={"kind": "summary", "source": collection},
        )

    _emit(summary.model_dump(mode="json"))


# --------------------------------------------------
# AGENTS
# --------------------------------------------------
def cmd_agents(args: argparse.Namespace) -> None:
    """Print agent performance: leaderboard, tiers and dashboard stats."""
    s = get_settings()
    tasks, dropped = _load_records(s, args.tasks_collection or s.tasks_collection, args.validate)

    registrations = None
    if args.registrations_collection:
        registrations, reg_dropped = _load_records(s, args.registrations_collection, args.validate)
        dropped += reg_dropped

    table = agent_performance(tasks, registrations, reference_date=args.reference_date)
    dropped += table.attrs.get("skipped_records", 0)
    board = leaderboard(
        zip(table["agent_id"].astype(str), table[args.rank_by]),
        args.top_n or s.leaderboard_size,
    )

    _emit(
        {
            "leaderboard": board.model_dump(mode="json"),
            "tiers": performance_tiers(table),
            "stats": dashboard_stats(table).model_dump(mode="json"),
            "skipped_records": dropped,
        }
    )


# --------------------------------------------------
# CLI
# --------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    p = argparse.ArgumentParser(prog="market-analytics")
    sub = p.add_subparsers(dest="cmd", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--reference-date", type=date.fromisoformat, default=_today())
    common.add_argument("--validate", action="store_true")

    p_trend = sub.add_parser("trend", parents=[common])
    p_trend.add_argument("--collection", default=None)
    p_trend.add_argument("--unit", choices=WINDOW_UNITS, default=None)
    p_trend.add_argument("--count", type=int, default=None)
    p_trend.add_argument("--group-by", default=None)
    p_trend.add_argument("--top-n", type=int, default=None)
    p_trend.add_argument("--rank-metric", choices=["total", "completed", "pending", "rate"], default="total")
    p_trend.add_argument("--store", action="store_true")

    p_summary = sub.add_parser("summary", parents=[common])
    p_summary.add_argument("--collection", default=None)
    p_summary.add_argument("--days", type=int, default=30)
    p_summary.add_argument("--store", action="store_true")

    p_agents = sub.add_parser("agents", parents=[common])
    p_agents.add_argument("--tasks-collection", default=None)
    p_agents.add_argument("--registrations-collection", default=None)
    p_agents.add_argument("--rank-by", choices=RANKABLE_COLUMNS, default="completion_rate")
    p_agents.add_argument("--top-n", type=int, default=None)

    return p


def main() -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args()

    configure_logging(get_settings().log_path, stream=sys.stderr)

    commands = {"trend": cmd_trend, "summary": cmd_summary, "agents": cmd_agents}
    try:
        commands[args.cmd](args)
    except AnalyticsError as exc:
        parser.error(str(exc))


if __name__ == "__main__":
    main()
