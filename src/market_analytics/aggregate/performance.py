"""Agent performance metrics.

Builds the per-agent table behind the admin performance dashboard from the
agents' task activities and, optionally, the registrations they brought in.
Completion rates, tiers and headline stats are all derived from that table.
"""
from __future__ import annotations

import logging
from typing import Any

import numpy as np
import pandas as pd

from market_analytics.aggregate.growth import growth
from market_analytics.aggregate.metrics import has_value, rate
from market_analytics.aggregate.periods import SUNDAY, assign_records, build_periods
from market_analytics.clean.transform import clean_records, records_frame
from market_analytics.models import DashboardStats

log = logging.getLogger(__name__)

TASK_STATUSES = ("completed", "pending", "failed")
ACTIVE_THRESHOLD = 60.0

# label, inclusive lower bound, exclusive upper bound
PERFORMANCE_TIERS = (
    ("Excellent (90-100%)", 90.0, None),
    ("Good (70-89%)", 70.0, 90.0),
    ("Average (50-69%)", 50.0, 70.0),
    ("Below Average (<50%)", None, 50.0),
)


def _by_agent(records: Any) -> tuple[pd.DataFrame, int]:
    frame, skipped = clean_records(records_frame(records))
    if "agent_id" not in frame.columns:
        return frame.iloc[0:0].assign(agent_id=pd.Series(dtype=object)), skipped
    return frame.loc[frame["agent_id"].map(has_value).astype(bool)], skipped


def _task_table(tasks: pd.DataFrame) -> pd.DataFrame:
    if "status" in tasks.columns:
        status = tasks["status"].map(lambda s: s.lower() if isinstance(s, str) else s)
    else:
        status = pd.Series(None, index=tasks.index, dtype=object)

    table = pd.DataFrame(
        {s: (status == s).groupby(tasks["agent_id"], sort=False).sum() for s in TASK_STATUSES}
    )
    table = table.reindex(columns=list(TASK_STATUSES), fill_value=0).fillna(0).astype(int)
    return table.rename(columns={s: f"tasks_{s}" for s in TASK_STATUSES})


def agent_performance(
    tasks: Any,
    registrations: Any | None = None,
    reference_date: Any | None = None,
    week_start: int = SUNDAY,
) -> pd.DataFrame:
    """Compute per-agent task and registration metrics.

    Args:
        tasks: Agent activities with `agent_id`, `status` and `created_at`.
        registrations: Optional users/businesses registered by agents
            (`agent_id` or `created_by`, `created_at`).
        reference_date: When given together with `registrations`, adds the
            registrations of the week containing this date and of the week
            before, their growth (`weekly_change`) and `trend`.
        week_start: First weekday of a week.

    Returns:
        DataFrame with one row per agent, sorted by descending completion
        rate (ties keep first-seen order) and a 1-based `rank` column.
        Tasks and registrations dropped for an unparseable `created_at` are
        counted in `attrs["skipped_records"]`.
    """
    task_frame, skipped = _by_agent(tasks)
    table = _task_table(task_frame)

    reg_frame = None
    if registrations is not None:
        reg_frame, reg_skipped = _by_agent(registrations)
        skipped += reg_skipped
        reg_counts = reg_frame.groupby("agent_id", sort=False).size()
        table = table.reindex(table.index.union(reg_counts.index, sort=False), fill_value=0)
        table["registrations"] = reg_counts.reindex(table.index, fill_value=0).astype(int)
    else:
        table["registrations"] = 0

    table.index.name = "agent_id"
    table["total_tasks"] = table[[f"tasks_{s}" for s in TASK_STATUSES]].sum(axis=1)
    totals = table["total_tasks"]
    table["completion_rate"] = np.where(
        totals > 0,
        table["tasks_completed"] * 100.0 / totals.clip(lower=1),
        0.0,
    )

    if reg_frame is not None and reference_date is not None:
        previous, current = assign_records(
            reg_frame, build_periods(reference_date, 2, "week", week_start)
        )
        cur = current.records.groupby("agent_id").size().reindex(table.index, fill_value=0)
        prev = previous.records.groupby("agent_id").size().reindex(table.index, fill_value=0)
        table["current_week"] = cur.astype(int)
        table["previous_week"] = prev.astype(int)
        changes = [growth(c, p) for c, p in zip(table["current_week"], table["previous_week"])]
        table["weekly_change"] = [g.value for g in changes]
        table["trend"] = [g.direction for g in changes]

    table = table.sort_values("completion_rate", ascending=False, kind="stable").reset_index()
    table["rank"] = np.arange(1, len(table) + 1)
    table.attrs["skipped_records"] = skipped
    log.info("Computed performance for %d agents", len(table))
    return table


def performance_tiers(frame: pd.DataFrame) -> dict[str, int]:
    """Count agents per completion-rate tier."""
    rates = frame["completion_rate"] if "completion_rate" in frame.columns else pd.Series(dtype=float)
    tiers: dict[str, int] = {}
    for label, low, high in PERFORMANCE_TIERS:
        mask = pd.Series(True, index=rates.index)
        if low is not None:
            mask &= rates >= low
        if high is not None:
            mask &= rates < high
        tiers[label] = int(mask.sum())
    return tiers


def dashboard_stats(frame: pd.DataFrame, active_threshold: float = ACTIVE_THRESHOLD) -> DashboardStats:
    """Summarize an `agent_performance` table.

    Active agents have a completion rate strictly above `active_threshold`.
    `improvement_rate` is the share of agents trending up and is only set
    when the table carries weekly trends.
    """
    if frame.empty:
        return DashboardStats(
            total_agents=0,
            active_agents=0,
            total_tasks_completed=0,
            avg_completion_rate=0.0,
        )

    rates = frame["completion_rate"]
    best = frame.sort_values("completion_rate", ascending=False, kind="stable").iloc[0]
    improvement = None
    if "trend" in frame.columns:
        improvement = rate(int((frame["trend"] == "up").sum()), len(frame))

    return DashboardStats(
        total_agents=len(frame),
        active_agents=int((rates > active_threshold).sum()),
        total_tasks_completed=int(frame["tasks_completed"].sum()),
        avg_completion_rate=float(rates.mean()),
        top_performer=str(best["agent_id"]),
        improvement_rate=improvement,
    )
