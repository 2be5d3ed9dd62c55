"""Pydantic models for incoming records and analytics outputs.

`ActivityRecord` validates rows fetched from the hosted store. The remaining
models shape what the aggregation core hands to the presentation layer:
chart series, leaderboards and report envelopes carrying warning counts.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

Direction = Literal["up", "down", "flat"]


class ActivityRecord(BaseModel):
    """Schema for a timestamped record (registration, business, task).

    Attributes:
        id: Store identifier.
        created_at: Creation instant (`createdAt` in the portal payloads).
        agent_id: Agent or owner id (`agentId` / `created_by`).
        market_name: Optional market dimension.
        category_name: Optional category dimension.
        business_name: Optional business name (used for conversion rates).
        status: Optional status such as `completed` or `pending`.
        task_type: Optional task type for agent activities.
        completed: Optional explicit completion flag.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    id: str | int = Field(validation_alias=AliasChoices("id", "_id"))
    created_at: datetime = Field(validation_alias=AliasChoices("created_at", "createdAt"))
    agent_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("agent_id", "agentId", "created_by"),
    )
    market_name: str | None = Field(
        default=None, validation_alias=AliasChoices("market_name", "marketName")
    )
    category_name: str | None = Field(
        default=None, validation_alias=AliasChoices("category_name", "categoryName")
    )
    business_name: str | None = Field(
        default=None, validation_alias=AliasChoices("business_name", "businessName")
    )
    status: str | None = None
    task_type: str | None = Field(
        default=None, validation_alias=AliasChoices("task_type", "taskType", "action_type")
    )
    completed: bool | None = None


class AggregateMetric(BaseModel):
    """Counts for one bucket or group.

    `completed` and `pending` are None when the records carry no completion
    flag; otherwise `completed + pending == total`.
    """
    model_config = ConfigDict(extra="forbid")
    total: int = Field(..., ge=0)
    completed: int | None = Field(default=None, ge=0)
    pending: int | None = Field(default=None, ge=0)
    rate: float = Field(default=0.0, ge=0.0, le=100.0)


class GrowthMetric(BaseModel):
    """Period-over-period percentage change and its trend direction."""
    model_config = ConfigDict(extra="forbid")
    value: float
    direction: Direction


class RankedEntity(BaseModel):
    """An agent, market or category placed on a leaderboard."""
    model_config = ConfigDict(extra="forbid")
    name: str
    value: float
    rank: int = Field(..., ge=1)


class Leaderboard(BaseModel):
    ranked_list: list[RankedEntity] = Field(default_factory=list)


class ChartSeries(BaseModel):
    """Labels plus one numeric list per series, aligned index by index."""
    labels: list[str] = Field(default_factory=list)
    series: dict[str, list[float]] = Field(default_factory=dict)


class TrendReport(BaseModel):
    """Bucketed trend for a window of periods.

    Attributes:
        reference_date: Date anchoring the newest period.
        window_unit: `day`, `week` or `month`.
        window_count: Number of periods.
        group_by: Column used for the series breakdown and leaderboard.
        chart: Presentation series, oldest period first.
        totals: One metric per period, oldest period first.
        growth: Newest period vs the one before it (None for a single period).
        growth_by_period: Growth between each pair of adjacent periods.
        leaderboard: Top groups over the whole window when grouped.
        skipped_records: Records dropped for an unparseable timestamp.
    """
    reference_date: date
    window_unit: str
    window_count: int = Field(..., ge=1)
    group_by: str | None = None
    chart: ChartSeries
    totals: list[AggregateMetric]
    growth: GrowthMetric | None = None
    growth_by_period: list[GrowthMetric] = Field(default_factory=list)
    leaderboard: Leaderboard | None = None
    skipped_records: int = Field(default=0, ge=0)


class PlatformSummary(BaseModel):
    """Stat-card figures for the admin analytics overview."""
    reference_date: date
    days: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    previous_total: int = Field(..., ge=0)
    new_in_window: int = Field(..., ge=0)
    growth: GrowthMetric
    conversion_rate: float = Field(..., ge=0.0, le=100.0)
    skipped_records: int = Field(default=0, ge=0)


class DashboardStats(BaseModel):
    """Headline numbers for the agent performance dashboard."""
    total_agents: int = Field(..., ge=0)
    active_agents: int = Field(..., ge=0)
    total_tasks_completed: int = Field(..., ge=0)
    avg_completion_rate: float = Field(..., ge=0.0, le=100.0)
    top_performer: str | None = None
    improvement_rate: float | None = None


class Page(BaseModel):
    items: list[dict[str, Any]] = Field(default_factory=list)
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)
