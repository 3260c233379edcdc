"""Pipeline board, stage configuration and analytics schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from dealflow.models.enums import StageOutcome
from dealflow.schemas.common import CamelModel
from dealflow.schemas.deals import DealResponse


class PipelineStageCreateRequest(CamelModel):
    label: str = Field(min_length=1, max_length=100)
    probability: int = Field(ge=0, le=100)
    outcome: StageOutcome = StageOutcome.OPEN.value
    color: str = Field(default="#64748b", max_length=20)
    position: int | None = Field(default=None, ge=0)


class PipelineStageUpdateRequest(CamelModel):
    probability: int | None = Field(default=None, ge=0, le=100)
    outcome: StageOutcome | None = None
    color: str | None = Field(default=None, max_length=20)
    position: int | None = Field(default=None, ge=0)


class PipelineStageResponse(CamelModel):
    id: int
    label: str
    position: int
    color: str
    probability: int
    outcome: str


class BoardStats(CamelModel):
    total_deals: int
    total_value: float
    won_deals: int
    won_value: float
    lost_deals: int
    active_deals: int


class PipelineBoardResponse(CamelModel):
    pipeline: dict[str, list[DealResponse]]
    stats: BoardStats


class StageBucket(CamelModel):
    count: int
    value: float


class PipelineAnalyticsResponse(CamelModel):
    win_rate: float
    avg_deal_value: float
    forecast: float
    total_pipeline_value: float
    stage_distribution: dict[str, StageBucket]
    total_deals: int
    active_deals: int


class DashboardTask(CamelModel):
    id: int
    title: str
    due_date: datetime | None = None
    status: str
    priority: int


class StageTotal(CamelModel):
    stage: str
    count: int
    value: float


class DashboardStatsResponse(CamelModel):
    pipeline_value: float
    new_leads: int
    deals_won: int
    close_ratio: float
    recent_tasks: list[DashboardTask]
    pipeline_by_stage: list[StageTotal]
