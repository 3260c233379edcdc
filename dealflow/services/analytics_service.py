"""Pipeline analytics: read-side projection recomputed on every request."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from dealflow.models import Deal, Lead, PipelineStage, Task
from dealflow.models.enums import LeadStatus, StageOutcome
from dealflow.services.base_service import BaseService
from dealflow.services.stage_service import PipelineStageService

logger = logging.getLogger(__name__)


def _outcome_by_label(stages: Sequence[PipelineStage]) -> dict[str, str]:
    return {stage.label: stage.outcome for stage in stages}


def _ordered_labels(deals: Iterable[Deal], stages: Sequence[PipelineStage]) -> list[str]:
    """Configured labels in position order, then unknown labels in first-seen order."""
    labels = [stage.label for stage in stages]
    for deal in deals:
        if deal.stage not in labels:
            labels.append(deal.stage)
    return labels


def compute_pipeline_summary(deals: Sequence[Deal], stages: Sequence[PipelineStage]) -> dict[str, Any]:
    """Aggregate pipeline metrics over `deals`.

    Win rate is won / (won + lost) * 100 rounded to one decimal and is 0 when
    no deal is closed. Forecast weights open deals by their probability.
    """
    outcomes = _outcome_by_label(stages)
    distribution: dict[str, dict[str, float | int]] = {
        label: {"count": 0, "value": 0.0} for label in _ordered_labels(deals, stages)
    }

    total_value = 0.0
    forecast = 0.0
    won = 0
    lost = 0
    for deal in deals:
        value = float(deal.value or 0)
        total_value += value
        bucket = distribution[deal.stage]
        bucket["count"] += 1
        bucket["value"] += value

        outcome = outcomes.get(deal.stage, StageOutcome.OPEN.value)
        if outcome == StageOutcome.WON.value:
            won += 1
        elif outcome == StageOutcome.LOST.value:
            lost += 1
        else:
            forecast += value * (deal.probability or 0) / 100

    closed = won + lost
    total_deals = len(deals)
    for bucket in distribution.values():
        bucket["value"] = round(bucket["value"], 2)

    return {
        "winRate": round(won / closed * 100, 1) if closed else 0,
        "avgDealValue": round(total_value / total_deals, 2) if total_deals else 0,
        "forecast": round(forecast, 2),
        "totalPipelineValue": round(total_value, 2),
        "stageDistribution": distribution,
        "totalDeals": total_deals,
        "activeDeals": total_deals - closed,
    }


def compute_board_stats(deals: Sequence[Deal], stages: Sequence[PipelineStage]) -> dict[str, Any]:
    outcomes = _outcome_by_label(stages)
    won = [d for d in deals if outcomes.get(d.stage) == StageOutcome.WON.value]
    lost = [d for d in deals if outcomes.get(d.stage) == StageOutcome.LOST.value]
    return {
        "totalDeals": len(deals),
        "totalValue": round(sum(float(d.value or 0) for d in deals), 2),
        "wonDeals": len(won),
        "wonValue": round(sum(float(d.value or 0) for d in won), 2),
        "lostDeals": len(lost),
        "activeDeals": len(deals) - len(won) - len(lost),
    }


def compute_dashboard_stats(
    deals: Sequence[Deal], stages: Sequence[PipelineStage], new_leads: int, recent_tasks: Sequence[Task]
) -> dict[str, Any]:
    """Headline numbers for the home dashboard. Pipeline value counts open deals only."""
    outcomes = _outcome_by_label(stages)
    by_stage: dict[str, dict[str, Any]] = {
        label: {"stage": label, "count": 0, "value": 0.0} for label in _ordered_labels(deals, stages)
    }
    open_value = 0.0
    won = 0
    lost = 0
    for deal in deals:
        value = float(deal.value or 0)
        by_stage[deal.stage]["count"] += 1
        by_stage[deal.stage]["value"] += value
        outcome = outcomes.get(deal.stage, StageOutcome.OPEN.value)
        if outcome == StageOutcome.WON.value:
            won += 1
        elif outcome == StageOutcome.LOST.value:
            lost += 1
        else:
            open_value += value

    closed = won + lost
    return {
        "pipelineValue": round(open_value, 2),
        "newLeads": new_leads,
        "dealsWon": won,
        "closeRatio": round(won / closed * 100, 1) if closed else 0,
        "recentTasks": list(recent_tasks),
        "pipelineByStage": [{**row, "value": round(row["value"], 2)} for row in by_stage.values()],
    }


def _day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


class PipelineAnalyticsService(BaseService):
    """Full-scan analytics over a tenant's non-deleted deals."""

    def _load_deals(
        self,
        tenant_id: int,
        owner_id: int | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[Deal]:
        query = self.db.query(Deal).filter(Deal.tenant_id == tenant_id, Deal.deleted_at.is_(None))
        if owner_id is not None:
            query = query.filter(Deal.owner_id == owner_id)
        if start is not None:
            query = query.filter(Deal.created_at >= _day_start(start))
        if end is not None:
            # inclusive of the whole end day
            query = query.filter(Deal.created_at < _day_start(end + timedelta(days=1)))
        return query.order_by(Deal.created_at.desc(), Deal.id.desc()).all()

    def summarize(
        self,
        tenant_id: int,
        owner_id: int | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> dict[str, Any]:
        deals = self._load_deals(tenant_id, owner_id=owner_id, start=start, end=end)
        stages = PipelineStageService(self.db).list_stages(tenant_id)
        summary = compute_pipeline_summary(deals, stages)
        logger.info(
            "analytics.pipeline_summarized",
            extra={
                "event": "analytics.pipeline_summarized",
                "tenant_id": tenant_id,
                "deal_count": summary["totalDeals"],
            },
        )
        return summary

    def board(self, tenant_id: int, owner_id: int | None = None) -> dict[str, Any]:
        """Kanban board: deals grouped by stage label plus headline stats."""
        deals = self._load_deals(tenant_id, owner_id=owner_id)
        stages = PipelineStageService(self.db).list_stages(tenant_id)
        pipeline: dict[str, list[Deal]] = {label: [] for label in _ordered_labels(deals, stages)}
        for deal in deals:
            pipeline[deal.stage].append(deal)
        return {"pipeline": pipeline, "stats": compute_board_stats(deals, stages)}

    def dashboard(self, tenant_id: int, owner_id: int | None = None, task_limit: int = 5) -> dict[str, Any]:
        deals = self._load_deals(tenant_id, owner_id=owner_id)
        stages = PipelineStageService(self.db).list_stages(tenant_id)

        leads = self.db.query(Lead).filter(
            Lead.tenant_id == tenant_id, Lead.deleted_at.is_(None), Lead.status == LeadStatus.NEW.value
        )
        tasks = self.db.query(Task).filter(
            Task.tenant_id == tenant_id, Task.deleted_at.is_(None), Task.completed.is_(False)
        )
        if owner_id is not None:
            leads = leads.filter(Lead.owner_id == owner_id)
            tasks = tasks.filter(Task.assigned_to_id == owner_id)
        recent_tasks = (
            tasks.order_by(Task.due_date.is_(None), Task.due_date.asc(), Task.id.asc()).limit(task_limit).all()
        )
        return compute_dashboard_stats(deals, stages, leads.count(), recent_tasks)
