from __future__ import annotations

from datetime import date, datetime, timezone
from types import SimpleNamespace

from dealflow.services.analytics_service import (
    PipelineAnalyticsService,
    compute_board_stats,
    compute_dashboard_stats,
    compute_pipeline_summary,
)
from dealflow.services.deal_service import DealService
from dealflow.services.lead_service import LeadService
from dealflow.services.task_service import TaskService


def _stage(label, outcome="open"):
    return SimpleNamespace(label=label, outcome=outcome)


def _deal(stage, value, probability=10):
    return SimpleNamespace(stage=stage, value=value, probability=probability)


STAGES = [
    _stage("Prospecting"),
    _stage("Proposal"),
    _stage("Closed - Won", "won"),
    _stage("Closed - Lost", "lost"),
]


def test_empty_pipeline_has_zero_metrics():
    summary = compute_pipeline_summary([], STAGES)

    assert summary["winRate"] == 0
    assert summary["avgDealValue"] == 0
    assert summary["forecast"] == 0
    assert summary["totalDeals"] == 0
    assert list(summary["stageDistribution"]) == ["Prospecting", "Proposal", "Closed - Won", "Closed - Lost"]
    assert summary["stageDistribution"]["Proposal"] == {"count": 0, "value": 0.0}


def test_win_rate_is_zero_without_closed_deals():
    summary = compute_pipeline_summary([_deal("Prospecting", 1000), _deal("Proposal", 3000, 50)], STAGES)

    assert summary["winRate"] == 0
    assert summary["activeDeals"] == 2
    assert summary["avgDealValue"] == 2000
    assert summary["forecast"] == 1600


def test_win_rate_and_forecast_over_mixed_outcomes():
    deals = [
        _deal("Closed - Won", 5000, 100),
        _deal("Closed - Won", 1000, 100),
        _deal("Closed - Lost", 2000, 0),
        _deal("Proposal", 4000, 50),
    ]

    summary = compute_pipeline_summary(deals, STAGES)

    assert summary["winRate"] == 66.7
    assert summary["totalPipelineValue"] == 12000
    assert summary["forecast"] == 2000
    assert summary["activeDeals"] == 1
    assert summary["stageDistribution"]["Closed - Won"] == {"count": 2, "value": 6000.0}


def test_unknown_stage_labels_are_listed_after_configured_stages():
    summary = compute_pipeline_summary([_deal("Legacy", 700)], STAGES)

    assert list(summary["stageDistribution"])[-1] == "Legacy"
    assert summary["stageDistribution"]["Legacy"]["count"] == 1
    # unconfigured stages count as open
    assert summary["activeDeals"] == 1


def test_board_stats_split_by_outcome():
    deals = [_deal("Closed - Won", 900), _deal("Closed - Lost", 100), _deal("Proposal", 500)]

    stats = compute_board_stats(deals, STAGES)

    assert stats == {
        "totalDeals": 3,
        "totalValue": 1500,
        "wonDeals": 1,
        "wonValue": 900,
        "lostDeals": 1,
        "activeDeals": 1,
    }


def test_summarize_filters_by_owner(db_session, tenant, stages, lead, admin, sales_rep):
    deals = DealService(db_session)
    deals.create_deal(tenant.id, name="Mine", lead_id=lead.id, actor_id=sales_rep.id, value=1000)
    deals.create_deal(tenant.id, name="Theirs", lead_id=lead.id, actor_id=admin.id, value=3000)

    summary = PipelineAnalyticsService(db_session).summarize(tenant.id, owner_id=sales_rep.id)

    assert summary["totalDeals"] == 1
    assert summary["totalPipelineValue"] == 1000


def test_summarize_date_range_includes_end_day(db_session, tenant, stages, lead, sales_rep):
    DealService(db_session).create_deal(tenant.id, name="Today", lead_id=lead.id, actor_id=sales_rep.id, value=10)
    today = datetime.now(timezone.utc).date()

    service = PipelineAnalyticsService(db_session)

    assert service.summarize(tenant.id, start=today, end=today)["totalDeals"] == 1
    assert service.summarize(tenant.id, start=date(2000, 1, 1), end=date(2000, 1, 2))["totalDeals"] == 0


def test_board_groups_deals_by_stage(db_session, tenant, stages, lead, sales_rep):
    service = DealService(db_session)
    deal = service.create_deal(tenant.id, name="Board deal", lead_id=lead.id, actor_id=sales_rep.id, value=250)
    service.transition_stage(tenant.id, deal.id, "Proposal", actor_id=sales_rep.id)

    board = PipelineAnalyticsService(db_session).board(tenant.id)

    assert [d.id for d in board["pipeline"]["Proposal"]] == [deal.id]
    assert board["pipeline"]["Prospecting"] == []
    assert board["stats"]["totalDeals"] == 1


def test_dashboard_stats_count_open_value_and_close_ratio():
    deals = [
        _deal("Closed - Won", 900),
        _deal("Closed - Lost", 100),
        _deal("Closed - Lost", 100),
        _deal("Proposal", 500),
        _deal("Legacy", 50),
    ]

    stats = compute_dashboard_stats(deals, STAGES, new_leads=4, recent_tasks=[])

    assert stats["pipelineValue"] == 550
    assert stats["newLeads"] == 4
    assert stats["dealsWon"] == 1
    assert stats["closeRatio"] == 33.3
    assert [row["stage"] for row in stats["pipelineByStage"]] == [
        "Prospecting",
        "Proposal",
        "Closed - Won",
        "Closed - Lost",
        "Legacy",
    ]
    assert stats["pipelineByStage"][0] == {"stage": "Prospecting", "count": 0, "value": 0.0}


def test_dashboard_close_ratio_is_zero_without_closed_deals():
    stats = compute_dashboard_stats([_deal("Proposal", 500)], STAGES, new_leads=0, recent_tasks=[])

    assert stats["closeRatio"] == 0
    assert stats["dealsWon"] == 0


def test_dashboard_lists_open_tasks_soonest_first(db_session, tenant, stages, lead, sales_rep):
    tasks = TaskService(db_session)
    undated = tasks.create_task(tenant.id, {"title": "Someday"}, actor_id=sales_rep.id)
    later = tasks.create_task(
        tenant.id, {"title": "Later", "due_date": datetime(2031, 5, 1, tzinfo=timezone.utc)}, actor_id=sales_rep.id
    )
    sooner = tasks.create_task(
        tenant.id, {"title": "Sooner", "due_date": datetime(2031, 1, 1, tzinfo=timezone.utc)}, actor_id=sales_rep.id
    )
    done = tasks.create_task(tenant.id, {"title": "Done"}, actor_id=sales_rep.id)
    tasks.complete_task(tenant.id, done.id, actor_id=sales_rep.id)
    LeadService(db_session).create_lead(tenant.id, {"name": "Fresh", "email": "fresh@corp.test"}, actor_id=sales_rep.id)

    stats = PipelineAnalyticsService(db_session).dashboard(tenant.id)

    assert [task.id for task in stats["recentTasks"]] == [sooner.id, later.id, undated.id]
    # the fixture lead is Qualified, only the new one counts
    assert stats["newLeads"] == 1


def test_dashboard_filters_by_owner(db_session, tenant, stages, lead, admin, sales_rep):
    DealService(db_session).create_deal(tenant.id, name="Mine", lead_id=lead.id, actor_id=sales_rep.id, value=700)
    DealService(db_session).create_deal(tenant.id, name="Theirs", lead_id=lead.id, actor_id=admin.id, value=300)
    TaskService(db_session).create_task(tenant.id, {"title": "Admin chore"}, actor_id=admin.id)

    stats = PipelineAnalyticsService(db_session).dashboard(tenant.id, owner_id=sales_rep.id)

    assert stats["pipelineValue"] == 700
    assert stats["recentTasks"] == []
