from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from dealflow.core.exceptions import NotFoundError, ValidationError
from dealflow.models import ActivityLog, OutboxEvent, Task
from dealflow.services.lead_service import LeadService
from dealflow.services.task_service import TaskService


def test_create_task_defaults(db_session, tenant, sales_rep):
    task = TaskService(db_session).create_task(tenant.id, {"title": "  Call back  "}, actor_id=sales_rep.id)

    assert task.title == "Call back"
    assert task.kind == "task"
    assert task.status == "Upcoming"
    assert task.priority == 50
    assert task.intent == "Manual task"
    assert task.assigned_to_id == sales_rep.id


def test_create_task_rejects_unknown_status(db_session, tenant, sales_rep):
    with pytest.raises(ValidationError):
        TaskService(db_session).create_task(tenant.id, {"title": "x", "status": "Someday"}, actor_id=sales_rep.id)


def test_follow_up_requires_lead(db_session, tenant, sales_rep):
    with pytest.raises(ValidationError):
        TaskService(db_session).create_follow_up(tenant.id, {"title": "Ping"}, actor_id=sales_rep.id)


def test_follow_up_rejects_lead_from_other_tenant(db_session, tenant, sales_rep):
    with pytest.raises(ValidationError):
        TaskService(db_session).create_follow_up(
            tenant.id, {"title": "Ping", "related_lead_id": 999}, actor_id=sales_rep.id
        )


def test_follow_ups_order_by_priority_then_due_date(db_session, tenant, lead, sales_rep):
    service = TaskService(db_session)
    now = datetime.now(timezone.utc)
    low = service.create_follow_up(
        tenant.id, {"title": "Low", "related_lead_id": lead.id, "priority": 10, "due_date": now}, actor_id=sales_rep.id
    )
    late = service.create_follow_up(
        tenant.id,
        {"title": "High late", "related_lead_id": lead.id, "priority": 90, "due_date": now + timedelta(days=2)},
        actor_id=sales_rep.id,
    )
    early = service.create_follow_up(
        tenant.id,
        {"title": "High early", "related_lead_id": lead.id, "priority": 90, "due_date": now + timedelta(days=1)},
        actor_id=sales_rep.id,
    )

    ordered = service.list_follow_ups(tenant.id, lead_id=lead.id)

    assert [item.id for item in ordered] == [early.id, late.id, low.id]
    assert ordered[0].action_type == "Call"
    assert service.list_tasks(tenant.id) == []


def test_complete_task_is_idempotent(db_session, tenant, admin, sales_rep):
    service = TaskService(db_session)
    task = service.create_task(tenant.id, {"title": "Send deck", "assigned_to_id": sales_rep.id}, actor_id=admin.id)

    first = service.complete_task(tenant.id, task.id, actor_id=admin.id)
    second = service.complete_task(tenant.id, task.id, actor_id=admin.id)

    assert first.completed is True
    assert first.status == "Completed"
    assert first.completed_at is not None
    assert second.id == first.id
    assert db_session.query(ActivityLog).filter_by(action="Task Completed").count() == 1
    assert db_session.query(OutboxEvent).filter_by(event_type="task.completed").count() == 1


def test_update_task_cannot_complete(db_session, tenant, sales_rep):
    service = TaskService(db_session)
    task = service.create_task(tenant.id, {"title": "Draft"}, actor_id=sales_rep.id)

    with pytest.raises(ValidationError):
        service.update_task(tenant.id, task.id, {"status": "Completed"})

    updated = service.update_task(tenant.id, task.id, {"status": "Today", "priority": 80})
    assert updated.status == "Today"
    assert updated.priority == 80


def test_update_task_needs_changes(db_session, tenant, sales_rep):
    service = TaskService(db_session)
    task = service.create_task(tenant.id, {"title": "Draft"}, actor_id=sales_rep.id)

    with pytest.raises(ValidationError):
        service.update_task(tenant.id, task.id, {})


def test_missing_task_is_not_found(db_session, tenant):
    with pytest.raises(NotFoundError):
        TaskService(db_session).complete_task(tenant.id, 321)


def test_create_task_rejects_assignee_from_another_tenant(db_session, tenant, sales_rep, outsider):
    with pytest.raises(ValidationError):
        TaskService(db_session).create_task(
            tenant.id, {"title": "Call", "assigned_to_id": outsider.id}, actor_id=sales_rep.id
        )

    assert db_session.query(Task).count() == 0


def test_follow_up_rejects_assignee_from_another_tenant(db_session, tenant, lead, sales_rep, outsider):
    with pytest.raises(ValidationError):
        TaskService(db_session).create_follow_up(
            tenant.id,
            {"title": "Ping", "related_lead_id": lead.id, "assigned_to_id": outsider.id},
            actor_id=sales_rep.id,
        )


def test_update_task_rejects_assignee_from_another_tenant(db_session, tenant, sales_rep, outsider):
    service = TaskService(db_session)
    task = service.create_task(tenant.id, {"title": "Draft"}, actor_id=sales_rep.id)

    with pytest.raises(ValidationError):
        service.update_task(tenant.id, task.id, {"assigned_to_id": outsider.id})

    db_session.expire_all()
    assert db_session.get(Task, task.id).assigned_to_id == sales_rep.id


@pytest.mark.parametrize("field", ["title", "status", "priority"])
def test_update_task_rejects_clearing_required_fields(db_session, tenant, sales_rep, field):
    service = TaskService(db_session)
    task = service.create_task(tenant.id, {"title": "Draft"}, actor_id=sales_rep.id)

    with pytest.raises(ValidationError):
        service.update_task(tenant.id, task.id, {field: None})

    db_session.expire_all()
    assert getattr(db_session.get(Task, task.id), field) is not None


def test_task_cannot_link_a_deleted_lead(db_session, tenant, lead, sales_rep):
    LeadService(db_session).delete_lead(tenant.id, lead.id, actor_id=sales_rep.id)

    with pytest.raises(ValidationError):
        TaskService(db_session).create_task(
            tenant.id, {"title": "Call", "related_lead_id": lead.id}, actor_id=sales_rep.id
        )
