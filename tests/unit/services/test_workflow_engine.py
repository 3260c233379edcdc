from __future__ import annotations

import pytest

from dealflow.core.exceptions import ServiceError, ValidationError
from dealflow.models import Notification, Task, Workflow, WorkflowLog
from dealflow.services.workflow_engine import WorkflowEngine, WorkflowEntity, parse_action
from dealflow.services.workflow_service import WorkflowService


class _FakeSender:
    def __init__(self, configured=True, succeed=True):
        self.is_configured = configured
        self.succeed = succeed
        self.sent = []

    def send_email(self, to_email, subject, body, is_html=False):
        self.sent.append((to_email, subject))
        return self.succeed


def _message(tenant, lead, owner_id, event_type="lead.created"):
    return {
        "event_type": event_type,
        "tenant_id": tenant.id,
        "target_type": "lead",
        "target_id": lead.id,
        "target_name": lead.name,
        "payload": {"email": lead.email, "owner_id": owner_id},
    }


def _workflow(session, tenant, actions, trigger="lead.created"):
    return WorkflowService(session).create_workflow(tenant.id, name="Welcome", trigger_type=trigger, actions=actions)


def test_parse_action_prefers_explicit_type():
    command = parse_action({"type": "CREATE_TASK", "summary": "email them"})

    assert command["type"] == "CREATE_TASK"
    assert command["inferred"] is False


@pytest.mark.parametrize(
    "summary, expected",
    [
        ("Send a welcome email", "SEND_EMAIL"),
        ("Notify the owner", "SEND_NOTIFICATION"),
        ("Create a task to call", "CREATE_TASK"),
    ],
)
def test_parse_action_infers_type_from_keywords(summary, expected):
    command = parse_action({"summary": summary})

    assert command["type"] == expected
    assert command["inferred"] is True


def test_parse_action_returns_none_without_match():
    assert parse_action({"summary": "do something nice"}) is None


def test_entity_from_message_derives_lead_id():
    entity = WorkflowEntity.from_message(
        {"tenant_id": 1, "target_type": "lead", "target_id": 9, "payload": {"owner_id": 2}}
    )

    assert entity.lead_id == 9
    assert entity.deal_id is None
    assert entity.name == "lead #9"


def test_create_task_action_links_entity(db_session, tenant, lead, sales_rep):
    _workflow(db_session, tenant, [{"summary": "Create a task for the rep"}])

    logs = WorkflowEngine(db_session, email_sender=_FakeSender()).handle(
        _message(tenant, lead, sales_rep.id), outbox_event_id=11
    )

    assert [log.status for log in logs] == ["Success"]
    task = db_session.query(Task).one()
    assert task.title == "Follow up with Jane Buyer"
    assert task.related_lead_id == lead.id
    assert task.assigned_to_id == sales_rep.id


def test_broadcast_notification_reaches_every_active_user(db_session, tenant, lead, admin, manager, sales_rep):
    _workflow(db_session, tenant, [{"type": "SEND_NOTIFICATION", "summary": "New lead for everyone"}])

    WorkflowEngine(db_session, email_sender=_FakeSender()).handle(_message(tenant, lead, sales_rep.id))

    recipients = {row.user_id for row in db_session.query(Notification).all()}
    assert recipients == {admin.id, manager.id, sales_rep.id}


def test_email_action_is_skipped_without_smtp(db_session, tenant, lead, sales_rep):
    _workflow(db_session, tenant, [{"type": "SEND_EMAIL", "summary": "Welcome"}])
    sender = _FakeSender(configured=False)

    logs = WorkflowEngine(db_session, email_sender=sender).handle(_message(tenant, lead, sales_rep.id))

    assert logs[0].actions_executed == ["SEND_EMAIL:skipped"]
    assert sender.sent == []


def test_failed_email_logs_failure_and_reraises(db_session, tenant, lead, sales_rep):
    workflow = _workflow(
        db_session,
        tenant,
        [{"type": "CREATE_TASK", "title": "Prep"}, {"type": "SEND_EMAIL", "summary": "Welcome"}],
    )

    with pytest.raises(ServiceError):
        WorkflowEngine(db_session, email_sender=_FakeSender(succeed=False)).handle(
            _message(tenant, lead, sales_rep.id), outbox_event_id=5
        )

    log = db_session.query(WorkflowLog).filter_by(workflow_id=workflow.id).one()
    assert log.status == "Failed"
    assert log.actions_executed == ["CREATE_TASK"]
    assert "jane@acme.test" in log.error_message
    # the task from the failed run is rolled back
    assert db_session.query(Task).count() == 0


def test_replayed_event_does_not_rerun_successful_workflow(db_session, tenant, lead, sales_rep):
    _workflow(db_session, tenant, [{"type": "CREATE_TASK", "title": "Intro call"}])
    engine = WorkflowEngine(db_session, email_sender=_FakeSender())
    message = _message(tenant, lead, sales_rep.id)

    engine.handle(message, outbox_event_id=21)
    replay = engine.handle(message, outbox_event_id=21)

    assert replay == []
    assert db_session.query(Task).count() == 1


def test_inactive_or_other_trigger_workflows_do_not_run(db_session, tenant, lead, sales_rep):
    _workflow(db_session, tenant, [{"type": "CREATE_TASK"}], trigger="deal.created")
    paused = _workflow(db_session, tenant, [{"type": "CREATE_TASK"}])
    WorkflowService(db_session).update_workflow(tenant.id, paused.id, {"is_active": False})

    logs = WorkflowEngine(db_session, email_sender=_FakeSender()).handle(_message(tenant, lead, sales_rep.id))

    assert logs == []


def test_workflow_service_validates_trigger_and_actions(db_session, tenant):
    service = WorkflowService(db_session)

    with pytest.raises(ValidationError):
        service.create_workflow(tenant.id, name="Bad", trigger_type="deal.exploded", actions=[{"type": "CREATE_TASK"}])
    with pytest.raises(ValidationError):
        service.create_workflow(tenant.id, name="Bad", trigger_type="deal.created", actions=[])
    with pytest.raises(ValidationError):
        service.create_workflow(tenant.id, name="Bad", trigger_type="deal.created", actions=[{"type": "PAGE_ONCALL"}])


def test_workflow_rejects_notification_recipient_from_another_tenant(db_session, tenant, outsider):
    service = WorkflowService(db_session)
    action = {"type": "SEND_NOTIFICATION", "summary": "Heads up", "user_id": outsider.id}

    with pytest.raises(ValidationError):
        service.create_workflow(tenant.id, name="Leak", trigger_type="lead.created", actions=[action])
    with pytest.raises(ValidationError):
        service.create_workflow(
            tenant.id, name="Bad id", trigger_type="lead.created", actions=[{**action, "user_id": "nobody"}]
        )
    assert db_session.query(Workflow).count() == 0


def test_workflow_update_rejects_recipient_from_another_tenant(db_session, tenant, manager, outsider):
    service = WorkflowService(db_session)
    workflow = service.create_workflow(
        tenant.id,
        name="Ping manager",
        trigger_type="lead.created",
        actions=[{"type": "SEND_NOTIFICATION", "summary": "Heads up", "user_id": manager.id}],
    )

    with pytest.raises(ValidationError):
        service.update_workflow(
            tenant.id,
            workflow.id,
            {"actions": [{"type": "SEND_NOTIFICATION", "summary": "Heads up", "user_id": outsider.id}]},
        )
    with pytest.raises(ValidationError):
        service.update_workflow(tenant.id, workflow.id, {"name": None})

    db_session.expire_all()
    assert db_session.get(Workflow, workflow.id).actions[0]["user_id"] == manager.id


def test_notification_never_reaches_a_user_outside_the_tenant(db_session, tenant, lead, sales_rep, outsider):
    # stored before recipients were checked on save
    db_session.add(
        Workflow(
            tenant_id=tenant.id,
            name="Legacy",
            trigger_type="lead.created",
            actions=[{"type": "SEND_NOTIFICATION", "summary": "Heads up", "user_id": outsider.id}],
        )
    )
    db_session.commit()

    logs = WorkflowEngine(db_session, email_sender=_FakeSender()).handle(_message(tenant, lead, sales_rep.id))

    assert logs[0].actions_executed == ["SEND_NOTIFICATION:skipped"]
    assert db_session.query(Notification).filter_by(user_id=outsider.id).count() == 0
