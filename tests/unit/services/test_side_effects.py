from __future__ import annotations

from dealflow.models import ActivityLog, Notification, OutboxEvent
from dealflow.models.enums import EventType
from dealflow.services.events import DomainEvent
from dealflow.services.side_effects import SideEffectDispatcher, build_activity_entry, build_notifications


def _stage_event(**overrides):
    values = dict(
        event_type=EventType.DEAL_STAGE_CHANGED,
        tenant_id=1,
        target_type="deal",
        target_id=7,
        target_name="Acme rollout",
        actor_id=3,
        actor_name="Sam Rep",
        recipient_ids=(3, 5, 5, 2),
        payload={"from_stage": "Proposal", "to_stage": "Negotiation", "outcome": "open", "probability": 75},
    )
    values.update(overrides)
    return DomainEvent(**values)


def test_activity_entry_records_before_and_after():
    entry = build_activity_entry(_stage_event())

    assert entry["action"] == "Deal Stage Changed"
    assert entry["summary"] == "Moved deal 'Acme rollout' from Proposal to Negotiation"
    assert entry["details"]["before"] == "Proposal"
    assert entry["details"]["after"] == "Negotiation"
    assert entry["source"] == "app"


def test_notifications_skip_actor_and_duplicates():
    rows = build_notifications(_stage_event())

    assert [row["user_id"] for row in rows] == [5, 2]
    assert rows[0]["type"] == "deal"
    assert rows[0]["title"] == "Deal moved to Negotiation"


def test_won_outcome_uses_success_notification():
    event = _stage_event(
        payload={"from_stage": "Negotiation", "to_stage": "Closed - Won", "outcome": "won", "probability": 100}
    )

    rows = build_notifications(event)

    assert rows[0]["type"] == "success"
    assert rows[0]["title"] == "Deal won: Acme rollout"


def test_no_recipients_means_no_notifications():
    assert build_notifications(_stage_event(recipient_ids=(3,))) == []


def test_lead_created_mentions_company_and_source():
    event = DomainEvent(
        event_type=EventType.LEAD_CREATED,
        tenant_id=1,
        target_type="lead",
        target_id=4,
        target_name="Jane Buyer",
        recipient_ids=(2,),
        payload={"company": "Acme", "source": "Google Sheet", "status": "New", "source_channel": "webhook"},
    )

    entry = build_activity_entry(event)
    rows = build_notifications(event)

    assert entry["source"] == "webhook"
    assert entry["actor_name"] == "System"
    assert rows[0]["description"] == "Jane Buyer (Acme) was added from Google Sheet."


def test_dispatch_stages_rows_without_committing(db_session, tenant, admin, manager):
    event = _stage_event(tenant_id=tenant.id, actor_id=admin.id, recipient_ids=(manager.id,))

    result = SideEffectDispatcher(db_session).dispatch(event)

    assert result.activity in db_session.new
    assert result.outbox.event_type == "deal.stage_changed"
    assert len(result.notifications) == 1

    db_session.rollback()
    assert db_session.query(ActivityLog).count() == 0
    assert db_session.query(Notification).count() == 0
    assert db_session.query(OutboxEvent).count() == 0
