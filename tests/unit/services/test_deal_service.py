from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import update

from dealflow.core.exceptions import ConflictError, NotFoundError, ValidationError
from dealflow.models import ActivityLog, Deal, Notification, OutboxEvent
from dealflow.services.deal_service import DealService
from dealflow.services.side_effects import SideEffectDispatcher


def _create_deal(session, tenant, lead, owner, **kwargs):
    return DealService(session).create_deal(
        tenant.id,
        name=kwargs.pop("name", "Acme rollout"),
        lead_id=lead.id,
        actor_id=owner.id,
        value=kwargs.pop("value", 12000),
        **kwargs,
    )


def test_create_deal_defaults_to_first_stage(db_session, tenant, stages, lead, sales_rep):
    deal = _create_deal(db_session, tenant, lead, sales_rep)

    assert deal.stage == "Prospecting"
    assert deal.probability == 10
    assert deal.owner_id == sales_rep.id
    assert deal.version == 1
    assert db_session.query(OutboxEvent).filter_by(event_type="deal.created").count() == 1


def test_create_deal_rejects_unknown_lead(db_session, tenant, stages, sales_rep):
    with pytest.raises(ValidationError):
        DealService(db_session).create_deal(tenant.id, name="Ghost", lead_id=999, actor_id=sales_rep.id)


def test_transition_moves_deal_to_requested_stage(db_session, tenant, stages, lead, sales_rep):
    deal = _create_deal(db_session, tenant, lead, sales_rep)

    updated = DealService(db_session).transition_stage(tenant.id, deal.id, "Qualification", actor_id=sales_rep.id)

    assert updated.stage == "Qualification"
    assert updated.probability == 25
    assert updated.version == 2


def test_transition_with_invalid_stage_leaves_deal_unchanged(db_session, tenant, stages, lead, sales_rep):
    deal = _create_deal(db_session, tenant, lead, sales_rep)

    with pytest.raises(ValidationError):
        DealService(db_session).transition_stage(tenant.id, deal.id, "Nonexistent", actor_id=sales_rep.id)

    db_session.expire_all()
    reloaded = db_session.get(Deal, deal.id)
    assert reloaded.stage == "Prospecting"
    assert reloaded.version == 1


def test_transition_unknown_deal_raises_not_found(db_session, tenant, stages):
    with pytest.raises(NotFoundError):
        DealService(db_session).transition_stage(tenant.id, 4242, "Qualification")


def test_repeating_a_transition_is_a_no_op(db_session, tenant, stages, lead, sales_rep):
    deal = _create_deal(db_session, tenant, lead, sales_rep)
    service = DealService(db_session)

    first = service.transition_stage(tenant.id, deal.id, "Proposal", actor_id=sales_rep.id)
    second = service.transition_stage(tenant.id, deal.id, "Proposal", actor_id=sales_rep.id)

    assert second.stage == first.stage == "Proposal"
    assert second.version == 2
    changes = db_session.query(ActivityLog).filter_by(action="Deal Stage Changed").count()
    assert changes == 1


def test_probability_override_wins_over_stage_default(db_session, tenant, stages, lead, sales_rep):
    deal = _create_deal(db_session, tenant, lead, sales_rep)

    updated = DealService(db_session).transition_stage(
        tenant.id, deal.id, "Negotiation", actor_id=sales_rep.id, probability=60
    )

    assert updated.probability == 60


def test_closing_a_deal_sets_close_date_and_reopening_keeps_it(db_session, tenant, stages, lead, sales_rep):
    deal = _create_deal(db_session, tenant, lead, sales_rep)
    service = DealService(db_session)

    won = service.transition_stage(tenant.id, deal.id, "Closed - Won", actor_id=sales_rep.id)
    assert won.close_date == date.today()
    assert won.probability == 100

    reopened = service.transition_stage(tenant.id, deal.id, "Negotiation", actor_id=sales_rep.id)
    assert reopened.close_date == date.today()
    assert reopened.probability == 75


def test_won_transition_notifies_owner_and_managers_but_not_actor(
    db_session, tenant, stages, lead, admin, manager, sales_rep
):
    deal = _create_deal(db_session, tenant, lead, sales_rep)

    DealService(db_session).transition_stage(tenant.id, deal.id, "Closed - Won", actor_id=admin.id)

    recipients = {
        row.user_id
        for row in db_session.query(Notification).filter(Notification.title.like("Deal won:%")).all()
    }
    assert recipients == {sales_rep.id, manager.id}


def test_transition_writes_activity_and_outbox_in_same_commit(db_session, tenant, stages, lead, sales_rep):
    deal = _create_deal(db_session, tenant, lead, sales_rep)

    DealService(db_session).transition_stage(
        tenant.id, deal.id, "Qualification", actor_id=sales_rep.id, reason="Budget confirmed"
    )

    entry = db_session.query(ActivityLog).filter_by(action="Deal Stage Changed").one()
    assert entry.details["before"] == "Prospecting"
    assert entry.details["after"] == "Qualification"
    assert entry.details["reason"] == "Budget confirmed"
    assert entry.actor_name == "Sam Rep"
    event = db_session.query(OutboxEvent).filter_by(event_type="deal.stage_changed").one()
    assert event.payload["payload"]["to_stage"] == "Qualification"


def test_dispatch_failure_rolls_back_the_transition(db_session, tenant, stages, lead, sales_rep, monkeypatch):
    deal = _create_deal(db_session, tenant, lead, sales_rep)

    def _boom(self, event):
        raise RuntimeError("dispatcher down")

    monkeypatch.setattr(SideEffectDispatcher, "dispatch", _boom)

    with pytest.raises(RuntimeError):
        DealService(db_session).transition_stage(tenant.id, deal.id, "Qualification", actor_id=sales_rep.id)

    db_session.expire_all()
    reloaded = db_session.get(Deal, deal.id)
    assert reloaded.stage == "Prospecting"
    assert reloaded.version == 1
    assert db_session.query(ActivityLog).filter_by(action="Deal Stage Changed").count() == 0


def test_expected_version_mismatch_raises_conflict(db_session, tenant, stages, lead, sales_rep):
    deal = _create_deal(db_session, tenant, lead, sales_rep)

    with pytest.raises(ConflictError):
        DealService(db_session).transition_stage(
            tenant.id, deal.id, "Qualification", actor_id=sales_rep.id, expected_version=7
        )


def test_concurrent_write_raises_conflict(db_session, tenant, stages, lead, sales_rep):
    deal = _create_deal(db_session, tenant, lead, sales_rep)
    service = DealService(db_session)
    service.get_deal(tenant.id, deal.id)

    # another writer bumps the row version behind the loaded instance
    db_session.execute(
        update(Deal)
        .where(Deal.id == deal.id)
        .values(version=Deal.version + 1)
        .execution_options(synchronize_session=False)
    )

    with pytest.raises(ConflictError):
        service.transition_stage(tenant.id, deal.id, "Qualification", actor_id=sales_rep.id)


def test_update_deal_rejects_stage_changes(db_session, tenant, stages, lead, sales_rep):
    deal = _create_deal(db_session, tenant, lead, sales_rep)

    with pytest.raises(ValidationError):
        DealService(db_session).update_deal(tenant.id, deal.id, {"stage": "Proposal"})


def test_deleted_deal_is_hidden(db_session, tenant, stages, lead, sales_rep):
    deal = _create_deal(db_session, tenant, lead, sales_rep)
    service = DealService(db_session)

    service.delete_deal(tenant.id, deal.id)

    assert service.list_deals(tenant.id) == []
    with pytest.raises(NotFoundError):
        service.get_deal(tenant.id, deal.id)


def test_create_deal_rejects_owner_from_another_tenant(db_session, tenant, stages, lead, sales_rep, outsider):
    with pytest.raises(ValidationError):
        _create_deal(db_session, tenant, lead, sales_rep, owner_id=outsider.id)

    assert db_session.query(Deal).count() == 0
    assert db_session.query(Notification).filter_by(user_id=outsider.id).count() == 0


def test_update_deal_rejects_owner_from_another_tenant(db_session, tenant, stages, lead, sales_rep, outsider):
    deal = _create_deal(db_session, tenant, lead, sales_rep)

    with pytest.raises(ValidationError):
        DealService(db_session).update_deal(tenant.id, deal.id, {"owner_id": outsider.id})

    db_session.expire_all()
    assert db_session.get(Deal, deal.id).owner_id == sales_rep.id


def test_update_deal_rejects_clearing_required_fields(db_session, tenant, stages, lead, sales_rep):
    deal = _create_deal(db_session, tenant, lead, sales_rep)
    service = DealService(db_session)

    for field in ("name", "value", "probability"):
        with pytest.raises(ValidationError):
            service.update_deal(tenant.id, deal.id, {field: None})

    db_session.expire_all()
    reloaded = db_session.get(Deal, deal.id)
    assert reloaded.name == "Acme rollout"
    assert reloaded.value == 12000


def test_update_deal_may_clear_optional_fields(db_session, tenant, stages, lead, sales_rep):
    deal = _create_deal(db_session, tenant, lead, sales_rep, close_date=date(2030, 1, 1))

    updated = DealService(db_session).update_deal(tenant.id, deal.id, {"close_date": None})

    assert updated.close_date is None
