from __future__ import annotations

from dealflow.services.deal_service import DealService


def test_stage_change_feeds_activity_and_owner_notifications(
    client, db_session, tenant, stages, lead, admin, sales_rep, auth_headers
):
    deal = DealService(db_session).create_deal(tenant.id, name="Acme", lead_id=lead.id, actor_id=sales_rep.id)
    client.put(f"/api/deals/{deal.id}/stage", json={"stage": "Proposal"}, headers=auth_headers(admin))

    activity = client.get(
        "/api/activity-logs", params={"targetType": "deal", "targetId": deal.id}, headers=auth_headers(admin)
    )
    assert activity.status_code == 200
    assert [row["action"] for row in activity.json()] == ["Deal Stage Changed", "Deal Created"]
    assert activity.json()[0]["details"]["after"] == "Proposal"

    inbox = client.get("/api/notifications", headers=auth_headers(sales_rep))
    assert inbox.status_code == 200
    assert [row["title"] for row in inbox.json()] == ["Deal moved to Proposal"]
    assert inbox.json()[0]["isRead"] is False

    read_all = client.post("/api/notifications/read-all", headers=auth_headers(sales_rep))
    assert read_all.json() == {"success": True, "updated": 1}


def test_marking_someone_elses_notification_is_not_found(
    client, db_session, tenant, stages, lead, admin, sales_rep, auth_headers
):
    DealService(db_session).create_deal(
        tenant.id, name="Acme", lead_id=lead.id, actor_id=admin.id, owner_id=sales_rep.id
    )
    inbox = client.get("/api/notifications", headers=auth_headers(sales_rep)).json()

    response = client.post(f"/api/notifications/{inbox[0]['id']}/read", headers=auth_headers(admin))

    assert response.status_code == 404


def test_task_lifecycle(client, lead, sales_rep, auth_headers):
    headers = auth_headers(sales_rep)

    created = client.post("/api/tasks", json={"title": "Send pricing", "priority": 70}, headers=headers)
    assert created.status_code == 201
    task_id = created.json()["id"]
    assert created.json()["status"] == "Upcoming"

    completed = client.post(f"/api/tasks/{task_id}/complete", headers=headers)
    again = client.post(f"/api/tasks/{task_id}/complete", headers=headers)
    assert completed.status_code == again.status_code == 200
    assert again.json()["completed"] is True
    assert again.json()["status"] == "Completed"

    follow_up = client.post("/api/follow-ups", json={"title": "Check in", "leadId": lead.id}, headers=headers)
    assert follow_up.status_code == 201
    assert follow_up.json()["kind"] == "follow_up"
    assert follow_up.json()["relatedLeadId"] == lead.id
    assert [item["id"] for item in client.get("/api/follow-ups", headers=headers).json()] == [follow_up.json()["id"]]


def test_attendance_check_in_twice_is_rejected(client, sales_rep, auth_headers):
    headers = auth_headers(sales_rep)

    first = client.post("/api/attendance/check-in", json={"workFromHome": True}, headers=headers)
    second = client.post("/api/attendance/check-in", headers=headers)
    checkout = client.post("/api/attendance/check-out", headers=headers)

    assert first.status_code == 201
    assert first.json()["workFromHome"] is True
    assert "date" in first.json()
    assert second.status_code == 400
    assert checkout.status_code == 200
    assert checkout.json()["checkOutTime"] is not None


def test_workflows_are_manager_only(client, manager, sales_rep, auth_headers):
    payload = {"name": "Welcome", "triggerType": "lead.created", "actions": [{"summary": "Send a welcome email"}]}

    assert client.post("/api/workflows", json=payload, headers=auth_headers(sales_rep)).status_code == 403

    created = client.post("/api/workflows", json=payload, headers=auth_headers(manager))
    assert created.status_code == 201
    assert created.json()["triggerType"] == "lead.created"
    assert client.get("/api/workflows/logs", headers=auth_headers(manager)).json() == []


def test_task_rules_for_assignees_and_nulls(client, sales_rep, outsider, auth_headers):
    headers = auth_headers(sales_rep)

    leaked = client.post("/api/tasks", json={"title": "Call", "assignedToId": outsider.id}, headers=headers)
    assert leaked.status_code == 400

    task_id = client.post("/api/tasks", json={"title": "Call"}, headers=headers).json()["id"]
    cleared = client.patch(f"/api/tasks/{task_id}", json={"title": None}, headers=headers)
    reassigned = client.patch(f"/api/tasks/{task_id}", json={"assignedToId": outsider.id}, headers=headers)

    assert cleared.status_code == 400
    assert reassigned.status_code == 400
