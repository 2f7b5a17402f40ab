import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from http import HTTPStatus
from datetime import date

from checklist.crud.task import create_task, assign_task
from checklist.crud.check_in import check_in

DAY = "2025-03-14"

@pytest.fixture
def daily_task(db: Session, team_with_member):
    return create_task(db, {"title": "Stand-up", "team_id": team_with_member.id})

def test_toggle_without_check_in_is_conflict(client: TestClient, user_headers: dict, daily_task, gateway):
    payload = {"task_id": daily_task.id, "completed": True, "completion_date": DAY}
    response = client.post("/completions/toggle", headers=user_headers, json=payload)
    assert response.status_code == HTTPStatus.CONFLICT
    assert response.json()["code"] == "check_in_required"
    assert gateway.sent == []

def test_toggle_after_check_in(client: TestClient, db: Session, user_headers: dict, daily_task, test_user, gateway):
    check_in(db, daily_task.team_id, test_user.id, date.fromisoformat(DAY))
    payload = {"task_id": daily_task.id, "completed": True, "completion_date": DAY}
    response = client.post("/completions/toggle", headers=user_headers, json=payload)
    assert response.status_code == HTTPStatus.OK, response.text
    data = response.json()
    assert data["completed"] is True
    assert data["changed"] is True
    assert data["completion"]["completion_date"] == DAY
    assert [(m["to"], m["subject"]) for m in gateway.sent] == [("bob@example.com", "Task Completed in Acme")]

    repeat = client.post("/completions/toggle", headers=user_headers, json=payload).json()
    assert repeat["changed"] is False
    assert len(gateway.sent) == 1

    listing = client.get(f"/completions/team/{daily_task.team_id}", headers=user_headers, params={"date": DAY})
    assert [c["task_id"] for c in listing.json()] == [daily_task.id]

    undo = client.post("/completions/toggle", headers=user_headers, json={**payload, "completed": False}).json()
    assert undo == {"task_id": daily_task.id, "completed": False, "changed": True, "completion": None}
    assert len(gateway.sent) == 1

def test_checklist_toggle_needs_no_check_in(client: TestClient, db: Session, user_headers: dict, team_with_member):
    item = create_task(db, {"title": "Pack", "team_id": team_with_member.id, "type": "checklist"})
    response = client.post(
        "/completions/toggle", headers=user_headers, json={"task_id": item.id, "completed": True, "is_checklist": True}
    )
    assert response.status_code == HTTPStatus.OK, response.text
    assert response.json()["completion"]["completion_date"] is None
    listing = client.get(
        f"/completions/team/{team_with_member.id}", headers=user_headers, params={"is_checklist": "true"}
    )
    assert [c["task_id"] for c in listing.json()] == [item.id]

def test_toggle_requires_membership(client: TestClient, db: Session, daily_task, user_factory, headers_for):
    outsider = user_factory("Olga", "olga@example.com")
    payload = {"task_id": daily_task.id, "completed": True, "completion_date": DAY}
    response = client.post("/completions/toggle", headers=headers_for(outsider), json=payload)
    assert response.status_code == HTTPStatus.FORBIDDEN

def test_toggle_unknown_task(client: TestClient, user_headers: dict):
    response = client.post("/completions/toggle", headers=user_headers, json={"task_id": 99999, "completed": True})
    assert response.status_code == HTTPStatus.NOT_FOUND

def test_private_checklist_toggle_requires_assignment(client: TestClient, db: Session, other_headers: dict, team_with_member, other_user, gateway):
    private = create_task(db, {"title": "Secret", "team_id": team_with_member.id, "type": "checklist", "visibility": "private"})
    payload = {"task_id": private.id, "completed": True, "is_checklist": True}
    response = client.post("/completions/toggle", headers=other_headers, json=payload)
    assert response.status_code == HTTPStatus.FORBIDDEN
    assert gateway.sent == []

    assign_task(db, private.id, other_user.id)
    allowed = client.post("/completions/toggle", headers=other_headers, json=payload)
    assert allowed.status_code == HTTPStatus.OK, allowed.text
    assert allowed.json()["completed"] is True
