from fastapi.testclient import TestClient
from http import HTTPStatus

DAY = "2025-03-14"

def test_check_in_notifies_members(client: TestClient, user_headers: dict, gateway, team_with_member, test_user):
    payload = {"team_id": team_with_member.id, "check_in_date": DAY, "notes": "Working on the release"}
    response = client.post("/check-ins/", headers=user_headers, json=payload)
    assert response.status_code == HTTPStatus.CREATED, response.text
    data = response.json()
    assert data["user_id"] == test_user.id
    assert data["check_in_date"] == DAY

    assert [m["to"] for m in gateway.sent] == ["bob@example.com"]
    assert gateway.sent[0]["subject"] == "Alice checked in to Acme"
    assert "Working on the release" in gateway.sent[0]["html"]

def test_second_check_in_rejected(client: TestClient, user_headers: dict, team):
    payload = {"team_id": team.id, "check_in_date": DAY}
    assert client.post("/check-ins/", headers=user_headers, json=payload).status_code == HTTPStatus.CREATED
    again = client.post("/check-ins/", headers=user_headers, json=payload)
    assert again.status_code == HTTPStatus.BAD_REQUEST

def test_status_and_listing(client: TestClient, user_headers: dict, other_headers: dict, team_with_member):
    status_before = client.get(f"/check-ins/team/{team_with_member.id}/status", headers=user_headers, params={"date": DAY})
    assert status_before.json() == {"checked_in": False, "check_in": None}

    client.post("/check-ins/", headers=user_headers, json={"team_id": team_with_member.id, "check_in_date": DAY})
    status_after = client.get(f"/check-ins/team/{team_with_member.id}/status", headers=user_headers, params={"date": DAY})
    assert status_after.json()["checked_in"] is True

    listing = client.get(f"/check-ins/team/{team_with_member.id}", headers=other_headers, params={"date": DAY})
    assert len(listing.json()) == 1

def test_check_in_requires_membership(client: TestClient, other_headers: dict, team):
    response = client.post("/check-ins/", headers=other_headers, json={"team_id": team.id})
    assert response.status_code == HTTPStatus.FORBIDDEN
