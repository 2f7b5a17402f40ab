from fastapi.testclient import TestClient
from http import HTTPStatus

ALL_ON = {
    "notification_on_invitation": True,
    "notification_on_assignment": True,
    "notification_on_task_completion": True,
    "notification_on_checkin": True,
    "notification_on_new_tasks": True,
}

def test_global_settings_roundtrip(client: TestClient, user_headers: dict):
    assert client.get("/notifications/settings", headers=user_headers).json() == ALL_ON
    muted = {**ALL_ON, "notification_on_checkin": False}
    response = client.put("/notifications/settings", headers=user_headers, json=muted)
    assert response.status_code == HTTPStatus.OK
    assert response.json() == muted

def test_global_settings_require_every_flag(client: TestClient, user_headers: dict):
    partial = {k: v for k, v in ALL_ON.items() if k != "notification_on_new_tasks"}
    response = client.put("/notifications/settings", headers=user_headers, json=partial)
    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY

def test_team_settings_patch(client: TestClient, other_headers: dict, team_with_member):
    url = f"/notifications/teams/{team_with_member.id}"
    before = client.get(url, headers=other_headers).json()
    assert before["settings"] == ALL_ON

    response = client.patch(url, headers=other_headers, json={"notification_on_checkin": False})
    assert response.status_code == HTTPStatus.OK, response.text
    data = response.json()
    assert data["settings"]["notification_on_checkin"] is False
    assert data["settings"]["notification_on_new_tasks"] is True
    assert data["team_specific"]["checkin"] is True

def test_global_opt_out_shows_in_effective_settings(client: TestClient, other_headers: dict, team_with_member):
    client.put("/notifications/settings", headers=other_headers, json={**ALL_ON, "notification_on_assignment": False})
    data = client.get(f"/notifications/teams/{team_with_member.id}", headers=other_headers).json()
    assert data["settings"]["notification_on_assignment"] is False
    assert data["team_settings"]["notification_on_assignment"] is True

def test_team_settings_require_membership(client: TestClient, other_headers: dict, team):
    assert client.get(f"/notifications/teams/{team.id}", headers=other_headers).status_code == HTTPStatus.FORBIDDEN
    assert client.get("/notifications/teams/99999", headers=other_headers).status_code == HTTPStatus.NOT_FOUND

def test_team_defaults(client: TestClient, user_headers: dict, other_headers: dict, team_with_member):
    url = f"/notifications/teams/{team_with_member.id}/defaults"
    assert client.get(url, headers=other_headers).json() == ALL_ON
    forbidden = client.patch(url, headers=other_headers, json={"notification_on_checkin": False})
    assert forbidden.status_code == HTTPStatus.FORBIDDEN
    response = client.patch(url, headers=user_headers, json={"notification_on_checkin": False})
    assert response.status_code == HTTPStatus.OK
    assert response.json() == {**ALL_ON, "notification_on_checkin": False}
