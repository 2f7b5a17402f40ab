from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from http import HTTPStatus

from checklist.crud.team import create_team, get_membership, ban_user
from checklist.crud.task import create_task

TEAMS_ENDPOINT = "/teams"

def test_create_team_success(client: TestClient, user_headers: dict, test_user, db: Session):
    payload = {"name": "Test Team API", "password": "secret"}
    response = client.post(f"{TEAMS_ENDPOINT}/", headers=user_headers, json=payload)
    assert response.status_code == HTTPStatus.CREATED, response.text
    data = response.json()
    assert data["name"] == "Test Team API"
    assert data["slug"] == "test-team-api"
    assert "password_hash" not in data
    assert get_membership(db, data["id"], test_user.id).role == "admin"

def test_create_team_short_password(client: TestClient, user_headers: dict):
    response = client.post(f"{TEAMS_ENDPOINT}/", headers=user_headers, json={"name": "Weak", "password": "abc"})
    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY

def test_create_team_requires_auth(client: TestClient):
    response = client.post(f"{TEAMS_ENDPOINT}/", json={"name": "Anon", "password": "secret"})
    assert response.status_code == HTTPStatus.UNAUTHORIZED

def test_list_public_and_mine(client: TestClient, db: Session, user_headers: dict, other_headers: dict, team, test_user):
    create_team(db, {"name": "Hidden", "password": "secret", "is_private": True}, test_user.id)
    public = client.get(f"{TEAMS_ENDPOINT}/", headers=other_headers).json()
    assert [t["name"] for t in public] == ["Acme"]

    mine = client.get(f"{TEAMS_ENDPOINT}/mine", headers=user_headers).json()
    assert {t["name"]: t["role"] for t in mine} == {"Acme": "admin", "Hidden": "admin"}

def test_read_team_by_id_and_slug(client: TestClient, other_headers: dict, team):
    by_id = client.get(f"{TEAMS_ENDPOINT}/{team.id}", headers=other_headers)
    assert by_id.status_code == HTTPStatus.OK
    by_slug = client.get(f"{TEAMS_ENDPOINT}/slug/acme", headers=other_headers)
    assert by_slug.json()["id"] == team.id
    assert client.get(f"{TEAMS_ENDPOINT}/99999", headers=other_headers).status_code == HTTPStatus.NOT_FOUND

def test_private_team_hidden_from_non_members(client: TestClient, db: Session, other_headers: dict, test_user):
    private = create_team(db, {"name": "Vault", "password": "secret", "is_private": True}, test_user.id)
    response = client.get(f"{TEAMS_ENDPOINT}/{private.id}", headers=other_headers)
    assert response.status_code == HTTPStatus.FORBIDDEN

def test_join_flow(client: TestClient, other_headers: dict, team):
    wrong = client.post(f"{TEAMS_ENDPOINT}/{team.id}/join", headers=other_headers, json={"password": "nope"})
    assert wrong.status_code == HTTPStatus.FORBIDDEN

    before = client.get(f"{TEAMS_ENDPOINT}/{team.id}/access", headers=other_headers).json()
    assert before == {"has_access": False, "role": None, "is_banned": False}

    joined = client.post(f"{TEAMS_ENDPOINT}/{team.id}/join", headers=other_headers, json={"password": "secret"})
    assert joined.status_code == HTTPStatus.OK, joined.text
    assert joined.json() == {"has_access": True, "role": "member", "is_banned": False}

def test_banned_user_gets_banned_code(client: TestClient, db: Session, other_headers: dict, team_with_member, test_user, other_user):
    ban_user(db, team_with_member.id, test_user.id, other_user.id)
    response = client.post(f"{TEAMS_ENDPOINT}/{team_with_member.id}/join", headers=other_headers, json={"password": "secret"})
    assert response.status_code == HTTPStatus.FORBIDDEN
    assert response.json()["code"] == "banned"

def test_update_team_admin_only(client: TestClient, user_headers: dict, other_headers: dict, team_with_member):
    forbidden = client.patch(f"{TEAMS_ENDPOINT}/{team_with_member.id}", headers=other_headers, json={"name": "Mine now"})
    assert forbidden.status_code == HTTPStatus.FORBIDDEN
    response = client.patch(f"{TEAMS_ENDPOINT}/{team_with_member.id}", headers=user_headers, json={"is_cloneable": True})
    assert response.status_code == HTTPStatus.OK
    assert response.json()["is_cloneable"] is True

def test_members_listing(client: TestClient, user_headers: dict, team_with_member, other_user):
    response = client.get(f"{TEAMS_ENDPOINT}/{team_with_member.id}/members", headers=user_headers)
    assert response.status_code == HTTPStatus.OK, response.text
    members = {m["email"]: m for m in response.json()}
    assert members["alice@example.com"]["role"] == "admin"
    bob = members["bob@example.com"]
    assert bob["role"] == "member"
    assert bob["notification_settings"]["notification_on_checkin"] is True

def test_role_change_and_bans(client: TestClient, user_headers: dict, team_with_member, other_user):
    base = f"{TEAMS_ENDPOINT}/{team_with_member.id}"
    promoted = client.patch(f"{base}/members/{other_user.id}/role", headers=user_headers, json={"role": "admin"})
    assert promoted.status_code == HTTPStatus.OK
    invalid = client.patch(f"{base}/members/{other_user.id}/role", headers=user_headers, json={"role": "owner"})
    assert invalid.status_code == HTTPStatus.UNPROCESSABLE_ENTITY

    assert client.post(f"{base}/bans/{other_user.id}", headers=user_headers).status_code == HTTPStatus.OK
    again = client.post(f"{base}/bans/{other_user.id}", headers=user_headers)
    assert again.status_code == HTTPStatus.BAD_REQUEST
    assert client.delete(f"{base}/bans/{other_user.id}", headers=user_headers).status_code == HTTPStatus.OK

def test_leave_team(client: TestClient, db: Session, other_headers: dict, user_headers: dict, team_with_member, other_user):
    response = client.post(f"{TEAMS_ENDPOINT}/{team_with_member.id}/leave", headers=other_headers)
    assert response.status_code == HTTPStatus.OK
    assert get_membership(db, team_with_member.id, other_user.id) is None
    last = client.post(f"{TEAMS_ENDPOINT}/{team_with_member.id}/leave", headers=user_headers)
    assert last.status_code == HTTPStatus.OK

def test_delete_team(client: TestClient, db: Session, user_headers: dict, other_headers: dict, team_with_member):
    create_task(db, {"title": "One", "team_id": team_with_member.id})
    forbidden = client.delete(f"{TEAMS_ENDPOINT}/{team_with_member.id}", headers=other_headers)
    assert forbidden.status_code == HTTPStatus.FORBIDDEN
    response = client.delete(f"{TEAMS_ENDPOINT}/{team_with_member.id}", headers=user_headers)
    assert response.status_code == HTTPStatus.OK
    assert response.json() == {"team_id": team_with_member.id, "tasks_deleted": 1}
    gone = client.get(f"{TEAMS_ENDPOINT}/{team_with_member.id}", headers=user_headers)
    assert gone.status_code == HTTPStatus.NOT_FOUND

def test_clone_team(client: TestClient, db: Session, user_headers: dict, other_headers: dict, team):
    create_task(db, {"title": "Template task", "team_id": team.id})
    not_allowed = client.post(f"{TEAMS_ENDPOINT}/{team.id}/clone", headers=other_headers, json={"password": "clonepass"})
    assert not_allowed.status_code == HTTPStatus.FORBIDDEN

    client.patch(f"{TEAMS_ENDPOINT}/{team.id}", headers=user_headers, json={"is_cloneable": True})
    response = client.post(f"{TEAMS_ENDPOINT}/{team.id}/clone", headers=other_headers, json={"password": "clonepass"})
    assert response.status_code == HTTPStatus.CREATED, response.text
    clone = response.json()
    assert clone["name"] == "Acme (copy)"
    assert clone["id"] != team.id
