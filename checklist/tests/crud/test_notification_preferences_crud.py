#tests/crud/test_notification_preferences_crud.py
import pytest
from sqlalchemy.orm import Session

from checklist.crud import notification_preferences as prefs
from checklist.crud.team import create_team, join_team, leave_team
from checklist.models.notification_preference import TeamNotificationPreference
from checklist.core.exceptions import ValidationError
from checklist.core.notification_kinds import (
    NOTIFICATION_KINDS, INVITATION, ASSIGNMENT, TASK_COMPLETION, CHECKIN, NEW_TASKS,
)

def test_connect_disconnect_reset(db: Session, team, other_user):
    prefs.connect(db, team.id, CHECKIN, other_user.id)
    assert prefs.get_override(db, team.id, other_user.id, CHECKIN) is True
    assert other_user.id in prefs.members_with(db, team.id, CHECKIN)

    prefs.disconnect(db, team.id, CHECKIN, other_user.id)
    assert prefs.get_override(db, team.id, other_user.id, CHECKIN) is False
    assert other_user.id not in prefs.members_with(db, team.id, CHECKIN)

    prefs.reset(db, team.id, CHECKIN, other_user.id)
    assert prefs.get_override(db, team.id, other_user.id, CHECKIN) is None

def test_one_row_per_team_user_kind(db: Session, team, other_user):
    prefs.connect(db, team.id, ASSIGNMENT, other_user.id)
    prefs.connect(db, team.id, ASSIGNMENT, other_user.id)
    prefs.disconnect(db, team.id, ASSIGNMENT, other_user.id)
    rows = db.query(TeamNotificationPreference).filter_by(
        team_id=team.id, user_id=other_user.id, kind=ASSIGNMENT
    ).count()
    assert rows == 1

def test_unknown_kind_rejected(db: Session, team, other_user):
    with pytest.raises(ValidationError, match="Unknown notification kind"):
        prefs.connect(db, team.id, "fax", other_user.id)

def test_creator_seeded_from_globals(db: Session, user_factory):
    creator = user_factory("Eve", "eve@example.com", notification_on_checkin=False)
    team = create_team(db, {"name": "Seeded", "password": "secret"}, creator.id)
    settings = prefs.get_team_settings_for_user(db, team.id, creator.id)
    assert settings[CHECKIN] is False
    assert all(settings[kind] for kind in NOTIFICATION_KINDS if kind != CHECKIN)

def test_creator_seeded_from_explicit_settings(db: Session, test_user):
    chosen = {INVITATION: True, ASSIGNMENT: True, TASK_COMPLETION: False, CHECKIN: False, NEW_TASKS: True}
    team = create_team(
        db, {"name": "Chosen", "password": "secret", "notification_settings": chosen}, test_user.id
    )
    assert prefs.get_team_settings_for_user(db, team.id, test_user.id) == chosen

def test_partial_update_touches_only_given_kinds(db: Session, team_with_member, other_user):
    before = prefs.team_overrides(db, team_with_member.id, other_user.id)
    result = prefs.update_team_notification_preferences(
        db, other_user.id, team_with_member.id, {CHECKIN: False, NEW_TASKS: None}
    )
    after = prefs.team_overrides(db, team_with_member.id, other_user.id)
    assert result[CHECKIN] is False
    assert after[CHECKIN] is False
    for kind in NOTIFICATION_KINDS:
        if kind != CHECKIN:
            assert after[kind] == before[kind]

def test_password_join_seeds_from_joiner_globals(db: Session, team, user_factory):
    joiner = user_factory("Finn", "finn@example.com", notification_on_new_tasks=False)
    join_team(db, team.id, joiner.id, "secret")
    overrides = prefs.team_overrides(db, team.id, joiner.id)
    assert overrides[NEW_TASKS] is False
    assert overrides[CHECKIN] is True

def test_leave_clears_preferences(db: Session, team_with_member, other_user):
    assert any(v is not None for v in prefs.team_overrides(db, team_with_member.id, other_user.id).values())
    leave_team(db, team_with_member.id, other_user.id)
    assert all(v is None for v in prefs.team_overrides(db, team_with_member.id, other_user.id).values())
