#tests/services/test_preferences_service.py
import pytest
from unittest.mock import patch
from sqlalchemy.orm import Session
from sqlalchemy.exc import OperationalError

from checklist.services.preferences import should_notify, effective_settings
from checklist.crud import notification_preferences as prefs
from checklist.crud.team import delete_team, join_team
from checklist.core.notification_kinds import NOTIFICATION_KINDS, CHECKIN, NEW_TASKS, ASSIGNMENT, user_field

def test_actor_is_never_notified(db: Session, team_with_member, test_user, other_user):
    for kind in NOTIFICATION_KINDS:
        assert should_notify(db, other_user.id, team_with_member.id, kind, actor_id=other_user.id) is False
        assert should_notify(db, other_user.id, team_with_member.id, kind, actor_id=test_user.id) is True

@pytest.mark.parametrize("kind", NOTIFICATION_KINDS)
def test_global_opt_out_wins_over_team_opt_in(db: Session, team, user_factory, kind):
    muted = user_factory("Muted", "muted@example.com", **{user_field(kind): False})
    prefs.connect(db, team.id, kind, muted.id)
    assert prefs.get_override(db, team.id, muted.id, kind) is True
    assert should_notify(db, muted.id, team.id, kind, actor_id=None) is False

def test_absent_override_defers_to_global(db: Session, team_with_member, other_user):
    prefs.reset(db, team_with_member.id, CHECKIN, other_user.id)
    assert prefs.get_override(db, team_with_member.id, other_user.id, CHECKIN) is None
    assert should_notify(db, other_user.id, team_with_member.id, CHECKIN, actor_id=None) is True

def test_team_opt_out_suppresses(db: Session, team_with_member, other_user):
    prefs.disconnect(db, team_with_member.id, NEW_TASKS, other_user.id)
    assert should_notify(db, other_user.id, team_with_member.id, NEW_TASKS, actor_id=None) is False
    assert should_notify(db, other_user.id, team_with_member.id, CHECKIN, actor_id=None) is True

def test_missing_user_or_team_is_false(db: Session, team, test_user):
    assert should_notify(db, 987654, team.id, CHECKIN, actor_id=None) is False
    assert should_notify(db, test_user.id, 987654, CHECKIN, actor_id=None) is False

def test_unknown_kind_is_false(db: Session, team_with_member, other_user):
    assert should_notify(db, other_user.id, team_with_member.id, "sms_blast", actor_id=None) is False

def test_deleted_team_is_false(db: Session, team_with_member, test_user, other_user):
    delete_team(db, team_with_member.id, test_user.id)
    assert should_notify(db, other_user.id, team_with_member.id, ASSIGNMENT, actor_id=None) is False

def test_storage_error_fails_closed(db: Session, team_with_member, other_user):
    with patch(
        "checklist.services.preferences.get_override",
        side_effect=OperationalError("SELECT", {}, Exception("db down")),
    ):
        assert should_notify(db, other_user.id, team_with_member.id, CHECKIN, actor_id=None) is False

def test_effective_settings_combines_global_and_team(db: Session, team, user_factory):
    user = user_factory("Dana", "dana@example.com", notification_on_assignment=False)
    join_team(db, team.id, user.id, "secret")
    prefs.disconnect(db, team.id, CHECKIN, user.id)
    settings = effective_settings(db, team.id, user)
    assert settings[ASSIGNMENT] is False
    assert settings[CHECKIN] is False
    assert settings[NEW_TASKS] is True
