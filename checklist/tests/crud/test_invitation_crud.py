#tests/crud/test_invitation_crud.py
import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import Session

from checklist.crud.invitation import (
    create_invitation,
    get_invitations,
    get_invitation_by_token,
    accept_invitation,
    revoke_invitation,
)
from checklist.crud.team import get_membership, update_team_defaults, ban_user
from checklist.crud import notification_preferences as prefs
from checklist.core.notification_kinds import CHECKIN, NEW_TASKS
from checklist.core.exceptions import (
    InvitationNotFound,
    InvitationValidationError,
    PermissionDeniedError,
    BannedFromTeamError,
)

def test_invitation_scenario(db: Session, team, test_user, user_factory):
    update_team_defaults(db, team.id, test_user.id, {CHECKIN: False})
    invitation = create_invitation(db, team.id, test_user.id, "bob@example.com")
    assert invitation.token
    expires_at = invitation.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    remaining = expires_at - datetime.now(timezone.utc)
    assert timedelta(days=6, hours=23) < remaining <= timedelta(days=7)

    impostor = user_factory("Bob", "robert@example.com")
    with pytest.raises(PermissionDeniedError, match="different email"):
        accept_invitation(db, invitation.token, impostor.id)
    assert get_membership(db, team.id, impostor.id) is None

    bob = user_factory("Bob", "bob@example.com", notification_on_new_tasks=False)
    membership = accept_invitation(db, invitation.token, bob.id)
    assert membership.role == "member"
    assert db.get(type(invitation), invitation.id).accepted_at is not None

    # team defaults, not Bob's globals
    overrides = prefs.team_overrides(db, team.id, bob.id)
    assert overrides[CHECKIN] is False
    assert overrides[NEW_TASKS] is True

    with pytest.raises(InvitationNotFound):
        accept_invitation(db, invitation.token, bob.id)

def test_invite_email_is_case_insensitive(db: Session, team, test_user, user_factory):
    invitation = create_invitation(db, team.id, test_user.id, "  Bob@Example.COM ")
    assert invitation.email == "bob@example.com"
    bob = user_factory("Bob", "BOB@example.com")
    accept_invitation(db, invitation.token, bob.id)
    assert get_membership(db, team.id, bob.id) is not None

def test_only_managers_invite(db: Session, team_with_member, other_user):
    with pytest.raises(PermissionDeniedError):
        create_invitation(db, team_with_member.id, other_user.id, "carol@example.com")

def test_rejects_member_and_duplicate_pending(db: Session, team_with_member, test_user, other_user):
    with pytest.raises(InvitationValidationError, match="already a member"):
        create_invitation(db, team_with_member.id, test_user.id, other_user.email)
    create_invitation(db, team_with_member.id, test_user.id, "carol@example.com")
    with pytest.raises(InvitationValidationError, match="already been sent"):
        create_invitation(db, team_with_member.id, test_user.id, "carol@example.com")

def test_expired_invitation_not_found(db: Session, team, test_user, other_user):
    invitation = create_invitation(db, team.id, test_user.id, other_user.email)
    invitation.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.commit()
    with pytest.raises(InvitationNotFound):
        get_invitation_by_token(db, invitation.token)
    with pytest.raises(InvitationNotFound):
        accept_invitation(db, invitation.token, other_user.id)
    assert get_invitations(db, team.id, test_user.id) == []
    # an expired invitation no longer blocks a new one
    fresh = create_invitation(db, team.id, test_user.id, other_user.email)
    assert fresh.token != invitation.token

def test_unknown_token(db: Session):
    with pytest.raises(InvitationNotFound):
        get_invitation_by_token(db, "no-such-token")

def test_banned_user_cannot_accept(db: Session, team_with_member, test_user, other_user):
    ban_user(db, team_with_member.id, test_user.id, other_user.id)
    invitation = create_invitation(db, team_with_member.id, test_user.id, "bob-alt@example.com")
    invitation.email = other_user.email
    db.commit()
    with pytest.raises(BannedFromTeamError):
        accept_invitation(db, invitation.token, other_user.id)

def test_list_and_revoke(db: Session, team, test_user):
    first = create_invitation(db, team.id, test_user.id, "one@example.com")
    second = create_invitation(db, team.id, test_user.id, "two@example.com")
    assert {i.id for i in get_invitations(db, team.id, test_user.id)} == {first.id, second.id}
    revoke_invitation(db, team.id, test_user.id, first.id)
    assert [i.id for i in get_invitations(db, team.id, test_user.id)] == [second.id]
    with pytest.raises(InvitationNotFound):
        revoke_invitation(db, team.id, test_user.id, first.id)
    with pytest.raises(InvitationNotFound):
        get_invitation_by_token(db, first.token)
