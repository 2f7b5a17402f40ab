#checklist/crud/invitation.py
import secrets
import logging
from datetime import datetime, timedelta, timezone
from typing import List

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from checklist.models.invitation import TeamInvitation
from checklist.models.team import TeamMember
from checklist.models.user import User
from checklist.core.settings import settings
from checklist.core.exceptions import (
    InvitationNotFound,
    InvitationValidationError,
    PermissionDeniedError,
    BannedFromTeamError,
    UserNotFound,
)
from checklist.crud.team import get_team, get_membership, require_manager, is_banned, get_team_defaults
from checklist.crud import notification_preferences as prefs
from checklist.crud.user import normalize_email

logger = logging.getLogger("Checklist.Invitations")

def _pending_query(db: Session, team_id: int):
    return db.query(TeamInvitation).filter(
        TeamInvitation.team_id == team_id,
        TeamInvitation.accepted_at.is_(None),
        TeamInvitation.expires_at > datetime.now(timezone.utc),
    )

def create_invitation(db: Session, team_id: int, actor_id: int, email: str) -> TeamInvitation:
    """
    Приглашение по email (только admin / owner). Токен одноразовый, срок — INVITATION_EXPIRE_DAYS.
    """
    get_team(db, team_id)
    require_manager(db, team_id, actor_id, "invite users")
    email = normalize_email(email)
    if not email:
        raise InvitationValidationError("Email is required.")

    member = (
        db.query(TeamMember)
        .join(User, User.id == TeamMember.user_id)
        .filter(TeamMember.team_id == team_id, User.email == email)
        .first()
    )
    if member:
        raise InvitationValidationError("User is already a member of this team")
    if _pending_query(db, team_id).filter(TeamInvitation.email == email).first():
        raise InvitationValidationError("An invitation has already been sent to this email")

    invitation = TeamInvitation(
        email=email,
        team_id=team_id,
        invited_by_id=actor_id,
        token=secrets.token_urlsafe(32),
        expires_at=datetime.now(timezone.utc) + timedelta(days=settings.INVITATION_EXPIRE_DAYS),
    )
    db.add(invitation)
    try:
        db.commit()
        db.refresh(invitation)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Failed to create invitation: {e}")
        raise InvitationValidationError("Database error while creating invitation.")
    logger.info(f"User {actor_id} invited {email} to team {team_id} (invitation {invitation.id})")
    return invitation

def get_invitations(db: Session, team_id: int, actor_id: int) -> List[TeamInvitation]:
    """
    Ожидающие приглашения команды (только admin / owner).
    """
    get_team(db, team_id)
    require_manager(db, team_id, actor_id, "view invitations")
    return _pending_query(db, team_id).order_by(TeamInvitation.created_at.desc(), TeamInvitation.id.desc()).all()

def get_invitation_by_token(db: Session, token: str) -> TeamInvitation:
    """
    Действующее приглашение по токену; нет, принято, истекло или команда удалена -> InvitationNotFound.
    """
    invitation = db.query(TeamInvitation).filter(TeamInvitation.token == token).first()
    if invitation is None or not invitation.is_pending:
        raise InvitationNotFound()
    get_team(db, invitation.team_id)
    return invitation

def accept_invitation(db: Session, token: str, user_id: int) -> TeamMember:
    """
    Принять приглашение: email пользователя должен совпадать с email приглашения.
    Участник засевается значениями команды по умолчанию. Одна транзакция.
    """
    invitation = get_invitation_by_token(db, token)
    user = db.get(User, user_id)
    if user is None:
        raise UserNotFound(f"User {user_id} not found.")
    # invitation.email и user.email хранятся нормализованными одной функцией
    if normalize_email(user.email) != invitation.email:
        raise PermissionDeniedError("This invitation was sent to a different email address")
    if is_banned(db, invitation.team_id, user_id):
        raise BannedFromTeamError()

    invitation.accepted_at = datetime.now(timezone.utc)
    membership = get_membership(db, invitation.team_id, user_id)
    if membership is None:
        membership = TeamMember(team_id=invitation.team_id, user_id=user_id, role="member")
        db.add(membership)
        defaults = get_team_defaults(db, invitation.team_id)
        prefs.add_user_to_team_notifications_with_settings(db, user_id, invitation.team_id, defaults, commit=False)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Failed to accept invitation {invitation.id}: {e}")
        raise InvitationValidationError("Database error while accepting invitation.")
    logger.info(f"User {user_id} accepted invitation {invitation.id} to team {invitation.team_id}")
    return membership

def revoke_invitation(db: Session, team_id: int, actor_id: int, invitation_id: int) -> None:
    get_team(db, team_id)
    require_manager(db, team_id, actor_id, "revoke invitations")
    invitation = (
        db.query(TeamInvitation)
        .filter(
            TeamInvitation.id == invitation_id,
            TeamInvitation.team_id == team_id,
            TeamInvitation.accepted_at.is_(None),
        )
        .first()
    )
    if invitation is None:
        raise InvitationNotFound()
    db.delete(invitation)
    db.commit()
    logger.info(f"User {actor_id} revoked invitation {invitation_id} in team {team_id}")
