#checklist/api/invitation.py
import logging
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session
from typing import List

from checklist.schemas.invitation import InvitationCreate, InvitationRead, InvitationPublic
from checklist.schemas.team import TeamAccess
from checklist.schemas.response import SimpleMessage
from checklist.crud.invitation import (
    create_invitation,
    get_invitations,
    get_invitation_by_token,
    accept_invitation,
    revoke_invitation,
)
from checklist.crud.team import get_team, verify_access
from checklist.crud.user import get_user
from checklist.core.notification_kinds import INVITATION
from checklist.dependencies import get_db, get_current_active_user, get_notification_dispatcher
from checklist.services.notifications import NotificationDispatcher
from checklist.models.user import User as UserModel

logger = logging.getLogger("Checklist.InvitationsAPI")

router = APIRouter(tags=["Invitations"])

@router.post("/teams/{team_id}/invitations", response_model=InvitationRead, status_code=status.HTTP_201_CREATED)
def invite_user(
    team_id: int,
    data: InvitationCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    Пригласить пользователя по email (только admin / owner). Письмо уходит в фоне.
    """
    invitation = create_invitation(db, team_id, user.id, data.email)
    dispatcher.schedule(
        background_tasks, db, INVITATION,
        {"team_id": team_id, "actor_id": user.id, "email": invitation.email, "token": invitation.token},
    )
    return invitation

@router.get("/teams/{team_id}/invitations", response_model=List[InvitationRead])
def list_invitations(
    team_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    return get_invitations(db, team_id, user.id)

@router.delete("/teams/{team_id}/invitations/{invitation_id}", response_model=SimpleMessage)
def revoke(
    team_id: int,
    invitation_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    revoke_invitation(db, team_id, user.id, invitation_id)
    return SimpleMessage(message="Invitation revoked")

@router.get("/invite/{token}", response_model=InvitationPublic)
def read_invitation(
    token: str,
    db: Session = Depends(get_db),
):
    """
    Данные приглашения для страницы принятия (без авторизации).
    """
    invitation = get_invitation_by_token(db, token)
    team = get_team(db, invitation.team_id)
    inviter = get_user(db, invitation.invited_by_id) if invitation.invited_by_id else None
    return InvitationPublic(
        team_id=team.id,
        team_name=team.name,
        team_slug=team.slug,
        email=invitation.email,
        invited_by_name=inviter.name if inviter else None,
        expires_at=invitation.expires_at,
    )

@router.post("/invite/{token}/accept", response_model=TeamAccess)
def accept(
    token: str,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    """
    Принять приглашение (email текущего пользователя должен совпадать).
    """
    membership = accept_invitation(db, token, user.id)
    return verify_access(db, membership.team_id, user.id)
