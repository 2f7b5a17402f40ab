#checklist/api/team.py
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from checklist.schemas.team import (
    TeamCreate,
    TeamRead,
    TeamUpdate,
    TeamWithRole,
    TeamJoin,
    TeamAccess,
    TeamClone,
    TeamMemberRead,
    RoleUpdate,
    TeamDeleted,
)
from checklist.schemas.response import SimpleMessage, ErrorResponse
from checklist.crud.team import (
    create_team,
    get_team,
    get_team_by_slug,
    get_all_teams,
    get_user_teams,
    get_membership,
    update_team,
    join_team,
    verify_access,
    delete_team,
    clone_team,
    get_team_members,
    update_member_role,
    ban_user,
    unban_user,
    leave_team,
    is_banned,
)
from checklist.core.notification_kinds import kinds_from_payload, kinds_to_payload
from checklist.dependencies import get_db, get_current_active_user
from checklist.models.user import User as UserModel

logger = logging.getLogger("Checklist.TeamsAPI")

router = APIRouter(prefix="/teams", tags=["Teams"])

def _check_visible(db: Session, team, user: UserModel) -> None:
    if is_banned(db, team.id, user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are banned from this team")
    if team.is_private and get_membership(db, team.id, user.id) is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this team")

@router.post("/", response_model=TeamRead, status_code=status.HTTP_201_CREATED)
def create_team_api(
    data: TeamCreate,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    """
    Создать новую команду (создатель автоматически становится admin).
    """
    payload = data.model_dump(exclude={"notification_settings", "default_settings"})
    if data.notification_settings is not None:
        payload["notification_settings"] = kinds_from_payload(data.notification_settings.model_dump())
    if data.default_settings is not None:
        payload["default_settings"] = kinds_from_payload(data.default_settings.model_dump(exclude_unset=True))
    return create_team(db, payload, user.id)

@router.get("/", response_model=List[TeamRead])
def list_teams(
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    """
    Публичный список команд (без приватных и удалённых).
    """
    return get_all_teams(db)

@router.get("/mine", response_model=List[TeamWithRole])
def list_my_teams(
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    """
    Команды текущего пользователя вместе с его ролью.
    """
    return [
        TeamWithRole(**TeamRead.model_validate(row["team"]).model_dump(), role=row["role"])
        for row in get_user_teams(db, user.id)
    ]

@router.get("/slug/{slug}", response_model=TeamRead)
def read_team_by_slug(
    slug: str,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    team = get_team_by_slug(db, slug)
    _check_visible(db, team, user)
    return team

@router.get("/{team_id}", response_model=TeamRead)
def read_team(
    team_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    """
    Получить команду по ID (приватные — только участникам).
    """
    team = get_team(db, team_id)
    _check_visible(db, team, user)
    return team

@router.patch("/{team_id}", response_model=TeamRead)
def update_team_api(
    team_id: int,
    data: TeamUpdate,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    """
    Обновить команду (только admin / owner).
    """
    return update_team(db, team_id, user.id, data.model_dump(exclude_unset=True))

@router.delete("/{team_id}", response_model=TeamDeleted)
def delete_team_api(
    team_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    """
    Soft-delete команды вместе со всеми задачами.
    """
    deleted = delete_team(db, team_id, user.id)
    return TeamDeleted(team_id=team_id, tasks_deleted=deleted)

@router.post(
    "/{team_id}/join",
    response_model=TeamAccess,
    responses={status.HTTP_403_FORBIDDEN: {"model": ErrorResponse, "description": "Wrong password or banned"}},
)
def join_team_api(
    team_id: int,
    data: TeamJoin,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    """
    Вступить в команду по паролю.
    """
    join_team(db, team_id, user.id, data.password)
    return verify_access(db, team_id, user.id)

@router.get("/{team_id}/access", response_model=TeamAccess)
def check_access(
    team_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    get_team(db, team_id)
    return verify_access(db, team_id, user.id)

@router.post("/{team_id}/leave", response_model=SimpleMessage)
def leave_team_api(
    team_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    leave_team(db, team_id, user.id)
    return SimpleMessage(message="You have left the team")

@router.post("/{team_id}/clone", response_model=TeamRead, status_code=status.HTTP_201_CREATED)
def clone_team_api(
    team_id: int,
    data: TeamClone,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    """
    Клонировать команду вместе с деревом задач (если команда разрешает клонирование).
    """
    return clone_team(db, team_id, user.id, data.model_dump())

# --- Участники ---

@router.get("/{team_id}/members", response_model=List[TeamMemberRead])
def list_members(
    team_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    """
    Участники команды с ролями, банами и итоговыми настройками уведомлений.
    """
    members = get_team_members(db, team_id, user.id)
    return [
        TeamMemberRead(**{**member, "notification_settings": kinds_to_payload(member["notification_settings"])})
        for member in members
    ]

@router.patch("/{team_id}/members/{user_id}/role", response_model=SimpleMessage)
def change_role(
    team_id: int,
    user_id: int,
    data: RoleUpdate,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    membership = update_member_role(db, team_id, user.id, user_id, data.role)
    return SimpleMessage(message=f"Role updated to '{membership.role}'")

@router.post("/{team_id}/bans/{user_id}", response_model=SimpleMessage)
def ban_member(
    team_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    ban_user(db, team_id, user.id, user_id)
    return SimpleMessage(message="User has been banned from the team")

@router.delete("/{team_id}/bans/{user_id}", response_model=SimpleMessage)
def unban_member(
    team_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_active_user),
):
    unban_user(db, team_id, user.id, user_id)
    return SimpleMessage(message="User has been unbanned")
