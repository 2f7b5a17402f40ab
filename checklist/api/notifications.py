#checklist/api/notifications.py
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from checklist.schemas.notification import (
    NotificationSettings,
    NotificationSettingsPatch,
    TeamNotificationSettingsRead,
)
from checklist.crud.user import get_notification_settings, update_notification_settings
from checklist.crud.team import get_team, require_member, get_team_defaults, update_team_defaults
from checklist.crud import notification_preferences as prefs
from checklist.core.notification_kinds import kinds_from_payload, kinds_to_payload
from checklist.services.preferences import effective_settings
from checklist.dependencies import get_db, get_current_active_user
from checklist.models.user import User as UserModel

logger = logging.getLogger("Checklist.NotificationsAPI")

router = APIRouter(prefix="/notifications", tags=["Notifications"])

def _team_settings(db: Session, team_id: int, user: UserModel) -> TeamNotificationSettingsRead:
    overrides = prefs.team_overrides(db, team_id, user.id)
    return TeamNotificationSettingsRead(
        team_id=team_id,
        settings=NotificationSettings(**kinds_to_payload(effective_settings(db, team_id, user))),
        team_settings=NotificationSettings(**kinds_to_payload(prefs.get_team_settings_for_user(db, team_id, user.id))),
        team_specific={kind: value is not None for kind, value in overrides.items()},
    )

@router.get("/settings", response_model=NotificationSettings)
def read_global_settings(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    """
    Глобальные настройки уведомлений текущего пользователя.
    """
    return get_notification_settings(db, current_user.id)

@router.put("/settings", response_model=NotificationSettings)
def replace_global_settings(
    data: NotificationSettings,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    """
    Полная перезапись пяти глобальных флагов.
    """
    return update_notification_settings(db, current_user.id, data.model_dump())

@router.get("/teams/{team_id}", response_model=TeamNotificationSettingsRead)
def read_team_settings(
    team_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    """
    Настройки текущего пользователя в команде.
    """
    get_team(db, team_id)
    require_member(db, team_id, current_user.id)
    return _team_settings(db, team_id, current_user)

@router.patch("/teams/{team_id}", response_model=TeamNotificationSettingsRead)
def patch_team_settings(
    team_id: int,
    data: NotificationSettingsPatch,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    """
    Частичное обновление настроек в команде: переданные флаги включаются / выключаются.
    """
    get_team(db, team_id)
    require_member(db, team_id, current_user.id)
    partial = kinds_from_payload(data.model_dump(exclude_unset=True))
    prefs.update_team_notification_preferences(db, current_user.id, team_id, partial)
    logger.info(f"User {current_user.id} updated team {team_id} settings: {sorted(partial)}")
    return _team_settings(db, team_id, current_user)

@router.get("/teams/{team_id}/defaults", response_model=NotificationSettings)
def read_team_defaults(
    team_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    """
    Значения по умолчанию для участников, принимающих приглашение.
    """
    get_team(db, team_id)
    require_member(db, team_id, current_user.id)
    return kinds_to_payload(get_team_defaults(db, team_id))

@router.patch("/teams/{team_id}/defaults", response_model=NotificationSettings)
def patch_team_defaults(
    team_id: int,
    data: NotificationSettingsPatch,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    """
    Частичное обновление значений по умолчанию (только admin / owner).
    """
    partial = kinds_from_payload(data.model_dump(exclude_unset=True))
    return kinds_to_payload(update_team_defaults(db, team_id, current_user.id, partial))
