#checklist/services/preferences.py
import logging
from typing import Dict, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from checklist.models.user import User
from checklist.models.team import Team
from checklist.crud.notification_preferences import get_override, team_overrides
from checklist.core.notification_kinds import NOTIFICATION_KINDS, validate_kind, user_field

logger = logging.getLogger("Checklist.Preferences")

def should_notify(db: Session, user_id: int, team_id: int, kind: str, actor_id: Optional[int]) -> bool:
    """
    Решает, отправлять ли пользователю уведомление вида `kind` в команде.

    1. Автор действия никогда не получает уведомление о своём действии.
    2. Глобальный флаг пользователя выключен -> False (нельзя переопределить командой).
    3. Настройка команды: True -> True, False -> False, нет настройки -> глобальный флаг (True).

    Нет пользователя / команды, либо ошибка хранилища -> False (с логированием). Никогда не бросает.
    """
    if actor_id is not None and user_id == actor_id:
        return False
    if not validate_kind(kind):
        logger.warning(f"should_notify: unknown notification kind '{kind}'")
        return False
    try:
        user = db.get(User, user_id)
        if user is None:
            logger.warning(f"should_notify: user {user_id} not found, skipping '{kind}'")
            return False
        if not getattr(user, user_field(kind)):
            return False

        team = db.get(Team, team_id)
        if team is None or team.is_deleted:
            logger.warning(f"should_notify: team {team_id} not found, skipping '{kind}' for user {user_id}")
            return False

        override = get_override(db, team_id, user_id, kind)
        if override is False:
            return False
        return True
    except SQLAlchemyError as e:
        logger.error(f"should_notify failed for user={user_id} team={team_id} kind={kind}: {e}", exc_info=True)
        return False

def effective_settings(db: Session, team_id: int, user: User) -> Dict[str, bool]:
    """
    Итоговые флаги пользователя в команде (без учёта правила автора).
    """
    overrides = team_overrides(db, team_id, user.id)
    result: Dict[str, bool] = {}
    for kind in NOTIFICATION_KINDS:
        global_enabled = bool(getattr(user, user_field(kind)))
        result[kind] = global_enabled and overrides[kind] is not False
    return result
