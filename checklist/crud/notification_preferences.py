#checklist/crud/notification_preferences.py
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Dict, Optional, Set
import logging

from checklist.models.notification_preference import TeamNotificationPreference
from checklist.models.user import User
from checklist.core.exceptions import ValidationError, UserNotFound
from checklist.core.notification_kinds import NOTIFICATION_KINDS, validate_kind, user_field

logger = logging.getLogger("Checklist.NotificationPreferences")

def _check_kind(kind: str) -> None:
    if not validate_kind(kind):
        raise ValidationError(f"Unknown notification kind: {kind}")

def _get_row(db: Session, team_id: int, user_id: int, kind: str) -> Optional[TeamNotificationPreference]:
    return (
        db.query(TeamNotificationPreference)
        .filter_by(team_id=team_id, user_id=user_id, kind=kind)
        .first()
    )

def _set_override(db: Session, team_id: int, user_id: int, kind: str, enabled: Optional[bool]) -> TeamNotificationPreference:
    """
    Upsert строки (team, user, kind) без коммита.
    """
    _check_kind(kind)
    row = _get_row(db, team_id, user_id, kind)
    if row is None:
        row = TeamNotificationPreference(team_id=team_id, user_id=user_id, kind=kind, enabled=enabled)
        db.add(row)
    else:
        row.enabled = enabled
    return row

def _commit_override(db: Session, team_id: int, user_id: int, kind: str, enabled: Optional[bool]) -> None:
    _set_override(db, team_id, user_id, kind, enabled)
    try:
        db.commit()
    except IntegrityError:
        # параллельный insert той же тройки — повторяем один раз как update
        db.rollback()
        logger.warning(f"Retrying preference upsert team={team_id} user={user_id} kind={kind}")
        _set_override(db, team_id, user_id, kind, enabled)
        db.commit()

def get_override(db: Session, team_id: int, user_id: int, kind: str) -> Optional[bool]:
    """
    True / False — явная настройка в команде, None — следовать глобальной.
    """
    _check_kind(kind)
    row = _get_row(db, team_id, user_id, kind)
    return None if row is None else row.enabled

def connect(db: Session, team_id: int, kind: str, user_id: int, commit: bool = True) -> None:
    if commit:
        _commit_override(db, team_id, user_id, kind, True)
    else:
        _set_override(db, team_id, user_id, kind, True)
    logger.debug(f"Connected user {user_id} to '{kind}' in team {team_id}")

def disconnect(db: Session, team_id: int, kind: str, user_id: int, commit: bool = True) -> None:
    if commit:
        _commit_override(db, team_id, user_id, kind, False)
    else:
        _set_override(db, team_id, user_id, kind, False)
    logger.debug(f"Disconnected user {user_id} from '{kind}' in team {team_id}")

def reset(db: Session, team_id: int, kind: str, user_id: int, commit: bool = True) -> None:
    """
    Убирает настройку команды: пользователь снова следует глобальному флагу.
    """
    _check_kind(kind)
    db.query(TeamNotificationPreference).filter_by(
        team_id=team_id, user_id=user_id, kind=kind
    ).delete(synchronize_session=False)
    if commit:
        db.commit()

def members_with(db: Session, team_id: int, kind: str) -> Set[int]:
    """
    Пользователи, явно включившие вид уведомлений в этой команде.
    """
    _check_kind(kind)
    rows = (
        db.query(TeamNotificationPreference.user_id)
        .filter_by(team_id=team_id, kind=kind, enabled=True)
        .all()
    )
    return {user_id for (user_id,) in rows}

def team_overrides(db: Session, team_id: int, user_id: int) -> Dict[str, Optional[bool]]:
    """
    {kind: True/False/None} для всех пяти видов.
    """
    rows = db.query(TeamNotificationPreference).filter_by(team_id=team_id, user_id=user_id).all()
    result: Dict[str, Optional[bool]] = {kind: None for kind in NOTIFICATION_KINDS}
    for row in rows:
        if row.kind in result:
            result[row.kind] = row.enabled
    return result

def get_team_settings_for_user(db: Session, team_id: int, user_id: int) -> Dict[str, bool]:
    """
    Пять флагов: состоит ли пользователь в наборе команды для каждого вида.
    """
    return {kind: value is True for kind, value in team_overrides(db, team_id, user_id).items()}

def update_team_notification_preferences(
    db: Session, user_id: int, team_id: int, partial: Dict[str, Optional[bool]]
) -> Dict[str, bool]:
    """
    Частичное обновление: True -> connect, False -> disconnect, отсутствующие виды не трогаются.
    """
    for kind in partial:
        _check_kind(kind)
    changed = []
    for kind, value in partial.items():
        if value is None:
            continue
        _set_override(db, team_id, user_id, kind, bool(value))
        changed.append(kind)
    if changed:
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.error(f"Failed to update team preferences for user {user_id} in team {team_id}: {e}")
            raise ValidationError("Database error while updating team notification preferences.")
        logger.info(f"Updated team {team_id} preferences for user {user_id}: {changed}")
    return get_team_settings_for_user(db, team_id, user_id)

def add_user_to_team_notifications_with_settings(
    db: Session, user_id: int, team_id: int, settings: Dict[str, bool], commit: bool = True
) -> None:
    """
    Засевает настройки нового участника из переданных пяти флагов.
    True -> connect; False -> явное выключение в этой команде.
    """
    for kind in NOTIFICATION_KINDS:
        if kind not in settings:
            continue
        _set_override(db, team_id, user_id, kind, bool(settings[kind]))
    if commit:
        db.commit()
    logger.info(f"Seeded team {team_id} notification preferences for user {user_id}")

def add_user_to_team_notifications(db: Session, user_id: int, team_id: int, commit: bool = True) -> None:
    """
    Засевает настройки из текущих глобальных флагов пользователя (вступление по паролю).
    """
    user = db.get(User, user_id)
    if user is None:
        raise UserNotFound(f"User {user_id} not found.")
    seed = {kind: bool(getattr(user, user_field(kind))) for kind in NOTIFICATION_KINDS}
    add_user_to_team_notifications_with_settings(db, user_id, team_id, seed, commit=commit)

def clear_user_team_preferences(db: Session, team_id: int, user_id: int, commit: bool = True) -> int:
    count = (
        db.query(TeamNotificationPreference)
        .filter_by(team_id=team_id, user_id=user_id)
        .delete(synchronize_session=False)
    )
    if commit:
        db.commit()
    logger.info(f"Cleared {count} team {team_id} preferences for user {user_id}")
    return count
