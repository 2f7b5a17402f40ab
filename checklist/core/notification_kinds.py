#checklist/core/notification_kinds.py
from typing import Any, Dict, List, Optional

# === ВИДЫ УВЕДОМЛЕНИЙ ===

INVITATION = "invitation"
ASSIGNMENT = "assignment"
TASK_COMPLETION = "task_completion"
CHECKIN = "checkin"
NEW_TASKS = "new_tasks"

NOTIFICATION_KINDS: List[str] = [INVITATION, ASSIGNMENT, TASK_COMPLETION, CHECKIN, NEW_TASKS]

# === ГЛОБАЛЬНАЯ СХЕМА ВИДОВ ===
# user_field — глобальная настройка пользователя (колонка users),
# team_default_field — значение по умолчанию для новых участников (колонка teams).

NOTIFICATION_KINDS_SCHEMA: Dict[str, Dict[str, Any]] = {
    INVITATION: {
        "user_field": "notification_on_invitation",
        "team_default_field": "default_notification_on_invitation",
        "label": "Team invitations",
    },
    ASSIGNMENT: {
        "user_field": "notification_on_assignment",
        "team_default_field": "default_notification_on_assignment",
        "label": "Task assignments",
    },
    TASK_COMPLETION: {
        "user_field": "notification_on_task_completion",
        "team_default_field": "default_notification_on_task_completion",
        "label": "Task completions",
    },
    CHECKIN: {
        "user_field": "notification_on_checkin",
        "team_default_field": "default_notification_on_checkin",
        "label": "Check-ins",
    },
    NEW_TASKS: {
        "user_field": "notification_on_new_tasks",
        "team_default_field": "default_notification_on_new_tasks",
        "label": "New tasks",
    },
}

def validate_kind(kind: Any) -> bool:
    return kind in NOTIFICATION_KINDS_SCHEMA

def user_field(kind: str) -> str:
    """Имя колонки users для глобальной настройки вида."""
    return NOTIFICATION_KINDS_SCHEMA[kind]["user_field"]

def team_default_field(kind: str) -> str:
    """Имя колонки teams для значения по умолчанию новых участников."""
    return NOTIFICATION_KINDS_SCHEMA[kind]["team_default_field"]

def kind_for_user_field(field: str) -> Optional[str]:
    for kind, schema in NOTIFICATION_KINDS_SCHEMA.items():
        if schema["user_field"] == field:
            return kind
    return None

def kinds_from_payload(payload: Dict[str, Any], field_getter=user_field) -> Dict[str, bool]:
    """
    Переводит payload вида {"notification_on_checkin": True, ...} в {kind: bool}.
    Ключи со значением None и отсутствующие ключи пропускаются.
    """
    result: Dict[str, bool] = {}
    for kind in NOTIFICATION_KINDS:
        value = payload.get(field_getter(kind))
        if value is not None:
            result[kind] = bool(value)
    return result

def kinds_to_payload(values: Dict[str, bool], field_getter=user_field) -> Dict[str, bool]:
    return {field_getter(kind): bool(values.get(kind, False)) for kind in NOTIFICATION_KINDS}
