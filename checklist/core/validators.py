#checklist/core/validators.py
import re
from datetime import date, datetime, timezone
from typing import Any, Optional

# === ВАЛИДАТОРЫ ДЛЯ ВХОДНЫХ ДАННЫХ ===

DEADLINE_FORMAT_HINT = "MM/DD/YYYY"
_DEADLINE_RE = re.compile(r"^\s*(\d{1,2})/(\d{1,2})/(\d{4})\s*$")
_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")

TASK_TYPES = ("daily", "checklist")
TASK_VISIBILITIES = ("team", "private", "public")
TEAM_ROLES = ("member", "admin", "owner")
MANAGER_ROLES = ("admin", "owner")

def parse_deadline(value: Any) -> Optional[datetime]:
    """
    'MM/DD/YYYY' -> datetime в полночь UTC того же календарного дня.
    None/'' -> None. Неверный формат или несуществующая дата -> ValueError.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    match = _DEADLINE_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid deadline '{value}'. Use {DEADLINE_FORMAT_HINT}.")
    month, day, year = (int(part) for part in match.groups())
    return datetime(year, month, day, tzinfo=timezone.utc)

def deadline_date(value: Optional[datetime]) -> Optional[date]:
    """Календарная дата дедлайна (SQLite возвращает naive datetime)."""
    if value is None:
        return None
    return date(value.year, value.month, value.day)

def is_due_on(deadline: Optional[datetime], day: date) -> bool:
    return deadline_date(deadline) == day

def is_overdue(deadline: Optional[datetime], today: date) -> bool:
    d = deadline_date(deadline)
    return d is not None and d < today

def validate_time(value: Any) -> bool:
    return value is None or bool(_TIME_RE.match(str(value)))

def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (value or "").strip().casefold())
    slug = re.sub(r"-{2,}", "-", slug).strip("-")
    return slug or "team"
