#checklist/crud/check_in.py
from datetime import date, datetime, timezone
from typing import List, Optional
import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from checklist.models.check_in import CheckIn
from checklist.core.exceptions import ValidationError
from checklist.crud.team import get_team, require_member

logger = logging.getLogger("Checklist.CheckIns")

MAX_NOTES_LENGTH = 2000

def today_utc() -> date:
    return datetime.now(timezone.utc).date()

def check_in(
    db: Session,
    team_id: int,
    user_id: int,
    check_in_date: Optional[date] = None,
    notes: Optional[str] = None,
) -> CheckIn:
    """
    Ежедневный check-in участника. Второй check-in за ту же дату — ошибка валидации.
    """
    get_team(db, team_id)
    require_member(db, team_id, user_id)
    check_in_date = check_in_date or today_utc()
    notes = (notes or "").strip() or None
    if notes and len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError(f"Notes must be at most {MAX_NOTES_LENGTH} characters.")
    if get_check_in_status(db, team_id, user_id, check_in_date):
        raise ValidationError("You have already checked in for this date.")

    record = CheckIn(team_id=team_id, user_id=user_id, check_in_date=check_in_date, notes=notes)
    db.add(record)
    try:
        db.commit()
        db.refresh(record)
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Duplicate check-in for user {user_id} in team {team_id} on {check_in_date}: {e}")
        raise ValidationError("You have already checked in for this date.")
    logger.info(f"User {user_id} checked in to team {team_id} on {check_in_date}")
    return record

def get_check_in_status(db: Session, team_id: int, user_id: int, check_in_date: Optional[date] = None) -> Optional[CheckIn]:
    check_in_date = check_in_date or today_utc()
    return (
        db.query(CheckIn)
        .filter_by(team_id=team_id, user_id=user_id, check_in_date=check_in_date)
        .first()
    )

def get_team_check_ins(db: Session, team_id: int, check_in_date: Optional[date] = None) -> List[CheckIn]:
    check_in_date = check_in_date or today_utc()
    return (
        db.query(CheckIn)
        .filter_by(team_id=team_id, check_in_date=check_in_date)
        .order_by(CheckIn.checked_at.asc(), CheckIn.id.asc())
        .all()
    )
