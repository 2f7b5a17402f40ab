#checklist/api/check_in.py
import logging
from datetime import date
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from checklist.schemas.check_in import CheckInCreate, CheckInRead, CheckInStatus
from checklist.crud.check_in import check_in, get_check_in_status, get_team_check_ins
from checklist.crud.team import get_team, require_member
from checklist.core.notification_kinds import CHECKIN
from checklist.dependencies import get_db, get_current_active_user, get_notification_dispatcher
from checklist.services.notifications import NotificationDispatcher
from checklist.models.user import User as UserModel

logger = logging.getLogger("Checklist.CheckInsAPI")

router = APIRouter(prefix="/check-ins", tags=["Check-ins"])

@router.post("/", response_model=CheckInRead, status_code=status.HTTP_201_CREATED)
def create_check_in(
    data: CheckInCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    Ежедневный check-in в команде. Участники получают уведомление.
    """
    record = check_in(db, data.team_id, current_user.id, data.check_in_date, data.notes)
    dispatcher.schedule(
        background_tasks, db, CHECKIN,
        {"team_id": data.team_id, "actor_id": current_user.id, "notes": record.notes},
    )
    return record

@router.get("/team/{team_id}", response_model=List[CheckInRead])
def list_check_ins(
    team_id: int,
    on_date: Optional[date] = Query(None, alias="date", description="Дата (YYYY-MM-DD), по умолчанию сегодня"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    get_team(db, team_id)
    require_member(db, team_id, current_user.id)
    return get_team_check_ins(db, team_id, on_date)

@router.get("/team/{team_id}/status", response_model=CheckInStatus)
def check_in_status(
    team_id: int,
    on_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    """
    Отметился ли текущий пользователь в команде на дату.
    """
    get_team(db, team_id)
    require_member(db, team_id, current_user.id)
    record = get_check_in_status(db, team_id, current_user.id, on_date)
    return CheckInStatus(
        checked_in=record is not None,
        check_in=CheckInRead.model_validate(record) if record is not None else None,
    )
