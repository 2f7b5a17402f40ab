#checklist/api/completion.py
import logging
from datetime import date
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from checklist.schemas.completion import CompletionToggle, CompletionRead, CompletionToggleResult
from checklist.schemas.response import ErrorResponse
from checklist.crud.completion import toggle_completion, get_completions
from checklist.crud.task import get_visible_task
from checklist.crud.team import get_team, require_member
from checklist.core.notification_kinds import TASK_COMPLETION
from checklist.dependencies import get_db, get_current_active_user, get_notification_dispatcher
from checklist.services.notifications import NotificationDispatcher
from checklist.models.user import User as UserModel

logger = logging.getLogger("Checklist.CompletionsAPI")

router = APIRouter(prefix="/completions", tags=["Completions"])

@router.post(
    "/toggle",
    response_model=CompletionToggleResult,
    responses={status.HTTP_409_CONFLICT: {"model": ErrorResponse, "description": "Check-in required"}},
)
def toggle(
    data: CompletionToggle,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    Отметить / снять выполнение. Для daily-задач нужен check-in за дату (иначе 409).
    При переходе в «выполнено» участники команды получают уведомление.
    """
    task = get_visible_task(db, data.task_id, current_user.id)
    completion, changed = toggle_completion(
        db, current_user.id, data.task_id, data.completion_date, data.completed, data.is_checklist
    )
    if changed and data.completed:
        dispatcher.schedule(
            background_tasks, db, TASK_COMPLETION,
            {"team_id": task.team_id, "actor_id": current_user.id, "task_title": task.title},
        )
    return CompletionToggleResult(
        task_id=data.task_id,
        completed=completion is not None,
        changed=changed,
        completion=CompletionRead.model_validate(completion) if completion is not None else None,
    )

@router.get("/team/{team_id}", response_model=List[CompletionRead])
def list_completions(
    team_id: int,
    on_date: Optional[date] = Query(None, alias="date", description="Дата (YYYY-MM-DD)"),
    is_checklist: bool = Query(False, description="Выполнения checklist-задач (без даты)"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    """
    Выполнения в команде на дату либо выполнения checklist-задач.
    """
    get_team(db, team_id)
    require_member(db, team_id, current_user.id)
    return get_completions(db, team_id, completion_date=on_date, is_checklist=is_checklist)
