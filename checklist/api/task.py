#checklist/api/task.py
import logging
from datetime import date
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from checklist.schemas.task import (
    TaskCreate,
    TaskRead,
    TaskUpdate,
    TaskMove,
    TaskReposition,
    TaskAssign,
    AssignmentsUpdate,
    AssignmentsResult,
    TaskDeleted,
    TaskBoard,
)
from checklist.schemas.check_in import CheckInStatus, CheckInRead
from checklist.schemas.completion import CompletionRead
from checklist.crud.task import (
    create_task,
    get_task,
    get_visible_task,
    get_team_tasks,
    update_task,
    soft_delete_task,
    move_task,
    reposition_task,
    assign_task,
    unassign_task,
    update_assignments,
)
from checklist.crud.team import get_team, require_member, require_manager
from checklist.crud.completion import get_completions
from checklist.crud.check_in import get_check_in_status, today_utc
from checklist.core.notification_kinds import ASSIGNMENT, NEW_TASKS
from checklist.dependencies import get_db, get_current_active_user, get_notification_dispatcher
from checklist.services.notifications import NotificationDispatcher
from checklist.models.task import Task as TaskModel
from checklist.models.user import User as UserModel

logger = logging.getLogger("Checklist.TasksAPI")

router = APIRouter(prefix="/tasks", tags=["Tasks"])

def _notify_assignees(
    dispatcher: NotificationDispatcher,
    background_tasks: BackgroundTasks,
    db: Session,
    task: TaskModel,
    actor_id: int,
    user_ids: List[int],
) -> None:
    for user_id in user_ids:
        dispatcher.schedule(
            background_tasks, db, ASSIGNMENT,
            {"team_id": task.team_id, "actor_id": actor_id, "task_title": task.title, "assignee_id": user_id},
        )

def _status(record) -> CheckInStatus:
    return CheckInStatus(
        checked_in=record is not None,
        check_in=CheckInRead.model_validate(record) if record is not None else None,
    )

@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
def create_new_task(
    data: TaskCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    Создать новую задачу (любой участник). Участники команды получают уведомление.
    """
    get_team(db, data.team_id)
    require_member(db, data.team_id, current_user.id)
    task = create_task(db, data.model_dump())
    dispatcher.schedule(
        background_tasks, db, NEW_TASKS,
        {"team_id": task.team_id, "actor_id": current_user.id, "task_title": task.title, "task_type": task.type},
    )
    return task

@router.get("/team/{team_id}", response_model=TaskBoard)
def get_team_board(
    team_id: int,
    type: str = Query("daily", description="daily / checklist / all"),
    on_date: Optional[date] = Query(None, alias="date", description="Дата (YYYY-MM-DD), по умолчанию сегодня"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    """
    Задачи команды на дату + выполнения на эту дату + статус check-in текущего пользователя.
    """
    get_team(db, team_id)
    require_member(db, team_id, current_user.id)
    on_date = on_date or today_utc()
    tasks = get_team_tasks(db, team_id, task_type=None if type == "all" else type, user_id=current_user.id)
    record = get_check_in_status(db, team_id, current_user.id, on_date)
    return TaskBoard(
        team_id=team_id,
        date=on_date,
        tasks=[TaskRead.model_validate(task) for task in tasks],
        completions=[CompletionRead.model_validate(c) for c in get_completions(db, team_id, completion_date=on_date)],
        check_in=_status(record),
    )

@router.get("/team/{team_id}/checklists", response_model=TaskBoard)
def get_team_checklists(
    team_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    """
    Checklist-задачи команды (с учётом видимости) и их выполнения.
    """
    get_team(db, team_id)
    require_member(db, team_id, current_user.id)
    record = get_check_in_status(db, team_id, current_user.id)
    return TaskBoard(
        team_id=team_id,
        tasks=[TaskRead.model_validate(task) for task in get_team_tasks(db, team_id, task_type="checklist", user_id=current_user.id)],
        completions=[CompletionRead.model_validate(c) for c in get_completions(db, team_id, is_checklist=True)],
        check_in=_status(record),
    )

@router.get("/{task_id}", response_model=TaskRead)
def get_one_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    """
    Получить задачу по ID.
    """
    return get_visible_task(db, task_id, current_user.id)

@router.patch("/{task_id}", response_model=TaskRead)
def update_one_task(
    task_id: int,
    data: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    """
    Обновить задачу (частично).
    """
    get_visible_task(db, task_id, current_user.id)
    return update_task(db, task_id, data.model_dump(exclude_unset=True))

@router.delete("/{task_id}", response_model=TaskDeleted)
def delete_one_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    """
    Soft-delete задачи вместе с поддеревом (только admin / owner).
    """
    task = get_task(db, task_id)
    require_manager(db, task.team_id, current_user.id, "delete tasks")
    deleted = soft_delete_task(db, task_id)
    return TaskDeleted(task_id=task_id, deleted=deleted)

@router.post("/{task_id}/move", response_model=TaskRead)
def move_one_task(
    task_id: int,
    data: TaskMove,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    """
    Сдвинуть задачу на одну позицию вверх / вниз среди соседей.
    """
    get_visible_task(db, task_id, current_user.id)
    return move_task(db, task_id, data.direction)

@router.post("/{task_id}/reposition", response_model=TaskRead)
def reposition_one_task(
    task_id: int,
    data: TaskReposition,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    """
    Перенести задачу на произвольный индекс среди соседей (drag & drop).
    """
    get_visible_task(db, task_id, current_user.id)
    return reposition_task(db, task_id, data.index)

# --- Назначения ---

@router.post("/{task_id}/assignments", response_model=AssignmentsResult)
def assign_one(
    task_id: int,
    data: TaskAssign,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    Назначить задачу участнику (только admin / owner).
    """
    task = get_task(db, task_id)
    require_manager(db, task.team_id, current_user.id, "manage task assignments")
    created = assign_task(db, task_id, data.user_id)
    newly_assigned = [data.user_id] if created else []
    _notify_assignees(dispatcher, background_tasks, db, task, current_user.id, newly_assigned)
    db.refresh(task)
    return AssignmentsResult(task_id=task_id, assignee_ids=task.assignee_ids, newly_assigned=newly_assigned)

@router.delete("/{task_id}/assignments/{user_id}", response_model=AssignmentsResult)
def unassign_one(
    task_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    task = get_task(db, task_id)
    require_manager(db, task.team_id, current_user.id, "manage task assignments")
    unassign_task(db, task_id, user_id)
    task = get_task(db, task_id)
    return AssignmentsResult(task_id=task_id, assignee_ids=task.assignee_ids, newly_assigned=[])

@router.put("/{task_id}/assignments", response_model=AssignmentsResult)
def replace_assignments(
    task_id: int,
    data: AssignmentsUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    Массовое изменение назначений (add / remove / set). Уведомляются только новые исполнители.
    """
    task = get_task(db, task_id)
    require_manager(db, task.team_id, current_user.id, "manage task assignments")
    newly_assigned = update_assignments(db, task_id, data.user_ids, data.action)
    _notify_assignees(dispatcher, background_tasks, db, task, current_user.id, newly_assigned)
    db.refresh(task)
    return AssignmentsResult(task_id=task_id, assignee_ids=task.assignee_ids, newly_assigned=newly_assigned)
