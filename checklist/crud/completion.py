#checklist/crud/completion.py
from datetime import date
from typing import List, Optional, Tuple
import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from checklist.models.completion import TaskCompletion
from checklist.models.check_in import CheckIn
from checklist.models.task import Task
from checklist.core.exceptions import CheckInRequiredError, TaskValidationError
from checklist.crud.task import get_task

logger = logging.getLogger("Checklist.Completions")

def _find_completion(db: Session, task: Task, user_id: int, completion_date: Optional[date], is_checklist: bool):
    query = db.query(TaskCompletion).filter(TaskCompletion.task_id == task.id)
    if is_checklist:
        return query.filter(TaskCompletion.user_id == user_id, TaskCompletion.completion_date.is_(None)).first()
    return query.filter(TaskCompletion.completion_date == completion_date).first()

def has_checked_in(db: Session, team_id: int, user_id: int, on_date: date) -> bool:
    return (
        db.query(CheckIn.id)
        .filter_by(team_id=team_id, user_id=user_id, check_in_date=on_date)
        .first()
        is not None
    )

def toggle_completion(
    db: Session,
    user_id: int,
    task_id: int,
    completion_date: Optional[date],
    completed: bool,
    is_checklist: Optional[bool] = None,
) -> Tuple[Optional[TaskCompletion], bool]:
    """
    Отметить / снять выполнение задачи.

    daily-задачи: нужна дата и check-in пользователя в команде на эту дату,
    одна запись на (задача, дата).
    checklist-задачи: без даты и без check-in, одна запись на (задача, пользователь).

    Возвращает (запись или None, произошёл ли переход состояния).
    """
    task = get_task(db, task_id)
    task_is_checklist = task.type == "checklist"
    if is_checklist is not None and bool(is_checklist) != task_is_checklist:
        raise TaskValidationError(
            "Checklist completion is only allowed for checklist tasks."
            if is_checklist else
            "Checklist tasks are completed without a date."
        )

    if task_is_checklist:
        completion_date = None
    else:
        if completion_date is None:
            raise TaskValidationError("Completion date is required for daily tasks.")
        if not has_checked_in(db, task.team_id, user_id, completion_date):
            raise CheckInRequiredError()

    existing = _find_completion(db, task, user_id, completion_date, task_is_checklist)
    if completed:
        if existing:
            return existing, False
        completion = TaskCompletion(task_id=task.id, user_id=user_id, completion_date=completion_date)
        db.add(completion)
        try:
            db.commit()
            db.refresh(completion)
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Concurrent completion of task {task_id} on {completion_date}: {e}")
            return _find_completion(db, task, user_id, completion_date, task_is_checklist), False
        logger.info(f"User {user_id} completed task {task_id} ({completion_date or 'checklist'})")
        return completion, True

    if not existing:
        return None, False
    db.delete(existing)
    db.commit()
    logger.info(f"User {user_id} uncompleted task {task_id} ({completion_date or 'checklist'})")
    return None, True

def get_completions(
    db: Session,
    team_id: int,
    completion_date: Optional[date] = None,
    is_checklist: bool = False,
) -> List[TaskCompletion]:
    """
    Выполнения по команде: checklist (без даты) или на конкретную дату.
    """
    query = (
        db.query(TaskCompletion)
        .join(Task, Task.id == TaskCompletion.task_id)
        .filter(Task.team_id == team_id, Task.is_deleted == False)
    )
    if is_checklist:
        query = query.filter(TaskCompletion.completion_date.is_(None))
    elif completion_date is not None:
        query = query.filter(TaskCompletion.completion_date == completion_date)
    else:
        return []
    return query.order_by(TaskCompletion.completed_at.asc(), TaskCompletion.id.asc()).all()
