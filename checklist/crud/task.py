#checklist/crud/task.py
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy import func, or_
from checklist.models.task import Task, TaskAssignment
from checklist.core.exceptions import (
    TaskNotFound,
    TaskValidationError,
    ConcurrencyConflictError,
    PermissionDeniedError,
)
from checklist.core.settings import settings
from checklist.core.validators import parse_deadline, validate_time, TASK_TYPES, TASK_VISIBILITIES
from checklist.crud.team import get_team, get_membership, require_member
import logging
from typing import List, Optional, Sequence

logger = logging.getLogger("Checklist.Tasks")

ASSIGNMENT_ACTIONS = ("add", "remove", "set")
MOVE_DIRECTIONS = ("up", "down")

def _sibling_query(db: Session, team_id: int, parent_id: Optional[int]):
    query = db.query(Task).filter(Task.team_id == team_id, Task.is_deleted == False)
    if parent_id is None:
        return query.filter(Task.parent_id.is_(None))
    return query.filter(Task.parent_id == parent_id)

def get_siblings(db: Session, team_id: int, parent_id: Optional[int], exclude_id: Optional[int] = None) -> List[Task]:
    """
    Соседи по родителю в порядке position (при равенстве — по id).
    """
    query = _sibling_query(db, team_id, parent_id)
    if exclude_id is not None:
        query = query.filter(Task.id != exclude_id)
    return query.order_by(Task.position.asc(), Task.id.asc()).all()

def next_position(db: Session, team_id: int, parent_id: Optional[int]) -> int:
    """
    max(position) среди соседей + 1, или 0, если соседей нет.
    """
    query = db.query(func.max(Task.position)).filter(Task.team_id == team_id, Task.is_deleted == False)
    if parent_id is None:
        query = query.filter(Task.parent_id.is_(None))
    else:
        query = query.filter(Task.parent_id == parent_id)
    max_position = query.scalar()
    return 0 if max_position is None else max_position + 1

def _parse_deadline(value):
    try:
        return parse_deadline(value)
    except ValueError:
        raise TaskValidationError("Invalid deadline date format. Use MM/DD/YYYY.")

def _validate_choice(value, choices, field: str):
    if value not in choices:
        raise TaskValidationError(f"{field} must be one of: {', '.join(choices)}.")
    return value

def _get_parent(db: Session, parent_id: int, team_id: int) -> Task:
    try:
        parent = get_task(db, parent_id)
    except TaskNotFound:
        raise TaskValidationError(f"Parent task {parent_id} not found.")
    if parent.team_id != team_id:
        raise TaskValidationError("Parent task must belong to the same team.")
    return parent

def create_task(db: Session, data: dict) -> Task:
    """
    Создать новую задачу. Без явной позиции — в конец списка соседей.
    """
    title = (data.get("title") or "").strip()
    if not title:
        raise TaskValidationError("Title is required.")

    team_id = data.get("team_id")
    if team_id is None:
        raise TaskValidationError("Team ID is required.")
    try:
        team_id = int(team_id)
    except (TypeError, ValueError):
        raise TaskValidationError("Team ID must be an integer.")
    get_team(db, team_id)

    task_type = _validate_choice(data.get("type") or "daily", TASK_TYPES, "Type")
    visibility = _validate_choice(data.get("visibility") or "team", TASK_VISIBILITIES, "Visibility")

    parent_id = data.get("parent_id")
    if parent_id is not None:
        _get_parent(db, parent_id, team_id)

    deadline = _parse_deadline(data.get("deadline"))
    time = data.get("time") or None
    if not validate_time(time):
        raise TaskValidationError("Invalid time format. Use HH:MM.")

    position = data.get("position")
    if position is None:
        position = next_position(db, team_id, parent_id)

    task = Task(
        title=title,
        team_id=team_id,
        parent_id=parent_id,
        position=int(position),
        type=task_type,
        visibility=visibility,
        deadline=deadline,
        time=time,
        is_deleted=False,
    )
    db.add(task)
    try:
        db.commit()
        db.refresh(task)
        logger.info(f"Created task {task.id} in team {task.team_id} at position {task.position}")
        return task
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Failed to create task: {e}")
        raise TaskValidationError("Database error while creating task.")

def get_task(db: Session, task_id: int, include_deleted: bool = False) -> Task:
    """
    Получить задачу по ID (учитывать или нет soft-delete).
    """
    query = db.query(Task).filter(Task.id == task_id)
    if not include_deleted:
        query = query.filter(Task.is_deleted == False)
    task = query.first()
    if not task:
        raise TaskNotFound(f"Task {task_id} not found{' (or is deleted)' if not include_deleted else ''}.")
    return task

def get_visible_task(db: Session, task_id: int, user_id: int) -> Task:
    """
    Задача, доступная участнику команды. Приватный checklist — только назначенным.
    """
    task = get_task(db, task_id)
    require_member(db, task.team_id, user_id)
    if task.type == "checklist" and task.visibility == "private" and user_id not in task.assignee_ids:
        raise PermissionDeniedError("You don't have access to this task")
    return task

def get_team_tasks(
    db: Session,
    team_id: int,
    task_type: Optional[str] = None,
    user_id: Optional[int] = None,
    include_deleted: bool = False,
) -> List[Task]:
    """
    Задачи команды по position. Приватные checklist-задачи видны только назначенным пользователям.
    """
    query = db.query(Task).filter(Task.team_id == team_id)
    if not include_deleted:
        query = query.filter(Task.is_deleted == False)
    if task_type:
        query = query.filter(Task.type == _validate_choice(task_type, TASK_TYPES, "Type"))
    if user_id is not None:
        query = query.filter(
            or_(
                Task.type != "checklist",
                Task.visibility.in_(("team", "public")),
                Task.assignments.any(TaskAssignment.user_id == user_id),
            )
        )
    return query.order_by(Task.position.asc(), Task.id.asc()).all()

def _check_not_descendant(db: Session, task: Task, new_parent: Task) -> None:
    """
    Поднимается от нового родителя к корню; если встречает саму задачу — цикл.
    """
    seen = set()
    current = new_parent
    while current is not None:
        if current.id == task.id:
            raise TaskValidationError("Task cannot be moved under its own descendant.")
        if current.id in seen:
            break
        seen.add(current.id)
        current = db.get(Task, current.parent_id) if current.parent_id is not None else None

def update_task(db: Session, task_id: int, data: dict) -> Task:
    """
    Частичное обновление: title, parent_id, position, visibility, deadline, time.
    """
    task = get_task(db, task_id)

    if "title" in data and data["title"] is not None:
        title = data["title"].strip()
        if not title:
            raise TaskValidationError("Task title is required.")
        task.title = title

    if "parent_id" in data:
        parent_id = data["parent_id"]
        if parent_id == task.id:
            raise TaskValidationError("Task cannot be its own parent")
        if parent_id != task.parent_id:
            if parent_id is not None:
                new_parent = _get_parent(db, parent_id, task.team_id)
                _check_not_descendant(db, task, new_parent)
            task.parent_id = parent_id
            if data.get("position") is None:
                task.position = next_position(db, task.team_id, parent_id)

    if data.get("position") is not None:
        task.position = int(data["position"])
    if data.get("visibility") is not None:
        task.visibility = _validate_choice(data["visibility"], TASK_VISIBILITIES, "Visibility")
    if "deadline" in data:
        task.deadline = _parse_deadline(data["deadline"])
    if "time" in data:
        time = data["time"] or None
        if not validate_time(time):
            raise TaskValidationError("Invalid time format. Use HH:MM.")
        task.time = time

    try:
        db.commit()
        db.refresh(task)
        logger.info(f"Updated task {task.id} fields: {sorted(data.keys())}")
        return task
    except StaleDataError as e:
        db.rollback()
        logger.warning(f"Task {task_id} was modified concurrently: {e}")
        raise ConcurrencyConflictError()
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Failed to update task: {e}")
        raise TaskValidationError("Database error while updating task.")

def soft_delete_task(db: Session, task_id: int) -> int:
    """
    Помечает задачу и всё её поддерево как удалённые (обход в глубину через явный стек).
    Возвращает число помеченных строк; ничего физически не удаляется.
    """
    root = get_task(db, task_id)
    now = datetime.now(timezone.utc)
    flagged = 0
    stack = [root]
    while stack:
        current = stack.pop()
        if not current.is_deleted:
            current.is_deleted = True
            current.deleted_at = now
            flagged += 1
        stack.extend(db.query(Task).filter(Task.parent_id == current.id).all())
    try:
        db.commit()
        logger.info(f"Soft-deleted task {task_id} and its subtree ({flagged} rows)")
        return flagged
    except StaleDataError as e:
        db.rollback()
        logger.warning(f"Task subtree {task_id} was modified concurrently: {e}")
        raise ConcurrencyConflictError()

# === ПОРЯДОК ===

def calculate_new_position(new_index: int, siblings: Sequence[int], gap: int = settings.POSITION_GAP) -> int:
    """
    Позиция для вставки на индекс new_index среди соседей `siblings` (их позиции по порядку,
    без перемещаемой задачи). 0 -> перед первым, len(siblings) -> после последнего,
    иначе — целая середина между соседями.
    """
    if not siblings:
        return 0
    if new_index <= 0:
        return max(0, siblings[0] - gap)
    if new_index >= len(siblings):
        return siblings[-1] + gap
    before = siblings[new_index - 1]
    after = siblings[new_index]
    return before + (after - before) // 2

def _collides(position: int, new_index: int, siblings: Sequence[int]) -> bool:
    if not siblings:
        return False
    if new_index <= 0:
        return position >= siblings[0]
    if new_index >= len(siblings):
        return False
    return position <= siblings[new_index - 1] or position >= siblings[new_index]

def renumber_siblings(siblings: List[Task], gap: int = settings.POSITION_GAP) -> None:
    """
    Перенумеровывает соседей с шагом gap (gap, 2*gap, ...), порядок сохраняется.
    """
    for index, sibling in enumerate(siblings, start=1):
        sibling.position = index * gap

def _commit_reorder(db: Session, task_id: int, attempt: int) -> bool:
    try:
        db.commit()
        return True
    except StaleDataError as e:
        db.rollback()
        logger.warning(f"Reorder of task {task_id} conflicted (attempt {attempt}): {e}")
        return False

def move_task(db: Session, task_id: int, direction: str) -> Task:
    """
    Меняет position задачи с ближайшим соседом сверху / снизу. На границе — ничего не делает.
    """
    _validate_choice(direction, MOVE_DIRECTIONS, "Direction")
    for attempt in range(1, settings.OPTIMISTIC_RETRY_ATTEMPTS + 1):
        task = get_task(db, task_id)
        siblings = get_siblings(db, task.team_id, task.parent_id)
        index = next(i for i, sibling in enumerate(siblings) if sibling.id == task.id)
        neighbour_index = index - 1 if direction == "up" else index + 1
        if neighbour_index < 0 or neighbour_index >= len(siblings):
            logger.info(f"Task {task_id} is already at the {'top' if direction == 'up' else 'bottom'}")
            return task
        neighbour = siblings[neighbour_index]
        if task.position == neighbour.position:
            renumber_siblings(siblings)
        task.position, neighbour.position = neighbour.position, task.position
        if _commit_reorder(db, task_id, attempt):
            logger.info(f"Moved task {task_id} {direction} (swapped with {neighbour.id})")
            return task
    raise ConcurrencyConflictError()

def reposition_task(db: Session, task_id: int, new_index: int) -> Task:
    """
    Переносит задачу на индекс new_index среди соседей (позиция — середина между соседями,
    при исчерпании целых чисел соседи перенумеровываются).
    """
    if new_index < 0:
        raise TaskValidationError("Index must be non-negative.")
    for attempt in range(1, settings.OPTIMISTIC_RETRY_ATTEMPTS + 1):
        task = get_task(db, task_id)
        others = get_siblings(db, task.team_id, task.parent_id, exclude_id=task.id)
        index = min(new_index, len(others))
        positions = [sibling.position for sibling in others]
        position = calculate_new_position(index, positions)
        if _collides(position, index, positions):
            renumber_siblings(others)
            positions = [sibling.position for sibling in others]
            position = calculate_new_position(index, positions)
            logger.info(f"Renumbered {len(others)} siblings of task {task_id}")
        task.position = position
        if _commit_reorder(db, task_id, attempt):
            logger.info(f"Repositioned task {task_id} to index {index} (position {position})")
            return task
    raise ConcurrencyConflictError()

# === НАЗНАЧЕНИЯ ===

def _require_assignable(db: Session, task: Task, user_id: int) -> None:
    if get_membership(db, task.team_id, user_id) is None:
        raise TaskValidationError(f"User {user_id} is not a member of this team.")

def assign_task(db: Session, task_id: int, user_id: int) -> bool:
    """
    Назначает задачу участнику. True — если назначение новое.
    """
    task = get_task(db, task_id)
    _require_assignable(db, task, user_id)
    existing = db.query(TaskAssignment).filter_by(task_id=task_id, user_id=user_id).first()
    if existing:
        return False
    db.add(TaskAssignment(task_id=task_id, user_id=user_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return False
    logger.info(f"Assigned task {task_id} to user {user_id}")
    return True

def unassign_task(db: Session, task_id: int, user_id: int) -> bool:
    get_task(db, task_id)
    count = (
        db.query(TaskAssignment)
        .filter_by(task_id=task_id, user_id=user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    db.expire_all()
    if count:
        logger.info(f"Unassigned user {user_id} from task {task_id}")
    return bool(count)

def update_assignments(db: Session, task_id: int, user_ids: List[int], action: str = "add") -> List[int]:
    """
    Массовое изменение назначений: add / remove / set. Возвращает ID новых назначенных.
    """
    _validate_choice(action, ASSIGNMENT_ACTIONS, "Action")
    task = get_task(db, task_id)
    current = {a.user_id for a in task.assignments}
    requested = list(dict.fromkeys(user_ids))

    if action in ("add", "set"):
        for user_id in requested:
            _require_assignable(db, task, user_id)

    newly_assigned: List[int] = []
    if action == "remove":
        for assignment in list(task.assignments):
            if assignment.user_id in requested:
                task.assignments.remove(assignment)
    else:
        if action == "set":
            for assignment in list(task.assignments):
                if assignment.user_id not in requested:
                    task.assignments.remove(assignment)
        for user_id in requested:
            if user_id not in current:
                task.assignments.append(TaskAssignment(user_id=user_id))
                newly_assigned.append(user_id)

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Failed to update assignments of task {task_id}: {e}")
        raise TaskValidationError("Database error while updating assignments.")
    logger.info(f"Updated assignments of task {task_id} ({action}): new={newly_assigned}")
    return newly_assigned
