#checklist/schemas/task.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional
from datetime import date as date_type, datetime

from checklist.schemas.completion import CompletionRead
from checklist.schemas.check_in import CheckInStatus

class TaskCreate(BaseModel):
    """
    TaskCreate — создание новой задачи.
    """
    title: str = Field(..., examples=["Ship v1"], description="Название задачи")
    team_id: int = Field(..., description="ID команды")
    parent_id: Optional[int] = Field(None, description="ID родительской задачи (если есть)")
    position: Optional[int] = Field(None, description="Позиция (по умолчанию — в конец)")
    type: Literal["daily", "checklist"] = "daily"
    visibility: Literal["team", "private", "public"] = "team"
    deadline: Optional[str] = Field(None, examples=["12/31/2025"], description="Дедлайн MM/DD/YYYY")
    time: Optional[str] = Field(None, examples=["09:30"], description="Время HH:MM")

class TaskUpdate(BaseModel):
    """
    TaskUpdate — обновление задачи (все поля опциональны).
    """
    title: Optional[str] = None
    parent_id: Optional[int] = None
    position: Optional[int] = None
    visibility: Optional[Literal["team", "private", "public"]] = None
    deadline: Optional[str] = None
    time: Optional[str] = None

class TaskRead(BaseModel):
    """
    TaskRead — полная схема задачи для ответа (response).
    """
    id: int
    title: str
    team_id: int
    parent_id: Optional[int] = None
    position: int
    type: str
    visibility: str
    deadline: Optional[datetime] = None
    time: Optional[str] = None
    is_deleted: bool
    assignee_ids: List[int] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class TaskMove(BaseModel):
    direction: Literal["up", "down"]

class TaskReposition(BaseModel):
    index: int = Field(..., ge=0, description="Новый индекс среди соседей")

class TaskAssign(BaseModel):
    user_id: int

class AssignmentsUpdate(BaseModel):
    user_ids: List[int] = Field(default_factory=list)
    action: Literal["add", "remove", "set"] = "add"

class AssignmentsResult(BaseModel):
    task_id: int
    assignee_ids: List[int]
    newly_assigned: List[int]

class TaskDeleted(BaseModel):
    task_id: int
    deleted: int = Field(..., description="Число помеченных задач (сама задача + потомки)")

class TaskBoard(BaseModel):
    """
    TaskBoard — задачи команды на дату вместе с выполнениями и статусом check-in.
    """
    team_id: int
    date: Optional[date_type] = None
    tasks: List[TaskRead]
    completions: List[CompletionRead]
    check_in: CheckInStatus
