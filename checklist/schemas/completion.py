#checklist/schemas/completion.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import date, datetime

class CompletionToggle(BaseModel):
    """
    CompletionToggle — отметить / снять выполнение.
    """
    task_id: int
    completed: bool
    completion_date: Optional[date] = Field(None, description="Дата для daily-задач (YYYY-MM-DD)")
    is_checklist: Optional[bool] = Field(None, description="checklist-задача (без даты)")

class CompletionRead(BaseModel):
    id: int
    task_id: int
    user_id: int
    completion_date: Optional[date] = None
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class CompletionToggleResult(BaseModel):
    task_id: int
    completed: bool
    changed: bool
    completion: Optional[CompletionRead] = None
