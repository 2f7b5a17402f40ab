#checklist/schemas/check_in.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import date, datetime

class CheckInCreate(BaseModel):
    team_id: int
    check_in_date: Optional[date] = Field(None, description="Дата (по умолчанию — сегодня, UTC)")
    notes: Optional[str] = Field(None, max_length=2000)

class CheckInRead(BaseModel):
    id: int
    team_id: int
    user_id: int
    check_in_date: date
    checked_at: Optional[datetime] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class CheckInStatus(BaseModel):
    checked_in: bool
    check_in: Optional[CheckInRead] = None
