#checklist/schemas/invitation.py
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import datetime

class InvitationCreate(BaseModel):
    email: EmailStr = Field(..., examples=["bob@example.com"], description="Email приглашённого")

class InvitationRead(BaseModel):
    """
    InvitationRead — приглашение для админов команды (токен не раскрывается).
    """
    id: int
    email: str
    team_id: int
    invited_by_id: Optional[int] = None
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class InvitationPublic(BaseModel):
    """
    InvitationPublic — то, что видит получатель ссылки /invite/{token}.
    """
    team_id: int
    team_name: str
    team_slug: str
    email: str
    invited_by_name: Optional[str] = None
    expires_at: datetime
