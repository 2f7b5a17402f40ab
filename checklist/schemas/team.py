#checklist/schemas/team.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, Literal, Optional
from datetime import datetime

from checklist.schemas.notification import NotificationSettings, NotificationSettingsPatch

class TeamCreate(BaseModel):
    """
    TeamCreate — создание новой команды.
    """
    name: str = Field(..., min_length=1, examples=["Acme"], description="Название команды")
    password: str = Field(..., min_length=4, description="Пароль для вступления")
    is_private: bool = Field(False, description="Скрыть из публичного списка")
    is_cloneable: bool = Field(False, description="Разрешить клонирование")
    notification_settings: Optional[NotificationSettings] = Field(
        None, description="Настройки создателя в команде (по умолчанию — его глобальные)"
    )
    default_settings: Optional[NotificationSettingsPatch] = Field(
        None, description="Значения по умолчанию для новых участников"
    )

class TeamUpdate(BaseModel):
    """
    TeamUpdate — обновление команды (все поля опциональны).
    """
    name: Optional[str] = None
    password: Optional[str] = Field(None, min_length=4)
    is_private: Optional[bool] = None
    is_cloneable: Optional[bool] = None

class TeamRead(BaseModel):
    """
    TeamRead — схема для выдачи команды (response).
    """
    id: int
    name: str
    slug: str
    is_private: bool
    is_cloneable: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class TeamWithRole(TeamRead):
    role: str

class TeamJoin(BaseModel):
    password: str = Field(..., description="Пароль команды")

class TeamAccess(BaseModel):
    has_access: bool
    role: Optional[str] = None
    is_banned: bool = False

class TeamClone(BaseModel):
    """
    TeamClone — параметры новой команды при клонировании.
    """
    name: Optional[str] = Field(None, description="Название (по умолчанию '<исходная> (copy)')")
    password: str = Field(..., min_length=4)
    is_private: bool = False
    is_cloneable: bool = False

class TeamMemberRead(BaseModel):
    """
    TeamMemberRead — участник с ролью, статусом бана и итоговыми настройками уведомлений.
    """
    id: int
    name: str
    email: str
    avatar_url: Optional[str] = None
    role: str
    is_banned: bool
    notification_settings: NotificationSettings
    team_specific: Dict[str, bool]

class RoleUpdate(BaseModel):
    role: Literal["member", "admin"]

class TeamDeleted(BaseModel):
    team_id: int
    tasks_deleted: int
