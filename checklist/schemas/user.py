#checklist/schemas/user.py
from pydantic import BaseModel, ConfigDict, Field, EmailStr, constr
from typing import Optional
from datetime import datetime

class UserBase(BaseModel):
    """
    UserBase — базовая схема пользователя (используется для create/read).
    """
    name: constr(min_length=1, max_length=128) = Field(..., examples=["Alice"], description="Отображаемое имя")
    email: EmailStr = Field(..., examples=["alice@example.com"], description="Email пользователя")
    avatar_url: Optional[str] = Field(None, description="URL аватара")

class UserCreate(UserBase):
    """
    UserCreate — регистрация (пароль обязателен).
    """
    password: constr(min_length=8) = Field(..., examples=["StrongPassw0rd!"], description="Пароль пользователя")

class UserRead(UserBase):
    """
    UserRead — схема для выдачи пользователя (response).
    """
    id: int
    is_active: bool
    notification_on_invitation: bool
    notification_on_assignment: bool
    notification_on_task_completion: bool
    notification_on_checkin: bool
    notification_on_new_tasks: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class UserUpdate(BaseModel):
    """
    UserUpdate — обновление профиля (все поля опциональны).
    """
    name: Optional[constr(min_length=1, max_length=128)] = None
    avatar_url: Optional[str] = None

class UserPublic(BaseModel):
    id: int
    name: str
    avatar_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
