#checklist/models/user.py
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, func
)
from sqlalchemy.orm import relationship
from checklist.models.base import Base

class User(Base):
    """
    User — аккаунт пользователя с глобальными настройками уведомлений (по одному флагу на вид).
    """
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String(128), nullable=False, doc="Отображаемое имя")
    email: str = Column(String(255), unique=True, nullable=False, index=True, doc="Email")
    password_hash: str = Column(String(128), nullable=False, doc="Хэш пароля (никогда не хранить сырой пароль!)")
    avatar_url: str = Column(String(255), nullable=True, doc="URL аватара пользователя")
    is_active: bool = Column(Boolean, default=True, nullable=False, doc="Аккаунт активен")

    # --- Глобальные настройки уведомлений ---
    notification_on_invitation: bool = Column(Boolean, default=True, nullable=False, doc="Приглашения в команды")
    notification_on_assignment: bool = Column(Boolean, default=True, nullable=False, doc="Назначение задач")
    notification_on_task_completion: bool = Column(Boolean, default=True, nullable=False, doc="Выполнение задач")
    notification_on_checkin: bool = Column(Boolean, default=True, nullable=False, doc="Check-in участников")
    notification_on_new_tasks: bool = Column(Boolean, default=True, nullable=False, doc="Новые задачи")

    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, doc="Дата создания")
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, doc="Дата обновления")

    # --- Связи ---
    memberships = relationship("TeamMember", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.name}', email='{self.email}')>"
