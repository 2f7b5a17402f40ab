#checklist/models/notification_preference.py
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint, func
)
from checklist.models.base import Base

class TeamNotificationPreference(Base):
    """
    TeamNotificationPreference — настройка вида уведомлений пользователя в конкретной команде.

    enabled: True — пользователь в наборе команды, False — явно выключено,
    NULL / нет строки — берётся глобальная настройка пользователя.
    """
    __tablename__ = "team_notification_preferences"

    id: int = Column(Integer, primary_key=True)
    team_id: int = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    kind: str = Column(String(32), nullable=False, doc="invitation, assignment, task_completion, checkin, new_tasks")
    enabled: bool = Column(Boolean, nullable=True)
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("team_id", "user_id", "kind", name="uq_team_notification_pref"),
    )

    def __repr__(self):
        return (
            f"<TeamNotificationPreference(team_id={self.team_id}, user_id={self.user_id}, "
            f"kind='{self.kind}', enabled={self.enabled})>"
        )
