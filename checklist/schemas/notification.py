#checklist/schemas/notification.py
from pydantic import BaseModel, Field
from typing import Dict, Optional

class NotificationSettings(BaseModel):
    """
    NotificationSettings — пять флагов уведомлений (полная перезапись).
    """
    notification_on_invitation: bool = Field(..., description="Приглашения в команды")
    notification_on_assignment: bool = Field(..., description="Назначение задач")
    notification_on_task_completion: bool = Field(..., description="Выполнение задач")
    notification_on_checkin: bool = Field(..., description="Check-in участников")
    notification_on_new_tasks: bool = Field(..., description="Новые задачи")

class NotificationSettingsPatch(BaseModel):
    """
    NotificationSettingsPatch — частичное обновление (применяются только переданные флаги).
    """
    notification_on_invitation: Optional[bool] = None
    notification_on_assignment: Optional[bool] = None
    notification_on_task_completion: Optional[bool] = None
    notification_on_checkin: Optional[bool] = None
    notification_on_new_tasks: Optional[bool] = None

class TeamNotificationSettingsRead(BaseModel):
    """
    TeamNotificationSettingsRead — настройки пользователя в команде.
    """
    team_id: int
    settings: NotificationSettings = Field(..., description="Итоговые флаги с учётом глобальных")
    team_settings: NotificationSettings = Field(..., description="Флаги, включённые именно в этой команде")
    team_specific: Dict[str, bool] = Field(default_factory=dict, description="Для каких видов задана настройка команды")
