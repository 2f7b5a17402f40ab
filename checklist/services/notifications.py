#checklist/services/notifications.py
"""
Рассылка email-уведомлений о событиях команды.

Получатели определяются по событию, каждый проходит should_notify,
письма отправляются параллельно; ошибки отправки логируются и не пробрасываются.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from checklist.core.settings import settings
from checklist.core.notification_kinds import (
    INVITATION, ASSIGNMENT, TASK_COMPLETION, CHECKIN, NEW_TASKS, validate_kind,
)
from checklist.models.team import Team, TeamMember, TeamBan
from checklist.models.user import User
from checklist.services import email_templates
from checklist.services.email import EmailGateway
from checklist.services.preferences import should_notify

logger = logging.getLogger("Checklist.Notifications")

TEAM_WIDE_EVENTS = (TASK_COMPLETION, CHECKIN, NEW_TASKS)

@dataclass
class OutgoingEmail:
    to: str
    subject: str
    html: str
    user_id: Optional[int] = None

class NotificationDispatcher:
    def __init__(self, gateway: EmailGateway):
        self.gateway = gateway

    # --- Получатели ---

    def _team_members(self, db: Session, team_id: int) -> List[User]:
        banned = db.query(TeamBan.user_id).filter(TeamBan.team_id == team_id)
        return (
            db.query(User)
            .join(TeamMember, TeamMember.user_id == User.id)
            .filter(TeamMember.team_id == team_id, ~User.id.in_(banned))
            .order_by(User.id)
            .all()
        )

    def _render(self, event: str, recipient: Optional[User], actor: User, team: Team, context: Dict[str, Any]):
        app_url = settings.APP_URL
        name = recipient.name if recipient else None
        if event == ASSIGNMENT:
            return email_templates.task_assignment(name, actor.name, context["task_title"], team.name, team.slug, app_url)
        if event == TASK_COMPLETION:
            return email_templates.task_completion(name, actor.name, context["task_title"], team.name, team.slug, app_url)
        if event == CHECKIN:
            return email_templates.checkin(name, actor.name, team.name, team.slug, app_url, notes=context.get("notes"))
        if event == NEW_TASKS:
            return email_templates.new_task(
                name, actor.name, context["task_title"], context.get("task_type", "daily"), team.name, team.slug, app_url
            )
        return email_templates.invitation(
            actor.name, team.name, context["token"], app_url,
            recipient_name=name, expires_in_days=settings.INVITATION_EXPIRE_DAYS,
        )

    def collect(self, db: Session, event: str, context: Dict[str, Any]) -> List[OutgoingEmail]:
        """
        Письма для события. context: team_id, actor_id и поля события
        (task_title, task_type, assignee_id, notes, email, token).
        """
        if not validate_kind(event):
            logger.warning(f"Unknown notification event '{event}'")
            return []
        team = db.get(Team, context.get("team_id"))
        if team is None or team.is_deleted:
            logger.warning(f"Skipping '{event}' notification: team {context.get('team_id')} not found")
            return []
        actor = db.get(User, context.get("actor_id"))
        if actor is None:
            logger.warning(f"Skipping '{event}' notification: actor {context.get('actor_id')} not found")
            return []

        messages: List[OutgoingEmail] = []
        if event == INVITATION:
            email = context.get("email")
            invited = db.query(User).filter(User.email == email).first() if email else None
            if invited is None:
                if email:
                    subject, html = self._render(event, None, actor, team, context)
                    messages.append(OutgoingEmail(to=email, subject=subject, html=html))
                return messages
            recipients = [invited]
        elif event == ASSIGNMENT:
            assignee = db.get(User, context.get("assignee_id"))
            recipients = [assignee] if assignee else []
        else:
            recipients = self._team_members(db, team.id)

        for recipient in recipients:
            if not recipient.email:
                continue
            if not should_notify(db, recipient.id, team.id, event, actor.id):
                continue
            subject, html = self._render(event, recipient, actor, team, context)
            messages.append(OutgoingEmail(to=recipient.email, subject=subject, html=html, user_id=recipient.id))
        logger.info(f"Collected {len(messages)} '{event}' notifications for team {team.id}")
        return messages

    # --- Доставка ---

    async def deliver(self, messages: List[OutgoingEmail]) -> int:
        """
        Параллельная отправка. Возвращает число успешно отправленных писем.
        """
        if not messages:
            return 0
        results = await asyncio.gather(
            *(self.gateway.send(m.to, m.subject, m.html) for m in messages),
            return_exceptions=True,
        )
        sent = 0
        for message, result in zip(messages, results):
            if isinstance(result, Exception):
                logger.error(f"Failed to send '{message.subject}' to {message.to}: {result!r}")
            else:
                sent += 1
        return sent

    def safe_collect(self, db: Session, event: str, context: Dict[str, Any]) -> List[OutgoingEmail]:
        try:
            return self.collect(db, event, context)
        except Exception as e:
            logger.error(f"Failed to collect '{event}' notifications: {e}", exc_info=True)
            return []

    async def dispatch(self, db: Session, event: str, context: Dict[str, Any]) -> int:
        return await self.deliver(self.safe_collect(db, event, context))

    def schedule(self, background_tasks: BackgroundTasks, db: Session, event: str, context: Dict[str, Any]) -> int:
        """
        Собирает письма в рамках запроса и откладывает отправку до завершения ответа.
        """
        messages = self.safe_collect(db, event, context)
        if messages:
            background_tasks.add_task(self.deliver, messages)
        return len(messages)
