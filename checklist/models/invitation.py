#checklist/models/invitation.py
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from checklist.models.base import Base

class TeamInvitation(Base):
    """
    TeamInvitation — одноразовое приглашение по email с уникальным токеном и сроком действия.
    """
    __tablename__ = "team_invitations"

    id: int = Column(Integer, primary_key=True)
    email: str = Column(String(255), nullable=False, index=True, doc="Email приглашённого")
    team_id: int = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    invited_by_id: int = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    token: str = Column(String(64), unique=True, nullable=False, index=True, doc="Секретный токен ссылки")
    expires_at: datetime = Column(DateTime(timezone=True), nullable=False, doc="Время истечения")
    accepted_at: datetime = Column(DateTime(timezone=True), nullable=True, doc="Время принятия (один раз)")
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @property
    def is_expired(self) -> bool:
        """Проверяет, истёк ли срок приглашения."""
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) > expires_at

    @property
    def is_pending(self) -> bool:
        return self.accepted_at is None and not self.is_expired

    def __repr__(self):
        return f"<TeamInvitation(id={self.id}, team_id={self.team_id}, email='{self.email}')>"
