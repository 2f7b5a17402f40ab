#checklist/models/team.py
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Boolean, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from checklist.models.base import Base

class Team(Base):
    """
    Team — команда. Slug уникален, пароль хранится только в виде хеша, soft-delete,
    значения по умолчанию уведомлений для новых участников.
    """
    __tablename__ = "teams"

    id: int = Column(Integer, primary_key=True)
    name: str = Column(String(128), nullable=False, index=True, doc="Название команды")
    slug: str = Column(String(160), nullable=False, unique=True, index=True, doc="URL-safe идентификатор")
    password_hash: str = Column(String(128), nullable=False, doc="Хэш пароля для вступления")
    is_private: bool = Column(Boolean, default=False, nullable=False, doc="Скрыта из публичного списка")
    is_cloneable: bool = Column(Boolean, default=False, nullable=False, doc="Разрешено клонирование задач")
    is_deleted: bool = Column(Boolean, default=False, nullable=False, doc="Soft-delete")
    deleted_at: datetime = Column(DateTime(timezone=True), nullable=True, doc="Дата soft-delete")

    # --- Значения по умолчанию для новых участников (по приглашению) ---
    default_notification_on_invitation: bool = Column(Boolean, default=True, nullable=False)
    default_notification_on_assignment: bool = Column(Boolean, default=True, nullable=False)
    default_notification_on_task_completion: bool = Column(Boolean, default=True, nullable=False)
    default_notification_on_checkin: bool = Column(Boolean, default=True, nullable=False)
    default_notification_on_new_tasks: bool = Column(Boolean, default=True, nullable=False)

    version: int = Column(Integer, nullable=False, doc="Версия для оптимистичной блокировки")
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, doc="Дата создания")
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, doc="Дата обновления")

    members = relationship("TeamMember", back_populates="team", cascade="all, delete-orphan")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Team(id={self.id}, name='{self.name}', slug='{self.slug}')>"


class TeamMember(Base):
    """
    TeamMember — участие пользователя в команде с ролью member / admin / owner.
    """
    __tablename__ = "team_members"

    id: int = Column(Integer, primary_key=True)
    team_id: int = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role: str = Column(String(16), nullable=False, default="member", doc="member, admin, owner")
    joined_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    team = relationship("Team", back_populates="members")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),
    )

    def __repr__(self):
        return f"<TeamMember(team_id={self.team_id}, user_id={self.user_id}, role='{self.role}')>"


class TeamBan(Base):
    """
    TeamBan — блокировка пользователя в команде (запрещает вход и доступ).
    """
    __tablename__ = "team_bans"

    id: int = Column(Integer, primary_key=True)
    team_id: int = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("team_id", "user_id", name="uq_team_bans_team_user"),
    )

    def __repr__(self):
        return f"<TeamBan(team_id={self.team_id}, user_id={self.user_id})>"
