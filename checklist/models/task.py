#checklist/models/task.py
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Boolean, Index, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from checklist.models.base import Base

class Task(Base):
    """
    Task — задача команды. Дерево через parent_id, порядок среди соседей по position,
    тип daily / checklist, видимость team / private / public, soft-delete.
    """
    __tablename__ = "tasks"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    team_id: int = Column(Integer, ForeignKey("teams.id", ondelete='CASCADE'), nullable=False, index=True, doc="ID команды")
    parent_id: int = Column(Integer, ForeignKey("tasks.id"), nullable=True, index=True, doc="ID родительской задачи")
    title: str = Column(String(255), nullable=False, doc="Название задачи")
    position: int = Column(Integer, nullable=False, default=0, doc="Порядок среди соседей (не обязательно подряд)")
    type: str = Column(String(16), nullable=False, default="daily", doc="daily / checklist")
    visibility: str = Column(String(16), nullable=False, default="team", doc="team / private / public")
    deadline: datetime = Column(DateTime(timezone=True), nullable=True, doc="Дедлайн (полночь UTC)")
    time: str = Column(String(16), nullable=True, doc="Время (HH:MM)")
    is_deleted: bool = Column(Boolean, default=False, nullable=False, doc="Soft-delete")
    deleted_at: datetime = Column(DateTime(timezone=True), nullable=True, doc="Дата удаления")
    version: int = Column(Integer, nullable=False, doc="Версия для оптимистичной блокировки")
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, doc="Дата создания")
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, doc="Дата изменения")

    assignments = relationship("TaskAssignment", back_populates="task", cascade="all, delete-orphan")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_tasks_team_parent_position", "team_id", "parent_id", "position"),
        Index("ix_tasks_type", "type"),
    )

    @property
    def assignee_ids(self) -> list:
        return [a.user_id for a in self.assignments]

    def __repr__(self):
        return (
            f"<Task(id={self.id}, title='{self.title}', team_id={self.team_id}, "
            f"parent_id={self.parent_id}, position={self.position}, type='{self.type}')>"
        )


class TaskAssignment(Base):
    """
    TaskAssignment — назначение задачи участнику (many-to-many).
    """
    __tablename__ = "task_assignments"

    id: int = Column(Integer, primary_key=True)
    task_id: int = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    task = relationship("Task", back_populates="assignments")

    __table_args__ = (
        UniqueConstraint("task_id", "user_id", name="uq_task_assignments_task_user"),
    )

    def __repr__(self):
        return f"<TaskAssignment(task_id={self.task_id}, user_id={self.user_id})>"
