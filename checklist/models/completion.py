#checklist/models/completion.py
from datetime import date, datetime
from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from checklist.models.base import Base

class TaskCompletion(Base):
    """
    TaskCompletion — отметка выполнения. Для daily-задач — на календарную дату,
    для checklist — completion_date = NULL (постоянный переключатель).
    """
    __tablename__ = "task_completions"

    id: int = Column(Integer, primary_key=True)
    task_id: int = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    completion_date: date = Column(Date, nullable=True, index=True, doc="Дата (NULL для checklist)")
    completed_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    task = relationship("Task")

    __table_args__ = (
        UniqueConstraint("task_id", "completion_date", name="uq_task_completions_task_date"),
    )

    def __repr__(self):
        return (
            f"<TaskCompletion(task_id={self.task_id}, user_id={self.user_id}, "
            f"completion_date={self.completion_date})>"
        )
