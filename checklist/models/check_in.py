#checklist/models/check_in.py
from datetime import date, datetime
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, UniqueConstraint, func
from checklist.models.base import Base

class CheckIn(Base):
    """
    CheckIn — ежедневная отметка участника в команде. Одна на (команда, пользователь, дата).
    """
    __tablename__ = "check_ins"

    id: int = Column(Integer, primary_key=True)
    team_id: int = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    check_in_date: date = Column(Date, nullable=False, index=True)
    checked_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    notes: str = Column(String(2000), nullable=True)

    __table_args__ = (
        UniqueConstraint("team_id", "user_id", "check_in_date", name="uq_check_ins_team_user_date"),
    )

    def __repr__(self):
        return f"<CheckIn(team_id={self.team_id}, user_id={self.user_id}, date={self.check_in_date})>"
