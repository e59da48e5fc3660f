from sqlalchemy import Column, Integer, String, Float, Boolean, Date, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from backend.database import Base

DIFFICULTIES = ("easy", "medium", "hard")

class Topic(Base):
    """A unit of study tracked for review and day-by-day scheduling"""
    __tablename__ = "topics"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), index=True)
    name = Column(String, nullable=False)
    status = Column(String, nullable=False, default="new")
    difficulty = Column(String, nullable=False, default="medium")

    # Derived ranking, recomputed before every use
    priority_score = Column(Float, default=0.0)

    # Review tracking
    last_reviewed = Column(DateTime)
    next_review_date = Column(DateTime)
    repetition_level = Column(Integer, nullable=False, default=0)
    completion_percent = Column(Integer, nullable=False, default=0)

    # Scheduling state, written only by the scheduler
    scheduled_date = Column(Date, index=True)
    rescheduled = Column(Boolean, nullable=False, default=False)
    schedule_history = Column(JSON, nullable=False, default=list)
    last_snapshot_percent = Column(Integer)
    last_studied_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.now)

    user = relationship("User", back_populates="topics")
    subject = relationship("Subject", back_populates="topics")

    def append_history(self, entry_date, action: str, reason: str, timestamp: datetime):
        """Append a schedule history entry (the list is replaced so the change is tracked)"""
        entry = {
            "date": entry_date.isoformat(),
            "action": action,
            "reason": reason,
            "timestamp": timestamp.isoformat(),
        }
        self.schedule_history = list(self.schedule_history or []) + [entry]
