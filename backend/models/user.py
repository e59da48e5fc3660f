from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from backend.database import Base

DAILY_STUDY_GOALS = ("30 minutes", "1 hour", "2 hours", "3 hours", "4+ hours")
PRIORITY_WEIGHTS = ("Balanced", "Focus on Hard Topics", "Focus on Easy Topics")

class User(Base):
    """Student profile with study preferences and incentive credits"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True)

    # Preferences
    daily_study_goal = Column(String, default="1 hour")
    topics_per_day = Column(Integer)  # explicit capacity override
    topic_priority_weight = Column(String, default="Balanced")
    review_frequency = Column(String, default="Standard")
    reminder_time = Column(String, default="09:00")

    credits = Column(Integer, nullable=False, default=0)  # may go negative
    last_schedule_check = Column(DateTime)
    created_at = Column(DateTime, default=datetime.now)

    subjects = relationship("Subject", back_populates="user", cascade="all, delete-orphan")
    topics = relationship("Topic", back_populates="user", cascade="all, delete-orphan")

    @property
    def preferences(self) -> dict:
        return {
            "daily_study_goal": self.daily_study_goal,
            "topics_per_day": self.topics_per_day,
            "topic_priority_weight": self.topic_priority_weight,
            "review_frequency": self.review_frequency,
            "reminder_time": self.reminder_time,
        }
