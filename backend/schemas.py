from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import date, datetime

DailyStudyGoal = Literal["30 minutes", "1 hour", "2 hours", "3 hours", "4+ hours"]
PriorityWeight = Literal["Balanced", "Focus on Hard Topics", "Focus on Easy Topics"]
ReviewFrequency = Literal["Standard", "Frequent", "Intensive"]
TopicStatus = Literal["new", "learning", "revised", "completed"]
Difficulty = Literal["easy", "medium", "hard"]

class PreferencesUpdate(BaseModel):
    """Schema for updating study preferences"""
    daily_study_goal: Optional[DailyStudyGoal] = None
    topics_per_day: Optional[int] = Field(default=None, ge=1)
    topic_priority_weight: Optional[PriorityWeight] = None
    review_frequency: Optional[ReviewFrequency] = None
    reminder_time: Optional[str] = Field(default=None, pattern=r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")

class UserCreate(BaseModel):
    """Schema for creating user profile"""
    name: str
    email: Optional[str] = None
    daily_study_goal: DailyStudyGoal = "1 hour"
    topics_per_day: Optional[int] = Field(default=None, ge=1)
    topic_priority_weight: PriorityWeight = "Balanced"
    review_frequency: ReviewFrequency = "Standard"

class SubjectCreate(BaseModel):
    """Schema for creating a subject"""
    name: str
    exam_date: Optional[date] = None

class SubjectResponse(SubjectCreate):
    id: int

    class Config:
        from_attributes = True

class TopicCreate(BaseModel):
    """Schema for creating a topic"""
    name: str
    subject_id: Optional[int] = None
    status: TopicStatus = "new"
    difficulty: Difficulty = "medium"

class TopicUpdate(BaseModel):
    """Schema for user-facing topic edits (never touches scheduling fields)"""
    name: Optional[str] = None
    subject_id: Optional[int] = None
    status: Optional[TopicStatus] = None
    difficulty: Optional[Difficulty] = None

class ScheduleHistoryEntry(BaseModel):
    date: date
    action: Literal["scheduled", "rescheduled", "completed", "skipped"]
    reason: str
    timestamp: datetime

class TopicResponse(BaseModel):
    """Schema for a topic with its subject embedded"""
    id: int
    name: str
    status: TopicStatus
    difficulty: Difficulty
    priority_score: float
    completion_percent: int
    repetition_level: int
    next_review_date: Optional[datetime] = None
    scheduled_date: Optional[date] = None
    rescheduled: bool
    subject: Optional[SubjectResponse] = None
    schedule_history: List[ScheduleHistoryEntry] = []

    class Config:
        from_attributes = True

class MissedCheckResult(BaseModel):
    """Outcome of one missed-topic detection pass"""
    processed_count: int = 0
    net_credits_delta: int = 0
