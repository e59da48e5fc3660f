from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from backend.config import settings
from backend.models import User

# Topics per day for each daily study goal
DAILY_CAPACITY = {
    "30 minutes": 3,
    "1 hour": 5,
    "2 hours": 8,
    "3 hours": 12,
    "4+ hours": 16,
}


def daily_capacity(user: User) -> int:
    """Topics per day: the explicit override if set, else derived from the daily goal"""
    if user.topics_per_day:
        return user.topics_per_day
    return DAILY_CAPACITY.get(user.daily_study_goal, settings.default_topics_per_day)


@dataclass
class PlanningContext:
    """User record and clock loaded once and shared by every step of a pass"""
    user: User
    now: datetime = field(default_factory=datetime.now)

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def today(self) -> date:
        return self.now.date()

    @property
    def capacity(self) -> int:
        return daily_capacity(self.user)


def load_context(db: Session, user_id: int, now: Optional[datetime] = None) -> Optional[PlanningContext]:
    """Load the planning context for a user, or None if the user does not exist"""
    user = db.get(User, user_id, populate_existing=True)
    if user is None:
        return None
    return PlanningContext(user=user, now=now or datetime.now())
