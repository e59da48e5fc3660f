"""
Priority scoring for the legacy top-N ranked topic list.

The score is additive and unbounded. It only orders topics against each
other; it is not a percentage or a probability. The capacity planner in
backend.scheduler uses its own ordering and does not read this score.
"""

import logging
from datetime import datetime, time
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from backend.database import commit_or_rollback, storage_pass
from backend.models import Topic, User

logger = logging.getLogger("study_planner.priority")

SECONDS_PER_DAY = 24 * 60 * 60

STATUS_WEIGHT = {"new": 5, "learning": 3, "revised": 1}
DIFFICULTY_WEIGHT = {"easy": 1, "medium": 2, "hard": 3}

# How many ranked topics to return per daily study goal
RANKED_TOPIC_LIMITS = {
    "30 minutes": 5,
    "1 hour": 8,
    "2 hours": 12,
    "3 hours": 15,
    "4+ hours": 20,
}
DEFAULT_RANKED_LIMIT = 10


def _days_between(later: datetime, earlier: datetime) -> float:
    return (later - earlier).total_seconds() / SECONDS_PER_DAY


def calculate_priority_score(
    topic: Topic,
    subject=None,
    preferences: Optional[dict] = None,
    now: Optional[datetime] = None,
) -> float:
    """
    Score a topic for ranking. Higher means study sooner.

    Args:
        topic: Topic to score
        subject: Its subject, if any (only exam_date is read)
        preferences: User preference dict (only topic_priority_weight is read)
        now: Reference time (defaults to now)
    """
    now = now or datetime.now()
    score = 0.0

    score += STATUS_WEIGHT.get(topic.status, 0)
    score += DIFFICULTY_WEIGHT.get(topic.difficulty, 2)

    weight = (preferences or {}).get("topic_priority_weight")
    if weight == "Focus on Hard Topics":
        if topic.difficulty == "hard":
            score += 3
        elif topic.difficulty == "medium":
            score += 1
    elif weight == "Focus on Easy Topics":
        if topic.difficulty == "easy":
            score += 2

    if topic.next_review_date and topic.next_review_date < now:
        score += 20 + _days_between(now, topic.next_review_date)

    exam_date = subject.exam_date if subject is not None else None
    if exam_date:
        days_until_exam = _days_between(datetime.combine(exam_date, time.min), now)
        if days_until_exam > 0:
            if days_until_exam <= 7:
                score += 15
            elif days_until_exam <= 14:
                score += 10
            elif days_until_exam <= 30:
                score += 5
    else:
        score += 1

    if topic.status != "revised" and topic.created_at:
        score += 0.1 * _days_between(now, topic.created_at)

    return score


def update_priority_scores(db: Session, user_id: int, now: Optional[datetime] = None) -> int:
    """Recompute and persist priority_score for every topic of a user. Returns the topic count."""
    now = now or datetime.now()
    with storage_pass(db):
        user = db.get(User, user_id)
        if user is None:
            return 0

        topics = (
            db.query(Topic)
            .options(joinedload(Topic.subject))
            .filter(Topic.user_id == user_id)
            .all()
        )
        preferences = user.preferences
        for topic in topics:
            topic.priority_score = calculate_priority_score(topic, topic.subject, preferences, now)

        commit_or_rollback(db)
    logger.info("Refreshed priority scores for user %s (%d topics)", user_id, len(topics))
    return len(topics)


def get_priority_ranked_topics(
    db: Session,
    user_id: int,
    limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[Topic]:
    """
    Legacy ranked list: the user's topics ordered by freshly computed priority score.

    The default limit follows the user's daily study goal.
    """
    with storage_pass(db):
        user = db.get(User, user_id)
        if user is None:
            return []

        update_priority_scores(db, user_id, now)

        if limit is None:
            limit = RANKED_TOPIC_LIMITS.get(user.daily_study_goal, DEFAULT_RANKED_LIMIT)

        return (
            db.query(Topic)
            .options(joinedload(Topic.subject))
            .filter(Topic.user_id == user_id)
            .order_by(Topic.priority_score.desc(), Topic.id)
            .limit(limit)
            .all()
        )
