from sqlalchemy.orm import Session, joinedload
from backend.models import Topic
from backend.schemas import TopicCreate, TopicUpdate
from backend.intervals import calculate_next_review_date
from datetime import datetime
from typing import List, Optional

def create_topic(db: Session, user_id: int, topic: TopicCreate) -> Topic:
    """Create a topic in the backlog"""
    db_topic = Topic(user_id=user_id, **topic.model_dump())
    db.add(db_topic)
    db.commit()
    db.refresh(db_topic)
    return db_topic

def get_topic(db: Session, user_id: int, topic_id: int) -> Optional[Topic]:
    """Get a topic owned by the user"""
    return db.query(Topic).options(joinedload(Topic.subject)).filter(
        Topic.id == topic_id,
        Topic.user_id == user_id
    ).first()

def get_topics(db: Session, user_id: int) -> List[Topic]:
    """Get all topics of a user, newest first"""
    return db.query(Topic).options(joinedload(Topic.subject)).filter(
        Topic.user_id == user_id
    ).order_by(Topic.created_at.desc(), Topic.id.desc()).all()

def update_topic(
    db: Session,
    user_id: int,
    topic_id: int,
    changes: TopicUpdate,
    now: Optional[datetime] = None
) -> Optional[Topic]:
    """
    Apply user edits to a topic.

    Marking a topic as revised records the review and restarts the next
    review date from the first interval of its difficulty; the repetition
    level itself is left alone.
    """
    db_topic = get_topic(db, user_id, topic_id)
    if not db_topic:
        return None

    for key, value in changes.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(db_topic, key, value)

    if changes.status == "revised":
        db_topic.last_reviewed = now or datetime.now()
        db_topic.next_review_date = calculate_next_review_date(db_topic.difficulty, db_topic.last_reviewed)

    db.commit()
    db.refresh(db_topic)
    return db_topic

def update_topic_progress(db: Session, user_id: int, topic_id: int, completion_percent: int) -> Optional[Topic]:
    """Record study progress; reaching 100% completes the topic"""
    db_topic = get_topic(db, user_id, topic_id)
    if not db_topic:
        return None

    db_topic.completion_percent = max(0, min(100, completion_percent))
    if db_topic.completion_percent == 100:
        db_topic.status = "completed"
    elif db_topic.status == "new" and db_topic.completion_percent > 0:
        db_topic.status = "learning"

    db.commit()
    db.refresh(db_topic)
    return db_topic

def review_topic(db: Session, user_id: int, topic_id: int, now: Optional[datetime] = None) -> Optional[Topic]:
    """Mark a review as done and push the next review out by one repetition level"""
    db_topic = get_topic(db, user_id, topic_id)
    if not db_topic:
        return None

    db_topic.status = "revised"
    db_topic.last_reviewed = now or datetime.now()
    db_topic.repetition_level = (db_topic.repetition_level or 0) + 1
    db_topic.next_review_date = calculate_next_review_date(
        db_topic.difficulty, db_topic.last_reviewed, db_topic.repetition_level
    )

    db.commit()
    db.refresh(db_topic)
    return db_topic

def delete_topic(db: Session, user_id: int, topic_id: int) -> bool:
    """Delete a topic along with its scheduling state"""
    db_topic = get_topic(db, user_id, topic_id)
    if not db_topic:
        return False
    db.delete(db_topic)
    db.commit()
    return True
