from backend.crud.user import create_user, get_user, update_preferences, get_credits
from backend.crud.subject import create_subject, get_subjects, delete_subject
from backend.crud.topic import (
    create_topic,
    get_topic,
    get_topics,
    update_topic,
    update_topic_progress,
    review_topic,
    delete_topic
)

__all__ = [
    "create_user",
    "get_user",
    "update_preferences",
    "get_credits",
    "create_subject",
    "get_subjects",
    "delete_subject",
    "create_topic",
    "get_topic",
    "get_topics",
    "update_topic",
    "update_topic_progress",
    "review_topic",
    "delete_topic",
]
