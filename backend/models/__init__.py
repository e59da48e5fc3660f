from backend.models.user import User
from backend.models.subject import Subject
from backend.models.topic import Topic

__all__ = [
    "User",
    "Subject",
    "Topic",
]
