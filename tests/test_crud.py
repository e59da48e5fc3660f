"""Tests for the record-store operations"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from backend.crud import (
    create_subject,
    create_topic,
    create_user,
    delete_subject,
    delete_topic,
    get_credits,
    get_subjects,
    get_topic,
    get_topics,
    get_user,
    review_topic,
    update_preferences,
    update_topic,
    update_topic_progress,
)
from backend.database import commit_or_rollback
from backend.errors import StorageError
from backend.models import Topic
from backend.schemas import PreferencesUpdate, SubjectCreate, TopicCreate, TopicUpdate, UserCreate
from conftest import NOW, days_from_today


def test_create_user_defaults(db):
    user = create_user(db, UserCreate(name="Mei"))

    assert user.daily_study_goal == "1 hour"
    assert user.topic_priority_weight == "Balanced"
    assert user.review_frequency == "Standard"
    assert user.reminder_time == "09:00"
    assert user.credits == 0
    assert user.last_schedule_check is None
    assert get_user(db, user.id).name == "Mei"
    assert get_user(db, user.id + 1) is None


def test_update_preferences_only_changes_given_fields(db, make_user):
    user = make_user(daily_study_goal="2 hours", topic_priority_weight="Focus on Easy Topics")

    updated = update_preferences(db, user.id, PreferencesUpdate(topics_per_day=7))

    assert updated.topics_per_day == 7
    assert updated.daily_study_goal == "2 hours"
    assert updated.topic_priority_weight == "Focus on Easy Topics"
    assert update_preferences(db, 404, PreferencesUpdate(topics_per_day=1)) is None


def test_reminder_time_must_be_a_clock_time(db, make_user):
    user = make_user()

    for bad in ("25:00", "9am", "12:60"):
        with pytest.raises(ValidationError):
            PreferencesUpdate(reminder_time=bad)

    updated = update_preferences(db, user.id, PreferencesUpdate(reminder_time="07:30"))
    assert updated.reminder_time == "07:30"


def test_get_credits(db, make_user):
    user = make_user(credits=-4)
    assert get_credits(db, user.id) == -4
    assert get_credits(db, 404) == 0


def test_subjects_and_topics_are_scoped_to_user(db, make_user):
    alice = make_user(name="alice")
    bob = make_user(name="bob")
    math = create_subject(db, alice.id, SubjectCreate(name="Math", exam_date=days_from_today(10)))
    topic = create_topic(db, alice.id, TopicCreate(name="Limits", subject_id=math.id, difficulty="hard"))

    assert [s.name for s in get_subjects(db, alice.id)] == ["Math"]
    assert get_subjects(db, bob.id) == []
    assert get_topic(db, alice.id, topic.id).subject.name == "Math"
    assert get_topic(db, bob.id, topic.id) is None
    assert topic.status == "new"
    assert topic.repetition_level == 0
    assert topic.schedule_history == []


def test_get_topics_newest_first(db, make_user, make_topic):
    user = make_user()
    make_topic(user, None, name="old", created_at=NOW - timedelta(days=1))
    make_topic(user, None, name="new", created_at=NOW)

    assert [t.name for t in get_topics(db, user.id)] == ["new", "old"]


def test_review_topic_advances_level(db, make_user, make_topic):
    user = make_user()
    topic = make_topic(user, None, difficulty="easy", repetition_level=1)

    reviewed = review_topic(db, user.id, topic.id, now=NOW)

    assert reviewed.status == "revised"
    assert reviewed.last_reviewed == NOW
    assert reviewed.repetition_level == 2
    assert reviewed.next_review_date == NOW + timedelta(days=7)
    assert reviewed.next_review_date >= reviewed.last_reviewed
    assert review_topic(db, user.id, 9999, now=NOW) is None


def test_marking_revised_restarts_review_interval(db, make_user, make_topic):
    user = make_user()
    topic = make_topic(user, None, difficulty="medium", repetition_level=2)

    updated = update_topic(db, user.id, topic.id, TopicUpdate(status="revised"), now=NOW)

    assert updated.repetition_level == 2
    assert updated.last_reviewed == NOW
    # first medium interval, not the level-2 one
    assert updated.next_review_date == NOW + timedelta(days=1)


def test_update_topic_leaves_scheduling_alone(db, make_user, make_topic):
    user = make_user()
    topic = make_topic(user, None, scheduled_date=days_from_today(1), rescheduled=True)

    updated = update_topic(db, user.id, topic.id, TopicUpdate(name="Renamed", difficulty="hard"))

    assert updated.name == "Renamed"
    assert updated.difficulty == "hard"
    assert updated.scheduled_date == days_from_today(1)
    assert updated.rescheduled is True
    assert update_topic(db, user.id, 9999, TopicUpdate(name="x")) is None


@pytest.mark.parametrize("percent,expected_percent,expected_status", [
    (40, 40, "learning"),
    (0, 0, "new"),
    (100, 100, "completed"),
    (150, 100, "completed"),
    (-5, 0, "new"),
])
def test_update_topic_progress(db, make_user, make_topic, percent, expected_percent, expected_status):
    user = make_user()
    topic = make_topic(user, None)

    updated = update_topic_progress(db, user.id, topic.id, percent)

    assert updated.completion_percent == expected_percent
    assert updated.status == expected_status


def test_delete_topic(db, make_user, make_topic):
    user = make_user()
    topic = make_topic(user, None)

    assert delete_topic(db, user.id, topic.id) is True
    assert db.query(Topic).count() == 0
    assert delete_topic(db, user.id, topic.id) is False


def test_delete_subject_removes_its_topics(db, make_user, make_subject, make_topic):
    user = make_user()
    subject = make_subject(user)
    make_topic(user, subject, name="a")
    make_topic(user, subject, name="b")
    make_topic(user, None, name="orphan")

    assert delete_subject(db, user.id, subject.id) is True
    assert [t.name for t in db.query(Topic).all()] == ["orphan"]
    assert delete_subject(db, user.id, subject.id) is False


def test_commit_failure_rolls_back_and_raises_storage_error():
    session = MagicMock()
    session.commit.side_effect = OperationalError("COMMIT", {}, Exception("disk I/O error"))

    with pytest.raises(StorageError) as excinfo:
        commit_or_rollback(session)

    session.rollback.assert_called_once()
    assert isinstance(excinfo.value.__cause__, OperationalError)
