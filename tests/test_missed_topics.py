"""Tests for missed-topic detection and credit adjustment"""

from backend.missed_topics import detect_missed_topics
from conftest import NOW, TODAY, days_from_today

YESTERDAY = days_from_today(-1)


def test_unchanged_progress_is_missed(db, make_user, make_topic):
    user = make_user(credits=2)
    topic = make_topic(user, None, scheduled_date=YESTERDAY, completion_percent=30, last_snapshot_percent=30)

    result = detect_missed_topics(db, user.id, YESTERDAY, now=NOW)

    db.refresh(topic)
    db.refresh(user)
    assert result.processed_count == 1
    assert result.net_credits_delta == -1
    assert topic.scheduled_date == TODAY
    assert topic.rescheduled is True
    assert topic.last_snapshot_percent == 30
    assert user.credits == 1
    assert topic.schedule_history[-1] == {
        "date": TODAY.isoformat(),
        "action": "rescheduled",
        "reason": "missed-on-schedule",
        "timestamp": NOW.isoformat(),
    }


def test_progress_counts_as_studied(db, make_user, make_topic):
    user = make_user()
    topic = make_topic(user, None, scheduled_date=YESTERDAY, completion_percent=55,
                       last_snapshot_percent=30, rescheduled=True)

    result = detect_missed_topics(db, user.id, YESTERDAY, now=NOW)

    db.refresh(topic)
    db.refresh(user)
    assert result.net_credits_delta == 1
    assert user.credits == 1
    assert topic.scheduled_date == YESTERDAY
    assert topic.rescheduled is False
    assert topic.last_studied_at == NOW
    assert topic.last_snapshot_percent == 55
    assert topic.schedule_history[-1]["action"] == "completed"
    assert topic.schedule_history[-1]["reason"] == "studied-on-schedule"
    assert topic.schedule_history[-1]["date"] == YESTERDAY.isoformat()


def test_completed_status_counts_as_studied(db, make_user, make_topic):
    user = make_user()
    make_topic(user, None, scheduled_date=YESTERDAY, status="completed",
               completion_percent=40, last_snapshot_percent=40)

    result = detect_missed_topics(db, user.id, YESTERDAY, now=NOW)

    assert result.net_credits_delta == 1


def test_first_check_without_snapshot_is_missed(db, make_user, make_topic):
    user = make_user()
    topic = make_topic(user, None, scheduled_date=YESTERDAY, completion_percent=70)

    result = detect_missed_topics(db, user.id, YESTERDAY, now=NOW)

    db.refresh(topic)
    assert result.net_credits_delta == -1
    assert topic.last_snapshot_percent == 70


def test_credits_can_go_negative(db, make_user, make_topic):
    user = make_user(credits=0)
    for i in range(3):
        make_topic(user, None, name=f"t{i}", scheduled_date=YESTERDAY, last_snapshot_percent=0)

    result = detect_missed_topics(db, user.id, YESTERDAY, now=NOW)

    db.refresh(user)
    assert result.processed_count == 3
    assert result.net_credits_delta == -3
    assert user.credits == -3


def test_mixed_results_apply_net_delta(db, make_user, make_topic):
    user = make_user(credits=10)
    make_topic(user, None, name="a", scheduled_date=YESTERDAY, completion_percent=20, last_snapshot_percent=10)
    make_topic(user, None, name="b", scheduled_date=YESTERDAY, completion_percent=90, last_snapshot_percent=60)
    make_topic(user, None, name="c", scheduled_date=YESTERDAY, completion_percent=0, last_snapshot_percent=0)

    result = detect_missed_topics(db, user.id, YESTERDAY, now=NOW)

    db.refresh(user)
    assert result.processed_count == 3
    assert result.net_credits_delta == 1
    assert user.credits == 11


def test_only_topics_on_check_date_are_processed(db, make_user, make_topic):
    user = make_user()
    other_day = make_topic(user, None, name="other", scheduled_date=days_from_today(-2), last_snapshot_percent=0)
    today = make_topic(user, None, name="today", scheduled_date=TODAY, last_snapshot_percent=0)
    unscheduled = make_topic(user, None, name="none")

    result = detect_missed_topics(db, user.id, YESTERDAY, now=NOW)

    assert result.processed_count == 0
    for topic in (other_day, today, unscheduled):
        db.refresh(topic)
        assert topic.schedule_history == []


def test_other_users_are_untouched(db, make_user, make_topic):
    owner = make_user(name="owner")
    other = make_user(name="other", credits=5)
    make_topic(other, None, scheduled_date=YESTERDAY, last_snapshot_percent=0)

    result = detect_missed_topics(db, owner.id, YESTERDAY, now=NOW)

    db.refresh(other)
    assert result.processed_count == 0
    assert other.credits == 5


def test_check_date_defaults_to_yesterday(db, make_user, make_topic):
    user = make_user()
    make_topic(user, None, scheduled_date=YESTERDAY, last_snapshot_percent=0)

    result = detect_missed_topics(db, user.id, now=NOW)

    assert result.processed_count == 1


def test_unknown_user(db):
    result = detect_missed_topics(db, 77, YESTERDAY, now=NOW)
    assert result.processed_count == 0
    assert result.net_credits_delta == 0
