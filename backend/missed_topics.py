import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from backend.context import PlanningContext, load_context
from backend.database import commit_or_rollback, storage_pass
from backend.models import Topic, User
from backend.schemas import MissedCheckResult

logger = logging.getLogger("study_planner.missed_topics")


def _was_studied(topic: Topic, previous: int, current: int) -> bool:
    return current > previous or topic.status == "completed"


def detect_missed_topics_for_context(
    db: Session,
    ctx: PlanningContext,
    check_date: date,
    commit: bool = True,
) -> MissedCheckResult:
    """
    Settle every topic that was scheduled on check_date.

    A topic counts as studied when its completion went up since the last
    snapshot or it is completed; it earns one credit. Otherwise it is moved
    to the following day, flagged as rescheduled and costs one credit.
    All topic changes and the credit adjustment are applied together.
    """
    next_date = check_date + timedelta(days=1)
    topics = (
        db.query(Topic)
        .filter(
            Topic.user_id == ctx.user_id,
            Topic.scheduled_date >= check_date,
            Topic.scheduled_date < next_date,
        )
        .order_by(Topic.id)
        .all()
    )

    delta = 0
    for topic in topics:
        current = topic.completion_percent or 0
        if isinstance(topic.last_snapshot_percent, int):
            previous = topic.last_snapshot_percent
        else:
            # first check for this topic: no baseline yet
            previous = current

        if _was_studied(topic, previous, current):
            topic.rescheduled = False
            topic.last_studied_at = ctx.now
            topic.last_snapshot_percent = current
            topic.append_history(check_date, "completed", "studied-on-schedule", ctx.now)
            delta += 1
            logger.debug("Topic %s studied on %s", topic.id, check_date)
        else:
            topic.scheduled_date = next_date
            topic.rescheduled = True
            topic.last_snapshot_percent = current
            topic.append_history(next_date, "rescheduled", "missed-on-schedule", ctx.now)
            delta -= 1
            logger.debug("Topic %s missed on %s, moved to %s", topic.id, check_date, next_date)

    if delta:
        db.query(User).filter(User.id == ctx.user_id).update(
            {User.credits: User.credits + delta}, synchronize_session=False
        )
    if commit:
        commit_or_rollback(db)
    if delta:
        db.refresh(ctx.user, attribute_names=["credits"])

    logger.info(
        "Missed-topic check for user %s on %s: %d processed, credits %+d",
        ctx.user_id, check_date, len(topics), delta,
    )
    return MissedCheckResult(processed_count=len(topics), net_credits_delta=delta)


def detect_missed_topics(
    db: Session,
    user_id: int,
    check_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> MissedCheckResult:
    """
    Detect missed study days for a user.

    Args:
        user_id: User to check
        check_date: Day to settle (defaults to yesterday)
        now: Timestamp for history entries (defaults to now)

    Returns:
        MissedCheckResult with the number of topics processed and the net credit change
    """
    with storage_pass(db):
        ctx = load_context(db, user_id, now)
        if ctx is None:
            return MissedCheckResult()
        if check_date is None:
            check_date = ctx.today - timedelta(days=1)
        return detect_missed_topics_for_context(db, ctx, check_date)
