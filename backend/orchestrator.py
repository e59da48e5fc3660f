"""
Daily driver for the study schedule.

Once per calendar day it settles yesterday's plan (missed-topic detection
and credits) and takes a fresh progress snapshot. On every call it refreshes
the rolling horizon and answers with today's plan or the upcoming plan.
"""

import logging
from datetime import datetime, time, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from backend.config import settings
from backend.context import PlanningContext, load_context
from backend.database import commit_or_rollback, storage_pass
from backend.locks import user_locks
from backend.missed_topics import detect_missed_topics_for_context
from backend.models import Topic
from backend.scheduler import build_schedule_for_context

logger = logging.getLogger("study_planner.orchestrator")


def _needs_maintenance(ctx: PlanningContext) -> bool:
    last_check = ctx.user.last_schedule_check
    return last_check is None or last_check < datetime.combine(ctx.today, time.min)


def _run_daily_maintenance(db: Session, ctx: PlanningContext) -> None:
    """Settle yesterday, snapshot progress and stamp the check, as one transaction"""
    yesterday = ctx.today - timedelta(days=1)
    result = detect_missed_topics_for_context(db, ctx, yesterday, commit=False)

    topics = db.query(Topic).filter(Topic.user_id == ctx.user_id).all()
    for topic in topics:
        topic.last_snapshot_percent = topic.completion_percent or 0

    ctx.user.last_schedule_check = ctx.now
    commit_or_rollback(db)
    logger.info(
        "Daily maintenance for user %s: %d topics settled, credits %+d, %d snapshots",
        ctx.user_id, result.processed_count, result.net_credits_delta, len(topics),
    )


def _topics_scheduled_on(db: Session, user_id: int, day) -> List[Topic]:
    return (
        db.query(Topic)
        .options(joinedload(Topic.subject))
        .filter(Topic.user_id == user_id, Topic.scheduled_date == day)
        .order_by(Topic.id)
        .all()
    )


def get_study_schedule(db: Session, user_id: int, now: Optional[datetime] = None) -> List[Topic]:
    """
    Today's plan for a user.

    Runs the daily maintenance if it has not run yet today, then rebuilds the
    horizon. Concurrent calls for the same user are serialized so the
    maintenance cannot be applied twice.

    The result is not capped at the daily capacity: topics the rebuild no
    longer places (completed ones, or ones pushed out by a more urgent
    subject) keep an earlier date that may still be today.

    Returns:
        Topics scheduled for today with their subjects loaded, or [] for an unknown user

    Raises:
        StorageError: a read or write failed; the failing transaction is rolled back
    """
    with user_locks.lock_for(user_id), storage_pass(db):
        # Loaded inside the lock so a pass that just finished is visible
        ctx = load_context(db, user_id, now)
        if ctx is None:
            return []

        if _needs_maintenance(ctx):
            _run_daily_maintenance(db, ctx)

        build_schedule_for_context(db, ctx, ctx.today, settings.horizon_days)

    with storage_pass(db):
        return _topics_scheduled_on(db, user_id, ctx.today)


def get_full_schedule(db: Session, user_id: int, now: Optional[datetime] = None) -> Dict[str, List[Topic]]:
    """
    Upcoming plan grouped by day.

    Returns:
        Mapping of YYYY-MM-DD to the topics scheduled that day, in date order,
        covering today and the following days of the configured window
    """
    now = now or datetime.now()
    get_study_schedule(db, user_id, now)

    today = now.date()
    end = today + timedelta(days=settings.full_schedule_days)
    with storage_pass(db):
        topics = (
            db.query(Topic)
            .options(joinedload(Topic.subject))
            .filter(
                Topic.user_id == user_id,
                Topic.scheduled_date >= today,
                Topic.scheduled_date < end,
            )
            .order_by(Topic.scheduled_date, Topic.id)
            .all()
        )

    schedule: Dict[str, List[Topic]] = {}
    for topic in topics:
        schedule.setdefault(topic.scheduled_date.isoformat(), []).append(topic)
    return schedule
