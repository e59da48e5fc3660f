"""
Capacity-based study planner.

Spreads a user's unfinished topics over a rolling window of days. Subjects
with the nearest exam are served first, topics inside a subject are taken
least-progressed first, and nothing is placed after its subject's exam.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Deque, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from backend.context import PlanningContext, load_context
from backend.database import commit_or_rollback, storage_pass
from backend.models import Topic

logger = logging.getLogger("study_planner.scheduler")

DEFAULT_HORIZON_DAYS = 14
NO_EXAM_DAYS = 365 * 5  # sorts subjects without an exam after every dated one


@dataclass
class SubjectQueue:
    """Unscheduled topics of one subject, least progressed at the front"""
    subject_id: Optional[int]
    exam_date: Optional[date]
    days_until_exam: int
    topics: Deque[Topic] = field(default_factory=deque)

    def accepts(self, day: date) -> bool:
        if not self.topics:
            return False
        return self.exam_date is None or self.exam_date >= day


@dataclass
class DaySlot:
    date: date
    capacity: int
    topics: List[Topic] = field(default_factory=list)

    @property
    def is_full(self) -> bool:
        return len(self.topics) >= self.capacity


def _load_backlog(db: Session, user_id: int) -> List[Topic]:
    """All unfinished topics of a user with subjects loaded, in creation order"""
    return (
        db.query(Topic)
        .options(joinedload(Topic.subject))
        .filter(Topic.user_id == user_id, Topic.status != "completed")
        .order_by(Topic.id)
        .all()
    )


def _build_queues(topics: List[Topic], start_date: date) -> List[SubjectQueue]:
    """Group topics per subject and order the groups by exam urgency"""
    grouped: Dict[Optional[int], List[Topic]] = {}
    for topic in topics:
        grouped.setdefault(topic.subject_id, []).append(topic)

    queues = []
    for subject_id, members in grouped.items():
        # sorted() is stable, so ties keep creation order
        members = sorted(members, key=lambda t: t.completion_percent or 0)
        subject = members[0].subject
        exam_date = subject.exam_date if subject is not None else None
        if exam_date is not None:
            days_until_exam = (exam_date - start_date).days
        else:
            days_until_exam = NO_EXAM_DAYS
        queues.append(SubjectQueue(subject_id, exam_date, days_until_exam, deque(members)))

    queues.sort(key=lambda q: q.days_until_exam)
    return queues


def allocate(topics: List[Topic], start_date: date, horizon_days: int, capacity: int) -> List[DaySlot]:
    """
    Greedily fill day slots from the subject queues.

    Each day takes the front topic of the most urgent subject whose exam has
    not passed yet, until the day is full or no subject can contribute.
    Unused capacity is not carried over to the next day.
    """
    queues = _build_queues(topics, start_date)
    slots = [DaySlot(start_date + timedelta(days=i), capacity) for i in range(horizon_days)]

    for slot in slots:
        while not slot.is_full:
            queue = next((q for q in queues if q.accepts(slot.date)), None)
            if queue is None:
                break
            slot.topics.append(queue.topics.popleft())

    return slots


def _persist(slots: List[DaySlot], now: datetime) -> int:
    """Stamp scheduled dates on the assigned topics. Returns the number of topics changed."""
    written = 0
    for slot in slots:
        for topic in slot.topics:
            if topic.scheduled_date == slot.date and not topic.rescheduled:
                logger.debug("Topic %s already scheduled on %s", topic.id, slot.date)
                continue
            topic.scheduled_date = slot.date
            topic.rescheduled = False
            topic.append_history(slot.date, "scheduled", "auto-schedule", now)
            written += 1
    return written


def build_schedule_for_context(
    db: Session,
    ctx: PlanningContext,
    start_date: date,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    commit: bool = True,
) -> List[DaySlot]:
    """Plan the horizon for an already loaded user (see build_schedule)"""
    if horizon_days <= 0:
        return []

    topics = _load_backlog(db, ctx.user_id)
    if not topics:
        return []

    slots = allocate(topics, start_date, horizon_days, ctx.capacity)
    written = _persist(slots, ctx.now)
    if commit and written:
        commit_or_rollback(db)

    logger.info(
        "Built %d-day schedule for user %s from %s: %d assigned, %d updated",
        horizon_days, ctx.user_id, start_date,
        sum(len(s.topics) for s in slots), written,
    )
    return slots


def build_schedule(
    db: Session,
    user_id: int,
    start_date: Optional[date] = None,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    now: Optional[datetime] = None,
) -> List[DaySlot]:
    """
    Assign the user's unfinished topics to days starting at start_date.

    Args:
        user_id: Owner of the topics
        start_date: First day of the horizon (defaults to today)
        horizon_days: Number of consecutive days to fill
        now: Timestamp for history entries (defaults to now)

    Returns:
        One DaySlot per day with the topics assigned to it. Topics already
        on the same date are left untouched, so repeated runs add no history.
    """
    if isinstance(start_date, datetime):
        start_date = start_date.date()
    with storage_pass(db):
        ctx = load_context(db, user_id, now)
        if ctx is None:
            return []
        return build_schedule_for_context(db, ctx, start_date or ctx.today, horizon_days)
