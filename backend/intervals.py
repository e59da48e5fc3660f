from datetime import date, datetime, timedelta
from typing import Optional, Union

# Review intervals in days per difficulty, indexed by repetition level
REVIEW_INTERVALS = {
    "easy": [1, 3, 7, 14, 30],
    "medium": [1, 2, 5, 10, 21],
    "hard": [1, 1, 2, 3, 5],
}


def calculate_next_review_date(
    difficulty: str,
    last_reviewed: Optional[Union[date, datetime]] = None,
    repetition_level: int = 0,
) -> Union[date, datetime]:
    """
    Calculate when a topic should next be reviewed.

    Args:
        difficulty: "easy", "medium" or "hard"; anything else raises KeyError
        last_reviewed: Date of the last review (defaults to now)
        repetition_level: Successful reviews so far; levels past the end of
            the table keep using the longest interval

    Returns:
        last_reviewed shifted by the interval for this level
    """
    intervals = REVIEW_INTERVALS[difficulty]
    index = min(max(repetition_level or 0, 0), len(intervals) - 1)
    base = last_reviewed if last_reviewed is not None else datetime.now()
    return base + timedelta(days=intervals[index])


def is_due_for_review(next_review_date: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """Check if a topic is due for review"""
    if next_review_date is None:
        return False
    return (now or datetime.now()) >= next_review_date
