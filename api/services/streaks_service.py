"""Daily streak calculation.

A streak is a run of consecutive calendar days with at least one check-in.
The calculation is a pure function of the activity records and the
reference date; callers supply "today" so results never depend on the
process clock.
"""

from collections.abc import Iterable
from datetime import date, timedelta
from typing import NamedTuple, Protocol

ONE_DAY = timedelta(days=1)


class ActivityRecord(Protocol):
    """Anything with the calendar day it records (e.g. models.DailyActivity)."""

    @property
    def activity_date(self) -> date: ...


class StreakResult(NamedTuple):
    current_streak: int
    longest_streak: int


def calculate_streak(activities: Iterable[ActivityRecord], today: date) -> StreakResult:
    """Calculate the current and longest daily streak.

    Records dated after ``today`` are treated as bad data and ignored, and
    several records on the same day count once.

    Args:
        activities: Activity records; only ``activity_date`` is read.
        today: Reference date the current streak must end on.

    Returns:
        StreakResult(current_streak, longest_streak). The current streak is 0
        when there is no activity on ``today``.
    """
    active_days = {a.activity_date for a in activities if a.activity_date <= today}
    if not active_days:
        return StreakResult(0, 0)

    return StreakResult(
        current_streak=_current_streak(active_days, today),
        longest_streak=_longest_streak(active_days),
    )


def _current_streak(active_days: set[date], today: date) -> int:
    streak = 0
    day = today
    while day in active_days:
        streak += 1
        day -= ONE_DAY
    return streak


def _longest_streak(active_days: set[date]) -> int:
    longest = 0
    run = 0
    previous: date | None = None

    # Most recent first: a run continues while each day is the one before
    for day in sorted(active_days, reverse=True):
        if previous is not None and previous - ONE_DAY == day:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        previous = day

    return longest
