"""Tests for streaks_service.

Pure function tests for calculate_streak - no database required.
The reference date is always passed in, so no clock freezing is needed.
"""

from datetime import date, timedelta

import pytest

from services.streaks_service import StreakResult, calculate_streak
from tests.factories import DailyActivityFactory

# Mark all tests in this module as unit tests (no database required)
pytestmark = pytest.mark.unit

TODAY = date(2024, 1, 15)


def _activities(*days: date):
    return [DailyActivityFactory.build(activity_date=d) for d in days]


def _jan(day: int) -> date:
    return date(2024, 1, day)


class TestCalculateStreak:
    """Tests for calculate_streak()."""

    def test_returns_zeros_for_empty_input(self):
        assert calculate_streak([], TODAY) == StreakResult(0, 0)

    def test_single_activity_today(self):
        result = calculate_streak(_activities(TODAY), TODAY)

        assert result.current_streak == 1
        assert result.longest_streak == 1

    def test_consecutive_days_ending_today(self):
        result = calculate_streak(
            _activities(_jan(15), _jan(14), _jan(13), _jan(12)), TODAY
        )

        assert result == StreakResult(4, 4)

    def test_gap_breaks_current_streak(self):
        result = calculate_streak(
            _activities(_jan(15), _jan(14), _jan(12), _jan(11)), TODAY
        )

        assert result == StreakResult(2, 2)

    def test_longest_streak_in_the_past(self):
        result = calculate_streak(
            _activities(_jan(15), _jan(14), _jan(10), _jan(9), _jan(8), _jan(7)),
            TODAY,
        )

        assert result == StreakResult(2, 4)

    def test_future_dates_are_ignored(self):
        result = calculate_streak(_activities(_jan(15), _jan(16), _jan(14)), TODAY)

        assert result == StreakResult(2, 2)

    def test_no_activity_today_means_no_current_streak(self):
        """Activity only yesterday: current is 0 but history still counts."""
        result = calculate_streak(_activities(_jan(14), _jan(13)), TODAY)

        assert result == StreakResult(0, 2)

    def test_only_future_dates(self):
        result = calculate_streak(_activities(_jan(16), _jan(17)), TODAY)

        assert result == StreakResult(0, 0)

    def test_duplicate_dates_collapse(self):
        result = calculate_streak(
            _activities(_jan(15), _jan(15), _jan(14), _jan(14)), TODAY
        )

        assert result == StreakResult(2, 2)

    def test_unsorted_input(self):
        result = calculate_streak(
            _activities(_jan(13), _jan(15), _jan(11), _jan(14)), TODAY
        )

        assert result == StreakResult(3, 3)

    def test_accepts_generator(self):
        days = (TODAY - timedelta(days=i) for i in range(3))
        result = calculate_streak(
            (DailyActivityFactory.build(activity_date=d) for d in days), TODAY
        )

        assert result == StreakResult(3, 3)

    def test_streak_across_month_boundary(self):
        today = date(2024, 3, 1)
        result = calculate_streak(
            _activities(date(2024, 3, 1), date(2024, 2, 29), date(2024, 2, 28)),
            today,
        )

        assert result == StreakResult(3, 3)

    def test_does_not_mutate_input(self):
        activities = _activities(_jan(14), _jan(15))
        snapshot = [a.activity_date for a in activities]

        calculate_streak(activities, TODAY)

        assert [a.activity_date for a in activities] == snapshot

    def test_accepts_any_record_with_activity_date(self):
        """Anything exposing activity_date works, not only ORM rows."""

        class Checkin:
            def __init__(self, activity_date: date):
                self.activity_date = activity_date

        result = calculate_streak([Checkin(_jan(15)), Checkin(_jan(14))], TODAY)

        assert result == StreakResult(2, 2)
