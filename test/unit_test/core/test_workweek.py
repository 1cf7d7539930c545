"""
Unit tests for the program calendar.

Tests cover timezone conversion of day boundaries, weekend detection and
the workday streak.
"""

from datetime import date, datetime, timezone

from fitcoach.core.workweek import (
    calc_program_streak,
    date_key,
    is_monday,
    is_program_day,
    is_weekend,
    local_date,
    previous_workday,
    week_start,
)


class TestLocalDates:
    def test_late_utc_evening_is_next_day_in_tallinn(self):
        # 22:30 UTC on Monday is already Tuesday in Tallinn (UTC+2 in winter)
        dt = datetime(2024, 1, 15, 22, 30, tzinfo=timezone.utc)
        assert local_date(dt) == date(2024, 1, 16)
        assert date_key(dt) == "2024-01-16"

    def test_naive_datetime_is_treated_as_utc(self):
        assert local_date(datetime(2024, 1, 15, 22, 30)) == date(2024, 1, 16)

    def test_plain_date_is_returned_unchanged(self):
        assert local_date(date(2024, 1, 15)) == date(2024, 1, 15)

    def test_other_timezone(self):
        dt = datetime(2024, 1, 15, 22, 30, tzinfo=timezone.utc)
        assert local_date(dt, "UTC") == date(2024, 1, 15)


class TestWeekdays:
    def test_weekend_detection(self):
        assert is_weekend(date(2024, 1, 13))  # Saturday
        assert is_weekend(date(2024, 1, 14))  # Sunday
        assert not is_weekend(date(2024, 1, 15))

    def test_program_days_are_monday_to_friday(self):
        assert is_program_day(date(2024, 1, 19))
        assert not is_program_day(date(2024, 1, 20))

    def test_friday_night_utc_can_be_saturday_locally(self):
        dt = datetime(2024, 1, 19, 23, 0, tzinfo=timezone.utc)
        assert is_weekend(dt)

    def test_is_monday_and_week_start(self):
        assert is_monday(date(2024, 1, 15))
        assert not is_monday(date(2024, 1, 16))
        assert week_start(date(2024, 1, 18)) == date(2024, 1, 15)
        assert week_start(date(2024, 1, 21)) == date(2024, 1, 15)

    def test_previous_workday_skips_weekend(self):
        assert previous_workday(date(2024, 1, 15)) == date(2024, 1, 12)
        assert previous_workday(date(2024, 1, 17)) == date(2024, 1, 16)


class TestProgramStreak:
    def test_no_completions(self):
        assert calc_program_streak([], date(2024, 1, 17)) == 0

    def test_consecutive_workdays(self):
        keys = ["2024-01-15", "2024-01-16", "2024-01-17"]
        assert calc_program_streak(keys, date(2024, 1, 17)) == 3

    def test_weekend_does_not_break_streak(self):
        keys = ["2024-01-11", "2024-01-12", "2024-01-15"]
        assert calc_program_streak(keys, date(2024, 1, 15)) == 3

    def test_weekend_counts_back_from_friday(self):
        keys = ["2024-01-11", "2024-01-12"]
        assert calc_program_streak(keys, date(2024, 1, 14)) == 2

    def test_missing_workday_ends_streak(self):
        keys = ["2024-01-15", "2024-01-17"]
        assert calc_program_streak(keys, date(2024, 1, 17)) == 1

    def test_today_not_done_means_zero(self):
        keys = ["2024-01-15", "2024-01-16"]
        assert calc_program_streak(keys, date(2024, 1, 17)) == 0
