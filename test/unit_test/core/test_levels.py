"""Unit tests for XP aggregation and level thresholds."""

from datetime import date, datetime, timedelta
from types import SimpleNamespace

from fitcoach.core.levels import (
    BASE_TIER,
    DAILY_XP_CAP,
    MAX_LEVEL,
    MAX_XP,
    calculate_user_xp,
    level_from_xp,
    tier_from_level,
    xp_for_level,
)

DAY = datetime(2024, 3, 11, 9, 0)


def workout(minutes, start=DAY):
    return SimpleNamespace(started_at=start, ended_at=start + timedelta(minutes=minutes))


class TestLevelCurve:
    def test_thresholds(self):
        assert xp_for_level(1) == 0
        assert xp_for_level(2) == 15
        assert xp_for_level(3) == 30
        assert xp_for_level(4) == 46

    def test_curve_is_capped(self):
        assert xp_for_level(MAX_LEVEL + 10) == MAX_XP

    def test_level_from_xp(self):
        info = level_from_xp(20)
        assert info.level == 2
        assert info.current_level_xp == 15
        assert info.next_level_xp == 30
        assert info.xp_to_next == 10

    def test_max_level(self):
        info = level_from_xp(MAX_XP + 1)
        assert info.level == MAX_LEVEL
        assert info.xp_to_next == 0

    def test_tiers(self):
        assert tier_from_level(1) == BASE_TIER
        assert tier_from_level(10) == "Hõbe"
        assert tier_from_level(85) == "Müütiline"


class TestUserXP:
    def test_short_workouts_do_not_count(self):
        result = calculate_user_xp([workout(5), workout(8)], [], [], [])
        assert result.stats.valid_workouts == 1
        assert result.total_xp == 30
        assert result.level == 3

    def test_open_sessions_are_skipped(self):
        result = calculate_user_xp([SimpleNamespace(started_at=DAY, ended_at=None)], [], [], [])
        assert result.total_xp == 0
        assert result.level == 1

    def test_office_reset_counts_once_per_day(self):
        resets = [SimpleNamespace(completed_at=DAY), SimpleNamespace(completed_at=DAY + timedelta(hours=2))]
        result = calculate_user_xp([], resets, [], [])
        assert result.total_xp == 15
        assert result.stats.office_resets == 1

    def test_daily_cap(self):
        sessions = [workout(30), workout(30, DAY + timedelta(hours=3))]
        result = calculate_user_xp(sessions, [SimpleNamespace(completed_at=DAY)], [], [])
        assert result.daily_xp_breakdown == {"2024-03-11": DAILY_XP_CAP}

    def test_perfect_habit_day_needs_four_habits(self):
        logs = [SimpleNamespace(habit_id=h, logged_on=date(2024, 3, 11)) for h in (1, 2, 3, 4)]
        result = calculate_user_xp([], [], [1, 2, 3, 4], logs)
        assert result.total_xp == 5
        assert result.stats.perfect_habit_days == 1

        partial = calculate_user_xp([], [], [1, 2, 3], logs[:3])
        assert partial.total_xp == 0

    def test_progress_within_level(self):
        result = calculate_user_xp([workout(10)], [], [], [])
        assert result.current_level_xp == 30
        assert result.progress == 0.0
        assert result.xp_to_next == 16
