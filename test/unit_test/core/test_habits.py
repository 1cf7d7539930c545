"""Unit tests for habit statistics and limits."""

from datetime import date
from types import SimpleNamespace

from fitcoach.core.habits import DEFAULT_HABITS, STATS_WINDOW_DAYS, can_add_habit, habit_stats, window_start
from fitcoach.core.levels import MAX_HABITS


def habit(id, title="Water"):
    return SimpleNamespace(id=id, title=title)


def log(habit_id, day=date(2024, 3, 11)):
    return SimpleNamespace(habit_id=habit_id, logged_on=day)


def test_default_habits_fill_the_limit():
    assert len(DEFAULT_HABITS) == MAX_HABITS


def test_can_add_habit():
    assert can_add_habit(0)
    assert can_add_habit(MAX_HABITS - 1)
    assert not can_add_habit(MAX_HABITS)


def test_window_start():
    assert window_start(date(2024, 3, 31)) == date(2024, 3, 1)
    assert window_start(date(2024, 3, 31), 7) == date(2024, 3, 24)


class TestHabitStats:
    def test_rates(self):
        logs = [log(1, date(2024, 3, d)) for d in range(1, 16)] + [log(2)] * 3

        stats = habit_stats([habit(1, "Water"), habit(2, "Walk")], logs)

        assert stats.total_completions == 18
        assert stats.average_per_day == 0.6
        assert stats.overall_completion_rate == 30
        assert stats.window_days == STATS_WINDOW_DAYS
        water, walk = stats.habits
        assert (water.habit_title, water.completions, water.completion_rate) == ("Water", 15, 50)
        assert (walk.completions, walk.completion_rate) == (3, 10)

    def test_habit_without_logs(self):
        stats = habit_stats([habit(1)], [])

        assert stats.habits[0].completions == 0
        assert stats.overall_completion_rate == 0
        assert stats.average_per_day == 0.0

    def test_no_habits(self):
        stats = habit_stats([], [])

        assert stats.habits == []
        assert stats.overall_completion_rate == 0
