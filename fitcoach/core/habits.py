"""Custom habit rules.

A user keeps at most four active habits. New users start with the four
default habits below. Completion statistics look back over the last 30 days.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Iterable

from pydantic import BaseModel

from .levels import MAX_HABITS

STATS_WINDOW_DAYS = 30

# (title, icon_name) in display order
DEFAULT_HABITS = (
    ("Olin sotsiaalne", "Trophy"),
    ("Jõin piisavalt vett", "Zap"),
    ("Liikusin 30+ minutit", "Activity"),
    ("Magasin 7+ tundi", "CheckCircle"),
)


class HabitStat(BaseModel):
    habit_id: int
    habit_title: str
    completions: int
    completion_rate: int


class HabitStats(BaseModel):
    habits: list[HabitStat]
    total_completions: int
    average_per_day: float
    overall_completion_rate: int
    window_days: int = STATS_WINDOW_DAYS


def _percent(part: float, whole: float) -> int:
    return round(part / whole * 100) if whole else 0


def habit_stats(habits: Iterable[Any], logs: Iterable[Any], window_days: int = STATS_WINDOW_DAYS) -> HabitStats:
    """Completion counts and rates of ``habits`` from their ``logs`` inside the window."""
    habits = list(habits)
    logs = list(logs)
    per_habit: dict[int, int] = {}
    for log in logs:
        per_habit[log.habit_id] = per_habit.get(log.habit_id, 0) + 1

    total = len(logs)
    return HabitStats(
        habits=[
            HabitStat(
                habit_id=h.id,
                habit_title=h.title,
                completions=per_habit.get(h.id, 0),
                completion_rate=_percent(per_habit.get(h.id, 0), window_days),
            )
            for h in habits
        ],
        total_completions=total,
        average_per_day=round(total / window_days, 1) if window_days else 0.0,
        overall_completion_rate=_percent(total, len(habits) * window_days),
        window_days=window_days,
    )


def can_add_habit(active_count: int) -> bool:
    return active_count < MAX_HABITS


def window_start(today: date, window_days: int = STATS_WINDOW_DAYS) -> date:
    return today - timedelta(days=window_days)
