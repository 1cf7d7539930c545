"""XP and level calculation.

XP sources per UTC day: 30 XP for every workout of at least 8 minutes, 15 XP
for the first office-reset completion, 5 XP when all four active habits were
logged. Each day is capped at 60 XP.
"""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field

from .access import as_utc

WORKOUT_XP = 30
OFFICE_RESET_XP = 15
HABIT_COMPLETION_XP = 5
DAILY_XP_CAP = 60
MIN_WORKOUT_MINUTES = 8
MAX_LEVEL = 99
MAX_XP = 5000
MAX_HABITS = 4

TIERS = (
    (85, "Müütiline"),
    (70, "Obsidian"),
    (55, "Teemant"),
    (40, "Plaatina"),
    (25, "Kuld"),
    (10, "Hõbe"),
)
BASE_TIER = "Pronks"


class LevelInfo(BaseModel):
    level: int
    current_level_xp: int
    next_level_xp: int
    xp_to_next: int


class XPStats(BaseModel):
    valid_workouts: int = 0
    office_resets: int = 0
    total_days: int = 0
    total_habits: int = 0
    perfect_habit_days: int = 0


class UserXP(BaseModel):
    total_xp: int
    level: int
    tier: str
    current_level_xp: int
    next_level_xp: int
    xp_to_next: int
    progress: float
    daily_xp_breakdown: dict[str, int] = Field(default_factory=dict)
    stats: XPStats = Field(default_factory=XPStats)


def xp_for_level(level: int) -> int:
    """Total XP needed to reach ``level``."""
    if level <= 1:
        return 0
    total = 0
    for i in range(2, level + 1):
        total += math.floor(15 + (i - 2) * 0.8 + math.pow(i - 2, 1.5) * 0.12)
    return min(total, MAX_XP)


def level_from_xp(total_xp: int) -> LevelInfo:
    if total_xp >= MAX_XP:
        return LevelInfo(level=MAX_LEVEL, current_level_xp=MAX_XP, next_level_xp=MAX_XP, xp_to_next=0)
    for level in range(1, MAX_LEVEL + 1):
        this_level = xp_for_level(level)
        next_level = xp_for_level(level + 1)
        if total_xp < next_level or level == MAX_LEVEL:
            top = level == MAX_LEVEL
            return LevelInfo(
                level=level,
                current_level_xp=this_level,
                next_level_xp=MAX_XP if top else next_level,
                xp_to_next=0 if top else next_level - total_xp,
            )
    return LevelInfo(level=1, current_level_xp=0, next_level_xp=xp_for_level(2), xp_to_next=xp_for_level(2))


def tier_from_level(level: int) -> str:
    for threshold, name in TIERS:
        if level >= threshold:
            return name
    return BASE_TIER


def _day(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value).date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]


def calculate_user_xp(
    sessions: Iterable[Any],
    office_resets: Iterable[Any],
    habit_ids: Iterable[Any],
    habit_logs: Iterable[Any],
) -> UserXP:
    """Aggregate a user's XP.

    Args:
        sessions: Workout sessions with ``started_at`` and ``ended_at``.
        office_resets: Completed static program days with ``completed_at``.
        habit_ids: Ids of the user's active habits.
        habit_logs: Habit check-ins with ``logged_on`` and ``habit_id``.
    """
    daily: dict[str, int] = defaultdict(int)

    valid_workouts = 0
    for s in sessions:
        if not s.started_at or not s.ended_at:
            continue
        minutes = (as_utc(s.ended_at) - as_utc(s.started_at)).total_seconds() / 60
        if minutes >= MIN_WORKOUT_MINUTES:
            valid_workouts += 1
            daily[_day(s.started_at)] += WORKOUT_XP

    reset_days: set[str] = set()
    for r in office_resets:
        key = _day(r.completed_at)
        if key and key not in reset_days:
            reset_days.add(key)
            daily[key] += OFFICE_RESET_XP

    habit_ids = set(habit_ids)
    per_day: dict[str, set] = defaultdict(set)
    for log in habit_logs:
        if log.habit_id in habit_ids:
            per_day[_day(log.logged_on)].add(log.habit_id)
    perfect_days = [
        d for d, done in per_day.items() if len(done) == len(habit_ids) and len(habit_ids) == MAX_HABITS
    ]
    for d in perfect_days:
        daily[d] += HABIT_COMPLETION_XP

    capped = {d: min(xp, DAILY_XP_CAP) for d, xp in sorted(daily.items())}
    total = sum(capped.values())
    info = level_from_xp(total)
    if info.level == MAX_LEVEL:
        progress = 100.0
    else:
        span = info.next_level_xp - info.current_level_xp
        progress = (total - info.current_level_xp) / span * 100 if span else 0.0

    return UserXP(
        total_xp=total,
        level=info.level,
        tier=tier_from_level(info.level),
        current_level_xp=info.current_level_xp,
        next_level_xp=info.next_level_xp,
        xp_to_next=info.xp_to_next,
        progress=progress,
        daily_xp_breakdown=capped,
        stats=XPStats(
            valid_workouts=valid_workouts,
            office_resets=len(reset_days),
            total_days=len(capped),
            total_habits=len(habit_ids),
            perfect_habit_days=len(perfect_days),
        ),
    )
