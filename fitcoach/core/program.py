"""Exercise prescription helpers.

Exercises are plain mappings (as stored in program day JSON) or objects with the
same attribute names: ``name``, ``order``, ``sets``, ``reps``, ``seconds``,
``cues``, ``video_url``.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from pydantic import BaseModel

LEGACY_EXERCISE_SLOTS = 5

_SHORT_YOUTUBE = re.compile(r"youtu\.be/([A-Za-z0-9_-]+)", re.I)
_WATCH_YOUTUBE = re.compile(r"[?&]v=([A-Za-z0-9_-]+)", re.I)
_EMBED = re.compile(r"/embed/", re.I)


class Exercise(BaseModel):
    order: int = 0
    name: str
    video_url: Optional[str] = None
    sets: Optional[int] = None
    reps: Optional[int] = None
    seconds: Optional[int] = None
    cues: Optional[str] = None
    regression: Optional[str] = None
    progression: Optional[str] = None


class DayTotals(BaseModel):
    reps: int
    sets: int


def _get(exercise: Any, key: str) -> Any:
    if isinstance(exercise, Mapping):
        return exercise.get(key)
    return getattr(exercise, key, None)


def normalize_exercises(exercises: Any) -> list[Exercise]:
    """Drop entries without a non-blank name and sort by ``order``."""
    if not isinstance(exercises, (list, tuple)):
        return []
    valid = []
    for ex in exercises:
        if not ex:
            continue
        name = _get(ex, "name")
        if not isinstance(name, str) or not name.strip():
            continue
        valid.append(ex if isinstance(ex, Exercise) else Exercise.model_validate(ex, from_attributes=True))
    return sorted(valid, key=lambda e: e.order or 0)


def format_prescription(sets: Optional[int] = None, reps: Optional[int] = None, seconds: Optional[int] = None) -> str:
    """Format as ``"3×10"`` or ``"2×30s"``; empty when nothing is prescribed."""
    sets = sets if sets is not None else 1
    if seconds and seconds > 0:
        return f"{sets}×{seconds}s"
    if reps and reps > 0:
        return f"{sets}×{reps}"
    return ""


def to_embed_url(url: Optional[str]) -> Optional[str]:
    """Convert a YouTube URL to the nocookie embed form when possible."""
    if not url:
        return None
    if _EMBED.search(url):
        return url
    short = _SHORT_YOUTUBE.search(url)
    if short:
        return f"https://www.youtube-nocookie.com/embed/{short.group(1)}"
    watch = _WATCH_YOUTUBE.search(url)
    if watch:
        return f"https://www.youtube-nocookie.com/embed/{watch.group(1)}"
    return url


def _as_str(day: Mapping[str, Any], key: str) -> str:
    value = day.get(key)
    if isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _as_int(day: Mapping[str, Any], key: str, fallback: int = 0) -> int:
    value = day.get(key)
    if isinstance(value, bool):
        return fallback
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        match = re.match(r"\s*(-?\d+)", value)
        return int(match.group(1)) if match else fallback
    return fallback


def convert_legacy_program_day(day: Mapping[str, Any]) -> list[Exercise]:
    """Convert the flat ``exercise1..5`` day format into exercises."""
    exercises = []
    for i in range(1, LEGACY_EXERCISE_SLOTS + 1):
        name = _as_str(day, f"exercise{i}").strip()
        if not name:
            continue
        exercises.append(
            Exercise(
                name=name,
                sets=_as_int(day, f"sets{i}", 1),
                reps=_as_int(day, f"reps{i}", 0),
                seconds=_as_int(day, f"seconds{i}", 0),
                cues=_as_str(day, f"hint{i}").strip() or None,
                video_url=_as_str(day, f"videolink{i}").strip() or None,
                order=i,
            )
        )
    return exercises


def day_totals(exercises: Any) -> DayTotals:
    normalized = normalize_exercises(exercises)
    return DayTotals(
        reps=sum(ex.reps or 0 for ex in normalized),
        sets=sum(ex.sets or 0 for ex in normalized),
    )
