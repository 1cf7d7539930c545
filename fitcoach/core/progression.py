"""Exercise and workout progression rules.

Two families of rules live here:

* feedback driven progression, applied right after a workout when the user
  rates an exercise (``too_easy`` / ``just_right`` / ``too_hard``) or the
  whole session (energy, soreness, pump, joint pain);
* history driven analysis used by the weekly auto-progression job, which
  looks at the logged sets of the last few weeks and decides whether to
  increase, hold, reduce or deload the working weight.
"""

from __future__ import annotations

import re
from collections import defaultdict
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field

from .access import as_utc, utcnow


class ExerciseType(str, Enum):
    COMPOUND = "compound"
    ISOLATION = "isolation"
    BODYWEIGHT = "bodyweight"


class ExerciseFeedback(str, Enum):
    TOO_EASY = "too_easy"
    JUST_RIGHT = "just_right"
    TOO_HARD = "too_hard"


class ProgressionAction(str, Enum):
    MAINTAIN = "maintain"
    INCREASE_WEIGHT = "increase_weight"
    MICRO_INCREASE = "micro_increase"
    DECREASE_WEIGHT = "decrease_weight"
    DELOAD = "deload"


EXERCISE_INCREMENT_MAP: dict[str, float] = {
    "squat": 2.5,
    "deadlift": 2.5,
    "bench_press": 2.5,
    "overhead_press": 2.5,
    "barbell_row": 2.5,
    "compound": 2.5,
    "bicep_curl": 1.25,
    "tricep_extension": 1.25,
    "lateral_raise": 1.25,
    "rear_delt_fly": 1.25,
    "leg_curl": 1.25,
    "leg_extension": 1.25,
    "isolation": 1.25,
    "bodyweight": 0,
}

DEFAULT_INCREMENT = 2.5
COMPOUND_KEYWORDS = ("squat", "deadlift", "bench", "press", "row", "pull", "push")
BODYWEIGHT_KEYWORDS = ("push-up", "pull-up", "dip", "chin-up", "plank", "burpee")

VOLUME_RANGE = (0.8, 1.2)
INTENSITY_RANGE = (0.85, 1.15)

DELOAD_RPE = 9.5
DELOAD_RIR = 0.5
HARD_RPE = 9.0
EASY_RPE = 7.0
MODERATE_RPE = 8.0
DELOAD_FACTOR = 0.9
MIN_SESSIONS = 2
DEFAULT_WEEKS_BACK = 3


class WeightProgression(BaseModel):
    new_weight: float
    change: float
    reason: str
    progression_type: str


class WorkoutFeedback(BaseModel):
    energy: str = Field("normal", pattern="^(low|normal|high)$")
    soreness: str = Field("mild", pattern="^(none|mild|high)$")
    pump: str = Field("good", pattern="^(poor|good|excellent)$")
    joint_pain: bool = False
    overall_difficulty: ExerciseFeedback = ExerciseFeedback.JUST_RIGHT
    notes: Optional[str] = None


class WorkoutProgression(BaseModel):
    volume_multiplier: float
    intensity_multiplier: float
    reason: str
    recommendations: list[str] = Field(default_factory=list)


class ExerciseProgression(BaseModel):
    action: ProgressionAction
    reason: str
    current_weight: Optional[float] = None
    suggested_weight: Optional[float] = None
    current_reps: str = ""
    suggested_reps: Optional[str] = None
    avg_rpe: Optional[float] = None
    avg_rir: Optional[float] = None
    session_count: int = 0
    confidence_score: float = 0.0
    exercise_type: ExerciseType = ExerciseType.ISOLATION
    deload_needed: bool = False
    weeks_analyzed: int = DEFAULT_WEEKS_BACK


def round_half(value: float) -> float:
    """Round to the nearest 0.5 kg, halves away from zero."""
    return float(int(value * 2 + 0.5)) / 2 if value >= 0 else -round_half(-value)


def determine_exercise_type(name: str) -> ExerciseType:
    lowered = name.lower()
    if any(k in lowered for k in COMPOUND_KEYWORDS):
        return ExerciseType.COMPOUND
    if any(k in lowered for k in BODYWEIGHT_KEYWORDS):
        return ExerciseType.BODYWEIGHT
    return ExerciseType.ISOLATION


def exercise_increment(name: Optional[str] = None, exercise_type: Optional[ExerciseType] = None) -> float:
    """Weight step in kg, by exact exercise name first and then by type."""
    if name:
        key = re.sub(r"\s+", "_", name.lower())
        if EXERCISE_INCREMENT_MAP.get(key):
            return EXERCISE_INCREMENT_MAP[key]
    if exercise_type is not None:
        return EXERCISE_INCREMENT_MAP.get(ExerciseType(exercise_type).value) or DEFAULT_INCREMENT
    return DEFAULT_INCREMENT


def _bodyweight_reason(feedback: ExerciseFeedback) -> str:
    if feedback == ExerciseFeedback.TOO_EASY:
        return "Too easy - add 1 rep per set next time"
    if feedback == ExerciseFeedback.TOO_HARD:
        return "Too hard - reduce 1 rep per set next time"
    return "Perfect difficulty - maintain current reps"


def calculate_exercise_progression(
    feedback: ExerciseFeedback | str,
    current_weight: Optional[float],
    exercise_type: ExerciseType | str,
    exercise_name: Optional[str] = None,
) -> WeightProgression:
    feedback = ExerciseFeedback(feedback)
    exercise_type = ExerciseType(exercise_type)

    if exercise_type == ExerciseType.BODYWEIGHT or not current_weight:
        return WeightProgression(
            new_weight=0, change=0, reason=_bodyweight_reason(feedback), progression_type="maintain"
        )

    increment = exercise_increment(exercise_name, exercise_type)
    pct = 0.025 if exercise_type == ExerciseType.COMPOUND else 0.02
    step = max(current_weight * pct, increment)

    if feedback == ExerciseFeedback.TOO_EASY:
        new_weight = round_half(current_weight + step)
        reason = f"Too easy - increasing by {new_weight - current_weight:.1f}kg"
        kind = "increase"
    elif feedback == ExerciseFeedback.TOO_HARD:
        new_weight = max(round_half(current_weight - step), 0.0)
        reason = f"Too hard - decreasing by {current_weight - new_weight:.1f}kg"
        kind = "decrease"
    else:
        new_weight = current_weight
        reason = "Perfect difficulty - maintaining weight"
        kind = "maintain"

    return WeightProgression(
        new_weight=new_weight, change=new_weight - current_weight, reason=reason, progression_type=kind
    )


def calculate_workout_progression(feedback: WorkoutFeedback) -> WorkoutProgression:
    volume = 1.0
    intensity = 1.0
    recommendations: list[str] = []

    if feedback.energy == "low" and feedback.soreness == "high":
        volume = 0.9
        recommendations.append("Reduce volume due to low energy and high soreness")
    elif feedback.energy == "high" and feedback.soreness == "none":
        volume = 1.05
        recommendations.append("Increase volume - you have high energy and no soreness")

    if feedback.soreness == "high":
        volume *= 0.95
        recommendations.append("Reduce volume due to high soreness")
    elif feedback.soreness == "none" and feedback.energy == "normal":
        volume *= 1.02
        recommendations.append("Slight volume increase - no soreness")

    if feedback.pump == "poor" and feedback.energy == "normal":
        volume *= 1.03
        recommendations.append("Increase volume to improve muscle pump")
    elif feedback.pump == "excellent" and feedback.soreness == "mild":
        volume *= 0.98
        recommendations.append("Maintain current volume - excellent pump achieved")

    if feedback.joint_pain:
        intensity *= 0.95
        recommendations.append("Reduce intensity due to joint pain")

    if feedback.overall_difficulty == ExerciseFeedback.TOO_EASY:
        volume *= 1.05
        intensity *= 1.02
        recommendations.append("Increase volume and intensity - workout too easy")
    elif feedback.overall_difficulty == ExerciseFeedback.TOO_HARD:
        volume *= 0.9
        intensity *= 0.95
        recommendations.append("Reduce volume and intensity - workout too hard")

    volume = max(VOLUME_RANGE[0], min(VOLUME_RANGE[1], volume))
    intensity = max(INTENSITY_RANGE[0], min(INTENSITY_RANGE[1], intensity))

    return WorkoutProgression(
        volume_multiplier=volume,
        intensity_multiplier=intensity,
        reason=f"Based on energy: {feedback.energy}, soreness: {feedback.soreness}, pump: {feedback.pump}",
        recommendations=recommendations,
    )


def format_progression_summary(progression: WeightProgression) -> str:
    if progression.change > 0:
        return f"+{progression.change:.1f}kg ({progression.reason})"
    if progression.change < 0:
        return f"{progression.change:.1f}kg ({progression.reason})"
    return f"No change ({progression.reason})"


def format_workout_progression_summary(progression: WorkoutProgression) -> str:
    parts = []
    if progression.volume_multiplier != 1.0:
        parts.append(f"Volume: {(progression.volume_multiplier - 1) * 100:.1f}%")
    if progression.intensity_multiplier != 1.0:
        parts.append(f"Intensity: {(progression.intensity_multiplier - 1) * 100:.1f}%")
    return ", ".join(parts) or "No changes recommended"


def target_reps(reps: Optional[str]) -> Optional[int]:
    """Lower bound of a rep prescription such as ``"10"`` or ``"8-12"``."""
    if not reps:
        return None
    match = re.search(r"\d+", str(reps))
    return int(match.group(0)) if match else None


def _set_rpe(log: Any) -> Optional[float]:
    rpe = getattr(log, "rpe", None)
    if rpe is not None:
        return float(rpe)
    rir = getattr(log, "rir_done", None)
    return 10.0 - float(rir) if rir is not None else None


def _session_key(log: Any) -> Any:
    if getattr(log, "session_id", None):
        return log.session_id
    done_at = getattr(log, "marked_done_at", None)
    return as_utc(done_at).date() if done_at is not None else None


def _mean(values: list[float]) -> Optional[float]:
    return round(sum(values) / len(values), 2) if values else None


def analyze_exercise(
    set_logs: Iterable[Any],
    current_weight: Optional[float],
    current_reps: Optional[str],
    exercise_name: str,
    weeks: int = DEFAULT_WEEKS_BACK,
    now: Optional[datetime] = None,
) -> ExerciseProgression:
    """Decide the next working weight from recent set logs.

    Set logs are read through ``session_id``, ``marked_done_at``,
    ``reps_done``, ``rir_done`` and optional ``rpe`` attributes. RPE falls back
    to ``10 - RIR`` when only RIR was logged. Logs older than ``weeks`` weeks
    are ignored.
    """
    now = as_utc(now) or utcnow()
    since = now - timedelta(weeks=weeks)
    ex_type = determine_exercise_type(exercise_name)
    increment = exercise_increment(exercise_name, ex_type)
    target = target_reps(current_reps)

    recent = [
        log for log in set_logs
        if getattr(log, "marked_done_at", None) is None or as_utc(log.marked_done_at) >= since
    ]
    sessions: dict[Any, list[Any]] = defaultdict(list)
    for log in recent:
        sessions[_session_key(log)].append(log)

    rpes = [r for r in (_set_rpe(log) for log in recent) if r is not None]
    rirs = [float(log.rir_done) for log in recent if getattr(log, "rir_done", None) is not None]
    avg_rpe = _mean(rpes)
    avg_rir = _mean(rirs)
    session_count = len(sessions)
    all_reps_done = target is not None and bool(recent) and all(
        (log.reps_done or 0) >= target for log in recent
    )
    missed_reps = target is not None and any((log.reps_done or 0) < target for log in recent)

    base = ExerciseProgression(
        action=ProgressionAction.MAINTAIN,
        reason="",
        current_weight=current_weight,
        suggested_weight=current_weight,
        current_reps=current_reps or "",
        suggested_reps=current_reps,
        avg_rpe=avg_rpe,
        avg_rir=avg_rir,
        session_count=session_count,
        confidence_score=round(min(1.0, session_count / 4), 2),
        exercise_type=ex_type,
        weeks_analyzed=weeks,
    )

    if session_count < MIN_SESSIONS:
        return base.model_copy(update={"reason": "Insufficient data - need at least 2 sessions"})

    weighted = ex_type != ExerciseType.BODYWEIGHT and bool(current_weight)

    def with_weight(action: ProgressionAction, reason: str, weight: float, rep_delta: int, **extra: Any):
        update: dict[str, Any] = {"action": action, "reason": reason, **extra}
        if weighted:
            update["suggested_weight"] = max(round_half(weight), 0.0)
        elif target is not None and rep_delta:
            update["suggested_reps"] = str(max(1, target + rep_delta))
        return base.model_copy(update=update)

    if (avg_rpe is not None and avg_rpe >= DELOAD_RPE) or (avg_rir is not None and avg_rir <= DELOAD_RIR):
        return with_weight(
            ProgressionAction.DELOAD,
            "Sustained maximal effort - deload to 90%",
            (current_weight or 0) * DELOAD_FACTOR,
            -1,
            deload_needed=True,
        )
    if avg_rpe is not None and avg_rpe >= HARD_RPE and missed_reps:
        return with_weight(
            ProgressionAction.DECREASE_WEIGHT,
            "High effort with missed reps - reduce load",
            (current_weight or 0) - increment,
            -1,
        )
    if avg_rpe is not None and avg_rpe <= EASY_RPE and all_reps_done:
        return with_weight(
            ProgressionAction.INCREASE_WEIGHT,
            "All reps completed with effort to spare - increase load",
            (current_weight or 0) + increment,
            1,
        )
    if avg_rpe is not None and EASY_RPE < avg_rpe <= MODERATE_RPE and all_reps_done:
        return with_weight(
            ProgressionAction.MICRO_INCREASE,
            "All reps completed at moderate effort - small increase",
            (current_weight or 0) + increment / 2,
            1,
        )
    return base.model_copy(update={"reason": "Performance on target - maintain current load"})
