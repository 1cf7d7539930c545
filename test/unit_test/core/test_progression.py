"""
Unit tests for exercise and workout progression rules.

Tests cover:
- Exercise classification and weight increments
- Feedback driven weight changes
- Whole-workout volume and intensity multipliers
- History driven analysis used by the weekly job
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from fitcoach.core.progression import (
    ExerciseFeedback,
    ExerciseType,
    ProgressionAction,
    WeightProgression,
    WorkoutFeedback,
    analyze_exercise,
    calculate_exercise_progression,
    calculate_workout_progression,
    determine_exercise_type,
    exercise_increment,
    format_progression_summary,
    format_workout_progression_summary,
    round_half,
    target_reps,
)

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


def log(session_id, reps_done=10, rpe=None, rir_done=None, days_ago=1):
    return SimpleNamespace(
        session_id=session_id,
        reps_done=reps_done,
        rpe=rpe,
        rir_done=rir_done,
        marked_done_at=NOW - timedelta(days=days_ago),
    )


class TestClassification:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Back Squat", ExerciseType.COMPOUND),
            ("Bench press", ExerciseType.COMPOUND),
            ("Plank", ExerciseType.BODYWEIGHT),
            ("Dips", ExerciseType.BODYWEIGHT),
            ("Bicep curl", ExerciseType.ISOLATION),
        ],
    )
    def test_determine_exercise_type(self, name, expected):
        assert determine_exercise_type(name) == expected

    def test_increment_by_name_then_type(self):
        assert exercise_increment("Lateral Raise") == 1.25
        assert exercise_increment("Cable fly", ExerciseType.ISOLATION) == 1.25
        assert exercise_increment("Push-up", ExerciseType.BODYWEIGHT) == 2.5
        assert exercise_increment() == 2.5

    def test_round_half(self):
        assert round_half(61.25) == 61.5
        assert round_half(61.2) == 61.0
        assert round_half(-1.25) == -1.5

    def test_target_reps(self):
        assert target_reps("8-12") == 8
        assert target_reps("10") == 10
        assert target_reps("AMRAP") is None
        assert target_reps(None) is None


class TestExerciseFeedback:
    def test_too_easy_compound(self):
        result = calculate_exercise_progression("too_easy", 100, "compound", "Squat")
        assert result.new_weight == 102.5
        assert result.progression_type == "increase"

    def test_too_hard_isolation_uses_minimum_step(self):
        result = calculate_exercise_progression(ExerciseFeedback.TOO_HARD, 20, ExerciseType.ISOLATION)
        assert result.new_weight == 19.0
        assert result.change == -1.0

    def test_just_right_keeps_weight(self):
        result = calculate_exercise_progression("just_right", 40, "isolation")
        assert result.change == 0
        assert result.progression_type == "maintain"

    def test_bodyweight_has_rep_advice(self):
        result = calculate_exercise_progression("too_easy", None, "bodyweight")
        assert result.new_weight == 0
        assert "add 1 rep" in result.reason

    def test_summary(self):
        assert format_progression_summary(
            WeightProgression(new_weight=102.5, change=2.5, reason="r", progression_type="increase")
        ) == "+2.5kg (r)"
        assert format_progression_summary(
            WeightProgression(new_weight=40, change=0, reason="r", progression_type="maintain")
        ) == "No change (r)"


class TestWorkoutFeedback:
    def test_defaults_change_nothing(self):
        result = calculate_workout_progression(WorkoutFeedback())
        assert result.volume_multiplier == 1.0
        assert result.intensity_multiplier == 1.0
        assert format_workout_progression_summary(result) == "No changes recommended"

    def test_tired_and_sore(self):
        result = calculate_workout_progression(WorkoutFeedback(energy="low", soreness="high"))
        assert result.volume_multiplier == pytest.approx(0.855)
        assert len(result.recommendations) == 2

    def test_multipliers_are_clamped(self):
        result = calculate_workout_progression(
            WorkoutFeedback(energy="low", soreness="high", joint_pain=True, overall_difficulty="too_hard")
        )
        assert result.volume_multiplier == 0.8
        assert result.intensity_multiplier == pytest.approx(0.9025)

    def test_too_easy(self):
        result = calculate_workout_progression(
            WorkoutFeedback(energy="high", soreness="none", overall_difficulty="too_easy")
        )
        assert result.volume_multiplier == pytest.approx(1.1025)
        assert result.intensity_multiplier == pytest.approx(1.02)
        assert format_workout_progression_summary(result).endswith("Intensity: 2.0%")

    def test_invalid_values_rejected(self):
        with pytest.raises(ValueError):
            WorkoutFeedback(energy="extreme")


class TestAnalyzeExercise:
    def test_needs_two_sessions(self):
        result = analyze_exercise([log(1, rpe=6)], 60, "10", "Squat", now=NOW)
        assert result.action == ProgressionAction.MAINTAIN
        assert "Insufficient data" in result.reason
        assert result.confidence_score == 0.25

    def test_easy_sessions_increase(self):
        logs = [log(1, rpe=6.5), log(1, rpe=7), log(2, rpe=7)]
        result = analyze_exercise(logs, 60, "10", "Squat", now=NOW)
        assert result.action == ProgressionAction.INCREASE_WEIGHT
        assert result.suggested_weight == 62.5
        assert result.session_count == 2

    def test_moderate_sessions_micro_increase(self):
        logs = [log(1, rpe=8), log(2, rpe=7.5)]
        result = analyze_exercise(logs, 20, "10", "Bicep curl", now=NOW)
        assert result.action == ProgressionAction.MICRO_INCREASE
        assert result.suggested_weight == 20.5

    def test_hard_sessions_with_missed_reps_decrease(self):
        logs = [log(1, reps_done=8, rpe=9), log(2, reps_done=10, rpe=9.2)]
        result = analyze_exercise(logs, 60, "10", "Squat", now=NOW)
        assert result.action == ProgressionAction.DECREASE_WEIGHT
        assert result.suggested_weight == 57.5

    def test_maximal_effort_deloads(self):
        logs = [log(1, rir_done=0), log(2, rir_done=0.5)]
        result = analyze_exercise(logs, 100, "5", "Deadlift", now=NOW)
        assert result.action == ProgressionAction.DELOAD
        assert result.deload_needed
        assert result.suggested_weight == 90.0
        assert result.avg_rpe == 9.75

    def test_rpe_falls_back_to_rir(self):
        logs = [log(1, rir_done=3), log(2, rir_done=4)]
        result = analyze_exercise(logs, 60, "10", "Squat", now=NOW)
        assert result.avg_rpe == 6.5
        assert result.action == ProgressionAction.INCREASE_WEIGHT

    def test_old_logs_are_ignored(self):
        logs = [log(1, rpe=6, days_ago=40), log(2, rpe=6, days_ago=30), log(3, rpe=6)]
        result = analyze_exercise(logs, 60, "10", "Squat", now=NOW)
        assert result.session_count == 1

    def test_bodyweight_adjusts_reps(self):
        logs = [log(1, reps_done=12, rpe=6), log(2, reps_done=12, rpe=6)]
        result = analyze_exercise(logs, None, "12", "Push-up", now=NOW)
        assert result.action == ProgressionAction.INCREASE_WEIGHT
        assert result.suggested_weight is None
        assert result.suggested_reps == "13"

    def test_on_target_maintains(self):
        logs = [log(1, reps_done=8, rpe=8), log(2, reps_done=10, rpe=8)]
        result = analyze_exercise(logs, 60, "10", "Squat", now=NOW)
        assert result.action == ProgressionAction.MAINTAIN
        assert result.suggested_weight == 60
