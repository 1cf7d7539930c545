"""
Service for assigned programs and the workouts logged against them.

Users only see programs assigned to them; admins see every program. A program
that belongs to someone else is reported as missing rather than forbidden.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fitcoach.core.database.base import utc_now
from fitcoach.core.database.entities.programs import (
    ClientDayRead,
    ClientItem,
    ClientItemRead,
    ClientProgram,
    ClientProgramDetail,
    SetLog,
    SetLogCreate,
    WorkoutSession,
)
from fitcoach.core.database.repositories import ProgramRepository, SetLogRepository, WorkoutSessionRepository
from fitcoach.core.errors import NotFoundError, ValidationFailedError
from fitcoach.core.program import format_prescription, to_embed_url
from fitcoach.core.progression import (
    DEFAULT_WEEKS_BACK,
    WorkoutFeedback,
    analyze_exercise,
    calculate_workout_progression,
    format_workout_progression_summary,
)
from fitcoach.server.schemas import ExerciseAnalysisResponse, ProgramProgress, SessionFeedbackResponse

logger = logging.getLogger(__name__)


def calculate_program_progress(
    program: ClientProgram, today: Optional[date] = None, completed_sessions: int = 0
) -> ProgramProgress:
    """
    Weeks elapsed since the program start and whether it has run its course.

    A program without a start date counts from its creation day. Only
    ``active`` programs can be due for completion.
    """
    today = today or utc_now().date()
    start = program.start_date or program.created_at.date()
    weeks_elapsed = max(0, (today - start).days // 7)
    duration = max(1, program.duration_weeks)
    return ProgramProgress(
        program_id=program.id,
        user_id=program.assigned_to,
        start_date=program.start_date,
        duration_weeks=program.duration_weeks,
        status=program.status,
        completed_at=program.completed_at,
        auto_progression_enabled=program.auto_progression_enabled,
        weeks_elapsed=weeks_elapsed,
        progress_percentage=round(min(100.0, weeks_elapsed / duration * 100), 1),
        is_due_for_completion=program.status == "active" and weeks_elapsed >= program.duration_weeks,
        completed_sessions=completed_sessions,
    )


def item_view(item: ClientItem) -> ClientItemRead:
    if item.seconds:
        prescription = format_prescription(item.sets, seconds=item.seconds)
    elif item.reps:
        prescription = f"{item.sets}×{item.reps}"
    else:
        prescription = ""
    return ClientItemRead.model_validate(
        item, update={"prescription": prescription, "embed_url": to_embed_url(item.video_url)}
    )


class ProgramService:
    """Programs, workout sessions, set logs and exercise analysis for one caller."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.programs = ProgramRepository(session)
        self.sessions = WorkoutSessionRepository(session)
        self.set_logs = SetLogRepository(session)

    async def list_programs(self, user_id: str) -> List[ClientProgram]:
        return await self.programs.list_for_user(user_id)

    async def get_program(self, program_id: int, user_id: str, is_admin: bool = False) -> ClientProgram:
        """
        Load a program the caller may see.

        Raises:
            NotFoundError: No such program, or it is assigned to someone else.
        """
        program = await self.programs.get_by_id(program_id)
        if program is None or (program.assigned_to != user_id and not is_admin):
            raise NotFoundError(f"Program {program_id} not found", code="PROGRAM_NOT_FOUND")
        return program

    async def get_detail(self, program_id: int, user_id: str, is_admin: bool = False) -> ClientProgramDetail:
        program = await self.get_program(program_id, user_id, is_admin)
        days = await self.programs.get_days(program.id)
        items = await self.programs.get_items([day.id for day in days])
        day_views = [
            ClientDayRead(
                id=day.id,
                title=day.title,
                day_order=day.day_order,
                weekday=day.weekday,
                note=day.note,
                items=[item_view(item) for item in items.get(day.id, [])],
            )
            for day in days
        ]
        return ClientProgramDetail.model_validate(program, update={"days": day_views})

    async def get_progress(self, program_id: int, user_id: str, is_admin: bool = False) -> ProgramProgress:
        program = await self.get_program(program_id, user_id, is_admin)
        completed = await self.sessions.count_finished_for_program(program.id)
        return calculate_program_progress(program, completed_sessions=completed)

    async def start_session(self, program_id: int, day_id: int, user_id: str) -> WorkoutSession:
        """
        Start a workout on one day of the program.

        An unfinished session on the same day is resumed instead of opening a second one.
        """
        program = await self.get_program(program_id, user_id)
        day = await self.programs.get_day(day_id)
        if day is None or day.client_program_id != program.id:
            raise NotFoundError(f"Day {day_id} is not part of program {program_id}")

        open_session = await self.sessions.get_open(user_id, day_id)
        if open_session is not None:
            logger.debug(f"Resuming workout session {open_session.id} for {user_id}")
            return open_session

        workout = await self.sessions.create(
            WorkoutSession(user_id=user_id, client_program_id=program.id, client_day_id=day.id)
        )
        logger.info(f"Workout session {workout.id} started by {user_id} on program {program.id}")
        return workout

    async def _own_session(self, session_id: int, user_id: str) -> WorkoutSession:
        workout = await self.sessions.get_by_id(session_id)
        if workout is None or workout.user_id != user_id:
            raise NotFoundError(f"Workout session {session_id} not found")
        return workout

    async def log_set(self, session_id: int, payload: SetLogCreate, user_id: str) -> SetLog:
        """
        Record one set. Logging the same set number again overwrites it.

        Raises:
            ValidationFailedError: The session was already completed.
            NotFoundError: The session or exercise is not part of the caller's program.
        """
        workout = await self._own_session(session_id, user_id)
        if workout.ended_at is not None:
            raise ValidationFailedError(f"Workout session {session_id} is already completed", code="WORKOUT_SAVE_FAILED")
        item = await self.programs.get_item(workout.client_program_id, payload.client_item_id)
        if item is None:
            raise NotFoundError(f"Exercise {payload.client_item_id} is not part of this program")

        existing = await self.set_logs.get_for_set(session_id, payload.client_item_id, payload.set_number)
        if existing is not None:
            for key, value in payload.model_dump(exclude={"client_item_id", "set_number"}).items():
                setattr(existing, key, value)
            existing.marked_done_at = utc_now()
            return await self.set_logs.update(existing)

        return await self.set_logs.create(
            SetLog(
                **payload.model_dump(),
                session_id=session_id,
                user_id=user_id,
                program_id=workout.client_program_id,
            )
        )

    async def complete_session(self, session_id: int, user_id: str, now: Optional[datetime] = None) -> WorkoutSession:
        """Finish a workout; completing it twice keeps the first end time."""
        workout = await self._own_session(session_id, user_id)
        if workout.ended_at is not None:
            return workout
        now = now or utc_now()
        workout.ended_at = now
        workout.duration_minutes = max(0, round((now - workout.started_at).total_seconds() / 60))
        workout = await self.sessions.update(workout)
        logger.info(f"Workout session {session_id} completed in {workout.duration_minutes} min")
        return workout

    async def submit_feedback(self, session_id: int, feedback: WorkoutFeedback, user_id: str) -> SessionFeedbackResponse:
        workout = await self._own_session(session_id, user_id)
        progression = calculate_workout_progression(feedback)
        workout.feedback = feedback.model_dump(mode="json")
        workout.volume_multiplier = progression.volume_multiplier
        workout.intensity_multiplier = progression.intensity_multiplier
        await self.sessions.update(workout)
        return SessionFeedbackResponse(
            session_id=session_id,
            progression=progression,
            summary=format_workout_progression_summary(progression),
        )

    async def analyze_item(
        self,
        program_id: int,
        item_id: int,
        user_id: str,
        is_admin: bool = False,
        weeks: int = DEFAULT_WEEKS_BACK,
    ) -> ExerciseAnalysisResponse:
        program = await self.get_program(program_id, user_id, is_admin)
        item = await self.programs.get_item(program.id, item_id)
        if item is None:
            raise NotFoundError(f"Exercise {item_id} is not part of program {program_id}")
        since = utc_now() - timedelta(weeks=weeks)
        logs = await self.set_logs.list_for_item_since(item.id, since)
        analysis = analyze_exercise(logs, item.weight_kg, item.reps, item.exercise_name, weeks=weeks)
        return ExerciseAnalysisResponse(
            program_id=program.id, item_id=item.id, exercise_name=item.exercise_name, analysis=analysis
        )
