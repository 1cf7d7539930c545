"""
Service running automatic weight progression on assigned programs.

The weekly job analyzes every item of every active program with
auto-progression enabled, applies the suggested loads and records a
progression event per change. A failing program is counted and skipped so
the rest of the batch still runs. Programs that have run their planned
duration are marked completed afterwards.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fitcoach.core.access import as_utc
from fitcoach.core.database.base import utc_now
from fitcoach.core.database.entities.programs import ClientProgram, ProgressionEvent
from fitcoach.core.database.repositories import ProgramRepository, ProgressionEventRepository, SetLogRepository
from fitcoach.core.monitoring import log_job_run
from fitcoach.core.progression import DEFAULT_WEEKS_BACK, ProgressionAction, analyze_exercise
from fitcoach.server.schemas import (
    ExerciseUpdate,
    ProgramProgressionResult,
    ProgressionJobResponse,
    ProgressionJobSummary,
)

from .programs import calculate_program_progress

logger = logging.getLogger(__name__)

CHANGING_ACTIONS = {
    ProgressionAction.INCREASE_WEIGHT,
    ProgressionAction.MICRO_INCREASE,
    ProgressionAction.DECREASE_WEIGHT,
    ProgressionAction.DELOAD,
}


class ProgressionService:
    """Applies exercise analysis results to program items."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.programs = ProgramRepository(session)
        self.set_logs = SetLogRepository(session)
        self.events = ProgressionEventRepository(session)

    async def auto_progress_program(
        self,
        program: ClientProgram,
        *,
        source: str = "weekly_job",
        weeks: int = DEFAULT_WEEKS_BACK,
        now: Optional[datetime] = None,
    ) -> ProgramProgressionResult:
        """
        Analyze and update every item of one program.

        Items whose analysis keeps the load unchanged are left alone. All
        changes of the program are committed together.
        """
        now = now or utc_now()
        since = now - timedelta(weeks=weeks)
        result = ProgramProgressionResult(success=True, program_id=program.id)

        for item in await self.programs.list_items(program.id):
            logs = await self.set_logs.list_for_item_since(item.id, since)
            analysis = analyze_exercise(
                logs, item.weight_kg, item.reps, item.exercise_name, weeks=weeks, now=as_utc(now)
            )
            if analysis.action not in CHANGING_ACTIONS:
                continue
            weight_changed = analysis.suggested_weight != item.weight_kg
            reps_changed = analysis.suggested_reps is not None and analysis.suggested_reps != item.reps
            if not (weight_changed or reps_changed):
                continue

            self.session.add(
                ProgressionEvent(
                    program_id=program.id,
                    client_item_id=item.id,
                    action=analysis.action.value,
                    old_weight=item.weight_kg,
                    new_weight=analysis.suggested_weight,
                    old_reps=item.reps,
                    new_reps=analysis.suggested_reps,
                    reason=analysis.reason,
                    source=source,
                    created_at=now,
                )
            )
            item.weight_kg = analysis.suggested_weight
            if reps_changed:
                item.reps = analysis.suggested_reps
            self.session.add(item)

            result.updates_made += 1
            if analysis.deload_needed:
                result.deload_exercises += 1
            result.progressions.append(
                ExerciseUpdate(item_id=item.id, exercise_name=item.exercise_name, progression=analysis)
            )

        await self.session.commit()
        result.success = result.updates_made > 0
        logger.info(f"Program {program.id}: {result.updates_made} exercise updates ({source})")
        return result

    async def history(self, program_id: int) -> List[ProgressionEvent]:
        """Applied progression changes of one program, newest first."""
        return await self.events.list_for_program(program_id)

    async def complete_due_programs(self, today: Optional[date] = None) -> int:
        """Mark active programs past their planned duration as completed."""
        today = today or utc_now().date()
        completed = 0
        for program in await self.programs.list_active():
            if not calculate_program_progress(program, today).is_due_for_completion:
                continue
            program.status = "completed"
            program.is_active = False
            program.completed_at = utc_now()
            self.session.add(program)
            completed += 1
        await self.session.commit()
        if completed:
            logger.info(f"Marked {completed} programs as completed")
        return completed

    async def run_weekly(self, now: Optional[datetime] = None) -> ProgressionJobResponse:
        """Run the weekly batch and report what it did."""
        now = now or utc_now()
        programs = await self.programs.list_auto_progression_candidates()
        program_ids = [program.id for program in programs]
        logger.info(f"Weekly auto-progression started for {len(program_ids)} programs")
        summary = ProgressionJobSummary(total_programs=len(program_ids))

        for program_id in program_ids:
            try:
                program = await self.programs.get_by_id(program_id)
                result = await self.auto_progress_program(program, now=now)
            except Exception as e:
                await self.session.rollback()
                logger.error(f"Failed to auto-progress program {program_id}: {e}", exc_info=True)
                summary.failed_programs.append(program_id)
                continue

            summary.processed_programs += 1
            if result.success:
                summary.successful_progressions += 1
                summary.total_exercise_updates += result.updates_made
                summary.progression_details.append(result)

        summary.completed_programs = await self.complete_due_programs(now.date())
        message = (
            f"Processed {summary.processed_programs} programs, "
            f"updated {summary.total_exercise_updates} exercises, "
            f"completed {summary.completed_programs} programs"
        )
        log_job_run("weekly_auto_progression", summary.model_dump(exclude={"progression_details"}))
        return ProgressionJobResponse(timestamp=now, summary=summary, message=message)
