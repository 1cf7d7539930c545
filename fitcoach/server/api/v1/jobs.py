"""
API endpoints triggered by the scheduler.

Every endpoint requires the shared ``X-Cron-Secret`` header.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from fitcoach.server.schemas import ProgressionJobResponse
from fitcoach.server.services.deps import SessionDep, require_cron_secret
from fitcoach.server.services.progression import ProgressionService

router = APIRouter(tags=["jobs"], dependencies=[Depends(require_cron_secret)])


@router.post(
    "/weekly-auto-progression",
    response_model=ProgressionJobResponse,
    summary="Run Weekly Auto-progression",
    description=(
        "Analyze every active program with auto-progression enabled, apply the suggested loads and record "
        "progression events. A failing program is reported and skipped. Programs past their planned "
        "duration are then marked completed."
    ),
    response_description="Counts of processed, updated, failed and completed programs.",
    responses={403: {"description": "Missing or invalid cron secret"}},
)
async def weekly_auto_progression(session: SessionDep) -> ProgressionJobResponse:
    return await ProgressionService(session).run_weekly()
