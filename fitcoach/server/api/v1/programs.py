"""
API endpoints for assigned programs and the workouts logged against them.

A user sees the programs assigned to them; admins see all. Workouts are
opened on one day of a program, filled with set logs, completed and
optionally rated. Exercise analysis shows what the next load would be.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from fitcoach.core.database.entities.programs import (
    ClientProgramDetail,
    ClientProgramRead,
    ProgressionEventRead,
    SetLogCreate,
    SetLogRead,
    WorkoutSessionRead,
)
from fitcoach.core.progression import DEFAULT_WEEKS_BACK, WorkoutFeedback
from fitcoach.server.schemas import (
    ExerciseAnalysisResponse,
    ProgramProgress,
    ProgramProgressionResult,
    SessionFeedbackResponse,
    SessionStart,
)
from fitcoach.server.services.deps import AdminUserDep, ProgramUserDep, SessionDep
from fitcoach.server.services.programs import ProgramService
from fitcoach.server.services.progression import ProgressionService

router = APIRouter(tags=["programs"])


@router.get(
    "/programs",
    response_model=list[ClientProgramRead],
    summary="List Programs",
    description="Programs assigned to the caller, newest first.",
    response_description="A list of assigned programs.",
    responses={403: {"description": "No personal training or trial access"}},
)
async def list_programs(user: ProgramUserDep, session: SessionDep) -> list[ClientProgramRead]:
    programs = await ProgramService(session).list_programs(user.id)
    return [ClientProgramRead.model_validate(p) for p in programs]


@router.get(
    "/programs/{program_id}",
    response_model=ClientProgramDetail,
    summary="Get Program",
    description="A program with its days and exercises, each with a formatted prescription and video embed URL.",
    response_description="The program detail.",
    responses={404: {"description": "Program not found or not assigned to the caller"}},
)
async def get_program(program_id: int, user: ProgramUserDep, session: SessionDep) -> ClientProgramDetail:
    return await ProgramService(session).get_detail(program_id, user.id, user.is_admin)


@router.get(
    "/programs/{program_id}/progress",
    response_model=ProgramProgress,
    summary="Get Program Progress",
    description="Weeks elapsed, progress percentage and whether the program is due for completion.",
    response_description="The program progress.",
)
async def get_program_progress(program_id: int, user: ProgramUserDep, session: SessionDep) -> ProgramProgress:
    return await ProgramService(session).get_progress(program_id, user.id, user.is_admin)


@router.post(
    "/programs/{program_id}/sessions",
    response_model=WorkoutSessionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Start Workout",
    description="Open a workout session on one day of the program. An unfinished session on that day is resumed.",
    response_description="The workout session.",
    responses={404: {"description": "Program or day not found"}},
)
async def start_session(
    program_id: int, payload: SessionStart, user: ProgramUserDep, session: SessionDep
) -> WorkoutSessionRead:
    """
    Start a workout.

    - **client_day_id**: The program day being trained.
    """
    workout = await ProgramService(session).start_session(program_id, payload.client_day_id, user.id)
    return WorkoutSessionRead.model_validate(workout)


@router.post(
    "/sessions/{session_id}/sets",
    response_model=SetLogRead,
    summary="Log Set",
    description="Record the weight, reps, RPE and RIR of one set. Logging the same set number again overwrites it.",
    response_description="The stored set log.",
    responses={
        404: {"description": "Session or exercise not found"},
        422: {"description": "Session already completed or invalid values"},
    },
)
async def log_set(session_id: int, payload: SetLogCreate, user: ProgramUserDep, session: SessionDep) -> SetLogRead:
    set_log = await ProgramService(session).log_set(session_id, payload, user.id)
    return SetLogRead.model_validate(set_log)


@router.post(
    "/sessions/{session_id}/complete",
    response_model=WorkoutSessionRead,
    summary="Complete Workout",
    description="Finish a workout session and store its duration. Completing twice keeps the first end time.",
    response_description="The completed workout session.",
)
async def complete_session(session_id: int, user: ProgramUserDep, session: SessionDep) -> WorkoutSessionRead:
    workout = await ProgramService(session).complete_session(session_id, user.id)
    return WorkoutSessionRead.model_validate(workout)


@router.post(
    "/sessions/{session_id}/feedback",
    response_model=SessionFeedbackResponse,
    summary="Submit Workout Feedback",
    description="Rate energy, soreness, pump, joint pain and difficulty; returns the volume and intensity adjustment.",
    response_description="The workout progression derived from the feedback.",
)
async def submit_feedback(
    session_id: int, feedback: WorkoutFeedback, user: ProgramUserDep, session: SessionDep
) -> SessionFeedbackResponse:
    return await ProgramService(session).submit_feedback(session_id, feedback, user.id)


@router.get(
    "/programs/{program_id}/items/{item_id}/analysis",
    response_model=ExerciseAnalysisResponse,
    summary="Analyze Exercise",
    description="Analyze recent set logs of one exercise and suggest the next working weight.",
    response_description="The exercise analysis.",
)
async def analyze_item(
    program_id: int,
    item_id: int,
    user: ProgramUserDep,
    session: SessionDep,
    weeks: int = Query(DEFAULT_WEEKS_BACK, ge=1, le=12, description="How many weeks of logs to consider."),
) -> ExerciseAnalysisResponse:
    return await ProgramService(session).analyze_item(program_id, item_id, user.id, user.is_admin, weeks)


@router.get(
    "/programs/{program_id}/progression-history",
    response_model=list[ProgressionEventRead],
    summary="Get Progression History",
    description="Weight and rep changes applied to the program by automatic progression, newest first.",
    response_description="A list of progression events.",
    responses={404: {"description": "Program not found or not assigned to the caller"}},
)
async def get_progression_history(
    program_id: int, user: ProgramUserDep, session: SessionDep
) -> list[ProgressionEventRead]:
    program = await ProgramService(session).get_program(program_id, user.id, user.is_admin)
    events = await ProgressionService(session).history(program.id)
    return [ProgressionEventRead.model_validate(e) for e in events]


@router.post(
    "/programs/{program_id}/auto-progress",
    response_model=ProgramProgressionResult,
    summary="Auto-progress Program",
    description="Admin only. Run automatic progression for a single program right away.",
    response_description="The exercise updates that were applied.",
    responses={403: {"description": "Caller is not an admin"}, 404: {"description": "Program not found"}},
)
async def auto_progress_program(program_id: int, admin: AdminUserDep, session: SessionDep) -> ProgramProgressionResult:
    program = await ProgramService(session).get_program(program_id, admin.id, is_admin=True)
    return await ProgressionService(session).auto_progress_program(program, source="admin")
