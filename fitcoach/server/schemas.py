"""
API Schemas.

This module contains Pydantic models used for API request bodies and response validation
that are not plain views of a database entity. Entity views live next to the
entities in ``fitcoach.core.database.entities``.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fitcoach.core.program import DayTotals, Exercise
from fitcoach.core.progression import ExerciseProgression, WorkoutProgression
from fitcoach.core.slots import Slot

EMAIL_PATTERN = r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$"


# ---------------------------------------------------------------------------
# Trial
# ---------------------------------------------------------------------------


class TrialStartRequest(BaseModel):
    """
    Schema for the public trial signup.

    Creates a confirmed account and starts the 7-day trial in one step.
    """

    email: str = Field(..., pattern=EMAIL_PATTERN, description="Login email of the new account.")
    password: str = Field(..., min_length=6, description="Password of the new account.")

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    model_config = ConfigDict(json_schema_extra={"example": {"email": "mari@example.com", "password": "salasona1"}})


class TrialStartResponse(BaseModel):
    success: bool = True
    message: str = "7-day trial started successfully"
    user_id: str
    product: str
    trial_ends_at: datetime


# ---------------------------------------------------------------------------
# Programs and workouts
# ---------------------------------------------------------------------------


class ProgramProgress(BaseModel):
    """
    Where an assigned program stands in its planned duration.
    """

    program_id: int
    user_id: str
    start_date: Optional[date] = None
    duration_weeks: int
    status: str
    completed_at: Optional[datetime] = None
    auto_progression_enabled: bool
    weeks_elapsed: int = Field(..., description="Full weeks since the start date.")
    progress_percentage: float = Field(..., description="0-100, capped at 100.")
    is_due_for_completion: bool
    completed_sessions: int = 0


class SessionStart(BaseModel):
    client_day_id: int = Field(..., description="The program day the workout follows.")


class SessionFeedbackResponse(BaseModel):
    session_id: int
    progression: WorkoutProgression
    summary: str


class ExerciseAnalysisResponse(BaseModel):
    program_id: int
    item_id: int
    exercise_name: str
    analysis: ExerciseProgression


# ---------------------------------------------------------------------------
# Static program
# ---------------------------------------------------------------------------


class StaticDayView(BaseModel):
    day: int
    title: Optional[str] = None
    hint: Optional[str] = None
    exercises: List[Exercise] = Field(default_factory=list)
    totals: DayTotals


class StaticStatus(BaseModel):
    """
    Progress of a user through the shared 20-day static program.
    """

    started: bool
    start_monday: Optional[date] = None
    today: date
    is_program_day: bool
    completed_count: int = 0
    current_day: Optional[int] = Field(default=None, description="1..20, the next day to complete.")
    cycle: int = 0
    week: Optional[int] = None
    completed_today: bool = False
    can_complete_today: bool = False
    streak: int = 0
    day: Optional[StaticDayView] = None


class StaticStartRequest(BaseModel):
    start_monday: Optional[date] = Field(
        default=None, description="Monday to start on; defaults to the current (or next, on weekends) Monday."
    )


class StaticCompletion(BaseModel):
    success: bool = True
    day: int
    day_key: str
    total_sets: int
    total_reps: int
    completed_count: int
    streak: int


# ---------------------------------------------------------------------------
# Progression jobs
# ---------------------------------------------------------------------------


class ExerciseUpdate(BaseModel):
    item_id: int
    exercise_name: str
    progression: ExerciseProgression


class ProgramProgressionResult(BaseModel):
    success: bool
    program_id: int
    updates_made: int = 0
    deload_exercises: int = 0
    progressions: List[ExerciseUpdate] = Field(default_factory=list)


class ProgressionJobSummary(BaseModel):
    total_programs: int = 0
    processed_programs: int = 0
    successful_progressions: int = 0
    total_exercise_updates: int = 0
    failed_programs: List[int] = Field(default_factory=list)
    completed_programs: int = 0
    progression_details: List[ProgramProgressionResult] = Field(default_factory=list)


class ProgressionJobResponse(BaseModel):
    success: bool = True
    timestamp: datetime
    summary: ProgressionJobSummary
    message: str


# ---------------------------------------------------------------------------
# Billing
# ---------------------------------------------------------------------------


class CheckoutRequest(BaseModel):
    price_id: str = Field(..., description="Catalog price to purchase.")
    success_url: Optional[str] = Field(default=None, description="Overrides the default success page.")
    cancel_url: Optional[str] = Field(default=None, description="Overrides the default pricing page.")


class CheckoutResponse(BaseModel):
    url: Optional[str]
    session_id: str
    mode: str


class VerifyPaymentRequest(BaseModel):
    session_id: str


class VerifyPaymentResponse(BaseModel):
    success: bool = True
    message: str = "Payment verified and access granted"
    session_id: str
    granted: List[str] = Field(default_factory=list, description="Products that are now active.")


class PortalRequest(BaseModel):
    return_url: Optional[str] = None


class PortalResponse(BaseModel):
    url: str


class WebhookResponse(BaseModel):
    received: bool = True
    duplicate: bool = False
    handled: bool = False


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


class AvailableSlotsRequest(BaseModel):
    start_date: date
    end_date: date
    service_type: Optional[str] = Field(default=None, description="Sets the slot length to the service duration.")
    duration_minutes: Optional[int] = Field(default=None, gt=0)


class AvailableSlotsResponse(BaseModel):
    slots: List[Slot]
    timezone: str
    duration_minutes: int


class BookingCreate(BaseModel):
    service_type: str
    client_name: str = Field(..., min_length=1)
    client_email: str
    client_phone: Optional[str] = None
    preferred_date: Optional[datetime] = None
    pre_meeting_info: Dict[str, Any] = Field(default_factory=dict)


class BookingCreateResponse(BaseModel):
    booking_id: int
    payment_intent_id: str
    client_secret: Optional[str]
    service_name: str
    amount: int
    currency: str


class BookingConfirm(BaseModel):
    selected_slot: Slot


# ---------------------------------------------------------------------------
# Account, email and admin
# ---------------------------------------------------------------------------


class PasswordResetRequest(BaseModel):
    email: str
    redirect_to: Optional[str] = None


class AcceptedResponse(BaseModel):
    message: str


class BrandedEmailRequest(BaseModel):
    to: str = Field(..., pattern=EMAIL_PATTERN)
    subject: str = Field(..., min_length=1)
    html: str = Field(..., min_length=1, description="Body content, wrapped in the branded layout.")
    text: Optional[str] = None


class EmailSentResponse(BaseModel):
    success: bool = True
    message: str = "Email sent successfully"
    id: Optional[str] = None


class AnalyticsSummary(BaseModel):
    total_users: int
    new_users_7d: int
    active_entitlements: Dict[str, int]
    trialing_entitlements: Dict[str, int]
    sessions_7d: int
    open_conversations: int
    generated_at: datetime
