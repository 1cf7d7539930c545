"""
API endpoints for paid consultation bookings.

The client checks available slots, pays for a service through a payment
intent, and confirms the booking with the slot they picked once the payment
has gone through.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from fitcoach.core.database.entities.bookings import BookingRead
from fitcoach.core.slots import SERVICES, Service
from fitcoach.server.core.config import settings
from fitcoach.server.schemas import (
    AvailableSlotsRequest,
    AvailableSlotsResponse,
    BookingConfirm,
    BookingCreate,
    BookingCreateResponse,
)
from fitcoach.server.services.bookings import BookingService
from fitcoach.server.services.deps import CurrentUserDep, EmailClientDep, SessionDep, StripeClientDep

router = APIRouter(tags=["bookings"])


@router.get(
    "/services",
    response_model=list[Service],
    summary="List Services",
    description="Bookable consultation services with their price and duration.",
    response_description="All services.",
)
async def list_services() -> list[Service]:
    return list(SERVICES.values())


@router.post(
    "/available-slots",
    response_model=AvailableSlotsResponse,
    summary="List Available Slots",
    description="Working-hour slots in the coaching timezone between two dates, minus confirmed bookings.",
    response_description="Free slots.",
    responses={422: {"description": "Invalid date range or service"}},
)
async def available_slots(payload: AvailableSlotsRequest, session: SessionDep) -> AvailableSlotsResponse:
    return await BookingService(session, tz_name=settings.timezone).available_slots(
        payload.start_date,
        payload.end_date,
        service_type=payload.service_type,
        duration_minutes=payload.duration_minutes,
    )


@router.post(
    "",
    response_model=BookingCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Booking",
    description="Create a payment intent for a service and a pending booking request paid by it.",
    response_description="The booking id and the client secret to complete the payment.",
    responses={
        401: {"description": "Not signed in"},
        422: {"description": "Unknown service, invalid email or missing name"},
    },
)
async def create_booking(
    payload: BookingCreate, user: CurrentUserDep, session: SessionDep, stripe: StripeClientDep
) -> BookingCreateResponse:
    """
    Create a booking.

    - **service_type**: initial_assessment, personal_program or monthly_support.
    - **client_name** / **client_email** / **client_phone**: Contact details.
    - **preferred_date**: Optional initial preference.
    - **pre_meeting_info**: Free-form questionnaire answers.
    """
    service = BookingService(session, stripe=stripe, tz_name=settings.timezone)
    return await service.create(payload, user.id, user.email)


@router.post(
    "/{booking_id}/confirm",
    response_model=BookingRead,
    summary="Confirm Booking",
    description="Confirm a paid booking for the selected slot and send the confirmation emails.",
    response_description="The confirmed booking.",
    responses={
        400: {"description": "Payment not completed"},
        404: {"description": "Booking not found"},
    },
)
async def confirm_booking(
    booking_id: int,
    payload: BookingConfirm,
    user: CurrentUserDep,
    session: SessionDep,
    stripe: StripeClientDep,
    email: EmailClientDep,
) -> BookingRead:
    service = BookingService(
        session,
        stripe=stripe,
        email=email,
        admin_email=settings.email.admin_address,
        tz_name=settings.timezone,
    )
    booking = await service.confirm(booking_id, payload, user.id, user.is_admin)
    return BookingRead.model_validate(booking)
