"""
Service for paid consultation bookings.

A booking starts as a pending request tied to a payment intent. Once the
payment has succeeded the client picks a slot and the booking is confirmed;
confirmation emails go to the client and, when configured, to the coach.
Email failures are logged and never undo a confirmation.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fitcoach.clients import EmailClient, StripeClient
from fitcoach.core.access import as_utc
from fitcoach.core.database.entities.bookings import BookingRequest
from fitcoach.core.database.repositories import BookingRepository
from fitcoach.core.errors import FitcoachError, NotFoundError, PaymentError, ValidationFailedError
from fitcoach.core.slots import SERVICES, Service, Slot, generate_available_slots, is_available_slot
from fitcoach.core.workweek import DEFAULT_TIMEZONE
from fitcoach.server.schemas import (
    EMAIL_PATTERN,
    AvailableSlotsResponse,
    BookingConfirm,
    BookingCreate,
    BookingCreateResponse,
)

from .emails import booking_admin_email, booking_confirmation_email

logger = logging.getLogger(__name__)

_EMAIL = re.compile(EMAIL_PATTERN)

MAX_SLOT_RANGE_DAYS = 90


def get_service(service_type: str) -> Service:
    service = SERVICES.get(service_type)
    if service is None:
        raise ValidationFailedError(f"Invalid service type: {service_type}")
    return service


class BookingService:
    """Slot availability, booking creation and confirmation."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        stripe: Optional[StripeClient] = None,
        email: Optional[EmailClient] = None,
        admin_email: Optional[str] = None,
        tz_name: Optional[str] = None,
    ):
        self.session = session
        self.stripe = stripe
        self.email = email
        self.admin_email = admin_email
        self.tz_name = tz_name or DEFAULT_TIMEZONE
        self.bookings = BookingRepository(session)

    async def available_slots(
        self,
        start_date: date,
        end_date: date,
        *,
        service_type: Optional[str] = None,
        duration_minutes: Optional[int] = None,
    ) -> AvailableSlotsResponse:
        """Generated consultation slots minus confirmed bookings."""
        if end_date < start_date:
            raise ValidationFailedError("end_date must not be before start_date")
        if (end_date - start_date).days > MAX_SLOT_RANGE_DAYS:
            raise ValidationFailedError(f"Date range must not exceed {MAX_SLOT_RANGE_DAYS} days")
        if duration_minutes is None:
            duration_minutes = get_service(service_type).duration_minutes if service_type else 60

        busy = await self._busy_between(start_date, end_date)
        slots = generate_available_slots(start_date, end_date, duration_minutes, busy, self.tz_name)
        return AvailableSlotsResponse(slots=slots, timezone=self.tz_name, duration_minutes=duration_minutes)

    async def _busy_between(self, start_date: date, end_date: date, exclude_id: Optional[int] = None) -> list[Slot]:
        # Bookings may start the day before (UTC) and still overlap the first local day.
        window_start = datetime.combine(start_date - timedelta(days=1), time.min, tzinfo=timezone.utc)
        window_end = datetime.combine(end_date + timedelta(days=1), time.max, tzinfo=timezone.utc)
        return [
            Slot(start=as_utc(b.preferred_date), end=as_utc(b.preferred_date) + timedelta(minutes=b.duration_minutes))
            for b in await self.bookings.list_confirmed_between(window_start, window_end)
            if b.id != exclude_id
        ]

    async def create(self, payload: BookingCreate, user_id: str, user_email: Optional[str]) -> BookingCreateResponse:
        """
        Create a payment intent and the pending booking request it pays for.

        Raises:
            ValidationFailedError: Unknown service or malformed email.
        """
        service = get_service(payload.service_type)
        client_email = payload.client_email.strip().lower()
        if not _EMAIL.match(client_email):
            raise ValidationFailedError("Invalid email format", code="INVALID_EMAIL")
        client_name = payload.client_name.strip()
        if not client_name:
            raise ValidationFailedError("Client name is required", code="REQUIRED_FIELD_MISSING")

        customer_id = None
        if user_email:
            customer = await self.stripe.find_customer_by_email(user_email)
            customer_id = customer.id if customer else None
        intent = await self.stripe.create_payment_intent(
            amount=service.price_cents,
            currency=service.currency,
            customer=customer_id,
            metadata={
                "service_type": service.id,
                "preferred_date": payload.preferred_date.isoformat() if payload.preferred_date else "",
                "client_name": client_name,
                "client_email": client_email,
            },
        )
        booking = await self.bookings.create(
            BookingRequest(
                user_id=user_id,
                service_type=service.id,
                status="pending",
                preferred_date=as_utc(payload.preferred_date) if payload.preferred_date else None,
                duration_minutes=service.duration_minutes,
                client_name=client_name,
                client_email=client_email,
                client_phone=(payload.client_phone or "").strip() or None,
                pre_meeting_info=payload.pre_meeting_info,
                stripe_payment_intent_id=intent.id,
            )
        )
        logger.info(f"Booking {booking.id} created for {user_id}, service {service.id}")
        return BookingCreateResponse(
            booking_id=booking.id,
            payment_intent_id=intent.id,
            client_secret=intent.client_secret,
            service_name=service.name,
            amount=service.price_cents,
            currency=service.currency,
        )

    async def confirm(self, booking_id: int, payload: BookingConfirm, user_id: str, is_admin: bool = False) -> BookingRequest:
        """
        Confirm a paid booking for the selected slot.

        Raises:
            NotFoundError: No such booking for the caller.
            PaymentError: The payment intent has not succeeded.
            ValidationFailedError: The slot is taken or off the consultation schedule.
        """
        booking = await self.bookings.get_by_id(booking_id)
        if booking is None or (booking.user_id != user_id and not is_admin):
            raise NotFoundError(f"Booking {booking_id} not found")
        if not booking.stripe_payment_intent_id:
            raise PaymentError(f"Booking {booking_id} has no payment")
        intent = await self.stripe.retrieve_payment_intent(booking.stripe_payment_intent_id)
        if intent.status != "succeeded":
            raise PaymentError("Payment not completed", details={"status": intent.status})

        slot = payload.selected_slot
        start = as_utc(slot.start)
        day = start.date()
        busy = await self._busy_between(day, day, exclude_id=booking.id)
        if not is_available_slot(slot, booking.duration_minutes, busy, self.tz_name):
            raise ValidationFailedError(
                "Selected slot is not available",
                code="SLOT_UNAVAILABLE",
                details={"start": start.isoformat(), "duration_minutes": booking.duration_minutes},
            )
        booking.status = "confirmed"
        booking.preferred_date = start
        booking = await self.bookings.update(booking)
        logger.info(f"Booking {booking.id} confirmed for {start.isoformat()}")
        await self._notify(booking, start, intent.amount)
        return booking

    async def _notify(self, booking: BookingRequest, start: datetime, amount_cents: int) -> None:
        if self.email is None or not self.email.configured:
            logger.warning(f"Email not configured, skipping confirmation emails for booking {booking.id}")
            return
        service = SERVICES.get(booking.service_type)
        service_name = service.name if service else booking.service_type
        try:
            subject, html = booking_confirmation_email(
                booking.client_name, service_name, start, booking.duration_minutes, self.tz_name
            )
            await self.email.send(booking.client_email, subject, html)
        except FitcoachError as e:
            logger.error(f"Failed to send confirmation email for booking {booking.id}: {e}")

        if not self.admin_email:
            return
        try:
            subject, html = booking_admin_email(
                client_name=booking.client_name,
                client_email=booking.client_email,
                client_phone=booking.client_phone,
                service_name=service_name,
                start=start,
                duration_minutes=booking.duration_minutes,
                amount_cents=amount_cents,
                tz_name=self.tz_name,
            )
            await self.email.send(self.admin_email, subject, html)
        except FitcoachError as e:
            logger.error(f"Failed to send admin notification for booking {booking.id}: {e}")
