"""
API endpoints for subscriptions and one-off purchases.

Checkout and the billing portal are hosted by the payment provider. Access is
granted either when the buyer returns and the checkout is verified, or when
the provider's webhook reports the payment; both paths are idempotent.
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Header, Request

from fitcoach.clients import verify_webhook_signature
from fitcoach.core.logging_config import get_logger
from fitcoach.core.plans import PLANS, Plan
from fitcoach.server.core.config import settings
from fitcoach.server.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    PortalRequest,
    PortalResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
    WebhookResponse,
)
from fitcoach.server.services.billing import BillingService
from fitcoach.server.services.deps import CurrentUserDep, OptionalUserDep, SessionDep, StripeClientDep

logger = get_logger(__name__)

router = APIRouter(tags=["billing"])


@router.get(
    "/plans",
    response_model=list[Plan],
    summary="List Plans",
    description="The subscription catalog shown on the pricing page.",
    response_description="All plans, trial first.",
)
async def list_plans() -> list[Plan]:
    return list(PLANS.values())


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    summary="Create Checkout",
    description=(
        "Open a hosted checkout for a catalog price. Signed-in buyers are linked to their account; "
        "anonymous callers check out as guests."
    ),
    response_description="The hosted checkout URL.",
    responses={
        400: {"description": "Unknown price"},
        502: {"description": "Payment provider error"},
    },
)
async def create_checkout(
    payload: CheckoutRequest, user: OptionalUserDep, session: SessionDep, stripe: StripeClientDep
) -> CheckoutResponse:
    """
    Create a checkout session.

    - **price_id**: Catalog price to purchase.
    - **success_url** / **cancel_url**: Optional redirect overrides.
    """
    service = BillingService(session, stripe, settings.site_url)
    return await service.create_checkout(
        payload.price_id,
        user_id=user.id if user else None,
        email=user.email if user else None,
        success_url=payload.success_url,
        cancel_url=payload.cancel_url,
    )


@router.post(
    "/verify",
    response_model=VerifyPaymentResponse,
    summary="Verify Payment",
    description="Confirm a finished checkout belongs to the caller and was paid, then grant its entitlements.",
    response_description="The products that are now active.",
    responses={
        400: {"description": "Payment not completed or unknown price"},
        403: {"description": "The checkout belongs to another user"},
    },
)
async def verify_payment(
    payload: VerifyPaymentRequest, user: CurrentUserDep, session: SessionDep, stripe: StripeClientDep
) -> VerifyPaymentResponse:
    return await BillingService(session, stripe, settings.site_url).verify_checkout(payload.session_id, user.id)


@router.post(
    "/portal",
    response_model=PortalResponse,
    summary="Open Billing Portal",
    description="Open the hosted billing portal where the caller manages their subscription.",
    response_description="The portal URL.",
    responses={404: {"description": "The caller has no billing customer"}},
)
async def open_portal(
    user: CurrentUserDep, session: SessionDep, stripe: StripeClientDep, payload: Optional[PortalRequest] = None
) -> PortalResponse:
    service = BillingService(session, stripe, settings.site_url)
    return await service.create_portal(user.id, user.email, payload.return_url if payload else None)


@router.post(
    "/webhook",
    response_model=WebhookResponse,
    summary="Payment Webhook",
    description="Receive signed payment provider events. Repeated deliveries of an event are acknowledged and skipped.",
    response_description="Whether the event was new and handled.",
    responses={400: {"description": "Missing or invalid signature"}},
)
async def payment_webhook(
    request: Request,
    session: SessionDep,
    stripe: StripeClientDep,
    stripe_signature: Annotated[Optional[str], Header()] = None,
) -> WebhookResponse:
    payload = await request.body()
    config = settings.stripe
    event = verify_webhook_signature(
        payload, stripe_signature, config.webhook_secret, tolerance=config.webhook_tolerance_seconds
    )
    logger.info(f"Webhook event {event['id']} received: {event['type']}")
    return await BillingService(session, stripe, settings.site_url).handle_event(event)
