"""
Service for subscription checkout, payment verification, the billing portal
and payment provider webhooks.

Entitlements are upserted on ``(user_id, product)`` so verifying the same
checkout twice, or replaying a webhook, never duplicates access rows. Webhook
event ids are stored once applied; a repeated delivery is acknowledged and
skipped.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fitcoach.clients import StripeClient
from fitcoach.core.database.base import utc_now
from fitcoach.core.database.entities.billing import Payment
from fitcoach.core.database.repositories import (
    EntitlementRepository,
    PaymentRepository,
    StripeEventRepository,
    SubscriberRepository,
)
from fitcoach.core.errors import NotFoundError, PaymentError, ValidationFailedError
from fitcoach.core.monitoring import log_billing_event
from fitcoach.core.plans import checkout_mode, grants_for_price, plan_for_price
from fitcoach.server.schemas import CheckoutResponse, PortalResponse, VerifyPaymentResponse, WebhookResponse

logger = logging.getLogger(__name__)


class BillingService:
    """Bridges the payment provider and the entitlement tables."""

    def __init__(self, session: AsyncSession, stripe: StripeClient, site_url: str):
        self.session = session
        self.stripe = stripe
        self.site_url = site_url.rstrip("/")
        self.entitlements = EntitlementRepository(session)
        self.subscribers = SubscriberRepository(session)
        self.payments = PaymentRepository(session)
        self.events = StripeEventRepository(session)

    async def create_checkout(
        self,
        price_id: str,
        *,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> CheckoutResponse:
        """
        Open a hosted checkout for ``price_id``.

        Signed-in buyers are attached to their existing customer (or their
        email is prefilled); guests check out anonymously.
        """
        if not price_id:
            raise ValidationFailedError("Price ID is required", code="REQUIRED_FIELD_MISSING")
        mode = checkout_mode(price_id)
        customer_id = None
        if email:
            customer = await self.stripe.find_customer_by_email(email)
            customer_id = customer.id if customer else None

        metadata: Dict[str, str] = {"price_id": price_id}
        if user_id:
            metadata["user_id"] = user_id
        else:
            logger.info("No authenticated user, proceeding with guest checkout")

        session = await self.stripe.create_checkout_session(
            price_id=price_id,
            mode=mode,
            success_url=success_url or f"{self.site_url}/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=cancel_url or f"{self.site_url}/pricing",
            customer=customer_id,
            customer_email=None if customer_id else email,
            metadata=metadata,
        )
        logger.info(f"Checkout session {session.id} created in {mode} mode for price {price_id}")
        return CheckoutResponse(url=session.url, session_id=session.id, mode=mode)

    async def verify_checkout(self, session_id: str, user_id: str, now: Optional[datetime] = None) -> VerifyPaymentResponse:
        """
        Grant the entitlements of a paid checkout session.

        Raises:
            PaymentError: The session is unpaid, belongs to another user, or
                bought an unknown price.
        """
        checkout = await self.stripe.retrieve_checkout_session(session_id)
        if checkout.payment_status != "paid":
            raise PaymentError("Payment not completed", details={"payment_status": checkout.payment_status})
        if checkout.metadata.get("user_id") != user_id:
            raise PaymentError("User ID mismatch", code="PERMISSION_DENIED", status_code=403)

        price_id = checkout.metadata.get("price_id")
        now = now or utc_now()
        grants = grants_for_price(price_id, now)
        plan = plan_for_price(price_id)
        source = f"stripe_{plan.id}" if plan else "stripe"
        for grant in grants:
            await self.entitlements.upsert(
                user_id,
                grant.product.value,
                status=grant.status,
                paused=grant.paused,
                started_at=now,
                expires_at=grant.expires_at,
                trial_ends_at=None,
                source=source,
                note=f"{plan.name if plan else price_id} - Session: {session_id}",
            )

        if checkout.customer:
            await self.subscribers.upsert(
                user_id,
                stripe_customer_id=checkout.customer,
                subscribed=True,
                status="active",
                paused=False,
                plan=plan.id if plan else None,
                subscription_tier=plan.tier.value if plan else None,
            )
        granted = [grant.product.value for grant in grants]
        log_billing_event("checkout.verified", session_id, True, user_id)
        logger.info(f"Payment verified for {user_id}, granted {granted}")
        return VerifyPaymentResponse(session_id=session_id, granted=granted)

    async def create_portal(self, user_id: str, email: Optional[str], return_url: Optional[str] = None) -> PortalResponse:
        """
        Open the billing portal for the caller's customer record.

        Raises:
            NotFoundError: The caller never became a customer.
        """
        customer_id = None
        if email:
            customer = await self.stripe.find_customer_by_email(email)
            customer_id = customer.id if customer else None
        if customer_id is None:
            subscriber = await self.subscribers.get_by_user(user_id)
            customer_id = subscriber.stripe_customer_id if subscriber else None
        if customer_id is None:
            raise NotFoundError(f"No billing customer found for user {user_id}")
        portal = await self.stripe.create_portal_session(customer_id, return_url or f"{self.site_url}/account")
        return PortalResponse(url=portal.url)

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    async def handle_event(self, event: Dict[str, Any]) -> WebhookResponse:
        """Apply one verified webhook event exactly once."""
        event_id, event_type = event["id"], event["type"]
        if await self.events.seen(event_id):
            logger.info(f"Duplicate webhook event {event_id} ({event_type}) ignored")
            return WebhookResponse(duplicate=True)

        handler: Optional[Callable] = {
            "checkout.session.completed": self._checkout_completed,
            "invoice.payment_succeeded": self._payment_succeeded,
            "invoice.payment_failed": self._payment_failed,
            "customer.subscription.updated": self._subscription_updated,
            "customer.subscription.deleted": self._subscription_deleted,
        }.get(event_type)

        obj = (event.get("data") or {}).get("object") or {}
        user_id = None
        if handler is None:
            logger.info(f"Unhandled webhook event type {event_type}")
        else:
            user_id = await handler(obj)
        await self.events.record(event_id, event_type)
        log_billing_event(event_type, event_id, handler is not None and user_id is not None, user_id)
        return WebhookResponse(handled=handler is not None and user_id is not None)

    async def _subscriber_for(self, customer_id: Optional[str]):
        subscriber = await self.subscribers.get_by_customer(customer_id) if customer_id else None
        if subscriber is None:
            logger.warning(f"No subscriber found for customer {customer_id}")
        return subscriber

    async def _checkout_completed(self, obj: Dict[str, Any]) -> Optional[str]:
        user_id = (obj.get("metadata") or {}).get("user_id")
        customer_id = obj.get("customer")
        if not user_id or not customer_id:
            logger.info(f"Checkout {obj.get('id')} completed without a user or customer to record")
            return None
        email = obj.get("customer_email") or (obj.get("customer_details") or {}).get("email")
        plan = plan_for_price((obj.get("metadata") or {}).get("price_id"))
        fields: Dict[str, Any] = {"stripe_customer_id": customer_id, "plan": plan.id if plan else None}
        if email:
            fields["email"] = email
        await self.subscribers.upsert(user_id, **fields)
        return user_id

    async def _payment_succeeded(self, invoice: Dict[str, Any]) -> Optional[str]:
        subscriber = await self._subscriber_for(invoice.get("customer"))
        if subscriber is None:
            return None
        invoice_id = invoice.get("id")
        if not invoice_id or await self.payments.get_by_invoice(invoice_id) is None:
            await self.payments.create(
                Payment(
                    user_id=subscriber.user_id,
                    stripe_invoice_id=invoice_id,
                    stripe_customer_id=invoice.get("customer"),
                    amount_cents=int(invoice.get("amount_paid") or 0),
                    currency=invoice.get("currency") or "eur",
                    status="paid",
                )
            )
        await self.subscribers.upsert(subscriber.user_id, status="active", subscribed=True, paused=False)
        await self.entitlements.update_all_for_user(subscriber.user_id, status="active", paused=False)
        logger.info(f"Payment processed for {subscriber.user_id}")
        return subscriber.user_id

    async def _payment_failed(self, invoice: Dict[str, Any]) -> Optional[str]:
        subscriber = await self._subscriber_for(invoice.get("customer"))
        if subscriber is None:
            return None
        await self.subscribers.upsert(subscriber.user_id, status="past_due")
        logger.info(f"Payment failure recorded for {subscriber.user_id}")
        return subscriber.user_id

    async def _subscription_updated(self, subscription: Dict[str, Any]) -> Optional[str]:
        subscriber = await self._subscriber_for(subscription.get("customer"))
        if subscriber is None:
            return None
        active = subscription.get("status") == "active"
        status = "active" if active else "inactive"
        period_end = subscription.get("current_period_end")
        fields: Dict[str, Any] = {"status": status, "subscribed": active, "paused": not active}
        if period_end:
            fields["subscription_end"] = datetime.fromtimestamp(int(period_end), timezone.utc)
        await self.subscribers.upsert(subscriber.user_id, **fields)
        await self.entitlements.update_all_for_user(subscriber.user_id, status=status, paused=not active)
        logger.info(f"Subscription updated for {subscriber.user_id}: {status}")
        return subscriber.user_id

    async def _subscription_deleted(self, subscription: Dict[str, Any]) -> Optional[str]:
        subscriber = await self._subscriber_for(subscription.get("customer"))
        if subscriber is None:
            return None
        await self.subscribers.upsert(subscriber.user_id, status="cancelled", subscribed=False)
        await self.entitlements.update_all_for_user(subscriber.user_id, status="inactive", paused=True)
        logger.info(f"Subscription cancelled for {subscriber.user_id}")
        return subscriber.user_id
