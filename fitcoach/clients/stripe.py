"""Payment provider client

Overview
--------
Wraps the official ``stripe`` SDK for the handful of objects the billing and
booking flows touch: customers, checkout sessions, billing portal sessions and
payment intents. Calls go through ``stripe.StripeClient`` and its ``*_async``
service methods; SDK objects are converted to the small pydantic models below
so services never depend on ``StripeObject``.

Webhook payloads are authenticated with ``verify_webhook_signature``, which
delegates the ``Stripe-Signature`` check to ``stripe.WebhookSignature`` and
returns the decoded event as a plain dict.

Errors
------
Any ``stripe.StripeError`` is re-raised as ``ProviderError``. Connection
failures carry ``NETWORK_ERROR`` so the API answers with the network message.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import stripe
from pydantic import BaseModel, Field

from fitcoach.core.errors import FitcoachError, ProviderError

DEFAULT_TOLERANCE_SECONDS = stripe.Webhook.DEFAULT_TOLERANCE

T = TypeVar("T")


class WebhookSignatureError(FitcoachError):
    """The webhook payload could not be authenticated."""

    code = "VALIDATION_ERROR"
    status_code = 400


class Customer(BaseModel):
    id: str
    email: Optional[str] = None


class CheckoutSession(BaseModel):
    id: str
    url: Optional[str] = None
    mode: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
    customer: Optional[str] = None
    customer_email: Optional[str] = None
    subscription: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)


class PortalSession(BaseModel):
    id: str
    url: str


class PaymentIntent(BaseModel):
    id: str
    status: str
    amount: int = 0
    currency: str = "eur"
    client_secret: Optional[str] = None
    customer: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)


def verify_webhook_signature(
    payload: bytes,
    signature_header: Optional[str],
    secret: Optional[str],
    *,
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
) -> Dict[str, Any]:
    """Authenticate a webhook payload and return the decoded event.

    A ``tolerance`` of 0 disables the timestamp age check.

    Raises:
        WebhookSignatureError: Missing secret or header, malformed header,
            stale timestamp, no matching signature, or a body that is not an event.
    """
    if not secret:
        raise WebhookSignatureError("Webhook signing secret is not configured")
    if not signature_header:
        raise WebhookSignatureError("Missing Stripe-Signature header")
    try:
        stripe.WebhookSignature.verify_header(payload, signature_header, secret, tolerance)
    except stripe.SignatureVerificationError as e:
        raise WebhookSignatureError(str(e.user_message or e)) from e

    try:
        event = json.loads(payload)
    except ValueError:
        raise WebhookSignatureError("Webhook body is not valid JSON") from None
    if not isinstance(event, dict) or "id" not in event or "type" not in event:
        raise WebhookSignatureError("Webhook body is not an event object")
    return event


class StripeClient:
    """Async facade over ``stripe.StripeClient`` for the calls the API makes."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        api_base: str = stripe.DEFAULT_API_BASE,
        timeout: float = 20.0,
        max_network_retries: int = 2,
        http_client: Optional[stripe.HTTPClient] = None,
    ) -> None:
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self._http_client = http_client or stripe.HTTPXClient(timeout=timeout)
        self._max_network_retries = max_network_retries
        self._sdk: Optional[stripe.StripeClient] = None
        self._logger = logging.getLogger(__name__)

    @property
    def sdk(self) -> stripe.StripeClient:
        if not self.api_key:
            raise ProviderError("Payment provider secret key is not configured", status_code=503)
        if self._sdk is None:
            self._sdk = stripe.StripeClient(
                self.api_key,
                base_addresses={"api": self.api_base},
                max_network_retries=self._max_network_retries,
                http_client=self._http_client,
            )
        return self._sdk

    async def _call(self, op: str, call: Callable[[], Awaitable[T]]) -> T:
        self._logger.debug("StripeClient: %s", op)
        try:
            return await call()
        except stripe.APIConnectionError as e:
            raise ProviderError(f"Payment provider {op} unreachable: {e.user_message}", code="NETWORK_ERROR") from e
        except stripe.StripeError as e:
            raise ProviderError(
                f"Payment provider {op} failed: {e.http_status} {e.user_message}",
                details=e.json_body,
            ) from e

    async def find_customer_by_email(self, email: str) -> Optional[Customer]:
        customers = await self._call(
            "customers.list", lambda: self.sdk.v1.customers.list_async(params={"email": email, "limit": 1})
        )
        items = customers.data
        return Customer.model_validate(items[0].to_dict()) if items else None

    async def create_checkout_session(
        self,
        *,
        price_id: str,
        mode: str,
        success_url: str,
        cancel_url: str,
        customer: Optional[str] = None,
        customer_email: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> CheckoutSession:
        params: Dict[str, Any] = {
            "mode": mode,
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata or {},
        }
        if customer:
            params["customer"] = customer
        elif customer_email:
            params["customer_email"] = customer_email
        session = await self._call(
            "checkout.sessions.create", lambda: self.sdk.v1.checkout.sessions.create_async(params=params)
        )
        return CheckoutSession.model_validate(session.to_dict())

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        session = await self._call(
            "checkout.sessions.retrieve", lambda: self.sdk.v1.checkout.sessions.retrieve_async(session_id)
        )
        return CheckoutSession.model_validate(session.to_dict())

    async def create_portal_session(self, customer: str, return_url: str) -> PortalSession:
        session = await self._call(
            "billing_portal.sessions.create",
            lambda: self.sdk.v1.billing_portal.sessions.create_async(
                params={"customer": customer, "return_url": return_url}
            ),
        )
        return PortalSession.model_validate(session.to_dict())

    async def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str = "eur",
        customer: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> PaymentIntent:
        params: Dict[str, Any] = {
            "amount": amount,
            "currency": currency,
            "metadata": metadata or {},
            "automatic_payment_methods": {"enabled": True},
        }
        if customer:
            params["customer"] = customer
        intent = await self._call(
            "payment_intents.create", lambda: self.sdk.v1.payment_intents.create_async(params=params)
        )
        return PaymentIntent.model_validate(intent.to_dict())

    async def retrieve_payment_intent(self, intent_id: str) -> PaymentIntent:
        intent = await self._call(
            "payment_intents.retrieve", lambda: self.sdk.v1.payment_intents.retrieve_async(intent_id)
        )
        return PaymentIntent.model_validate(intent.to_dict())

    async def aclose(self) -> None:
        await self._http_client.close_async()
