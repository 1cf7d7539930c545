"""Outbound HTTP clients.

Thin async clients for the hosted auth service, the payment provider and the
email delivery API. Each one accepts an injected ``httpx.AsyncClient`` (tests
pass one built on ``httpx.MockTransport``) and raises
``fitcoach.core.errors.ProviderError`` on unexpected responses.
"""

from .auth import AuthClient, AuthUser
from .email import EmailClient
from .stripe import StripeClient, WebhookSignatureError, verify_webhook_signature

__all__ = [
    "AuthClient",
    "AuthUser",
    "EmailClient",
    "StripeClient",
    "WebhookSignatureError",
    "verify_webhook_signature",
]
