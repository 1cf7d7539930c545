"""Domain error types for fitcoach.

Purpose:
- Give the service layer typed exceptions that carry an error code from
  ``fitcoach.core.error_messages`` and the HTTP status the API should answer with.
- Keep provider context (status code, response body) for diagnosis.

Usage:
- Raise a subclass from services; ``fitcoach.server.exception_handlers`` renders
  it as localized JSON.
- Catch ``ProviderError`` around outbound HTTP calls to inspect ``status_code``
  or ``details``.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx


class FitcoachError(Exception):
    """Base error for failures surfaced to API clients.

    Args:
        message: Developer-facing description, logged and returned as ``detail``.
        code: Key into ``ERROR_MESSAGES``.
        status_code: HTTP status returned to the client.
        details: Optional structured payload for diagnosis.
    """

    code: str = "SYSTEM_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details


class AuthRequiredError(FitcoachError):
    code = "AUTH_REQUIRED"
    status_code = 401


class PermissionDeniedError(FitcoachError):
    code = "PERMISSION_DENIED"
    status_code = 403


class AccessDeniedError(FitcoachError):
    """Raised by route guards when the user lacks a product entitlement.

    ``redirect_to`` tells the client which page to send the user to.
    """

    code = "SUBSCRIPTION_REQUIRED"
    status_code = 403

    def __init__(self, message: str, *, redirect_to: str, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.redirect_to = redirect_to


class NotFoundError(FitcoachError):
    code = "NOT_FOUND"
    status_code = 404


class ValidationFailedError(FitcoachError):
    code = "VALIDATION_ERROR"
    status_code = 422


class TrialAlreadyUsedError(FitcoachError):
    code = "TRIAL_ALREADY_USED"
    status_code = 409


class PaymentError(FitcoachError):
    code = "PAYMENT_FAILED"
    status_code = 400


class ProviderError(FitcoachError):
    """An outbound call to the auth service, payment provider or email API failed."""

    code = "SERVICE_UNAVAILABLE"
    status_code = 502

    @classmethod
    def unreachable(cls, target: str, error: httpx.HTTPError) -> "ProviderError":
        """Wrap a transport failure (no HTTP response) talking to ``target``."""
        timed_out = isinstance(error, httpx.TimeoutException)
        return cls(
            f"{target} unreachable: {type(error).__name__}: {error}",
            code="TIMEOUT_ERROR" if timed_out else "NETWORK_ERROR",
            status_code=504 if timed_out else 502,
        )
