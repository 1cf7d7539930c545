"""
Service for account emails: password recovery and admin-sent branded mail.

Password reset requests always look the same to the caller whether or not
the address belongs to an account; failures are only logged.
"""

from __future__ import annotations

import logging
from typing import Optional

from fitcoach.clients import AuthClient, EmailClient
from fitcoach.core.errors import FitcoachError
from fitcoach.server.schemas import BrandedEmailRequest, EmailSentResponse

from .emails import branded_layout, recovery_email

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, auth: AuthClient, email: Optional[EmailClient] = None):
        self.auth = auth
        self.email = email

    async def request_password_reset(self, email: str, redirect_to: Optional[str] = None) -> None:
        """
        Send a recovery email for ``email``.

        With the email API configured the recovery link is generated and sent
        in the branded layout; otherwise the auth service sends its own mail.
        """
        address = email.strip().lower()
        try:
            if self.email is not None and self.email.configured:
                link = await self.auth.generate_recovery_link(address, redirect_to=redirect_to)
                subject, html, text = recovery_email(link)
                await self.email.send(address, subject, html, text=text)
            else:
                await self.auth.send_recovery(address, redirect_to=redirect_to)
            logger.info("Password reset email dispatched")
        except FitcoachError as e:
            logger.warning(f"Password reset request could not be completed: {e}")

    async def send_branded(self, payload: BrandedEmailRequest) -> EmailSentResponse:
        if self.email is None:
            raise FitcoachError("Email delivery is not configured", code="SERVICE_UNAVAILABLE", status_code=503)
        html = branded_layout(payload.subject, payload.html)
        result = await self.email.send(payload.to, payload.subject, html, text=payload.text)
        logger.info(f"Branded email sent to {payload.to}")
        return EmailSentResponse(id=result.get("id"))
