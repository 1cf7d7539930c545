"""
API endpoints for account emails.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from fitcoach.server.schemas import AcceptedResponse, BrandedEmailRequest, EmailSentResponse, PasswordResetRequest
from fitcoach.server.services.account import AccountService
from fitcoach.server.services.deps import AdminUserDep, AuthClientDep, EmailClientDep

router = APIRouter(tags=["account"])


@router.post(
    "/password-reset",
    response_model=AcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request Password Reset",
    description=(
        "Send a password recovery email. The response is the same whether or not the address "
        "belongs to an account."
    ),
    response_description="Acknowledgement.",
)
async def request_password_reset(
    payload: PasswordResetRequest, auth_client: AuthClientDep, email: EmailClientDep
) -> AcceptedResponse:
    await AccountService(auth_client, email).request_password_reset(payload.email, payload.redirect_to)
    return AcceptedResponse(message="If the address belongs to an account, a reset link is on its way")


@router.post(
    "/email",
    response_model=EmailSentResponse,
    summary="Send Branded Email",
    description="Admin only. Send an email wrapped in the branded layout.",
    response_description="The delivery API's message id.",
    responses={403: {"description": "Caller is not an admin"}, 503: {"description": "Email is not configured"}},
)
async def send_branded_email(
    payload: BrandedEmailRequest, admin: AdminUserDep, auth_client: AuthClientDep, email: EmailClientDep
) -> EmailSentResponse:
    return await AccountService(auth_client, email).send_branded(payload)
