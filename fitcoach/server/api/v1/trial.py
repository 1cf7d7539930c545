"""
API endpoints starting the one-off 7-day trial.

New visitors sign up and start the trial in one call; existing accounts can
start it once from inside the app.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from fitcoach.core.database.entities.accounts import EntitlementRead
from fitcoach.server.schemas import TrialStartRequest, TrialStartResponse
from fitcoach.server.services.deps import AuthClientDep, CurrentUserDep, SessionDep
from fitcoach.server.services.trial import TrialService

router = APIRouter(tags=["trial"])


@router.post(
    "/start",
    response_model=TrialStartResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign Up With Trial",
    description="Create a confirmed account and grant a 7-day trialing entitlement to the static program.",
    response_description="The new user id and when the trial ends.",
    responses={
        201: {"description": "Account created and trial started"},
        409: {"description": "The trial was already used"},
        422: {"description": "Invalid email or password"},
    },
)
async def start_trial(payload: TrialStartRequest, session: SessionDep, auth_client: AuthClientDep) -> TrialStartResponse:
    """
    Sign up with a trial.

    - **email**: Login email of the new account.
    - **password**: At least 6 characters.
    """
    return await TrialService(session).signup_with_trial(auth_client, payload.email.strip().lower(), payload.password)


@router.post(
    "/start-once",
    response_model=EntitlementRead,
    summary="Start Trial",
    description="Start the 7-day trial for the signed-in account. Each account can do this once.",
    response_description="The trialing entitlement.",
    responses={
        401: {"description": "Not signed in"},
        409: {"description": "The trial was already used or access is already active"},
    },
)
async def start_trial_once(user: CurrentUserDep, session: SessionDep) -> EntitlementRead:
    entitlement = await TrialService(session).start_once(user.id, user.email)
    return EntitlementRead.model_validate(entitlement)
