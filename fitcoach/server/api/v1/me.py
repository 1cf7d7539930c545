"""
API endpoints describing the signed-in user.

Access decisions, the trial countdown, route guards, XP level and profile.
The web app calls these to decide what to render and where to redirect.
"""

from __future__ import annotations

from fastapi import APIRouter

from fitcoach.core.access import AccessDecision, GuardKind, GuardResult, ProgramAccess, TrialStatus, guard
from fitcoach.core.database.entities.accounts import ProfileWithEntitlements
from fitcoach.core.levels import UserXP
from fitcoach.core.plans import UpgradePromptDecision, upgrade_prompt_decision
from fitcoach.server.services.access import AccessService
from fitcoach.server.services.deps import AccessDep, CurrentUserDep, OptionalUserDep, SessionDep

router = APIRouter(tags=["me"])


@router.get(
    "/access",
    response_model=AccessDecision,
    summary="Get Access",
    description="Which products the caller may open right now, and why.",
    response_description="The access decision.",
    responses={401: {"description": "Missing or invalid bearer token"}},
)
async def get_access(decision: AccessDep) -> AccessDecision:
    return decision


@router.get(
    "/trial",
    response_model=TrialStatus,
    summary="Get Trial Status",
    description="Countdown of the caller's trial including the 48 hour grace period after it ends.",
    response_description="The trial status; all flags false when the caller has no trial.",
)
async def get_trial(user: CurrentUserDep, session: SessionDep) -> TrialStatus:
    return await AccessService(session).trial_for(user.id)


@router.get(
    "/program-access",
    response_model=ProgramAccess,
    summary="Get Program Access",
    description="Whether the caller can open personal programs and should see an upgrade prompt.",
    response_description="The program access flags.",
)
async def get_program_access(user: CurrentUserDep, session: SessionDep) -> ProgramAccess:
    return await AccessService(session).program_access_for(user.id, user.role)


@router.get(
    "/guard/{kind}",
    response_model=GuardResult,
    summary="Evaluate Route Guard",
    description="Evaluate a named route guard for the caller. Anonymous callers are sent to the login page.",
    response_description="Whether the route is allowed, otherwise where to redirect.",
)
async def check_guard(kind: GuardKind, user: OptionalUserDep, session: SessionDep) -> GuardResult:
    """
    Evaluate a route guard.

    - **kind**: auth, static, pt, pt_or_trial, static_or_info or admin.
    """
    if user is None:
        return guard(kind, None, AccessDecision())
    decision = await AccessService(session).decision_for(user.id, user.role)
    return guard(kind, user, decision)


@router.get(
    "/level",
    response_model=UserXP,
    summary="Get Level",
    description="XP earned from workouts, static program days and habits, and the resulting level.",
    response_description="XP totals and level information.",
)
async def get_level(user: CurrentUserDep, session: SessionDep) -> UserXP:
    return await AccessService(session).level_for(user.id)


@router.get(
    "/profile",
    response_model=ProfileWithEntitlements,
    summary="Get Profile",
    description="The caller's profile together with all of their entitlements.",
    response_description="Profile with entitlements.",
)
async def get_profile(user: CurrentUserDep, session: SessionDep) -> ProfileWithEntitlements:
    return await AccessService(session).profile_for(user.id)


@router.get(
    "/upgrade-prompt",
    response_model=UpgradePromptDecision,
    summary="Get Upgrade Prompt",
    description=(
        "Whether to show the upgrade prompt for a trigger (trial_ending, program_completion or weekly_check) "
        "together with the trial urgency flags."
    ),
    response_description="The show decision, the prompt and the trial urgency.",
)
async def get_upgrade_prompt(
    user: CurrentUserDep, session: SessionDep, trigger: str = "trial_ending"
) -> UpgradePromptDecision:
    trial = await AccessService(session).trial_for(user.id)
    return upgrade_prompt_decision(trigger, trial)
