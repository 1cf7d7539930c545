"""
API Dependencies.

Provides the database session, the outbound clients and the authenticated
user to the routers, plus the route guards derived from the user's access.
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, Header
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from fitcoach.clients import AuthClient, AuthUser, EmailClient, StripeClient
from fitcoach.core.access import AccessDecision, GuardKind, guard
from fitcoach.core.database.entities.accounts import Profile
from fitcoach.core.errors import AccessDeniedError, AuthRequiredError, PermissionDeniedError
from fitcoach.core.logging_config import get_logger
from fitcoach.server.core.config import settings
from fitcoach.server.core.database import get_session

from .access import AccessService

logger = get_logger(__name__)

_auth_client: Optional[AuthClient] = None
_stripe_client: Optional[StripeClient] = None
_email_client: Optional[EmailClient] = None


def get_auth_client() -> AuthClient:
    global _auth_client
    if _auth_client is None:
        auth = settings.auth
        _auth_client = AuthClient(
            auth.url,
            anon_key=auth.anon_key,
            service_role_key=auth.service_role_key,
            timeout=auth.timeout_seconds,
        )
    return _auth_client


def get_stripe_client() -> StripeClient:
    global _stripe_client
    if _stripe_client is None:
        _stripe_client = StripeClient(settings.stripe.secret_key, api_base=settings.stripe.api_base)
    return _stripe_client


def get_email_client() -> EmailClient:
    global _email_client
    if _email_client is None:
        email = settings.email
        _email_client = EmailClient(
            email.api_url,
            access_key=email.access_key,
            from_name=email.from_name,
            from_address=email.from_address,
        )
    return _email_client


async def close_clients() -> None:
    """Close the shared HTTP clients on shutdown."""
    global _auth_client, _stripe_client, _email_client
    for client in (_auth_client, _stripe_client, _email_client):
        if client is not None:
            await client.aclose()
    _auth_client = _stripe_client = _email_client = None


SessionDep = Annotated[AsyncSession, Depends(get_session)]
AuthClientDep = Annotated[AuthClient, Depends(get_auth_client)]
StripeClientDep = Annotated[StripeClient, Depends(get_stripe_client)]
EmailClientDep = Annotated[EmailClient, Depends(get_email_client)]


class CurrentUser(BaseModel):
    """The caller as seen by the API: auth identity plus profile role."""

    id: str
    email: Optional[str] = None
    role: str = "user"
    access_token: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def _resolve_user(token: str, session: AsyncSession, auth_client: AuthClient) -> CurrentUser:
    auth_user: AuthUser = await auth_client.get_user(token)
    profile = await session.get(Profile, auth_user.id)
    if profile is None:
        profile = Profile(id=auth_user.id, email=auth_user.email)
        session.add(profile)
        await session.commit()
        await session.refresh(profile)
        logger.info(f"Created profile for new user {auth_user.id}")
    return CurrentUser(id=profile.id, email=profile.email or auth_user.email, role=profile.role, access_token=token)


async def get_optional_user(
    session: SessionDep,
    auth_client: AuthClientDep,
    authorization: Annotated[Optional[str], Header()] = None,
) -> Optional[CurrentUser]:
    """The authenticated caller, or ``None`` for anonymous requests."""
    token = _bearer_token(authorization)
    if token is None:
        return None
    return await _resolve_user(token, session, auth_client)


async def get_current_user(user: Annotated[Optional[CurrentUser], Depends(get_optional_user)]) -> CurrentUser:
    if user is None:
        raise AuthRequiredError("Missing or malformed bearer token")
    return user


OptionalUserDep = Annotated[Optional[CurrentUser], Depends(get_optional_user)]
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


async def get_access(user: CurrentUserDep, session: SessionDep) -> AccessDecision:
    return await AccessService(session).decision_for(user.id, user.role)


AccessDep = Annotated[AccessDecision, Depends(get_access)]


def require_guard(kind: GuardKind):
    """Build a dependency that lets the request through only when ``kind`` allows it."""

    async def dependency(user: CurrentUserDep, decision: AccessDep) -> CurrentUser:
        result = guard(kind, user, decision)
        if not result.allowed:
            raise AccessDeniedError(
                f"Access to '{kind.value}' content denied for user {user.id}",
                redirect_to=result.redirect_to or "/",
            )
        return user

    return dependency


async def require_admin(user: CurrentUserDep) -> CurrentUser:
    if not user.is_admin:
        raise PermissionDeniedError(f"User {user.id} is not an admin")
    return user


AdminUserDep = Annotated[CurrentUser, Depends(require_admin)]
StaticUserDep = Annotated[CurrentUser, Depends(require_guard(GuardKind.STATIC))]
ProgramUserDep = Annotated[CurrentUser, Depends(require_guard(GuardKind.PT_OR_TRIAL))]


async def require_cron_secret(x_cron_secret: Annotated[Optional[str], Header()] = None) -> None:
    """Scheduled jobs authenticate with the shared ``X-Cron-Secret`` header."""
    expected = settings.jobs.cron_secret
    if not expected:
        raise PermissionDeniedError("Scheduled jobs are disabled: JOBS_CRON_SECRET is not set")
    if x_cron_secret != expected:
        raise PermissionDeniedError("Invalid cron secret")
