"""Unit tests for the API dependencies: bearer parsing, user resolution and guards."""

from unittest.mock import patch

import pytest

from fitcoach.core.access import AccessDecision, GuardKind
from fitcoach.core.database.entities.accounts import Profile
from fitcoach.core.errors import AccessDeniedError, AuthRequiredError, PermissionDeniedError
from fitcoach.server.services import deps
from fitcoach.server.services.deps import (
    CurrentUser,
    _bearer_token,
    get_current_user,
    get_optional_user,
    require_admin,
    require_cron_secret,
    require_guard,
)


def user(role="user"):
    return CurrentUser(id="user-1", email="mari@example.com", role=role, access_token="tok")


@pytest.mark.parametrize(
    "header,expected",
    [
        (None, None),
        ("", None),
        ("Bearer abc", "abc"),
        ("bearer  abc ", "abc"),
        ("Basic abc", None),
        ("Bearer ", None),
    ],
)
def test_bearer_token(header, expected):
    assert _bearer_token(header) == expected


@pytest.mark.asyncio
class TestUserResolution:
    async def test_anonymous(self, session, auth_client, providers):
        assert await get_optional_user(session, auth_client, None) is None
        assert providers.calls == []

    async def test_new_user_gets_profile(self, session, auth_client, providers):
        providers.on("GET", "/auth/v1/user", {"id": "user-9", "email": "uus@example.com"})

        current = await get_optional_user(session, auth_client, "Bearer tok-9")

        assert current.id == "user-9"
        assert current.role == "user"
        assert current.access_token == "tok-9"
        assert (await session.get(Profile, "user-9")).email == "uus@example.com"

    async def test_existing_profile_role(self, session, auth_client, providers, make_profile):
        await make_profile("admin-1", "coach@example.com", role="admin")
        providers.on("GET", "/auth/v1/user", {"id": "admin-1"})

        current = await get_optional_user(session, auth_client, "Bearer tok")

        assert current.is_admin is True
        assert current.email == "coach@example.com"

    async def test_expired_token(self, session, auth_client, providers):
        providers.on("GET", "/auth/v1/user", {"msg": "expired"}, status_code=401)

        with pytest.raises(AuthRequiredError):
            await get_optional_user(session, auth_client, "Bearer tok")

    async def test_current_user_required(self):
        with pytest.raises(AuthRequiredError):
            await get_current_user(None)
        assert (await get_current_user(user())).id == "user-1"


@pytest.mark.asyncio
class TestGuards:
    async def test_guard_allows(self):
        dependency = require_guard(GuardKind.STATIC)

        assert await dependency(user(), AccessDecision(can_static=True)) is not None

    async def test_guard_denies_with_redirect(self):
        dependency = require_guard(GuardKind.PT_OR_TRIAL)

        with pytest.raises(AccessDeniedError) as exc:
            await dependency(user(), AccessDecision())
        assert exc.value.redirect_to == "/pricing"

    async def test_require_admin(self):
        with pytest.raises(PermissionDeniedError):
            await require_admin(user())
        assert (await require_admin(user("admin"))).is_admin

    async def test_cron_secret(self):
        with patch.object(deps.settings, "jobs_cron_secret", "s3cret"):
            await require_cron_secret("s3cret")
            with pytest.raises(PermissionDeniedError):
                await require_cron_secret("wrong")

    async def test_cron_disabled_without_secret(self):
        with patch.object(deps.settings, "jobs_cron_secret", None):
            with pytest.raises(PermissionDeniedError):
                await require_cron_secret("anything")


def test_dependency_aliases_point_at_providers():
    assert deps.SessionDep.__metadata__[0].dependency is deps.get_session
    assert deps.CurrentUserDep.__metadata__[0].dependency is get_current_user
    assert deps.AdminUserDep.__metadata__[0].dependency is require_admin


@pytest.mark.asyncio
async def test_close_clients_resets_singletons():
    first = deps.get_stripe_client()
    assert deps.get_stripe_client() is first

    await deps.close_clients()

    assert deps._stripe_client is None
