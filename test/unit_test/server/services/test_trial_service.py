"""Unit tests for TrialService."""

from datetime import timedelta

import pytest

from fitcoach.core.database import utc_now
from fitcoach.core.database.entities.accounts import Profile
from fitcoach.core.errors import ProviderError, TrialAlreadyUsedError, ValidationFailedError
from fitcoach.server.services.trial import TrialService

pytestmark = pytest.mark.asyncio


class TestStartOnce:
    async def test_first_trial(self, session):
        now = utc_now()

        entitlement = await TrialService(session).start_once("user-1", "mari@example.com", now=now)

        assert entitlement.status == "trialing"
        assert entitlement.product == "static"
        assert entitlement.source == "trial"
        assert entitlement.trial_ends_at == now + timedelta(days=7)
        profile = await session.get(Profile, "user-1")
        assert profile.trial_used is True
        assert profile.email == "mari@example.com"

    async def test_second_trial_rejected(self, session):
        service = TrialService(session)
        await service.start_once("user-1")

        with pytest.raises(TrialAlreadyUsedError) as exc:
            await service.start_once("user-1")
        assert exc.value.status_code == 409

    async def test_live_static_access_blocks_trial(self, session, make_profile, grant):
        await make_profile()
        await grant(product="static", status="active")

        with pytest.raises(TrialAlreadyUsedError):
            await TrialService(session).start_once("user-1")

    async def test_lapsed_static_access_allows_trial(self, session, make_profile, grant):
        await make_profile()
        await grant(product="static", status="inactive")

        entitlement = await TrialService(session).start_once("user-1")

        assert entitlement.status == "trialing"


class TestSignup:
    async def test_creates_account_and_trial(self, session, providers, auth_client, read_json):
        providers.on("POST", "/auth/v1/admin/users", {"id": "new-user", "email": "uus@example.com"})

        result = await TrialService(session).signup_with_trial(auth_client, "uus@example.com", "salasona1")

        assert result.user_id == "new-user"
        assert result.product == "static"
        call = providers.calls_to("POST", "/auth/v1/admin/users")[0]
        assert read_json(call)["email_confirm"] is True
        assert (await session.get(Profile, "new-user")).trial_used is True

    async def test_rejected_signup(self, session, providers, auth_client):
        providers.on("POST", "/auth/v1/admin/users", {"msg": "already registered"}, status_code=422)

        with pytest.raises(ValidationFailedError):
            await TrialService(session).signup_with_trial(auth_client, "uus@example.com", "salasona1")
        assert await session.get(Profile, "new-user") is None

    async def test_auth_outage(self, session, auth_client):
        with pytest.raises(ProviderError):
            await TrialService(session).signup_with_trial(auth_client, "uus@example.com", "salasona1")
