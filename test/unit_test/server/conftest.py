from __future__ import annotations

import json
from datetime import datetime, timedelta
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel.pool import StaticPool

from fitcoach.clients import AuthClient, EmailClient, StripeClient
from fitcoach.core.database import create_all, create_engine, create_sessionmaker, utc_now
from fitcoach.core.database.entities.accounts import Profile, UserEntitlement
from fitcoach.server.services.deps import CurrentUser

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

AUTH_URL = "https://mock.auth"
STRIPE_URL = "https://mock.stripe"
EMAIL_URL = "https://mock.email/emails"

Responder = Union[Dict[str, Any], Callable[[httpx.Request], httpx.Response]]


class FakeProviders:
    """Answers outbound auth, payment and email calls from registered routes.

    Routes are keyed by ``(method, path)``; unregistered calls get a 404 so a
    missing stub shows up as a ``ProviderError``.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Tuple[int, Responder]] = {}
        self.calls: List[httpx.Request] = []

    def on(self, method: str, path: str, body: Responder, status_code: int = 200) -> None:
        self.routes[(method.upper(), path)] = (status_code, body)

    def calls_to(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.calls if r.method == method.upper() and r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": {"message": f"no stub for {request.url.path}"}})
        status_code, body = route
        if callable(body):
            return body(request)
        return httpx.Response(status_code, json=body)

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class AuthState:
    """The caller the API sees; ``None`` means anonymous."""

    def __init__(self) -> None:
        self.user: Optional[CurrentUser] = None

    def login(self, user_id: str = "user-1", email: str = "mari@example.com", role: str = "user") -> CurrentUser:
        self.user = CurrentUser(id=user_id, email=email, role=role, access_token=f"token-{user_id}")
        return self.user

    def logout(self) -> None:
        self.user = None


@pytest_asyncio.fixture
async def test_engine():
    """A fresh in-memory database per test."""
    engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(test_engine) -> AsyncGenerator[AsyncSession, None]:
    async with create_sessionmaker(test_engine)() as session:
        yield session


@pytest.fixture
def providers() -> FakeProviders:
    return FakeProviders()


@pytest.fixture
def auth_client(providers: FakeProviders) -> AuthClient:
    return AuthClient(AUTH_URL, anon_key="anon-key", service_role_key="service-key", client=providers.http_client())


@pytest.fixture
def stripe_client(providers: FakeProviders, stripe_http) -> StripeClient:
    return StripeClient(
        "sk_test_123", api_base=STRIPE_URL, max_network_retries=0, http_client=stripe_http(providers.handler)
    )


@pytest.fixture
def email_client(providers: FakeProviders) -> EmailClient:
    return EmailClient(EMAIL_URL, access_key="re_test", client=providers.http_client())


@pytest.fixture
def auth_state() -> AuthState:
    return AuthState()


@pytest_asyncio.fixture
async def make_profile(session: AsyncSession):
    async def _make(user_id: str = "user-1", email: str = "mari@example.com", role: str = "user", **fields) -> Profile:
        profile = Profile(id=user_id, email=email, role=role, **fields)
        session.add(profile)
        await session.commit()
        await session.refresh(profile)
        return profile

    return _make


@pytest_asyncio.fixture
async def grant(session: AsyncSession):
    async def _grant(
        user_id: str = "user-1", product: str = "static", status: str = "active", **fields
    ) -> UserEntitlement:
        entitlement = UserEntitlement(user_id=user_id, product=product, status=status, **fields)
        session.add(entitlement)
        await session.commit()
        await session.refresh(entitlement)
        return entitlement

    return _grant


@pytest.fixture
def trialing_fields() -> Callable[[int], Dict[str, Any]]:
    def _fields(days_left: int = 5) -> Dict[str, Any]:
        return {"trial_ends_at": utc_now() + timedelta(days=days_left), "source": "trial"}

    return _fields


@pytest_asyncio.fixture(name="client")
async def client_fixture(
    session: AsyncSession,
    auth_state: AuthState,
    auth_client: AuthClient,
    stripe_client: StripeClient,
    email_client: EmailClient,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with overridden dependencies."""
    from fitcoach.server.core.database import get_session
    from fitcoach.server.main import app
    from fitcoach.server.services import deps

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    async def get_optional_user_override() -> Optional[CurrentUser]:
        return auth_state.user

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[deps.get_optional_user] = get_optional_user_override
    app.dependency_overrides[deps.get_auth_client] = lambda: auth_client
    app.dependency_overrides[deps.get_stripe_client] = lambda: stripe_client
    app.dependency_overrides[deps.get_email_client] = lambda: email_client

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        yield client

    app.dependency_overrides.clear()


def form_of(request: httpx.Request) -> Dict[str, str]:
    """Decode a form-encoded request body into a flat dict."""
    return dict(httpx.QueryParams(request.content.decode()))


def json_of(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content)


@pytest.fixture
def read_form():
    return form_of


@pytest.fixture
def read_json():
    return json_of


@pytest.fixture
def now() -> datetime:
    return utc_now()


@pytest_asyncio.fixture
async def make_program(session: AsyncSession):
    """Assign a one-day program with a weighted and a bodyweight exercise."""
    from fitcoach.core.database.entities.programs import ClientDayCreate, ClientItemCreate, ClientProgramCreate
    from fitcoach.core.database.repositories import ProgramRepository

    async def _make(user_id: str = "user-1", **fields):
        payload = ClientProgramCreate(
            title=fields.pop("title", "Strength block"),
            assigned_to=user_id,
            days=[
                ClientDayCreate(
                    title="Upper",
                    items=[
                        ClientItemCreate(exercise_name="Squat", order_in_day=1, sets=3, reps="10", weight_kg=60),
                        ClientItemCreate(exercise_name="Push-up", order_in_day=2, sets=3, reps="12"),
                    ],
                )
            ],
            **fields,
        )
        repo = ProgramRepository(session)
        program = await repo.create_with_days(payload, assigned_by="admin-1")
        day = (await repo.get_days(program.id))[0]
        items = (await repo.get_items([day.id]))[day.id]
        return program, day, items

    return _make
