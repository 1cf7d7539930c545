from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Callable, Iterable

import httpx
import pytest
import stripe
from dotenv import load_dotenv

TEST_ROOT = Path(__file__).resolve().parent
# Load test/.env first, then fallback to test/.env.example for defaults
load_dotenv(TEST_ROOT / ".env", override=False)
load_dotenv(TEST_ROOT / ".env.example", override=False)

# Every test talks to in-memory SQLite; set before anything imports the settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("LOGFIRE_ENABLED", "false")


@pytest.fixture(autouse=True)
def _global_offline_http_guard(monkeypatch: pytest.MonkeyPatch):
    allowed_prefixes: Iterable[str] = (
        "http://mock",
        "https://mock",
        "http://localhost",
        "http://127.0.0.1",
        "http://0.0.0.0",
        "/",  # Allow relative paths (used by ASGI transport)
    )

    orig_sync = httpx._client.Client.request
    orig_async = httpx._client.AsyncClient.request

    def _is_allowed(url_str: str) -> bool:
        return any(url_str.startswith(p) for p in allowed_prefixes)

    def offline_sync(self, method, url, *args, **kwargs):
        url_str = str(url)
        if _is_allowed(url_str):
            return orig_sync(self, method, url, *args, **kwargs)
        raise RuntimeError(f"External HTTP blocked by global offline guard: {url_str}")

    async def offline_async(self, method, url, *args, **kwargs):
        url_str = str(url)
        if _is_allowed(url_str):
            return await orig_async(self, method, url, *args, **kwargs)
        raise RuntimeError(f"External HTTP blocked by global offline guard (async): {url_str}")

    monkeypatch.setattr(httpx._client.Client, "request", offline_sync, raising=True)
    monkeypatch.setattr(httpx._client.AsyncClient, "request", offline_async, raising=True)


class HandlerStripeHTTPClient(stripe.HTTPClient):
    """Answers the payment SDK's requests from an ``httpx`` handler callable."""

    name = "handler"

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        super().__init__()
        self._handler = handler

    async def request_async(self, method, url, headers, post_data=None):
        request = httpx.Request(method.upper(), url, headers=dict(headers), content=post_data or b"")
        try:
            response = self._handler(request)
        except httpx.TransportError as e:
            raise stripe.APIConnectionError(f"Network error: {e!r}", should_retry=True) from e
        return response.content, response.status_code, response.headers

    def sleep_async(self, secs):
        return asyncio.sleep(0)

    async def close_async(self):
        return None


@pytest.fixture
def stripe_http() -> Callable[[Callable[[httpx.Request], httpx.Response]], stripe.HTTPClient]:
    """Build a payment SDK HTTP client backed by a request handler."""
    return HandlerStripeHTTPClient
