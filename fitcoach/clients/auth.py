"""Hosted auth service client

Overview
--------
Verifies bearer tokens and performs the few admin operations the API needs:
creating a confirmed user for the public trial signup and generating password
recovery links. The service speaks the GoTrue REST dialect:

- ``GET  /auth/v1/user`` with the user's bearer token
- ``POST /auth/v1/admin/users`` with the service-role key
- ``POST /auth/v1/admin/generate_link`` with the service-role key
- ``POST /auth/v1/recover`` with the anon key

Errors
------
Rejected tokens raise ``AuthRequiredError``; any other non-2xx answer raises
``ProviderError`` carrying the status code and response body. Transport
failures raise ``ProviderError`` with a ``NETWORK_ERROR`` or ``TIMEOUT_ERROR`` code.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, Field

from fitcoach.core.errors import AuthRequiredError, ProviderError, ValidationFailedError


class AuthUser(BaseModel):
    """The subset of the auth service user object the API relies on."""

    id: str
    email: Optional[str] = None
    role: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)
    app_metadata: Dict[str, Any] = Field(default_factory=dict)


class AuthClient:
    """Thin async HTTP client for the hosted auth service."""

    def __init__(
        self,
        base_url: str,
        *,
        anon_key: Optional[str] = None,
        service_role_key: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.service_role_key = service_role_key
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    def _headers(self, bearer: Optional[str], api_key: Optional[str]) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if api_key:
            headers["apikey"] = api_key
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    def _admin_headers(self) -> dict[str, str]:
        if not self.service_role_key:
            raise ProviderError("Auth service role key is not configured", status_code=503)
        return self._headers(self.service_role_key, self.service_role_key)

    async def _send(self, op: str, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.HTTPError as e:
            raise ProviderError.unreachable(f"Auth {op}", e) from e

    @staticmethod
    def _raise_for(op: str, response: httpx.Response) -> None:
        raise ProviderError(
            f"Auth {op} failed: {response.status_code}",
            details=response.text,
        )

    async def get_user(self, access_token: str) -> AuthUser:
        """Resolve the user behind ``access_token``.

        Raises:
            AuthRequiredError: The token is missing, expired or revoked.
            ProviderError: The auth service answered unexpectedly.
        """
        if not access_token:
            raise AuthRequiredError("Missing access token")
        self._logger.debug("AuthClient.get_user: GET %s/auth/v1/user", self.base_url)
        r = await self._send("get_user", "GET", "/auth/v1/user", headers=self._headers(access_token, self.anon_key))
        if r.status_code in (401, 403):
            raise AuthRequiredError("Invalid or expired access token", code="AUTH_EXPIRED", details=r.text)
        if r.is_error:
            self._raise_for("get_user", r)
        return AuthUser.model_validate(r.json())

    async def create_user(self, email: str, password: str, *, email_confirm: bool = True) -> AuthUser:
        """Create a user with the service-role key.

        Raises:
            ValidationFailedError: The service rejected the email or password (HTTP 422).
            ProviderError: Any other failure.
        """
        self._logger.debug("AuthClient.create_user: POST %s/auth/v1/admin/users email=%s", self.base_url, email)
        r = await self._send(
            "create_user",
            "POST",
            "/auth/v1/admin/users",
            headers=self._admin_headers(),
            json={"email": email, "password": password, "email_confirm": email_confirm},
        )
        if r.status_code == 422:
            raise ValidationFailedError("Auth service rejected the new user", details=r.text)
        if r.is_error:
            self._raise_for("create_user", r)
        return AuthUser.model_validate(r.json())

    async def generate_recovery_link(self, email: str, *, redirect_to: Optional[str] = None) -> str:
        """Return a password recovery link for ``email`` without sending any mail."""
        payload: dict[str, Any] = {"type": "recovery", "email": email}
        if redirect_to:
            payload["redirect_to"] = redirect_to
        r = await self._send(
            "generate_link", "POST", "/auth/v1/admin/generate_link", headers=self._admin_headers(), json=payload
        )
        if r.is_error:
            self._raise_for("generate_link", r)
        data = r.json()
        link = data.get("action_link") or (data.get("properties") or {}).get("action_link")
        if not link:
            raise ProviderError("Auth generate_link returned no action link", details=data)
        return link

    async def send_recovery(self, email: str, *, redirect_to: Optional[str] = None) -> None:
        """Ask the auth service to send its own recovery email."""
        params = {"redirect_to": redirect_to} if redirect_to else None
        r = await self._send(
            "recover",
            "POST",
            "/auth/v1/recover",
            headers=self._headers(self.anon_key, self.anon_key),
            params=params,
            json={"email": email},
        )
        if r.is_error:
            self._raise_for("recover", r)

    async def aclose(self) -> None:
        await self._client.aclose()
