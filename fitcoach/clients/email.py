"""Email delivery client

Sends transactional HTML mail through a Resend-compatible delivery API
(``POST {api_url}`` with a bearer key and a JSON body holding ``from``,
``to``, ``subject``, ``html`` and optional ``text``).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

import httpx

from fitcoach.core.errors import ProviderError


class EmailClient:
    """Thin async HTTP client for the email delivery API."""

    def __init__(
        self,
        api_url: str,
        *,
        access_key: Optional[str] = None,
        from_name: str = "Treenitaastu",
        from_address: str = "noreply@treenitaastu.app",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_url = api_url
        self.access_key = access_key
        self.sender = f"{from_name} <{from_address}>"
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    @property
    def configured(self) -> bool:
        return bool(self.access_key)

    async def send(
        self,
        to: Union[str, List[str]],
        subject: str,
        html: str,
        *,
        text: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Send one message and return the API response body.

        Raises:
            ProviderError: No access key is configured, the API is unreachable or it
                rejected the message.
        """
        if not self.access_key:
            raise ProviderError("Email delivery is not configured", status_code=503)
        payload: Dict[str, Any] = {
            "from": self.sender,
            "to": [to] if isinstance(to, str) else list(to),
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text
        if reply_to:
            payload["reply_to"] = reply_to
        self._logger.debug("EmailClient.send: POST %s subject=%s", self.api_url, subject)
        try:
            r = await self._client.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self.access_key}", "Content-Type": "application/json"},
                json=payload,
            )
        except httpx.HTTPError as e:
            raise ProviderError.unreachable("Email delivery", e) from e
        if r.is_error:
            raise ProviderError(f"Email delivery failed: {r.status_code}", details=r.text)
        try:
            return r.json()
        except ValueError:
            return {}

    async def aclose(self) -> None:
        await self._client.aclose()
