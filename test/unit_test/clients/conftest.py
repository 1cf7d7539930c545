from __future__ import annotations

from typing import Callable, List

import httpx
import pytest


class Recorder:
    """A MockTransport handler that records requests and answers from a callable."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(200, json={})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
