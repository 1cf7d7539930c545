import json

import httpx
import pytest

from fitcoach.clients import EmailClient
from fitcoach.core.errors import ProviderError

pytestmark = pytest.mark.asyncio

URL = "https://mock.email/emails"


async def test_send(recorder):
    recorder.respond = lambda r: httpx.Response(200, json={"id": "email_1"})
    client = EmailClient(URL, access_key="re_test", from_address="hi@fit.ee", client=recorder.http_client())

    result = await client.send("mari@example.com", "Tere", "<p>Tere</p>", text="Tere", reply_to="coach@fit.ee")

    assert result == {"id": "email_1"}
    assert recorder.last.headers["Authorization"] == "Bearer re_test"
    assert json.loads(recorder.last.content) == {
        "from": "Treenitaastu <hi@fit.ee>",
        "to": ["mari@example.com"],
        "subject": "Tere",
        "html": "<p>Tere</p>",
        "text": "Tere",
        "reply_to": "coach@fit.ee",
    }


async def test_send_to_many(recorder):
    client = EmailClient(URL, access_key="re_test", client=recorder.http_client())

    await client.send(["a@example.com", "b@example.com"], "S", "<p/>")

    body = json.loads(recorder.last.content)
    assert body["to"] == ["a@example.com", "b@example.com"]
    assert "text" not in body


async def test_not_configured(recorder):
    client = EmailClient(URL, client=recorder.http_client())

    assert client.configured is False
    with pytest.raises(ProviderError) as exc:
        await client.send("a@example.com", "S", "<p/>")
    assert exc.value.status_code == 503
    assert recorder.requests == []


async def test_rejected(recorder):
    recorder.respond = lambda r: httpx.Response(422, text="bad from")
    client = EmailClient(URL, access_key="re_test", client=recorder.http_client())

    with pytest.raises(ProviderError) as exc:
        await client.send("a@example.com", "S", "<p/>")
    assert exc.value.details == "bad from"


async def test_non_json_success(recorder):
    recorder.respond = lambda r: httpx.Response(202, text="queued")
    client = EmailClient(URL, access_key="re_test", client=recorder.http_client())

    assert await client.send("a@example.com", "S", "<p/>") == {}


async def test_unreachable(recorder):
    def fail(request):
        raise httpx.ConnectError("refused", request=request)

    recorder.respond = fail
    client = EmailClient(URL, access_key="re_test", client=recorder.http_client())

    with pytest.raises(ProviderError) as exc:
        await client.send("a@example.com", "S", "<p/>")
    assert exc.value.code == "NETWORK_ERROR"
