import json

import httpx
import pytest

from momo_auth.infrastructure.sms.http_sms_adapter import HttpSmsAdapter


def _adapter(handler) -> tuple[HttpSmsAdapter, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpSmsAdapter(base_url="http://sms-mock:8026/", client=client), client


async def test_send_posts_json_to_messages_path():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["json"] = json.loads(request.content.decode("utf-8"))
        seen["idem"] = request.headers.get("Idempotency-Key")
        return httpx.Response(202, text="Accepted")

    adapter, client = _adapter(handler)
    await adapter.send(to="+14165550100", body="Your code is 123456")

    assert seen["url"] == "http://sms-mock:8026/messages"
    assert seen["json"] == {"to": "+14165550100", "body": "Your code is 123456"}
    assert seen["idem"] is None
    await client.aclose()


async def test_send_forwards_idempotency_key():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["idem"] = request.headers.get("Idempotency-Key")
        return httpx.Response(200, json={"ok": True})

    adapter, client = _adapter(handler)
    await adapter.send(to="+14165550100", body="hi", idempotency_key="outbox-7")
    assert seen["idem"] == "outbox-7"
    await client.aclose()


async def test_non_2xx_raises_runtimeerror():
    adapter, client = _adapter(lambda _: httpx.Response(422, text="bad number"))

    with pytest.raises(RuntimeError) as ei:
        await adapter.send(to="+1", body="x")

    assert "SMS gateway responded 422" in str(ei.value)
    assert "bad number" in str(ei.value)
    await client.aclose()


async def test_network_error_is_wrapped_as_runtimeerror():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    adapter, client = _adapter(handler)
    with pytest.raises(RuntimeError, match="SMS gateway HTTP error:"):
        await adapter.send(to="+14165550100", body="x")
    await client.aclose()


async def test_aclose_closes_owned_client_only():
    owned = HttpSmsAdapter(base_url="http://sms-mock:8026")
    await owned.aclose()
    assert owned._client.is_closed  # type: ignore[attr-defined]

    shared = httpx.AsyncClient(transport=httpx.MockTransport(lambda _: httpx.Response(200)))
    not_owned = HttpSmsAdapter(base_url="http://sms-mock:8026", client=shared)
    await not_owned.aclose()
    assert shared.is_closed is False
    await shared.aclose()
