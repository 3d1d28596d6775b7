"""Tests for the HTTP transports."""

import asyncio

import aiohttp
import pytest
import requests
from aiohttp import test_utils, web

from twit.client import TwitClient
from twit.errors import ErrorCode
from twit.models import RawResponse, SignedRequest
from twit.transport import AiohttpTransport, RequestsTransport

from conftest import ACCESS_SECRET, ACCESS_TOKEN


def make_app(seen):
    async def home_timeline(request):
        seen["authorization"] = request.headers.get("Authorization")
        seen["user_agent"] = request.headers.get("User-Agent")
        seen["query"] = dict(request.query)
        return web.Response(text='[{"id": 1}]', headers={
            "X-Ratelimit-Limit": "350",
            "X-Ratelimit-Remaining": "349",
        })

    async def update(request):
        seen["form"] = dict(await request.post())
        return web.Response(status=403, text="Status is a duplicate.")

    async def destroy(request):
        return web.Response(status=200, text="")

    async def mentions(request):
        await asyncio.sleep(1)
        return web.Response(text="[]")

    async def show(request):
        status = int(request.match_info["status"])
        return web.Response(status=status, body=b"\xff\xfe\xfa",
                            content_type="application/json", charset="utf-8")

    app = web.Application()
    app.router.add_get("/1/statuses/home_timeline.json", home_timeline)
    app.router.add_post("/1/statuses/update.json", update)
    app.router.add_post("/1/statuses/destroy/5.json", destroy)
    app.router.add_get("/1/statuses/mentions.json", mentions)
    app.router.add_get("/1/statuses/show/{status}.json", show)
    return app


def local_client(host, port, **options):
    client = TwitClient("test_key", "test_secret", api_base=f"{host}:{port}",
                        use_ssl=False, **options)
    client.restore_auth_tokens(ACCESS_TOKEN, ACCESS_SECRET)
    return client


@pytest.mark.asyncio
async def test_aiohttp_transport_round_trip():
    """The default transport talks to a real HTTP server."""
    seen = {}
    async with test_utils.TestServer(make_app(seen)) as server:
        client = local_client(server.host, server.port, user_agent="twit-tests/1.0")
        async with client:
            timeline = await client.statuses_home_timeline({"count": 2})
            assert timeline == '[{"id": 1}]'
            assert seen["query"] == {"count": "2"}
            assert seen["authorization"].startswith("OAuth ")
            assert seen["user_agent"] == "twit-tests/1.0"
            assert client.rate_limit.limit == 350
            assert client.rate_limit.remaining == 349

            assert await client.statuses_update("hello", {}) is False
            assert seen["form"] == {"status": "hello"}
            assert client.get_last_error() == ErrorCode.HTTP_403
            assert client.get_last_error_message() == "Status is a duplicate."

            assert await client.statuses_destroy(5) is True

    assert isinstance(client.transport, AiohttpTransport)
    assert client.transport.session.closed


@pytest.mark.asyncio
async def test_aiohttp_transport_borrowed_session_stays_open():
    """A session passed in belongs to the caller."""
    async with aiohttp.ClientSession() as session:
        transport = AiohttpTransport(session)
        await transport.close()
        assert session.closed is False


@pytest.mark.asyncio
async def test_aiohttp_transport_timeout_is_unknown_error():
    """A request that outlives the session timeout fails like any network error."""
    async with test_utils.TestServer(make_app({})) as server:
        session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=0.1))
        async with session:
            client = local_client(server.host, server.port,
                                  transport=AiohttpTransport(session))
            assert await client.statuses_mentions() is False
    assert client.get_last_error() == ErrorCode.HTTP_UNKNOWN


@pytest.mark.asyncio
async def test_aiohttp_transport_undecodable_body_is_replaced():
    """Bodies that are not valid in their declared charset do not raise."""
    async with test_utils.TestServer(make_app({})) as server:
        async with local_client(server.host, server.port) as client:
            ok = await client.statuses_show("200")
            assert isinstance(ok, str)
            assert "\ufffd" in ok

            assert await client.statuses_show("500") is False
            assert client.get_last_error() == ErrorCode.HTTP_500
            assert "\ufffd" in client.get_last_error_message()


@pytest.mark.asyncio
async def test_aiohttp_transport_connection_refused():
    """Nothing listening on the port gives an unknown HTTP error with a reason."""
    async with local_client("127.0.0.1", test_utils.unused_port()) as client:
        assert await client.statuses_home_timeline() is False
        assert client.get_last_error() == ErrorCode.HTTP_UNKNOWN
        assert client.get_last_error_message() != ""


class FakeResponse:
    def __init__(self, status_code=200, text="", headers=None):
        self.status_code = status_code
        self.text = text
        self.headers = headers or {}


class FakeSession:
    """Stands in for requests.Session."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.calls = []
        self.closed = False

    def request(self, method, url, headers=None, data=None, timeout=None):
        self.calls.append({"method": method, "url": url, "headers": headers,
                           "data": data, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response

    def close(self):
        self.closed = True


@pytest.mark.asyncio
async def test_requests_transport_send():
    """The requests transport passes the request through unchanged."""
    session = FakeSession(FakeResponse(200, '{"ok": true}', {"X-Runtime": "0.1"}))
    transport = RequestsTransport(session=session, timeout=5)
    request = SignedRequest(method="POST", url="https://api.twitter.com/1/x.json",
                            headers=[("Authorization", "OAuth x"), ("Content-Type", "text/plain")],
                            body="a=1")

    response = await transport.send(request)

    assert response == RawResponse(status=200, headers={"X-Runtime": "0.1"}, body='{"ok": true}')
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["headers"] == {"Authorization": "OAuth x", "Content-Type": "text/plain"}
    assert call["data"] == "a=1"
    assert call["timeout"] == 5

    await transport.close()
    assert session.closed is False


@pytest.mark.asyncio
async def test_requests_transport_network_error():
    """Connection failures surface as an unknown HTTP error."""
    session = FakeSession(error=requests.ConnectionError("connection refused"))
    client = TwitClient("test_key", "test_secret", transport=RequestsTransport(session=session))
    client.restore_auth_tokens(ACCESS_TOKEN, ACCESS_SECRET)

    assert await client.statuses_mentions() is False
    assert client.get_last_error() == ErrorCode.HTTP_UNKNOWN
    assert "connection refused" in client.get_last_error_message()


@pytest.mark.asyncio
async def test_send_with_preset_cancel_event():
    """An already-set cancel event stops the request before it starts."""
    session = FakeSession()
    transport = RequestsTransport(session=session)
    cancel = asyncio.Event()
    cancel.set()

    with pytest.raises(asyncio.CancelledError):
        await transport.send(SignedRequest(method="GET", url="https://example.test/"),
                             cancel=cancel)
    assert session.calls == []
