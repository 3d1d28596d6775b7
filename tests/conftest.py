"""Shared fixtures: a recording transport and ready-made clients."""

import pytest

from twit.client import TwitClient
from twit.models import RawResponse
from twit.transport import Transport

ACCESS_TOKEN = "12345-accesstoken"
ACCESS_SECRET = "accesssecret"


class FakeTransport(Transport):
    """Records every request and replays canned responses."""

    def __init__(self, responses=None):
        self.requests = []
        self.responses = list(responses or [])
        self.closed = False

    def queue(self, status=200, body="", headers=None):
        self.responses.append(RawResponse(status=status, headers=headers or {}, body=body))

    async def _send(self, request):
        self.requests.append(request)
        if self.responses:
            return self.responses.pop(0)
        return RawResponse(status=200, headers={}, body="")

    async def close(self):
        self.closed = True


def header(request, name):
    """Value of a request header, case-insensitively."""
    for key, value in request.headers:
        if key.lower() == name.lower():
            return value
    return None


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(transport):
    return TwitClient("test_key", "test_secret", transport=transport)


@pytest.fixture
def authed_client(client):
    client.restore_auth_tokens(ACCESS_TOKEN, ACCESS_SECRET)
    return client
