"""
Shared fixtures for the ShredMate client tests.

The ScriptedTransport records every request it is given and answers from a
per-path route table, so tests can assert exactly what reached the network.
"""

import asyncio
import inspect
import json
from typing import Any, Callable, Dict, List, Optional

import pytest

from shredmate_shared.interfaces import ITransport
from shredmate_shared.models import AuthTokens
from shredmate_client.api_client import AuthenticatingHTTPClient
from shredmate_client.auth.token_provider import DefaultTokenProvider
from shredmate_client.auth.token_storage import InMemoryTokenStore
from shredmate_client.http_client import APIClient
from shredmate_client.request_builder import PreparedRequest
from shredmate_client.transport import TransportResponse

BASE_URL = "http://api.test"

RIDER_PAYLOAD = {
    "id": "r1",
    "user_id": "u1",
    "created_at": "2024-01-01T00:00:00Z",
    "updated_at": "2024-01-01T00:00:00Z",
}

USER_PAYLOAD = {"id": "u1", "email": "rider@example.com", "name": "Kite Rider"}


def json_response(status_code: int, payload: Any) -> TransportResponse:
    return TransportResponse(
        status_code=status_code,
        body=json.dumps(payload).encode('utf-8'),
        headers={'Content-Type': 'application/json'}
    )


def auth_payload(access_token: str, refresh_token: str = "refresh-2") -> Dict[str, Any]:
    return {"access_token": access_token, "refresh_token": refresh_token, "user": USER_PAYLOAD}


def bearer_of(request: PreparedRequest) -> Optional[str]:
    return request.header('Authorization')


class ScriptedTransport(ITransport):
    """
    Fake transport answering from a route table keyed by URL path.

    A route is either a list of responses/exceptions consumed in order or a
    callable (sync or async) taking the request.
    """

    def __init__(self):
        self.requests: List[PreparedRequest] = []
        self.routes: Dict[str, Any] = {}
        self.closed = False

    def route(self, path: str, handler: Any) -> None:
        self.routes[path] = list(handler) if isinstance(handler, (list, tuple)) else handler

    def requests_to(self, path: str) -> List[PreparedRequest]:
        return [request for request in self.requests if request.url.split('?')[0].endswith(path)]

    async def send(self, request: PreparedRequest) -> TransportResponse:
        self.requests.append(request)
        path = request.url[len(BASE_URL):].split('?')[0]
        handler = self.routes.get(path)
        if handler is None:
            raise AssertionError(f"Unexpected request to {path}")

        if isinstance(handler, list):
            result = handler.pop(0)
        else:
            result = handler(request)
            if inspect.isawaitable(result):
                result = await result

        if isinstance(result, BaseException):
            raise result
        return result

    async def close(self) -> None:
        self.closed = True


async def wait_until(predicate: Callable[[], bool], limit: int = 1000) -> None:
    """Yield to the event loop until predicate holds."""
    for _ in range(limit):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("Condition was not reached")


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def tokens():
    return AuthTokens(access_token="abc", refresh_token="refresh-1")


@pytest.fixture
def token_store(tokens):
    return InMemoryTokenStore(tokens=tokens)


@pytest.fixture
def empty_store():
    return InMemoryTokenStore()


@pytest.fixture
def refresh_client(transport):
    return APIClient(BASE_URL, transport)


@pytest.fixture
def token_provider(token_store, refresh_client):
    return DefaultTokenProvider(token_store, refresh_client)


@pytest.fixture
def client(token_provider, transport):
    return AuthenticatingHTTPClient(BASE_URL, token_provider, transport)
