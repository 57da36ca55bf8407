"""Shared test fixtures for emote_hub tests."""

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from emote_hub.core import credential_store


@pytest.fixture(autouse=True)
def no_keyring(monkeypatch):
    """Never touch the real system keyring from tests."""
    monkeypatch.setattr(credential_store, "_keyring_available", False)


@pytest.fixture
def unreachable_url():
    # Nothing listens on port 1, connections are refused
    return "http://127.0.0.1:1"


@pytest.fixture
def fixed_time():
    return datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeUpstream:
    """Stand-in for the provider APIs.

    ``routes`` maps a path to ``(status, body)`` or to an async handler.
    A str body is sent as HTML, anything else as JSON. Unknown paths are 404.
    """

    def __init__(self) -> None:
        self.routes: dict = {}
        self.requests: list[dict] = []
        self.base_url = ""

    def calls(self, path: str) -> list[dict]:
        return [r for r in self.requests if r["path"] == path]

    async def handle(self, request: web.Request) -> web.StreamResponse:
        self.requests.append(
            {
                "method": request.method,
                "path": request.path,
                "query": dict(request.query),
                "headers": dict(request.headers),
            }
        )
        route = self.routes.get(request.path)
        if route is None:
            return web.json_response({"message": "not found"}, status=404)
        if callable(route):
            return await route(request)
        status, body = route
        if isinstance(body, str):
            return web.Response(status=status, text=body, content_type="text/html")
        return web.json_response(body, status=status)


@pytest_asyncio.fixture
async def upstream():
    fake = FakeUpstream()
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", fake.handle)
    server = TestServer(app)
    await server.start_server()
    fake.base_url = f"http://{server.host}:{server.port}"
    yield fake
    await server.close()


@pytest_asyncio.fixture
async def make_client():
    """Start a TestClient for an app, closed at teardown."""
    clients: list[TestClient] = []

    async def _make(app: web.Application) -> TestClient:
        client = TestClient(TestServer(app))
        await client.start_server()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.close()
