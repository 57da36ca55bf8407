"""Tests for the Twitch credential manager."""

import asyncio

import pytest
import pytest_asyncio
from aiohttp import web

from emote_hub.api.auth import AuthFailure, CredentialManager
from emote_hub.core.models import Credential
from emote_hub.core.settings import TwitchSettings

TOKEN_PATH = "/oauth2/token"


@pytest_asyncio.fixture
async def manager(upstream):
    manager = CredentialManager(
        TwitchSettings(client_id="cid", client_secret="secret"),
        auth_url=f"{upstream.base_url}/oauth2",
    )
    yield manager
    await manager.close()


@pytest.mark.asyncio
async def test_exchange_sends_client_credentials(upstream, manager):
    upstream.routes[TOKEN_PATH] = (200, {"access_token": "tok", "expires_in": 100})

    assert await manager.get_token() == Credential("tok")

    request = upstream.calls(TOKEN_PATH)[0]
    assert request["method"] == "POST"
    assert request["query"] == {
        "client_id": "cid",
        "client_secret": "secret",
        "grant_type": "client_credentials",
    }


@pytest.mark.asyncio
async def test_token_is_lazy_and_cached(upstream, manager):
    upstream.routes[TOKEN_PATH] = (200, {"access_token": "tok"})
    assert upstream.requests == []

    await manager.get_token()
    await manager.get_token()

    assert manager.exchanges == 1


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_exchange(upstream, manager):
    async def slow_token(request: web.Request) -> web.Response:
        await asyncio.sleep(0.05)
        return web.json_response({"access_token": "tok"})

    upstream.routes[TOKEN_PATH] = slow_token

    tokens = await asyncio.gather(*(manager.get_token() for _ in range(5)))

    assert set(tokens) == {Credential("tok")}
    assert len(upstream.calls(TOKEN_PATH)) == 1


@pytest.mark.asyncio
async def test_invalidate_forces_new_exchange(upstream, manager):
    issued = iter(["first", "second"])

    async def token(request: web.Request) -> web.Response:
        return web.json_response({"access_token": next(issued)})

    upstream.routes[TOKEN_PATH] = token

    first = await manager.get_token()
    manager.invalidate(first)

    assert await manager.get_token() == Credential("second")


@pytest.mark.asyncio
async def test_invalidate_stale_credential_keeps_newer(upstream, manager):
    upstream.routes[TOKEN_PATH] = (200, {"access_token": "current"})
    await manager.get_token()

    manager.invalidate(Credential("older"))

    assert await manager.get_token() == Credential("current")
    assert manager.exchanges == 1


@pytest.mark.asyncio
async def test_error_status_raises(upstream, manager):
    upstream.routes[TOKEN_PATH] = (400, {"status": 400, "message": "invalid client"})
    with pytest.raises(AuthFailure):
        await manager.get_token()


@pytest.mark.asyncio
async def test_missing_access_token_raises(upstream, manager):
    upstream.routes[TOKEN_PATH] = (200, {"token_type": "bearer"})
    with pytest.raises(AuthFailure):
        await manager.get_token()


@pytest.mark.asyncio
async def test_failure_is_not_cached(upstream, manager):
    upstream.routes[TOKEN_PATH] = (500, {"message": "down"})
    with pytest.raises(AuthFailure):
        await manager.get_token()

    upstream.routes[TOKEN_PATH] = (200, {"access_token": "tok"})
    assert await manager.get_token() == Credential("tok")


@pytest.mark.asyncio
async def test_unconfigured_raises_without_request(upstream):
    manager = CredentialManager(TwitchSettings(client_id="cid"), auth_url=upstream.base_url)
    try:
        with pytest.raises(AuthFailure):
            await manager.get_token()
    finally:
        await manager.close()
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_unreachable_endpoint_raises(unreachable_url):
    manager = CredentialManager(
        TwitchSettings(client_id="cid", client_secret="secret"), auth_url=unreachable_url
    )
    try:
        with pytest.raises(AuthFailure):
            await manager.get_token()
    finally:
        await manager.close()


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_failure(upstream, manager):
    async def slow_failure(request: web.Request) -> web.Response:
        await asyncio.sleep(0.05)
        return web.json_response({"message": "down"}, status=500)

    upstream.routes[TOKEN_PATH] = slow_failure

    results = await asyncio.gather(
        *(manager.get_token() for _ in range(4)), return_exceptions=True
    )

    assert all(isinstance(r, AuthFailure) for r in results)
    assert len(upstream.calls(TOKEN_PATH)) == 1
    assert manager.exchanges == 1


@pytest.mark.asyncio
async def test_undecodable_token_body_raises(upstream, manager):
    async def token(request: web.Request) -> web.Response:
        return web.Response(body=b'{"access_token": "\xff\xfe"}', content_type="application/json")

    upstream.routes[TOKEN_PATH] = token
    with pytest.raises(AuthFailure):
        await manager.get_token()
