from __future__ import annotations

import json
import socket
from typing import Any

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from pysatisfactory._transport import ApiTransport
from pysatisfactory.config import SatisfactoryConfig
from pysatisfactory.exceptions import (
    SatisfactoryHttpStatusError,
    SatisfactoryResponseDecodeError,
    SatisfactoryTransportError,
)
from pysatisfactory.models.token import AuthToken


def _make_app(seen: list[dict[str, Any]], reply: web.Response) -> web.Application:
    async def _api(request: web.Request) -> web.Response:
        seen.append(
            {
                "authorization": request.headers.get("Authorization"),
                "content_type": request.headers.get("Content-Type"),
                "body": await request.json(),
            }
        )
        return reply

    app = web.Application()
    app.router.add_post("/api/v1/", _api)
    return app


def _config_for(server: TestServer) -> SatisfactoryConfig:
    return SatisfactoryConfig(host=str(server.host), port=int(server.port or 0), scheme="http")


@pytest.mark.asyncio
async def test_call_posts_function_and_bearer_token() -> None:
    seen: list[dict[str, Any]] = []
    reply = web.json_response({"data": {"serverGameState": {"numConnectedPlayers": 1}}})
    async with TestServer(_make_app(seen, reply)) as server, aiohttp.ClientSession() as http:
        transport = ApiTransport(_config_for(server), http)

        body = await transport.call("QueryServerState", token=AuthToken(value="tok"))

    assert body == {"data": {"serverGameState": {"numConnectedPlayers": 1}}}
    assert seen[0]["authorization"] == "Bearer tok"
    assert seen[0]["content_type"] == "application/json"
    assert seen[0]["body"] == {"function": "QueryServerState"}


@pytest.mark.asyncio
async def test_call_without_token_sends_no_authorization() -> None:
    seen: list[dict[str, Any]] = []
    reply = web.json_response({"data": {"authenticationToken": "t"}})
    async with TestServer(_make_app(seen, reply)) as server, aiohttp.ClientSession() as http:
        transport = ApiTransport(_config_for(server), http)

        await transport.call("PasswordLogin", {"MinimumPrivilegeLevel": "Client", "Password": "pw"})

    assert seen[0]["authorization"] is None
    assert seen[0]["body"] == {
        "function": "PasswordLogin",
        "data": {"MinimumPrivilegeLevel": "Client", "Password": "pw"},
    }


@pytest.mark.asyncio
async def test_non_2xx_raises_http_status_error() -> None:
    reply = web.json_response({"errorCode": "wrong_password", "errorMessage": "Wrong password"}, status=401)
    async with TestServer(_make_app([], reply)) as server, aiohttp.ClientSession() as http:
        transport = ApiTransport(_config_for(server), http)

        with pytest.raises(SatisfactoryHttpStatusError) as exc_info:
            await transport.call("PasswordLogin", {"Password": "bad"})

    assert exc_info.value.status_code == 401
    assert exc_info.value.function == "PasswordLogin"
    assert "wrong_password" in str(exc_info.value)


@pytest.mark.asyncio
async def test_invalid_json_raises_decode_error() -> None:
    reply = web.Response(text="<html>not json</html>", content_type="text/html")
    async with TestServer(_make_app([], reply)) as server, aiohttp.ClientSession() as http:
        transport = ApiTransport(_config_for(server), http)

        with pytest.raises(SatisfactoryResponseDecodeError):
            await transport.call("QueryServerState")


@pytest.mark.asyncio
async def test_non_object_json_raises_decode_error() -> None:
    reply = web.Response(text=json.dumps([1, 2, 3]), content_type="application/json")
    async with TestServer(_make_app([], reply)) as server, aiohttp.ClientSession() as http:
        transport = ApiTransport(_config_for(server), http)

        with pytest.raises(SatisfactoryResponseDecodeError):
            await transport.call("QueryServerState")


@pytest.mark.asyncio
async def test_no_content_returns_empty_dict() -> None:
    async with TestServer(_make_app([], web.Response(status=204))) as server, aiohttp.ClientSession() as http:
        transport = ApiTransport(_config_for(server), http)

        assert await transport.call("VerifyAuthenticationToken") == {}


@pytest.mark.asyncio
async def test_connection_refused_raises_transport_error() -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    config = SatisfactoryConfig(host="127.0.0.1", port=port, scheme="http")

    async with aiohttp.ClientSession() as http:
        transport = ApiTransport(config, http)
        with pytest.raises(SatisfactoryTransportError):
            await transport.call("QueryServerState")
