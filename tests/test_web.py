from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from _support import FakeApi, FakeQueryServer, start_fake_query_server, wait_until
from pysatisfactory.config import SatisfactoryConfig
from pysatisfactory.engine import StateSyncEngine
from pysatisfactory.web import create_app


@pytest_asyncio.fixture
async def server() -> AsyncIterator[FakeQueryServer]:
    fake = await start_fake_query_server()
    yield fake
    fake.close()


def _engine(server: FakeQueryServer, api: FakeApi) -> StateSyncEngine:
    config = SatisfactoryConfig(host="127.0.0.1", port=server.port, password="secret", poll_interval=0.05)
    return StateSyncEngine(config, transport=api)


@pytest.mark.asyncio
async def test_state_is_empty_before_first_fetch(server: FakeQueryServer) -> None:
    engine = _engine(server, FakeApi())
    async with TestClient(TestServer(create_app(engine))) as client:
        resp = await client.get("/state")

        assert resp.status == 204
        assert resp.headers["Access-Control-Allow-Origin"] == "*"


@pytest.mark.asyncio
async def test_websocket_receives_server_update(server: FakeQueryServer) -> None:
    api = FakeApi()
    engine = _engine(server, api)
    async with TestClient(TestServer(create_app(engine))) as client:
        ws = await client.ws_connect("/ws")
        message = await ws.receive_json(timeout=2.0)

        assert message["event"] == "serverUpdate"
        assert message["data"]["numConnectedPlayers"] == 3
        assert message["data"]["activeSessionName"] == "Factory One"
        assert "raw" not in message["data"]
        assert engine.polling

        resp = await client.get("/state")
        assert resp.status == 200
        body = await resp.json()
        assert body["techTier"] == 2

        await ws.close()
        await wait_until(lambda: engine.observer_count == 0)
        assert not engine.polling


@pytest.mark.asyncio
async def test_late_websocket_gets_snapshot_immediately(server: FakeQueryServer) -> None:
    api = FakeApi()
    engine = _engine(server, api)
    async with TestClient(TestServer(create_app(engine))) as client:
        first = await client.ws_connect("/ws")
        await first.receive_json(timeout=2.0)
        fetches = api.count("QueryServerState")

        second = await client.ws_connect("/ws")
        message = await second.receive_json(timeout=2.0)

        assert message["data"]["numConnectedPlayers"] == 3
        assert api.count("QueryServerState") == fetches
        await first.close()
        await second.close()


@pytest.mark.asyncio
async def test_options_preflight_allows_any_origin(server: FakeQueryServer) -> None:
    engine = _engine(server, FakeApi())
    async with TestClient(TestServer(create_app(engine))) as client:
        resp = await client.options("/state")

        assert resp.status == 204
        assert resp.headers["Access-Control-Allow-Origin"] == "*"
        assert "GET" in resp.headers["Access-Control-Allow-Methods"]
