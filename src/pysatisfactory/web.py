"""aiohttp application exposing the engine to browser observers.

Routes:

* ``GET /ws`` - WebSocket; every state update arrives as
  ``{"event": "serverUpdate", "data": {...}}``.
* ``GET /state`` - latest snapshot, ``204`` when none was fetched yet.
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import AsyncIterator, Awaitable, Callable

from aiohttp import WSCloseCode, web

from pysatisfactory._constants import OBSERVER_EVENT_SERVER_UPDATE
from pysatisfactory.engine import StateSyncEngine
from pysatisfactory.models.server_state import ServerState

_logger = logging.getLogger(__name__)

ENGINE_KEY = web.AppKey("engine", StateSyncEngine)
WEBSOCKETS_KEY = web.AppKey("websockets", weakref.WeakSet)

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST",
    "Access-Control-Allow-Headers": "Content-Type",
}


class WebSocketObserver:
    """Forwards state updates to one WebSocket client."""

    def __init__(self, ws: web.WebSocketResponse, peer: str | None = None) -> None:
        self._ws = ws
        self.peer = peer

    def __repr__(self) -> str:
        return f"WebSocketObserver(peer={self.peer!r})"

    async def notify(self, state: ServerState) -> None:
        if self._ws.closed:
            return
        await self._ws.send_json({"event": OBSERVER_EVENT_SERVER_UPDATE, "data": state.to_payload()})


@web.middleware
async def cors_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    if request.method == "OPTIONS":
        response: web.StreamResponse = web.Response(status=204)
    else:
        response = await handler(request)
    if not response.prepared:
        response.headers.update(_CORS_HEADERS)
    return response


async def websocket_handler(request: web.Request) -> web.WebSocketResponse:
    engine = request.app[ENGINE_KEY]
    ws = web.WebSocketResponse(heartbeat=30.0)
    await ws.prepare(request)
    request.app[WEBSOCKETS_KEY].add(ws)

    observer = WebSocketObserver(ws, request.remote)
    _logger.info("Client connected: %s", observer.peer)
    await engine.subscribe(observer)
    try:
        # No inbound commands; iterate until the client goes away.
        async for _msg in ws:
            pass
    finally:
        engine.unsubscribe(observer)
        request.app[WEBSOCKETS_KEY].discard(ws)
        _logger.info("Client disconnected: %s", observer.peer)
    return ws


async def state_handler(request: web.Request) -> web.Response:
    state = request.app[ENGINE_KEY].state
    if state is None:
        return web.Response(status=204)
    return web.json_response(state.to_payload())


async def _engine_ctx(app: web.Application) -> AsyncIterator[None]:
    engine = app[ENGINE_KEY]
    await engine.start()
    yield
    await engine.close()


async def _close_websockets(app: web.Application) -> None:
    for ws in set(app[WEBSOCKETS_KEY]):
        await ws.close(code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")


def create_app(engine: StateSyncEngine) -> web.Application:
    """Build the web application; the engine starts and stops with it."""
    app = web.Application(middlewares=[cors_middleware])
    app[ENGINE_KEY] = engine
    app[WEBSOCKETS_KEY] = weakref.WeakSet()
    app.cleanup_ctx.append(_engine_ctx)
    app.on_shutdown.append(_close_websockets)
    app.router.add_get("/ws", websocket_handler)
    app.router.add_get("/state", state_handler)
    return app
