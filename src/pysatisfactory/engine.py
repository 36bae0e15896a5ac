"""State synchronization engine.

Ties the components together::

    PollScheduler -> ConnectionManager.send(encode_poll())
    ConnectionManager -> decode_response -> SubStateTracker
    SubStateTracker (refresh warranted) -> StateFetcher -> BroadcastDispatcher

Everything runs on one asyncio event loop.  Failures are logged at their
origin; nothing propagates out of the engine's callbacks.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

import aiohttp

from pysatisfactory._transport import ApiTransport, Transport
from pysatisfactory.config import SatisfactoryConfig
from pysatisfactory.connection import ConnectionManager, ConnectionState
from pysatisfactory.dispatcher import BroadcastDispatcher, Observer
from pysatisfactory.exceptions import (
    ProtocolMismatchError,
    SatisfactoryError,
    TruncatedError,
    UnexpectedMessageTypeError,
)
from pysatisfactory.fetcher import StateFetcher
from pysatisfactory.models.poll import PollResponse
from pysatisfactory.models.server_state import ServerState
from pysatisfactory.protocol import decode_response, encode_poll
from pysatisfactory.scheduler import PollScheduler
from pysatisfactory.tracker import SubStateTracker

_logger = logging.getLogger(__name__)


class StateSyncEngine:
    """Pushes dedicated server state changes to observers.

    Usage::

        async with StateSyncEngine(config) as engine:
            await engine.subscribe(observer)
            ...

    Polling runs only while at least one observer is subscribed.
    """

    def __init__(
        self,
        config: SatisfactoryConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._fetcher: StateFetcher | None = None
        self._tracker = SubStateTracker(config.refresh_substate_ids)
        self._dispatcher = BroadcastDispatcher()
        self._scheduler = PollScheduler(self._poll, config.poll_interval)
        self._connection = ConnectionManager(
            config.host,
            config.port,
            on_datagram=self.handle_datagram,
            on_disconnected=self._on_disconnected,
            on_reconnected=self._on_reconnected,
            reconnect_delay=config.reconnect_delay,
        )
        self._polling_wanted = False
        self._refresh_task: asyncio.Task[None] | None = None
        self._refresh_pending = False
        self._last_poll: PollResponse | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> StateSyncEngine:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def start(self) -> None:
        """Create the HTTP session and open the UDP socket."""
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = ApiTransport(self._config, self._http_session)
        self._fetcher = StateFetcher(self._config, self._transport)
        await self._connection.open()

    async def close(self) -> None:
        """Stop polling, close the socket and release the HTTP session."""
        self._polling_wanted = False
        self._scheduler.stop()
        self._connection.close()
        task = self._refresh_task
        self._refresh_task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def config(self) -> SatisfactoryConfig:
        return self._config

    @property
    def state(self) -> ServerState | None:
        """Latest fetched snapshot."""
        return self._dispatcher.state

    @property
    def last_poll(self) -> PollResponse | None:
        """Most recent decoded state report."""
        return self._last_poll

    @property
    def observer_count(self) -> int:
        return self._dispatcher.observer_count

    @property
    def polling(self) -> bool:
        return self._scheduler.is_running

    @property
    def connection_state(self) -> ConnectionState:
        return self._connection.state

    @property
    def tracker(self) -> SubStateTracker:
        return self._tracker

    @property
    def fetcher(self) -> StateFetcher:
        if self._fetcher is None:
            raise SatisfactoryError("Engine not started. Use 'async with StateSyncEngine(...) as engine:'")
        return self._fetcher

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    async def subscribe(self, observer: Observer) -> None:
        """Add an observer; the first one starts polling."""
        count = await self._dispatcher.add(observer)
        _logger.info("Observer subscribed (%d connected)", count)
        if self._dispatcher.state is None:
            self.request_refresh()
        self._polling_wanted = True
        self._start_polling()

    def unsubscribe(self, observer: Observer) -> None:
        """Remove an observer; the last one stops polling."""
        count = self._dispatcher.remove(observer)
        _logger.info("Observer unsubscribed (%d connected)", count)
        if count == 0:
            self._polling_wanted = False
            self._scheduler.stop()

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def _start_polling(self) -> None:
        if not self._connection.is_connected:
            _logger.debug("UDP socket not connected; polling starts once it reconnects")
            return
        self._scheduler.start()

    def _poll(self) -> None:
        self._connection.send(encode_poll())

    def _on_disconnected(self) -> None:
        self._scheduler.stop()

    def _on_reconnected(self) -> None:
        if self._polling_wanted:
            self._start_polling()

    def handle_datagram(self, data: bytes) -> None:
        """Decode a datagram and schedule a refresh when warranted."""
        try:
            response = decode_response(data)
        except ProtocolMismatchError:
            _logger.error("Invalid protocol magic; datagram is not a server state report")
            return
        except UnexpectedMessageTypeError as exc:
            _logger.info("Received unexpected message type: %d", exc.message_type)
            return
        except TruncatedError as exc:
            _logger.warning("Discarding truncated state report: %s", exc)
            return

        self._last_poll = response
        update = self._tracker.observe(response.sub_states)
        if update.refresh_warranted:
            self.request_refresh()

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def request_refresh(self) -> None:
        """Run :meth:`refresh` in the background.

        A request made while a refresh is running is folded into one
        follow-up refresh.
        """
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_pending = True
            return
        self._refresh_pending = False
        self._refresh_task = asyncio.get_running_loop().create_task(
            self._refresh_until_settled(),
            name="pysatisfactory-refresh",
        )

    async def _refresh_until_settled(self) -> None:
        while True:
            await self.refresh()
            if not self._refresh_pending:
                return
            self._refresh_pending = False

    async def refresh(self) -> bool:
        """Fetch the full state and dispatch it.

        Returns ``True`` on a successful fetch.  Failures are logged.
        """
        try:
            state = await self.fetcher.fetch_state()
        except SatisfactoryError as exc:
            _logger.error("Error updating server state: %s", exc)
            return False
        await self._dispatcher.apply(state)
        return True

    async def wait_for_refresh(self) -> None:
        """Wait until the background refresh (if any) has finished."""
        task = self._refresh_task
        if task is not None:
            await asyncio.shield(task)
