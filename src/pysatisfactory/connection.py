"""UDP socket lifecycle for the lightweight query protocol.

State machine::

    DISCONNECTED -> CONNECTING -> CONNECTED
    CONNECTED -(error/close)-> RECONNECT_PENDING -(delay)-> CONNECTING -> ...

There is no failed state: the server may simply be restarting, so every
failure leads back to ``RECONNECT_PENDING``.  ``CLOSED`` is entered only
through :meth:`ConnectionManager.close`.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from pysatisfactory._constants import DEFAULT_RECONNECT_DELAY

_logger = logging.getLogger(__name__)


class ConnectionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECT_PENDING = "reconnect_pending"
    CLOSED = "closed"


class _QueryProtocol(asyncio.DatagramProtocol):
    """Forwards socket callbacks to the owning manager."""

    def __init__(self, manager: ConnectionManager) -> None:
        self._manager = manager

    def datagram_received(self, data: bytes, addr: Any) -> None:
        self._manager._handle_datagram(self, data, addr)  # noqa: SLF001

    def error_received(self, exc: Exception) -> None:
        self._manager._handle_error(self, exc)  # noqa: SLF001

    def connection_lost(self, exc: Exception | None) -> None:
        self._manager._handle_lost(self, exc)  # noqa: SLF001


class ConnectionManager:
    """Owns the datagram socket and reopens it after failures.

    Parameters
    ----------
    host, port
        Address of the server's query port.
    on_datagram
        Called with every received datagram.  Exceptions it raises are
        logged and swallowed.
    on_disconnected
        Called when an open socket fails or closes.
    on_reconnected
        Called after the socket was reopened by the reconnect timer.
    reconnect_delay
        Seconds between a failure and the reconnect attempt.
    """

    def __init__(
        self,
        host: str,
        port: int,
        *,
        on_datagram: Callable[[bytes], None],
        on_disconnected: Callable[[], None] | None = None,
        on_reconnected: Callable[[], None] | None = None,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
    ) -> None:
        self._host = host
        self._port = port
        self._on_datagram = on_datagram
        self._on_disconnected = on_disconnected
        self._on_reconnected = on_reconnected
        self._reconnect_delay = reconnect_delay
        self._state = ConnectionState.DISCONNECTED
        self._transport: asyncio.DatagramTransport | None = None
        self._protocol: _QueryProtocol | None = None
        self._remote_addr: Any = None
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._reconnect_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED and self._transport is not None

    @property
    def reconnect_pending(self) -> bool:
        """Whether a reconnect timer is currently scheduled."""
        return self._reconnect_handle is not None

    def _set_state(self, state: ConnectionState) -> None:
        if state is not self._state:
            _logger.debug("UDP connection %s -> %s", self._state, state)
            self._state = state

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> bool:
        """Create the socket.

        Returns ``True`` once connected.  On failure a reconnect is
        scheduled and ``False`` is returned.
        """
        if self._state is ConnectionState.CLOSED:
            return False
        if self.is_connected:
            return True

        self._set_state(ConnectionState.CONNECTING)
        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(self._host, self._port, type=socket.SOCK_DGRAM)
            if not infos:
                raise OSError(f"no address for {self._host}:{self._port}")
            family, _type, _proto, _canon, remote_addr = infos[0]
            transport, protocol = await loop.create_datagram_endpoint(
                lambda: _QueryProtocol(self),
                family=family,
            )
        except OSError as exc:
            _logger.error("Could not open UDP socket to %s:%s: %s", self._host, self._port, exc)
            self._drop_socket()
            self._schedule_reconnect()
            return False

        if self._state is ConnectionState.CLOSED:
            # close() ran while we were resolving.
            transport.close()
            return False

        self._transport = transport
        self._protocol = protocol
        self._remote_addr = remote_addr
        self._set_state(ConnectionState.CONNECTED)
        _logger.info("UDP socket open for %s:%s", self._host, self._port)
        return True

    def close(self) -> None:
        """Close the socket for good; no reconnect follows."""
        self._set_state(ConnectionState.CLOSED)
        self._cancel_reconnect()
        task = self._reconnect_task
        self._reconnect_task = None
        if task is not None and not task.done():
            task.cancel()
        self._drop_socket()

    def send(self, data: bytes) -> bool:
        """Send *data* to the server without waiting for anything.

        Returns ``False`` when there is no open socket.
        """
        transport = self._transport
        if transport is None or not self.is_connected:
            _logger.debug("Dropping %d byte datagram: socket not connected", len(data))
            return False
        try:
            transport.sendto(data, self._remote_addr)
        except OSError as exc:
            _logger.error("Error sending UDP request: %s", exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Socket callbacks
    # ------------------------------------------------------------------

    def _handle_datagram(self, protocol: _QueryProtocol, data: bytes, addr: Any) -> None:
        if protocol is not self._protocol:
            return
        _logger.debug("Received %d bytes from %s", len(data), addr)
        try:
            self._on_datagram(data)
        except Exception:
            _logger.exception("Datagram handler failed")

    def _handle_error(self, protocol: _QueryProtocol, exc: Exception) -> None:
        if protocol is not self._protocol:
            return
        _logger.error("UDP socket error: %s", exc)
        self._drop_socket()
        self._notify_disconnected()
        self._schedule_reconnect()

    def _handle_lost(self, protocol: _QueryProtocol, exc: Exception | None) -> None:
        if protocol is not self._protocol:
            return
        _logger.warning("UDP socket closed%s", f": {exc}" if exc else "")
        self._protocol = None
        self._transport = None
        self._remote_addr = None
        self._notify_disconnected()
        self._schedule_reconnect()

    def _notify_disconnected(self) -> None:
        if self._on_disconnected is None:
            return
        try:
            self._on_disconnected()
        except Exception:
            _logger.exception("Disconnect callback failed")

    def _drop_socket(self) -> None:
        transport = self._transport
        # Forget the protocol first so the close callback is ignored.
        self._protocol = None
        self._transport = None
        self._remote_addr = None
        if transport is not None:
            transport.close()

    # ------------------------------------------------------------------
    # Reconnection
    # ------------------------------------------------------------------

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    def _schedule_reconnect(self) -> None:
        if self._state is ConnectionState.CLOSED:
            return
        self._set_state(ConnectionState.RECONNECT_PENDING)
        self._cancel_reconnect()
        _logger.info("Attempting to reconnect UDP socket in %.1f seconds", self._reconnect_delay)
        loop = asyncio.get_running_loop()
        self._reconnect_handle = loop.call_later(self._reconnect_delay, self._start_reconnect)

    def _start_reconnect(self) -> None:
        self._reconnect_handle = None
        self._reconnect_task = asyncio.get_running_loop().create_task(self._reconnect())

    async def _reconnect(self) -> None:
        if not await self.open():
            return
        if self._on_reconnected is not None:
            try:
                self._on_reconnected()
            except Exception:
                _logger.exception("Reconnect callback failed")
