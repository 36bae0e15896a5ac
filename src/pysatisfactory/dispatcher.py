"""Snapshot storage and fan-out to observers."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any, Protocol

from pysatisfactory._constants import BROADCAST_FIELDS
from pysatisfactory.models.server_state import ServerState

_logger = logging.getLogger(__name__)


class Observer(Protocol):
    """Receiver of state updates."""

    async def notify(self, state: ServerState) -> None:
        ...


def compare_states(
    old: ServerState | None,
    new: ServerState | None,
    fields: Iterable[str],
) -> dict[str, dict[str, Any]]:
    """Return ``{field: {"old": ..., "new": ...}}`` for every differing field.

    A missing snapshot compares as ``None`` on every field.
    """
    changes: dict[str, dict[str, Any]] = {}
    for name in fields:
        old_value = getattr(old, name, None)
        new_value = getattr(new, name, None)
        if old_value != new_value:
            changes[name] = {"old": old_value, "new": new_value}
    return changes


class BroadcastDispatcher:
    """Keeps the latest snapshot and pushes it to observers when it matters.

    The stored snapshot is always the latest one applied.  Observers are
    only notified when one of *fields* changed.
    """

    def __init__(self, fields: Iterable[str] = BROADCAST_FIELDS) -> None:
        self._fields = tuple(fields)
        self._observers: list[Observer] = []
        self._state: ServerState | None = None

    @property
    def state(self) -> ServerState | None:
        return self._state

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    async def add(self, observer: Observer) -> int:
        """Register *observer* and send it the current snapshot, if any."""
        if not any(known is observer for known in self._observers):
            self._observers.append(observer)
        if self._state is not None:
            await self._notify(observer, self._state)
        return len(self._observers)

    def remove(self, observer: Observer) -> int:
        """Unregister *observer*.  Unknown observers are ignored."""
        self._observers = [known for known in self._observers if known is not observer]
        return len(self._observers)

    async def apply(self, state: ServerState) -> bool:
        """Store *state* and broadcast it if a watched field changed.

        Returns whether a broadcast happened.
        """
        previous = self._state
        self._state = state
        changes = compare_states(previous, state, self._fields)
        if not changes:
            _logger.debug("Server state fetched, no watched field changed")
            return False
        _logger.info("Broadcasting state to %d observer(s): %s", len(self._observers), changes)
        await self.broadcast()
        return True

    async def broadcast(self) -> None:
        """Push the stored snapshot to every observer."""
        state = self._state
        if state is None or not self._observers:
            return
        await asyncio.gather(*(self._notify(observer, state) for observer in list(self._observers)))

    async def _notify(self, observer: Observer, state: ServerState) -> None:
        try:
            await observer.notify(state.model_copy(deep=True))
        except Exception:
            _logger.warning("Observer %r failed to receive state", observer, exc_info=True)
