"""Periodic poll emission."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from pysatisfactory._constants import DEFAULT_POLL_INTERVAL

_logger = logging.getLogger(__name__)


class PollScheduler:
    """Calls *poll* immediately on :meth:`start`, then every *interval* seconds.

    The interval runs as one asyncio task which :meth:`stop` cancels.
    Starting an already running scheduler is a no-op.
    """

    def __init__(self, poll: Callable[[], None], interval: float = DEFAULT_POLL_INTERVAL) -> None:
        self._poll = poll
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Start polling.  Returns ``False`` if already running."""
        if self.is_running:
            return False
        _logger.info("Starting UDP polling every %.1f seconds", self._interval)
        self._task = asyncio.get_running_loop().create_task(self._run(), name="pysatisfactory-poll")
        return True

    def stop(self) -> bool:
        """Stop polling.  Returns ``False`` if not running."""
        task = self._task
        self._task = None
        if task is None or task.done():
            return False
        _logger.info("Stopping UDP polling")
        task.cancel()
        return True

    async def _run(self) -> None:
        while True:
            try:
                self._poll()
            except Exception:
                _logger.exception("Poll failed")
            await asyncio.sleep(self._interval)
