"""Sub-state version tracking.

A state report carries a version counter per sub-state.  The tracker keeps
the last version seen for every id and decides whether the report warrants
a full ``QueryServerState`` fetch.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from pysatisfactory._constants import DEFAULT_REFRESH_SUBSTATE_IDS
from pysatisfactory.models.poll import SubState

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TrackerUpdate:
    """Outcome of observing one state report."""

    changed_ids: frozenset[int]
    refresh_warranted: bool


class SubStateTracker:
    """Last-seen version table with change detection.

    The first sighting of an id establishes its baseline and is not a
    change.  Only a change to one of *refresh_ids* warrants a refresh.
    """

    def __init__(self, refresh_ids: Iterable[int] = DEFAULT_REFRESH_SUBSTATE_IDS) -> None:
        self._refresh_ids = frozenset(refresh_ids)
        self._versions: dict[int, int] = {}

    @property
    def refresh_ids(self) -> frozenset[int]:
        return self._refresh_ids

    @property
    def versions(self) -> dict[int, int]:
        """Copy of the version table."""
        return dict(self._versions)

    def version(self, sub_state_id: int) -> int | None:
        return self._versions.get(sub_state_id)

    def observe(self, sub_states: Iterable[SubState]) -> TrackerUpdate:
        """Record *sub_states* and report which known ids changed."""
        changed: set[int] = set()
        for sub_state in sub_states:
            previous = self._versions.get(sub_state.id)
            if previous is not None and previous != sub_state.version:
                _logger.debug(
                    "Change detected in sub-state %d (%d -> %d)",
                    sub_state.id,
                    previous,
                    sub_state.version,
                )
                changed.add(sub_state.id)
            self._versions[sub_state.id] = sub_state.version

        refresh = not self._refresh_ids.isdisjoint(changed)
        if refresh:
            _logger.info("State change detected in sub-states %s", sorted(changed & self._refresh_ids))
        return TrackerUpdate(changed_ids=frozenset(changed), refresh_warranted=refresh)
