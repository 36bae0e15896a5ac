from __future__ import annotations

import pytest

from _support import GAME_STATE, RecordingObserver
from pysatisfactory.dispatcher import BroadcastDispatcher, compare_states
from pysatisfactory.models.server_state import ServerState


def _state(**overrides: object) -> ServerState:
    payload = dict(GAME_STATE)
    payload.update(overrides)
    return ServerState.model_validate(payload)


def test_compare_states_reports_changed_fields_only() -> None:
    old = _state(numConnectedPlayers=3, techTier=2)
    new = _state(numConnectedPlayers=4, techTier=2, averageTickRate=12.0)

    changes = compare_states(old, new, ["num_connected_players", "tech_tier"])

    assert changes == {"num_connected_players": {"old": 3, "new": 4}}


def test_compare_states_against_missing_snapshot() -> None:
    changes = compare_states(None, _state(), ["tech_tier", "is_game_paused"])

    assert changes == {
        "tech_tier": {"old": None, "new": 2},
        "is_game_paused": {"old": None, "new": False},
    }


@pytest.mark.asyncio
async def test_first_snapshot_is_broadcast() -> None:
    dispatcher = BroadcastDispatcher()
    observer = RecordingObserver()
    await dispatcher.add(observer)

    assert await dispatcher.apply(_state())
    assert len(observer.received) == 1


@pytest.mark.asyncio
async def test_player_count_change_is_broadcast_in_full() -> None:
    dispatcher = BroadcastDispatcher()
    observer = RecordingObserver()
    await dispatcher.apply(_state(numConnectedPlayers=3, techTier=2, isGameRunning=True, isGamePaused=False))
    await dispatcher.add(observer)
    observer.received.clear()

    new = _state(numConnectedPlayers=4, techTier=2, isGameRunning=True, isGamePaused=False)
    assert await dispatcher.apply(new)

    assert observer.received == [new]
    assert observer.received[0].active_session_name == "Factory One"


@pytest.mark.asyncio
async def test_identical_snapshot_is_stored_but_not_broadcast() -> None:
    dispatcher = BroadcastDispatcher()
    observer = RecordingObserver()
    await dispatcher.add(observer)
    await dispatcher.apply(_state())
    observer.received.clear()

    latest = _state(averageTickRate=15.5, totalGameDuration=9000)
    assert not await dispatcher.apply(latest)

    assert observer.received == []
    assert dispatcher.state is latest


@pytest.mark.parametrize(
    "field_name, value",
    [
        ("techTier", 3),
        ("isGameRunning", False),
        ("isGamePaused", True),
    ],
)
@pytest.mark.asyncio
async def test_each_watched_field_triggers_broadcast(field_name: str, value: object) -> None:
    dispatcher = BroadcastDispatcher()
    observer = RecordingObserver()
    await dispatcher.apply(_state())
    await dispatcher.add(observer)
    observer.received.clear()

    assert await dispatcher.apply(_state(**{field_name: value}))
    assert len(observer.received) == 1


@pytest.mark.asyncio
async def test_new_observer_receives_existing_snapshot() -> None:
    dispatcher = BroadcastDispatcher()
    snapshot = _state()
    await dispatcher.apply(snapshot)

    observer = RecordingObserver()
    assert await dispatcher.add(observer) == 1

    assert observer.received == [snapshot]
    # Observers get copies, never the stored instance.
    assert observer.received[0] is not dispatcher.state


@pytest.mark.asyncio
async def test_new_observer_without_snapshot_receives_nothing() -> None:
    dispatcher = BroadcastDispatcher()
    observer = RecordingObserver()

    await dispatcher.add(observer)

    assert observer.received == []


@pytest.mark.asyncio
async def test_failing_observer_does_not_block_others() -> None:
    dispatcher = BroadcastDispatcher()
    broken = RecordingObserver(fail=True)
    healthy = RecordingObserver()
    await dispatcher.add(broken)
    await dispatcher.add(healthy)

    assert await dispatcher.apply(_state())
    assert len(healthy.received) == 1


@pytest.mark.asyncio
async def test_add_and_remove_track_observer_count() -> None:
    dispatcher = BroadcastDispatcher()
    first = RecordingObserver()
    second = RecordingObserver()

    assert await dispatcher.add(first) == 1
    assert await dispatcher.add(first) == 1
    assert await dispatcher.add(second) == 2
    assert dispatcher.remove(first) == 1
    assert dispatcher.remove(first) == 1
    assert dispatcher.remove(second) == 0
