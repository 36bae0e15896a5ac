"""Server game state model returned by ``QueryServerState``."""

from __future__ import annotations

from typing import Any

from pysatisfactory.models._base import SatisfactoryBaseModel


class ServerState(SatisfactoryBaseModel):
    """Snapshot of the dedicated server's game state.

    Only the fields consumed by the engine are modelled; anything else the
    server sends is kept in :attr:`raw`.
    """

    active_session_name: str = ""
    """Name of the currently loaded session."""

    num_connected_players: int = 0
    """Players currently connected."""

    player_limit: int = 0
    """Maximum number of players."""

    tech_tier: int = 0
    """Highest unlocked tech tier."""

    active_schematic: str = ""
    """Schematic (milestone) currently being worked on."""

    game_phase: str = ""
    """Current space elevator phase."""

    is_game_running: bool = False
    """Whether a save is loaded and the game is running."""

    is_game_paused: bool = False
    """Whether the game is paused (e.g. no players connected)."""

    total_game_duration: int = 0
    """Total play time of the session in seconds."""

    average_tick_rate: float = 0.0
    """Average server tick rate."""

    auto_load_session_name: str = ""
    """Session loaded automatically on server start."""

    def to_payload(self) -> dict[str, Any]:
        """Observer payload: camelCase keys, as received from the API."""
        return self.model_dump(by_alias=True, mode="json")
