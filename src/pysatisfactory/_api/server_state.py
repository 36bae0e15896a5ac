"""``QueryServerState`` function."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from pysatisfactory._api._common import extract_data
from pysatisfactory._constants import FUNCTION_QUERY_SERVER_STATE
from pysatisfactory.exceptions import SatisfactoryResponseDecodeError
from pysatisfactory.models.server_state import ServerState


def parse_server_state_response(body: dict[str, Any]) -> ServerState:
    """Parse a ``QueryServerState`` response body.

    Raises
    ------
    SatisfactoryApiError
        The body is an API error.
    SatisfactoryResponseDecodeError
        The body does not contain a valid ``serverGameState`` object.
    """
    data = extract_data(body, FUNCTION_QUERY_SERVER_STATE)
    game_state = data.get("serverGameState")
    if not isinstance(game_state, dict):
        raise SatisfactoryResponseDecodeError(
            "QueryServerState response missing 'serverGameState'",
            function=FUNCTION_QUERY_SERVER_STATE,
        )
    try:
        return ServerState.model_validate(game_state)
    except ValidationError as exc:
        raise SatisfactoryResponseDecodeError(
            f"Invalid serverGameState: {exc.error_count()} error(s)",
            function=FUNCTION_QUERY_SERVER_STATE,
        ) from exc
