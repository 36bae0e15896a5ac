"""Authenticated full-state fetch with token caching."""

from __future__ import annotations

import logging

from pysatisfactory._api.login import build_login_request, parse_login_response
from pysatisfactory._api.server_state import parse_server_state_response
from pysatisfactory._constants import (
    FUNCTION_PASSWORD_LOGIN,
    FUNCTION_QUERY_SERVER_STATE,
    UNAUTHORIZED_STATUS_CODES,
)
from pysatisfactory._transport import Transport
from pysatisfactory.config import SatisfactoryConfig
from pysatisfactory.exceptions import (
    SatisfactoryAuthenticationError,
    SatisfactoryFetchError,
    SatisfactoryHttpStatusError,
)
from pysatisfactory.models.server_state import ServerState
from pysatisfactory.models.token import AuthToken

_logger = logging.getLogger(__name__)


class StateFetcher:
    """Fetches :class:`ServerState` through the HTTPS API.

    The bearer token is obtained lazily: a fetch logs in first when no
    token is cached.  A cached token is only replaced by a later
    successful login; failed fetches leave it in place unless
    ``config.reauth_on_unauthorized`` is set and the server answered
    401/403.

    Each call is a single attempt.  Retrying is left to the caller's
    polling cadence.
    """

    def __init__(self, config: SatisfactoryConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport
        self._token: AuthToken | None = None

    @property
    def token(self) -> AuthToken | None:
        """Currently cached bearer token."""
        return self._token

    def invalidate_token(self) -> None:
        """Forget the cached token (next fetch will log in again)."""
        self._token = None

    async def authenticate(self) -> AuthToken:
        """Log in with the configured password and cache the token.

        Raises
        ------
        SatisfactoryAuthenticationError
            Login was rejected or could not be performed.  Any previously
            cached token is kept.
        """
        try:
            body = await self._transport.call(FUNCTION_PASSWORD_LOGIN, build_login_request(self._config))
        except SatisfactoryFetchError as exc:
            raise SatisfactoryAuthenticationError(
                f"Login failed: {exc}",
                function=FUNCTION_PASSWORD_LOGIN,
            ) from exc

        token = parse_login_response(body)
        self._token = token
        _logger.info("Authenticated against %s", self._config.api_url)
        return token

    async def fetch_state(self) -> ServerState:
        """Fetch the full server game state.

        Raises
        ------
        SatisfactoryTransportError
            Network-level failure.
        SatisfactoryHttpStatusError
            Non-2xx response.
        SatisfactoryResponseDecodeError
            Malformed response body.
        SatisfactoryApiError
            API-level error body.
        """
        if self._token is None:
            try:
                await self.authenticate()
            except SatisfactoryAuthenticationError as exc:
                # Carry on without a token; the fetch below reports the failure.
                _logger.error("Authentication failed: %s", exc)

        try:
            body = await self._transport.call(FUNCTION_QUERY_SERVER_STATE, token=self._token)
        except SatisfactoryHttpStatusError as exc:
            if self._config.reauth_on_unauthorized and exc.status_code in UNAUTHORIZED_STATUS_CODES:
                _logger.warning("Token rejected with HTTP %d; re-authenticating on next fetch", exc.status_code)
                self.invalidate_token()
            raise

        return parse_server_state_response(body)
