"""``PasswordLogin`` function."""

from __future__ import annotations

import logging
from typing import Any

from pysatisfactory._api._common import extract_data
from pysatisfactory._constants import FUNCTION_PASSWORD_LOGIN
from pysatisfactory.config import SatisfactoryConfig
from pysatisfactory.exceptions import (
    SatisfactoryApiError,
    SatisfactoryAuthenticationError,
    SatisfactoryResponseDecodeError,
)
from pysatisfactory.models.token import AuthToken

_logger = logging.getLogger(__name__)


def build_login_request(config: SatisfactoryConfig) -> dict[str, Any]:
    """Build the ``data`` object for ``PasswordLogin``."""
    return {
        "MinimumPrivilegeLevel": config.minimum_privilege_level,
        "Password": config.password,
    }


def parse_login_response(body: dict[str, Any]) -> AuthToken:
    """Parse a ``PasswordLogin`` response body and extract the token.

    Raises
    ------
    SatisfactoryAuthenticationError
        If the server rejected the login or returned no token.
    """
    try:
        data = extract_data(body, FUNCTION_PASSWORD_LOGIN)
    except SatisfactoryApiError as exc:
        raise SatisfactoryAuthenticationError(
            str(exc),
            error_code=exc.error_code,
            function=FUNCTION_PASSWORD_LOGIN,
        ) from exc
    except SatisfactoryResponseDecodeError as exc:
        raise SatisfactoryAuthenticationError(
            f"Malformed login response: {exc}",
            function=FUNCTION_PASSWORD_LOGIN,
        ) from exc

    token = data.get("authenticationToken")
    if not isinstance(token, str) or not token.strip():
        raise SatisfactoryAuthenticationError(
            "Login response missing authenticationToken",
            function=FUNCTION_PASSWORD_LOGIN,
        )
    _logger.debug("Login succeeded, token of %d chars", len(token))
    return AuthToken(value=token)
