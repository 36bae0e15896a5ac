"""HTTP transport for the dedicated server API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pysatisfactory._redact import redact_for_log
from pysatisfactory.config import SatisfactoryConfig
from pysatisfactory.exceptions import (
    SatisfactoryHttpStatusError,
    SatisfactoryResponseDecodeError,
    SatisfactoryTransportError,
)
from pysatisfactory.models.token import AuthToken

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the fetcher.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`ApiTransport`) concrete.
    """

    async def call(
        self,
        function: str,
        data: Mapping[str, Any] | None = None,
        *,
        token: AuthToken | None = None,
    ) -> dict[str, Any]:
        ...


def _error_summary(text: str) -> str:
    """Extract ``errorCode``/``errorMessage`` from an error body if present."""
    try:
        body = json.loads(text)
    except json.JSONDecodeError:
        return text[:200]
    if isinstance(body, dict) and "errorCode" in body:
        return f"{body.get('errorCode')}: {body.get('errorMessage', '')}"
    return text[:200]


class ApiTransport:
    """POSTs ``{"function": ..., "data": ...}`` requests to the API endpoint."""

    def __init__(
        self,
        config: SatisfactoryConfig,
        http_session: aiohttp.ClientSession,
    ) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)
        # ``False`` skips certificate verification.
        self._ssl = bool(config.verify_tls)

    async def call(
        self,
        function: str,
        data: Mapping[str, Any] | None = None,
        *,
        token: AuthToken | None = None,
    ) -> dict[str, Any]:
        """Invoke one API function and return the decoded JSON body.

        Raises
        ------
        SatisfactoryTransportError
            Network-level failure.
        SatisfactoryHttpStatusError
            Non-2xx response.
        SatisfactoryResponseDecodeError
            2xx response whose body is not a JSON object.
        """
        payload: dict[str, Any] = {"function": function}
        if data is not None:
            payload["data"] = dict(data)

        headers: dict[str, str] = {
            "accept": "application/json",
            "content-type": "application/json",
        }
        if token is not None:
            headers["authorization"] = token.authorization_header

        url = self._config.api_url
        _logger.debug("POST %s %s", url, redact_for_log(payload))

        try:
            async with self._http.post(
                url,
                data=json.dumps(payload, separators=(",", ":")),
                headers=headers,
                ssl=self._ssl,
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                status = resp.status
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise SatisfactoryTransportError(
                f"Request {function} to {url} failed: {exc!r}",
                function=function,
            ) from exc

        if not 200 <= status < 300:
            raise SatisfactoryHttpStatusError(
                f"HTTP {status} from {function}: {_error_summary(text)}",
                status_code=status,
                function=function,
            )

        # 204 No Content is a valid answer for functions without output.
        if not text.strip():
            return {}

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SatisfactoryResponseDecodeError(
                f"Invalid JSON from {function}: {text[:200]}",
                function=function,
            ) from exc

        if not isinstance(body, dict):
            raise SatisfactoryResponseDecodeError(
                f"Expected a JSON object from {function}, got {type(body).__name__}",
                function=function,
            )

        _logger.debug("Response %s %s", function, redact_for_log(body))
        return body
