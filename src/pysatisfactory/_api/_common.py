"""Shared helpers for API function modules.

It is internal to pysatisfactory and may change at any time.
"""

from __future__ import annotations

from typing import Any

from pysatisfactory.exceptions import SatisfactoryApiError, SatisfactoryResponseDecodeError


def extract_data(body: dict[str, Any], function: str) -> dict[str, Any]:
    """Return the ``data`` object of a response body.

    Raises
    ------
    SatisfactoryApiError
        The body is an API error (``errorCode`` present).
    SatisfactoryResponseDecodeError
        The body carries no ``data`` object.
    """
    if "errorCode" in body:
        raise SatisfactoryApiError(
            f"{function} failed: {body.get('errorCode')} {body.get('errorMessage', '')}".rstrip(),
            error_code=str(body.get("errorCode", "")),
            function=function,
        )
    data = body.get("data")
    if not isinstance(data, dict):
        raise SatisfactoryResponseDecodeError(
            f"{function} response missing 'data' object",
            function=function,
        )
    return data
