"""Custom exception hierarchy for pysatisfactory."""

from __future__ import annotations


class SatisfactoryError(Exception):
    """Base exception for all pysatisfactory errors."""


class SatisfactoryConfigError(SatisfactoryError):
    """Invalid or missing configuration."""


class PollDecodeError(SatisfactoryError):
    """A datagram could not be decoded as a poll response."""


class ProtocolMismatchError(PollDecodeError):
    """Datagram does not start with the protocol magic.

    The sender is not speaking the lightweight query protocol; the
    datagram should be discarded.
    """


class UnexpectedMessageTypeError(PollDecodeError):
    """Datagram carries a message type other than a server state report."""

    def __init__(self, message: str, *, message_type: int) -> None:
        self.message_type = message_type
        super().__init__(message)


class TruncatedError(PollDecodeError):
    """Datagram is shorter than its header or declared sub-state count."""

    def __init__(self, message: str, *, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class SatisfactoryFetchError(SatisfactoryError):
    """Base for failures of a request against the HTTPS API."""

    def __init__(self, message: str, *, function: str = "") -> None:
        self.function = function
        super().__init__(message)


class SatisfactoryTransportError(SatisfactoryFetchError):
    """Network-level failure (connection refused, TLS, reset, timeout)."""


class SatisfactoryHttpStatusError(SatisfactoryFetchError):
    """The API answered with a non-2xx HTTP status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        function: str = "",
    ) -> None:
        self.status_code = status_code
        super().__init__(message, function=function)


class SatisfactoryResponseDecodeError(SatisfactoryFetchError):
    """The API answered 2xx but the body was not the expected JSON shape."""


class SatisfactoryApiError(SatisfactoryError):
    """The API returned an application-level error body."""

    def __init__(
        self,
        message: str,
        *,
        error_code: str = "",
        function: str = "",
    ) -> None:
        self.error_code = error_code
        self.function = function
        super().__init__(message)


class SatisfactoryAuthenticationError(SatisfactoryApiError):
    """Password login failed or returned no token."""
