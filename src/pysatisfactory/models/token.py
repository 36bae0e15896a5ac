"""Authentication token model."""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field


class AuthToken(BaseModel):
    """Bearer token returned by ``PasswordLogin``.

    The server does not report an expiry, so the token is kept until a
    later login replaces it.

    Parameters
    ----------
    value : str
        Opaque bearer credential.
    obtained_at : float
        Monotonic timestamp (``time.monotonic()``) of the login.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    value: str = Field(min_length=1, repr=False)
    obtained_at: float = Field(default_factory=time.monotonic)

    @property
    def authorization_header(self) -> str:
        """Value for the ``Authorization`` request header."""
        return f"Bearer {self.value}"

    @property
    def age(self) -> float:
        """Seconds since the token was obtained."""
        return time.monotonic() - self.obtained_at
