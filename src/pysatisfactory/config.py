"""Client configuration for pysatisfactory."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pysatisfactory._constants import (
    DEFAULT_API_PATH,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_PORT,
    DEFAULT_RECONNECT_DELAY,
    DEFAULT_REFRESH_SUBSTATE_IDS,
)
from pysatisfactory.exceptions import SatisfactoryConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _parse_id_set(value: str) -> frozenset[int]:
    """Parse a comma separated list of sub-state ids (``"0,3"``)."""
    ids: set[int] = set()
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            sub_state_id = int(part)
        except ValueError as exc:
            raise SatisfactoryConfigError(f"invalid sub-state id {part!r}") from exc
        if not 0 <= sub_state_id <= 0xFF:
            raise SatisfactoryConfigError(f"sub-state id out of range: {sub_state_id}")
        ids.add(sub_state_id)
    return frozenset(ids)


def _parse_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise SatisfactoryConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class SatisfactoryConfig:
    """Engine configuration.

    Parameters
    ----------
    host : str
        Dedicated server host name or IP address.
    password : str
        Admin or client password used for ``PasswordLogin``.
    port : int
        Game port.  The UDP query protocol and the HTTPS API share it.
    api_path : str
        Path of the HTTPS API endpoint.
    scheme : str
        URL scheme of the API.  Dedicated servers only speak ``https``;
        ``http`` exists for local test servers.
    minimum_privilege_level : str
        Privilege level requested at login (``"Client"`` or
        ``"Administrator"``).
    verify_tls : bool
        Verify the server certificate.  Off by default because dedicated
        servers ship a self-signed certificate.
    poll_interval : float
        Seconds between two poll datagrams while observers are present.
    reconnect_delay : float
        Seconds to wait before reopening the UDP socket after a failure.
    request_timeout : float or None
        Total timeout for one API request.  ``None`` disables it; an
        unanswered request is then bounded only by the OS.
    refresh_substate_ids : frozenset of int
        Sub-state ids whose version change triggers a full state fetch.
    reauth_on_unauthorized : bool
        Drop the cached token when a fetch is rejected with 401/403 so the
        next fetch logs in again.  Off by default: the token is only
        replaced when none is cached.
    listen_host : str
        Bind address of the observer web application.
    listen_port : int
        Bind port of the observer web application.
    """

    host: str
    password: str = ""
    port: int = DEFAULT_PORT
    api_path: str = DEFAULT_API_PATH
    scheme: str = "https"
    minimum_privilege_level: str = "Client"
    verify_tls: bool = False
    poll_interval: float = DEFAULT_POLL_INTERVAL
    reconnect_delay: float = DEFAULT_RECONNECT_DELAY
    request_timeout: float | None = None
    refresh_substate_ids: frozenset[int] = DEFAULT_REFRESH_SUBSTATE_IDS
    reauth_on_unauthorized: bool = False
    listen_host: str = "0.0.0.0"  # noqa: S104
    listen_port: int = 3001

    def __post_init__(self) -> None:
        if not self.host:
            raise SatisfactoryConfigError("host must be set")
        if self.scheme not in {"http", "https"}:
            raise SatisfactoryConfigError(f"unsupported scheme {self.scheme!r}")
        if self.poll_interval <= 0:
            raise SatisfactoryConfigError("poll_interval must be positive")
        if self.reconnect_delay < 0:
            raise SatisfactoryConfigError("reconnect_delay must not be negative")
        if not self.api_path.startswith("/"):
            object.__setattr__(self, "api_path", f"/{self.api_path}")
        object.__setattr__(self, "refresh_substate_ids", frozenset(self.refresh_substate_ids))

    @property
    def api_url(self) -> str:
        """Full URL of the HTTPS API endpoint."""
        return f"{self.scheme}://{self.host}:{self.port}{self.api_path}"

    @classmethod
    def from_env(cls, **overrides: Any) -> SatisfactoryConfig:
        """Create configuration from environment variables.

        Reads ``SATISFACTORY_HOST``, ``SATISFACTORY_PASSWORD`` and the
        optional ``SATISFACTORY_*`` variables.  Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        SatisfactoryConfig
            Populated configuration.

        Raises
        ------
        SatisfactoryConfigError
            If a variable cannot be parsed or the result is invalid.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "SATISFACTORY_HOST": "host",
            "SATISFACTORY_PASSWORD": "password",
            "SATISFACTORY_API_PATH": "api_path",
            "SATISFACTORY_SCHEME": "scheme",
            "SATISFACTORY_MINIMUM_PRIVILEGE_LEVEL": "minimum_privilege_level",
            "SATISFACTORY_LISTEN_HOST": "listen_host",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMBER_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "SATISFACTORY_PORT": ("port", int),
            "SATISFACTORY_LISTEN_PORT": ("listen_port", int),
            "SATISFACTORY_POLL_INTERVAL": ("poll_interval", float),
            "SATISFACTORY_RECONNECT_DELAY": ("reconnect_delay", float),
            "SATISFACTORY_REQUEST_TIMEOUT": ("request_timeout", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMBER_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _parse_number(env_key, val, cast)

        ids_env = env.get("SATISFACTORY_REFRESH_SUBSTATE_IDS")
        if ids_env is not None and "refresh_substate_ids" not in overrides:
            config_kwargs["refresh_substate_ids"] = _parse_id_set(ids_env)

        if "verify_tls" not in overrides:
            config_kwargs["verify_tls"] = _env_bool(env.get("SATISFACTORY_VERIFY_TLS"), False)

        if "reauth_on_unauthorized" not in overrides:
            config_kwargs["reauth_on_unauthorized"] = _env_bool(
                env.get("SATISFACTORY_REAUTH_ON_UNAUTHORIZED"),
                False,
            )

        config_kwargs.update(overrides)

        if not config_kwargs.get("host"):
            raise SatisfactoryConfigError("SATISFACTORY_HOST is not set")

        return cls(**config_kwargs)
