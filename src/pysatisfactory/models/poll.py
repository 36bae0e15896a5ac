"""Lightweight query protocol models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from pysatisfactory.models._base import SatisfactoryEnum


class ServerStatus(SatisfactoryEnum):
    """Server state byte of a state report."""

    UNKNOWN = -1
    OFFLINE = 0
    IDLE = 1
    LOADING = 2
    PLAYING = 3


class SubState(BaseModel):
    """One independently versioned facet of server state."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=0, le=0xFF)
    version: int = Field(ge=0, le=0xFFFF)


class PollResponse(BaseModel):
    """Decoded server state report."""

    model_config = ConfigDict(frozen=True)

    protocol_version: int
    cookie: int
    """Cookie echoed from the poll request."""

    server_status: ServerStatus
    net_changelist: int
    server_flags: int = 0
    sub_states: tuple[SubState, ...] = ()
    server_name: str | None = None
    """Trailing server name, when the datagram carries a complete one."""
