"""Codec for the lightweight query protocol.

Poll request (13 bytes, little-endian)::

    0   u16  magic (0xF6D5)
    2   u8   message type (0 = poll)
    3   u8   protocol version (1)
    4   u64  cookie
    12  u8   terminator (0x01)

State report (variable length, little-endian)::

    0   u16  magic
    2   u8   message type (1 = state report)
    3   u8   protocol version
    4   u64  cookie (echoed)
    12  u8   server state
    13  u32  net changelist
    17  u64  server flags
    25  u8   sub-state count N
    26  N x (u8 id, u16 version)
    ..  u16  server name length, then UTF-8 name (optional)
"""

from __future__ import annotations

import struct
import time

from pysatisfactory._constants import (
    MESSAGE_TERMINATOR,
    MESSAGE_TYPE_POLL,
    MESSAGE_TYPE_STATE_REPORT,
    OFFSET_COOKIE,
    OFFSET_MESSAGE_TYPE,
    OFFSET_NET_CHANGELIST,
    OFFSET_PROTOCOL_VERSION,
    OFFSET_SERVER_FLAGS,
    OFFSET_SERVER_STATE,
    OFFSET_SUB_STATE_COUNT,
    OFFSET_SUB_STATES,
    PROTOCOL_MAGIC,
    PROTOCOL_VERSION,
    SUB_STATE_ENTRY_SIZE,
)
from pysatisfactory.exceptions import ProtocolMismatchError, TruncatedError, UnexpectedMessageTypeError
from pysatisfactory.models.poll import PollResponse, ServerStatus, SubState

_POLL_REQUEST = struct.Struct("<HBBQB")
_MAGIC = struct.Struct("<H")
_SUB_STATE = struct.Struct("<BH")
_NAME_LENGTH = struct.Struct("<H")

_COOKIE_MASK = (1 << 64) - 1


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


def encode_poll(cookie: int | None = None) -> bytes:
    """Build a poll request datagram.

    Parameters
    ----------
    cookie : int, optional
        Opaque value echoed by the server.  Defaults to the current time
        in milliseconds; uniqueness is not required.
    """
    if cookie is None:
        cookie = _now_ms()
    return _POLL_REQUEST.pack(
        PROTOCOL_MAGIC,
        MESSAGE_TYPE_POLL,
        PROTOCOL_VERSION,
        cookie & _COOKIE_MASK,
        MESSAGE_TERMINATOR,
    )


def decode_response(data: bytes) -> PollResponse:
    """Decode a state report datagram.

    Raises
    ------
    ProtocolMismatchError
        The datagram does not start with the protocol magic.
    UnexpectedMessageTypeError
        The datagram is not a state report.
    TruncatedError
        The datagram ends before its header or its declared sub-states.
    """
    size = len(data)
    if size < _MAGIC.size or _MAGIC.unpack_from(data, 0)[0] != PROTOCOL_MAGIC:
        raise ProtocolMismatchError(f"datagram of {size} bytes does not start with the protocol magic")

    if size <= OFFSET_MESSAGE_TYPE:
        raise TruncatedError("datagram ends before message type", expected=OFFSET_MESSAGE_TYPE + 1, actual=size)
    message_type = data[OFFSET_MESSAGE_TYPE]
    if message_type != MESSAGE_TYPE_STATE_REPORT:
        raise UnexpectedMessageTypeError(
            f"unexpected message type {message_type}",
            message_type=message_type,
        )

    if size < OFFSET_SUB_STATES:
        raise TruncatedError(
            f"state report header needs {OFFSET_SUB_STATES} bytes, got {size}",
            expected=OFFSET_SUB_STATES,
            actual=size,
        )

    count = data[OFFSET_SUB_STATE_COUNT]
    end = OFFSET_SUB_STATES + count * SUB_STATE_ENTRY_SIZE
    if size < end:
        raise TruncatedError(
            f"state report declares {count} sub-states ({end} bytes), got {size}",
            expected=end,
            actual=size,
        )

    sub_states = tuple(
        SubState(id=sub_state_id, version=version)
        for sub_state_id, version in _SUB_STATE.iter_unpack(data[OFFSET_SUB_STATES:end])
    )

    return PollResponse(
        protocol_version=data[OFFSET_PROTOCOL_VERSION],
        cookie=struct.unpack_from("<Q", data, OFFSET_COOKIE)[0],
        server_status=ServerStatus(data[OFFSET_SERVER_STATE]),
        net_changelist=struct.unpack_from("<I", data, OFFSET_NET_CHANGELIST)[0],
        server_flags=struct.unpack_from("<Q", data, OFFSET_SERVER_FLAGS)[0],
        sub_states=sub_states,
        server_name=_decode_server_name(data, end),
    )


def _decode_server_name(data: bytes, offset: int) -> str | None:
    if len(data) < offset + _NAME_LENGTH.size:
        return None
    (length,) = _NAME_LENGTH.unpack_from(data, offset)
    start = offset + _NAME_LENGTH.size
    if len(data) < start + length:
        return None
    return data[start : start + length].decode("utf-8", errors="replace")
