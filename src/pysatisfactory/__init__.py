"""pysatisfactory - push dedicated server state changes to observers."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pysatisfactory")
except PackageNotFoundError:
    __version__ = "0+local"
from pysatisfactory.config import SatisfactoryConfig
from pysatisfactory.connection import ConnectionManager, ConnectionState
from pysatisfactory.dispatcher import BroadcastDispatcher, Observer, compare_states
from pysatisfactory.engine import StateSyncEngine
from pysatisfactory.exceptions import (
    PollDecodeError,
    ProtocolMismatchError,
    SatisfactoryApiError,
    SatisfactoryAuthenticationError,
    SatisfactoryConfigError,
    SatisfactoryError,
    SatisfactoryFetchError,
    SatisfactoryHttpStatusError,
    SatisfactoryResponseDecodeError,
    SatisfactoryTransportError,
    TruncatedError,
    UnexpectedMessageTypeError,
)
from pysatisfactory.fetcher import StateFetcher
from pysatisfactory.models import AuthToken, PollResponse, ServerState, ServerStatus, SubState
from pysatisfactory.protocol import decode_response, encode_poll
from pysatisfactory.scheduler import PollScheduler
from pysatisfactory.tracker import SubStateTracker, TrackerUpdate

__all__ = [
    "__version__",
    "AuthToken",
    "BroadcastDispatcher",
    "ConnectionManager",
    "ConnectionState",
    "Observer",
    "PollDecodeError",
    "PollResponse",
    "PollScheduler",
    "ProtocolMismatchError",
    "SatisfactoryApiError",
    "SatisfactoryAuthenticationError",
    "SatisfactoryConfig",
    "SatisfactoryConfigError",
    "SatisfactoryError",
    "SatisfactoryFetchError",
    "SatisfactoryHttpStatusError",
    "SatisfactoryResponseDecodeError",
    "SatisfactoryTransportError",
    "ServerState",
    "ServerStatus",
    "StateFetcher",
    "StateSyncEngine",
    "SubState",
    "SubStateTracker",
    "TrackerUpdate",
    "TruncatedError",
    "UnexpectedMessageTypeError",
    "compare_states",
    "decode_response",
    "encode_poll",
]
