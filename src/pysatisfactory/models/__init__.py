"""Models for pysatisfactory."""

from pysatisfactory.models._base import SatisfactoryBaseModel, SatisfactoryEnum
from pysatisfactory.models.poll import PollResponse, ServerStatus, SubState
from pysatisfactory.models.server_state import ServerState
from pysatisfactory.models.token import AuthToken

__all__ = [
    "AuthToken",
    "PollResponse",
    "SatisfactoryBaseModel",
    "SatisfactoryEnum",
    "ServerState",
    "ServerStatus",
    "SubState",
]
