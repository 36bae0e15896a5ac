"""Internal constants shared across the library."""

# ------------------------------------------------------------------
# Lightweight query protocol (UDP)
# ------------------------------------------------------------------

PROTOCOL_MAGIC = 0xF6D5
PROTOCOL_VERSION = 1
MESSAGE_TYPE_POLL = 0
MESSAGE_TYPE_STATE_REPORT = 1
MESSAGE_TERMINATOR = 0x01

POLL_REQUEST_SIZE = 13

# Response layout offsets.
OFFSET_MESSAGE_TYPE = 2
OFFSET_PROTOCOL_VERSION = 3
OFFSET_COOKIE = 4
OFFSET_SERVER_STATE = 12
OFFSET_NET_CHANGELIST = 13
OFFSET_SERVER_FLAGS = 17
OFFSET_SUB_STATE_COUNT = 25
OFFSET_SUB_STATES = 26
SUB_STATE_ENTRY_SIZE = 3

# ------------------------------------------------------------------
# HTTPS API
# ------------------------------------------------------------------

DEFAULT_PORT = 7777
DEFAULT_API_PATH = "/api/v1/"
FUNCTION_PASSWORD_LOGIN = "PasswordLogin"
FUNCTION_QUERY_SERVER_STATE = "QueryServerState"
UNAUTHORIZED_STATUS_CODES: frozenset[int] = frozenset({401, 403})

# ------------------------------------------------------------------
# Engine timing and policy
# ------------------------------------------------------------------

DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_RECONNECT_DELAY = 5.0

#: Sub-state 0 carries the server game state; its version bump is what
#: correlates with changes visible through ``QueryServerState``.
DEFAULT_REFRESH_SUBSTATE_IDS: frozenset[int] = frozenset({0})

#: ServerState fields whose change causes a broadcast to observers.
BROADCAST_FIELDS: tuple[str, ...] = (
    "num_connected_players",
    "tech_tier",
    "is_game_running",
    "is_game_paused",
)

OBSERVER_EVENT_SERVER_UPDATE = "serverUpdate"
