"""
Pydantic Schemas for API - Message and response models.

These models define the exact contract between game clients and the relay.
Every WebSocket frame, in both directions, is one of these models.

Inbound frames carry a "type" discriminator:
    create | join | move | reset | ping

Outbound frames are envelopes:
    {"type": <MessageType>, "payload": {...}}

Error Codes:
- GAME_ALREADY_OVER / NOT_YOUR_TURN / NOT_YOUR_PIT / EMPTY_PIT: move refused by the rules
- ROOM_NOT_FOUND: Room does not exist or was torn down
- ROOM_FULL: Both seats are taken
- NOT_SEATED: Requester has no seat in the room
- ALREADY_SEATED: Requester already sits in a room
- WAITING_FOR_OPPONENT: Room has one seat, moves not allowed yet
- INVALID_REQUEST: Frame is not valid JSON or does not match a request model
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, StrictInt, TypeAdapter

from ..engine_core.state import BOARD_SIZE, GameState, Player, Winner
from ..engine_core.action import MoveOutcome
from ..session.manager import SessionStatus


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    GAME_ALREADY_OVER = "GAME_ALREADY_OVER"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    NOT_YOUR_PIT = "NOT_YOUR_PIT"
    EMPTY_PIT = "EMPTY_PIT"
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    ROOM_FULL = "ROOM_FULL"
    NOT_SEATED = "NOT_SEATED"
    ALREADY_SEATED = "ALREADY_SEATED"
    WAITING_FOR_OPPONENT = "WAITING_FOR_OPPONENT"
    INVALID_REQUEST = "INVALID_REQUEST"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class MessageType(str, Enum):
    """Outbound frame types."""
    ROOM_CREATED = "room_created"
    JOINED_ROOM = "joined_room"
    GAME_STARTING = "game_starting"
    GAME_UPDATE = "game_update"
    OPPONENT_DISCONNECTED = "opponent_disconnected"
    ERROR = "error"
    PONG = "pong"


# =============================================================================
# Shared Models
# =============================================================================

class GameStateSchema(BaseModel):
    """Authoritative game state, sent verbatim on every transition."""
    board: list[int] = Field(
        min_length=BOARD_SIZE,
        max_length=BOARD_SIZE,
        description="Stone counts: 0-5 A pits, 6 A store, 7-12 B pits, 13 B store",
    )
    current_player: Player
    game_over: bool
    winner: Winner
    status_message: str

    @classmethod
    def from_state(cls, state: GameState) -> "GameStateSchema":
        return cls(**state.to_dict())


class LastMoveSchema(BaseModel):
    """What the last accepted move did, for animation and sound."""
    player: Player
    pit_index: int
    landing_slot: int
    sown_slots: list[int] = Field(default_factory=list)
    outcome: MoveOutcome
    captured_stones: int = 0


# =============================================================================
# Inbound (client -> relay)
# =============================================================================

def _code_field():
    return Field(validation_alias=AliasChoices("code", "roomCode", "room_code"))


class CreateRoomRequest(BaseModel):
    """Open a new room and take seat A."""
    type: Literal["create"]


class JoinRoomRequest(BaseModel):
    """Take seat B in an existing room."""
    type: Literal["join"]
    code: str = _code_field()


class MoveRequest(BaseModel):
    """Sow from one of your pits."""
    type: Literal["move"]
    code: str = _code_field()
    pit_index: StrictInt = Field(validation_alias=AliasChoices("pit_index", "pitIndex"))


class ResetRequest(BaseModel):
    """Start the room's game over."""
    type: Literal["reset"]
    code: str = _code_field()


class PingRequest(BaseModel):
    """Keep-alive."""
    type: Literal["ping"]


InboundMessage = Annotated[
    Union[CreateRoomRequest, JoinRoomRequest, MoveRequest, ResetRequest, PingRequest],
    Field(discriminator="type"),
]

INBOUND_ADAPTER: TypeAdapter = TypeAdapter(InboundMessage)


# =============================================================================
# Outbound (relay -> client)
# =============================================================================

class SeatPayload(BaseModel):
    """Sent to a participant when they take a seat."""
    code: str
    state: GameStateSchema
    seat: Player
    seat_count: int = Field(ge=1, le=2)


class GameStartingPayload(BaseModel):
    """Sent to seat A when seat B is taken."""
    code: str
    seat_count: int = 2


class GameUpdatePayload(BaseModel):
    """Broadcast to both seats after every state change."""
    code: str
    state: GameStateSchema
    last_move: Optional[LastMoveSchema] = None


class OpponentDisconnectedPayload(BaseModel):
    """Sent to the remaining seat right before the room is torn down."""
    code: str


class ErrorPayload(BaseModel):
    """Sent only to the requester of a refused request."""
    error_code: ErrorCode
    error: str
    code: Optional[str] = None


class ServerMessage(BaseModel):
    """Envelope for every outbound frame."""
    type: MessageType
    payload: Optional[dict[str, Any]] = None


# =============================================================================
# HTTP responses
# =============================================================================

class RoomResponse(BaseModel):
    """Room snapshot for HTTP polling."""
    code: str
    status: SessionStatus
    seat_count: int
    state: GameStateSchema


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    service: str = "mancala-relay"
    version: str
    active_rooms: int = 0
