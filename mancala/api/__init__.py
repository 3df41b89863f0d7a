"""
API Module - Network interface to the engine.

Exposes rooms over a WebSocket relay for two remote players:
1. One client creates a room and shares the code
2. The other joins with the code
3. Both send moves; the relay applies them and broadcasts the new state
4. Either leaving closes the room

All state is room-scoped and in-memory. No accounts required.
"""

from .schemas import (
    # Inbound
    CreateRoomRequest,
    JoinRoomRequest,
    MoveRequest,
    ResetRequest,
    PingRequest,
    INBOUND_ADAPTER,
    # Outbound
    ServerMessage,
    SeatPayload,
    GameStartingPayload,
    GameUpdatePayload,
    OpponentDisconnectedPayload,
    ErrorPayload,
    # HTTP
    RoomResponse,
    ErrorResponse,
    HealthResponse,
    # Shared
    GameStateSchema,
    LastMoveSchema,
    ErrorCode,
    MessageType,
)
from .relay import RelayHandler, Participant
from .app import create_app, WebSocketParticipant

__all__ = [
    # Inbound
    "CreateRoomRequest",
    "JoinRoomRequest",
    "MoveRequest",
    "ResetRequest",
    "PingRequest",
    "INBOUND_ADAPTER",
    # Outbound
    "ServerMessage",
    "SeatPayload",
    "GameStartingPayload",
    "GameUpdatePayload",
    "OpponentDisconnectedPayload",
    "ErrorPayload",
    # HTTP
    "RoomResponse",
    "ErrorResponse",
    "HealthResponse",
    # Shared
    "GameStateSchema",
    "LastMoveSchema",
    "ErrorCode",
    "MessageType",
    # Relay
    "RelayHandler",
    "Participant",
    "create_app",
    "WebSocketParticipant",
]
