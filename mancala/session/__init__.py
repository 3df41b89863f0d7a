"""
Session Module - Manages ephemeral game rooms.

A room represents one two-seat game:
- Created when a participant asks for one (random shareable code)
- Holds the authoritative game state
- Applies moves through the engine reducer
- Destroyed the moment either participant leaves

Rooms are EPHEMERAL:
- No persistence to database
- No reconnection window
- A removed code is never reachable again
"""

from .manager import (
    SessionManager,
    Session,
    SessionResult,
    SessionStatus,
    SessionRejection,
    RoomCodeExhaustedError,
    generate_room_code,
    normalize_room_code,
)

__all__ = [
    "SessionManager",
    "Session",
    "SessionResult",
    "SessionStatus",
    "SessionRejection",
    "RoomCodeExhaustedError",
    "generate_room_code",
    "normalize_room_code",
]
