"""
Relay Handler - Protocol layer between connected clients and the room registry.

The relay:
1. Parses inbound frames into typed requests
2. Maps each request to exactly one SessionManager operation
3. Broadcasts successes to every seat of the room
4. Sends rejections only to the requester
5. Tears a room down when either participant disconnects

This layer is transport-agnostic: a participant is anything with an
async send_json(dict). The FastAPI WebSocket adapter lives in app.py.

Room lifecycle:
    lobby (1 seat) -> active (2 seats) -> finished (game over) -> active (reset)
    any state -> removed (disconnect)
"""

from __future__ import annotations
import asyncio
import logging
from typing import Any, Protocol

from pydantic import BaseModel, ValidationError

from .schemas import (
    INBOUND_ADAPTER,
    CreateRoomRequest,
    ErrorCode,
    ErrorPayload,
    GameStartingPayload,
    GameStateSchema,
    GameUpdatePayload,
    JoinRoomRequest,
    LastMoveSchema,
    MessageType,
    MoveRequest,
    OpponentDisconnectedPayload,
    PingRequest,
    ResetRequest,
    SeatPayload,
    ServerMessage,
)
from ..session.manager import (
    RoomCodeExhaustedError,
    SessionManager,
    SessionResult,
    normalize_room_code,
)


logger = logging.getLogger(__name__)


class Participant(Protocol):
    """One connected client. Hashed by identity."""

    async def send_json(self, message: dict[str, Any]) -> None:
        ...


class RelayHandler:
    """
    Drives room lifecycle from inbound requests.

    Usage:
        relay = RelayHandler(SessionManager())

        # Frame arrives on a connection
        await relay.handle(participant, {"type": "create"})

        # Connection closes
        await relay.disconnect(participant)

    Handling for one room is serialized: the room's asyncio.Lock is held
    across the manager call and the notifications it produces, so two
    rapid moves are applied and announced in order. Rooms never share a lock.
    """

    def __init__(self, session_manager: SessionManager | None = None):
        self.sessions = session_manager if session_manager is not None else SessionManager()
        self._room_locks: dict[str, asyncio.Lock] = {}

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def handle(self, participant: Participant, data: Any) -> None:
        """Validate one inbound frame and run the matching request."""
        try:
            request = INBOUND_ADAPTER.validate_python(data)
        except ValidationError as e:
            logger.debug("Invalid request: %s", e.errors(include_url=False))
            await self.reject(participant, ErrorCode.INVALID_REQUEST, _describe(e))
            return

        if isinstance(request, CreateRoomRequest):
            await self.create(participant)
        elif isinstance(request, JoinRoomRequest):
            await self.join(participant, request.code)
        elif isinstance(request, MoveRequest):
            await self.move(participant, request.code, request.pit_index)
        elif isinstance(request, ResetRequest):
            await self.reset(participant, request.code)
        elif isinstance(request, PingRequest):
            await self._send(participant, MessageType.PONG)

    # =========================================================================
    # Requests
    # =========================================================================

    async def create(self, participant: Participant) -> None:
        """create -> room_created to the requester."""
        try:
            result = self.sessions.create_session(participant)
        except RoomCodeExhaustedError as e:
            logger.error("Room creation failed: %s", e)
            await self.reject(participant, ErrorCode.INTERNAL_ERROR, "Could not allocate a room code")
            return

        if not result.success:
            await self._reject_result(participant, result)
            return

        await self._send(participant, MessageType.ROOM_CREATED, self._seat_payload(result))

    async def join(self, participant: Participant, code: str) -> None:
        """join -> joined_room to joiner, game_starting to seat A, game_update to both."""
        code = normalize_room_code(code)
        lock = self._lock_for(code)
        if lock is None:
            await self.reject(participant, ErrorCode.ROOM_NOT_FOUND, "Room not found!", code)
            return

        async with lock:
            result = self.sessions.join_session(code, participant)
            if not result.success:
                await self._reject_result(participant, result)
                return

            await self._send(participant, MessageType.JOINED_ROOM, self._seat_payload(result))
            for other in result.participants:
                if other != participant:
                    await self._send(
                        other,
                        MessageType.GAME_STARTING,
                        GameStartingPayload(code=result.code, seat_count=result.seat_count),
                    )
            await self._broadcast(result)

    async def move(self, participant: Participant, code: str, pit_index: Any) -> None:
        """move -> game_update to both seats."""
        code = normalize_room_code(code)
        lock = self._lock_for(code)
        if lock is None:
            await self.reject(participant, ErrorCode.ROOM_NOT_FOUND, "Room not found!", code)
            return

        async with lock:
            result = self.sessions.apply_move(code, pit_index, participant)
            if not result.success:
                await self._reject_result(participant, result)
                return
            await self._broadcast(result)

    async def reset(self, participant: Participant, code: str) -> None:
        """reset -> game_update with a fresh state to both seats."""
        code = normalize_room_code(code)
        lock = self._lock_for(code)
        if lock is None:
            await self.reject(participant, ErrorCode.ROOM_NOT_FOUND, "Room not found!", code)
            return

        async with lock:
            result = self.sessions.reset_session(code, participant)
            if not result.success:
                await self._reject_result(participant, result)
                return
            await self._broadcast(result)

    async def disconnect(self, participant: Participant) -> None:
        """
        Connection closed: tear the room down at once.

        No grace period and no reconnection. The remaining seat gets a
        best-effort opponent_disconnected before the room disappears.
        """
        session = self.sessions.session_of(participant)
        if session is None:
            return

        code = session.code
        lock = self._room_locks.get(code) or asyncio.Lock()
        async with lock:
            removed = self.sessions.remove_participant(participant)
            self._room_locks.pop(code, None)
            if removed is None:
                return
            for other in removed.others(participant):
                await self._send(
                    other,
                    MessageType.OPPONENT_DISCONNECTED,
                    OpponentDisconnectedPayload(code=removed.code),
                )

    # =========================================================================
    # Notification helpers
    # =========================================================================

    async def reject(
        self,
        participant: Participant,
        error_code: ErrorCode,
        message: str,
        code: str | None = None,
    ) -> None:
        """Send an error frame to one participant."""
        await self._send(
            participant,
            MessageType.ERROR,
            ErrorPayload(error_code=error_code, error=message, code=code or None),
        )

    async def _reject_result(self, participant: Participant, result: SessionResult) -> None:
        await self.reject(
            participant,
            ErrorCode(result.error_code.value),
            result.error or result.error_code.value,
            result.code,
        )

    async def _broadcast(self, result: SessionResult) -> None:
        """game_update to every seat of the room."""
        last_move = None
        if result.action_result is not None:
            summary = result.action_result.move_summary()
            if summary is not None:
                last_move = LastMoveSchema(**summary)

        payload = GameUpdatePayload(
            code=result.code,
            state=GameStateSchema.from_state(result.state),
            last_move=last_move,
        )
        for participant in result.participants:
            await self._send(participant, MessageType.GAME_UPDATE, payload)

    async def _send(
        self,
        participant: Participant,
        message_type: MessageType,
        payload: BaseModel | None = None,
    ) -> None:
        message = ServerMessage(
            type=message_type,
            payload=payload.model_dump(mode="json") if payload is not None else None,
        )
        try:
            await participant.send_json(message.model_dump(mode="json"))
        except Exception as e:
            # Dead connection; its disconnect event tears the room down.
            logger.warning("Failed to send %s: %s", message_type.value, e)

    def _seat_payload(self, result: SessionResult) -> SeatPayload:
        return SeatPayload(
            code=result.code,
            state=GameStateSchema.from_state(result.state),
            seat=result.seat,
            seat_count=result.seat_count,
        )

    def _lock_for(self, code: str) -> asyncio.Lock | None:
        """The room's lock, or None if the room does not exist."""
        if self.sessions.get_session(code) is None:
            return None
        return self._room_locks.setdefault(code, asyncio.Lock())


def _describe(error: ValidationError) -> str:
    """Short human-readable summary of a validation failure."""
    parts = []
    for item in error.errors(include_url=False):
        location = ".".join(str(p) for p in item.get("loc", ()))
        parts.append(f"{location}: {item.get('msg')}" if location else item.get("msg", ""))
    return "Invalid request - " + "; ".join(parts)
