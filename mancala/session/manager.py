"""
Session Manager - Creates and manages game rooms.

LIFECYCLE:
1. A participant creates a room -> random short code, seat A, fresh GameState
2. A second participant joins with the code -> seat B, moves allowed
3. Moves are applied through the reducer, the returned state replaces the stored one
4. Reset replaces the state with a fresh one, seats unchanged
5. Either participant disconnects -> room removed entirely, code unreachable

PERSISTENCE RULES:
- NO database, rooms are in-memory only
- The manager exclusively owns Session records
- Participants are opaque hashable handles, never transport identifiers,
  and are matched by equality wherever a seat is looked up

CONCURRENCY:
- The registry (code -> Session, participant -> code) has its own lock,
  so code generation and registration are atomic
- Each Session has a lock around its read-modify-write of the GameState
- Lock order is always registry first, then session
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Hashable
import logging
import secrets
import string
import threading
import time

from ..engine_core.state import GameState, Player, initial_state
from ..engine_core.action import ActionResult, Move, RejectionKind
from ..engine_core.reducer import Reducer


logger = logging.getLogger(__name__)

ROOM_CODE_LENGTH = 6
ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 100


def generate_room_code(length: int = ROOM_CODE_LENGTH) -> str:
    """Random shareable code such as 'K3ZQ9A'."""
    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(length))


def normalize_room_code(code: Any) -> str:
    """Codes are typed by humans: ignore surrounding space and case."""
    if not isinstance(code, str):
        return ""
    return code.strip().upper()


class RoomCodeExhaustedError(RuntimeError):
    """No unused room code found within MAX_CODE_ATTEMPTS draws."""


class SessionStatus(str, Enum):
    """State of a room."""
    LOBBY = "lobby"  # One seat taken, waiting for an opponent
    ACTIVE = "active"  # Both seats taken, moves allowed
    FINISHED = "finished"  # Game over, waiting for reset or teardown


class SessionRejection(str, Enum):
    """Why the manager refused a request."""
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    ROOM_FULL = "ROOM_FULL"
    NOT_SEATED = "NOT_SEATED"
    ALREADY_SEATED = "ALREADY_SEATED"
    WAITING_FOR_OPPONENT = "WAITING_FOR_OPPONENT"


@dataclass
class Session:
    """
    A live two-seat game room.

    Contains:
    - The shareable code
    - Seat bindings (Player -> participant handle)
    - The current authoritative GameState

    The room is destroyed when either participant leaves.
    """
    code: str
    state: GameState
    created_at: float
    seats: dict[Player, Hashable] = field(default_factory=dict)

    closed: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def seat_count(self) -> int:
        return len(self.seats)

    @property
    def status(self) -> SessionStatus:
        if self.state.game_over:
            return SessionStatus.FINISHED
        if self.seat_count < 2:
            return SessionStatus.LOBBY
        return SessionStatus.ACTIVE

    def seat_of(self, participant: Hashable) -> Player | None:
        """Which seat a participant occupies in this room."""
        for player, occupant in self.seats.items():
            if occupant == participant:
                return player
        return None

    def participants(self) -> tuple[Hashable, ...]:
        """Seated participants, seat A first."""
        return tuple(self.seats[p] for p in Player if p in self.seats)

    def others(self, participant: Hashable) -> tuple[Hashable, ...]:
        return tuple(p for p in self.participants() if p != participant)


@dataclass
class SessionResult:
    """
    Result of a manager operation.

    On success carries a snapshot of the room (code, state, seats) taken
    while the room was locked, so callers never read a half-updated room.
    """
    success: bool
    code: str | None = None
    state: GameState | None = None
    seat: Player | None = None
    seat_count: int = 0
    status: SessionStatus | None = None
    participants: tuple[Hashable, ...] = ()

    error: str | None = None
    error_code: SessionRejection | RejectionKind | None = None

    # Engine result for moves (presentation details)
    action_result: ActionResult | None = None

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: SessionRejection | RejectionKind,
        code: str | None = None,
    ) -> SessionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code, code=code)

    @classmethod
    def from_session(
        cls,
        session: Session,
        seat: Player | None = None,
        action_result: ActionResult | None = None,
    ) -> SessionResult:
        """Snapshot a room. Call with the room's lock held."""
        return cls(
            success=True,
            code=session.code,
            state=session.state,
            seat=seat,
            seat_count=session.seat_count,
            status=session.status,
            participants=session.participants(),
            action_result=action_result,
        )


class SessionManager:
    """
    Manages game rooms.

    Responsibilities:
    - Create rooms with unique codes
    - Bind participants to seats
    - Apply moves through the reducer and keep the result
    - Remove rooms when a participant leaves

    No persistence - rooms are in-memory only.
    """

    def __init__(
        self,
        reducer: Reducer | None = None,
        code_factory: Callable[[], str] = generate_room_code,
        stones_per_pit: int | None = None,
    ):
        self._reducer = reducer or Reducer()
        self._code_factory = code_factory
        self._stones_per_pit = stones_per_pit
        self._sessions: dict[str, Session] = {}
        self._seated: dict[Hashable, str] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def _fresh_state(self) -> GameState:
        if self._stones_per_pit is None:
            return initial_state()
        return initial_state(self._stones_per_pit)

    def create_session(self, participant: Hashable) -> SessionResult:
        """
        Create a new room with the requester in seat A.

        Raises RoomCodeExhaustedError if no free code turns up
        within MAX_CODE_ATTEMPTS draws.
        """
        with self._lock:
            if participant in self._seated:
                return SessionResult.failure(
                    "Already seated in another room",
                    SessionRejection.ALREADY_SEATED,
                    code=self._seated[participant],
                )

            code = self._unused_code()
            session = Session(
                code=code,
                state=self._fresh_state(),
                created_at=time.time(),
                seats={Player.A: participant},
            )
            self._sessions[code] = session
            self._seated[participant] = code

            with session._lock:
                result = SessionResult.from_session(session, seat=Player.A)

        logger.info("Room %s created", code)
        return result

    def _unused_code(self) -> str:
        """Draw codes until one is free. Call with the registry lock held."""
        for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
            code = self._code_factory()
            if code not in self._sessions:
                return code
            logger.debug("Room code collision on attempt %d, retrying", attempt)
        raise RoomCodeExhaustedError(
            f"No unused room code after {MAX_CODE_ATTEMPTS} attempts"
        )

    def join_session(self, code: str, participant: Hashable) -> SessionResult:
        """Seat the requester as player B."""
        code = normalize_room_code(code)
        with self._lock:
            session = self._sessions.get(code)
            if session is None:
                return SessionResult.failure("Room not found!", SessionRejection.ROOM_NOT_FOUND, code=code)

            if participant in self._seated:
                return SessionResult.failure(
                    "Already seated in a room",
                    SessionRejection.ALREADY_SEATED,
                    code=code,
                )

            with session._lock:
                if session.seat_count >= 2 or Player.B in session.seats:
                    return SessionResult.failure("Room is full!", SessionRejection.ROOM_FULL, code=code)

                session.seats[Player.B] = participant
                self._seated[participant] = code
                result = SessionResult.from_session(session, seat=Player.B)

        logger.info("Player joined room %s", code)
        return result

    def get_session(self, code: str) -> Session | None:
        """Get a room by code."""
        with self._lock:
            return self._sessions.get(normalize_room_code(code))

    def session_of(self, participant: Hashable) -> Session | None:
        """The room a participant is seated in, if any."""
        with self._lock:
            code = self._seated.get(participant)
            return self._sessions.get(code) if code else None

    def get_state(self, code: str) -> SessionResult:
        """Current state of a room."""
        code = normalize_room_code(code)
        session = self.get_session(code)
        if session is None:
            return SessionResult.failure("Room not found!", SessionRejection.ROOM_NOT_FOUND, code=code)
        with session._lock:
            if session.closed:
                return SessionResult.failure("Room not found!", SessionRejection.ROOM_NOT_FOUND, code=code)
            return SessionResult.from_session(session)

    def apply_move(self, code: str, pit_index: Any, participant: Hashable) -> SessionResult:
        """
        Apply a move for the requester's seat.

        The reducer decides legality; an accepted state replaces the stored
        one, a rejection leaves the room untouched.
        """
        code = normalize_room_code(code)
        session = self.get_session(code)
        if session is None:
            return SessionResult.failure("Room not found!", SessionRejection.ROOM_NOT_FOUND, code=code)

        with session._lock:
            if session.closed:
                return SessionResult.failure("Room not found!", SessionRejection.ROOM_NOT_FOUND, code=code)

            player = session.seat_of(participant)
            if player is None:
                return SessionResult.failure(
                    "You are not seated in this room",
                    SessionRejection.NOT_SEATED,
                    code=code,
                )

            if session.seat_count < 2:
                return SessionResult.failure(
                    "Waiting for an opponent to join",
                    SessionRejection.WAITING_FOR_OPPONENT,
                    code=code,
                )

            result = self._reducer.apply(session.state, Move(player=player, pit_index=pit_index))
            if not result.success:
                logger.debug("Move rejected in room %s: %s", code, result.error_code.value)
                return SessionResult.failure(result.error, result.error_code, code=code)

            session.state = result.new_state
            snapshot = SessionResult.from_session(session, seat=player, action_result=result)

        logger.info("Move made in room %s by player %s, pit %s", code, player.value, pit_index)
        return snapshot

    def reset_session(self, code: str, participant: Hashable | None = None) -> SessionResult:
        """Replace the room's state with a fresh game, seats unchanged."""
        code = normalize_room_code(code)
        session = self.get_session(code)
        if session is None:
            return SessionResult.failure("Room not found!", SessionRejection.ROOM_NOT_FOUND, code=code)

        with session._lock:
            if session.closed:
                return SessionResult.failure("Room not found!", SessionRejection.ROOM_NOT_FOUND, code=code)
            if participant is not None and session.seat_of(participant) is None:
                return SessionResult.failure(
                    "You are not seated in this room",
                    SessionRejection.NOT_SEATED,
                    code=code,
                )
            session.state = self._fresh_state()
            snapshot = SessionResult.from_session(session, seat=session.seat_of(participant))

        logger.info("Game reset in room %s", code)
        return snapshot

    def remove_participant(self, participant: Hashable) -> Session | None:
        """
        Remove the room a participant is seated in.

        Both seats are invalidated and the code becomes unreachable at once.
        Returns the removed room (its code and remaining seat are needed to
        notify the opponent), or None if the participant had no room.
        """
        with self._lock:
            code = self._seated.pop(participant, None)
            if code is None:
                return None
            session = self._sessions.pop(code, None)
            if session is None:
                return None
            for occupant in session.participants():
                self._seated.pop(occupant, None)
            with session._lock:
                session.closed = True

        logger.info("Room %s cleaned up due to disconnection", code)
        return session

    def list_sessions(self) -> list[str]:
        """Codes of live rooms."""
        with self._lock:
            return list(self._sessions)
