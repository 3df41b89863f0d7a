"""
Game State - Board layout and the immutable state value.

Slot layout (fixed, 14 slots):
    0-5   Player A pits
    6     Player A store
    7-12  Player B pits
    13    Player B store

Design principles:
- Immutable: a GameState is never changed in place, transitions return new values
- Serializable: board is a plain tuple of ints
- Rule-free: the layout helpers answer "which slot is what", never "is this legal"
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum


BOARD_SIZE = 14
PITS_PER_SIDE = 6
INITIAL_STONES_PER_PIT = 4


class Player(str, Enum):
    """The two seats of a game."""
    A = "A"
    B = "B"

    @property
    def opponent(self) -> Player:
        return Player.B if self is Player.A else Player.A


class Winner(str, Enum):
    """Final result of a game."""
    A = "A"
    B = "B"
    TIE = "tie"
    NONE = "none"

    @classmethod
    def of(cls, player: Player) -> Winner:
        return cls(player.value)


PLAYER_PITS: dict[Player, tuple[int, ...]] = {
    Player.A: tuple(range(0, 6)),
    Player.B: tuple(range(7, 13)),
}

PLAYER_STORE: dict[Player, int] = {
    Player.A: 6,
    Player.B: 13,
}


def pits_of(player: Player) -> tuple[int, ...]:
    """Slot indices of a player's six pits."""
    return PLAYER_PITS[player]


def store_of(player: Player) -> int:
    """Slot index of a player's store."""
    return PLAYER_STORE[player]


def opposite_pit(slot: int) -> int:
    """The pit directly across the board (0 <-> 12, 5 <-> 7)."""
    return 12 - slot


def owner_of(slot: int) -> Player | None:
    """Which player's row a pit belongs to. Stores return None."""
    for player, pits in PLAYER_PITS.items():
        if slot in pits:
            return player
    return None


def initial_board(stones_per_pit: int = INITIAL_STONES_PER_PIT) -> tuple[int, ...]:
    """Board with every pit filled and both stores empty."""
    if stones_per_pit < 1:
        raise ValueError(f"stones_per_pit must be positive, got {stones_per_pit}")
    row = [stones_per_pit] * PITS_PER_SIDE
    return tuple(row + [0] + row + [0])


def turn_message(player: Player) -> str:
    return f"PLAYER {player.value} TURN"


@dataclass(frozen=True)
class GameState:
    """
    Complete game state at a point in time.

    This is the authoritative value the engine operates on.
    All state changes go through the reducer.
    """
    board: tuple[int, ...]
    current_player: Player = Player.A
    game_over: bool = False
    winner: Winner = Winner.NONE
    status_message: str = turn_message(Player.A)

    def __post_init__(self):
        if len(self.board) != BOARD_SIZE:
            raise ValueError(f"Board must have {BOARD_SIZE} slots, got {len(self.board)}")
        if any(count < 0 for count in self.board):
            raise ValueError("Slot counts must be non-negative")

    @property
    def total_stones(self) -> int:
        return sum(self.board)

    def pit_counts(self, player: Player) -> tuple[int, ...]:
        """Stone counts of a player's six pits, in slot order."""
        return tuple(self.board[slot] for slot in pits_of(player))

    def store_count(self, player: Player) -> int:
        return self.board[store_of(player)]

    def row_is_empty(self, player: Player) -> bool:
        return not any(self.pit_counts(player))

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)

    def to_dict(self) -> dict:
        """Plain-data form sent to every consumer."""
        return {
            "board": list(self.board),
            "current_player": self.current_player.value,
            "game_over": self.game_over,
            "winner": self.winner.value,
            "status_message": self.status_message,
        }


def initial_state(stones_per_pit: int = INITIAL_STONES_PER_PIT) -> GameState:
    """Fresh game: all pits filled, Player A to move."""
    return GameState(board=initial_board(stones_per_pit))
