"""
Engine Core - Authoritative Kalah rules.

The engine is the pure part of the system:
1. Describes the board layout and GameState
2. Lists legal moves
3. Applies a move via the reducer, returning a new state or a typed rejection

Nothing here performs I/O or keeps state between calls.
"""

from .state import (
    BOARD_SIZE,
    PITS_PER_SIDE,
    INITIAL_STONES_PER_PIT,
    GameState,
    Player,
    Winner,
    initial_state,
    pits_of,
    store_of,
    opposite_pit,
)
from .action import Move, MoveOutcome, RejectionKind, ActionResult
from .reducer import Reducer, apply_move
from .action_generator import legal_moves, legal_pits

__all__ = [
    "BOARD_SIZE",
    "PITS_PER_SIDE",
    "INITIAL_STONES_PER_PIT",
    "GameState",
    "Player",
    "Winner",
    "initial_state",
    "pits_of",
    "store_of",
    "opposite_pit",
    "Move",
    "MoveOutcome",
    "RejectionKind",
    "ActionResult",
    "Reducer",
    "apply_move",
    "legal_moves",
    "legal_pits",
]
