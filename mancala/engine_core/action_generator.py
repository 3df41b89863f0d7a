"""
Action Generator - Lists the moves available in a state.

Used by the local mode prompt and by tests that play random games.
Generates only moves the reducer would accept.
"""

from __future__ import annotations

from .state import GameState, pits_of
from .action import Move


def legal_pits(state: GameState) -> list[int]:
    """Non-empty pits of the player to move. Empty once the game is over."""
    if state.game_over:
        return []
    return [slot for slot in pits_of(state.current_player) if state.board[slot] > 0]


def legal_moves(state: GameState) -> list[Move]:
    """Moves available to the current player."""
    return [Move(player=state.current_player, pit_index=slot) for slot in legal_pits(state)]
