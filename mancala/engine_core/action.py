"""
Action System - Moves, rejection kinds, and results.

A move is the only player action in Kalah: pick one of your own pits.
Every move produces an ActionResult, either a complete new state
or a typed rejection. Rejections never carry a partially updated state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .state import GameState, Player


class RejectionKind(str, Enum):
    """Why the engine refused a move. Checked in this order."""
    GAME_ALREADY_OVER = "GAME_ALREADY_OVER"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    NOT_YOUR_PIT = "NOT_YOUR_PIT"
    EMPTY_PIT = "EMPTY_PIT"


class MoveOutcome(str, Enum):
    """Which post-sow rule fired."""
    EXTRA_TURN = "extra_turn"
    CAPTURE = "capture"
    SWITCH = "switch"


@dataclass(frozen=True)
class Move:
    """A player choosing a pit to sow from."""
    player: Player
    pit_index: Any  # validated by the reducer, may arrive untyped from the wire


@dataclass
class ActionResult:
    """
    Result of applying a move.

    Contains:
    - Whether the move was accepted
    - New state (if accepted)
    - Error text and kind (if rejected)
    - Presentation details for animation/sound consumers
    """
    success: bool
    new_state: GameState | None = None
    error: str | None = None
    error_code: RejectionKind | None = None

    # For UI/presentation
    move: Move | None = None
    outcome: MoveOutcome | None = None
    landing_slot: int | None = None
    sown_slots: list[int] = field(default_factory=list)
    captured_stones: int = 0
    state_changes: list[str] = field(default_factory=list)  # Human-readable changes

    @classmethod
    def failure(cls, error: str, error_code: RejectionKind) -> ActionResult:
        """Create a rejection result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: GameState,
        move: Move,
        outcome: MoveOutcome,
        landing_slot: int,
        sown_slots: list[int],
        captured_stones: int = 0,
        changes: list[str] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            move=move,
            outcome=outcome,
            landing_slot=landing_slot,
            sown_slots=sown_slots,
            captured_stones=captured_stones,
            state_changes=changes or [],
        )

    def move_summary(self) -> dict[str, Any] | None:
        """Plain-data description of the accepted move, None for rejections."""
        if not self.success or self.move is None:
            return None
        return {
            "player": self.move.player.value,
            "pit_index": self.move.pit_index,
            "landing_slot": self.landing_slot,
            "sown_slots": list(self.sown_slots),
            "outcome": self.outcome.value if self.outcome else None,
            "captured_stones": self.captured_stones,
        }
