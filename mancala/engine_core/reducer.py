"""
Reducer - Applies moves to game state.

The reducer is the single point of state transition.
All state changes must go through apply_move().

Design principles:
- Pure function: (state, pit, player) -> new_state | rejection
- Validates before applying, in a fixed order
- Builds a fresh board from a copy, the input state is never touched
- Returns ActionResult with success/failure
"""

from __future__ import annotations

from .state import (
    BOARD_SIZE,
    GameState,
    Player,
    Winner,
    opposite_pit,
    owner_of,
    pits_of,
    store_of,
    turn_message,
)
from .action import ActionResult, Move, MoveOutcome, RejectionKind


class Reducer:
    """
    Reducer applies moves to game state.

    Stateless - all state is in GameState.
    Safe to share between sessions and threads.
    """

    def apply(self, state: GameState, move: Move) -> ActionResult:
        """
        Apply a move to the game state.

        Returns ActionResult with new state or rejection.
        """
        rejection = self._validate_move(state, move)
        if rejection:
            return rejection

        board = list(state.board)
        landing_slot, sown_slots = self._sow(board, move.pit_index, move.player)

        outcome, captured = self._resolve_landing(board, landing_slot, move.player)
        changes = [f"Player {move.player.value} sowed {len(sown_slots)} stones from pit {move.pit_index}"]

        if outcome == MoveOutcome.EXTRA_TURN:
            next_player = move.player
            message = f"PLAYER {move.player.value} GOES AGAIN!"
            changes.append(f"Player {move.player.value} landed in their store and moves again")
        elif outcome == MoveOutcome.CAPTURE:
            next_player = move.player.opponent
            message = f"PLAYER {move.player.value} CAPTURED {captured} STONES!"
            changes.append(f"Player {move.player.value} captured {captured} stones")
        else:
            next_player = move.player.opponent
            message = turn_message(next_player)

        new_state = GameState(
            board=tuple(board),
            current_player=next_player,
            status_message=message,
        )
        new_state = self._check_termination(new_state)
        if new_state.game_over:
            changes.append(new_state.status_message)

        return ActionResult.success_with_state(
            new_state,
            move=move,
            outcome=outcome,
            landing_slot=landing_slot,
            sown_slots=sown_slots,
            captured_stones=captured,
            changes=changes,
        )

    def _validate_move(self, state: GameState, move: Move) -> ActionResult | None:
        """
        Validate that a move is legal in the current state.

        Returns a failure result if invalid, None if valid.
        """
        if state.game_over:
            return ActionResult.failure(
                "Game is over - reset to play again",
                RejectionKind.GAME_ALREADY_OVER,
            )

        if move.player != state.current_player:
            return ActionResult.failure(
                f"Not your turn - waiting for player {state.current_player.value}",
                RejectionKind.NOT_YOUR_TURN,
            )

        pit_index = move.pit_index
        if (
            not isinstance(pit_index, int)
            or isinstance(pit_index, bool)
            or pit_index not in pits_of(move.player)
        ):
            return ActionResult.failure(
                f"Pit {pit_index!r} does not belong to player {move.player.value}",
                RejectionKind.NOT_YOUR_PIT,
            )

        if state.board[pit_index] == 0:
            return ActionResult.failure(
                f"Pit {pit_index} is empty",
                RejectionKind.EMPTY_PIT,
            )

        return None

    def _sow(self, board: list[int], pit_index: int, player: Player) -> tuple[int, list[int]]:
        """
        Distribute the stones of a pit one by one, skipping the opponent's store.

        Mutates the given working copy. Returns (landing slot, visited slots).
        """
        stones = board[pit_index]
        board[pit_index] = 0
        skip = store_of(player.opponent)

        slot = pit_index
        sown: list[int] = []
        while stones > 0:
            slot = (slot + 1) % BOARD_SIZE
            if slot == skip:
                continue
            board[slot] += 1
            sown.append(slot)
            stones -= 1

        return slot, sown

    def _resolve_landing(
        self, board: list[int], landing_slot: int, player: Player
    ) -> tuple[MoveOutcome, int]:
        """Apply the extra-turn / capture rules. Returns (outcome, stones captured)."""
        if landing_slot == store_of(player):
            return MoveOutcome.EXTRA_TURN, 0

        if owner_of(landing_slot) is player and board[landing_slot] == 1:
            across = opposite_pit(landing_slot)
            if board[across] > 0:
                captured = board[across] + 1
                board[across] = 0
                board[landing_slot] = 0
                board[store_of(player)] += captured
                return MoveOutcome.CAPTURE, captured

        return MoveOutcome.SWITCH, 0

    def _check_termination(self, state: GameState) -> GameState:
        """
        End the game once either row is empty.

        Both rows are swept into their owners' stores, not just the
        side that ran out.
        """
        if not (state.row_is_empty(Player.A) or state.row_is_empty(Player.B)):
            return state

        board = list(state.board)
        for player in Player:
            remaining = sum(board[slot] for slot in pits_of(player))
            board[store_of(player)] += remaining
            for slot in pits_of(player):
                board[slot] = 0

        store_a = board[store_of(Player.A)]
        store_b = board[store_of(Player.B)]
        if store_a == store_b:
            winner = Winner.TIE
            message = "IT'S A TIE!"
        else:
            leader = Player.A if store_a > store_b else Player.B
            winner = Winner.of(leader)
            message = f"PLAYER {leader.value} WINS!"

        return state._copy_with(
            board=tuple(board),
            game_over=True,
            winner=winner,
            status_message=message,
        )


_DEFAULT_REDUCER = Reducer()


def apply_move(state: GameState, pit_index: int, player: Player) -> ActionResult:
    """Convenience function to apply a move."""
    return _DEFAULT_REDUCER.apply(state, Move(player=player, pit_index=pit_index))
