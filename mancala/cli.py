"""
Mancala CLI - Command-line interface.

Usage:
    mancala serve [--host H] [--port P] [--base-path /x]   Run the WebSocket relay
    mancala local                                          Hot-seat game in the terminal

Local mode calls the engine directly with both seats on one device;
no rooms or network are involved.
"""

import argparse
import logging
import sys
from typing import Callable

from . import config
from .engine_core import GameState, Player, apply_move, initial_state, pits_of, store_of


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Mancala - Kalah engine and two-player relay",
        prog="mancala",
    )
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the WebSocket relay server")
    serve_parser.add_argument("--host", default=config.HOST, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=config.PORT, help="Bind port")
    serve_parser.add_argument("--base-path", default=config.BASE_PATH, help="URL prefix")

    # Local command
    subparsers.add_parser("local", help="Play a hot-seat game in the terminal")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "local":
        cmd_local(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the relay with uvicorn."""
    import uvicorn

    from .api.app import create_app

    app = create_app(base_path=args.base_path)
    base = config.normalize_base_path(args.base_path) or "/"
    logging.getLogger(__name__).info(
        "Mancala relay on http://%s:%d%s (websocket at %s)",
        args.host, args.port, base, f"{config.normalize_base_path(args.base_path)}/ws",
    )
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


def cmd_local(args):
    """Hot-seat game in the terminal."""
    run_local_game()


def render_board(state: GameState) -> str:
    """
    Text board, B's row on top right-to-left so opposite pits line up:

             [B6][B5][B4][B3][B2][B1]
        (B)                          (A)
             [A1][A2][A3][A4][A5][A6]
    """
    top = "".join(f"[{state.board[slot]:>2}]" for slot in reversed(pits_of(Player.B)))
    bottom = "".join(f"[{state.board[slot]:>2}]" for slot in pits_of(Player.A))
    middle = f"({state.board[store_of(Player.B)]:>2})" + " " * len(top) + f"({state.board[store_of(Player.A)]:>2})"
    return "\n".join([
        "      " + "".join(f" B{n} " for n in range(6, 0, -1)),
        "     " + top,
        middle,
        "     " + bottom,
        "      " + "".join(f" A{n} " for n in range(1, 7)),
    ])


def pit_for_choice(player: Player, choice: int) -> int:
    """Map a 1-6 choice in the player's own row to a slot index."""
    return pits_of(player)[choice - 1]


def run_local_game(
    input_fn: Callable[[str], str] = input,
    print_fn: Callable[[str], None] = print,
) -> GameState:
    """
    Play until the game ends or a player types 'q'.

    Returns the last state reached.
    """
    state = initial_state()
    print_fn(render_board(state))
    print_fn(state.status_message)

    while not state.game_over:
        player = state.current_player
        try:
            raw = input_fn(f"Player {player.value}, choose a pit (1-6, q to quit): ")
        except EOFError:
            return state

        raw = raw.strip().lower()
        if raw in ("q", "quit"):
            return state
        if not (raw.isascii() and raw.isdigit()) or not 1 <= int(raw) <= 6:
            print_fn("Enter a number from 1 to 6.")
            continue

        result = apply_move(state, pit_for_choice(player, int(raw)), player)
        if not result.success:
            print_fn(result.error)
            continue

        state = result.new_state
        print_fn(render_board(state))
        print_fn(state.status_message)

    return state


if __name__ == "__main__":
    main()
