"""
Tests for the command line and configuration helpers.

Tests:
- Hot-seat local game loop
- Board rendering
- Base path and origin parsing
"""

import pytest

from ..cli import main, pit_for_choice, render_board, run_local_game
from ..config import normalize_base_path, parse_origins
from ..engine_core.state import GameState, Player, initial_state


def _scripted(*answers):
    """input() replacement that replays answers, then hits end of input."""
    remaining = list(answers)

    def fake_input(prompt):
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return fake_input


class TestLocalGame:
    """Tests for the hot-seat loop."""

    def test_extra_turn_then_quit(self):
        output = []
        state = run_local_game(_scripted("3", "q"), output.append)

        assert state.board == (4, 4, 0, 5, 5, 5, 1, 4, 4, 4, 4, 4, 4, 0)
        assert state.current_player is Player.A
        assert "PLAYER A GOES AGAIN!" in output

    def test_choices_map_to_each_players_row(self):
        state = run_local_game(_scripted("1", "1"), lambda line: None)

        # A sowed from pit 0, then B from pit 7
        assert state.board == (0, 5, 5, 5, 5, 4, 0, 0, 5, 5, 5, 5, 4, 0)
        assert state.current_player is Player.A

    def test_bad_input_reprompts(self):
        output = []
        state = run_local_game(_scripted("7", "abc", "", "quit"), output.append)

        assert output.count("Enter a number from 1 to 6.") == 3
        assert state == initial_state()

    def test_non_ascii_digits_reprompt(self):
        output = []
        state = run_local_game(_scripted("²", "٣", "q"), output.append)

        assert output.count("Enter a number from 1 to 6.") == 2
        assert state == initial_state()

    def test_rejection_printed(self):
        output = []
        run_local_game(_scripted("1", "1", "1"), output.append)
        assert "Pit 0 is empty" in output

    def test_end_of_input_returns(self):
        state = run_local_game(_scripted(), lambda line: None)
        assert state == initial_state()


class TestRendering:
    """Tests for the text board."""

    def test_opposite_pits_line_up(self):
        state = GameState(board=(1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14))
        lines = render_board(state).splitlines()

        top, middle, bottom = lines[1], lines[2], lines[3]
        assert top.strip() == "[13][12][11][10][ 9][ 8]"
        assert bottom.strip() == "[ 1][ 2][ 3][ 4][ 5][ 6]"
        assert middle.startswith("(14)")
        assert middle.endswith("( 7)")

    def test_pit_for_choice(self):
        assert pit_for_choice(Player.A, 1) == 0
        assert pit_for_choice(Player.A, 6) == 5
        assert pit_for_choice(Player.B, 1) == 7
        assert pit_for_choice(Player.B, 6) == 12


class TestConfig:
    """Tests for environment parsing helpers."""

    @pytest.mark.parametrize("value,expected", [
        (None, ""),
        ("", ""),
        ("/", ""),
        ("  ", ""),
        ("8-bit-mancala", "/8-bit-mancala"),
        ("/8-bit-mancala/", "/8-bit-mancala"),
        ("//games//mancala//", "/games/mancala"),
        (" /x ", "/x"),
    ])
    def test_normalize_base_path(self, value, expected):
        assert normalize_base_path(value) == expected

    def test_parse_origins(self):
        assert parse_origins("https://a.example, https://b.example,") == [
            "https://a.example",
            "https://b.example",
        ]
        assert parse_origins("") == ["*"]
        assert parse_origins(None) == ["*"]


class TestMain:
    """Tests for argument handling."""

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit):
            main([])
        assert "serve" in capsys.readouterr().out
