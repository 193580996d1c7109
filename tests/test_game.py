"""Unit tests for tic-tac-toe board rules."""

import pytest

from xoarena.game import (
    EMPTY,
    WINNING_LINES,
    GameStatus,
    TicTacToeGame,
    current_player,
    empty_board,
    empty_cells,
    is_draw,
    outcome,
    winner,
    winning_line,
)


def board_from(rows: str) -> list:
    """Build a board from a 9-char string using '.' for empty cells."""
    return [EMPTY if c == "." else c for c in rows]


DRAWN = board_from("XOXXOOOXX")


@pytest.mark.parametrize("line", WINNING_LINES)
@pytest.mark.parametrize("player", ["X", "O"])
def test_every_line_is_detected(line, player):
    board = empty_board()
    for i in line:
        board[i] = player
    assert winner(board) == player
    assert winning_line(board) == line


def test_no_winner_on_open_board():
    assert winner(empty_board()) is None
    assert winner(board_from("XO.OX....")) is None


def test_simultaneous_lines_return_first_in_order():
    board = ["X"] * 9
    assert winner(board) == "X"
    assert winning_line(board) == (0, 1, 2)


def test_full_board_without_line_is_draw():
    assert winner(DRAWN) is None
    assert is_draw(DRAWN)
    assert outcome(DRAWN).status is GameStatus.DRAWN


def test_won_full_board_is_not_draw():
    board = board_from("XXXOOXOXO")
    assert winner(board) == "X"
    assert not is_draw(board)
    result = outcome(board)
    assert result.status is GameStatus.WON
    assert result.winner == "X"
    assert result.is_terminal


def test_empty_cells_ascending():
    assert empty_cells(board_from("X.O.X...O")) == [1, 3, 5, 6, 7]
    assert empty_cells(DRAWN) == []


def test_current_player_alternates():
    assert current_player(empty_board()) == "X"
    assert current_player(board_from("X........")) == "O"
    assert current_player(board_from("X...O....")) == "X"


def test_place_alternates_and_finishes():
    game = TicTacToeGame()
    for idx in (0, 3, 1, 4):
        game.place(idx)
    assert game.current_player == "X"
    game.place(2)
    assert game.winner == "X"
    assert game.finished
    assert game.winning_line() == (0, 1, 2)
    assert game.available_moves() == []


def test_place_rejects_occupied_cell():
    game = TicTacToeGame()
    game.place(4)
    with pytest.raises(ValueError):
        game.place(4)


def test_place_rejects_after_finish():
    game = TicTacToeGame(cells=board_from("XX.OO...."))
    game.place(2)
    with pytest.raises(ValueError):
        game.place(8)


def test_place_rejects_out_of_range():
    with pytest.raises(ValueError):
        TicTacToeGame().place(9)


def test_clone_is_independent():
    game = TicTacToeGame()
    game.place(0)
    copy = game.clone()
    copy.place(1)
    assert game.cells[1] == EMPTY
    assert game.current_player == "O"
