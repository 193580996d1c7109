"""Core rules for classic 3x3 tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

Player = str  # "X" or "O"
Board = Sequence[str]

EMPTY = " "
BOARD_SIZE = 9

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


def opponent(player: Player) -> Player:
    return "O" if player == "X" else "X"


def empty_board() -> List[str]:
    return [EMPTY] * BOARD_SIZE


def winning_line(board: Board) -> Optional[Tuple[int, int, int]]:
    """Return the first complete line in declaration order, if any."""
    for line in WINNING_LINES:
        a, b, c = line
        v = board[a]
        if v != EMPTY and v == board[b] == board[c]:
            return line
    return None


def winner(board: Board) -> Optional[Player]:
    line = winning_line(board)
    return board[line[0]] if line else None


def is_full(board: Board) -> bool:
    return all(c != EMPTY for c in board)


def is_draw(board: Board) -> bool:
    return is_full(board) and winner(board) is None


def empty_cells(board: Board) -> List[int]:
    # Ascending order is the tie-break order for move selection.
    return [i for i, c in enumerate(board) if c == EMPTY]


def current_player(board: Board) -> Player:
    """X always opens, so X is to move whenever both sides have equal marks."""
    x_count = sum(1 for c in board if c == "X")
    o_count = sum(1 for c in board if c == "O")
    return "X" if x_count == o_count else "O"


class GameStatus(str, Enum):
    IN_PROGRESS = "in-progress"
    WON = "won"
    DRAWN = "drawn"


@dataclass(frozen=True)
class GameOutcome:
    status: GameStatus
    winner: Optional[Player] = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not GameStatus.IN_PROGRESS


def outcome(board: Board) -> GameOutcome:
    """Classify a board. Always recomputed, never cached alongside it."""
    w = winner(board)
    if w is not None:
        return GameOutcome(GameStatus.WON, w)
    if is_full(board):
        return GameOutcome(GameStatus.DRAWN)
    return GameOutcome(GameStatus.IN_PROGRESS)


# ---------- Game ----------


@dataclass
class TicTacToeGame:
    # 'X', 'O', or ' ' (space) for empty
    cells: List[str] = field(default_factory=empty_board)
    current_player: Player = "X"
    winner: Optional[Player] = None
    drawn: bool = False

    @property
    def finished(self) -> bool:
        return bool(self.winner) or self.drawn

    def available_moves(self) -> List[int]:
        if self.finished:
            return []
        return empty_cells(self.cells)

    def place(self, idx: int) -> None:
        """Apply a move for the side to play and update the result."""
        if self.finished:
            raise ValueError("Game already finished")
        if not 0 <= idx < BOARD_SIZE:
            raise ValueError("Cell index out of range")
        if self.cells[idx] != EMPTY:
            raise ValueError("Cell already occupied")
        self.cells[idx] = self.current_player
        self._update_state()
        if not self.finished:
            self.current_player = opponent(self.current_player)

    def outcome(self) -> GameOutcome:
        return outcome(self.cells)

    def winning_line(self) -> Optional[Tuple[int, int, int]]:
        return winning_line(self.cells)

    def clone(self) -> "TicTacToeGame":
        return TicTacToeGame(
            cells=self.cells.copy(),
            current_player=self.current_player,
            winner=self.winner,
            drawn=self.drawn,
        )

    # ---- helpers ----

    def _update_state(self) -> None:
        result = outcome(self.cells)
        self.winner = result.winner
        self.drawn = result.status is GameStatus.DRAWN
