"""Full-depth minimax and random move selection for tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
import math
import random

from .game import EMPTY, Board, Player, current_player, empty_cells, opponent, winner

WIN_SCORE = 10


class Difficulty(str, Enum):
    EASY = "easy"
    HARD = "hard"


def best_move(board: Board, player: Player) -> int:
    """Pick the optimal move for ``player`` by exhaustive minimax.

    Terminal positions score ``10 - depth`` for a win and ``depth - 10`` for a
    loss, so quick wins beat slow ones and losses are delayed. Among equally
    scored moves the lowest index wins. There is no pruning or caching; the
    3x3 tree is small enough to search in full (9! leaves at most). Anything
    bigger needs alpha-beta and a transposition table.
    """
    moves = empty_cells(board)
    if not moves:
        raise ValueError("No valid moves available")

    cells = list(board)
    opp = opponent(player)
    best_score = -math.inf
    best = moves[0]
    for idx in moves:
        cells[idx] = player
        score = _minimax(cells, 0, False, player, opp)
        cells[idx] = EMPTY
        if score > best_score:
            best_score, best = score, idx
    return best


def random_move(board: Board, rng: Optional[random.Random] = None) -> int:
    moves = empty_cells(board)
    if not moves:
        raise ValueError("No valid moves available")
    return (rng or random).choice(moves)


# ---- core search ----


def _minimax(
    cells: List[str],
    depth: int,
    maximizing: bool,
    player: Player,
    opp: Player,
) -> int:
    w = winner(cells)
    if w == player:
        return WIN_SCORE - depth
    if w == opp:
        return depth - WIN_SCORE
    moves = [i for i, c in enumerate(cells) if c == EMPTY]
    if not moves:
        return 0

    if maximizing:
        value = -WIN_SCORE - 1
        for idx in moves:
            cells[idx] = player
            value = max(value, _minimax(cells, depth + 1, False, player, opp))
            cells[idx] = EMPTY
    else:
        value = WIN_SCORE + 1
        for idx in moves:
            cells[idx] = opp
            value = min(value, _minimax(cells, depth + 1, True, player, opp))
            cells[idx] = EMPTY
    return value


@dataclass
class MinimaxAI:
    """AI opponent: ``hard`` plays perfect minimax, ``easy`` plays randomly.

    Usage:
      - MinimaxAI(player="O", difficulty=Difficulty.HARD)
      - choose(board) -> cell index
    """

    player: Player
    difficulty: Difficulty = Difficulty.HARD
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def choose(self, board: Board) -> int:
        if current_player(board) != self.player:
            raise ValueError("It is not this AI player's turn")
        if winner(board) is not None:
            raise ValueError("Game already finished")
        if self.difficulty is Difficulty.EASY:
            return random_move(board, self.rng)
        return best_move(board, self.player)
