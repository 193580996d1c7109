"""Best-of-N series bookkeeping: turns finished boards into tournament results."""

from __future__ import annotations

import math
from datetime import datetime
from typing import NamedTuple, Optional, Sequence

from .game import Board, is_full, winner
from .models import GameResult, SeriesResult, TournamentPlayer, utcnow


class SeriesScore(NamedTuple):
    player1_wins: int
    player2_wins: int
    draws: int


def wins_needed(series_length: int) -> int:
    return math.ceil(series_length / 2)


def game_result(
    player_x: TournamentPlayer,
    player_o: TournamentPlayer,
    board: Board,
    started_at: datetime,
    ended_at: Optional[datetime] = None,
) -> GameResult:
    """Record a finished game; ``board`` must be won or full."""
    ended_at = ended_at or utcnow()
    won_by = winner(board)
    if won_by is None and not is_full(board):
        raise ValueError("Game is still in progress")
    return GameResult(
        player_x=player_x,
        player_o=player_o,
        winner=won_by or "draw",
        moves=sum(1 for c in board if c in ("X", "O")),
        duration=max(0, int((ended_at - started_at).total_seconds())),
        timestamp=ended_at,
    )


def series_score(
    player1: TournamentPlayer,
    player2: TournamentPlayer,
    games: Sequence[GameResult],
) -> SeriesScore:
    p1 = sum(1 for g in games if g.won_by(player1.id))
    p2 = sum(1 for g in games if g.won_by(player2.id))
    draws = sum(1 for g in games if g.winner == "draw")
    return SeriesScore(p1, p2, draws)


def is_series_complete(
    player1: TournamentPlayer,
    player2: TournamentPlayer,
    games: Sequence[GameResult],
    series_length: int,
) -> bool:
    score = series_score(player1, player2, games)
    needed = wins_needed(series_length)
    return (
        score.player1_wins >= needed
        or score.player2_wins >= needed
        or len(games) >= series_length
    )


def build_series_result(
    player1: TournamentPlayer,
    player2: TournamentPlayer,
    games: Sequence[GameResult],
    series_length: int,
    completed_at: Optional[datetime] = None,
) -> SeriesResult:
    """Close a series. The winner is ``None`` when the games ran out on a tie."""
    if len(games) > series_length:
        raise ValueError(f"A best-of-{series_length} series has at most {series_length} games")
    if games and is_series_complete(player1, player2, games[:-1], series_length):
        raise ValueError("Series was already decided before its last game")
    if not is_series_complete(player1, player2, games, series_length):
        raise ValueError("Series is not finished yet")
    score = series_score(player1, player2, games)
    series_winner: Optional[TournamentPlayer] = None
    if score.player1_wins > score.player2_wins:
        series_winner = player1
    elif score.player2_wins > score.player1_wins:
        series_winner = player2
    return SeriesResult(
        player_x=player1,
        player_o=player2,
        games=tuple(games),
        winner=series_winner,
        series_length=series_length,
        completed_at=completed_at or utcnow(),
    )
