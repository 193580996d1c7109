"""Immutable value types shared by the tournament engine, series tracking and stats."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SeriesLength = Literal[3, 5]
GameWinner = Literal["X", "O", "draw"]

SERIES_LENGTHS: Tuple[int, ...] = (3, 5)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TournamentFormat(str, Enum):
    SINGLE_ELIMINATION = "single-elimination"
    # Declared for compatibility with stored data; rejected at creation time.
    DOUBLE_ELIMINATION = "double-elimination"


class TournamentStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class MatchStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"  # set by the UI only, for display
    COMPLETED = "completed"


class Snapshot(BaseModel):
    """Frozen base: updates go through ``model_copy(update=...)``."""

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, alias_generator=to_camel
    )


class TournamentPlayer(Snapshot):
    id: str
    name: str
    wins: int = 0
    losses: int = 0


class GameResult(Snapshot):
    player_x: TournamentPlayer
    player_o: TournamentPlayer
    winner: GameWinner
    moves: int = Field(ge=0, le=9)
    duration: int = Field(ge=0, description="Game length in whole seconds")
    timestamp: datetime = Field(default_factory=utcnow)

    @property
    def winning_player(self) -> Optional[TournamentPlayer]:
        if self.winner == "X":
            return self.player_x
        if self.winner == "O":
            return self.player_o
        return None

    def involves(self, player_id: str) -> bool:
        return player_id in (self.player_x.id, self.player_o.id)

    def won_by(self, player_id: str) -> bool:
        won = self.winning_player
        return won is not None and won.id == player_id


class SeriesResult(Snapshot):
    player_x: TournamentPlayer
    player_o: TournamentPlayer
    games: Tuple[GameResult, ...] = ()
    winner: Optional[TournamentPlayer] = None
    series_length: SeriesLength = 3
    completed_at: datetime = Field(default_factory=utcnow)


class BracketPosition(Snapshot):
    x: float
    y: float


class Match(Snapshot):
    id: str
    round: int = Field(ge=1)
    player1: TournamentPlayer
    player2: TournamentPlayer
    series: Optional[SeriesResult] = None
    status: MatchStatus = MatchStatus.PENDING
    bracket_position: BracketPosition

    @property
    def is_bye(self) -> bool:
        return self.player1.id == self.player2.id

    @property
    def is_completed(self) -> bool:
        return self.status is MatchStatus.COMPLETED

    def has_player(self, player_id: str) -> bool:
        return player_id in (self.player1.id, self.player2.id)


class Tournament(Snapshot):
    id: str
    name: str
    status: TournamentStatus = TournamentStatus.PENDING
    format: TournamentFormat = TournamentFormat.SINGLE_ELIMINATION
    series_length: SeriesLength = 3
    players: Tuple[TournamentPlayer, ...]
    matches: Tuple[Match, ...] = ()
    winner: Optional[TournamentPlayer] = None
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    current_round: int = 1
    total_rounds: int


class BestPerformance(Snapshot):
    tournament: str = ""
    games_won: int = 0
    games_played: int = 0


class PlayerStats(Snapshot):
    total_tournaments: int = 0
    tournaments_won: int = 0
    total_games_played: int = 0
    total_games_won: int = 0
    longest_win_streak: int = 0
    current_win_streak: int = 0
    average_game_duration: float = 0.0
    favorite_opponent: str = ""
    best_performance: BestPerformance = Field(default_factory=BestPerformance)

    @property
    def win_rate(self) -> float:
        if not self.total_games_played:
            return 0.0
        return self.total_games_won / self.total_games_played


class LeaderboardEntry(Snapshot):
    player: TournamentPlayer
    stats: PlayerStats
