"""Tournament history and per-player statistics, persisted as a JSON snapshot."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .models import (
    BestPerformance,
    GameResult,
    LeaderboardEntry,
    PlayerStats,
    Tournament,
    TournamentPlayer,
    TournamentStatus,
    utcnow,
)

log = logging.getLogger(__name__)


class StatsData(BaseModel):
    """On-disk layout. Unknown keys are ignored; missing ones default to empty."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    tournaments: List[Tournament] = Field(default_factory=list)
    player_stats: Dict[str, PlayerStats] = Field(default_factory=dict)
    export_date: Optional[datetime] = None


class StatsRepository:
    """Owns tournament history and player stats for one local user.

    Nothing here is global: the web app builds one repository and passes it to
    the handlers that need it. Mutations stay in memory until :meth:`save`.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else None
        self._tournaments: List[Tournament] = []
        self._player_stats: Dict[str, PlayerStats] = {}

    # ---- persistence ----

    def load(self) -> bool:
        """Read the snapshot from disk, falling back to empty history on failure."""
        if self.path is None or not self.path.exists():
            return True
        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            log.warning("Failed to read stats from %s: %s", self.path, exc)
            self.clear()
            return False
        if not self.import_data(text):
            self.clear()
            return False
        return True

    def save(self) -> bool:
        if self.path is None:
            return True
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(self.export_data(), encoding="utf-8")
        except OSError as exc:
            log.error("Failed to save stats to %s: %s", self.path, exc)
            return False
        return True

    def export_data(self) -> str:
        data = StatsData(
            tournaments=list(self._tournaments),
            player_stats=dict(self._player_stats),
            export_date=utcnow(),
        )
        return data.model_dump_json(by_alias=True)

    def import_data(self, text: str) -> bool:
        try:
            data = StatsData.model_validate_json(text)
        except ValidationError as exc:
            log.warning("Rejected tournament data: %s", exc.errors()[:3])
            return False
        if "tournaments" in data.model_fields_set:
            self._tournaments = list(data.tournaments)
        if "player_stats" in data.model_fields_set:
            self._player_stats = dict(data.player_stats)
        return True

    def clear(self) -> None:
        self._tournaments = []
        self._player_stats = {}

    # ---- tournaments ----

    def add_tournament(self, tournament: Tournament) -> None:
        self._tournaments.append(tournament)

    def update_tournament(self, tournament: Tournament) -> bool:
        for i, existing in enumerate(self._tournaments):
            if existing.id == tournament.id:
                self._tournaments[i] = tournament
                return True
        return False

    def get_tournament(self, tournament_id: str) -> Optional[Tournament]:
        return next((t for t in self._tournaments if t.id == tournament_id), None)

    def history(self) -> List[Tournament]:
        return sorted(self._tournaments, key=lambda t: t.created_at, reverse=True)

    def recent(self, limit: int = 10) -> List[Tournament]:
        return self.history()[:limit]

    # ---- player stats ----

    def player_stats(self, player_id: str) -> PlayerStats:
        stats = self._player_stats.get(player_id, PlayerStats())
        return stats.model_copy(
            update={
                "favorite_opponent": self.favorite_opponent(player_id),
                "best_performance": self.best_performance(player_id),
            }
        )

    def record_game(self, player_id: str, game: GameResult) -> PlayerStats:
        stats = self._player_stats.get(player_id, PlayerStats())
        played = stats.total_games_played + 1
        won = stats.total_games_won
        streak = stats.current_win_streak
        longest = stats.longest_win_streak
        if game.won_by(player_id):
            won += 1
            streak += 1
            longest = max(longest, streak)
        else:
            streak = 0
        average = (stats.average_game_duration * (played - 1) + game.duration) / played

        updated = stats.model_copy(
            update={
                "total_games_played": played,
                "total_games_won": won,
                "current_win_streak": streak,
                "longest_win_streak": longest,
                "average_game_duration": average,
            }
        )
        self._player_stats[player_id] = updated
        return updated

    def record_tournament(self, tournament: Tournament) -> None:
        """Fold a finished tournament into everyone's stats."""
        if tournament.status is not TournamentStatus.COMPLETED or not tournament.winner:
            return
        for player in tournament.players:
            stats = self._player_stats.get(player.id, PlayerStats())
            update = {"total_tournaments": stats.total_tournaments + 1}
            if player.id == tournament.winner.id:
                update["tournaments_won"] = stats.tournaments_won + 1
            self._player_stats[player.id] = stats.model_copy(update=update)

        for match in tournament.matches:
            if match.series is None:
                continue
            for game in match.series.games:
                self.record_game(game.player_x.id, game)
                self.record_game(game.player_o.id, game)

    def favorite_opponent(self, player_id: str) -> str:
        counts: Counter[str] = Counter()
        for game in self._games_for(self._tournaments, player_id):
            other = game.player_o if game.player_x.id == player_id else game.player_x
            counts[other.name] += 1
        if not counts:
            return ""
        # most_common keeps first-seen order among equal counts
        return counts.most_common(1)[0][0]

    def best_performance(self, player_id: str) -> BestPerformance:
        best = BestPerformance()
        best_rate = 0.0
        for tournament in self._tournaments:
            games = list(self._games_for([tournament], player_id))
            if not games:
                continue
            won = sum(1 for g in games if g.won_by(player_id))
            rate = won / len(games)
            if rate > best_rate:
                best_rate = rate
                best = BestPerformance(
                    tournament=tournament.name,
                    games_won=won,
                    games_played=len(games),
                )
        return best

    def leaderboard(self) -> List[LeaderboardEntry]:
        players: Dict[str, TournamentPlayer] = {}
        for tournament in self._tournaments:
            for player in tournament.players:
                players[player.id] = player

        entries = []
        for player_id, player in players.items():
            stats = self.player_stats(player_id)
            shown = player.model_copy(
                update={
                    "wins": stats.total_games_won,
                    "losses": stats.total_games_played - stats.total_games_won,
                }
            )
            entries.append(LeaderboardEntry(player=shown, stats=stats))
        entries.sort(key=lambda e: (-e.stats.tournaments_won, -e.stats.win_rate))
        return entries

    @staticmethod
    def _games_for(tournaments, player_id: str):
        for tournament in tournaments:
            for match in tournament.matches:
                if match.series is None:
                    continue
                for game in match.series.games:
                    if game.involves(player_id):
                        yield game
