"""Single-elimination bracket engine.

Every operation takes a frozen :class:`~xoarena.models.Tournament` snapshot and
returns a new one; the input is never modified, so callers may keep old
snapshots around for undo or auditing. The engine holds no state between calls.
"""

from __future__ import annotations

import logging
import math
import random
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .models import (
    SERIES_LENGTHS,
    BracketPosition,
    Match,
    MatchStatus,
    SeriesResult,
    Tournament,
    TournamentFormat,
    TournamentPlayer,
    TournamentStatus,
    utcnow,
)

log = logging.getLogger(__name__)

MIN_PLAYERS = 2
MAX_PLAYERS = 16


class TournamentError(ValueError):
    pass


class TournamentConfigError(TournamentError):
    pass


class TournamentStateError(TournamentError):
    pass


def create_player(name: str, player_id: Optional[str] = None) -> TournamentPlayer:
    return TournamentPlayer(id=player_id or f"player_{uuid.uuid4().hex}", name=name)


def total_rounds_for(player_count: int) -> int:
    return math.ceil(math.log2(player_count))


def create_tournament(
    name: str,
    player_names: Sequence[str],
    format: TournamentFormat | str = TournamentFormat.SINGLE_ELIMINATION,
    series_length: int = 3,
) -> Tournament:
    """Build a pending tournament; players keep their input order until seeding."""
    try:
        fmt = TournamentFormat(format)
    except ValueError as exc:
        raise TournamentConfigError(f"Unknown tournament format {format!r}") from exc
    if fmt is not TournamentFormat.SINGLE_ELIMINATION:
        raise TournamentConfigError(f"Tournament format {fmt.value!r} is not supported")
    if series_length not in SERIES_LENGTHS:
        raise TournamentConfigError(
            f"Unsupported series length {series_length}. "
            f"Choose one of {', '.join(map(str, SERIES_LENGTHS))}."
        )
    if not MIN_PLAYERS <= len(player_names) <= MAX_PLAYERS:
        raise TournamentConfigError(
            f"A tournament needs between {MIN_PLAYERS} and {MAX_PLAYERS} players"
        )
    names = [n.strip() for n in player_names]
    if not all(names):
        raise TournamentConfigError("Player names must not be blank")

    players = tuple(create_player(n) for n in names)
    return Tournament(
        id=f"tournament_{uuid.uuid4().hex}",
        name=name.strip() or "Tournament",
        format=fmt,
        series_length=series_length,
        players=players,
        total_rounds=total_rounds_for(len(players)),
    )


def start_tournament(
    tournament: Tournament, rng: Optional[random.Random] = None
) -> Tournament:
    """Seed the bracket (once) and open round one."""
    if tournament.status is not TournamentStatus.PENDING:
        raise TournamentStateError("Tournament has already been started")

    seeded = list(tournament.players)
    (rng or random).shuffle(seeded)  # Fisher-Yates

    matches = _pair_round(tournament, seeded, round_no=1)
    log.info(
        "Tournament %s started: %d players, %d round(s)",
        tournament.id,
        len(seeded),
        tournament.total_rounds,
    )
    return tournament.model_copy(
        update={
            "status": TournamentStatus.IN_PROGRESS,
            "matches": matches,
            "current_round": 1,
        }
    )


def complete_match(
    tournament: Tournament, match_id: str, series: SeriesResult
) -> Tournament:
    """Attach a finished series to a match and advance the bracket if possible.

    Unknown ids, matches that are already completed and finished tournaments
    leave the snapshot untouched, so replaying a result is harmless.
    """
    if tournament.status is not TournamentStatus.IN_PROGRESS:
        return tournament
    match = find_match(tournament, match_id)
    if match is None:
        log.debug("complete_match: unknown match %s", match_id)
        return tournament
    if match.is_completed:
        return tournament
    if {series.player_x.id, series.player_o.id} != {match.player1.id, match.player2.id}:
        raise TournamentStateError("Series was not played between this match's players")
    if series.series_length != tournament.series_length:
        raise TournamentStateError(
            f"Expected a best-of-{tournament.series_length} series, "
            f"got best-of-{series.series_length}"
        )
    if series.winner is None:
        raise TournamentStateError("A tied series cannot settle a bracket match")
    if not match.has_player(series.winner.id):
        raise TournamentStateError("Series winner is not a player in this match")

    completed = match.model_copy(
        update={"series": series, "status": MatchStatus.COMPLETED}
    )
    matches = tuple(completed if m.id == match_id else m for m in tournament.matches)
    return advance_round(tournament.model_copy(update={"matches": matches}))


def advance_round(tournament: Tournament) -> Tournament:
    current = current_round_matches(tournament)
    if not current or not all(m.is_completed for m in current):
        return tournament

    winners = [_match_winner(m) for m in current]
    if len(winners) == 1:
        champion = winners[0]
        log.info("Tournament %s won by %s", tournament.id, champion.name)
        return tournament.model_copy(
            update={
                "status": TournamentStatus.COMPLETED,
                "winner": champion,
                "completed_at": utcnow(),
            }
        )

    next_round = tournament.current_round + 1
    # No re-seeding: winners keep the positional order of their matches.
    new_matches = _pair_round(tournament, winners, round_no=next_round)
    log.info(
        "Tournament %s advanced to round %d (%d match(es))",
        tournament.id,
        next_round,
        len(new_matches),
    )
    return tournament.model_copy(
        update={
            "current_round": next_round,
            "matches": tournament.matches + new_matches,
        }
    )


# ---- queries ----


def find_match(tournament: Tournament, match_id: str) -> Optional[Match]:
    return next((m for m in tournament.matches if m.id == match_id), None)


def round_matches(tournament: Tournament, round_no: int) -> List[Match]:
    return [m for m in tournament.matches if m.round == round_no]


def current_round_matches(tournament: Tournament) -> List[Match]:
    return round_matches(tournament, tournament.current_round)


def next_round_matches(tournament: Tournament) -> List[Match]:
    return round_matches(tournament, tournament.current_round + 1)


def tournament_progress(tournament: Tournament) -> Dict[str, Any]:
    total = len(tournament.matches)
    completed = sum(1 for m in tournament.matches if m.is_completed)
    return {
        "totalMatches": total,
        "completedMatches": completed,
        "progress": (completed / total) * 100 if total else 0.0,
        "currentRoundComplete": all(
            m.is_completed for m in current_round_matches(tournament)
        ),
        "isComplete": tournament.status is TournamentStatus.COMPLETED,
    }


# ---- helpers ----


def bracket_position(total_rounds: int, round_no: int, slot: int) -> BracketPosition:
    """Layout-only coordinates for bracket rendering."""
    rounds = max(total_rounds, 1)
    width = 2 ** (rounds - round_no + 1)
    height = 2**rounds
    return BracketPosition(
        x=slot * width + width / 2,
        y=(round_no - 1) * (height / rounds) + height / (rounds * 2),
    )


def bye_series(tournament: Tournament, player: TournamentPlayer) -> SeriesResult:
    return SeriesResult(
        player_x=player,
        player_o=player,
        games=(),
        winner=player,
        series_length=tournament.series_length,
    )


def _pair_round(
    tournament: Tournament, players: Iterable[TournamentPlayer], round_no: int
) -> Tuple[Match, ...]:
    """Pair consecutively; an odd player out gets an auto-completed bye match."""
    pool = list(players)
    matches: List[Match] = []
    for slot, i in enumerate(range(0, len(pool), 2)):
        position = bracket_position(tournament.total_rounds, round_no, slot)
        player1 = pool[i]
        if i + 1 < len(pool):
            matches.append(
                Match(
                    id=f"match_{tournament.id}_{round_no}_{slot}",
                    round=round_no,
                    player1=player1,
                    player2=pool[i + 1],
                    bracket_position=position,
                )
            )
        else:
            matches.append(
                Match(
                    id=f"match_{tournament.id}_{round_no}_bye",
                    round=round_no,
                    player1=player1,
                    player2=player1,
                    series=bye_series(tournament, player1),
                    status=MatchStatus.COMPLETED,
                    bracket_position=position,
                )
            )
    return tuple(matches)


def _match_winner(match: Match) -> TournamentPlayer:
    if match.is_bye:
        return match.player1
    if match.series is None or match.series.winner is None:
        raise TournamentStateError(f"Match {match.id} has no winner")
    return match.series.winner
