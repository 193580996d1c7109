"""FastAPI application the browser front end talks to."""

from __future__ import annotations

import logging
import random
import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from fastapi import APIRouter, BackgroundTasks, FastAPI, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .ai import Difficulty, MinimaxAI
from .config import Settings, load_settings
from .game import TicTacToeGame
from .models import (
    SERIES_LENGTHS,
    GameResult,
    GameWinner,
    MatchStatus,
    Tournament,
    TournamentFormat,
    utcnow,
)
from .series import build_series_result
from .stats import StatsRepository
from .tournament import (
    complete_match,
    create_tournament,
    find_match,
    start_tournament,
    tournament_progress,
)

log = logging.getLogger(__name__)

AI_PLAYER = "O"


class GameMode(str, Enum):
    PVP = "pvp"
    AI = "ai"


@dataclass
class GameSession:
    """Container for an active game and its optional AI opponent."""

    game: TicTacToeGame
    mode: GameMode
    ai: Optional[MinimaxAI]
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    # Bumped on reset so a delayed AI reply for an older board is dropped.
    generation: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


@dataclass
class AppState:
    settings: Settings
    stats: StatsRepository
    sessions: Dict[str, GameSession] = field(default_factory=dict)
    tournaments: Dict[str, Tournament] = field(default_factory=dict)
    tournament_lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False
    )


# ---------- Request payloads ----------


class Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class NewGameRequest(Payload):
    """Request payload for starting a new game."""

    mode: GameMode = GameMode.AI
    difficulty: Difficulty = Field(
        default=Difficulty.HARD, description="AI strength (ignored for pvp)"
    )


class MoveRequest(Payload):
    index: int = Field(ge=0, le=8)


class NewTournamentRequest(Payload):
    name: str = Field(min_length=1, max_length=80)
    players: List[str] = Field(min_length=2, max_length=16)
    format: TournamentFormat = TournamentFormat.SINGLE_ELIMINATION
    series_length: int = Field(default=3, alias="seriesLength")

    @field_validator("series_length")
    @classmethod
    def ensure_supported_length(cls, value: int) -> int:
        if value not in SERIES_LENGTHS:
            raise ValueError(
                f"Unsupported series length {value}. "
                f"Choose one of {', '.join(map(str, SERIES_LENGTHS))}."
            )
        return value


class GameReport(Payload):
    """One finished game of a series; player1 plays X."""

    winner: GameWinner
    moves: int = Field(ge=0, le=9)
    duration: int = Field(ge=0)

    @model_validator(mode="after")
    def ensure_consistent_result(self) -> "GameReport":
        if self.winner == "draw" and self.moves != 9:
            raise ValueError("A drawn game fills all 9 cells")
        if self.winner != "draw" and self.moves < 5:
            raise ValueError("A game cannot be won in fewer than 5 moves")
        return self


class CompleteMatchRequest(Payload):
    games: List[GameReport] = Field(min_length=1, max_length=5)


router = APIRouter()


def _state(request: Request) -> AppState:
    return request.app.state.xoarena


# ---------- Games ----------


def _get_session(state: AppState, game_id: str) -> GameSession:
    try:
        return state.sessions[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _run_ai_turn(
    session: GameSession, generation: int, delay: Tuple[float, float]
) -> None:
    time.sleep(max(0.0, random.uniform(*delay)))

    with session.lock:
        if session.generation != generation:
            return
        try:
            if not session.ai:
                return
            game = session.game
            if game.finished or game.current_player != session.ai.player:
                return
            index = session.ai.choose(game.cells)
            game.place(index)
            session.move_log.append({"player": session.ai.player, "index": index})
            log.debug("AI (%s) played %d", session.ai.difficulty.value, index)
        finally:
            session.ai_pending = False


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        state: Dict[str, object] = {
            "id": game_id,
            "mode": session.mode.value,
            "difficulty": session.ai.difficulty.value if session.ai else None,
            "cells": [c if c in ("X", "O") else "" for c in game.cells],
            "currentPlayer": game.current_player,
            "winner": game.winner,
            "drawn": game.drawn,
            "winningLine": list(game.winning_line() or ()),
            "availableMoves": game.available_moves(),
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _schedule_ai(
    state: AppState,
    session: GameSession,
    background_tasks: Optional[BackgroundTasks],
) -> None:
    """Queue an AI reply if it is the AI's turn. Caller holds ``session.lock``."""
    game = session.game
    if not session.ai or game.finished or game.current_player != session.ai.player:
        return
    session.ai_pending = True
    if background_tasks is not None:
        background_tasks.add_task(
            _run_ai_turn, session, session.generation, state.settings.ai_think_delay
        )


@router.post("/api/game")
def create_game(payload: NewGameRequest, request: Request) -> Dict[str, object]:
    state = _state(request)
    ai = (
        MinimaxAI(player=AI_PLAYER, difficulty=payload.difficulty)
        if payload.mode is GameMode.AI
        else None
    )
    session = GameSession(game=TicTacToeGame(), mode=payload.mode, ai=ai)
    game_id = uuid.uuid4().hex
    state.sessions[game_id] = session
    return _serialize_session(game_id, session)


@router.get("/api/game/{game_id}")
def get_game(game_id: str, request: Request) -> Dict[str, object]:
    session = _get_session(_state(request), game_id)
    return _serialize_session(game_id, session)


@router.post("/api/game/{game_id}/move")
def make_move(
    game_id: str,
    payload: MoveRequest,
    request: Request,
    background_tasks: BackgroundTasks,
) -> Dict[str, object]:
    state = _state(request)
    session = _get_session(state, game_id)
    with session.lock:
        game = session.game
        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")
        if session.ai and game.current_player == session.ai.player:
            raise HTTPException(status_code=400, detail="It is the AI's turn")

        player = game.current_player
        try:
            game.place(payload.index)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        session.move_log.append({"player": player, "index": payload.index})
        _schedule_ai(state, session, background_tasks)
    return _serialize_session(game_id, session)


@router.post("/api/game/{game_id}/reset")
def reset_game(game_id: str, request: Request) -> Dict[str, object]:
    session = _get_session(_state(request), game_id)
    with session.lock:
        session.game = TicTacToeGame()
        session.move_log.clear()
        session.ai_pending = False
        session.generation += 1
    return _serialize_session(game_id, session)


# ---------- Tournaments ----------


def _serialize_tournament(tournament: Tournament) -> Dict[str, object]:
    data = tournament.model_dump(mode="json", by_alias=True)
    data["progress"] = tournament_progress(tournament)
    return data


def _get_tournament(state: AppState, tournament_id: str) -> Tournament:
    tournament = state.tournaments.get(tournament_id) or state.stats.get_tournament(
        tournament_id
    )
    if tournament is None:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


def _store_tournament(state: AppState, tournament: Tournament) -> None:
    state.tournaments[tournament.id] = tournament
    if not state.stats.update_tournament(tournament):
        state.stats.add_tournament(tournament)
    state.stats.save()


@router.post("/api/tournament")
def new_tournament(payload: NewTournamentRequest, request: Request) -> Dict[str, object]:
    state = _state(request)
    try:
        tournament = create_tournament(
            payload.name, payload.players, payload.format, payload.series_length
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    with state.tournament_lock:
        _store_tournament(state, tournament)
    log.info("Created tournament %s (%d players)", tournament.id, len(tournament.players))
    return _serialize_tournament(tournament)


@router.get("/api/tournament/{tournament_id}")
def get_tournament(tournament_id: str, request: Request) -> Dict[str, object]:
    return _serialize_tournament(_get_tournament(_state(request), tournament_id))


@router.post("/api/tournament/{tournament_id}/start")
def begin_tournament(tournament_id: str, request: Request) -> Dict[str, object]:
    state = _state(request)
    with state.tournament_lock:
        tournament = _get_tournament(state, tournament_id)
        try:
            tournament = start_tournament(tournament)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        _store_tournament(state, tournament)
    return _serialize_tournament(tournament)


@router.post("/api/tournament/{tournament_id}/matches/{match_id}/open")
def open_match(tournament_id: str, match_id: str, request: Request) -> Dict[str, object]:
    """Flag a match as being played; display only, the bracket ignores it."""
    state = _state(request)
    with state.tournament_lock:
        tournament = _get_tournament(state, tournament_id)
        match = find_match(tournament, match_id)
        if match is None:
            raise HTTPException(status_code=404, detail="Match not found")
        if match.status is MatchStatus.PENDING:
            opened = match.model_copy(update={"status": MatchStatus.IN_PROGRESS})
            tournament = tournament.model_copy(
                update={
                    "matches": tuple(
                        opened if m.id == match_id else m for m in tournament.matches
                    )
                }
            )
            _store_tournament(state, tournament)
    return _serialize_tournament(tournament)


@router.post("/api/tournament/{tournament_id}/matches/{match_id}/complete")
def finish_match(
    tournament_id: str,
    match_id: str,
    payload: CompleteMatchRequest,
    request: Request,
) -> Dict[str, object]:
    state = _state(request)
    with state.tournament_lock:
        tournament = _get_tournament(state, tournament_id)
        match = find_match(tournament, match_id)
        if match is None:
            raise HTTPException(status_code=404, detail="Match not found")
        if match.is_completed:
            return _serialize_tournament(tournament)

        now = utcnow()
        games = [
            GameResult(
                player_x=match.player1,
                player_o=match.player2,
                winner=report.winner,
                moves=report.moves,
                duration=report.duration,
                timestamp=now,
            )
            for report in payload.games
        ]
        try:
            series = build_series_result(
                match.player1, match.player2, games, tournament.series_length
            )
            updated = complete_match(tournament, match_id, series)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        _store_tournament(state, updated)
        if updated.winner is not None and tournament.winner is None:
            state.stats.record_tournament(updated)
            state.stats.save()
    return _serialize_tournament(updated)


# ---------- Stats ----------


@router.get("/api/stats/leaderboard")
def leaderboard(request: Request) -> List[Dict[str, object]]:
    return [
        entry.model_dump(mode="json", by_alias=True)
        for entry in _state(request).stats.leaderboard()
    ]


@router.get("/api/stats/players/{player_id}")
def player_stats(player_id: str, request: Request) -> Dict[str, object]:
    return _state(request).stats.player_stats(player_id).model_dump(
        mode="json", by_alias=True
    )


@router.get("/api/stats/history")
def tournament_history(request: Request, limit: int = 10) -> List[Dict[str, object]]:
    return [
        t.model_dump(mode="json", by_alias=True)
        for t in _state(request).stats.recent(limit)
    ]


def create_app(
    settings: Optional[Settings] = None, stats: Optional[StatsRepository] = None
) -> FastAPI:
    settings = settings or load_settings()
    if stats is None:
        stats = StatsRepository(settings.stats_path)
        stats.load()
    application = FastAPI(
        title="XOArena", description="Tic-tac-toe with AI opponents and tournaments"
    )
    application.state.xoarena = AppState(settings=settings, stats=stats)
    application.include_router(router)
    return application


app = create_app()
