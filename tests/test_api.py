"""Tests for the FastAPI XOArena interface."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from xoarena import ui
from xoarena.config import Settings
from xoarena.stats import StatsRepository


@pytest.fixture
def stats() -> StatsRepository:
    return StatsRepository()


@pytest.fixture
def client(stats: StatsRepository) -> TestClient:
    app = ui.create_app(Settings(ai_think_delay=(0.0, 0.0)), stats)
    return TestClient(app)


def test_create_game_and_first_move(client):
    response = client.post("/api/game", json={"mode": "ai", "difficulty": "hard"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["currentPlayer"] == "X"
    assert payload["moveLog"] == []
    assert payload["cells"] == [""] * 9

    game_id = payload["id"]
    move_response = client.post(f"/api/game/{game_id}/move", json={"index": 0})
    assert move_response.status_code == 200
    state = move_response.json()
    assert state["moveLog"][0] == {"player": "X", "index": 0}
    assert state["cells"][0] == "X"
    assert state["currentPlayer"] == "O"
    assert state["aiPending"] is True

    follow_up = client.get(f"/api/game/{game_id}").json()
    assert follow_up["currentPlayer"] == "X"
    assert follow_up["aiPending"] is False
    assert follow_up["moveLog"][-1]["player"] == "O"
    # perfect reply to a corner opening is the centre
    assert follow_up["cells"][4] == "O"


def test_pvp_game_alternates_without_ai(client):
    game_id = client.post("/api/game", json={"mode": "pvp"}).json()["id"]
    for index in (0, 3, 1, 4):
        state = client.post(f"/api/game/{game_id}/move", json={"index": index}).json()
        assert state["aiPending"] is False
    state = client.post(f"/api/game/{game_id}/move", json={"index": 2}).json()
    assert state["winner"] == "X"
    assert state["winningLine"] == [0, 1, 2]
    assert state["availableMoves"] == []


def test_invalid_move_rejected(client):
    game_id = client.post("/api/game", json={"mode": "pvp"}).json()["id"]
    assert client.post(f"/api/game/{game_id}/move", json={"index": 4}).status_code == 200

    duplicate = client.post(f"/api/game/{game_id}/move", json={"index": 4})
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"]


def test_out_of_range_move_is_validation_error(client):
    game_id = client.post("/api/game", json={"mode": "pvp"}).json()["id"]
    assert client.post(f"/api/game/{game_id}/move", json={"index": 9}).status_code == 422


def test_unknown_game_returns_404(client):
    assert client.get("/api/game/missing").status_code == 404


def test_reset_clears_board(client):
    game_id = client.post("/api/game", json={"mode": "pvp"}).json()["id"]
    client.post(f"/api/game/{game_id}/move", json={"index": 4})
    state = client.post(f"/api/game/{game_id}/reset").json()
    assert state["cells"] == [""] * 9
    assert state["moveLog"] == []
    assert state["currentPlayer"] == "X"


def test_stale_ai_turn_is_dropped_after_reset():
    session = ui.GameSession(
        game=ui.TicTacToeGame(), mode=ui.GameMode.AI, ai=ui.MinimaxAI(player="O")
    )
    session.game.place(0)
    session.ai_pending = True
    stale = session.generation
    session.generation += 1

    ui._run_ai_turn(session, stale, (0.0, 0.0))

    assert session.game.cells.count("O") == 0
    assert session.ai_pending is True


def _play_tournament(client, tournament):
    while tournament["status"] == "in-progress":
        pending = [
            m
            for m in tournament["matches"]
            if m["round"] == tournament["currentRound"] and m["status"] != "completed"
        ]
        assert pending
        for match in pending:
            response = client.post(
                f"/api/tournament/{tournament['id']}/matches/{match['id']}/complete",
                json={"games": [{"winner": "X", "moves": 5, "duration": 9}] * 2},
            )
            assert response.status_code == 200
            tournament = response.json()
    return tournament


def test_tournament_lifecycle(client, stats):
    created = client.post(
        "/api/tournament",
        json={"name": "Friday Cup", "players": ["Ann", "Ben", "Cat", "Dan"], "seriesLength": 3},
    )
    assert created.status_code == 200
    tournament = created.json()
    assert tournament["status"] == "pending"
    assert tournament["totalRounds"] == 2

    started = client.post(f"/api/tournament/{tournament['id']}/start").json()
    assert started["status"] == "in-progress"
    assert len(started["matches"]) == 2

    done = _play_tournament(client, started)
    assert done["status"] == "completed"
    assert done["winner"] is not None
    assert done["progress"]["isComplete"] is True

    board = client.get("/api/stats/leaderboard").json()
    assert len(board) == 4
    assert board[0]["player"]["id"] == done["winner"]["id"]
    assert board[0]["stats"]["tournamentsWon"] == 1

    history = client.get("/api/stats/history").json()
    assert [t["id"] for t in history] == [done["id"]]
    assert stats.get_tournament(done["id"]).status.value == "completed"


def test_start_twice_is_rejected(client):
    tid = client.post("/api/tournament", json={"name": "Cup", "players": ["A", "B"]}).json()["id"]
    assert client.post(f"/api/tournament/{tid}/start").status_code == 200
    assert client.post(f"/api/tournament/{tid}/start").status_code == 400


def test_double_elimination_is_rejected(client):
    response = client.post(
        "/api/tournament",
        json={"name": "Cup", "players": ["A", "B"], "format": "double-elimination"},
    )
    assert response.status_code == 400


def test_unsupported_series_length(client):
    response = client.post(
        "/api/tournament", json={"name": "Cup", "players": ["A", "B"], "seriesLength": 4}
    )
    assert response.status_code == 422


def test_unfinished_series_is_rejected(client):
    tid = client.post("/api/tournament", json={"name": "Cup", "players": ["A", "B"]}).json()["id"]
    match_id = client.post(f"/api/tournament/{tid}/start").json()["matches"][0]["id"]
    response = client.post(
        f"/api/tournament/{tid}/matches/{match_id}/complete",
        json={"games": [{"winner": "X", "moves": 5, "duration": 9}]},
    )
    assert response.status_code == 400


def test_open_match_marks_in_progress(client):
    tid = client.post("/api/tournament", json={"name": "Cup", "players": ["A", "B"]}).json()["id"]
    match_id = client.post(f"/api/tournament/{tid}/start").json()["matches"][0]["id"]
    opened = client.post(f"/api/tournament/{tid}/matches/{match_id}/open").json()
    assert opened["matches"][0]["status"] == "in-progress"
    assert opened["status"] == "in-progress"


def test_unknown_tournament_and_match(client):
    assert client.get("/api/tournament/nope").status_code == 404
    tid = client.post("/api/tournament", json={"name": "Cup", "players": ["A", "B"]}).json()["id"]
    client.post(f"/api/tournament/{tid}/start")
    response = client.post(
        f"/api/tournament/{tid}/matches/nope/complete",
        json={"games": [{"winner": "X", "moves": 5, "duration": 9}] * 2},
    )
    assert response.status_code == 404


def test_games_after_series_is_decided_are_rejected(client):
    tid = client.post("/api/tournament", json={"name": "Cup", "players": ["A", "B"]}).json()["id"]
    match_id = client.post(f"/api/tournament/{tid}/start").json()["matches"][0]["id"]
    games = [{"winner": w, "moves": 5, "duration": 9} for w in ("X", "X", "O", "O", "O")]
    response = client.post(
        f"/api/tournament/{tid}/matches/{match_id}/complete", json={"games": games}
    )
    assert response.status_code == 400
    state = client.get(f"/api/tournament/{tid}").json()
    assert state["matches"][0]["status"] == "pending"


@pytest.mark.parametrize(
    "report",
    [
        {"winner": "X", "moves": 2, "duration": 9},
        {"winner": "draw", "moves": 7, "duration": 9},
    ],
)
def test_inconsistent_game_report_is_validation_error(client, report):
    tid = client.post("/api/tournament", json={"name": "Cup", "players": ["A", "B"]}).json()["id"]
    match_id = client.post(f"/api/tournament/{tid}/start").json()["matches"][0]["id"]
    response = client.post(
        f"/api/tournament/{tid}/matches/{match_id}/complete",
        json={"games": [report] * 3},
    )
    assert response.status_code == 422
