"""XOArena package exposing game logic, AI helpers, tournaments, and the web application."""

from .ai import MinimaxAI, best_move, random_move
from .game import TicTacToeGame, is_draw, winner
from .tournament import complete_match, create_tournament, start_tournament
from .ui import app, create_app

__all__ = [
    "MinimaxAI",
    "TicTacToeGame",
    "app",
    "best_move",
    "complete_match",
    "create_app",
    "create_tournament",
    "is_draw",
    "random_move",
    "start_tournament",
    "winner",
]
