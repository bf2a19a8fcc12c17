"""Tic Tac Toe Arena package exposing game logic, the engine, and the web application."""

from .ai import HeuristicAI, choose_move, suggest_move
from .assistant import Assistant, reply_for
from .engine import GameEngine, GameState, Scoreboard
from .game import Board, GameStatus, Mode, evaluate_winner, is_draw, winning_line
from .ui import app

__all__ = [
    "Assistant",
    "Board",
    "GameEngine",
    "GameState",
    "GameStatus",
    "HeuristicAI",
    "Mode",
    "Scoreboard",
    "app",
    "choose_move",
    "evaluate_winner",
    "is_draw",
    "reply_for",
    "suggest_move",
    "winning_line",
]
