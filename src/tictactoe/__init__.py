"""Tic-tac-toe package exposing game logic, the minimax AI, and the web application."""

from .ai import MinimaxAI, best_move
from .game import (
    CellOccupied,
    GameInactive,
    GameStatus,
    MoveError,
    TicTacToeGame,
    WrongTurn,
    evaluate,
)
from .ui import app

__all__ = [
    "CellOccupied",
    "GameInactive",
    "GameStatus",
    "MinimaxAI",
    "MoveError",
    "TicTacToeGame",
    "WrongTurn",
    "app",
    "best_move",
    "evaluate",
]
