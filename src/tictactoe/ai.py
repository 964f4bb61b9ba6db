"""Exhaustive minimax (with alpha-beta pruning) for the computer opponent."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import logging
import math

from .game import EMPTY, Player, TicTacToeGame, evaluate, other_player

logger = logging.getLogger(__name__)

WIN_SCORE = 10


def best_move(cells: Sequence[str], ai_player: Player) -> Optional[int]:
    """Return the optimal cell for ``ai_player``, or None without a legal move.

    Equal scores are resolved in favour of the lowest cell index. Pruning
    never changes the answer: the root only switches on a strictly better
    score, and a pruned subtree can only report a bound that is not better.
    """
    move, _ = search(cells, ai_player)
    return move


def search(cells: Sequence[str], ai_player: Player) -> Tuple[Optional[int], float]:
    board: List[str] = list(cells)  # private copy; caller's board is never touched
    if not evaluate(board).in_progress:
        return None, 0.0

    best_index: Optional[int] = None
    best_score = -math.inf
    for i in range(len(board)):
        if board[i] != EMPTY:
            continue
        board[i] = ai_player
        try:
            score = _minimax(board, ai_player, 0, best_score, math.inf, False)
        finally:
            board[i] = EMPTY
        if score > best_score:
            best_score, best_index = score, i
    return best_index, best_score


def _minimax(
    board: List[str],
    ai_player: Player,
    depth: int,
    alpha: float,
    beta: float,
    maximizing: bool,
) -> float:
    status = evaluate(board)
    if status.winner == ai_player:
        return WIN_SCORE - depth
    if status.winner is not None:
        return depth - WIN_SCORE
    if status.drawn:
        return 0

    mark = ai_player if maximizing else other_player(ai_player)
    value = -math.inf if maximizing else math.inf
    for i in range(len(board)):
        if board[i] != EMPTY:
            continue
        board[i] = mark
        try:
            score = _minimax(board, ai_player, depth + 1, alpha, beta, not maximizing)
        finally:
            board[i] = EMPTY
        if maximizing:
            value = max(value, score)
            alpha = max(alpha, value)
        else:
            value = min(value, score)
            beta = min(beta, value)
        if alpha >= beta:
            break
    return value


@dataclass
class MinimaxAI:
    """Computer opponent bound to one mark.

      - MinimaxAI(player="O")
      - choose(game) -> cell index, or None once the game is over
    """

    player: Player = "O"

    def choose(self, game: TicTacToeGame) -> Optional[int]:
        if not game.is_active:
            return None
        if game.current_player != self.player:
            raise ValueError("It is not this AI player's turn")
        move, score = search(game.cells, self.player)
        logger.debug("AI %s picks cell %s (score %s)", self.player, move, score)
        return move
