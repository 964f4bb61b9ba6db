"""Tests for the tic-tac-toe minimax AI."""

import random

import pytest

from tictactoe.ai import MinimaxAI, best_move, search
from tictactoe.game import EMPTY, TicTacToeGame, evaluate, other_player


def board(text):
    return [EMPTY if c == "." else c for c in text]


def reference_best_move(cells, ai_player):
    """Plain full-width minimax, no pruning."""

    def value(b, depth, maximizing):
        status = evaluate(b)
        if status.winner == ai_player:
            return 10 - depth
        if status.winner:
            return depth - 10
        if status.drawn:
            return 0
        mark = ai_player if maximizing else other_player(ai_player)
        scores = []
        for i in range(9):
            if b[i] == EMPTY:
                child = b.copy()
                child[i] = mark
                scores.append(value(child, depth + 1, not maximizing))
        return max(scores) if maximizing else min(scores)

    best, best_score = None, None
    for i in range(9):
        if cells[i] == EMPTY:
            child = list(cells)
            child[i] = ai_player
            score = value(child, 0, False)
            if best_score is None or score > best_score:
                best, best_score = i, score
    return best


def test_ai_blocks_top_row():
    assert best_move(board("XX..O...."), "O") == 2


def test_ai_takes_immediate_win():
    move, score = search(board("XX.OO...X"), "O")
    assert move == 5
    assert score == 10


def test_single_empty_cell_is_returned():
    assert best_move(board("XOXXOOOX."), "X") == 8
    assert best_move(board("XOX.OXOXO"), "X") == 3


def test_no_move_on_full_or_decided_board():
    assert best_move(board("XOXXOOOXX"), "O") is None
    assert best_move(board("XXXOO...."), "O") is None


def test_search_leaves_caller_board_untouched():
    cells = board("X...O....")
    before = list(cells)
    best_move(cells, "X")
    assert cells == before


def test_empty_board_prefers_lowest_index():
    # Every opening draws under perfect play
    assert best_move(board("........."), "X") == 0


def test_matches_unpruned_minimax():
    rng = random.Random(99)
    for _ in range(60):
        game = TicTacToeGame()
        for _ in range(rng.randint(2, 6)):
            if not game.is_active:
                break
            game.play_move(rng.choice(game.available_moves()))
        if not game.is_active:
            continue
        player = game.current_player
        assert best_move(game.cells, player) == reference_best_move(game.cells, player)


def test_ai_never_loses_as_o():
    ai = MinimaxAI(player="O")

    def explore(game):
        if not game.is_active:
            assert game.winner != "X", game.snapshot()
            return
        if game.current_player == "X":
            for move in game.available_moves():
                child = game.clone()
                child.play_move(move)
                explore(child)
        else:
            game.play_move(ai.choose(game))
            explore(game)

    explore(TicTacToeGame())


def test_ai_refuses_out_of_turn():
    ai = MinimaxAI(player="O")
    with pytest.raises(ValueError):
        ai.choose(TicTacToeGame())


def test_ai_returns_none_when_game_over():
    game = TicTacToeGame()
    for index in (0, 4, 1, 7, 2):
        game.play_move(index)
    assert MinimaxAI(player="O").choose(game) is None
