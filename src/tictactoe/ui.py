"""FastAPI-powered web UI for playing tic-tac-toe in the browser."""

from __future__ import annotations

import asyncio
import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field

from .ai import MinimaxAI
from .game import EMPTY, MoveError, TicTacToeGame

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """One browser's game plus its optional computer opponent."""

    game: TicTacToeGame = field(default_factory=TicTacToeGame)
    ai: Optional[MinimaxAI] = None
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    # Bumped on every reset so replies scheduled earlier can tell they are stale
    generation: int = 0
    last_active: float = field(default_factory=lambda: time.time())

    def touch(self) -> None:
        self.last_active = time.time()


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="Tic-Tac-Toe", description="Tic-tac-toe played in the browser")


AI_MOVE_DELAY: float = float(os.environ.get("TICTACTOE_AI_DELAY", "0.5"))
SESSION_TTL_SECONDS = 60 * 30  # 30 minutes


def _cleanup_sessions() -> None:
    """Drop sessions nobody has touched for a while."""

    now = time.time()
    expired = [
        game_id
        for game_id, session in list(SESSIONS.items())
        if now - session.last_active >= SESSION_TTL_SECONDS
    ]
    for game_id in expired:
        SESSIONS.pop(game_id, None)
    if expired:
        logger.info("Dropped %d idle game session(s)", len(expired))


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    model_config = ConfigDict(populate_by_name=True)

    vs_computer: bool = Field(
        default=False,
        alias="vsComputer",
        description="Let the computer play O",
    )


class MoveRequest(BaseModel):
    """Request payload for choosing a cell on an existing game."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


class OpponentRequest(BaseModel):
    enabled: bool


def _create_session(vs_computer: bool) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    _cleanup_sessions()
    session = GameSession(ai=MinimaxAI(player="O") if vs_computer else None)
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("Created game %s (vs computer: %s)", session_id, vs_computer)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        session = SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc
    session.touch()
    return session


def status_message(game: TicTacToeGame) -> str:
    if game.winner:
        return f"Player {game.winner} wins!"
    if game.drawn:
        return "It's a draw!"
    return f"Player {game.current_player}'s turn"


def _ai_should_move(session: GameSession) -> bool:
    return bool(
        session.ai
        and session.game.is_active
        and session.game.current_player == session.ai.player
    )


def _schedule_ai_turn(
    game_id: str, session: GameSession, background_tasks: BackgroundTasks
) -> None:
    session.ai_pending = True
    background_tasks.add_task(_run_ai_turn, game_id, session.generation)


async def _run_ai_turn(game_id: str, generation: int) -> None:
    await asyncio.sleep(max(0.0, AI_MOVE_DELAY))

    session = SESSIONS.get(game_id)
    if not session:
        return
    if session.generation != generation:
        logger.info("Skipping stale computer move for game %s", game_id)
        return

    ai = session.ai
    try:
        if ai is None or not _ai_should_move(session):
            return
        cell_index = ai.choose(session.game)
        if cell_index is None:
            return
        session.game.play_move(cell_index, ai.player)
        session.move_log.append({"player": ai.player, "cellIndex": cell_index})
        logger.debug("Computer played cell %d in game %s", cell_index, game_id)
    finally:
        session.ai_pending = False


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    game = session.game
    status = game.status
    state: Dict[str, object] = {
        "id": game_id,
        "cells": [c if c != EMPTY else "" for c in game.snapshot()],
        "currentPlayer": game.current_player,
        "status": status.label,
        "winner": status.winner,
        "drawn": status.drawn,
        "winningLine": list(status.line) if status.line else None,
        "message": status_message(game),
        "vsComputer": session.ai is not None,
        "aiPending": session.ai_pending,
        "moveLog": list(session.move_log),
    }
    if session.move_log:
        state["lastMove"] = session.move_log[-1]
    return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    cell_index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    """Register a human click and, when due, queue the computer's reply."""
    game = session.game
    if session.ai_pending or _ai_should_move(session):
        raise HTTPException(status_code=400, detail="Computer is completing its move")

    player = game.current_player
    try:
        game.play_move(cell_index, player)
    except MoveError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    session.move_log.append({"player": player, "cellIndex": cell_index})

    if _ai_should_move(session) and background_tasks is not None:
        _schedule_ai_turn(game_id, session, background_tasks)


@app.post("/api/game")
async def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, session = _create_session(request.vs_computer)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
async def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
async def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.cell_index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
async def reset_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    session.game.reset()
    session.move_log.clear()
    session.generation += 1
    session.ai_pending = False
    logger.info("Reset game %s", game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/opponent")
async def set_opponent(
    game_id: str, request: OpponentRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    if request.enabled and session.ai is None:
        session.ai = MinimaxAI(player="O")
    elif not request.enabled:
        session.ai = None
    if _ai_should_move(session) and not session.ai_pending:
        _schedule_ai_turn(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic-Tac-Toe</title>
    <style>
      :root {
        color-scheme: light;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
      }
      * {
        box-sizing: border-box;
      }
      body {
        margin: 0;
        min-height: 100vh;
        display: flex;
        justify-content: center;
        align-items: flex-start;
        padding: 2rem 1rem;
        background: radial-gradient(circle at top, #f2f5ff, #dbe0ff 40%, #cfd8ff 70%);
        color: #13203a;
      }
      main {
        background: rgba(255, 255, 255, 0.92);
        border-radius: 18px;
        box-shadow: 0 20px 40px rgba(34, 47, 79, 0.16);
        padding: 2rem;
        text-align: center;
      }
      h1 {
        margin: 0 0 1rem;
        letter-spacing: 0.06em;
      }
      #board {
        display: grid;
        grid-template-columns: repeat(3, 96px);
        grid-template-rows: repeat(3, 96px);
        gap: 6px;
        margin: 1rem auto;
        width: max-content;
      }
      .cell {
        display: flex;
        align-items: center;
        justify-content: center;
        font-size: 2.6rem;
        font-weight: 700;
        background: #eef1ff;
        border-radius: 12px;
        cursor: pointer;
        user-select: none;
      }
      .cell.taken {
        cursor: default;
      }
      .cell.winning-cell {
        background: #ffe08a;
      }
      #board.thinking .cell {
        cursor: progress;
      }
      #message {
        min-height: 1.5rem;
        font-weight: 600;
      }
      #error {
        min-height: 1.2rem;
        color: #b3261e;
        font-size: 0.9rem;
      }
      .controls {
        display: flex;
        gap: 1rem;
        justify-content: center;
        align-items: center;
      }
      button {
        font-size: 1rem;
        padding: 0.55rem 0.95rem;
        border-radius: 999px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: white;
        cursor: pointer;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>Tic-Tac-Toe</h1>
      <div id=\"message\" role=\"status\"></div>
      <div id=\"board\"></div>
      <div id=\"error\"></div>
      <div class=\"controls\">
        <button id=\"reset-button\" type=\"button\">Reset</button>
        <label><input id=\"ai-toggle\" type=\"checkbox\" /> Play against computer</label>
      </div>
    </main>
    <script>
      const board = document.getElementById('board');
      const message = document.getElementById('message');
      const errorEl = document.getElementById('error');
      const resetButton = document.getElementById('reset-button');
      const aiToggle = document.getElementById('ai-toggle');

      let gameId = null;
      let gameState = null;
      let pollHandle = null;
      let isRequestPending = false;

      async function request(path, body) {
        const options = body === undefined
          ? {}
          : {
              method: 'POST',
              headers: { 'Content-Type': 'application/json' },
              body: JSON.stringify(body),
            };
        const response = await fetch(path, options);
        const payload = await response.json().catch(() => ({}));
        if (!response.ok) {
          throw new Error(payload?.detail || 'Request failed');
        }
        return payload;
      }

      function stopPolling() {
        if (pollHandle !== null) {
          clearTimeout(pollHandle);
          pollHandle = null;
        }
      }

      function ensurePolling() {
        if (pollHandle !== null) return;
        pollHandle = window.setTimeout(pollState, 300);
      }

      async function pollState() {
        pollHandle = null;
        if (!gameId) return;
        try {
          setState(await request(`/api/game/${gameId}`));
        } catch (error) {
          console.error('Polling failed', error);
        }
      }

      function setState(data) {
        gameId = data.id;
        gameState = data;
        aiToggle.checked = Boolean(data.vsComputer);
        render();
        if (data.aiPending && data.status === 'in_progress') {
          ensurePolling();
        } else {
          stopPolling();
        }
      }

      function render() {
        board.innerHTML = '';
        board.classList.toggle('thinking', Boolean(gameState?.aiPending));
        if (!gameState) return;
        const winning = new Set(gameState.winningLine || []);
        gameState.cells.forEach((value, index) => {
          const cell = document.createElement('div');
          cell.classList.add('cell');
          cell.dataset.index = index;
          cell.textContent = value;
          if (value) cell.classList.add('taken');
          if (winning.has(index)) cell.classList.add('winning-cell');
          cell.addEventListener('click', handleCellClick);
          board.appendChild(cell);
        });
        message.textContent = gameState.message;
      }

      async function handleCellClick(event) {
        const cellIndex = Number.parseInt(event.currentTarget.dataset.index, 10);
        if (!gameState || isRequestPending) return;
        if (gameState.cells[cellIndex] || gameState.status !== 'in_progress') return;
        isRequestPending = true;
        errorEl.textContent = '';
        try {
          setState(await request(`/api/game/${gameId}/move`, { cellIndex }));
        } catch (error) {
          errorEl.textContent = error.message;
        } finally {
          isRequestPending = false;
        }
      }

      async function resetGame() {
        stopPolling();
        errorEl.textContent = '';
        try {
          setState(await request(`/api/game/${gameId}/reset`, {}));
        } catch (error) {
          errorEl.textContent = error.message;
        }
      }

      async function toggleComputer() {
        errorEl.textContent = '';
        try {
          setState(await request(`/api/game/${gameId}/opponent`, { enabled: aiToggle.checked }));
        } catch (error) {
          errorEl.textContent = error.message;
        }
      }

      async function initializeBoard() {
        try {
          setState(await request('/api/game', { vsComputer: aiToggle.checked }));
        } catch (error) {
          errorEl.textContent = error.message;
        }
      }

      resetButton.addEventListener('click', resetGame);
      aiToggle.addEventListener('change', toggleComputer);
      initializeBoard();
    </script>
  </body>
</html>
"""
