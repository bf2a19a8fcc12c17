"""FastAPI-powered web UI for playing Tic Tac Toe Arena in the browser."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Tuple

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field, StrictInt

from .assistant import QUICK_QUESTIONS, Assistant
from .engine import GameEngine
from .game import EMPTY, Mode
from .scheduler import ThreadingScheduler

logger = logging.getLogger(__name__)

COMPUTER_MOVE_DELAY: float = 0.5
ASSISTANT_REPLY_DELAY: float = 0.4
SESSION_TTL_SECONDS = 60 * 60  # 1 hour of inactivity


@dataclass
class GameSession:
    """One browser's engine and assistant, guarded by a shared lock."""

    engine: GameEngine
    assistant: Assistant
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    last_seen: float = field(default_factory=lambda: time.time())


SESSIONS: Dict[str, GameSession] = {}
SESSIONS_LOCK = threading.Lock()
app = FastAPI(
    title="Tic Tac Toe Arena",
    description="Tic tac toe against a friend or the computer, with a chat helper",
)


class NewGameRequest(BaseModel):
    """Request payload for starting a new session."""

    mode: Mode = Field(
        default=Mode.HUMAN_VS_COMPUTER,
        description="Whether O is played by the computer",
    )


class ModeRequest(BaseModel):
    mode: Mode


class MoveRequest(BaseModel):
    """Request payload for claiming a cell.

    Range checks are left to the engine, which ignores out-of-range cells.
    """

    index: StrictInt


class JumpRequest(BaseModel):
    step: StrictInt


class AssistantRequest(BaseModel):
    model_config = ConfigDict(str_max_length=500)

    message: str = ""


def _cleanup_sessions() -> None:
    """Drop sessions nobody has touched for longer than the TTL."""

    now = time.time()
    expired = [
        session_id
        for session_id, session in list(SESSIONS.items())
        if now - session.last_seen >= SESSION_TTL_SECONDS
    ]
    for session_id in expired:
        SESSIONS.pop(session_id, None)
    if expired:
        logger.info("Expired %d idle session(s)", len(expired))


def _create_session(mode: Mode) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    lock = threading.RLock()
    scheduler = ThreadingScheduler(lock)
    engine = GameEngine(
        mode=mode, scheduler=scheduler, computer_delay=COMPUTER_MOVE_DELAY
    )
    assistant = Assistant(
        snapshot=engine.snapshot,
        scheduler=scheduler,
        reply_delay=ASSISTANT_REPLY_DELAY,
    )
    session = GameSession(engine=engine, assistant=assistant, lock=lock)
    session_id = uuid.uuid4().hex
    with SESSIONS_LOCK:
        _cleanup_sessions()
        SESSIONS[session_id] = session
    logger.info("Created session %s (%s)", session_id, mode.value)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    with SESSIONS_LOCK:
        _cleanup_sessions()
        try:
            session = SESSIONS[game_id]
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Game not found") from exc
        session.last_seen = time.time()
        return session


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        engine = session.engine
        return {
            "id": game_id,
            "board": [c if c != EMPTY else "" for c in engine.board],
            "currentPlayer": engine.active_player,
            "startingPlayer": engine.starting_player,
            "mode": engine.mode.value,
            "status": engine.status.value,
            "winner": engine.winner,
            "drawn": engine.is_draw,
            "isOver": engine.is_over,
            "winningLine": list(engine.winning_line),
            "scores": engine.scores.as_dict(),
            "step": engine.step,
            "history": [
                [c if c != EMPTY else "" for c in snapshot]
                for snapshot in engine.history
            ],
            "computerPending": engine.computer_pending,
            "assistantPending": session.assistant.pending,
            "transcript": [entry.as_dict() for entry in session.assistant.transcript],
        }


def _respond(game_id: str, session: GameSession, accepted: bool) -> Dict[str, object]:
    state = _serialize_session(game_id, session)
    state["accepted"] = accepted
    return state


@app.post("/api/game")
def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, session = _create_session(request.mode)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(game_id: str, request: MoveRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        # O belongs to the computer in human-vs-computer games
        if session.engine.is_computer_turn():
            accepted = False
        else:
            accepted = session.engine.apply_move(request.index)
        return _respond(game_id, session, accepted)


@app.post("/api/game/{game_id}/new")
def new_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.engine.new_game()
        return _respond(game_id, session, True)


@app.post("/api/game/{game_id}/mode")
def set_mode(game_id: str, request: ModeRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.engine.set_mode(request.mode)
        return _respond(game_id, session, True)


@app.post("/api/game/{game_id}/scores/reset")
def reset_scores(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.engine.reset_scores()
        return _respond(game_id, session, True)


@app.post("/api/game/{game_id}/jump")
def jump_to(game_id: str, request: JumpRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        accepted = session.engine.jump_to(request.step)
        return _respond(game_id, session, accepted)


@app.post("/api/game/{game_id}/assistant")
def ask_assistant(game_id: str, request: AssistantRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        accepted = session.assistant.send(request.message)
        return _respond(game_id, session, accepted)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    buttons = "\n".join(
        f'            <button class="quick" data-q="{message}">{label}</button>'
        for label, message in QUICK_QUESTIONS
    )
    return HTML_PAGE.replace("{{QUICK_BUTTONS}}", buttons)


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic Tac Toe Arena</title>
    <style>
      :root {
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
        --accent: #ffcf33;
        --primary: #1976d2;
        --secondary: #424242;
      }
      body {
        margin: 0;
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 24px 16px 40px;
        color: var(--secondary);
      }
      main {
        width: min(480px, 100%);
        display: flex;
        flex-direction: column;
        align-items: center;
        gap: 16px;
      }
      h1 {
        margin: 0;
        color: var(--primary);
        letter-spacing: -0.6px;
      }
      .modes label {
        margin: 0 9px;
        cursor: pointer;
        font-weight: 500;
      }
      .scores {
        display: flex;
        gap: 16px;
        font-weight: 600;
      }
      .scores .x { color: var(--primary); }
      .scores .draws { color: #b08d1a; }
      .status {
        min-height: 32px;
        font-size: 1.2rem;
        color: var(--primary);
      }
      .board {
        display: grid;
        grid-template-columns: repeat(3, 90px);
        grid-template-rows: repeat(3, 90px);
        gap: 2px;
        background: #e9ecef;
        border-radius: 10px;
        overflow: hidden;
      }
      .cell {
        border: none;
        background: #fff;
        font-size: 2.8rem;
        font-weight: 700;
        cursor: pointer;
      }
      .cell.x { color: var(--primary); }
      .cell.o { color: var(--secondary); }
      .cell.filled, .board.locked .cell { cursor: default; }
      .cell.winner { background: var(--accent); }
      .controls button, .assistant button {
        font-size: 1rem;
        padding: 8px 18px;
        border-radius: 8px;
        font-weight: 600;
        cursor: pointer;
        border: 2px solid var(--primary);
        background: #fff;
        color: var(--primary);
      }
      .controls .accent {
        background: var(--accent);
        border-color: var(--accent);
        color: #282c34;
      }
      .assistant {
        width: 100%;
        border-top: 1px solid #e9ecef;
        padding-top: 12px;
      }
      .chat {
        display: flex;
        flex-direction: column;
        gap: 8px;
        max-height: 200px;
        overflow-y: auto;
        margin-bottom: 8px;
      }
      .chat .assistant-msg, .chat .user-msg {
        padding: 6px 13px;
        border-radius: 10px;
        max-width: 82%;
      }
      .chat .assistant-msg { align-self: flex-start; background: #e9ecef; }
      .chat .user-msg { align-self: flex-end; background: var(--primary); color: #fff; }
      .quick-row { display: flex; flex-wrap: wrap; gap: 6px; margin-bottom: 8px; }
      .assistant form { display: flex; gap: 6px; }
      .assistant input { flex: 1; padding: 6px 9px; border-radius: 8px; border: 1.5px solid #e9ecef; }
    </style>
  </head>
  <body>
    <main>
      <h1>Tic Tac Toe Arena</h1>
      <div class=\"modes\">
        <label><input type=\"radio\" name=\"mode\" value=\"human-vs-computer\" checked /> Human vs Computer</label>
        <label><input type=\"radio\" name=\"mode\" value=\"human-vs-human\" /> Two Players</label>
      </div>
      <div class=\"scores\">
        <span class=\"x\">X: <strong id=\"score-x\">0</strong></span>
        <span class=\"o\">O: <strong id=\"score-o\">0</strong></span>
        <span class=\"draws\">Draws: <strong id=\"score-draws\">0</strong></span>
      </div>
      <div class=\"status\" id=\"status\" aria-live=\"polite\"></div>
      <div class=\"board\" id=\"board\"></div>
      <div class=\"controls\">
        <button class=\"accent\" id=\"new-game\">New Game</button>
        <button id=\"reset-scores\">Reset Scores</button>
      </div>
      <section class=\"assistant\">
        <div class=\"chat\" id=\"chat\"></div>
        <div class=\"quick-row\">
{{QUICK_BUTTONS}}
        </div>
        <form id=\"ask\">
          <input id=\"ask-input\" maxlength=\"100\" aria-label=\"Ask assistant\" placeholder=\"Ask for help\" />
          <button type=\"submit\">Send</button>
        </form>
      </section>
    </main>
    <script>
      const boardEl = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const chatEl = document.getElementById('chat');
      const askInput = document.getElementById('ask-input');
      let gameId = null;
      let gameState = null;
      let pollHandle = null;

      async function call(path, body) {
        const response = await fetch(path, {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify(body || {}),
        });
        if (!response.ok) {
          throw new Error('Request failed');
        }
        setState(await response.json());
      }

      function describeStatus(state) {
        if (state.winner) return `${state.winner} wins!`;
        if (state.drawn) return "It's a draw!";
        if (state.mode === 'human-vs-computer') {
          return state.currentPlayer === 'X' ? 'Your turn (X)' : "Computer's turn (O)";
        }
        return `Player ${state.currentPlayer}'s turn`;
      }

      function render() {
        boardEl.innerHTML = '';
        if (!gameState) return;
        boardEl.classList.toggle('locked', gameState.isOver);
        const winners = new Set(gameState.winningLine);
        gameState.board.forEach((mark, index) => {
          const cell = document.createElement('button');
          cell.classList.add('cell');
          if (mark) cell.classList.add('filled', mark.toLowerCase());
          if (winners.has(index)) cell.classList.add('winner');
          cell.textContent = mark;
          cell.setAttribute('aria-label', `Square ${index + 1} ${mark ? 'occupied by ' + mark : ''}`);
          cell.addEventListener('click', () => {
            if (!mark && !gameState.isOver) {
              call(`/api/game/${gameId}/move`, { index });
            }
          });
          boardEl.appendChild(cell);
        });
        statusEl.textContent = describeStatus(gameState);
        document.getElementById('score-x').textContent = gameState.scores.X;
        document.getElementById('score-o').textContent = gameState.scores.O;
        document.getElementById('score-draws').textContent = gameState.scores.draws;
        chatEl.innerHTML = '';
        gameState.transcript.forEach((entry) => {
          const bubble = document.createElement('div');
          bubble.classList.add(entry.speaker === 'assistant' ? 'assistant-msg' : 'user-msg');
          bubble.textContent = entry.text;
          chatEl.appendChild(bubble);
        });
        chatEl.scrollTop = chatEl.scrollHeight;
      }

      function setState(data) {
        gameId = data.id;
        gameState = data;
        render();
        if (data.computerPending || data.assistantPending) {
          if (!pollHandle) pollHandle = setTimeout(poll, 250);
        }
      }

      async function poll() {
        pollHandle = null;
        if (!gameId) return;
        try {
          const response = await fetch(`/api/game/${gameId}`);
          if (response.ok) setState(await response.json());
        } catch (error) {
          console.error('Polling failed', error);
        }
      }

      function ask(message) {
        if (!message.trim()) return;
        call(`/api/game/${gameId}/assistant`, { message });
      }

      document.querySelectorAll('input[name=mode]').forEach((radio) => {
        radio.addEventListener('change', () => call(`/api/game/${gameId}/mode`, { mode: radio.value }));
      });
      document.getElementById('new-game').addEventListener('click', () => call(`/api/game/${gameId}/new`));
      document.getElementById('reset-scores').addEventListener('click', () => call(`/api/game/${gameId}/scores/reset`));
      document.querySelectorAll('.quick').forEach((button) => {
        button.addEventListener('click', () => ask(button.dataset.q));
      });
      document.getElementById('ask').addEventListener('submit', (event) => {
        event.preventDefault();
        ask(askInput.value);
        askInput.value = '';
      });

      call('/api/game', { mode: 'human-vs-computer' });
    </script>
  </body>
</html>
"""
