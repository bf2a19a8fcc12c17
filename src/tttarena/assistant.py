"""Scripted chat helper answering rules questions and suggesting moves."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from .ai import suggest_move
from .engine import GameState
from .game import Mode
from .scheduler import ManualScheduler, ScheduledCall, Scheduler

logger = logging.getLogger(__name__)

ASSISTANT = "assistant"
USER = "user"
DEFAULT_REPLY_DELAY = 0.4

GREETING = (
    "Hi! I'm your Tic Tac Toe assistant. Need game instructions, move "
    "suggestions, or have questions? Ask me or pick a quick question!"
)
HOW_TO_PLAY = (
    "Click an empty square to place your mark. Get three in a row "
    "(horizontally, vertically, or diagonally) to win!"
)
WIN_CONDITION = (
    "To win, get three of your marks (X or O) in a straight line: "
    "horizontally, vertically, or diagonally."
)
DRAW_EXPLANATION = (
    "A draw happens if all squares are filled and there's no winner, "
    "so nobody gets three in a row."
)
GAME_OVER = "The game is over. Start a new game for suggestions!"
BOARD_FULL = "No possible moves! The board is full."
SUGGESTION = "I recommend you play in square {square}."
MODE_DESCRIPTIONS = {
    Mode.HUMAN_VS_COMPUTER: (
        "You're playing Human vs Computer. X is you, O is the computer AI."
    ),
    Mode.HUMAN_VS_HUMAN: (
        "You're playing Two Player mode. Take turns between X and O!"
    ),
}
RULES = (
    "Tic Tac Toe: Players (X and O) take turns. The first to place three of "
    "their marks in a horizontal, vertical, or diagonal line wins. If no one "
    "succeeds and all squares are filled, it's a draw."
)
FALLBACK = (
    "I'm here to help! Ask me about the rules, how to play, or for a move "
    "suggestion."
)

# Prompts the page offers as one-click questions: (label, message)
QUICK_QUESTIONS: Tuple[Tuple[str, str], ...] = (
    ("How to play?", "How do I play?"),
    ("Show game rules", "What are the rules?"),
    ("Suggest a move", "Suggest a move"),
    ("How can I win?", "How do I win?"),
)


def _has_any(text: str, *words: str) -> bool:
    return any(word in text for word in words)


def _suggestion(state: GameState) -> str:
    if state.is_over:
        return GAME_OVER
    move = suggest_move(state.board, state.active_player)
    if move is None:
        return BOARD_FULL
    return SUGGESTION.format(square=move + 1)


def reply_for(message: str, state: GameState) -> str:
    """Map a chat message to a canned reply. The first matching rule wins."""
    msg = message.strip().lower()
    if "how" in msg and _has_any(msg, "play", "start"):
        return HOW_TO_PLAY
    if _has_any(msg, "win", "winner", "condition"):
        return WIN_CONDITION
    if "draw" in msg:
        return DRAW_EXPLANATION
    if "move" in msg and _has_any(msg, "suggest", "hint", "best", "play"):
        return _suggestion(state)
    if _has_any(msg, "computer", "mode"):
        return MODE_DESCRIPTIONS[state.mode]
    if _has_any(msg, "rule", "about"):
        return RULES
    return FALLBACK


@dataclass(frozen=True)
class TranscriptEntry:
    speaker: str
    text: str

    def as_dict(self) -> dict:
        return {"speaker": self.speaker, "text": self.text}


@dataclass
class Assistant:
    """Chat transcript plus a delayed reply to each user message.

    ``snapshot`` is called when the reply is produced, not when the message
    arrives, so the answer reflects the board at that moment.
    """

    snapshot: Callable[[], GameState]
    scheduler: Scheduler = field(default_factory=ManualScheduler, repr=False)
    reply_delay: float = DEFAULT_REPLY_DELAY
    transcript: List[TranscriptEntry] = field(
        default_factory=lambda: [TranscriptEntry(ASSISTANT, GREETING)]
    )
    _pending: List[ScheduledCall] = field(default_factory=list, init=False, repr=False)

    @property
    def pending(self) -> bool:
        return any(not call.done for call in self._pending)

    def send(self, text: Optional[str]) -> bool:
        """Queue a reply to ``text``. Blank input is ignored and returns False."""
        if not text or not text.strip():
            return False
        self.transcript.append(TranscriptEntry(USER, text))
        self._pending = [call for call in self._pending if not call.done]
        self._pending.append(
            self.scheduler.schedule(self.reply_delay, lambda: self._reply(text))
        )
        return True

    def _reply(self, text: str) -> None:
        reply = reply_for(text, self.snapshot())
        logger.debug("Assistant reply to %r: %r", text, reply)
        self.transcript.append(TranscriptEntry(ASSISTANT, reply))
