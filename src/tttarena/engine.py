"""Game engine: turn state, history, scores, and the autonomous opponent."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from .ai import HeuristicAI
from .game import (
    Board,
    GameStatus,
    Mode,
    Player,
    evaluate_winner,
    is_draw,
    is_valid_index,
    opponent,
    winning_line,
)
from .scheduler import ManualScheduler, ScheduledCall, Scheduler

logger = logging.getLogger(__name__)

COMPUTER_PLAYER: Player = "O"
DEFAULT_COMPUTER_DELAY = 0.5

Snapshot = Tuple[str, ...]


@dataclass
class Scoreboard:
    """Session-wide tallies, independent of any single game."""

    x: int = 0
    o: int = 0
    draws: int = 0

    def record_win(self, player: Player) -> None:
        if player == "X":
            self.x += 1
        else:
            self.o += 1

    def record_draw(self) -> None:
        self.draws += 1

    def reset(self) -> None:
        self.x = self.o = self.draws = 0

    def as_dict(self) -> Dict[str, int]:
        return {"X": self.x, "O": self.o, "draws": self.draws}


@dataclass(frozen=True)
class GameState:
    """Read-only view of the engine at one point in time."""

    board: Snapshot
    active_player: Player
    mode: Mode
    status: GameStatus
    winner: Optional[Player]
    starting_player: Player
    step: int

    @property
    def is_over(self) -> bool:
        return self.status is not GameStatus.IN_PROGRESS


@dataclass
class GameEngine:
    mode: Mode = Mode.HUMAN_VS_COMPUTER
    # Manual clock unless a real scheduler is injected
    scheduler: Scheduler = field(default_factory=ManualScheduler, repr=False)
    ai: HeuristicAI = field(default_factory=lambda: HeuristicAI(COMPUTER_PLAYER))
    computer_delay: float = DEFAULT_COMPUTER_DELAY

    scores: Scoreboard = field(default_factory=Scoreboard, init=False)
    starting_player: Player = field(default="X", init=False)
    active_player: Player = field(default="X", init=False)
    status: GameStatus = field(default=GameStatus.IN_PROGRESS, init=False)
    winner: Optional[Player] = field(default=None, init=False)

    _board: Board = field(default_factory=Board, init=False, repr=False)
    _history: List[Snapshot] = field(default_factory=list, init=False, repr=False)
    _step: int = field(default=0, init=False, repr=False)
    _pending: Optional[ScheduledCall] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.mode = Mode(self.mode)
        self._history = [self._board.snapshot()]
        self.active_player = self.starting_player

    # ---- readable state ----

    @property
    def board(self) -> List[str]:
        return self._board.cells.copy()

    @property
    def history(self) -> List[Snapshot]:
        return list(self._history)

    @property
    def step(self) -> int:
        return self._step

    @property
    def is_over(self) -> bool:
        return self.status is not GameStatus.IN_PROGRESS

    @property
    def is_draw(self) -> bool:
        return self.status is GameStatus.DRAW

    @property
    def winning_line(self) -> Tuple[int, ...]:
        return winning_line(self._board.cells)

    @property
    def computer_pending(self) -> bool:
        return self._pending is not None and not self._pending.done

    def is_computer_turn(self) -> bool:
        return (
            self.mode is Mode.HUMAN_VS_COMPUTER
            and self.status is GameStatus.IN_PROGRESS
            and self.active_player == COMPUTER_PLAYER
        )

    def snapshot(self) -> GameState:
        return GameState(
            board=self._board.snapshot(),
            active_player=self.active_player,
            mode=self.mode,
            status=self.status,
            winner=self.winner,
            starting_player=self.starting_player,
            step=self._step,
        )

    # ---- operations ----

    def apply_move(self, index: int) -> bool:
        """Place the active player's mark. Returns False when the move is ignored."""
        if self.status is not GameStatus.IN_PROGRESS:
            logger.debug("Ignoring move %r: game is over", index)
            return False
        if not is_valid_index(index):
            logger.debug("Ignoring move %r: no such cell", index)
            return False
        if not self._board.is_empty_at(index):
            logger.debug("Ignoring move %r: cell occupied", index)
            return False

        player = self.active_player
        self._board.place(player, index)
        # Anything past the current step belongs to an abandoned line of play
        del self._history[self._step + 1 :]
        self._history.append(self._board.snapshot())
        self._step += 1
        self.active_player = opponent(player)
        logger.debug("%s played cell %d", player, index)

        self._refresh_status()
        if self.status is GameStatus.WON:
            self.scores.record_win(self.winner)
            logger.info("%s wins", self.winner)
        elif self.status is GameStatus.DRAW:
            self.scores.record_draw()
            logger.info("Game drawn")
        else:
            self._schedule_computer_turn()
        return True

    def new_game(self, restart_rotation: bool = False) -> None:
        """Clear the board and hand the first move to the other player."""
        self._cancel_pending()
        if restart_rotation or self.starting_player == "O":
            self.starting_player = "X"
        else:
            self.starting_player = "O"
        self._board = Board()
        self._history = [self._board.snapshot()]
        self._step = 0
        self.active_player = self.starting_player
        self.status = GameStatus.IN_PROGRESS
        self.winner = None
        logger.info(
            "New %s game, %s starts", self.mode.value, self.starting_player
        )
        self._schedule_computer_turn()

    def set_mode(self, mode: Union[Mode, str]) -> None:
        self.mode = Mode(mode)
        self.new_game(restart_rotation=True)

    def reset_scores(self) -> None:
        self.scores.reset()

    def jump_to(self, step: int) -> bool:
        """Rewind (or fast-forward) to a recorded ply without touching scores."""
        if (
            not isinstance(step, int)
            or isinstance(step, bool)
            or not 0 <= step < len(self._history)
        ):
            logger.debug("Ignoring jump to unknown step %r", step)
            return False
        self._cancel_pending()
        self._step = step
        self._board = Board(list(self._history[step]))
        self.active_player = (
            self.starting_player if step % 2 == 0 else opponent(self.starting_player)
        )
        self._refresh_status()
        self._schedule_computer_turn()
        return True

    # ---- internals ----

    def _refresh_status(self) -> None:
        cells = self._board.cells
        self.winner = evaluate_winner(cells)
        if self.winner is not None:
            self.status = GameStatus.WON
        elif is_draw(cells):
            self.status = GameStatus.DRAW
        else:
            self.status = GameStatus.IN_PROGRESS

    def _schedule_computer_turn(self) -> None:
        if not self.is_computer_turn() or self.computer_pending:
            return
        self._pending = self.scheduler.schedule(
            self.computer_delay, self._run_computer_turn
        )

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _run_computer_turn(self) -> None:
        self._pending = None
        # State may have moved on while the call was waiting
        if not self.is_computer_turn():
            logger.debug("Skipping stale computer turn")
            return
        move = self.ai.choose(self._board.cells)
        if move is None or not self._board.is_empty_at(move):
            logger.debug("Computer has no playable cell (%r)", move)
            return
        self.apply_move(move)
