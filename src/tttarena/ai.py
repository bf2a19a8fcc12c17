"""Fixed-priority move heuristic: win, block, center, corner, side."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence
import random

from .game import CENTER, CORNERS, EMPTY, SIDES, Player, evaluate_winner, opponent


def _completing_cell(cells: Sequence[str], player: Player) -> Optional[int]:
    """Lowest empty cell that gives ``player`` a line if filled."""
    trial: List[str] = list(cells)
    for i, c in enumerate(cells):
        if c != EMPTY:
            continue
        trial[i] = player
        won = evaluate_winner(trial) == player
        trial[i] = EMPTY
        if won:
            return i
    return None


def choose_move(
    cells: Sequence[str],
    player: Player,
    rng: Optional[random.Random] = None,
) -> Optional[int]:
    """Pick a cell for ``player`` or None when the board is full.

    Priority, first match wins:
      1) a cell that wins now
      2) a cell that blocks the opponent's immediate win
      3) the center
      4) a corner
      5) a side

    Without ``rng`` ties in 4) and 5) go to the lowest index, which is what
    move suggestions rely on. With ``rng`` the tie is broken uniformly.
    """
    win = _completing_cell(cells, player)
    if win is not None:
        return win
    block = _completing_cell(cells, opponent(player))
    if block is not None:
        return block

    if cells[CENTER] == EMPTY:
        return CENTER

    for tier in (CORNERS, SIDES):
        open_cells = [i for i in tier if cells[i] == EMPTY]
        if open_cells:
            return rng.choice(open_cells) if rng is not None else open_cells[0]
    return None


def suggest_move(cells: Sequence[str], player: Player) -> Optional[int]:
    """Deterministic advice for whoever is to move."""
    return choose_move(cells, player)


@dataclass
class HeuristicAI:
    """Computer opponent driven by :func:`choose_move` with random tie-breaks."""

    player: Player = "O"
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def choose(self, cells: Sequence[str]) -> Optional[int]:
        return choose_move(cells, self.player, self.rng)
