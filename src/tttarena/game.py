"""Board model and win/draw evaluation for Tic Tac Toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

Player = str  # "X" or "O"

EMPTY = " "
BOARD_SIZE = 9

# Rows, then columns, then diagonals. Lookups rely on this order.
WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)

CENTER = 4
CORNERS: Tuple[int, ...] = (0, 2, 6, 8)
SIDES: Tuple[int, ...] = (1, 3, 5, 7)


class GameStatus(str, Enum):
    IN_PROGRESS = "in-progress"
    WON = "won"
    DRAW = "draw"


class Mode(str, Enum):
    """Who controls the second player."""

    HUMAN_VS_HUMAN = "human-vs-human"
    HUMAN_VS_COMPUTER = "human-vs-computer"


def opponent(player: Player) -> Player:
    return "O" if player == "X" else "X"


def is_valid_index(index: object) -> bool:
    # bool is an int subclass but never a cell
    return (
        isinstance(index, int)
        and not isinstance(index, bool)
        and 0 <= index < BOARD_SIZE
    )


def _find_line(cells: Sequence[str]) -> Optional[Tuple[int, int, int]]:
    for a, b, c in WINNING_LINES:
        v = cells[a]
        if v != EMPTY and v == cells[b] == cells[c]:
            return (a, b, c)
    return None


def evaluate_winner(cells: Sequence[str]) -> Optional[Player]:
    """Return the mark owning a completed line, or None."""
    line = _find_line(cells)
    return cells[line[0]] if line else None


def is_draw(cells: Sequence[str]) -> bool:
    return all(c != EMPTY for c in cells) and evaluate_winner(cells) is None


def winning_line(cells: Sequence[str]) -> Tuple[int, ...]:
    """First completed line in table order, or an empty tuple."""
    return _find_line(cells) or ()


@dataclass
class Board:
    # 'X', 'O', or ' ' (space) for empty
    cells: List[str] = field(default_factory=lambda: [EMPTY] * BOARD_SIZE)

    def __post_init__(self) -> None:
        self.cells = list(self.cells)
        if len(self.cells) != BOARD_SIZE:
            raise ValueError(f"Board needs {BOARD_SIZE} cells, got {len(self.cells)}")
        for c in self.cells:
            if c not in (EMPTY, "X", "O"):
                raise ValueError(f"Invalid cell value {c!r}")

    @classmethod
    def from_marks(cls, marks: Iterable[Optional[str]]) -> "Board":
        """Build a board accepting None, '' or '_' as empty cells."""
        return cls([EMPTY if m in (None, "", "_", EMPTY) else m for m in marks])

    def is_empty_at(self, idx: int) -> bool:
        return self.cells[idx] == EMPTY

    def place(self, player: Player, idx: int) -> None:
        if not is_valid_index(idx):
            raise ValueError(f"Cell index out of range: {idx!r}")
        if self.cells[idx] != EMPTY:
            raise ValueError("Cell already occupied")
        self.cells[idx] = player

    def snapshot(self) -> Tuple[str, ...]:
        return tuple(self.cells)
