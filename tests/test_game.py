"""Unit tests for the board model and win/draw evaluation."""

import pytest

from tttarena.game import (
    WINNING_LINES,
    Board,
    evaluate_winner,
    is_draw,
    winning_line,
)


def _board(*marks):
    return Board.from_marks(marks).cells


@pytest.mark.parametrize("line", WINNING_LINES)
@pytest.mark.parametrize("mark", ["X", "O"])
def test_completed_line_wins(line, mark):
    cells = [" "] * 9
    for i in line:
        cells[i] = mark
    assert evaluate_winner(cells) == mark
    assert winning_line(cells) == line
    assert not is_draw(cells)


def test_empty_board_has_no_result():
    cells = Board().cells
    assert evaluate_winner(cells) is None
    assert winning_line(cells) == ()
    assert not is_draw(cells)


def test_full_board_without_line_is_draw():
    cells = _board("X", "O", "X", "O", "X", "O", "O", "X", "O")
    assert evaluate_winner(cells) is None
    assert is_draw(cells)


def test_full_board_with_line_is_not_draw():
    cells = _board("X", "X", "X", "O", "O", "X", "O", "X", "O")
    assert evaluate_winner(cells) == "X"
    assert not is_draw(cells)


def test_winning_line_reports_first_in_table_order():
    # Row 0 and column 0 are both complete; rows come first
    cells = _board("X", "X", "X", "X", "O", "O", "X", "O", "O")
    assert winning_line(cells) == (0, 1, 2)


def test_board_rejects_wrong_length():
    with pytest.raises(ValueError):
        Board([" "] * 8)


def test_place_rejects_occupied_and_out_of_range():
    board = Board()
    board.place("X", 4)
    with pytest.raises(ValueError):
        board.place("O", 4)
    with pytest.raises(ValueError):
        board.place("O", 9)
    assert board.cells[4] == "X"
