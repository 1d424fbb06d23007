import random

import pytest

from tetrisduel.bag import BagManager
from tetrisduel.board import Board, BoardSettings, Direction
from tetrisduel.difficulty import default_levels
from tetrisduel.keybindings import Action, Keybindings
from tetrisduel.rotation import CLOCKWISE
from tetrisduel.scoring import ALL_CLEAR_GARBAGE
from tetrisduel.shapes import EMPTY, GARBAGE, PIECE_I, Tetromino


def make_board(seed=3, **kwargs):
    return Board(BoardSettings(bag_seed=seed, **kwargs), rng=random.Random(1))


def occupied(board):
    return {(r, c) for r, row in enumerate(board.state) for c, cell in enumerate(row) if cell != EMPTY}


def test_spawned_piece_comes_from_bag_and_is_valid():
    board = make_board(seed=11)
    assert board.active.kind == BagManager(11).take()
    assert board.is_valid(board.active)
    assert board.highest_piece() == 0


def test_move_stops_at_walls():
    board = make_board()
    while board.move(board.active, Direction.LEFT):
        pass
    assert min(c for _, c in board.active.cells()) == 0
    assert not board.can_move(board.active, Direction.LEFT)
    while board.move(board.active, Direction.RIGHT):
        pass
    assert max(c for _, c in board.active.cells()) == board.width - 1


def test_invalid_direction_raises():
    board = make_board()
    with pytest.raises(ValueError):
        board.can_move(board.active, 7)


def test_hard_drop_locks_piece_at_ghost():
    board = make_board()
    expected = set(board.ghost().cells())
    kind = board.active.kind
    assert board.hard_drop() is False
    assert occupied(board) == expected
    assert all(board.state[r][c] == kind for r, c in expected)
    assert board.counters.score > 0


def test_hold_limits_and_swaps():
    board = make_board()
    first = board.active.kind
    assert board.hold() is True
    assert board.bags.held == first
    assert board.hold() is False
    board.hard_drop()
    assert board.hold() is True
    assert board.active.kind == first


def test_rotate_records_kick():
    board = make_board()
    assert board.rotate(CLOCKWISE) is True
    assert board.active.rotation == 1
    assert board.counters.last_rotation == 0


def test_line_clear_all_clear_sends_bonus():
    sent = []
    board = make_board(on_garbage=sent.append)
    for col in range(4, board.width):
        board.state[0][col] = GARBAGE
    board.active = Tetromino(PIECE_I, x=0, y=21)
    board.hard_drop()
    assert board.last_report.lines_cleared == 1
    assert "ALL CLEAR" in board.last_report.message
    assert occupied(board) == set()
    assert sent == [ALL_CLEAR_GARBAGE]


def test_send_garbage_cancels_armed_first():
    sent = []
    board = make_board(on_garbage=sent.append)
    board.garbage.armed = 2
    assert board.send_garbage(5) == 5 - 2
    assert board.garbage.armed == 0
    assert sent == [5 - 2]


def test_trigger_garbage_raises_rows_with_single_gap():
    board = make_board()
    board.state[0][0] = 4
    board.add_garbage(3)
    board.garbage.update(board.garbage.time_to_arm)
    assert board.trigger_garbage() is False
    bottom = board.state[:3]
    gaps = {row.index(EMPTY) for row in bottom}
    assert len(gaps) == 1
    assert all(row.count(GARBAGE) == board.width - 1 for row in bottom)
    assert board.state[3][0] == 4
    assert len(board.state) == board.height


def test_trigger_garbage_overflow_loses():
    board = make_board()
    board.state[board.height - 1][5] = GARBAGE
    board.garbage.armed = 1
    assert board.trigger_garbage() is True


def test_trigger_without_armed_does_nothing():
    board = make_board()
    assert board.trigger_garbage() is False
    assert occupied(board) == set()


def test_highest_piece():
    board = make_board()
    board.state[5][3] = GARBAGE
    assert board.highest_piece() == 5


def test_gravity_locks_after_lock_limit():
    board = make_board()
    while board.move(board.active, Direction.DOWN):
        pass
    cells = set(board.active.cells())
    board.counters.lock_times = board.limits.lock_times
    assert board.apply_gravity() == (False, True)
    assert occupied(board) == cells


def test_update_applies_gravity():
    board = make_board()
    interval = default_levels()[0].gravity_interval
    start = board.active.y
    lost, changed = board.update(-1, interval + 1, Keybindings())
    assert (lost, changed) == (False, True)
    assert board.active.y == start - 1


def test_update_hard_drop_key():
    board = make_board()
    keys = Keybindings()
    lost, changed = board.update(keys.button(Action.GAME_HARDDROP), 1, keys)
    assert changed is True and lost is False
    assert len(occupied(board)) == 4


def test_update_uncontrolled_board_is_untouched():
    board = make_board(controlled=False)
    before = (board.active.x, board.active.y)
    assert board.update(ord(" "), 10_000_000, Keybindings()) == (False, False)
    assert (board.active.x, board.active.y) == before
    assert board.counters.total_time_elapsed == 0


def test_update_detects_blocked_spawn():
    board = make_board()
    for row, col in board.active.cells():
        board.state[row][col] = GARBAGE
    assert board.update(-1, 1, Keybindings()) == (True, True)