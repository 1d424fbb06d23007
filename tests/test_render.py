import random

from tetrisduel.board import Board, BoardSettings
from tetrisduel.render import PAIR_ARMED, BoardView, board_cells
from tetrisduel.scoring import ScoreReport
from tetrisduel.shapes import GARBAGE


class FakeWindow:
    def __init__(self, h, w, y, x):
        self.size = (h, w, y, x)
        self.cells = {}
        self.texts = []
        self.attrs = []
        self.refreshed = 0

    def addch(self, y, x, ch, attr=0):
        self.cells[(y, x)] = (ch, attr)

    def addstr(self, y, x, text, attr=0):
        self.texts.append((y, x, text))

    def erase(self):
        self.cells = {}
        self.texts = []

    def clear(self):
        self.erase()

    def refresh(self):
        self.refreshed += 1

    def border(self, *args):
        pass

    def attron(self, attr):
        self.attrs.append(attr)

    def attroff(self, attr):
        pass


def color(pair):
    return pair * 256


def make_board(**kwargs):
    return Board(BoardSettings(**kwargs), rng=random.Random(0))


def make_view(board):
    return BoardView(board, new_window=FakeWindow, color_pair=color)


def strings(window):
    return [text for _, _, text in window.texts]


def test_cells_show_active_piece_and_placed_blocks():
    board = make_board()
    board.state[0][9] = 2
    cells = board_cells(board)
    assert cells[(0, 9)] == (" ", 3)
    for cell in board.active.cells():
        assert cells[cell] == (" ", board.active.kind + 1)


def test_cells_show_ghost_without_moving_piece():
    board = make_board()
    before = (board.active.x, board.active.y, board.active.rotation)
    cells = board_cells(board)
    active = set(board.active.cells())
    ghost = [cell for cell in board.ghost().cells() if cell not in active]
    assert ghost
    assert all(cells[cell][0] == "@" for cell in ghost)
    assert (board.active.x, board.active.y, board.active.rotation) == before


def test_warning_blinks_when_stack_is_high():
    board = make_board()
    board.state[16][0] = GARBAGE
    board.highest = board.highest_piece()
    board.counters.total_time_elapsed = 500_000
    assert any(glyph == "X" for glyph, _ in board_cells(board).values())
    board.counters.total_time_elapsed = 0
    assert not any(glyph == "X" for glyph, _ in board_cells(board).values())


def test_no_warning_on_low_stack():
    board = make_board()
    board.counters.total_time_elapsed = 500_000
    assert not any(glyph == "X" for glyph, _ in board_cells(board).values())


def test_draw_fills_windows():
    board = make_board(player_name="alice")
    view = make_view(board)
    view.draw()
    assert any(ch == "@" for ch, _ in view.main.cells.values())
    assert "HOLD" in strings(view.hold)
    assert "NEXT" in strings(view.upcoming)
    info = strings(view.info)
    assert "alice" in info
    assert "Score: 0" in info
    assert view.main.refreshed == 1


def test_draw_shows_armed_garbage():
    board = make_board()
    board.add_garbage(3)
    board.garbage.update(board.garbage.time_to_arm)
    view = make_view(board)
    view.draw()
    armed = [cell for cell in view.garbage.cells.values() if cell[1] == color(PAIR_ARMED)]
    assert len(armed) == 3


def test_score_message_lines():
    view = make_view(make_board())
    view.draw_score_message(ScoreReport(score=100, garbage=2, lines_cleared=1, message="Single"))
    assert strings(view.clear) == ["Single", "+100 score", "2 garbage"]


def test_score_message_skips_empty_parts():
    view = make_view(make_board())
    view.draw_score_message(ScoreReport(score=0, garbage=0, lines_cleared=0, message="T-spin"))
    assert strings(view.clear) == ["T-spin"]


def test_draw_reports_hard_drop_once():
    board = make_board()
    view = make_view(board)
    board.hard_drop()
    view.draw()
    assert strings(view.clear)[0] == board.last_report.message
    view.clear.texts = []
    view.draw()
    assert view.clear.texts == []


def test_close_blanks_windows():
    board = make_board()
    view = make_view(board)
    view.draw()
    view.close()
    assert view.main.cells == {}
    assert view.info.texts == []