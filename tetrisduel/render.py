"""Curses drawing of a board and the windows around it."""
from __future__ import annotations

import contextlib
import curses
from collections.abc import Callable

from .board import SPAWN_ROW, Board
from .scoring import ScoreReport
from .shapes import EMPTY, Tetromino, spawn_width

PAIR_GARBAGE = 8
PAIR_WARNING = 10
PAIR_ARMED = 11
PAIR_UNARMED = 12
PAIR_READY = 13

WARNING_HEIGHT = 16
WARNING_PERIOD = 500_000
UPCOMING_COUNT = 5

_ORANGE, _DARK_RED, _GRAY = 64, 65, 66


def board_cells(board: Board) -> dict[tuple[int, int], tuple[str, int]]:
    """Map each drawn board (row, column) to its glyph and colour pair (0 for none).

    Later layers win: placed blocks, the top-out warning, the landing ghost,
    and the active piece.
    """
    cells: dict[tuple[int, int], tuple[str, int]] = {}
    for row, line in enumerate(board.state):
        for col, kind in enumerate(line):
            if kind != EMPTY:
                cells[(row, col)] = (" ", kind + 1)

    if board.highest >= WARNING_HEIGHT:
        kind = board.bags.take(peek=True)
        if board.counters.total_time_elapsed // WARNING_PERIOD % 2 == 1:
            warning = Tetromino(kind, x=(board.width - spawn_width(kind)) // 2, y=SPAWN_ROW)
            for cell in warning.cells():
                cells[cell] = ("X", PAIR_WARNING)

    for cell in board.ghost().cells():
        cells[cell] = ("@", 0)
    for cell in board.active.cells():
        cells[cell] = (" ", board.active.kind + 1)
    return cells


def init_colors() -> bool:
    """Set up the piece and interface colours; False if the terminal has none."""
    curses.start_color()
    if not curses.has_colors():
        return False
    orange, dark_red, gray = curses.COLOR_YELLOW, curses.COLOR_RED, curses.COLOR_WHITE
    if curses.can_change_color():
        curses.init_color(curses.COLOR_CYAN, 0, 1000, 1000)
        curses.init_color(curses.COLOR_BLUE, 0, 0, 1000)
        curses.init_color(curses.COLOR_YELLOW, 1000, 1000, 0)
        curses.init_color(curses.COLOR_GREEN, 0, 1000, 0)
        curses.init_color(curses.COLOR_MAGENTA, 600, 0, 1000)
        curses.init_color(curses.COLOR_RED, 1000, 0, 0)
        if curses.COLORS > _GRAY:
            curses.init_color(_ORANGE, 1000, 666, 0)
            curses.init_color(_DARK_RED, 500, 100, 50)
            curses.init_color(_GRAY, 400, 400, 400)
            orange, dark_red, gray = _ORANGE, _DARK_RED, _GRAY

    pieces = (
        curses.COLOR_CYAN,
        curses.COLOR_BLUE,
        orange,
        curses.COLOR_YELLOW,
        curses.COLOR_GREEN,
        curses.COLOR_MAGENTA,
        curses.COLOR_RED,
        gray,
    )
    for pair, color in enumerate(pieces, start=1):
        curses.init_pair(pair, color, color)
    curses.init_pair(PAIR_WARNING, curses.COLOR_RED, curses.COLOR_BLACK)
    curses.init_pair(PAIR_ARMED, curses.COLOR_RED, curses.COLOR_RED)
    curses.init_pair(PAIR_UNARMED, dark_red, dark_red)
    curses.init_pair(PAIR_READY, curses.COLOR_GREEN, curses.COLOR_BLACK)
    return True


def _put(window, y: int, x: int, glyph: str, attr: int = 0) -> None:
    if y < 0 or x < 0:
        return
    with contextlib.suppress(curses.error):
        window.addch(y, x, glyph, attr)


def _text(window, y: int, x: int, text: str) -> None:
    with contextlib.suppress(curses.error):
        window.addstr(y, max(0, x), text)


class BoardView:
    """The windows that show one board: field, hold, next, garbage, info and messages."""

    HOLD_SIZE = (6, 8)
    UPCOMING_SIZE = (18, 12)
    INFO_HEIGHT = 4
    CLEAR_HEIGHT = 3

    def __init__(
        self,
        board: Board,
        *,
        new_window: Callable[[int, int, int, int], object] | None = None,
        color_pair: Callable[[int], int] | None = None,
    ) -> None:
        self.board = board
        make = new_window if new_window is not None else curses.newwin
        self._color = color_pair if color_pair is not None else curses.color_pair
        settings = board.settings
        self.win_h = settings.window_height + 2
        self.win_w = 2 * settings.window_width + 2
        y, x = settings.win_y, settings.win_x

        self.main = make(self.win_h, self.win_w, y, x)
        hold_h, hold_w = self.HOLD_SIZE
        self.hold_h, self.hold_w = hold_h, hold_w
        self.hold = make(hold_h, hold_w, y, max(0, x - hold_w - 2))
        up_h, up_w = self.UPCOMING_SIZE
        self.upcoming_h, self.upcoming_w = up_h, up_w
        self.upcoming = make(up_h, up_w, y, x + self.win_w)
        self.garbage_h = max(1, y + self.win_h - 1)
        self.garbage = make(self.garbage_h, 1, 0, max(0, x - 1))
        self.info_w = self.win_w
        self.info = make(self.INFO_HEIGHT, self.info_w, max(0, y - self.INFO_HEIGHT), x)
        self.clear_w = self.win_w + 18
        self.clear = make(self.CLEAR_HEIGHT, self.clear_w, y + self.win_h + 1, max(0, x - 9))
        self._shown_report: ScoreReport | None = None

    def _attr(self, pair: int) -> int:
        return self._color(pair) if pair else 0

    def draw(self) -> None:
        """Redraw every window of the board."""
        win = self.main
        for y in range(self.win_h):
            for x in range(self.win_w):
                _put(win, y, x, ".", curses.A_DIM)
        win.border(0, 0, ord(" "), 0, ord(" "), ord(" "), 0, 0)
        for (row, col), (glyph, pair) in board_cells(self.board).items():
            y = self.win_h - 2 - row
            if not 0 <= y < self.win_h:
                continue
            attr = self._attr(pair)
            _put(win, y, 2 * col + 1, glyph, attr)
            _put(win, y, 2 * col + 2, glyph, attr)
        win.refresh()

        self._draw_hold()
        self._draw_upcoming()
        self._draw_garbage()
        self._draw_info()
        report = self.board.last_report
        if report is not None and report is not self._shown_report:
            self.draw_score_message(report)

    def _draw_piece(self, window, kind: int, base_y: int, base_x: int) -> None:
        attr = self._attr(kind + 1)
        for row, col in Tetromino(kind).cells():
            _put(window, base_y - row, base_x + col * 2, " ", attr)
            _put(window, base_y - row, base_x + col * 2 + 1, " ", attr)

    def _blank(self, window, height: int, width: int) -> None:
        for y in range(height):
            for x in range(width):
                _put(window, y, x, " ")

    def _draw_hold(self) -> None:
        win = self.hold
        self._blank(win, self.hold_h, self.hold_w)
        _text(win, 1, (self.hold_w - 4) // 2, "HOLD")
        kind = self.board.bags.held
        if kind != EMPTY:
            base_y = 2 if kind == 0 else 3
            base_x = (self.hold_w - spawn_width(kind) * 2) // 2
            self._draw_piece(win, kind, base_y, base_x)
        win.refresh()

    def _draw_upcoming(self) -> None:
        win = self.upcoming
        self._blank(win, self.upcoming_h, self.upcoming_w)
        _text(win, 1, (self.upcoming_w - 4) // 2, "NEXT")
        for index, kind in enumerate(self.board.bags.upcoming(UPCOMING_COUNT)):
            base_x = (self.upcoming_w - spawn_width(kind) * 2) // 2
            self._draw_piece(win, kind, 3 + 3 * index, base_x)
        win.refresh()

    def _draw_garbage(self) -> None:
        win = self.garbage
        for y in range(self.garbage_h):
            _put(win, y, 0, " ")
        y = self.garbage_h - 1
        queue = self.board.garbage
        for count, pair in ((queue.armed, PAIR_ARMED), (queue.queued_total(), PAIR_UNARMED)):
            for _ in range(count):
                if y < 0:
                    break
                _put(win, y, 0, " ", self._color(pair))
                y -= 1
        win.refresh()

    def _centered(self, window, width: int, y: int, text: str) -> None:
        _text(window, y, (width - len(text)) // 2, text)

    def _draw_info(self) -> None:
        win = self.info
        win.erase()
        board = self.board
        if board.player_name:
            self._centered(win, self.info_w, 0, board.player_name)
        self._centered(win, self.info_w, 1, f"Time: {board.counters.total_time_elapsed // 1_000_000}s")
        self._centered(win, self.info_w, 2, f"Level: {board.level}")
        self._centered(win, self.info_w, 3, f"Score: {board.counters.score}")
        win.refresh()

    def draw_score_message(self, report: ScoreReport) -> None:
        """Show what the last placement earned below the board."""
        win = self.clear
        win.erase()
        win.attron(curses.A_BOLD)
        self._centered(win, self.clear_w, 0, report.message)
        if report.score:
            self._centered(win, self.clear_w, 1, f"+{report.score} score")
        if report.garbage:
            self._centered(win, self.clear_w, 2, f"{report.garbage} garbage")
        win.attroff(curses.A_BOLD)
        win.refresh()
        self._shown_report = report

    def close(self) -> None:
        """Blank every window of the board."""
        for win in (self.main, self.hold, self.upcoming, self.garbage, self.info, self.clear):
            win.erase()
            win.refresh()