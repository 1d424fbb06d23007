"""Terminal client: the solo game loop and board synchronisation for versus play."""
from __future__ import annotations

import contextlib
import curses
import itertools
import random
import struct
import sys
import time

from .bag import Bag
from .board import Board, BoardSettings, Counters
from .keybindings import Action, Keybindings
from .net import UsageError, parse_args
from .protocol import SyncBoard
from .render import BoardView, init_colors
from .settings import Settings
from .shapes import EMPTY, PIECE_COUNT, Tetromino

SYNC_ROWS = 40
SYNC_COLUMNS = 10
FRAME_TIME = 0.025
BOARD_WINDOW_HEIGHT = 22 + 2
BOARD_WINDOW_WIDTH = 10 * 2 + 2
ENDSCREEN_HEIGHT = 20
ENDSCREEN_WIDTH = 40

_COUNTER_FIELDS = (
    "time_since_gravity",
    "gravity_count",
    "hold_count",
    "total_time_elapsed",
    "score",
    "lock_delay",
    "lock_times",
    "b2b_bonus",
    "combo",
    "last_rotation",
)

# Wire layout of a board sync: player id, cells, active piece, counters,
# current and next bag, held piece, level, armed and queued garbage,
# the two player ids and the starting bag seed.
_SYNC_LAYOUT = struct.Struct(
    f"<b{SYNC_ROWS * SYNC_COLUMNS}b4iqiiqiiiiii{PIECE_COUNT + 1}i{PIECE_COUNT + 1}i4i2bi"
)


def make_sync_message(board: Board, player_1: int, player_2: int, bag_seed: int) -> SyncBoard:
    """Snapshot ``board`` as a board sync message."""
    cells = [
        board.state[row][col] if row < board.height and col < board.width else EMPTY
        for row in range(SYNC_ROWS)
        for col in range(SYNC_COLUMNS)
    ]
    active = board.active
    counters = [getattr(board.counters, name) for name in _COUNTER_FIELDS]
    bags = [
        *board.bags.now.stack, board.bags.now.top,
        *board.bags.next.stack, board.bags.next.top,
    ]
    data = _SYNC_LAYOUT.pack(
        board.player_id,
        *cells,
        active.kind, active.x, active.y, active.rotation,
        *counters,
        *bags,
        board.bags.held,
        board.level,
        board.garbage.armed,
        board.garbage.queued_total(),
        player_1,
        player_2,
        bag_seed,
    )
    return SyncBoard.unpack(data)


def apply_sync_message(board: Board, message: SyncBoard) -> None:
    """Overwrite ``board`` with the snapshot carried by ``message``."""
    values = iter(_SYNC_LAYOUT.unpack(message.pack()[: _SYNC_LAYOUT.size]))

    def take(count: int) -> list[int]:
        return list(itertools.islice(values, count))

    take(1)
    cells = take(SYNC_ROWS * SYNC_COLUMNS)
    for row in range(min(SYNC_ROWS, board.height)):
        for col in range(min(SYNC_COLUMNS, board.width)):
            board.state[row][col] = cells[row * SYNC_COLUMNS + col]
    kind, x, y, rotation = take(4)
    board.active = Tetromino(kind, x=x, y=y, rotation=rotation)
    board.counters = Counters(**dict(zip(_COUNTER_FIELDS, take(len(_COUNTER_FIELDS)))))
    *now_stack, now_top = take(PIECE_COUNT + 1)
    *next_stack, next_top = take(PIECE_COUNT + 1)
    board.bags.now = Bag(now_stack, now_top)
    board.bags.next = Bag(next_stack, next_top)
    held, level, armed, queued = take(4)
    board.bags.held = held
    board.difficulty.current_level = level
    board.garbage.armed = armed
    board.garbage.amounts[0] = queued
    board.highest = board.highest_piece()


class SoloGame:
    """A single-player game on one locally controlled board."""

    def __init__(
        self,
        bindings: Keybindings,
        player_name: str = "",
        *,
        win_y: int = 0,
        win_x: int = 0,
        rng: random.Random | None = None,
    ) -> None:
        settings = BoardSettings(
            bag_seed=0,
            win_y=win_y,
            win_x=win_x,
            controlled=True,
            player_id=0,
            player_name=player_name,
        )
        self.board = Board(settings, rng=rng)
        self.bindings = bindings
        self.finished = False
        self.changed = False

    def step(self, user_input: int, delta_time: int) -> bool:
        """Advance one frame; return True once the game is lost."""
        if self.finished:
            return True
        lost, self.changed = self.board.update(user_input, delta_time, self.bindings)
        self.finished = lost
        return lost


def _addstr(window, y: int, x: int, text: str, attr: int = 0) -> None:
    with contextlib.suppress(curses.error):
        window.addstr(y, max(0, x), text, attr)


def _play(stdscr, bindings: Keybindings, nickname: str) -> Board:
    game = SoloGame(
        bindings,
        nickname,
        win_y=max(0, (curses.LINES - BOARD_WINDOW_HEIGHT) // 2),
        win_x=max(0, (curses.COLS - BOARD_WINDOW_WIDTH) // 2),
    )
    stdscr.clear()
    stdscr.refresh()
    view = BoardView(game.board)
    last = time.monotonic_ns()
    try:
        while True:
            now = time.monotonic_ns()
            delta = (now - last) // 1000 or 1
            last = now
            lost = game.step(stdscr.getch(), delta)
            view.draw()
            if lost:
                break
            time.sleep(FRAME_TIME)
    finally:
        view.close()
    return game.board


def _show_endscreen(stdscr, board: Board, bindings: Keybindings) -> bool:
    """Show the result; True to play again, False to quit."""
    height, width = ENDSCREEN_HEIGHT, ENDSCREEN_WIDTH
    win = curses.newwin(
        height, width, max(0, (curses.LINES - height) // 2), max(0, (curses.COLS - width) // 2)
    )
    middle = height // 2
    lines = {
        middle - 3: "GAME OVER",
        middle - 1: f"{board.counters.total_time_elapsed / 1_000_000:.2f} s",
        middle: f"Score: {board.counters.score}",
        middle + 2: "select: play again",
        middle + 3: "back: quit",
    }
    select_keys = {bindings.button(Action.MENU_SELECT), bindings.button(Action.MENU_SELECT2)}
    back_key = bindings.button(Action.MENU_BACK)
    try:
        while True:
            win.erase()
            win.border()
            _addstr(win, 0, 2, "Endscreen")
            for y, text in lines.items():
                _addstr(win, y, (width - len(text)) // 2, text)
            _addstr(win, height - 2, width - 1 - 4, "back", curses.A_REVERSE)
            win.refresh()
            key = stdscr.getch()
            if key == back_key:
                return False
            if key in select_keys:
                return True
            time.sleep(FRAME_TIME)
    finally:
        win.erase()
        win.refresh()


def run(stdscr, host: str, port: int) -> None:
    """Run the client inside an initialised curses screen."""
    del host, port  # versus play is joined from the lobby, not from the command line
    if not init_colors():
        stdscr.addstr("Screen doesnt support colors...\n")
        stdscr.refresh()
        stdscr.nodelay(False)
        stdscr.getch()
        return
    curses.cbreak()
    stdscr.nodelay(True)
    stdscr.keypad(True)
    curses.noecho()
    with contextlib.suppress(curses.error):
        curses.curs_set(0)

    bindings = Keybindings()
    bindings.load()
    bindings.save()
    settings = Settings()
    settings.load()
    settings.save()

    while True:
        board = _play(stdscr, bindings, settings.nickname)
        if not _show_endscreen(stdscr, board, bindings):
            break


def main(argv: list[str] | None = None) -> int:
    """Start the terminal client."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        host, port = parse_args(args)
    except UsageError as exc:
        print(exc, file=sys.stderr)
        return 1
    curses.wrapper(run, host, port)
    return 0