"""The play field: falling piece, placed blocks, holding, gravity and garbage."""
from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import IntEnum

from .bag import BagManager
from .difficulty import DifficultyManager
from .garbage import MAX_LINES_PER_DROP, GarbageQueue
from .keybindings import Action, Keybindings
from .rotation import CLOCKWISE, COUNTERCLOCKWISE
from .rotation import rotate as srs_rotate
from .scoring import ScoreReport, evaluate_clear
from .shapes import EMPTY, GARBAGE, Tetromino, spawn_width

SPAWN_ROW = 21
HARD_DROP_SCORE = 2
SOFT_DROP_SCORE = 1


class Direction(IntEnum):
    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3


# (row, column) step for each direction; rows grow upward.
_STEPS = {
    Direction.UP: (1, 0),
    Direction.RIGHT: (0, 1),
    Direction.DOWN: (-1, 0),
    Direction.LEFT: (0, -1),
}


@dataclass
class Counters:
    """Running counters of a board; times are in microseconds."""

    time_since_gravity: int = 0
    gravity_count: int = 0
    hold_count: int = 0
    total_time_elapsed: int = 0
    score: int = 0
    lock_delay: int = 0
    lock_times: int = 0
    b2b_bonus: int = -1
    combo: int = -1
    last_rotation: int = -1


@dataclass
class Limits:
    """Thresholds the counters are checked against.

    ``time_since_gravity`` is the gravity interval set by the difficulty level.
    """

    time_since_gravity: int = 0
    gravity_count: int = 60
    hold_count: int = 1
    lock_delay: int = 500_000
    lock_times: int = 12


@dataclass
class BoardSettings:
    """Everything needed to build a board.

    ``on_garbage`` receives the number of lines sent to the opponent.
    """

    play_width: int = 10
    play_height: int = 40
    window_width: int = 10
    window_height: int = 22
    win_x: int = 0
    win_y: int = 0
    bag_seed: int = 0
    controlled: bool = True
    player_id: int = 0
    player_name: str = ""
    on_garbage: Callable[[int], None] | None = None


class Board:
    """One player's playing field, with ``state[row][column]`` and row 0 at the floor."""

    def __init__(self, settings: BoardSettings | None = None, *, rng: random.Random | None = None) -> None:
        self.settings = settings if settings is not None else BoardSettings()
        self.width = self.settings.play_width
        self.height = self.settings.play_height
        self.state: list[list[int]] = [[EMPTY] * self.width for _ in range(self.height)]
        self.counters = Counters()
        self.limits = Limits()
        self.difficulty = DifficultyManager()
        self._update_difficulty()
        self.bags = BagManager(self.settings.bag_seed)
        self.active = self._spawn(self.bags.take())
        self.garbage = GarbageQueue()
        self.highest = self.highest_piece()
        self.is_controlled = self.settings.controlled
        self.player_id = self.settings.player_id
        self.player_name = self.settings.player_name
        self.on_garbage = self.settings.on_garbage
        self.last_report: ScoreReport | None = None
        self._rng = rng if rng is not None else random.Random()

    @property
    def level(self) -> int:
        return self.difficulty.current_level

    def _update_difficulty(self) -> None:
        self.limits.time_since_gravity = self.difficulty.update(self.counters.total_time_elapsed)

    def _spawn(self, kind: int) -> Tetromino:
        return Tetromino(kind, x=(self.width - spawn_width(kind)) // 2, y=SPAWN_ROW)

    def _free(self, row: int, col: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width and self.state[row][col] == EMPTY

    def can_move(self, piece: Tetromino, direction: int) -> bool:
        """Whether ``piece`` could shift one step in ``direction``."""
        dy, dx = _STEPS[Direction(direction)]
        return all(self._free(row + dy, col + dx) for row, col in piece.cells())

    def move(self, piece: Tetromino, direction: int) -> bool:
        """Shift ``piece`` one step in ``direction`` if possible."""
        if not self.can_move(piece, direction):
            return False
        dy, dx = _STEPS[Direction(direction)]
        piece.y += dy
        piece.x += dx
        return True

    def is_valid(self, piece: Tetromino) -> bool:
        """Whether every block of ``piece`` lies on the board in an empty cell."""
        return all(self._free(row, col) for row, col in piece.cells())

    def rotate(self, direction: int) -> bool:
        """Rotate the active piece with wall kicks; record the kick used."""
        result = srs_rotate(self.active, direction, self.is_valid)
        if result is None:
            return False
        self.active, kick = result
        self.counters.last_rotation = kick
        return True

    def _reset_for_new_piece(self) -> None:
        self.counters.lock_delay = 0
        self.counters.lock_times = 0
        self.counters.gravity_count = 0
        self.counters.last_rotation = -1

    def _after_movement(self) -> None:
        if not self.can_move(self.active, Direction.DOWN):
            self.counters.lock_delay = 0
            self.counters.lock_times += 1

    def hard_drop(self) -> bool:
        """Drop and lock the active piece, score it, and spawn the next one.

        Returns True when rising garbage pushed blocks off the top.
        """
        while self.move(self.active, Direction.DOWN):
            self.counters.score += HARD_DROP_SCORE
        for row, col in self.active.cells():
            self.state[row][col] = self.active.kind

        result = evaluate_clear(
            self.state,
            self.active,
            self.counters.last_rotation,
            self.counters.combo,
            self.counters.b2b_bonus,
            self.level,
        )
        report = result.report
        self.counters.combo = result.combo
        self.counters.b2b_bonus = result.b2b_bonus
        self.counters.score += report.score
        self.send_garbage(report.garbage)
        lost = self.trigger_garbage() if report.lines_cleared == 0 else False
        self.last_report = report

        self.active = self._spawn(self.bags.take())
        self.counters.hold_count = 0
        self.highest = self.highest_piece()
        self._reset_for_new_piece()
        return lost

    def hold(self) -> bool:
        """Swap the active piece with the held one; False if holding is used up."""
        if self.counters.hold_count >= self.limits.hold_count:
            return False
        self.counters.hold_count += 1
        kind = self.active.kind
        if self.bags.held == EMPTY:
            self.active = self._spawn(self.bags.take())
        else:
            self.active = self._spawn(self.bags.held)
        self.bags.held = kind
        self._reset_for_new_piece()
        return True

    def apply_gravity(self) -> tuple[bool, bool]:
        """Pull the active piece down one row, locking it when its time is up.

        Returns (lost, changed).
        """
        self.counters.gravity_count += 1
        if self.move(self.active, Direction.DOWN):
            self.counters.last_rotation = -1
            return False, True
        counters, limits = self.counters, self.limits
        if (
            counters.lock_delay >= limits.lock_delay
            or counters.lock_times >= limits.lock_times
            or counters.gravity_count >= limits.gravity_count
        ):
            return self.hard_drop(), True
        return False, False

    def trigger_garbage(self) -> bool:
        """Raise up to eight armed garbage rows; True if blocks are pushed off the top."""
        amount = self.garbage.take_armed(MAX_LINES_PER_DROP)
        if amount == 0:
            return False
        overflow = self.state[max(0, self.height - amount):]
        if any(cell != EMPTY for row in overflow for cell in row):
            return True
        gap = self._rng.randrange(self.width)
        rows = [
            [EMPTY if col == gap else GARBAGE for col in range(self.width)]
            for _ in range(min(amount, self.height))
        ]
        self.state = rows + self.state[: max(0, self.height - amount)]
        return False

    def send_garbage(self, amount: int) -> int:
        """Cancel incoming garbage with ``amount`` lines; send the rest on. Return what was sent."""
        remaining = self.garbage.cancel(amount)
        if remaining and self.on_garbage is not None:
            self.on_garbage(remaining)
        return remaining

    def add_garbage(self, amount: int) -> None:
        """Queue garbage received from the opponent."""
        self.garbage.add(amount)

    def highest_piece(self) -> int:
        """Row of the highest placed block, or 0 on an empty board."""
        return max(
            (index for index, row in enumerate(self.state) if any(cell != EMPTY for cell in row)),
            default=0,
        )

    def ghost(self) -> Tetromino:
        """Where the active piece would land if dropped now."""
        shadow = replace(self.active)
        while self.move(shadow, Direction.DOWN):
            pass
        return shadow

    def update(self, user_input: int, delta_time: int, bindings: Keybindings) -> tuple[bool, bool]:
        """Advance the board by ``delta_time`` microseconds with one key press.

        Returns (lost, changed). Boards controlled elsewhere are left untouched.
        """
        if not self.is_controlled:
            return False, False
        counters = self.counters
        counters.total_time_elapsed += delta_time
        self._update_difficulty()

        def pressed(action: Action) -> bool:
            return user_input == bindings.button(action)

        changed = False
        if pressed(Action.GAME_ROTATE_RIGHT) and self.rotate(CLOCKWISE):
            self._after_movement()
            changed = True
        if pressed(Action.GAME_ROTATE_LEFT) and self.rotate(COUNTERCLOCKWISE):
            self._after_movement()
            changed = True
        if pressed(Action.GAME_HOLD):
            self.hold()
            changed = True
        for action, direction in ((Action.GAME_RIGHT, Direction.RIGHT), (Action.GAME_LEFT, Direction.LEFT)):
            if pressed(action) and self.move(self.active, direction):
                self._after_movement()
                counters.last_rotation = -1
                changed = True
        if pressed(Action.GAME_SOFTDROP):
            counters.last_rotation = -1
            if self.move(self.active, Direction.DOWN):
                counters.time_since_gravity = 0
                counters.score += SOFT_DROP_SCORE
                changed = True
        if pressed(Action.GAME_HARDDROP):
            counters.last_rotation = -1
            changed = True
            if self.hard_drop():
                return True, changed

        if not self.can_move(self.active, Direction.DOWN):
            counters.lock_delay += delta_time

        counters.time_since_gravity += delta_time
        while counters.time_since_gravity > self.limits.time_since_gravity:
            counters.time_since_gravity -= self.limits.time_since_gravity
            lost, moved = self.apply_gravity()
            changed = changed or moved
            if lost:
                return True, changed

        self.garbage.update(delta_time)

        if not self.is_valid(self.active):
            return True, True
        return False, changed