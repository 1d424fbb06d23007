"""Line clears, T-spin detection, and the score and garbage they earn."""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import NamedTuple

from .shapes import EMPTY, PIECE_T, Tetromino

ALL_CLEAR_GARBAGE = 10
LAST_KICK = 4


class ClearType(IntEnum):
    NORMAL = 0
    TSPIN = 1
    MINI_TSPIN = 2


class _ClearInfo(NamedTuple):
    base_score: int
    is_difficult: bool
    base_garbage: int
    name: str


_BLANK = _ClearInfo(0, False, 0, "")

_CLEAR_TABLE = {
    ClearType.NORMAL: (
        _BLANK,
        _ClearInfo(100, False, 0, "Single"),
        _ClearInfo(300, False, 1, "Double"),
        _ClearInfo(500, False, 2, "Triple"),
        _ClearInfo(800, True, 4, "Tetris"),
    ),
    ClearType.TSPIN: (
        _ClearInfo(400, False, 0, "T-spin"),
        _ClearInfo(800, True, 2, "T-spin Single"),
        _ClearInfo(1200, True, 4, "T-spin Double"),
        _ClearInfo(1600, True, 6, "T-spin Triple"),
        _BLANK,
    ),
    ClearType.MINI_TSPIN: (
        _ClearInfo(100, False, 0, "Mini T-spin"),
        _ClearInfo(200, True, 0, "Mini T-spin Single"),
        _ClearInfo(400, True, 1, "Mini T-spin Double"),
        _BLANK,
        _BLANK,
    ),
}

# Corners of the T piece's 3x3 box as (row, column) offsets from its anchor,
# listed clockwise from the top-left.
_CORNERS = ((0, 0), (0, 2), (-2, 2), (-2, 0))


@dataclass(frozen=True)
class ScoreReport:
    """What a placed piece earned."""

    score: int
    garbage: int
    lines_cleared: int
    message: str


@dataclass(frozen=True)
class ClearResult:
    """A score report with the combo and back-to-back counters that follow it."""

    report: ScoreReport
    combo: int
    b2b_bonus: int


def clear_full_lines(state: list[list[int]]) -> int:
    """Remove full rows, shifting the rows above down; return how many were removed."""
    cleared = 0
    for row in reversed(range(len(state))):
        if any(cell == EMPTY for cell in state[row]):
            continue
        del state[row]
        state.append(list(state[-1]))
        cleared += 1
    return cleared


def detect_clear_type(state: list[list[int]], piece: Tetromino, last_rotation: int) -> ClearType:
    """Classify a placement as normal, T-spin or mini T-spin by its occupied corners."""
    if piece.kind != PIECE_T or last_rotation == -1:
        return ClearType.NORMAL
    height = len(state)
    width = len(state[0]) if state else 0

    def blocked(dy: int, dx: int) -> bool:
        row, col = piece.y + dy, piece.x + dx
        return not (0 <= row < height and 0 <= col < width) or state[row][col] != EMPTY

    occupied = [blocked(dy, dx) for dy, dx in _CORNERS]
    front = sum(occupied[(i + piece.rotation) % 4] for i in (0, 1))
    back = sum(occupied[(i + piece.rotation) % 4] for i in (2, 3))
    total = front + back

    clear_type = ClearType.NORMAL
    if total >= 3:
        clear_type = ClearType.MINI_TSPIN
    if (front == 2 and back >= 1) or (total >= 3 and last_rotation == LAST_KICK):
        clear_type = ClearType.TSPIN
    return clear_type


def is_all_clear(state: list[list[int]]) -> bool:
    return all(cell == EMPTY for row in state for cell in row)


def b2b_level(bonus: int) -> int:
    """Tier of a back-to-back streak."""
    if bonus <= 0:
        return 0
    if bonus <= 2:
        return 1
    if bonus <= 7:
        return 2
    if bonus <= 23:
        return 3
    if bonus <= 66:
        return 4
    return 5


def zero_garbage_combo(combo: int) -> int:
    """Garbage a combo sends for clears that are otherwise worth none."""
    if combo <= 1:
        return 0
    if combo <= 5:
        return 1
    if combo <= 15:
        return 2
    if combo <= 20:
        return 3
    return (4 + combo) // 8


def evaluate_clear(
    state: list[list[int]],
    piece: Tetromino,
    last_rotation: int,
    combo: int,
    b2b_bonus: int,
    level: int,
) -> ClearResult:
    """Clear lines after ``piece`` has locked into ``state`` and score the result.

    ``level`` is the zero-based difficulty level; ``state`` is modified in place.
    """
    clear_type = detect_clear_type(state, piece, last_rotation)
    lines = clear_full_lines(state)
    info = _CLEAR_TABLE[clear_type][lines]

    combo = -1 if lines == 0 else combo + 1
    if lines > 0 and not info.is_difficult:
        b2b_bonus = -1
    if info.is_difficult:
        b2b_bonus += 1
    tier = b2b_level(b2b_bonus)

    score = info.base_score * (level + 1)
    if tier >= 1:
        score = score * 3 // 2

    base_garbage = info.base_garbage + tier
    garbage = base_garbage * (4 + combo) // 4
    if base_garbage == 0 and lines != 0:
        garbage = zero_garbage_combo(combo)
    if lines == 0:
        garbage = 0

    message = info.name
    if b2b_bonus >= 1 and lines > 0:
        message += f" {b2b_bonus}x B2B"
    if combo >= 1 and lines > 0:
        message += f" {combo}x Combo"
    if is_all_clear(state):
        message += " ALL CLEAR!"
        garbage += ALL_CLEAR_GARBAGE

    report = ScoreReport(score=score, garbage=garbage, lines_cleared=lines, message=message)
    return ClearResult(report=report, combo=combo, b2b_bonus=b2b_bonus)