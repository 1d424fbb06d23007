"""Super Rotation System wall kicks."""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace

from .shapes import PIECE_I, Tetromino

CLOCKWISE = 1
COUNTERCLOCKWISE = 3

# Kick tests for clockwise rotation out of each state, as (row, column)
# in the source's convention; counterclockwise uses the negated tests
# of the clockwise rotation into the same state.
_NORMAL_KICKS = (
    ((0, 0), (0, -1), (-1, -1), (2, 0), (2, -1)),
    ((0, 0), (0, 1), (1, 1), (-2, 0), (-2, 1)),
    ((0, 0), (0, 1), (-1, 1), (2, 0), (2, 1)),
    ((0, 0), (0, -1), (1, -1), (-2, 0), (-2, -1)),
)

_I_KICKS = (
    ((0, 0), (0, -2), (0, 1), (1, -2), (-2, 1)),
    ((0, 0), (0, -1), (0, 2), (-2, -1), (1, 2)),
    ((0, 0), (0, 2), (0, -1), (-1, 2), (2, -1)),
    ((0, 0), (0, 1), (0, -2), (2, 1), (-1, -2)),
)


def kick_offsets(piece_type: int, rotation: int, direction: int) -> tuple[tuple[int, int], ...]:
    """The five (dy, dx) shifts tried when rotating out of ``rotation``.

    ``dy`` is in board rows, which grow upward.
    """
    if direction == CLOCKWISE:
        index, sign = rotation % 4, 1
    elif direction == COUNTERCLOCKWISE:
        index, sign = (rotation + 3) % 4, -1
    else:
        raise ValueError(f"direction must be {CLOCKWISE} or {COUNTERCLOCKWISE}, got {direction}")
    table = _I_KICKS if piece_type == PIECE_I else _NORMAL_KICKS
    return tuple((-row * sign, col * sign) for row, col in table[index])


def rotate(
    piece: Tetromino, direction: int, is_valid: Callable[[Tetromino], bool]
) -> tuple[Tetromino, int] | None:
    """Try to rotate ``piece``; return the rotated piece and the kick used, or None."""
    offsets = kick_offsets(piece.kind, piece.rotation, direction)
    target = (piece.rotation + direction) % 4
    for index, (dy, dx) in enumerate(offsets):
        candidate = replace(piece, rotation=target, y=piece.y + dy, x=piece.x + dx)
        if is_valid(candidate):
            return candidate, index
    return None