"""Tetromino shapes and the falling piece."""
from __future__ import annotations

from dataclasses import dataclass

EMPTY = -1
PIECE_I, PIECE_J, PIECE_L, PIECE_O, PIECE_S, PIECE_T, PIECE_Z = range(7)
GARBAGE = 7
PIECE_COUNT = 7

# Offsets are (y, x): y grows downward from the piece's anchor, x to the right.
_SHAPES = (
    (  # I
        ((1, 0), (1, 1), (1, 2), (1, 3)),
        ((0, 2), (1, 2), (2, 2), (3, 2)),
        ((2, 0), (2, 1), (2, 2), (2, 3)),
        ((0, 1), (1, 1), (2, 1), (3, 1)),
    ),
    (  # J
        ((0, 0), (1, 0), (1, 1), (1, 2)),
        ((0, 1), (0, 2), (1, 1), (2, 1)),
        ((1, 0), (1, 1), (1, 2), (2, 2)),
        ((0, 1), (1, 1), (2, 0), (2, 1)),
    ),
    (  # L
        ((0, 2), (1, 0), (1, 1), (1, 2)),
        ((0, 1), (1, 1), (2, 1), (2, 2)),
        ((1, 0), (1, 1), (1, 2), (2, 0)),
        ((0, 0), (0, 1), (1, 1), (2, 1)),
    ),
    (  # O
        ((0, 0), (0, 1), (1, 0), (1, 1)),
        ((0, 0), (0, 1), (1, 0), (1, 1)),
        ((0, 0), (0, 1), (1, 0), (1, 1)),
        ((0, 0), (0, 1), (1, 0), (1, 1)),
    ),
    (  # S
        ((0, 1), (0, 2), (1, 0), (1, 1)),
        ((0, 1), (1, 1), (1, 2), (2, 2)),
        ((1, 1), (1, 2), (2, 0), (2, 1)),
        ((0, 0), (1, 0), (1, 1), (2, 1)),
    ),
    (  # T
        ((0, 1), (1, 0), (1, 1), (1, 2)),
        ((0, 1), (1, 1), (1, 2), (2, 1)),
        ((1, 0), (1, 1), (1, 2), (2, 1)),
        ((0, 1), (1, 0), (1, 1), (2, 1)),
    ),
    (  # Z
        ((0, 0), (0, 1), (1, 1), (1, 2)),
        ((0, 2), (1, 1), (1, 2), (2, 1)),
        ((1, 0), (1, 1), (2, 1), (2, 2)),
        ((0, 1), (1, 0), (1, 1), (2, 0)),
    ),
)

_SPAWN_WIDTHS = (4, 3, 3, 2, 3, 3, 3)


def _check_type(piece_type: int) -> None:
    if not 0 <= piece_type < PIECE_COUNT:
        raise ValueError(f"unknown piece type: {piece_type}")


def shape_offsets(piece_type: int, rotation: int) -> tuple[tuple[int, int], ...]:
    """Return the four (y, x) block offsets of a piece in a rotation."""
    _check_type(piece_type)
    if not 0 <= rotation < 4:
        raise ValueError(f"rotation must be 0-3, got {rotation}")
    return _SHAPES[piece_type][rotation]


def spawn_width(piece_type: int) -> int:
    """Width in blocks of a piece as it spawns."""
    _check_type(piece_type)
    return _SPAWN_WIDTHS[piece_type]


@dataclass
class Tetromino:
    """A piece on the board; y counts rows upward from the floor."""

    kind: int
    x: int = 0
    y: int = 0
    rotation: int = 0

    def cells(self) -> list[tuple[int, int]]:
        """Board (row, column) of each of the piece's four blocks."""
        return [(self.y - dy, self.x + dx) for dy, dx in shape_offsets(self.kind, self.rotation)]