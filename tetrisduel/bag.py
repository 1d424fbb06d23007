"""Seven-piece bags that decide the order of falling pieces."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass

from .shapes import PIECE_COUNT

_MASK = 0xFFFFFFFF
_MODULUS = 2147483647
_STATE_SIZE = 34
_WARMUP = 310


class _SeededRandom:
    """Additive feedback generator matching the classic seeded ``rand()`` sequence."""

    def __init__(self, seed: int) -> None:
        seed &= _MASK
        if seed == 0:
            seed = 1
        word = seed - (1 << 32) if seed >= 1 << 31 else seed
        values = [word]
        for _ in range(30):
            values.append((16807 * values[-1]) % _MODULUS)
        values = [value & _MASK for value in values]
        values.extend(values[:3])
        self._state: deque[int] = deque(values, maxlen=_STATE_SIZE)
        for _ in range(_WARMUP):
            self._step()

    def _step(self) -> int:
        value = (self._state[-31] + self._state[-3]) & _MASK
        self._state.append(value)
        return value

    def __call__(self) -> int:
        return self._step() >> 1


@dataclass
class Bag:
    """One shuffled bag; pieces are taken from ``stack[top]`` downward."""

    stack: list[int]
    top: int = PIECE_COUNT - 1

    @property
    def is_empty(self) -> bool:
        return self.top < 0


def make_bag(seed: int) -> tuple[Bag, int]:
    """Shuffle a bag from ``seed``; return it with the seed for the following bag."""
    rng = _SeededRandom(seed)
    available = list(range(PIECE_COUNT))
    picks = [available.pop(rng() % size) for size in range(PIECE_COUNT, 0, -1)]
    return Bag(picks[::-1]), rng()


class BagManager:
    """The current and following bag, plus the held piece (-1 when none)."""

    def __init__(self, seed: int = 0) -> None:
        self.now, self.seed = make_bag(seed)
        self.next, self.seed = make_bag(self.seed)
        self.held = -1

    def take(self, peek: bool = False) -> int:
        """Return the next piece type; with ``peek`` the piece is left in the bag."""
        if self.now.is_empty:
            self.now = self.next
            self.next, self.seed = make_bag(self.seed)
        kind = self.now.stack[self.now.top]
        if not peek:
            self.now.top -= 1
        return kind

    def upcoming(self, count: int) -> list[int]:
        """The types of the next ``count`` pieces, without taking them."""
        result = []
        bag = self.now
        index = self.now.top
        for _ in range(count):
            if index < 0:
                bag = self.next
                index = PIECE_COUNT - 1
            result.append(bag.stack[index])
            index -= 1
        return result