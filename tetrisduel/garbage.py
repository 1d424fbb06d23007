"""Incoming garbage: a timed queue that arms lines and the armed total."""
from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_CAPACITY = 20
DEFAULT_TIME_TO_ARM = 2_000_000
MAX_LINES_PER_DROP = 8


@dataclass
class GarbageQueue:
    """Garbage waiting to arm, and armed garbage ready to rise into the board.

    Times are in microseconds.
    """

    capacity: int = DEFAULT_CAPACITY
    time_to_arm: int = DEFAULT_TIME_TO_ARM
    armed: int = 0
    amounts: list[int] = field(init=False)
    timers: list[int] = field(init=False)

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError(f"capacity must be positive, got {self.capacity}")
        self.amounts = [0] * self.capacity
        self.timers = [0] * self.capacity

    def add(self, amount: int) -> None:
        """Queue ``amount`` lines; a full queue arms its soonest entry to make room."""
        slots = range(self.capacity)
        slot = next((s for s in slots if self.amounts[s] == 0), None)
        if slot is None:
            slot = min(slots, key=self.timers.__getitem__)
            self.armed += self.amounts[slot]
        self.amounts[slot] = amount
        self.timers[slot] = self.time_to_arm

    def update(self, delta_time: int) -> None:
        """Advance the timers and arm every entry whose time has run out."""
        for slot, amount in enumerate(self.amounts):
            if amount == 0:
                continue
            self.timers[slot] -= delta_time
            if self.timers[slot] <= 0:
                self.armed += amount
                self.amounts[slot] = 0

    def cancel(self, amount: int) -> int:
        """Offset ``amount`` lines against armed, then queued garbage; return what is left."""
        if amount < 0:
            raise ValueError(f"amount must not be negative, got {amount}")
        used = min(amount, self.armed)
        self.armed -= used
        amount -= used
        while amount > 0:
            pending = [s for s in range(self.capacity) if self.amounts[s] != 0]
            if not pending:
                break
            slot = min(pending, key=self.timers.__getitem__)
            taken = min(amount, self.amounts[slot])
            self.amounts[slot] -= taken
            amount -= taken
        return amount

    def take_armed(self, limit: int = MAX_LINES_PER_DROP) -> int:
        """Remove and return up to ``limit`` armed lines."""
        taken = min(limit, self.armed)
        self.armed -= taken
        return taken

    def queued_total(self) -> int:
        """Lines still waiting to arm."""
        return sum(self.amounts)