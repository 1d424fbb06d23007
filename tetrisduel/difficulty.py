"""Gravity speed levels that advance with play time."""
from __future__ import annotations

from dataclasses import dataclass, field

TRIGGER_TIME = 1
TRIGGER_SCORE = 2
LEVEL_COUNT = 13

_FAST_INTERVALS = {10: 75_000, 11: 50_000, 12: 25_000}


@dataclass(frozen=True)
class DifficultyLevel:
    """One level: gravity interval in microseconds and when it starts."""

    gravity_interval: int
    trigger_at: int
    trigger_type: int = TRIGGER_TIME


def default_levels() -> list[DifficultyLevel]:
    """Thirteen levels, one per minute, from 1 s down to 25 ms per row."""
    return [
        DifficultyLevel(
            gravity_interval=_FAST_INTERVALS.get(level, (10 - level) * 100_000),
            trigger_at=60 * level * 1_000_000,
        )
        for level in range(LEVEL_COUNT)
    ]


@dataclass
class DifficultyManager:
    """Tracks the current level of a board."""

    levels: list[DifficultyLevel] = field(default_factory=default_levels)
    current_level: int = 0

    @property
    def gravity_interval(self) -> int:
        return self.levels[self.current_level].gravity_interval

    def update(self, elapsed: int) -> int:
        """Select the level for ``elapsed`` microseconds; return its gravity interval."""
        self.current_level = max(
            (index for index, level in enumerate(self.levels) if level.trigger_at <= elapsed),
            default=0,
        )
        return self.gravity_interval