"""Player settings persisted in a small config file."""
from __future__ import annotations

import contextlib
import re
from pathlib import Path

NICKNAME_MAX_LEN = 32
DEFAULT_NICKNAME = "Player"
DEFAULT_PATH = Path("config") / "settings.config"

_LINE_END = re.compile(r"[\r\n]")


class Settings:
    """The player's nickname and where it is stored."""

    def __init__(self, path: str | Path = DEFAULT_PATH) -> None:
        self.path = Path(path)
        self.nickname = DEFAULT_NICKNAME

    def set_nickname(self, name: str) -> None:
        self.nickname = name[: NICKNAME_MAX_LEN - 1]

    def reset(self) -> None:
        self.set_nickname(DEFAULT_NICKNAME)

    def load(self) -> None:
        """Reset to defaults, then apply ``key:value`` lines from the file if present."""
        self.reset()
        try:
            with self.path.open(encoding="utf-8", errors="replace", newline="") as handle:
                lines = handle.readlines()
        except OSError:
            return
        for line in lines:
            key, sep, value = line.partition(":")
            if not sep:
                continue
            value = _LINE_END.split(value, maxsplit=1)[0]
            if key == "nickname":
                self.set_nickname(value)

    def save(self) -> None:
        """Write the settings file; failures are ignored."""
        with contextlib.suppress(OSError):
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as handle:
                handle.write(f"nickname:{self.nickname}\n")