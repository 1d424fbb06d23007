"""Configurable key bindings for game and menu actions."""
from __future__ import annotations

import contextlib
import re
from dataclasses import dataclass, replace
from enum import IntEnum
from pathlib import Path

KEY_DOWN = 258
KEY_UP = 259
KEY_LEFT = 260
KEY_RIGHT = 261
KEY_LINEFEED = 10

DEFAULT_PATH = Path("config") / "keyboard.config"


class Action(IntEnum):
    GAME_RIGHT = 0
    GAME_LEFT = 1
    GAME_SOFTDROP = 2
    GAME_HARDDROP = 3
    GAME_ROTATE_LEFT = 4
    GAME_ROTATE_RIGHT = 5
    GAME_HOLD = 6
    MENU_UP = 7
    MENU_RIGHT = 8
    MENU_DOWN = 9
    MENU_LEFT = 10
    MENU_SELECT = 11
    MENU_SELECT2 = 12
    MENU_BACK = 13


@dataclass(frozen=True)
class KeyBind:
    """A key code with the names shown in the menu and used in the config file."""

    button: int
    setting_name: str
    config_name: str


_DEFAULTS = {
    Action.GAME_LEFT: KeyBind(KEY_LEFT, "Tetris left", "game_left"),
    Action.GAME_RIGHT: KeyBind(KEY_RIGHT, "Tetris right", "game_right"),
    Action.GAME_SOFTDROP: KeyBind(KEY_DOWN, "Soft drop", "game_softdrop"),
    Action.GAME_HARDDROP: KeyBind(ord(" "), "Hard drop", "game_harddrop"),
    Action.GAME_ROTATE_LEFT: KeyBind(ord("z"), "Rotate left", "game_rotate_left"),
    Action.GAME_ROTATE_RIGHT: KeyBind(ord("x"), "Rotate right", "game_rotate_right"),
    Action.GAME_HOLD: KeyBind(ord("c"), "Hold piece", "game_hold"),
    Action.MENU_UP: KeyBind(KEY_UP, "Menu up", "menu_up"),
    Action.MENU_RIGHT: KeyBind(KEY_RIGHT, "Menu right", "menu_right"),
    Action.MENU_DOWN: KeyBind(KEY_DOWN, "Menu down", "menu_down"),
    Action.MENU_LEFT: KeyBind(KEY_LEFT, "Menu left", "menu_left"),
    Action.MENU_SELECT: KeyBind(KEY_LINEFEED, "Menu select", "menu_select"),
    Action.MENU_SELECT2: KeyBind(ord("z"), "Menu select 2", "menu_select2"),
    Action.MENU_BACK: KeyBind(ord("x"), "Menu back", "menu_back"),
}

_NAME = re.compile(r"[A-Za-z0-9_]*")
_INT_PREFIX = re.compile(r"(-?)([0-9]*)")


def parse_int_prefix(text: str) -> int:
    """Read an optionally negative run of digits at the start of ``text``; 0 if none."""
    match = _INT_PREFIX.match(text)
    digits = match.group(2)
    if not digits:
        return 0
    value = int(digits)
    return -value if match.group(1) else value


def parse_bind_line(line: str) -> tuple[str, int]:
    """Split a ``name:number`` config line into its name and number."""
    name = _NAME.match(line).group()
    rest = line[len(name):]
    if not rest:
        return name, 0
    return name, parse_int_prefix(rest[1:])


class Keybindings:
    """The current bindings, loadable from and savable to a config file."""

    def __init__(self, path: str | Path = DEFAULT_PATH) -> None:
        self.path = Path(path)
        self.binds: list[KeyBind] = []
        self.set_defaults()

    def set_defaults(self) -> None:
        self.binds = [_DEFAULTS[action] for action in Action]

    def load(self) -> None:
        """Reset to defaults, then apply the config file if it can be read."""
        self.set_defaults()
        try:
            with self.path.open(encoding="utf-8", errors="replace") as handle:
                lines = handle.readlines()
        except OSError:
            return
        for line in lines:
            name, button = parse_bind_line(line)
            self.binds = [
                replace(bind, button=button) if bind.config_name == name else bind
                for bind in self.binds
            ]

    def save(self) -> None:
        """Write the bindings to the config file; failures are ignored."""
        with contextlib.suppress(OSError):
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as handle:
                handle.writelines(f"{bind.config_name}:{bind.button}\n" for bind in self.binds)

    def button(self, action: int) -> int:
        return self.binds[Action(action)].button

    def set_button(self, action: int, button: int) -> None:
        index = Action(action)
        self.binds[index] = replace(self.binds[index], button=button)

    def bind(self, action: int) -> KeyBind:
        return self.binds[Action(action)]