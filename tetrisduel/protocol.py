"""Wire format shared by the game client and server.

Every message is a four byte header (big-endian payload length, message
type, source player id) followed by a fixed-size little-endian payload.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from itertools import islice
from typing import ClassVar

PLAYER_ID_BROADCAST = 255
MAX_CLIENTS = 8
MAX_NAME_LEN = 30
HEADER_SIZE = 4
BOARD_ROWS = 40
BOARD_COLS = 10
BAG_SIZE = 7
EMPTY_NAME = "(empty)"

COUNTER_FIELDS = (
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


class MessageType(IntEnum):
    """Identifiers of the message kinds; none of them is zero."""

    HELLO = 0x07
    WELCOME = 0x01
    DISCONNECT = 0x02
    PING = 0x03
    PONG = 0x04
    LEAVE = 0x05
    ERROR = 0x06

    TOGGLE_READY = 0x10
    TOGGLE_PLAYER = 0x11
    SYNC_LOBBY = 0x12
    START_GAME = 0x13
    REQ_LOBBY = 0x14

    SET_STATUS = 0x20
    SYNC_USERS = 0x21
    SYNC_BOARD = 0x22
    SEND_GARBAGE = 0x23
    REQ_BOARD = 0x24
    WINNER = 0x25
    SET_LOSE = 0x26


@dataclass(frozen=True)
class Header:
    """A decoded message header."""

    length: int
    message_type: int
    source: int


def make_header(payload_length: int, message_type: int, source: int) -> bytes:
    """Build the four byte header for a message."""
    if not 0 <= payload_length <= 0xFFFF:
        raise ValueError(f"payload length out of range: {payload_length}")
    if not 0 <= int(message_type) <= 0xFF:
        raise ValueError(f"message type out of range: {message_type}")
    if not 0 <= source <= 0xFF:
        raise ValueError(f"source out of range: {source}")
    return bytes((payload_length >> 8, payload_length & 0xFF, int(message_type), source))


def parse_header(data: bytes) -> Header:
    """Decode the first four bytes of ``data`` as a header."""
    if len(data) < HEADER_SIZE:
        raise ValueError(f"header needs {HEADER_SIZE} bytes, got {len(data)}")
    return Header(length=(data[0] << 8) | data[1], message_type=data[2], source=data[3])


def _encode_name(text: str, size: int) -> bytes:
    return text.encode("utf-8")[:size].ljust(size, b"\0")


def _decode_name(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def _pack(layout: struct.Struct, *values) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(str(exc)) from exc


def _unpack(layout: struct.Struct, data: bytes, name: str) -> tuple:
    if len(data) < layout.size:
        raise ValueError(f"{name} needs {layout.size} bytes, got {len(data)}")
    return layout.unpack_from(data)


@dataclass
class Hello:
    """First message a client sends after connecting."""

    client_id: str = ""
    player_name: str = ""

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct(f"<20s{MAX_NAME_LEN}s")
    SIZE: ClassVar[int] = _LAYOUT.size

    def pack(self) -> bytes:
        return _pack(self._LAYOUT, _encode_name(self.client_id, 20),
                     _encode_name(self.player_name, MAX_NAME_LEN))

    @classmethod
    def unpack(cls, data: bytes) -> Hello:
        client_id, name = _unpack(cls._LAYOUT, data, "hello")
        return cls(_decode_name(client_id), _decode_name(name))


@dataclass
class Welcome:
    """The server's answer to a hello, carrying the assigned player id."""

    player_id: int
    game_status: int = 0
    player_name: str = ""

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct(f"<bB{MAX_NAME_LEN}s")
    SIZE: ClassVar[int] = _LAYOUT.size

    def pack(self) -> bytes:
        return _pack(self._LAYOUT, self.player_id, self.game_status,
                     _encode_name(self.player_name, MAX_NAME_LEN))

    @classmethod
    def unpack(cls, data: bytes) -> Welcome:
        player_id, status, name = _unpack(cls._LAYOUT, data, "welcome")
        return cls(player_id, status, _decode_name(name))


@dataclass
class SyncLobby:
    """Full lobby state broadcast by the server."""

    player_names: list[str] = field(default_factory=lambda: [EMPTY_NAME] * MAX_CLIENTS)
    player_1: int = -1
    player_2: int = -1
    player_1_ready: bool = False
    player_2_ready: bool = False
    start_counter: str = " "

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct(
        "<" + f"{MAX_NAME_LEN}s" * MAX_CLIENTS + "bbBBB"
    )
    SIZE: ClassVar[int] = _LAYOUT.size

    def pack(self) -> bytes:
        if len(self.player_names) != MAX_CLIENTS:
            raise ValueError(f"lobby needs {MAX_CLIENTS} names, got {len(self.player_names)}")
        names = [_encode_name(name, MAX_NAME_LEN) for name in self.player_names]
        return _pack(self._LAYOUT, *names, self.player_1, self.player_2,
                     int(self.player_1_ready), int(self.player_2_ready),
                     ord(self.start_counter))

    @classmethod
    def unpack(cls, data: bytes) -> SyncLobby:
        values = _unpack(cls._LAYOUT, data, "lobby sync")
        names = [_decode_name(raw) for raw in values[:MAX_CLIENTS]]
        p1, p2, r1, r2, counter = values[MAX_CLIENTS:]
        return cls(names, p1, p2, bool(r1), bool(r2), chr(counter))


@dataclass
class StartGame:
    """Announces a versus game with its two players and the shared bag seed."""

    player_1: int
    player_2: int
    bag_seed: int

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<bbi")
    SIZE: ClassVar[int] = _LAYOUT.size

    def pack(self) -> bytes:
        return _pack(self._LAYOUT, self.player_1, self.player_2, self.bag_seed)

    @classmethod
    def unpack(cls, data: bytes) -> StartGame:
        return cls(*_unpack(cls._LAYOUT, data, "start game"))


def _empty_state() -> list[list[int]]:
    return [[-1] * BOARD_COLS for _ in range(BOARD_ROWS)]


@dataclass
class SyncBoard:
    """Snapshot of one player's board.

    ``piece`` is (type, x, y, rotation); ``counters`` maps each name in
    ``COUNTER_FIELDS`` to its value.
    """

    player_id: int = 0
    state: list[list[int]] = field(default_factory=_empty_state)
    piece: tuple[int, int, int, int] = (0, 0, 0, 0)
    counters: dict[str, int] = field(default_factory=lambda: dict.fromkeys(COUNTER_FIELDS, 0))
    now_stack: tuple[int, ...] = (0,) * BAG_SIZE
    now_top: int = -1
    next_stack: tuple[int, ...] = (0,) * BAG_SIZE
    next_top: int = -1
    held_piece: int = -1
    level: int = 0
    armed_garbage: int = 0
    queued_garbage: int = 0
    player_1: int = -1
    player_2: int = -1
    start_bag_seed: int = 0

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct(
        f"<b{BOARD_ROWS * BOARD_COLS}b4iqiiqiiiiii{BAG_SIZE}ii{BAG_SIZE}ii4ibbi"
    )
    SIZE: ClassVar[int] = _LAYOUT.size

    def pack(self) -> bytes:
        if len(self.state) != BOARD_ROWS or any(len(row) != BOARD_COLS for row in self.state):
            raise ValueError(f"board state must be {BOARD_ROWS}x{BOARD_COLS}")
        if len(self.piece) != 4:
            raise ValueError("piece must hold type, x, y and rotation")
        if len(self.now_stack) != BAG_SIZE or len(self.next_stack) != BAG_SIZE:
            raise ValueError(f"bags must hold {BAG_SIZE} pieces")
        try:
            counters = [self.counters[name] for name in COUNTER_FIELDS]
        except KeyError as exc:
            raise ValueError(f"missing counter {exc.args[0]}") from exc
        return _pack(
            self._LAYOUT,
            self.player_id,
            *(cell for row in self.state for cell in row),
            *self.piece,
            *counters,
            *self.now_stack, self.now_top,
            *self.next_stack, self.next_top,
            self.held_piece, self.level, self.armed_garbage, self.queued_garbage,
            self.player_1, self.player_2, self.start_bag_seed,
        )

    @classmethod
    def unpack(cls, data: bytes) -> SyncBoard:
        values = iter(_unpack(cls._LAYOUT, data, "board sync"))
        player_id = next(values)
        state = [list(islice(values, BOARD_COLS)) for _ in range(BOARD_ROWS)]
        piece = tuple(islice(values, 4))
        counters = dict(zip(COUNTER_FIELDS, islice(values, len(COUNTER_FIELDS))))
        now_stack = tuple(islice(values, BAG_SIZE))
        now_top = next(values)
        next_stack = tuple(islice(values, BAG_SIZE))
        next_top = next(values)
        held, level, armed, queued, p1, p2, seed = values
        return cls(player_id, state, piece, counters, now_stack, now_top,
                   next_stack, next_top, held, level, armed, queued, p1, p2, seed)


@dataclass
class Winner:
    """Result of a versus game; ``winner`` is 0 or 1, or -1 when unset."""

    total_time: int = 0
    score_player_1: int = 0
    score_player_2: int = 0
    winner: int = -1
    player_names: tuple[str, str] = ("", "")

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct(f"<qiii{MAX_NAME_LEN}s{MAX_NAME_LEN}s")
    SIZE: ClassVar[int] = _LAYOUT.size

    def pack(self) -> bytes:
        if len(self.player_names) != 2:
            raise ValueError("winner message needs exactly two names")
        first, second = self.player_names
        return _pack(self._LAYOUT, self.total_time, self.score_player_1,
                     self.score_player_2, self.winner,
                     _encode_name(first, MAX_NAME_LEN), _encode_name(second, MAX_NAME_LEN))

    @classmethod
    def unpack(cls, data: bytes) -> Winner:
        total, s1, s2, winner, n1, n2 = _unpack(cls._LAYOUT, data, "winner")
        return cls(total, s1, s2, winner, (_decode_name(n1), _decode_name(n2)))