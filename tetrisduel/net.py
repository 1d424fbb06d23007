"""Client side of the wire protocol: connecting, sending and receiving messages."""
from __future__ import annotations

import getopt
import select
import socket
import sys
from dataclasses import dataclass

from .keybindings import parse_int_prefix
from .protocol import HEADER_SIZE, PLAYER_ID_BROADCAST, Hello, MessageType, make_header, parse_header

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 0
MAX_PAYLOAD = 0xFFFF
_RECV_CHUNK = 4096
_USAGE = "Usage: tetrisduel -p <port> [-h <host>]"


class UsageError(ValueError):
    """Raised for command line arguments that cannot be parsed."""


@dataclass(frozen=True)
class Message:
    """One message received from the server."""

    message_type: int
    source: int
    payload: bytes = b""


class Connection:
    """A non-blocking connection to the game server."""

    def __init__(self, sock: socket.socket) -> None:
        sock.setblocking(False)
        self.sock = sock
        self.closed = False
        self._buffer = bytearray()
        self._eof = False

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _check_open(self) -> None:
        if self.closed:
            raise ConnectionError("connection is closed")

    def send(self, message_type: int, player_id: int, payload: bytes = b"") -> int:
        """Send one message; return the bytes sent, 0 if the socket is not ready for writing."""
        self._check_open()
        if len(payload) > MAX_PAYLOAD:
            raise ValueError(f"payload of {len(payload)} bytes exceeds {MAX_PAYLOAD}")
        _, writable, _ = select.select([], [self.sock], [], 0)
        if not writable:
            return 0
        return self.sock.send(make_header(len(payload), message_type, player_id & 0xFF) + payload)

    def send_hello(self, client_id: str, player_name: str) -> int:
        """Introduce this client to the server."""
        hello = Hello(client_id=client_id, player_name=player_name)
        return self.send(MessageType.HELLO, PLAYER_ID_BROADCAST, hello.pack())

    def _fill(self) -> None:
        while not self._eof:
            try:
                chunk = self.sock.recv(_RECV_CHUNK)
            except (BlockingIOError, InterruptedError):
                return
            if not chunk:
                self._eof = True
                return
            self._buffer += chunk

    def receive(self) -> Message | None:
        """Return the next complete message, or None if none has fully arrived.

        Raises ConnectionError once the server has closed the connection
        and every buffered message has been read.
        """
        self._check_open()
        self._fill()
        if len(self._buffer) >= HEADER_SIZE:
            header = parse_header(bytes(self._buffer[:HEADER_SIZE]))
            end = HEADER_SIZE + header.length
            if len(self._buffer) >= end:
                payload = bytes(self._buffer[HEADER_SIZE:end])
                del self._buffer[:end]
                return Message(header.message_type, header.source, payload)
        if self._eof:
            raise ConnectionError("server closed the connection")
        return None

    def close(self) -> None:
        """Close the socket."""
        if self.closed:
            return
        self.closed = True
        try:
            self.sock.close()
        except OSError:
            pass


def connect(host: str, port: int) -> Connection:
    """Connect to the server at ``host``:``port``."""
    return Connection(socket.create_connection((host, port)))


def parse_args(argv: list[str] | None = None) -> tuple[str, int]:
    """Read ``-p <port>`` and ``-h <host>`` from the command line."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        options, _ = getopt.gnu_getopt(args, "p:h:")
    except getopt.GetoptError as exc:
        raise UsageError(f"{exc}\n{_USAGE}") from exc
    host, port = DEFAULT_HOST, DEFAULT_PORT
    for flag, value in options:
        if flag == "-p":
            port = parse_int_prefix(value.lstrip())
        else:
            host = value
    return host, port