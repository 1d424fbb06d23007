"""Table of the clients connected to the server."""
from __future__ import annotations

import contextlib
import logging
import select
import socket
from collections.abc import Iterator
from dataclasses import dataclass

from .protocol import MAX_CLIENTS

log = logging.getLogger(__name__)


class RegistryFullError(Exception):
    """Raised when every client slot is taken."""


@dataclass
class Client:
    """A connected client and the name it introduced itself with."""

    sock: socket.socket
    name: str


class ClientRegistry:
    """Fixed set of client slots; a client's slot index is its player id."""

    def __init__(self, capacity: int = MAX_CLIENTS) -> None:
        self.capacity = capacity
        self._slots: list[Client | None] = [None] * capacity

    def __len__(self) -> int:
        return sum(client is not None for client in self._slots)

    def __iter__(self) -> Iterator[tuple[int, Client]]:
        """Yield (player id, client) for every occupied slot."""
        for player_id, client in enumerate(self._slots):
            if client is not None:
                yield player_id, client

    def add(self, sock: socket.socket, name: str) -> int:
        """Register ``sock`` in the first free slot and return its player id."""
        player_id = next((i for i, c in enumerate(self._slots) if c is None), None)
        if player_id is None:
            raise RegistryFullError("no free client slot")
        count = len(self)
        log.info("adding player_id=%d, count %d->%d, name %r", player_id, count, count + 1, name)
        self._slots[player_id] = Client(sock, name)
        return player_id

    def remove(self, sock: socket.socket) -> int | None:
        """Free the slot of ``sock`` and close it; return the freed player id."""
        player_id = self.player_id_of(sock)
        if player_id is None:
            return None
        count = len(self)
        log.info("removing player_id=%d, count %d->%d", player_id, count, count - 1)
        self._slots[player_id] = None
        with contextlib.suppress(OSError):
            sock.close()
        return player_id

    def player_id_of(self, sock: socket.socket) -> int | None:
        """The player id of ``sock``, or None if it is not registered."""
        return next((pid for pid, client in self if client.sock is sock), None)

    def get(self, index: int) -> Client | None:
        """The client in slot ``index``, or None if the slot is empty or out of range."""
        if not 0 <= index < self.capacity:
            return None
        return self._slots[index]

    def send(self, player_id: int | None, data: bytes) -> bool:
        """Send ``data`` to a player if its socket is writable right now."""
        client = self.get(player_id) if player_id is not None else None
        if client is None:
            return False
        try:
            _, writable, _ = select.select([], [client.sock], [], 0)
        except (OSError, ValueError):
            return False
        if not writable:
            return False
        try:
            client.sock.send(data)
        except OSError:
            return False
        return True

    def broadcast(self, data: bytes, except_sock: socket.socket | None = None) -> None:
        """Send ``data`` to every client except the one on ``except_sock``."""
        for player_id, client in list(self):
            if client.sock is except_sock:
                continue
            self.send(player_id, data)

    def close_all(self) -> None:
        """Close every client socket and empty the table."""
        for _, client in list(self):
            with contextlib.suppress(OSError):
                client.sock.close()
        self._slots = [None] * self.capacity