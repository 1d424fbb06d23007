"""The game server: listening socket, polling loop and command line entry."""
from __future__ import annotations

import logging
import select
import socket
import sys
import time

from .clients import ClientRegistry
from .handlers import MessageHandler
from .keybindings import parse_int_prefix
from .lobby import Lobby
from .protocol import MAX_CLIENTS

log = logging.getLogger(__name__)

FRAME_TIME = 0.025
MIN_PORT = 1024
MAX_PORT = 65535


class Server:
    """Listens for clients and drives the lobby one frame at a time."""

    def __init__(self, port: int, host: str = "", *, frame_time: float = FRAME_TIME) -> None:
        self.listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            self.listener.bind((host, port))
            self.listener.listen(MAX_CLIENTS)
        except OSError:
            self.listener.close()
            raise
        self.port = self.listener.getsockname()[1]
        log.info("Server listening on port %d", self.port)
        self.frame_time = frame_time
        self.clients = ClientRegistry()
        self.lobby = Lobby(self.clients)
        self.handler = MessageHandler(self.lobby)
        self._closed = False

    def poll(self) -> None:
        """Accept a waiting connection and handle every client with data to read."""
        watched = [self.listener] + [client.sock for _, client in self.clients]
        try:
            readable, _, _ = select.select(watched, [], [], 0)
        except (OSError, ValueError):
            return
        ready = set(readable)

        if self.listener in ready:
            try:
                conn, address = self.listener.accept()
            except OSError:
                conn = None
            if conn is not None:
                log.info("Accepted %s:%d", address[0], address[1])
                self.handler.handle_hello(conn)

        for player_id, client in list(self.clients):
            if client.sock in ready and self.clients.get(player_id) is client:
                log.info("data received from player_id=%d", player_id)
                self.handler.dispatch(client.sock)

    def run(self) -> None:
        """Run frames until :meth:`shutdown` is called."""
        last = time.monotonic_ns()
        while not self._closed:
            now = time.monotonic_ns()
            delta = (now - last) // 1000 or 1
            last = now
            self.lobby.tick(delta)
            self.poll()
            time.sleep(self.frame_time)

    def shutdown(self) -> None:
        """Stop the loop and close every socket."""
        self._closed = True
        self.clients.close_all()
        self.listener.close()


def main(argv: list[str] | None = None) -> int:
    """Start a server on the port given on the command line."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("Usage: tetrisduel-server <port>", file=sys.stderr)
        return 1
    port = parse_int_prefix(args[0].lstrip())
    if not MIN_PORT <= port <= MAX_PORT:
        print(f"Port must be {MIN_PORT}–{MAX_PORT}", file=sys.stderr)
        return 1

    logging.basicConfig(level=logging.INFO, format="[%(name)s] %(message)s", stream=sys.stdout)
    try:
        server = Server(port)
    except OSError:
        print(f"Failed to initialize server on port {port}", file=sys.stderr)
        return 1
    try:
        server.run()
    except KeyboardInterrupt:
        pass
    finally:
        server.shutdown()
    return 0