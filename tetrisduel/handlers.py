"""Handling of messages the server receives from clients."""
from __future__ import annotations

import contextlib
import logging
import socket
from collections.abc import Callable

from .clients import RegistryFullError
from .lobby import Lobby, ServerState
from .protocol import (
    HEADER_SIZE,
    PLAYER_ID_BROADCAST,
    Header,
    Hello,
    MessageType,
    SyncBoard,
    Welcome,
    Winner,
    make_header,
    parse_header,
)

log = logging.getLogger(__name__)

_SKIP_CHUNK = 1024


def _recv(sock: socket.socket, size: int) -> bytes:
    """One read of up to ``size`` bytes; empty on error."""
    try:
        return sock.recv(size)
    except OSError:
        return b""


def _skip(sock: socket.socket, length: int) -> None:
    while length > 0:
        chunk = _recv(sock, min(length, _SKIP_CHUNK))
        if not chunk:
            break
        length -= len(chunk)


class MessageHandler:
    """Reads client messages and applies them to the lobby."""

    def __init__(self, lobby: Lobby) -> None:
        self.lobby = lobby
        self._handlers: dict[int, Callable[[socket.socket, Header], None]] = {
            MessageType.LEAVE: self._leave,
            MessageType.TOGGLE_READY: self._toggle_ready,
            MessageType.TOGGLE_PLAYER: self._toggle_player,
            MessageType.SYNC_BOARD: self._sync_board,
            MessageType.SEND_GARBAGE: self._send_garbage,
            MessageType.REQ_BOARD: self._req_board,
            MessageType.SET_LOSE: self._set_lose,
            MessageType.REQ_LOBBY: self._req_lobby,
        }

    @property
    def clients(self):
        return self.lobby.clients

    def disconnect(self, sock: socket.socket, reason: str) -> None:
        """Tell a client why it is dropped, close it and update the lobby."""
        log.info("disconnecting client: %s", reason)
        payload = reason.encode("utf-8") + b"\0"
        with contextlib.suppress(OSError):
            sock.sendall(make_header(len(payload), MessageType.DISCONNECT, PLAYER_ID_BROADCAST) + payload)
        with contextlib.suppress(OSError):
            sock.close()
        self.lobby.remove_client(sock)
        self.lobby.sync()

    def handle_hello(self, sock: socket.socket) -> int | None:
        """Run the hello/welcome handshake for a new connection; return its player id."""
        raw = _recv(sock, HEADER_SIZE)
        if len(raw) != HEADER_SIZE:
            self.disconnect(sock, "Header less than 4 bytes")
            return None
        if parse_header(raw).message_type != MessageType.HELLO:
            self.disconnect(sock, "Invalid message type (is not MSG_HELLO)")
            return None
        payload = _recv(sock, Hello.SIZE)
        if len(payload) != Hello.SIZE:
            self.disconnect(sock, "Invalid hello size")
            return None
        hello = Hello.unpack(payload)
        try:
            player_id = self.clients.add(sock, hello.player_name)
        except RegistryFullError:
            self.disconnect(sock, "Server full")
            return None

        welcome = Welcome(player_id=player_id, game_status=0, player_name=hello.player_name)
        header = make_header(Welcome.SIZE, MessageType.WELCOME, player_id)
        with contextlib.suppress(OSError):
            sock.send(header + welcome.pack())
        log.info("added player: player_id=%d, name=%s", player_id, hello.player_name)
        self.lobby.sync()
        return player_id

    def dispatch(self, sock: socket.socket) -> None:
        """Read and handle one message from a registered client."""
        try:
            raw = sock.recv(HEADER_SIZE)
        except (BlockingIOError, InterruptedError):
            return
        except OSError:
            log.warning("real error reading from client")
            return
        if not raw:
            log.info("client closed the connection")
            self.lobby.remove_client(sock)
            self.lobby.sync()
            return
        if len(raw) < HEADER_SIZE:
            log.warning("partial header")
            return
        header = parse_header(raw)
        handler = self._handlers.get(header.message_type)
        if handler is None:
            _skip(sock, header.length)
            return
        handler(sock, header)

    def _leave(self, sock: socket.socket, header: Header) -> None:
        _skip(sock, header.length)
        self.lobby.remove_client(sock)
        self.lobby.sync()

    def _toggle_ready(self, sock: socket.socket, header: Header) -> None:
        _skip(sock, header.length)
        player_id = self.clients.player_id_of(sock)
        if player_id is None:
            return
        lobby = self.lobby
        changed = False
        if lobby.player_1 == player_id:
            lobby.player_1_ready = not lobby.player_1_ready
            changed = True
            log.info("player_1_ready -> %s", lobby.player_1_ready)
        if lobby.player_2 == player_id:
            lobby.player_2_ready = not lobby.player_2_ready
            changed = True
            log.info("player_2_ready -> %s", lobby.player_2_ready)
        if changed:
            lobby.sync()

    def _toggle_player(self, sock: socket.socket, header: Header) -> None:
        _skip(sock, header.length)
        self._switch_player_slot(sock)
        self.lobby.sync()

    def _switch_player_slot(self, sock: socket.socket) -> None:
        client_id = self.clients.player_id_of(sock)
        if client_id is None:
            return
        lobby = self.lobby
        if lobby.player_1 == client_id:
            log.info("set player_1 to -1")
            lobby.player_1 = -1
            lobby.player_1_ready = False
        elif lobby.player_2 == client_id:
            log.info("set player_2 to -1")
            lobby.player_2 = -1
            lobby.player_2_ready = False
        elif lobby.player_1 == -1:
            log.info("set player_1 to %d", client_id)
            lobby.player_1 = client_id
        elif lobby.player_2 == -1:
            log.info("set player_2 to %d", client_id)
            lobby.player_2 = client_id

    def _sync_board(self, sock: socket.socket, header: Header) -> None:
        player_id = self.clients.player_id_of(sock)
        payload = _recv(sock, header.length) if header.length else b""
        if len(payload) != header.length or len(payload) < SyncBoard.SIZE:
            return
        lobby = self.lobby
        if lobby.state != ServerState.GAME:
            if lobby.last_winner.winner == -1:
                return
            reply = make_header(Winner.SIZE, MessageType.WINNER, PLAYER_ID_BROADCAST)
            self.clients.send(player_id, reply + lobby.last_winner.pack())
            return
        message = SyncBoard.unpack(payload)
        score = message.counters["score"]
        if message.player_id == lobby.player_1:
            lobby.last_winner.score_player_1 = score
        if message.player_id == lobby.player_2:
            lobby.last_winner.score_player_2 = score
        lobby.last_winner.total_time = message.counters["total_time_elapsed"]
        log.info("sending board sync, player_id=%d, score=%d", message.player_id, score)
        forward = make_header(SyncBoard.SIZE, MessageType.SYNC_BOARD, PLAYER_ID_BROADCAST)
        self.clients.broadcast(forward + payload[: SyncBoard.SIZE], except_sock=sock)

    def _send_garbage(self, sock: socket.socket, header: Header) -> None:
        garbage = header.source
        player_id = self.clients.player_id_of(sock)
        log.info("garbage from player_id=%s, garbage=%d", player_id, garbage)
        if player_id is None:
            return
        message = make_header(0, MessageType.SEND_GARBAGE, garbage)
        if player_id == self.lobby.player_1:
            self.clients.send(self.lobby.player_2, message)
        if player_id == self.lobby.player_2:
            self.clients.send(self.lobby.player_1, message)

    def _req_board(self, sock: socket.socket, header: Header) -> None:
        log.info("req_board player_id=%s", self.clients.player_id_of(sock))

    def _set_lose(self, sock: socket.socket, header: Header) -> None:
        loser = self.clients.player_id_of(sock)
        if loser is None:
            return
        winner = -1
        if self.lobby.player_1 == loser:
            winner = 1
        if self.lobby.player_2 == loser:
            winner = 0
        if winner == -1:
            return
        self.lobby.declare_winner(winner)

    def _req_lobby(self, sock: socket.socket, header: Header) -> None:
        self.lobby.sync()