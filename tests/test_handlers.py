import socket

import pytest

from tetrisduel.clients import ClientRegistry
from tetrisduel.handlers import MessageHandler
from tetrisduel.lobby import Lobby, ServerState
from tetrisduel.protocol import (
    HEADER_SIZE,
    MAX_CLIENTS,
    Hello,
    MessageType,
    SyncBoard,
    SyncLobby,
    Welcome,
    Winner,
    make_header,
    parse_header,
)


@pytest.fixture
def make_pair():
    created = []

    def factory():
        server, client = socket.socketpair()
        server.settimeout(1)
        client.settimeout(1)
        created.append((server, client))
        return server, client

    yield factory
    for server, client in created:
        server.close()
        client.close()


@pytest.fixture
def handler():
    return MessageHandler(Lobby(ClientRegistry()))


def _recv_exact(sock, size):
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            raise EOFError
        data += chunk
    return data


def _read_message(sock):
    header = parse_header(_recv_exact(sock, HEADER_SIZE))
    return header, _recv_exact(sock, header.length)


def _hello_bytes(name):
    return make_header(Hello.SIZE, MessageType.HELLO, 255) + Hello("client", name).pack()


def test_hello_is_welcomed(handler, make_pair):
    server, peer = make_pair()
    peer.sendall(_hello_bytes("ann"))
    assert handler.handle_hello(server) == 0
    header, payload = _read_message(peer)
    assert header.message_type == MessageType.WELCOME
    assert Welcome.unpack(payload) == Welcome(0, 0, "ann")
    header, payload = _read_message(peer)
    assert header.message_type == MessageType.SYNC_LOBBY
    lobby_state = SyncLobby.unpack(payload)
    assert lobby_state.player_names[0] == "ann"
    assert lobby_state.player_names[1] == "(empty)"


def test_hello_with_wrong_type_disconnects(handler, make_pair):
    server, peer = make_pair()
    peer.sendall(make_header(0, MessageType.PING, 0))
    assert handler.handle_hello(server) is None
    header, payload = _read_message(peer)
    assert header.message_type == MessageType.DISCONNECT
    assert payload == b"Invalid message type (is not MSG_HELLO)\0"
    assert server.fileno() == -1


def test_short_hello_disconnects(handler, make_pair):
    server, peer = make_pair()
    peer.sendall(make_header(Hello.SIZE, MessageType.HELLO, 0) + b"abc")
    assert handler.handle_hello(server) is None
    _, payload = _read_message(peer)
    assert payload == b"Invalid hello size\0"
    assert len(handler.clients) == 0


def test_full_server_rejects(handler, make_pair):
    for index in range(MAX_CLIENTS):
        handler.clients.add(make_pair()[0], f"p{index}")
    server, peer = make_pair()
    peer.sendall(_hello_bytes("late"))
    assert handler.handle_hello(server) is None
    _, payload = _read_message(peer)
    assert payload == b"Server full\0"
    assert len(handler.clients) == MAX_CLIENTS


def test_dispatch_eof_removes_client(handler, make_pair):
    server, peer = make_pair()
    handler.clients.add(server, "ann")
    peer.close()
    handler.dispatch(server)
    assert len(handler.clients) == 0


def test_toggle_player_twice(handler, make_pair):
    server, peer = make_pair()
    handler.clients.add(server, "ann")
    peer.sendall(make_header(0, MessageType.TOGGLE_PLAYER, 0))
    handler.dispatch(server)
    assert handler.lobby.player_1 == 0
    peer.sendall(make_header(0, MessageType.TOGGLE_PLAYER, 0))
    handler.dispatch(server)
    assert handler.lobby.player_1 == -1


def test_second_toggler_becomes_player_2(handler, make_pair):
    a, peer_a = make_pair()
    b, peer_b = make_pair()
    handler.clients.add(a, "ann")
    handler.clients.add(b, "bob")
    peer_a.sendall(make_header(0, MessageType.TOGGLE_PLAYER, 0))
    handler.dispatch(a)
    peer_b.sendall(make_header(0, MessageType.TOGGLE_PLAYER, 1))
    handler.dispatch(b)
    assert (handler.lobby.player_1, handler.lobby.player_2) == (0, 1)


def test_toggle_ready(handler, make_pair):
    server, peer = make_pair()
    handler.clients.add(server, "ann")
    handler.lobby.player_1 = 0
    peer.sendall(make_header(0, MessageType.TOGGLE_READY, 0))
    handler.dispatch(server)
    assert handler.lobby.player_1_ready is True
    header, _ = _read_message(peer)
    assert header.message_type == MessageType.SYNC_LOBBY


def test_set_lose_declares_other_winner(handler, make_pair):
    a, peer_a = make_pair()
    b, _ = make_pair()
    handler.clients.add(a, "ann")
    handler.clients.add(b, "bob")
    lobby = handler.lobby
    lobby.state = ServerState.GAME
    lobby.player_1, lobby.player_2 = 0, 1
    peer_a.sendall(make_header(0, MessageType.SET_LOSE, 0))
    handler.dispatch(a)
    assert lobby.last_winner.winner == 1
    assert lobby.state == ServerState.LOBBY
    header, payload = _read_message(peer_a)
    assert header.message_type == MessageType.WINNER
    assert Winner.unpack(payload).player_names == ("ann", "bob")


def test_garbage_is_forwarded_to_opponent(handler, make_pair):
    a, peer_a = make_pair()
    b, peer_b = make_pair()
    handler.clients.add(a, "ann")
    handler.clients.add(b, "bob")
    handler.lobby.player_1, handler.lobby.player_2 = 0, 1
    peer_a.sendall(make_header(0, MessageType.SEND_GARBAGE, 3))
    handler.dispatch(a)
    assert _recv_exact(peer_b, HEADER_SIZE) == make_header(0, MessageType.SEND_GARBAGE, 3)


def test_board_sync_in_game_is_forwarded(handler, make_pair):
    a, peer_a = make_pair()
    b, peer_b = make_pair()
    handler.clients.add(a, "ann")
    handler.clients.add(b, "bob")
    lobby = handler.lobby
    lobby.state = ServerState.GAME
    lobby.player_1, lobby.player_2 = 0, 1
    board = SyncBoard(player_id=0)
    board.counters["score"] = 1234
    board.counters["total_time_elapsed"] = 5_000_000
    payload = board.pack()
    peer_a.sendall(make_header(len(payload), MessageType.SYNC_BOARD, 0) + payload)
    handler.dispatch(a)
    assert lobby.last_winner.score_player_1 == 1234
    assert lobby.last_winner.total_time == 5_000_000
    header, forwarded = _read_message(peer_b)
    assert header.message_type == MessageType.SYNC_BOARD
    assert SyncBoard.unpack(forwarded) == board


def test_board_sync_after_game_returns_result(handler, make_pair):
    a, peer_a = make_pair()
    handler.clients.add(a, "ann")
    handler.lobby.last_winner = Winner(total_time=7, winner=0, player_names=("ann", "bob"))
    payload = SyncBoard(player_id=0).pack()
    peer_a.sendall(make_header(len(payload), MessageType.SYNC_BOARD, 0) + payload)
    handler.dispatch(a)
    header, result = _read_message(peer_a)
    assert header.message_type == MessageType.WINNER
    assert Winner.unpack(result) == handler.lobby.last_winner


def test_unknown_message_payload_is_skipped(handler, make_pair):
    server, peer = make_pair()
    handler.clients.add(server, "ann")
    peer.sendall(make_header(3, 0x30, 0) + b"xyz")
    handler.dispatch(server)
    peer.sendall(make_header(0, MessageType.TOGGLE_PLAYER, 0))
    handler.dispatch(server)
    assert handler.lobby.player_1 == 0


def test_disconnect_sends_reason(handler, make_pair):
    server, peer = make_pair()
    handler.clients.add(server, "ann")
    handler.disconnect(server, "bye")
    header, payload = _read_message(peer)
    assert header.message_type == MessageType.DISCONNECT
    assert payload == b"bye\0"
    assert len(handler.clients) == 0