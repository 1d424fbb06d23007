import socket
import threading
import time

import pytest

from tetrisduel.protocol import (
    Hello,
    MessageType,
    Welcome,
    make_header,
    parse_header,
)
from tetrisduel.server import Server, main


@pytest.fixture
def server():
    srv = Server(0, "127.0.0.1")
    yield srv
    srv.shutdown()


def poll_until(server, condition, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        server.poll()
        if condition():
            return True
        time.sleep(0.01)
    return condition()


def recv_exact(sock, size):
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            break
        data += chunk
    return data


def connect_client(server, name):
    client = socket.create_connection(("127.0.0.1", server.port))
    client.settimeout(2)
    hello = Hello("TetrisClient 1.0", name)
    client.sendall(make_header(Hello.SIZE, MessageType.HELLO, 255) + hello.pack())
    return client


def test_handshake_registers_and_welcomes(server):
    client = connect_client(server, "alice")
    try:
        assert poll_until(server, lambda: len(server.clients) == 1)
        assert server.clients.get(0).name == "alice"
        header = parse_header(recv_exact(client, 4))
        assert header.message_type == MessageType.WELCOME
        assert header.source == 0
        welcome = Welcome.unpack(recv_exact(client, Welcome.SIZE))
        assert welcome.player_name == "alice"
        assert welcome.player_id == 0
    finally:
        client.close()


def test_toggle_player_takes_first_slot(server):
    client = connect_client(server, "bob")
    try:
        assert poll_until(server, lambda: len(server.clients) == 1)
        client.sendall(make_header(0, MessageType.TOGGLE_PLAYER, 0))
        assert poll_until(server, lambda: server.lobby.player_1 == 0)
        assert server.lobby.player_2 == -1
    finally:
        client.close()


def test_closed_client_is_removed(server):
    client = connect_client(server, "carol")
    assert poll_until(server, lambda: len(server.clients) == 1)
    client.close()
    assert poll_until(server, lambda: len(server.clients) == 0)
    assert server.clients.get(0) is None


def test_wrong_first_message_is_rejected(server):
    client = socket.create_connection(("127.0.0.1", server.port))
    client.settimeout(2)
    try:
        client.sendall(make_header(0, MessageType.TOGGLE_READY, 0))
        poll_until(server, lambda: False, timeout=0.3)
        header = parse_header(recv_exact(client, 4))
        assert header.message_type == MessageType.DISCONNECT
        reason = recv_exact(client, header.length)
        assert reason == b"Invalid message type (is not MSG_HELLO)\0"
        assert len(server.clients) == 0
    finally:
        client.close()


def test_shutdown_closes_listener(server):
    server.shutdown()
    assert server.listener.fileno() == -1


def test_run_stops_after_shutdown(server):
    thread = threading.Thread(target=server.run)
    thread.start()
    time.sleep(0.1)
    server.shutdown()
    thread.join(2)
    assert not thread.is_alive()


@pytest.mark.parametrize("argv", [[], ["1", "2"]])
def test_main_usage(argv, capsys):
    assert main(argv) == 1
    assert "Usage" in capsys.readouterr().err


@pytest.mark.parametrize("port", ["80", "70000", "abc"])
def test_main_rejects_bad_port(port, capsys):
    assert main([port]) == 1
    assert "Port must be" in capsys.readouterr().err