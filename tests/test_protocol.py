import pytest

from tetrisduel.protocol import (
    EMPTY_NAME,
    MAX_CLIENTS,
    MAX_NAME_LEN,
    PLAYER_ID_BROADCAST,
    Hello,
    MessageType,
    StartGame,
    SyncBoard,
    SyncLobby,
    Welcome,
    Winner,
    make_header,
    parse_header,
)


def test_header_wire_bytes():
    assert make_header(0x0102, MessageType.HELLO, PLAYER_ID_BROADCAST) == b"\x01\x02\x07\xff"


def test_header_round_trip():
    header = parse_header(make_header(Hello.SIZE, MessageType.SYNC_BOARD, 3))
    assert header.length == Hello.SIZE
    assert header.message_type == MessageType.SYNC_BOARD
    assert header.source == 3


def test_parse_header_ignores_trailing_payload():
    data = make_header(2, MessageType.LEAVE, 1) + b"xy"
    assert parse_header(data).length == 2


def test_parse_header_too_short():
    with pytest.raises(ValueError):
        parse_header(b"\x00\x01")


@pytest.mark.parametrize("length,kind,source", [(-1, 1, 0), (0x10000, 1, 0), (0, 256, 0), (0, 1, 256)])
def test_make_header_out_of_range(length, kind, source):
    with pytest.raises(ValueError):
        make_header(length, kind, source)


def test_hello_round_trip_and_size():
    hello = Hello("TetrisClient 1.0", "alice")
    data = hello.pack()
    assert len(data) == Hello.SIZE == 50
    assert Hello.unpack(data) == hello


def test_hello_name_truncated():
    data = Hello(player_name="a" * 40).pack()
    assert Hello.unpack(data).player_name == "a" * MAX_NAME_LEN


def test_welcome_round_trip():
    welcome = Welcome(player_id=-1, game_status=2, player_name="bob")
    assert Welcome.unpack(welcome.pack()) == welcome


def test_sync_lobby_defaults_round_trip():
    lobby = SyncLobby.unpack(SyncLobby().pack())
    assert lobby.player_names == [EMPTY_NAME] * MAX_CLIENTS
    assert lobby.player_1 == -1
    assert lobby.start_counter == " "


def test_sync_lobby_round_trip():
    names = [f"p{i}" for i in range(MAX_CLIENTS)]
    lobby = SyncLobby(names, 2, 5, True, False, "3")
    assert SyncLobby.unpack(lobby.pack()) == lobby


def test_sync_lobby_wrong_name_count():
    with pytest.raises(ValueError):
        SyncLobby(player_names=["only"]).pack()


def test_start_game_round_trip():
    message = StartGame(0, 1, -123456)
    data = message.pack()
    assert len(data) == StartGame.SIZE
    assert StartGame.unpack(data) == message


def test_start_game_overflow_is_value_error():
    with pytest.raises(ValueError):
        StartGame(300, 1, 0).pack()


def test_sync_board_round_trip():
    board = SyncBoard(player_id=1, piece=(5, 3, 21, 2), held_piece=4, level=3,
                      now_stack=(0, 1, 2, 3, 4, 5, 6), now_top=4,
                      next_stack=(6, 5, 4, 3, 2, 1, 0), next_top=6,
                      armed_garbage=2, queued_garbage=7, player_1=1, player_2=0,
                      start_bag_seed=99)
    board.state[0] = [7] * 9 + [-1]
    board.state[39][4] = 5
    board.counters["score"] = 1234
    board.counters["total_time_elapsed"] = 10 ** 12
    data = board.pack()
    assert len(data) == SyncBoard.SIZE == 551
    assert SyncBoard.unpack(data) == board


def test_sync_board_bad_state_shape():
    with pytest.raises(ValueError):
        SyncBoard(state=[[-1] * 10]).pack()


def test_sync_board_missing_counter():
    with pytest.raises(ValueError):
        SyncBoard(counters={"score": 1}).pack()


def test_winner_round_trip():
    winner = Winner(5_000_000, 100, 200, 1, ("alice", "<disconnected>"))
    assert Winner.unpack(winner.pack()) == winner


@pytest.mark.parametrize("cls", [Hello, Welcome, SyncLobby, StartGame, SyncBoard, Winner])
def test_unpack_too_short(cls):
    with pytest.raises(ValueError):
        cls.unpack(b"\x00" * (cls.SIZE - 1))