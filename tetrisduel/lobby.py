"""Server-side lobby: player slots, ready countdown, game start and results."""
from __future__ import annotations

import logging
import random
import socket
from enum import IntEnum

from .clients import ClientRegistry
from .protocol import (
    EMPTY_NAME,
    MAX_CLIENTS,
    PLAYER_ID_BROADCAST,
    MessageType,
    StartGame,
    SyncLobby,
    Winner,
    make_header,
)

log = logging.getLogger(__name__)

START_GAME_DELAY = 4_000_000
DISCONNECTED_NAME = "<disconnected>"
NO_COUNTDOWN = " "


class ServerState(IntEnum):
    LOBBY = 0
    GAME = 1


class Lobby:
    """The two player slots, their ready flags and the last game's result.

    Times are in microseconds.
    """

    def __init__(
        self,
        clients: ClientRegistry | None = None,
        *,
        rng: random.Random | None = None,
        start_delay: int = START_GAME_DELAY,
    ) -> None:
        self.clients = clients if clients is not None else ClientRegistry()
        self.start_game_time_max = start_delay
        self.last_winner = Winner()
        self._rng = rng if rng is not None else random.Random()
        self.reset()

    def reset(self) -> None:
        """Empty both player slots and return to the lobby."""
        self.player_1 = -1
        self.player_2 = -1
        self.player_1_ready = False
        self.player_2_ready = False
        self.state = ServerState.LOBBY
        self.last_time_char_sent = NO_COUNTDOWN
        self.start_game_time_left = self.start_game_time_max

    def sync_message(self) -> SyncLobby:
        """The lobby state as it is sent to clients."""
        names = []
        for index in range(MAX_CLIENTS):
            client = self.clients.get(index)
            names.append(client.name if client is not None else EMPTY_NAME)
        return SyncLobby(
            player_names=names,
            player_1=self.player_1,
            player_2=self.player_2,
            player_1_ready=self.player_1_ready,
            player_2_ready=self.player_2_ready,
            start_counter=self.last_time_char_sent,
        )

    def sync(self) -> None:
        """Broadcast the lobby state to every client."""
        header = make_header(SyncLobby.SIZE, MessageType.SYNC_LOBBY, PLAYER_ID_BROADCAST)
        self.clients.broadcast(header + self.sync_message().pack())

    def remove_client(self, sock: socket.socket) -> int | None:
        """Drop a client, free its player slot and tell the others it left."""
        player_id = self.clients.player_id_of(sock)
        if player_id is None:
            return None
        if self.player_1 == player_id:
            log.info("set player_1 to -1")
            self.player_1 = -1
            self.player_1_ready = False
        if self.player_2 == player_id:
            log.info("set player_2 to -1")
            self.player_2 = -1
            self.player_2_ready = False
        self.clients.broadcast(make_header(0, MessageType.LEAVE, player_id))
        self.clients.remove(sock)
        return player_id

    def start_game(self) -> None:
        """Enter the game state and announce the players and bag seed."""
        self.state = ServerState.GAME
        message = StartGame(self.player_1, self.player_2, self._rng.randrange(2**31))
        header = make_header(StartGame.SIZE, MessageType.START_GAME, PLAYER_ID_BROADCAST)
        self.clients.broadcast(header + message.pack())

    def tick(self, delta_time: int) -> None:
        """Advance the lobby countdown or watch the running game."""
        if self.state == ServerState.LOBBY:
            self._tick_lobby(delta_time)
        else:
            self._tick_game()

    def _tick_lobby(self, delta_time: int) -> None:
        char = NO_COUNTDOWN
        if self.player_1_ready and self.player_2_ready:
            self.start_game_time_left -= delta_time
            if self.start_game_time_left <= 0:
                self.start_game()
                return
            char = chr(ord("0") + self.start_game_time_left // 1_000_000)
        else:
            self.start_game_time_left = self.start_game_time_max
        if char == self.last_time_char_sent:
            return
        self.last_time_char_sent = char
        self.sync()

    def _tick_game(self) -> None:
        if self.player_1 == -1:
            log.info("in versus game, but player_1=-1")
            self.declare_winner(1)
        elif self.player_2 == -1:
            log.info("in versus game, but player_2=-1")
            self.declare_winner(0)

    def _name_of(self, player: int) -> str:
        client = self.clients.get(player) if player != -1 else None
        return client.name if client is not None else DISCONNECTED_NAME

    def declare_winner(self, winner: int) -> None:
        """Record and broadcast the result, then return everyone to the lobby."""
        self.last_winner.winner = winner
        self.last_winner.player_names = (self._name_of(self.player_1), self._name_of(self.player_2))
        result = self.last_winner
        log.info(
            "winner=player_%d, score_player_1=%d, score_player_2=%d, time=%d",
            winner, result.score_player_1, result.score_player_2, result.total_time,
        )
        header = make_header(Winner.SIZE, MessageType.WINNER, PLAYER_ID_BROADCAST)
        self.clients.broadcast(header + result.pack())
        self.reset()
        self.sync()