# tetrisduel

A falling-block puzzle game for the terminal, and a small TCP server that
runs a two-player versus lobby.

## Installing

```
pip install .
```

The client draws with `curses`, so it needs a POSIX terminal with colour
support. Without colours it prints `Screen doesnt support colors...` and
exits after a key press.

## Playing solo

```
tetrisduel
```

The game starts straight away. Gravity speeds up every 60 seconds, over
thirteen levels from one row per second down to one row every 25 ms. When a
new piece can no longer be placed, an end screen shows your time and score;
press a menu select key to play again or the menu back key to quit.

The command accepts `-p <port>` and `-h <host>` (default host `127.0.0.1`),
but the client does not use them: it plays solo only.

## Controls

Default keys:

| Action        | Key          |
|---------------|--------------|
| Move left     | Left arrow   |
| Move right    | Right arrow  |
| Soft drop     | Down arrow   |
| Hard drop     | Space        |
| Rotate left   | `z`          |
| Rotate right  | `x`          |
| Hold piece    | `c`          |
| Menu select   | Enter or `z` |
| Menu back     | `x`          |

Rotation uses the Super Rotation System wall kicks. A piece can be held
once per drop.

## Configuration files

The client keeps its settings in a `config` directory under the current
working directory and writes both files with their current values on start:

- `config/keyboard.config` holds one `name:keycode` line per binding, for
  example `game_harddrop:32`. Edit it to rebind keys; names are
  `game_left`, `game_right`, `game_softdrop`, `game_harddrop`,
  `game_rotate_left`, `game_rotate_right`, `game_hold`, `menu_up`,
  `menu_right`, `menu_down`, `menu_left`, `menu_select`, `menu_select2`
  and `menu_back`.
- `config/settings.config` holds `nickname:<name>` (default `Player`,
  at most 31 characters), shown above the board.

## Scoring

Singles, doubles, triples and tetrises score 100, 300, 500 and 800 points
times the level (counting from 1); T-spins and mini T-spins score more.
Back-to-back difficult clears earn 1.5× score and extra garbage, combos
increase the garbage sent, and clearing the whole board adds 10 garbage
rows. Soft drops earn 1 point per row and hard drops 2 per row.

## Running the server

```
tetrisduel-server 5000
```

The port must be between 1024 and 65535. The server logs to standard output
and runs until interrupted. Up to eight clients can be connected. A client
introduces itself with a hello message and gets a welcome carrying its
player id. Clients can take or give up one of the two player seats, toggle
ready, and request the lobby state. When both seated players are ready, a
four-second countdown is broadcast and then a start message with a shared
bag seed. During a game the server forwards board snapshots and garbage
between the two players, and declares a winner when a player reports a loss
or leaves.

## What the package does not do

The terminal client has no menus: no main menu, no lobby screen, no join
dialog, and no in-game screen for changing keys or the nickname (edit the
config files instead). It cannot join the server, so versus matches need a
client built on the library below.

## Using it as a library

- `tetrisduel.board.Board` is a playing field. `Board.update(user_input,
  delta_time, bindings)` advances it by `delta_time` microseconds with one
  key code and returns `(lost, changed)`. `BoardSettings.on_garbage` is
  called with the number of lines a clear sends to the opponent;
  `Board.add_garbage` queues incoming lines.
- `tetrisduel.keybindings.Keybindings` and `tetrisduel.settings.Settings`
  read and write the config files.
- `tetrisduel.protocol` holds `MessageType`, `make_header`, `parse_header`
  and the message classes `Hello`, `Welcome`, `SyncLobby`, `StartGame`,
  `SyncBoard` and `Winner`, each with `pack()` and `unpack()`.
- `tetrisduel.net.connect(host, port)` returns a non-blocking `Connection`
  with `send`, `send_hello`, `receive` and `close`.
- `tetrisduel.app.make_sync_message` and `apply_sync_message` convert a
  board to and from a `SyncBoard` snapshot.
- `tetrisduel.server.Server(port)` can be driven frame by frame with
  `poll()` or run with `run()` and stopped with `shutdown()`.

## Running the tests

```
pip install .[test]
pytest
```