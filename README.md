# rpgclient

A headless client core for a tile-based online role-playing game. It
speaks the game's binary TCP protocol and keeps the world map with its
collision flags. It runs the sprite animation states of every visible
object. It also holds the logic of the title scene and the play scene.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## The `rpgclient` command

```
rpgclient --help
```

Options:

- `--map-dir DIR`: the directory that holds the map CSV layers. The default is `csv`.
- `--server ADDRESS`: the server to connect to. With this option the client fills in the title scene and logs in at once.
- `--port PORT`: the server port. The default is 3000.
- `--name NAME`: the player name sent with the login.
- `--duration SECONDS`: how long to run before exiting. Without it the client runs until it is interrupted.

The command builds a `GameClient` (`rpgclient.app`) and runs two loops on
background threads. One is an update loop, at about 10 ticks per second.
The other is a network loop, at about 30 ticks per second. Both run until
`stop()` is called, the duration ends, or a loop raises an error.

## Using the library

### Protocol: `rpgclient.protocol`

Each packet has its own frozen dataclass. The server packets are
`AvatarInfo`, `MovePacket`, `EnterPacket`, `LeavePacket`, `ChatPacket`,
`StatChangePacket`, `LoginFailPacket` and `StatePacket`. The client
requests are `LoginRequest`, `MoveRequest`, `AttackRequest`, `ChatRequest`,
`TeleportRequest`, `StateRequest` and `SkillRequest`. Each class has
`encode()` and a `decode(data)` class method. A packet is packed
little-endian and begins with a one-byte total size and a one-byte type.
Text fields are UTF-8 and NUL-padded.

```python
from rpgclient.protocol import MoveRequest, MOVE_LEFT, decode_server_packet

raw = MoveRequest(direction=MOVE_LEFT).encode()
packet = decode_server_packet(incoming_bytes)  # None for an unknown type
```

A packet that is too short, has the wrong type, or does not fit its
layout raises `ProtocolError`, which is a `ValueError`. A name that is too
long is cut short. A chat message that is too long is refused. Three
helpers give the stat formulas: `max_hp(level)`, `damage(level)` and
`need_next_level_exp(level)`.

### Map: `rpgclient.map_data`

`MapData(size=2000)` is a square map with three layers of tile ids and a
collision flag for each tile.

- `import_layer(lines, layer)` reads CSV lines of up to 100 × 100 cells and repeats that pattern over the whole map. A cell that is not -1 in the accessory layer (2) or the object layer (1) marks its tile as blocked.
- `load(directory)` imports `100map_object_acc.csv`, `100map_object.csv` and `100map_ground.csv`, in that order. It logs an error for any file that is missing.
- `tile(x, y)` returns a `Tile` with `ids` and `collision`.
- `is_blocked(x, y)` is true outside the map and on blocked tiles.
- `export_collision(path)` writes the collision flags to a file, one line per map row.

### Animation and objects

`rpgclient.animation` has three animation states:

- `LoopState` repeats forever.
- `ReturnState` plays once and then sends its owner back to idle.
- `EndState` stops on its last frame.

`source_rect()` and `screen_rect(x, y, px, py)` give the sprite-sheet area
and the screen area of the current frame. `sprite_for(object_type, state)`
returns the frame count and the sprite name. `SpriteCatalog(root)` finds
the files under `root/image/`, and `missing()` lists the sheets that are
absent.

`rpgclient.objects.GameObject` holds a position, a name, a level, hit
points, experience, the last chat message and an animation state. Its
methods are `update()`, `change_state(state, direction)` and
`name_position()`.

### Network: `rpgclient.network`

`NonBlockingClient(listener)` is configured with `configure(ip, port)` and
opened with `connect()`.

- The `send_*` methods queue encoded requests, and `pending()` shows the queue.
- `process_network()` polls the socket. It splits the incoming bytes into packets with a `PacketFramer`, passes each decoded packet to the listener's `on_*` method, and writes out the queued packets.
- `set_packet_handler()` adds a callback that receives the raw bytes of every handled packet.
- A packet with an impossible size drops the connection.

### Scenes: `rpgclient.framework`, `rpgclient.start_scene`, `rpgclient.play_scene`

`Framework(scene_factories, initial_scene)` owns the current `Scene` and
is the network listener. `on_avatar_info` stores the player's
`LoginInfo` and switches to the play scene. The other `on_*` methods
apply moves, enters, leaves, stat changes, animation states and chat to
the play scene's `player` and `objects`. `on_login_fail` records an
explanation in `login_error`.

`StartScene` takes typed characters into an address field and a name
field. `click(x, y)` selects a field. `"\r"` calls `submit()`, which
connects and queues a login.

`PlayScene` takes input through method calls:

- `key_down` and `key_up` move the player, attack and use skills. A move is sent only when the target tile is not blocked.
- `char_input` and `commit_text` type into a `ChatInput`.
- `click` places the chat cursor and presses the send button.
- `add_chat_message` keeps the chat log.

`show_system_message` shows a system message for 20 update frames, and
`wrap_system_message` splits it into 20-character lines.

## What this package does not do

- It draws nothing and opens no window. The scenes compute positions and state, but nothing renders them.
- It reads no keyboard or mouse. Input reaches a scene only through calls to its methods.
- It plays no audio. Scenes only record sound names, in `played_sounds` and `music`.
- It does not load sprite images. `SpriteCatalog` only locates them.
- It does not include a game server.