"""Wire protocol shared by the game server and client.

Packets are packed little-endian structures that start with a one-byte
total size followed by a one-byte packet type.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, fields
from typing import ClassVar, TypeVar

GAME_PORT = 3000

BUF_SIZE = 200
MAX_CHAT_LENGTH = 100

MAX_USER = 10000
NUM_MONSTER = 200000

S2C_P_AVATAR_INFO = 1
S2C_P_MOVE = 2
S2C_P_ENTER = 3
S2C_P_LEAVE = 4
C2S_P_LOGIN = 5
C2S_P_MOVE = 6
S2C_P_CHAT = 7
S2C_P_STAT_CHANGE = 8
S2C_P_LOGIN_FAIL = 9
C2S_P_ATTACK = 10
C2S_P_CHAT = 11
C2S_P_TELEPORT = 12
S2C_P_STATE = 13
C2S_P_STATE = 14
C2S_P_SKILL = 15

MAX_ID_LENGTH = 20

MOVE_UP = 1
MOVE_DOWN = 2
MOVE_LEFT = 3
MOVE_RIGHT = 4

ACTION_ATTACK = 0
ACTION_ATTACK_SKILL = 1
ACTION_HEAL_SKILL = 2

MAP_HEIGHT = 2000
MAP_WIDTH = 2000

INIT_X = 1050
INIT_Y = 1038

# Object types.
PLAYER = 0
ORC_NPC = 1
HUMAN = 2
S_HUMAN = 3

# Animation / actor states.
IDLE = 0
WALK = 1
HURT = 2
ATTACK = 3
DEATH = 4

NPC_MAX_HP = (100, 200)
NPC_EXP = (50, 80)
NPC_DAMAGE = (5, 10)
NPC_STATE_DIR = (MOVE_DOWN, MOVE_RIGHT, MOVE_LEFT, MOVE_UP)

TEXT_ENCODING = "utf-8"

_LEVEL_EXP = (0, 100, 200, 400, 800, 1200, 1500, 2000, 3000, 5000)

# Text fields that are silently shortened when too long; others are rejected.
_TRUNCATED_FIELDS = frozenset({"name"})


class ProtocolError(ValueError):
    """Raised when a packet cannot be encoded or decoded."""


def max_hp(level: int) -> int:
    """Maximum hit points for a character of the given level."""
    if level < 1:
        return 80
    return 80 + level * 20


def damage(level: int) -> int:
    """Attack damage dealt by a character of the given level."""
    return 7 + level * 3


def need_next_level_exp(level: int) -> int:
    """Experience needed to leave the given level."""
    if level < 1:
        raise ValueError(f"level must be at least 1, got {level}")
    return _LEVEL_EXP[min(level - 1, len(_LEVEL_EXP) - 1)]


def _encode_text(text: str, length: int, truncate: bool) -> bytes:
    raw = text.encode(TEXT_ENCODING)
    if len(raw) >= length:
        if not truncate:
            raise ProtocolError(
                f"text of {len(raw)} bytes does not fit a {length}-byte field"
            )
        raw = raw[: length - 1].decode(TEXT_ENCODING, errors="ignore").encode(TEXT_ENCODING)
    return raw


def _decode_text(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode(TEXT_ENCODING, errors="replace")


class _Packet:
    """Shared layout bookkeeping for fixed-layout packets."""

    TYPE: ClassVar[int]
    SIZE: ClassVar[int]
    _BODY: ClassVar[str]
    _TEXT: ClassVar[dict[str, int]] = {}
    _layout: ClassVar[struct.Struct]

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls._layout = struct.Struct("<Bb" + cls._BODY)
        cls.SIZE = cls._layout.size


_P = TypeVar("_P", bound=_Packet)


def _pack(packet: _Packet) -> bytes:
    values = []
    for field in fields(packet):
        value = getattr(packet, field.name)
        if field.name in packet._TEXT:
            value = _encode_text(
                value, packet._TEXT[field.name], field.name in _TRUNCATED_FIELDS
            )
        values.append(value)
    layout = packet._layout
    try:
        return layout.pack(layout.size, packet.TYPE, *values)
    except struct.error as exc:
        raise ProtocolError(f"cannot encode {type(packet).__name__}: {exc}") from exc


def _unpack(cls: type[_P], data: bytes) -> _P:
    layout = cls._layout
    if len(data) < layout.size:
        raise ProtocolError(f"{cls.__name__} needs {layout.size} bytes, got {len(data)}")
    _size, packet_type, *values = layout.unpack_from(data)
    if packet_type != cls.TYPE:
        raise ProtocolError(f"{cls.__name__} expects type {cls.TYPE}, got {packet_type}")
    kwargs = {}
    for field, value in zip(fields(cls), values):
        if field.name in cls._TEXT:
            value = _decode_text(value)
        kwargs[field.name] = value
    return cls(**kwargs)


@dataclass(frozen=True)
class AvatarInfo(_Packet):
    """Server: the logged-in player's own character."""

    TYPE = S2C_P_AVATAR_INFO
    _BODY = f"{MAX_ID_LENGTH}sqhhhhhi"
    _TEXT = {"name": MAX_ID_LENGTH}

    name: str
    object_id: int
    x: int
    y: int
    max_hp: int
    hp: int
    level: int
    exp: int

    def encode(self) -> bytes:
        """Serialize the packet to its wire form."""
        return _pack(self)

    @classmethod
    def decode(cls, data: bytes) -> AvatarInfo:
        """Parse the packet from the start of ``data``."""
        return _unpack(cls, data)


@dataclass(frozen=True)
class MovePacket(_Packet):
    """Server: an object moved."""

    TYPE = S2C_P_MOVE
    _BODY = "qhh"

    object_id: int
    x: int
    y: int

    def encode(self) -> bytes:
        """Serialize the packet to its wire form."""
        return _pack(self)

    @classmethod
    def decode(cls, data: bytes) -> MovePacket:
        """Parse the packet from the start of ``data``."""
        return _unpack(cls, data)


@dataclass(frozen=True)
class EnterPacket(_Packet):
    """Server: an object came into view."""

    TYPE = S2C_P_ENTER
    _BODY = f"q{MAX_ID_LENGTH}sbhhh"
    _TEXT = {"name": MAX_ID_LENGTH}

    object_id: int
    name: str
    object_type: int
    x: int
    y: int
    hp: int

    def encode(self) -> bytes:
        """Serialize the packet to its wire form."""
        return _pack(self)

    @classmethod
    def decode(cls, data: bytes) -> EnterPacket:
        """Parse the packet from the start of ``data``."""
        return _unpack(cls, data)


@dataclass(frozen=True)
class LeavePacket(_Packet):
    """Server: an object left the view."""

    TYPE = S2C_P_LEAVE
    _BODY = "q"

    object_id: int

    def encode(self) -> bytes:
        """Serialize the packet to its wire form."""
        return _pack(self)

    @classmethod
    def decode(cls, data: bytes) -> LeavePacket:
        """Parse the packet from the start of ``data``."""
        return _unpack(cls, data)


@dataclass(frozen=True)
class ChatPacket(_Packet):
    """Server: a chat line; an id of -1 marks a system message."""

    TYPE = S2C_P_CHAT
    _BODY = f"q{MAX_CHAT_LENGTH}s"
    _TEXT = {"message": MAX_CHAT_LENGTH}

    object_id: int
    message: str

    def encode(self) -> bytes:
        """Serialize the packet to its wire form."""
        return _pack(self)

    @classmethod
    def decode(cls, data: bytes) -> ChatPacket:
        """Parse the packet from the start of ``data``."""
        return _unpack(cls, data)


@dataclass(frozen=True)
class StatChangePacket(_Packet):
    """Server: hit points, level or experience changed."""

    TYPE = S2C_P_STAT_CHANGE
    _BODY = "qhhi"

    object_id: int
    hp: int
    level: int
    exp: int

    def encode(self) -> bytes:
        """Serialize the packet to its wire form."""
        return _pack(self)

    @classmethod
    def decode(cls, data: bytes) -> StatChangePacket:
        """Parse the packet from the start of ``data``."""
        return _unpack(cls, data)


@dataclass(frozen=True)
class LoginFailPacket(_Packet):
    """Server: the login was refused."""

    TYPE = S2C_P_LOGIN_FAIL
    _BODY = "qb"

    object_id: int
    reason: int

    def encode(self) -> bytes:
        """Serialize the packet to its wire form."""
        return _pack(self)

    @classmethod
    def decode(cls, data: bytes) -> LoginFailPacket:
        """Parse the packet from the start of ``data``."""
        return _unpack(cls, data)


@dataclass(frozen=True)
class StatePacket(_Packet):
    """Server: an object's animation state changed."""

    TYPE = S2C_P_STATE
    _BODY = "qib"

    object_id: int
    state: int
    direction: int

    def encode(self) -> bytes:
        """Serialize the packet to its wire form."""
        return _pack(self)

    @classmethod
    def decode(cls, data: bytes) -> StatePacket:
        """Parse the packet from the start of ``data``."""
        return _unpack(cls, data)


@dataclass(frozen=True)
class LoginRequest(_Packet):
    """Client: log in under a name."""

    TYPE = C2S_P_LOGIN
    _BODY = f"{MAX_ID_LENGTH}s"
    _TEXT = {"name": MAX_ID_LENGTH}

    name: str

    def encode(self) -> bytes:
        """Serialize the packet to its wire form."""
        return _pack(self)

    @classmethod
    def decode(cls, data: bytes) -> LoginRequest:
        """Parse the packet from the start of ``data``."""
        return _unpack(cls, data)


@dataclass(frozen=True)
class MoveRequest(_Packet):
    """Client: step one tile."""

    TYPE = C2S_P_MOVE
    _BODY = "b"

    direction: int

    def encode(self) -> bytes:
        """Serialize the packet to its wire form."""
        return _pack(self)

    @classmethod
    def decode(cls, data: bytes) -> MoveRequest:
        """Parse the packet from the start of ``data``."""
        return _unpack(cls, data)


@dataclass(frozen=True)
class AttackRequest(_Packet):
    """Client: attack in a direction."""

    TYPE = C2S_P_ATTACK
    _BODY = "b"

    direction: int

    def encode(self) -> bytes:
        """Serialize the packet to its wire form."""
        return _pack(self)

    @classmethod
    def decode(cls, data: bytes) -> AttackRequest:
        """Parse the packet from the start of ``data``."""
        return _unpack(cls, data)


@dataclass(frozen=True)
class ChatRequest(_Packet):
    """Client: send a chat line."""

    TYPE = C2S_P_CHAT
    _BODY = f"{MAX_CHAT_LENGTH}s"
    _TEXT = {"message": MAX_CHAT_LENGTH}

    message: str

    def encode(self) -> bytes:
        """Serialize the packet to its wire form."""
        return _pack(self)

    @classmethod
    def decode(cls, data: bytes) -> ChatRequest:
        """Parse the packet from the start of ``data``."""
        return _unpack(cls, data)


@dataclass(frozen=True)
class TeleportRequest(_Packet):
    """Client: ask for a random teleport."""

    TYPE = C2S_P_TELEPORT
    _BODY = ""

    def encode(self) -> bytes:
        """Serialize the packet to its wire form."""
        return _pack(self)

    @classmethod
    def decode(cls, data: bytes) -> TeleportRequest:
        """Parse the packet from the start of ``data``."""
        return _unpack(cls, data)


@dataclass(frozen=True)
class StateRequest(_Packet):
    """Client: report the player's animation state."""

    TYPE = C2S_P_STATE
    _BODY = "ib"

    state: int
    direction: int

    def encode(self) -> bytes:
        """Serialize the packet to its wire form."""
        return _pack(self)

    @classmethod
    def decode(cls, data: bytes) -> StateRequest:
        """Parse the packet from the start of ``data``."""
        return _unpack(cls, data)


@dataclass(frozen=True)
class SkillRequest(_Packet):
    """Client: use a skill."""

    TYPE = C2S_P_SKILL
    _BODY = "b"

    action: int

    def encode(self) -> bytes:
        """Serialize the packet to its wire form."""
        return _pack(self)

    @classmethod
    def decode(cls, data: bytes) -> SkillRequest:
        """Parse the packet from the start of ``data``."""
        return _unpack(cls, data)


_SERVER_PACKETS: dict[int, type[_Packet]] = {
    cls.TYPE: cls
    for cls in (
        AvatarInfo,
        MovePacket,
        EnterPacket,
        LeavePacket,
        ChatPacket,
        StatChangePacket,
        LoginFailPacket,
        StatePacket,
    )
}


def decode_server_packet(data: bytes):
    """Decode one server packet; return None for an unknown packet type."""
    if len(data) < 2:
        raise ProtocolError("packet shorter than its header")
    cls = _SERVER_PACKETS.get(data[1])
    if cls is None:
        return None
    return cls.decode(data)