"""Non-blocking TCP connection to the game server."""

from __future__ import annotations

import errno
import logging
import os
import select
import socket
import threading
from collections import deque
from collections.abc import Callable, Iterator

from .protocol import (
    BUF_SIZE,
    GAME_PORT,
    MAX_CHAT_LENGTH,
    AttackRequest,
    AvatarInfo,
    ChatPacket,
    ChatRequest,
    EnterPacket,
    LeavePacket,
    LoginFailPacket,
    LoginRequest,
    MovePacket,
    MoveRequest,
    ProtocolError,
    SkillRequest,
    StateRequest,
    StatChangePacket,
    StatePacket,
    TeleportRequest,
    decode_server_packet,
)

MIN_PACKET_SIZE = 2
MAX_PACKET_SIZE = MAX_CHAT_LENGTH + 10
SELECT_TIMEOUT = 0.01
RECV_SIZE = BUF_SIZE * 2

_CONNECT_IN_PROGRESS = frozenset(
    {
        0,
        errno.EINPROGRESS,
        errno.EWOULDBLOCK,
        errno.EALREADY,
        getattr(errno, "WSAEWOULDBLOCK", errno.EWOULDBLOCK),
    }
)

# Listener method called for each kind of server packet.
_LISTENER_METHODS = {
    AvatarInfo: "on_avatar_info",
    ChatPacket: "on_chat",
    EnterPacket: "on_enter",
    LeavePacket: "on_leave",
    LoginFailPacket: "on_login_fail",
    MovePacket: "on_move",
    StatChangePacket: "on_stat_change",
    StatePacket: "on_state",
}

log = logging.getLogger(__name__)


class PacketFramer:
    """Splits a byte stream into whole packets using their leading size byte."""

    def __init__(self):
        self._buffer = bytearray()

    @property
    def buffered(self) -> int:
        """Number of bytes waiting for the rest of their packet."""
        return len(self._buffer)

    def feed(self, data: bytes) -> Iterator[bytes]:
        """Add received bytes and iterate over the packets now complete.

        Raises ProtocolError when a packet announces an impossible size;
        packets before it are still produced.
        """
        self._buffer += data
        return self._drain()

    def _drain(self) -> Iterator[bytes]:
        while self._buffer:
            size = self._buffer[0]
            if not MIN_PACKET_SIZE <= size <= MAX_PACKET_SIZE:
                self._buffer.clear()
                raise ProtocolError(f"invalid packet size {size}")
            if len(self._buffer) < size:
                return
            packet = bytes(self._buffer[:size])
            del self._buffer[:size]
            yield packet


class NonBlockingClient:
    """Queues outgoing packets and polls the server socket without blocking.

    Decoded server packets are passed to the listener's ``on_*`` methods.
    """

    def __init__(self, listener=None):
        self.listener = listener
        self.server_ip: str | None = None
        self.port = GAME_PORT
        self._socket: socket.socket | None = None
        self._framer = PacketFramer()
        self._queue: deque[bytes] = deque()
        self._lock = threading.Lock()
        self._handler: Callable[[bytes], None] | None = None

    @property
    def connected(self) -> bool:
        return self._socket is not None

    def configure(self, server_ip: str, port: int = GAME_PORT) -> None:
        """Set the server address used by the next connect."""
        self.server_ip = server_ip
        self.port = port

    def connect(self) -> None:
        """Start a non-blocking connection; raise ConnectionError on failure."""
        if self.server_ip is None:
            raise RuntimeError("server address is not configured")
        self.disconnect()
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)
        sock.setblocking(False)
        try:
            code = sock.connect_ex((self.server_ip, self.port))
        except OSError as exc:
            sock.close()
            raise ConnectionError(f"cannot connect to {self.server_ip}:{self.port}") from exc
        if code not in _CONNECT_IN_PROGRESS:
            sock.close()
            raise ConnectionError(code, os.strerror(code))
        self._socket = sock
        self._framer = PacketFramer()

    def disconnect(self) -> None:
        """Close the connection if one is open."""
        sock, self._socket = self._socket, None
        if sock is not None:
            sock.close()

    def set_packet_handler(self, handler: Callable[[bytes], None] | None) -> None:
        """Also pass the raw bytes of every handled packet to ``handler``."""
        self._handler = handler

    def _enqueue(self, packet) -> None:
        data = packet.encode()
        with self._lock:
            self._queue.append(data)

    def send_login(self, name: str) -> None:
        self._enqueue(LoginRequest(name))

    def send_move(self, direction: int) -> None:
        self._enqueue(MoveRequest(direction))

    def send_attack(self, direction: int) -> None:
        self._enqueue(AttackRequest(direction))

    def send_chat(self, message: str) -> None:
        self._enqueue(ChatRequest(message))

    def send_teleport(self) -> None:
        self._enqueue(TeleportRequest())

    def send_state(self, state: int, direction: int) -> None:
        self._enqueue(StateRequest(state, direction))

    def send_skill(self, action: int) -> None:
        self._enqueue(SkillRequest(action))

    def pending(self) -> list[bytes]:
        """Encoded packets not yet written to the socket."""
        with self._lock:
            return list(self._queue)

    def process_network(self) -> None:
        """Receive and dispatch what has arrived, then flush queued packets."""
        sock = self._socket
        if sock is None:
            return
        with self._lock:
            want_write = bool(self._queue)
        try:
            readable, writable, _ = select.select(
                [sock], [sock] if want_write else [], [], SELECT_TIMEOUT
            )
        except (OSError, ValueError):
            self.disconnect()
            return

        if readable:
            try:
                data = sock.recv(RECV_SIZE)
            except BlockingIOError:
                data = None
            except OSError:
                self.disconnect()
                return
            if data == b"":
                self.disconnect()
                return
            if data:
                try:
                    for packet in self._framer.feed(data):
                        self.handle_packet(packet)
                except ProtocolError as exc:
                    log.error("dropping connection: %s", exc)
                    self.disconnect()
                    return

        if writable and self._socket is not None:
            self.send_pending()

    def handle_packet(self, data: bytes):
        """Decode one packet and dispatch it; return it, or None if ignored."""
        try:
            packet = decode_server_packet(data)
        except ProtocolError as exc:
            log.debug("ignoring malformed packet: %s", exc)
            return None
        if packet is None:
            return None
        if self.listener is not None:
            getattr(self.listener, _LISTENER_METHODS[type(packet)])(packet)
        if self._handler is not None:
            self._handler(bytes(data))
        return packet

    def send_pending(self) -> None:
        """Write queued packets until the socket would block."""
        sock = self._socket
        if sock is None:
            return
        failed = False
        with self._lock:
            while self._queue:
                packet = self._queue[0]
                try:
                    sent = sock.send(packet)
                except BlockingIOError:
                    break
                except OSError:
                    failed = True
                    break
                if sent < len(packet):
                    self._queue[0] = packet[sent:]
                    break
                self._queue.popleft()
        if failed:
            self.disconnect()