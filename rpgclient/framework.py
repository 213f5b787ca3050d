"""Scene switching and application of server updates to the game world."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from .objects import GameObject
from .protocol import (
    DEATH,
    MOVE_DOWN,
    MOVE_LEFT,
    MOVE_RIGHT,
    MOVE_UP,
    AvatarInfo,
    ChatPacket,
    EnterPacket,
    LeavePacket,
    LoginFailPacket,
    MovePacket,
    StatChangePacket,
    StatePacket,
)

START_SCENE = 0
PLAY_SCENE = 1

SYSTEM_MESSAGE_ID = -1

# Server move directions to sprite-sheet rows.
CLIENT_DIRECTION = {MOVE_UP: 1, MOVE_DOWN: 0, MOVE_LEFT: 2, MOVE_RIGHT: 3}

LOGIN_FAIL_REASONS = {
    1: "This ID is already logged in.",
    2: "This ID is not allowed.",
    3: "The server has reached its maximum number of players.",
}

log = logging.getLogger(__name__)


@dataclass
class LoginInfo:
    """The logged-in player's character as reported by the server."""

    name: str = ""
    object_id: int | None = None
    x: int = 0
    y: int = 0
    max_hp: int = 0
    hp: int = 0
    level: int = 0
    exp: int = 0


class Scene:
    """Base class of the screens the framework switches between."""

    def __init__(self, framework: Framework):
        self.framework = framework

    def update(self) -> None:
        """Advance one frame."""

    def network(self) -> None:
        """Poll the network."""

    def shutdown(self) -> None:
        """Release what the scene holds before it is replaced."""

    def change_scene(self, next_scene: int) -> None:
        self.framework.change_scene(next_scene)


@runtime_checkable
class WorldScene(Protocol):
    """A scene showing the player and the objects around it."""

    player: GameObject
    objects: dict
    player_live: bool

    def change_state(self, state: int) -> None: ...

    def show_system_message(self, message: str) -> None: ...


SceneFactory = Callable[["Framework"], Scene]


class Framework:
    """Owns the current scene and applies server packets to it."""

    def __init__(self, scene_factories: Mapping[int, SceneFactory],
                 initial_scene: int = START_SCENE):
        self.scene_factories = dict(scene_factories)
        self.login_info = LoginInfo()
        self.login_error: str | None = None
        self.scene: Scene = self._create(initial_scene)

    def _create(self, scene_id: int) -> Scene:
        try:
            factory = self.scene_factories[scene_id]
        except KeyError:
            raise ValueError(f"unknown scene {scene_id}") from None
        return factory(self)

    def update(self) -> None:
        self.scene.update()

    def network(self) -> None:
        self.scene.network()

    def change_scene(self, next_scene: int) -> None:
        """Shut the current scene down and start another."""
        if next_scene not in self.scene_factories:
            raise ValueError(f"unknown scene {next_scene}")
        self.scene.shutdown()
        self.scene = self._create(next_scene)

    def _world(self) -> WorldScene | None:
        return self.scene if isinstance(self.scene, WorldScene) else None

    def _is_player(self, object_id: int) -> bool:
        return object_id == self.login_info.object_id

    def on_avatar_info(self, packet: AvatarInfo) -> None:
        info = self.login_info
        info.name = packet.name
        info.x = packet.x
        info.y = packet.y
        info.level = packet.level
        info.hp = packet.hp
        info.object_id = packet.object_id
        self.change_scene(PLAY_SCENE)

    def on_move(self, packet: MovePacket) -> None:
        world = self._world()
        if world is None:
            return
        if self._is_player(packet.object_id):
            world.player_live = True
            self.login_info.x = packet.x
            self.login_info.y = packet.y
            world.player.x = packet.x
            world.player.y = packet.y
            return
        obj = world.objects.get(packet.object_id)
        if obj is not None:
            obj.x = packet.x
            obj.y = packet.y

    def on_enter(self, packet: EnterPacket) -> None:
        world = self._world()
        if world is None:
            return
        world.objects[packet.object_id] = GameObject(
            packet.object_type, packet.x, packet.y, packet.name, hp=packet.hp
        )

    def on_leave(self, packet: LeavePacket) -> None:
        world = self._world()
        if world is not None:
            world.objects.pop(packet.object_id, None)

    def on_stat_change(self, packet: StatChangePacket) -> None:
        world = self._world()
        if world is None:
            return
        if self._is_player(packet.object_id):
            target = world.player
        else:
            target = world.objects.get(packet.object_id)
            if target is None:
                return
        target.hp = packet.hp
        target.level = packet.level
        target.exp = packet.exp

    def on_state(self, packet: StatePacket) -> None:
        world = self._world()
        if world is None:
            return
        if self._is_player(packet.object_id):
            if packet.state == DEATH:
                world.player_live = False
            world.change_state(packet.state)
            return
        obj = world.objects.get(packet.object_id)
        direction = CLIENT_DIRECTION.get(packet.direction)
        if obj is None or direction is None:
            return
        try:
            obj.change_state(packet.state, direction)
        except ValueError as exc:
            log.warning("cannot animate object %d: %s", packet.object_id, exc)

    def on_chat(self, packet: ChatPacket) -> None:
        world = self._world()
        if world is None:
            return
        if packet.object_id == SYSTEM_MESSAGE_ID:
            world.show_system_message(packet.message)
            return
        if self._is_player(packet.object_id):
            world.player.message = packet.message
            return
        obj = world.objects.get(packet.object_id)
        if obj is not None:
            obj.message = packet.message

    def on_login_fail(self, packet: LoginFailPacket) -> str | None:
        """Record why the login failed and return the explanation."""
        self.login_error = LOGIN_FAIL_REASONS.get(packet.reason)
        if self.login_error is not None:
            log.warning("login failed: %s", self.login_error)
        return self.login_error