"""Sprite sheets and the frame-by-frame animation states of objects."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .map_data import MAP_CULLING
from .protocol import (
    ATTACK,
    DEATH,
    HUMAN,
    HURT,
    IDLE,
    ORC_NPC,
    PLAYER,
    S_HUMAN,
    WALK,
)

SPRITE_SIZE = 64
TILE_PIXELS = 32

_SPRITES: dict[tuple[int, int], tuple[int, str]] = {
    (PLAYER, IDLE): (4, "orc/idle"),
    (PLAYER, WALK): (8, "orc/walk"),
    (PLAYER, ATTACK): (8, "orc/attack"),
    (PLAYER, DEATH): (8, "orc/death"),
    (PLAYER, HURT): (6, "orc/hurt"),
    (ORC_NPC, IDLE): (4, "orc_npc/idle"),
    (HUMAN, IDLE): (4, "human/idle"),
    (HUMAN, WALK): (6, "human/walk"),
    (HUMAN, DEATH): (7, "human/death"),
    (HUMAN, HURT): (5, "human/hurt"),
    (S_HUMAN, IDLE): (4, "s_human/idle"),
    (S_HUMAN, WALK): (6, "s_human/walk"),
    (S_HUMAN, ATTACK): (8, "s_human/attack"),
    (S_HUMAN, DEATH): (7, "s_human/death"),
    (S_HUMAN, HURT): (5, "s_human/hurt"),
}

SPRITE_NAMES = tuple(dict.fromkeys(name for _, name in _SPRITES.values()))


def sprite_for(object_type: int, state: int) -> tuple[int, str]:
    """Return (frame count, sprite name) for an object type in a state."""
    try:
        return _SPRITES[(object_type, state)]
    except KeyError:
        raise ValueError(
            f"no animation for object type {object_type} in state {state}"
        ) from None


def relative_position(pos: int, player_pos: int) -> int:
    """Tile coordinate on screen, with the player in the middle of the view."""
    return pos - (player_pos - MAP_CULLING // 2)


class SpriteCatalog:
    """Locates the sprite sheet images under a resource directory."""

    def __init__(self, root):
        self.root = Path(root)

    def path(self, name: str) -> Path:
        if name not in SPRITE_NAMES:
            raise ValueError(f"unknown sprite {name!r}")
        return self.root / "image" / f"{name}.png"

    def missing(self) -> list[str]:
        """Names of sprites whose image file is absent."""
        return [name for name in SPRITE_NAMES if not self.path(name).is_file()]


class _Owner(Protocol):
    def change_state(self, state: int, direction: int) -> None: ...


class AnimationState:
    """Current frame and facing of one animation; advances one frame per update."""

    def __init__(self, object_type: int, state: int, owner: _Owner | None):
        self.max_frame, self.sprite = sprite_for(object_type, state)
        self.object_type = object_type
        self.state = state
        self.owner = owner
        self.current_frame = 0
        self.direction = 0

    def update(self) -> None:
        self.current_frame += 1

    def source_rect(self) -> tuple[int, int, int, int]:
        """Area of the sprite sheet holding the current frame."""
        return (
            self.current_frame * SPRITE_SIZE,
            self.direction * SPRITE_SIZE,
            SPRITE_SIZE,
            SPRITE_SIZE,
        )

    def screen_rect(self, x: int, y: int, px: int, py: int) -> tuple[int, int, int, int]:
        """Screen area for an object at (x, y) seen by a player at (px, py)."""
        half = TILE_PIXELS // 2
        return (
            relative_position(x, px) * TILE_PIXELS - half,
            relative_position(y, py) * TILE_PIXELS - half,
            SPRITE_SIZE,
            SPRITE_SIZE,
        )


class LoopState(AnimationState):
    """Animation that repeats forever."""

    def update(self) -> None:
        super().update()
        if self.current_frame >= self.max_frame:
            self.current_frame = 0


class ReturnState(AnimationState):
    """Animation that plays once and then returns its owner to idle."""

    def update(self) -> None:
        super().update()
        if self.current_frame >= self.max_frame and self.owner is not None:
            self.owner.change_state(IDLE, self.direction)


class EndState(AnimationState):
    """Animation that plays once and stays on its last frame."""

    def update(self) -> None:
        if self.current_frame < self.max_frame - 1:
            self.current_frame += 1