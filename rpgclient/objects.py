"""Objects shown on the map: the player, other players and monsters."""

from __future__ import annotations

from .animation import (
    TILE_PIXELS,
    AnimationState,
    EndState,
    LoopState,
    ReturnState,
    relative_position,
)
from .protocol import ATTACK, DEATH, HURT, IDLE, WALK, max_hp


class GameObject:
    """A visible object with position, stats and an animation state."""

    def __init__(self, object_type: int, x: int, y: int, name: str = "",
                 level: int = 1, hp: int | None = None):
        self.object_type = object_type
        self.x = x
        self.y = y
        self.name = name
        self.level = level
        self.hp = max_hp(level) if hp is None else hp
        self.exp = 0
        self.message = ""
        self.state: AnimationState = LoopState(object_type, IDLE, self)

    @property
    def direction(self) -> int:
        return self.state.direction

    def update(self) -> None:
        """Advance the animation by one frame."""
        self.state.update()

    def change_state(self, state: int, direction: int) -> None:
        """Switch animation; walking continues from the current frame."""
        previous_frame = self.state.current_frame
        if state == IDLE:
            new_state: AnimationState = LoopState(self.object_type, state, self)
        elif state == WALK:
            new_state = ReturnState(self.object_type, state, self)
            new_state.current_frame = previous_frame
        elif state in (ATTACK, HURT):
            new_state = ReturnState(self.object_type, state, self)
        elif state == DEATH:
            new_state = EndState(self.object_type, state, self)
        else:
            new_state = self.state
        new_state.direction = direction
        self.state = new_state

    def name_position(self, px: int | None = None, py: int | None = None) -> tuple[int, int]:
        """Screen position of the name label; defaults to the view's centre."""
        px = self.x if px is None else px
        py = self.y if py is None else py
        return (
            relative_position(self.x, px) * TILE_PIXELS - 10,
            relative_position(self.y, py) * TILE_PIXELS - 16,
        )