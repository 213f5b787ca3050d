"""The in-game scene: player control, chat input and the world around the player."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum

from .framework import Framework, Scene
from .map_data import MapData
from .network import NonBlockingClient
from .objects import GameObject
from .protocol import (
    ACTION_ATTACK_SKILL,
    ACTION_HEAL_SKILL,
    ATTACK,
    DEATH,
    HURT,
    IDLE,
    MOVE_DOWN,
    MOVE_LEFT,
    MOVE_RIGHT,
    MOVE_UP,
    PLAYER,
    WALK,
    ProtocolError,
)

MAX_INPUT_CHARS = 255

CHAT_LOG_X, CHAT_LOG_Y, CHAT_LOG_WIDTH, CHAT_LOG_HEIGHT = 41, 395, 180, 130
LINE_HEIGHT = 16

CHAT_INPUT_X, CHAT_INPUT_Y, CHAT_INPUT_WIDTH, CHAT_INPUT_HEIGHT = 36, 517, 150, 20
SEND_BUTTON_X, SEND_BUTTON_Y, SEND_BUTTON_WIDTH, SEND_BUTTON_HEIGHT = 186, 517, 20, 20

# Approximate pixel width of one character in the chat font.
CHAR_WIDTH = 7

SYSTEM_MESSAGE_WIDTH = 20
SYSTEM_MESSAGE_FRAMES = 20

HURT_HP_LOSS = 2

BACKGROUND_MUSIC = "BGM_play"
ATTACK_SOUND = "attack"
HURT_SOUND = "damage"
DEATH_SOUND = "death"

log = logging.getLogger(__name__)


class Key(IntEnum):
    """Keys the scene reacts to, by virtual-key code."""

    BACKSPACE = 8
    RETURN = 13
    LEFT = 37
    UP = 38
    RIGHT = 39
    DOWN = 40
    DELETE = 46
    A = 65
    D = 68
    S = 83


# Arrow key -> (server direction, sprite row, map step).
_ARROWS = {
    Key.LEFT: (MOVE_LEFT, 2, (-1, 0)),
    Key.RIGHT: (MOVE_RIGHT, 3, (1, 0)),
    Key.UP: (MOVE_UP, 1, (0, -1)),
    Key.DOWN: (MOVE_DOWN, 0, (0, 1)),
}


def wrap_system_message(message: str, width: int = SYSTEM_MESSAGE_WIDTH) -> list[str]:
    """Split a system message into lines of at most ``width`` characters."""
    if width <= 0:
        raise ValueError(f"width must be positive, got {width}")
    return [message[start:start + width] for start in range(0, len(message), width)]


def _inside(x: int, y: int, left: int, top: int, width: int, height: int) -> bool:
    return left <= x < left + width and top <= y < top + height


@dataclass
class ChatInput:
    """Editable single-line chat text with a cursor."""

    text: str = ""
    cursor: int = 0
    max_length: int = MAX_INPUT_CHARS

    def insert(self, text: str) -> bool:
        """Insert at the cursor; refuse and return False if it would not fit."""
        if len(self.text) + len(text) > self.max_length:
            return False
        self.text = self.text[:self.cursor] + text + self.text[self.cursor:]
        self.cursor += len(text)
        return True

    def move_left(self) -> None:
        if self.cursor > 0:
            self.cursor -= 1

    def move_right(self) -> None:
        if self.cursor < len(self.text):
            self.cursor += 1

    def delete(self) -> None:
        """Remove the character after the cursor."""
        if self.cursor < len(self.text):
            self.text = self.text[:self.cursor] + self.text[self.cursor + 1:]

    def backspace(self) -> None:
        """Remove the character before the cursor."""
        if self.cursor > 0:
            self.text = self.text[:self.cursor - 1] + self.text[self.cursor:]
            self.cursor -= 1

    def take(self) -> str:
        """Return the text and clear the input."""
        text, self.text, self.cursor = self.text, "", 0
        return text


class PlayScene(Scene):
    """The world view: the player, nearby objects, chat and system messages."""

    def __init__(self, framework: Framework, client: NonBlockingClient, map_data: MapData):
        super().__init__(framework)
        self.client = client
        self.map_data = map_data
        info = framework.login_info
        self.player = GameObject(PLAYER, info.x, info.y, info.name, info.level, info.hp)
        self.objects: dict[int, GameObject] = {}
        self.player_live = True

        self.system_message = ""
        self.system_message_time = 0

        self.chat_log: list[str] = []
        self.chat_scroll_offset = 0
        self.chat = ChatInput()
        self.input_active = False
        self.input_scroll_offset = 0

        self.music: str | None = BACKGROUND_MUSIC
        self.played_sounds: list[str] = []
        self._sound_on = True

    def update(self) -> None:
        self.player.update()
        for obj in list(self.objects.values()):
            obj.update()
        if self.system_message_time > 0:
            self.system_message_time += 1
            if self.system_message_time > SYSTEM_MESSAGE_FRAMES:
                self.system_message_time = 0

    def network(self) -> None:
        self.client.process_network()

    def shutdown(self) -> None:
        """Stop the music and stop playing sound effects."""
        self.music = None
        self._sound_on = False

    def _play(self, sound: str) -> None:
        if self._sound_on:
            self.played_sounds.append(sound)

    def _send_chat(self) -> bool:
        if not self.chat.text:
            return False
        try:
            self.client.send_chat(self.chat.text)
        except ProtocolError as exc:
            log.warning("chat message not sent: %s", exc)
            return False
        self.chat.take()
        self.input_scroll_offset = 0
        return True

    def key_down(self, key: int) -> None:
        if self.input_active:
            if key == Key.LEFT:
                self.chat.move_left()
            elif key == Key.RIGHT:
                self.chat.move_right()
            elif key == Key.DELETE:
                self.chat.delete()
            elif key == Key.BACKSPACE:
                self.chat.backspace()
            elif key == Key.RETURN:
                self._send_chat()
            return
        if not self.player_live or key not in _ARROWS:
            return
        direction, row, (dx, dy) = _ARROWS[Key(key)]
        self.player.change_state(WALK, row)
        self.client.send_state(WALK, direction)
        if not self.map_data.is_blocked(self.player.x + dx, self.player.y + dy):
            self.client.send_move(direction)

    def key_up(self, key: int) -> None:
        if not self.player_live:
            return
        if key == Key.A:
            self.client.send_attack(self.player.direction)
        elif key == Key.D:
            self.client.send_skill(ACTION_ATTACK_SKILL)
        elif key == Key.S:
            self.client.send_skill(ACTION_HEAL_SKILL)
        elif key in _ARROWS:
            direction, row, _ = _ARROWS[Key(key)]
            self.client.send_state(IDLE, direction)
            self.player.change_state(IDLE, row)

    def char_input(self, char: str) -> None:
        """Type one ASCII character into the active chat input."""
        if not self.input_active or len(char) != 1:
            return
        code = ord(char)
        if code < 32 or code >= 128 or code == Key.RETURN:
            return
        if len(self.chat.text) < self.chat.max_length:
            self.chat.insert(char)

    def commit_text(self, text: str) -> None:
        """Insert text finished by an input method into the active chat input."""
        if not self.input_active:
            return
        if len(self.chat.text) + len(text) < self.chat.max_length:
            self.chat.insert(text)

    def click(self, x: int, y: int) -> None:
        if _inside(x, y, CHAT_INPUT_X, CHAT_INPUT_Y, CHAT_INPUT_WIDTH, CHAT_INPUT_HEIGHT):
            self.input_active = True
            click_x = x - CHAT_INPUT_X - 2 + self.input_scroll_offset
            text = self.chat.text
            cursor = next(
                (i for i in range(len(text)) if (i + 1) * CHAR_WIDTH > click_x), 0
            )
            if click_x > 0 and cursor == 0 and text:
                cursor = len(text)
            self.chat.cursor = cursor
        else:
            self.input_active = False

        if _inside(x, y, SEND_BUTTON_X, SEND_BUTTON_Y, SEND_BUTTON_WIDTH, SEND_BUTTON_HEIGHT):
            if self._send_chat():
                total = len(self.chat_log) * LINE_HEIGHT
                self.chat_scroll_offset = max(total - CHAT_LOG_HEIGHT, 0)

    def add_chat_message(self, message: str) -> None:
        """Append a line to the chat log, following the end if already there."""
        self.chat_log.append(message)
        total = len(self.chat_log) * LINE_HEIGHT
        at_end = self.chat_scroll_offset >= total - CHAT_LOG_HEIGHT - LINE_HEIGHT
        if at_end or total <= CHAT_LOG_HEIGHT:
            self.chat_scroll_offset = max(total - CHAT_LOG_HEIGHT, 0)

    def show_system_message(self, message: str) -> None:
        self.system_message = message
        self.system_message_time = 1

    def change_state(self, state: int) -> None:
        """Apply a state the server reported for the player."""
        direction = self.player.direction
        if state in (IDLE, WALK):
            self.player.change_state(state, direction)
        elif state == ATTACK:
            self._play(ATTACK_SOUND)
            self.player.change_state(ATTACK, direction)
        elif state == DEATH:
            self._play(DEATH_SOUND)
            self.player.change_state(DEATH, direction)
        elif state == HURT:
            self._play(HURT_SOUND)
            self.player.hp -= HURT_HP_LOSS
            self.player.change_state(HURT, direction)