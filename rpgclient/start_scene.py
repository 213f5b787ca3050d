"""The title scene: server address and player name entry, then login."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .framework import Framework, Scene
from .network import NonBlockingClient
from .protocol import GAME_PORT, ProtocolError

MAX_FIELD_CHARS = 20

BACKSPACE = "\b"
RETURN = "\r"

# Input boxes as (left, top, right, bottom); right and bottom are exclusive.
IP_INPUT_RECT = (251, 463, 251 + 209, 463 + 31)
ID_INPUT_RECT = (251, 506, 251 + 209, 506 + 31)

IP_FIELD = 0
ID_FIELD = 1

BACKGROUND_MUSIC = "BGM_title"

log = logging.getLogger(__name__)


def _in_rect(x: int, y: int, rect: tuple[int, int, int, int]) -> bool:
    left, top, right, bottom = rect
    return left <= x < right and top <= y < bottom


@dataclass
class TextField:
    """A short line of typed text."""

    text: str = ""
    max_length: int = MAX_FIELD_CHARS

    def type_char(self, char: str) -> bool:
        """Append one character; return False if the field is full."""
        if len(self.text) >= self.max_length:
            return False
        self.text += char
        return True

    def backspace(self) -> None:
        """Remove the last character, if any."""
        self.text = self.text[:-1]


class StartScene(Scene):
    """Collects the server address and the player name and logs in."""

    def __init__(self, framework: Framework, client: NonBlockingClient):
        super().__init__(framework)
        self.client = client
        self.ip_field = TextField()
        self.id_field = TextField()
        self.selected = IP_FIELD
        self.port = GAME_PORT
        self.accept_success = False
        self.music: str | None = BACKGROUND_MUSIC

    @property
    def active_field(self) -> TextField:
        return self.id_field if self.selected == ID_FIELD else self.ip_field

    def update(self) -> None:
        """Nothing animates on the title screen."""

    def network(self) -> None:
        if self.accept_success:
            self.client.process_network()

    def shutdown(self) -> None:
        """Stop the title music."""
        self.music = None

    def char_input(self, char: str) -> None:
        """Handle one typed character; Return logs in, backspace erases."""
        if char == RETURN:
            self.submit()
            return
        field = self.active_field
        if char == BACKSPACE:
            field.backspace()
        else:
            field.type_char(char)

    def click(self, x: int, y: int) -> None:
        """Select the input box under the pointer, if any."""
        if _in_rect(x, y, IP_INPUT_RECT):
            self.selected = IP_FIELD
        if _in_rect(x, y, ID_INPUT_RECT):
            self.selected = ID_FIELD

    def submit(self) -> bool:
        """Connect to the typed address and queue a login; return whether connected."""
        self.client.configure(self.ip_field.text, self.port)
        try:
            self.client.connect()
        except (ConnectionError, OSError) as exc:
            log.error("cannot connect to %r: %s", self.ip_field.text, exc)
            self.accept_success = False
        else:
            self.accept_success = True
        try:
            self.client.send_login(self.id_field.text)
        except ProtocolError as exc:
            log.warning("login not sent: %s", exc)
        return self.accept_success