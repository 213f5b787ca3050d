import socket

import pytest

from rpgclient.framework import START_SCENE, Framework
from rpgclient.network import NonBlockingClient
from rpgclient.protocol import GAME_PORT, LoginRequest
from rpgclient.start_scene import (
    BACKSPACE,
    ID_FIELD,
    IP_FIELD,
    MAX_FIELD_CHARS,
    RETURN,
    StartScene,
    TextField,
)


class RecordingClient:
    def __init__(self, fail=False):
        self.fail = fail
        self.configured = None
        self.logins = []
        self.polls = 0

    def configure(self, server_ip, port=GAME_PORT):
        self.configured = (server_ip, port)

    def connect(self):
        if self.fail:
            raise ConnectionError("refused")

    def send_login(self, name):
        self.logins.append(name)

    def process_network(self):
        self.polls += 1


def make_scene(client):
    framework = Framework({START_SCENE: lambda fw: StartScene(fw, client)})
    return framework.scene


def test_text_field_limit():
    field = TextField()
    for _ in range(MAX_FIELD_CHARS):
        assert field.type_char("x")
    assert not field.type_char("y")
    assert field.text == "x" * MAX_FIELD_CHARS


def test_text_field_backspace_on_empty():
    field = TextField("ab")
    field.backspace()
    assert field.text == "a"
    field.backspace()
    field.backspace()
    assert field.text == ""


def test_typing_goes_to_selected_field():
    scene = make_scene(RecordingClient())
    for ch in "1.2":
        scene.char_input(ch)
    scene.click(300, 520)
    assert scene.selected == ID_FIELD
    for ch in "bob":
        scene.char_input(ch)
    scene.char_input(BACKSPACE)
    assert scene.ip_field.text == "1.2"
    assert scene.id_field.text == "bo"


def test_click_outside_keeps_selection():
    scene = make_scene(RecordingClient())
    scene.click(300, 520)
    scene.click(10, 10)
    assert scene.selected == ID_FIELD
    scene.click(251, 463)
    assert scene.selected == IP_FIELD


def test_return_submits_login():
    client = RecordingClient()
    scene = make_scene(client)
    for ch in "127.0.0.1":
        scene.char_input(ch)
    scene.click(260, 510)
    for ch in "alice":
        scene.char_input(ch)
    scene.char_input(RETURN)
    assert client.configured == ("127.0.0.1", GAME_PORT)
    assert client.logins == ["alice"]
    assert scene.accept_success is True
    assert scene.id_field.text == "alice"


def test_failed_connect_still_queues_login():
    client = RecordingClient(fail=True)
    scene = make_scene(client)
    scene.id_field.text = "carol"
    assert scene.submit() is False
    assert client.logins == ["carol"]


def test_network_polls_only_after_connect():
    client = RecordingClient()
    scene = make_scene(client)
    scene.network()
    assert client.polls == 0
    scene.submit()
    scene.network()
    assert client.polls == 1


def test_shutdown_stops_music():
    scene = make_scene(RecordingClient())
    assert scene.music is not None
    scene.shutdown()
    assert scene.music is None


def test_submit_with_real_client_queues_login_packet():
    server = socket.socket()
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    port = server.getsockname()[1]
    client = NonBlockingClient()
    try:
        scene = make_scene(client)
        scene.port = port
        scene.ip_field.text = "127.0.0.1"
        scene.id_field.text = "dave"
        assert scene.submit() is True
        assert client.pending() == [LoginRequest("dave").encode()]
    finally:
        client.disconnect()
        server.close()


@pytest.mark.parametrize("char", ["a", "Z", "9", " "])
def test_ordinary_chars_appended(char):
    scene = make_scene(RecordingClient())
    scene.char_input(char)
    assert scene.ip_field.text == char