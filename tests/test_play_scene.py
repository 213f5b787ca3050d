import pytest

from rpgclient.framework import PLAY_SCENE, START_SCENE, Framework, Scene
from rpgclient.map_data import ACCESSORY_LAYER, MapData
from rpgclient.network import NonBlockingClient
from rpgclient.objects import GameObject
from rpgclient.play_scene import (
    CHAT_LOG_HEIGHT,
    LINE_HEIGHT,
    ChatInput,
    Key,
    PlayScene,
    wrap_system_message,
)
from rpgclient.protocol import (
    ACTION_ATTACK_SKILL,
    ACTION_HEAL_SKILL,
    ATTACK,
    DEATH,
    HURT,
    IDLE,
    MOVE_LEFT,
    MOVE_RIGHT,
    MOVE_UP,
    WALK,
    AttackRequest,
    ChatPacket,
    ChatRequest,
    MoveRequest,
    SkillRequest,
    StateRequest,
)

REQUESTS = {cls.TYPE: cls for cls in (AttackRequest, ChatRequest, MoveRequest, SkillRequest, StateRequest)}


def sent(client):
    return [REQUESTS[data[1]].decode(data) for data in client.pending()]


def make_scene(x=5, y=5, map_data=None):
    client = NonBlockingClient()
    map_data = map_data or MapData(10)
    fw = Framework({START_SCENE: Scene, PLAY_SCENE: lambda f: PlayScene(f, client, map_data)})
    info = fw.login_info
    info.name, info.object_id, info.x, info.y, info.level, info.hp = "hero", 7, x, y, 1, 100
    fw.change_scene(PLAY_SCENE)
    return fw, fw.scene, client


def test_player_built_from_login_info():
    _, scene, _ = make_scene()
    assert (scene.player.x, scene.player.y, scene.player.name, scene.player.hp) == (5, 5, "hero", 100)


def test_walk_sends_state_and_move():
    _, scene, client = make_scene()
    scene.key_down(Key.LEFT)
    assert sent(client) == [StateRequest(WALK, MOVE_LEFT), MoveRequest(MOVE_LEFT)]
    assert scene.player.state.state == WALK
    assert scene.player.direction == 2


def test_walk_into_blocked_tile_sends_no_move():
    map_data = MapData(10)
    map_data.import_layer(["-1,5"], ACCESSORY_LAYER)
    _, scene, client = make_scene(0, 0, map_data)
    scene.key_down(Key.RIGHT)
    assert sent(client) == [StateRequest(WALK, MOVE_RIGHT)]


def test_walk_off_map_sends_no_move():
    _, scene, client = make_scene(0, 0)
    scene.key_down(Key.LEFT)
    assert sent(client) == [StateRequest(WALK, MOVE_LEFT)]


def test_dead_player_cannot_act():
    _, scene, client = make_scene()
    scene.player_live = False
    scene.key_down(Key.UP)
    scene.key_up(Key.A)
    assert client.pending() == []


def test_key_up_actions():
    _, scene, client = make_scene()
    scene.key_up(Key.A)
    scene.key_up(Key.D)
    scene.key_up(Key.S)
    assert sent(client) == [
        AttackRequest(scene.player.direction),
        SkillRequest(ACTION_ATTACK_SKILL),
        SkillRequest(ACTION_HEAL_SKILL),
    ]


def test_key_up_arrow_returns_to_idle():
    _, scene, client = make_scene()
    scene.key_down(Key.UP)
    scene.key_up(Key.UP)
    assert sent(client)[-1] == StateRequest(IDLE, MOVE_UP)
    assert scene.player.state.state == IDLE
    assert scene.player.direction == 1


def test_typing_and_sending_chat():
    _, scene, client = make_scene()
    scene.click(40, 520)
    assert scene.input_active
    for char in "hi":
        scene.char_input(char)
    scene.key_down(Key.RETURN)
    assert sent(client) == [ChatRequest("hi")]
    assert scene.chat.text == ""


def test_typing_ignored_when_inactive_or_invalid():
    _, scene, _ = make_scene()
    scene.char_input("x")
    assert scene.chat.text == ""
    scene.click(40, 520)
    scene.char_input("\x01")
    scene.char_input("é")
    scene.char_input("z")
    assert scene.chat.text == "z"


def test_commit_text_inserts_composed_text():
    _, scene, _ = make_scene()
    scene.click(40, 520)
    scene.commit_text("안녕")
    assert scene.chat.text == "안녕"
    assert scene.chat.cursor == 2


def test_keys_edit_chat_while_typing():
    _, scene, client = make_scene()
    scene.click(40, 520)
    scene.commit_text("abc")
    scene.key_down(Key.LEFT)
    scene.key_down(Key.BACKSPACE)
    assert scene.chat.text == "ac"
    assert client.pending() == []


def test_click_far_right_puts_cursor_at_end():
    _, scene, _ = make_scene()
    scene.click(40, 520)
    scene.commit_text("abc")
    scene.chat.cursor = 0
    scene.click(180, 520)
    assert scene.chat.cursor == 3


def test_click_outside_deactivates_input():
    _, scene, _ = make_scene()
    scene.click(40, 520)
    scene.click(5, 5)
    assert scene.input_active is False


def test_send_button_sends_chat():
    _, scene, client = make_scene()
    scene.click(40, 520)
    scene.commit_text("yo")
    scene.click(190, 520)
    assert sent(client) == [ChatRequest("yo")]
    assert scene.chat.text == ""


def test_chat_input_limit():
    chat = ChatInput(max_length=3)
    assert chat.insert("abc")
    assert chat.insert("d") is False
    assert chat.text == "abc"


def test_system_message_times_out():
    _, scene, _ = make_scene()
    scene.show_system_message("welcome")
    for _ in range(19):
        scene.update()
    assert scene.system_message_time > 0
    scene.update()
    assert scene.system_message_time == 0
    assert scene.system_message == "welcome"


def test_framework_routes_system_chat():
    fw, scene, _ = make_scene()
    fw.on_chat(ChatPacket(-1, "hello"))
    assert scene.system_message == "hello"
    assert scene.system_message_time == 1


def test_update_advances_objects():
    _, scene, _ = make_scene()
    scene.objects[3] = GameObject(0, 6, 6, "orc")
    scene.update()
    assert scene.objects[3].state.current_frame == 1
    assert scene.player.state.current_frame == 1


def test_change_state_hurt_and_death():
    _, scene, _ = make_scene()
    scene.change_state(HURT)
    assert scene.player.hp == 98
    assert scene.player.state.state == HURT
    scene.change_state(DEATH)
    assert scene.played_sounds == ["damage", "death"]
    assert scene.player.state.state == DEATH


def test_shutdown_silences_sounds():
    _, scene, _ = make_scene()
    scene.shutdown()
    scene.change_state(ATTACK)
    assert scene.played_sounds == []
    assert scene.music is None
    assert scene.player.state.state == ATTACK


def test_chat_log_follows_end():
    _, scene, _ = make_scene()
    for n in range(20):
        scene.add_chat_message(f"line {n}")
    total = len(scene.chat_log) * LINE_HEIGHT
    assert scene.chat_scroll_offset == total - CHAT_LOG_HEIGHT


def test_wrap_system_message():
    message = "a" * 45
    lines = wrap_system_message(message, 20)
    assert [len(line) for line in lines] == [20, 20, 5]
    assert "".join(lines) == message
    assert wrap_system_message("") == []


def test_wrap_system_message_rejects_bad_width():
    with pytest.raises(ValueError):
        wrap_system_message("abc", 0)