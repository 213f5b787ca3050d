import pytest

from rpgclient.animation import EndState, ReturnState
from rpgclient.framework import (
    LOGIN_FAIL_REASONS,
    PLAY_SCENE,
    START_SCENE,
    Framework,
    Scene,
)
from rpgclient.objects import GameObject
from rpgclient.protocol import (
    DEATH,
    HUMAN,
    MOVE_UP,
    PLAYER,
    WALK,
    AvatarInfo,
    ChatPacket,
    EnterPacket,
    LeavePacket,
    LoginFailPacket,
    MovePacket,
    StatChangePacket,
    StatePacket,
)


class StartStub(Scene):
    def __init__(self, framework):
        super().__init__(framework)
        self.shut = False
        self.updates = 0
        self.polls = 0

    def update(self):
        self.updates += 1

    def network(self):
        self.polls += 1

    def shutdown(self):
        self.shut = True


class PlayStub(Scene):
    def __init__(self, framework):
        super().__init__(framework)
        info = framework.login_info
        self.player = GameObject(PLAYER, info.x, info.y, info.name)
        self.objects = {}
        self.player_live = True
        self.states = []
        self.system_messages = []

    def change_state(self, state):
        self.states.append(state)

    def show_system_message(self, message):
        self.system_messages.append(message)


@pytest.fixture
def framework():
    return Framework({START_SCENE: StartStub, PLAY_SCENE: PlayStub})


@pytest.fixture
def playing(framework):
    framework.on_avatar_info(AvatarInfo("hero", 42, 10, 12, 100, 90, 2, 0))
    return framework


def test_initial_scene_is_created(framework):
    assert isinstance(framework.scene, StartStub)
    assert framework.scene.framework is framework


def test_update_and_network_delegate(framework):
    framework.update()
    framework.network()
    framework.network()
    assert (framework.scene.updates, framework.scene.polls) == (1, 2)


def test_scene_change_shuts_down_previous(framework):
    old = framework.scene
    old.change_scene(PLAY_SCENE)
    assert old.shut is True
    assert isinstance(framework.scene, PlayStub)


def test_unknown_scene_is_rejected(framework):
    with pytest.raises(ValueError):
        framework.change_scene(99)
    assert isinstance(framework.scene, StartStub)


def test_avatar_info_logs_in(playing):
    info = playing.login_info
    assert (info.name, info.object_id, info.x, info.y, info.hp, info.level) == (
        "hero", 42, 10, 12, 90, 2,
    )
    assert isinstance(playing.scene, PlayStub)
    assert (playing.scene.player.x, playing.scene.player.y) == (10, 12)


def test_world_packets_ignored_before_login(framework):
    framework.on_move(MovePacket(None, 5, 5))
    framework.on_enter(EnterPacket(1, "orc", HUMAN, 1, 1, 50))
    assert isinstance(framework.scene, StartStub)
    assert (framework.login_info.x, framework.login_info.y) == (0, 0)


def test_enter_move_leave(playing):
    playing.on_enter(EnterPacket(7, "grunt", HUMAN, 3, 4, 55))
    obj = playing.scene.objects[7]
    assert (obj.name, obj.object_type, obj.x, obj.y, obj.hp) == ("grunt", HUMAN, 3, 4, 55)
    playing.on_move(MovePacket(7, 8, 9))
    assert (obj.x, obj.y) == (8, 9)
    playing.on_leave(LeavePacket(7))
    assert 7 not in playing.scene.objects


def test_own_move_updates_player(playing):
    playing.scene.player_live = False
    playing.on_move(MovePacket(42, 11, 13))
    scene = playing.scene
    assert scene.player_live is True
    assert (scene.player.x, scene.player.y) == (11, 13)
    assert (playing.login_info.x, playing.login_info.y) == (11, 13)


def test_stat_change(playing):
    playing.on_enter(EnterPacket(7, "grunt", HUMAN, 3, 4, 55))
    playing.on_stat_change(StatChangePacket(7, 30, 3, 150))
    playing.on_stat_change(StatChangePacket(42, 70, 4, 250))
    obj = playing.scene.objects[7]
    player = playing.scene.player
    assert (obj.hp, obj.level, obj.exp) == (30, 3, 150)
    assert (player.hp, player.level, player.exp) == (70, 4, 250)


def test_state_of_other_object(playing):
    playing.on_enter(EnterPacket(7, "grunt", HUMAN, 3, 4, 55))
    playing.on_state(StatePacket(7, WALK, MOVE_UP))
    obj = playing.scene.objects[7]
    assert isinstance(obj.state, ReturnState)
    assert obj.direction == 1


def test_death_of_player(playing):
    playing.on_state(StatePacket(42, DEATH, MOVE_UP))
    assert playing.scene.player_live is False
    assert playing.scene.states == [DEATH]


def test_death_of_other_object_ends_animation(playing):
    playing.on_enter(EnterPacket(8, "soldier", HUMAN, 3, 4, 55))
    playing.on_state(StatePacket(8, DEATH, MOVE_UP))
    obj = playing.scene.objects[8]
    assert isinstance(obj.state, EndState)
    assert obj.direction == 1
    assert playing.scene.player_live is True
    assert playing.scene.states == []


def test_chat_routing(playing):
    playing.on_enter(EnterPacket(7, "grunt", HUMAN, 3, 4, 55))
    playing.on_chat(ChatPacket(-1, "server notice"))
    playing.on_chat(ChatPacket(42, "hi"))
    playing.on_chat(ChatPacket(7, "grr"))
    assert playing.scene.system_messages == ["server notice"]
    assert playing.scene.player.message == "hi"
    assert playing.scene.objects[7].message == "grr"


def test_login_fail_reason(framework):
    assert framework.on_login_fail(LoginFailPacket(0, 1)) == LOGIN_FAIL_REASONS[1]
    assert framework.login_error == LOGIN_FAIL_REASONS[1]
    assert framework.on_login_fail(LoginFailPacket(0, 0)) is None