"""Headless game client: wires the scenes together and runs the game loops."""

from __future__ import annotations

import argparse
import logging
import threading
import time

from .framework import PLAY_SCENE, START_SCENE, Framework
from .map_data import MapData
from .network import NonBlockingClient
from .play_scene import PlayScene
from .protocol import GAME_PORT
from .start_scene import StartScene

UPDATE_PERIOD = 1.0 / 10.0
NETWORK_PERIOD = 1.0 / 30.0

log = logging.getLogger(__name__)


class GameClient:
    """The map, the network client and the scene framework, with their loops."""

    def __init__(self, map_directory=None):
        self.map_data = MapData()
        if map_directory is not None:
            self.map_data.load(map_directory)
        self.client = NonBlockingClient()
        self.framework = Framework(
            {
                START_SCENE: lambda fw: StartScene(fw, self.client),
                PLAY_SCENE: lambda fw: PlayScene(fw, self.client, self.map_data),
            },
            START_SCENE,
        )
        self.client.listener = self.framework
        self.frames = 0
        self.network_polls = 0
        self._stop = threading.Event()

    def _update(self) -> None:
        self.framework.update()
        self.frames += 1

    def _network(self) -> None:
        self.framework.network()
        self.network_polls += 1

    def _loop(self, period: float, step) -> None:
        while not self._stop.wait(period):
            try:
                step()
            except Exception:
                log.exception("game loop failed")
                self._stop.set()
                break

    def run(self, duration: float | None = None) -> None:
        """Run the update and network loops until stopped or ``duration`` passes."""
        self._stop.clear()
        threads = [
            threading.Thread(target=self._loop, args=(UPDATE_PERIOD, self._update), daemon=True),
            threading.Thread(target=self._loop, args=(NETWORK_PERIOD, self._network), daemon=True),
        ]
        for thread in threads:
            thread.start()
        try:
            self._stop.wait(duration)
        finally:
            self._stop.set()
            for thread in threads:
                thread.join()

    def stop(self) -> None:
        """Ask a running loop to finish."""
        self._stop.set()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="rpgclient", description="Role-playing game client.")
    parser.add_argument("--map-dir", default="csv", help="directory holding the map CSV layers")
    parser.add_argument("--server", help="server address to log in to")
    parser.add_argument("--port", type=int, default=GAME_PORT, help="server port")
    parser.add_argument("--name", default="", help="player name")
    parser.add_argument("--duration", type=float, help="seconds to run before exiting")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    game = GameClient(args.map_dir)
    scene = game.framework.scene
    if args.server is not None and isinstance(scene, StartScene):
        scene.ip_field.text = args.server
        scene.id_field.text = args.name
        scene.port = args.port
        scene.submit()
    started = time.monotonic()
    try:
        game.run(args.duration)
    except KeyboardInterrupt:
        game.stop()
    finally:
        game.client.disconnect()
    log.info("ran for %.1f seconds", time.monotonic() - started)
    return 0