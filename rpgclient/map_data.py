"""Tile map with three layers and a collision grid."""

from __future__ import annotations

import logging
import re
from array import array
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .protocol import MAP_HEIGHT

MAP_SIZE = MAP_HEIGHT
MAP_CULLING = 20
WINDOW_SIZE = 640
LAYER_COUNT = 3

GROUND_LAYER = 0
OBJECT_LAYER = 1
ACCESSORY_LAYER = 2

# Import order matters: the accessory layer defines collision first.
LAYER_FILES = (
    (ACCESSORY_LAYER, "100map_object_acc.csv"),
    (OBJECT_LAYER, "100map_object.csv"),
    (GROUND_LAYER, "100map_ground.csv"),
)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tile:
    """Tile ids per layer (-1 for empty) and a collision flag."""

    ids: tuple[int, int, int] = (-1, -1, -1)
    collision: int = 0


def _split_cells(line: str) -> list[str]:
    if line.endswith("\n"):
        line = line[:-1]
    cells = line.split(",")
    if cells and cells[-1] == "":
        cells.pop()
    return cells


class MapData:
    """A square map whose CSV layers repeat every ``PATTERN`` tiles."""

    PATTERN = 100

    def __init__(self, size: int = MAP_SIZE):
        if size <= 0:
            raise ValueError(f"map size must be positive, got {size}")
        self.size = size
        cells = size * size
        self._ids = [array("i", [-1]) * cells for _ in range(LAYER_COUNT)]
        self._collision = bytearray(cells)

    def _parse_pattern(self, lines: Iterable[str]) -> list[list[int | None]]:
        grid: list[list[int | None]] = []
        for row_index, line in enumerate(lines):
            if row_index >= self.PATTERN:
                break
            row: list[int | None] = []
            for col_index, cell in enumerate(_split_cells(line)[: self.PATTERN]):
                match = _LEADING_INT.match(cell)
                if match is None:
                    log.warning("invalid map cell at (%d, %d): %r", row_index, col_index, cell)
                    row.append(None)
                else:
                    row.append(int(match.group(1)))
            grid.append(row)
        return grid

    def _write_row(self, layer, y, values, packed, blocked):
        start = y * self.size
        end = start + self.size
        ids = self._ids[layer]
        if packed is not None:
            ids[start:end] = packed
            if layer == ACCESSORY_LAYER:
                self._collision[start:end] = blocked
        else:
            for offset, value in enumerate(values):
                if value is None:
                    continue
                ids[start + offset] = value
                if layer == ACCESSORY_LAYER:
                    self._collision[start + offset] = int(value != -1)
        if layer == OBJECT_LAYER:
            current = int.from_bytes(self._collision[start:end], "little")
            merged = current | int.from_bytes(blocked, "little")
            self._collision[start:end] = merged.to_bytes(self.size, "little")

    def import_layer(self, lines: Iterable[str], layer: int) -> None:
        """Fill one layer from CSV lines, tiling the pattern over the map."""
        if not 0 <= layer < LAYER_COUNT:
            raise ValueError(f"layer must be between 0 and {LAYER_COUNT - 1}, got {layer}")
        grid = self._parse_pattern(lines)
        expanded = []
        for row in grid:
            values = [
                row[x % self.PATTERN] if x % self.PATTERN < len(row) else None
                for x in range(self.size)
            ]
            packed = array("i", values) if None not in values else None
            blocked = bytes(int(v is not None and v != -1) for v in values)
            expanded.append((values, packed, blocked))
        for y in range(self.size):
            pattern_row = y % self.PATTERN
            if pattern_row < len(expanded):
                self._write_row(layer, y, *expanded[pattern_row])

    def export_collision(self, path) -> None:
        """Write the collision grid as CSV, one map row per line."""
        with open(path, "w", encoding="ascii", newline="\n") as out:
            for y in range(self.size):
                row = self._collision[y * self.size : (y + 1) * self.size]
                out.write(
                    "".join(
                        f"{value}," if x < self.PATTERN - 1 else str(value)
                        for x, value in enumerate(row)
                    )
                )
                out.write("\n")

    def load(self, directory) -> None:
        """Import the accessory, object and ground layers from a directory."""
        base = Path(directory)
        for layer, filename in LAYER_FILES:
            path = base / filename
            try:
                with open(path, encoding="utf-8") as source:
                    self.import_layer(source, layer)
            except FileNotFoundError:
                log.error("cannot open map layer file %s", path)
        log.info("map import finished")

    def _index(self, x: int, y: int) -> int:
        if not (0 <= x < self.size and 0 <= y < self.size):
            raise IndexError(f"tile ({x}, {y}) is outside the map")
        return y * self.size + x

    def tile(self, x: int, y: int) -> Tile:
        """Return the tile at a map position."""
        index = self._index(x, y)
        return Tile(
            ids=tuple(layer[index] for layer in self._ids),
            collision=self._collision[index],
        )

    def is_blocked(self, x: int, y: int) -> bool:
        """True if the position is outside the map or cannot be walked on."""
        if not (0 <= x < self.size and 0 <= y < self.size):
            return True
        return self._collision[y * self.size + x] == 1