"""Turning generated layers into a finished map and the nodes that make it up."""

from __future__ import annotations

import random
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from .mapgen_v1 import StairPlacementError, generate_map
from .mapgen_v2 import generate_map_v2
from .settings import MapSettings, Tile, WorldGenVersion, log
from .symmetry import LayeredMap

_MAX_REGENERATIONS = 100
_CELL_SIZE = 100
_FLOOR_HEIGHT = 300
_SPAWN_HEIGHT = 90
_SHOP_HEIGHT = 50
_WALKABLE = (Tile.FLOOR, Tile.OCCUPIED)


class NodeKind(Enum):
    """What a placed node or station is."""

    FLOOR = "floor"
    WALL = "wall"
    STAIR = "stair"
    HIGH_STAIR = "high stair"
    LOW_STAIR = "low stair"
    BARE = "bare"
    KIT_STATION = "kit station"
    SHOP_STATION = "shop station"


_STAIR_PARTS = {0: NodeKind.STAIR, 1: NodeKind.HIGH_STAIR, 2: NodeKind.LOW_STAIR}
_PLAIN_FLOORS = (Tile.FLOOR, Tile.OCCUPIED, Tile.BANNED_OCCUPIED, Tile.BANNED_FLOOR)


@dataclass(frozen=True)
class PlacedNode:
    """One thing put into the world at a position."""

    kind: NodeKind
    position: tuple[float, float, float]
    direction: int | None = None
    lit: bool = False


def build_map(
    settings: MapSettings, divisions: int, rng: random.Random
) -> LayeredMap:
    """Generate a complete map, mirrored by ``divisions``, with a shop station.

    Divisions other than 1, 2 or 4 are treated as 2. Generation is repeated
    when a floor gets no stairs or the shop station finds no place.
    """
    true_divisions = divisions if divisions in (1, 2, 4) else 2
    for _ in range(_MAX_REGENERATIONS):
        grid = LayeredMap(settings.rows, settings.columns, settings.floors)
        try:
            if settings.world_gen_version is WorldGenVersion.V1:
                generate_map(settings, grid, true_divisions, rng)
            else:
                generate_map_v2(settings, grid, true_divisions, rng)
        except StairPlacementError:
            log.error("Map Generation failed. Re-generating...")
            continue
        try:
            place_shop_station(grid, settings, rng)
        except ValueError:
            log.error("No room for a shop station. Re-generating...")
            continue
        return grid
    raise RuntimeError("map generation kept failing")


def _scan_coordinate(index: int, count: int, centred: bool) -> int:
    """Map a scan index to a cell, alternating between the two ends."""
    if index % 2 == 1:
        return count - 1 - index // 2
    if centred:
        return count // 2 - 1 + index // 2
    return index // 2


def _scan(count: int, centred: bool) -> list[tuple[int, int]]:
    return [(index, _scan_coordinate(index, count, centred)) for index in range(count)]


def _in_bounds(grid: LayeredMap, x: int, y: int) -> bool:
    return 0 <= x < grid.rows and 0 <= y < grid.columns


def _wall_count(grid: LayeredMap, x: int, y: int, floor: int) -> int:
    return sum(
        grid[x + dx, y + dy, floor] == Tile.WALL
        for dx in (-1, 0, 1)
        for dy in (-1, 0, 1)
        if _in_bounds(grid, x + dx, y + dy)
    )


def _cells(
    grid: LayeredMap, settings: MapSettings, centred: bool
) -> Iterator[tuple[int, int, int, int]]:
    """Yield (i, j, x, y) in scan order, skipping cells outside the grid."""
    columns = _scan(settings.columns, centred)
    for i, x in _scan(settings.rows, centred):
        for j, y in columns:
            if _in_bounds(grid, x, y):
                yield i, j, x, y


def _chance(settings: MapSettings, i: int, j: int) -> float:
    return 2 * (i + j) / (settings.rows + settings.columns - 2)


def place_shop_station(
    grid: LayeredMap, settings: MapSettings, rng: random.Random
) -> tuple[int, int, int]:
    """Mark a floor cell beside an odd number of walls as the shop station.

    Cells farther along the scan are likelier to be picked. Returns the cell
    used; raises ValueError when no cell on any lower floor qualifies.
    """
    def suitable(x: int, y: int, floor: int) -> bool:
        return grid[x, y, floor] in _WALKABLE and _wall_count(grid, x, y, floor) % 2 == 1

    cells = list(_cells(grid, settings, centred=False))
    if not any(
        i + j > 0 and suitable(x, y, floor)
        for floor in range(settings.floors)
        for i, j, x, y in cells
    ):
        raise ValueError("no cell can hold the shop station")
    while True:
        floor = rng.randint(0, settings.floors - 1)
        for i, j, x, y in cells:
            if grid[x, y, floor] in _WALKABLE and rng.random() < _chance(settings, i, j):
                if _wall_count(grid, x, y, floor) % 2 == 1:
                    grid[x, y, floor] = Tile.SHOP_STATION
                    return x, y, floor


def find_spawn_point(
    grid: LayeredMap,
    settings: MapSettings,
    rng: random.Random,
    centred: bool = False,
) -> tuple[float, float, float]:
    """Pick a walkable cell on a random floor and return its world position.

    ``centred`` starts the scan from the middle of the map, as for the
    player; otherwise it starts from the edges, as for enemies. Raises
    ValueError when no cell qualifies.
    """
    cells = list(_cells(grid, settings, centred))
    if not any(
        i + j > 0 and grid[x, y, floor] in _WALKABLE
        for floor in range(settings.floors + 1)
        for i, j, x, y in cells
    ):
        raise ValueError("no cell can hold a spawn point")
    while True:
        floor = rng.randint(0, settings.floors)
        for i, j, x, y in cells:
            if grid[x, y, floor] in _WALKABLE and rng.random() < _chance(settings, i, j):
                return (
                    float(x * _CELL_SIZE - settings.rows * 50),
                    float(y * _CELL_SIZE - settings.columns * 50),
                    float(floor * _FLOOR_HEIGHT + _SPAWN_HEIGHT),
                )


def describe_nodes(grid: LayeredMap, settings: MapSettings) -> list[PlacedNode]:
    """Return the nodes and stations that make up ``grid`` in the world.

    A plain floor directly above a wall is removed from ``grid`` as it is met.
    """
    x_offset = settings.rows * 50
    y_offset = settings.columns * 50
    nodes: list[PlacedNode] = []
    for i in range(settings.rows):
        for j in range(settings.columns):
            for k in range(settings.floors + 1):
                code = grid[i, j, k]
                position = (
                    float(i * _CELL_SIZE - x_offset),
                    float(j * _CELL_SIZE - y_offset),
                    float(k * _FLOOR_HEIGHT),
                )
                if code == Tile.EMPTY:
                    continue
                if code in _PLAIN_FLOORS:
                    nodes.append(PlacedNode(NodeKind.FLOOR, position))
                elif code == Tile.LIT:
                    nodes.append(PlacedNode(NodeKind.FLOOR, position, lit=True))
                elif code == Tile.WALL:
                    nodes.append(PlacedNode(NodeKind.WALL, position))
                    if k < settings.floors and grid[i, j, k + 1] == Tile.FLOOR:
                        grid[i, j, k + 1] = Tile.EMPTY
                elif code == Tile.BANNED_WALL:
                    nodes.append(PlacedNode(NodeKind.WALL, position))
                elif code == Tile.KIT_STATION:
                    nodes.append(PlacedNode(NodeKind.FLOOR, position))
                    nodes.append(PlacedNode(NodeKind.KIT_STATION, position))
                elif code == Tile.SHOP_STATION:
                    nodes.append(PlacedNode(NodeKind.FLOOR, position))
                    x, y, z = position
                    nodes.append(
                        PlacedNode(NodeKind.SHOP_STATION, (x, y, z + _SHOP_HEIGHT))
                    )
                elif 10 <= code < 50 and code % 10 in _STAIR_PARTS:
                    nodes.append(
                        PlacedNode(
                            _STAIR_PARTS[code % 10], position, direction=code // 10 - 1
                        )
                    )
                else:
                    nodes.append(PlacedNode(NodeKind.BARE, position))
    return nodes