"""Second-generation world builder: packed rooms joined by doors and wall stairs."""

from __future__ import annotations

import math
import random
from collections.abc import Sequence

from .settings import MapSettings, Structure, Tile, new_field
from .symmetry import LayeredMap, setup_next_floor

Field = list[list[int]]

_NEIGHBOURS = ((0, -1), (0, 1), (-1, 0), (1, 0), (1, 1), (1, -1), (-1, 1), (-1, -1))
_OPEN_OUTSIDE = (Tile.FLOOR, Tile.BANNED_FLOOR)


def _rand_range(rng: random.Random, low: int, high: int) -> int:
    """Inclusive integer roll that yields ``low`` when the range is empty."""
    if high <= low:
        return low
    return rng.randint(low, high)


def _get(field: Field, x: int, y: int) -> int:
    if 0 <= x < len(field) and 0 <= y < len(field[x]):
        return field[x][y]
    return int(Tile.EMPTY)


def choose_kit_station_floors(
    floors: int, divisions: int, rng: random.Random
) -> list[int]:
    """Pick the distinct floors that receive a kit station.

    One floor per ``divisions`` floors is chosen; at least one is always chosen.
    """
    if divisions < 1:
        raise ValueError("divisions must be at least 1")
    count = max(floors, 0) // divisions
    chosen = rng.sample(range(floors), count) if count else []
    if not chosen:
        chosen.append(_rand_range(rng, 0, floors - 1))
    return chosen


def _fits(field: Field, lx: int, ly: int, width: int, length: int) -> bool:
    last_x, last_y = lx + width - 1, ly + length - 1
    for x in range(lx, lx + width):
        for y in range(ly, ly + length):
            value = field[x][y]
            if value == Tile.FLOOR:
                continue
            on_edge = x in (lx, last_x) or y in (ly, last_y)
            if value == Tile.WALL and on_edge:
                continue
            return False
    return True


def _search(
    field: Field,
    start_x: int,
    xmax: int,
    ymax: int,
    width: int,
    length: int,
    min_length: int,
) -> tuple[tuple[int, int] | None, int]:
    """Find the first place a box fits, shrinking its length after each miss."""
    lx = start_x
    while lx + width < xmax:
        ly = 0
        while ly + length < ymax:
            if _fits(field, lx, ly, width, length):
                return (lx, ly), length
            ly += 1
            if length > min_length + 1:
                length -= 1
        lx += 1
    return None, length


def _build_box(
    settings: MapSettings,
    field: Field,
    lx: int,
    ly: int,
    width: int,
    length: int,
    rng: random.Random,
) -> None:
    for x in range(width):
        for y in range(length):
            cx, cy = x + lx, y + ly
            edge = (
                (field[cx][cy] == Tile.FLOOR and x == width - 1)
                or y in (0, length - 1)
                or x == 0
            )
            if edge:
                field[cx][cy] = int(Tile.WALL)
                continue
            field[cx][cy] = int(Tile.OCCUPIED)
            if all(_get(field, cx + dx, cy + dy) != Tile.LIT for dx, dy in _NEIGHBOURS):
                if rng.random() <= settings.light_chance:
                    field[cx][cy] = int(Tile.LIT)


def place_structures_v2(
    settings: MapSettings, field: Field, xmax: int, ymax: int, rng: random.Random
) -> list[Structure]:
    """Pack rectangular buildings into ``field``, sweeping along x, and return them.

    Each failed placement costs an attempt; every fifth success in a row costs
    one too. Placement stops once too little room is left along x.
    """
    boxes: list[Structure] = []
    combo = 0
    lx = ly = 0
    attempts = settings.max_attempts
    while attempts > 0:
        width = _rand_range(rng, settings.min_structure_width, xmax - lx)
        length = _rand_range(rng, settings.min_structure_length, ymax - ly)
        found, length = _search(
            field, lx, xmax, ymax, width, length, settings.min_structure_length
        )
        if found is None:
            attempts -= 1
            combo = 0
            continue
        lx, ly = found
        if xmax - lx < settings.min_structure_width:
            attempts = 0
        boxes.append(
            Structure(top_left=(lx, ly), bottom_right=(lx + width - 1, ly + length - 1))
        )
        _build_box(settings, field, lx, ly, width, length, rng)
        combo += 1
        if combo >= 5:
            attempts -= 1
            combo = 0
    return boxes


def _shared_wall_door(
    box: Structure, other: Structure, rng: random.Random
) -> tuple[int, int] | None:
    """Return where a door goes if ``other`` sits on the far x or y wall of ``box``."""
    (tlx, tly), (brx, bry) = box.top_left, box.bottom_right
    (otlx, otly), (obrx, obry) = other.top_left, other.bottom_right
    if brx == otlx and bry - 1 > otly and tly + 1 < obry:
        return brx, _rand_range(rng, max(tly, otly) + 1, min(bry, obry) - 1)
    if bry == otly and brx - 1 > otlx and tlx + 1 < obrx:
        return _rand_range(rng, max(tlx, otlx) + 1, min(brx, obrx) - 1), bry
    return None


def _open_walls(
    field: Field, box: Structure, along_x: bool, limit: int, rng: random.Random
) -> None:
    """Put doors, or stairs against the wall, where a wall of ``box`` faces open floor.

    With ``along_x`` the walls at the low and high y are handled, otherwise the
    walls at the low and high x; ``limit`` is the field size across those walls.
    """
    (tlx, tly), (brx, bry) = box.top_left, box.bottom_right
    if along_x:
        low, high, near, far = tlx, brx, tly, bry
        descending, ascending = (13, 11, 10), (30, 31, 33)
    else:
        low, high, near, far = tly, bry, tlx, brx
        descending, ascending = (23, 21, 20), (40, 41, 43)

    def cell(along: int, across: int) -> tuple[int, int]:
        return (along, across) if along_x else (across, along)

    def read(along: int, across: int) -> int:
        x, y = cell(along, across)
        return field[x][y]

    def write(along: int, across: int, value: int) -> None:
        x, y = cell(along, across)
        field[x][y] = int(value)

    runs: list[list[int]] = []
    open_run: dict[int, int | None] = {1: None, 2: None}
    sides = ((1, near - 1, near > 0), (2, far + 1, far < limit - 1))
    for along in range(low + 1, high):
        for channel, outside, inside_field in sides:
            if inside_field and read(along, outside) in _OPEN_OUTSIDE:
                index = open_run[channel]
                if index is None:
                    runs.append([along, along, channel])
                    open_run[channel] = len(runs) - 1
                else:
                    runs[index][1] = along
            else:
                open_run[channel] = None

    for start, end, channel in runs:
        wall = near if channel == 1 else far
        span = end - start
        if span <= 4:
            write(_rand_range(rng, start, end), wall, Tile.OCCUPIED)
            continue
        outside = near - 1 if channel == 1 else far + 1
        ledge = space = math.floor((span - 3) / 2 + 0.5)
        if rng.random() < 0.5:
            for step in range(ledge):
                write(start + step, outside, Tile.BANNED_OCCUPIED)
            for step, code in enumerate(descending):
                write(start + ledge + step, outside, code)
            for step in range(space):
                write(start + ledge + 3 + step, outside, Tile.FLOOR)
            if ledge > 1:
                write(_rand_range(rng, start, start + ledge - 1), wall, Tile.OCCUPIED)
            if space > 1:
                write(_rand_range(rng, end - space + 1, end), wall, Tile.OCCUPIED)
            else:
                write(end, wall, Tile.OCCUPIED)
        else:
            for step in range(space):
                write(start + step, outside, Tile.FLOOR)
            for step, code in enumerate(ascending):
                write(start + space + step, outside, code)
            for step in range(ledge):
                write(start + space + 3 + step, outside, Tile.BANNED_OCCUPIED)
            if space > 1:
                write(_rand_range(rng, start, start + space - 1), wall, Tile.OCCUPIED)
            else:
                write(start, wall, Tile.OCCUPIED)
            if ledge > 1:
                write(_rand_range(rng, end - ledge + 1, end), wall, Tile.OCCUPIED)


def connect_structures(
    field: Field,
    boxes: Sequence[Structure],
    xmax: int,
    ymax: int,
    rng: random.Random,
) -> None:
    """Join neighbouring buildings with doors and open up poorly connected ones.

    Neighbours are recorded on both structures. A building that found fewer
    neighbours than its size warrants gets doors, or stairs for long stretches,
    on every wall that faces open floor.
    """
    for box in boxes:
        found = 0
        for other in boxes:
            if other is box:
                continue
            door = _shared_wall_door(box, other, rng)
            if door is None:
                continue
            door_x, door_y = door
            field[door_x][door_y] = int(Tile.OCCUPIED)
            found += 1
            if other not in box.neighbors:
                box.neighbors.append(other)
            if box not in other.neighbors:
                other.neighbors.append(box)
        (tlx, tly), (brx, bry) = box.top_left, box.bottom_right
        if found < 5 + (brx - tlx) // 10 + (bry - tly) // 10:
            _open_walls(field, box, True, ymax, rng)
            _open_walls(field, box, False, xmax, rng)


def _blocks_station(field: Field, x: int, y: int) -> bool:
    return (
        (field[x + 1][y + 1] == Tile.WALL and field[x + 1][y] == Tile.OCCUPIED)
        or (field[x - 1][y + 1] == Tile.WALL and field[x][y + 1] == Tile.OCCUPIED)
        or (field[x + 1][y - 1] == Tile.WALL and field[x][y - 1] == Tile.OCCUPIED)
        or (field[x - 1][y - 1] == Tile.WALL and field[x - 1][y] == Tile.OCCUPIED)
        or (field[x + 1][y] == Tile.WALL and field[x - 1][y] == Tile.WALL)
        or (field[x][y - 1] == Tile.WALL and field[x][y + 1] == Tile.WALL)
    )


def place_kit_station(
    field: Field, boxes: Sequence[Structure], rng: random.Random
) -> tuple[int, int] | None:
    """Put a kit station inside one randomly chosen building.

    Cells that would block a doorway or sit in a one-wide corridor are
    avoided. Returns the cell used, or None when there is nowhere to put it.
    """
    if not boxes:
        return None
    box = rng.choice(list(boxes))
    (tlx, tly), (brx, bry) = box.top_left, box.bottom_right
    candidates = [
        (x, y)
        for x in range(tlx + 1, brx)
        for y in range(tly + 1, bry)
        if not _blocks_station(field, x, y)
    ]
    if not candidates:
        return None
    x, y = rng.choice(candidates)
    field[x][y] = int(Tile.KIT_STATION)
    return x, y


def generate_map_v2(
    settings: MapSettings, grid: LayeredMap, divisions: int, rng: random.Random
) -> list[Structure]:
    """Fill ``grid`` floor by floor with the second-generation world builder.

    Returns every building placed, each tagged with its floor.
    """
    xmax, ymax = settings.section_size(divisions)
    field = new_field(xmax, ymax)
    kit_floors = choose_kit_station_floors(settings.floors, divisions, rng)
    structures: list[Structure] = []
    for floor in range(settings.floors + 1):
        if floor != settings.floors:
            boxes = place_structures_v2(settings, field, xmax, ymax, rng)
            for box in boxes:
                box.layer = floor
            structures.extend(boxes)
            connect_structures(field, boxes, xmax, ymax, rng)
            if floor in kit_floors:
                place_kit_station(field, boxes, rng)
        field = setup_next_floor(grid, divisions, field, floor)
    return structures