"""First-generation world builder: rooms with rolled doors and free-standing stairs."""

from __future__ import annotations

import random
from collections.abc import Iterator

from .settings import MapSettings, Structure, Tile, log, new_field
from .symmetry import LayeredMap, setup_next_floor

Field = list[list[int]]

_DIAGONALS = ((-1, -1), (-1, 1), (1, -1), (1, 1))
_NEIGHBOURS = ((0, -1), (0, 1), (-1, 0), (1, 0), (1, 1), (1, -1), (-1, 1), (-1, -1))


class StairPlacementError(RuntimeError):
    """No stairs could be placed on a floor, so the map cannot be used."""


def _rand_range(rng: random.Random, low: int, high: int) -> int:
    """Inclusive integer roll that yields ``low`` when the range is empty."""
    if high <= low:
        return low
    return rng.randint(low, high)


def _get(field: Field, x: int, y: int) -> int:
    if 0 <= x < len(field) and 0 <= y < len(field[x]):
        return field[x][y]
    return int(Tile.EMPTY)


def _raise_to_occupied(field: Field, x: int, y: int) -> None:
    if 0 <= x < len(field) and 0 <= y < len(field[x]):
        field[x][y] = max(field[x][y], int(Tile.OCCUPIED))


def _walkable(value: int) -> bool:
    return value in (Tile.FLOOR, Tile.OCCUPIED)


def _fits(field: Field, lx: int, ly: int, width: int, length: int) -> bool:
    last_x, last_y = lx + width - 1, ly + length - 1
    for x in range(lx, lx + width):
        for y in range(ly, ly + length):
            value = field[x][y]
            on_edge = x in (lx, last_x) or y in (ly, last_y)
            if not (value == Tile.FLOOR or (on_edge and value in (Tile.WALL, Tile.OCCUPIED))):
                return False
    return True


def _find_fit(
    field: Field, xmax: int, ymax: int, width: int, length: int
) -> tuple[int, int] | None:
    for lx in range(xmax - width + 1):
        for ly in range(ymax - length + 1):
            if _fits(field, lx, ly, width, length):
                return lx, ly
    return None


def _structure_cells(width: int, length: int) -> Iterator[tuple[int, int]]:
    for x in range(width):
        for y in range(length):
            yield x, y


def _door_v0(
    field: Field, cx: int, cy: int, x: int, y: int,
    width: int, length: int, xmax: int, ymax: int,
) -> bool:
    """Open a door at (cx, cy) on the wall it belongs to; return whether it opened."""
    if x == width - 1:
        if cx == xmax - 1:
            return False
        outside = [(cx + 1, cy + 1), (cx + 1, cy), (cx + 1, cy - 1)]
    elif x == 0:
        if cx == 0:
            return False
        outside = [(cx - 1, cy + 1), (cx - 1, cy), (cx - 1, cy - 1)]
    elif y == length - 1:
        if cy == ymax - 1:
            return False
        outside = [(cx - 1, cy + 1), (cx, cy + 1), (cx + 1, cy + 1)]
    elif y == 0:
        if cy == 0:
            return False
        outside = [(cx - 1, cy - 1), (cx, cy - 1), (cx + 1, cy - 1)]
    else:
        return False
    for ox, oy in outside:
        _raise_to_occupied(field, ox, oy)
    field[cx][cy] = int(Tile.OCCUPIED)
    return True


def _build_structure(
    settings: MapSettings,
    field: Field,
    location: tuple[int, int],
    width: int,
    length: int,
    xmax: int,
    ymax: int,
    rng: random.Random,
) -> None:
    lx, ly = location
    door = False
    doors = {"+x": False, "-x": False, "+y": False, "-y": False}
    last = width + length - 3
    for x, y in _structure_cells(width, length):
        cx, cy = x + lx, y + ly
        edge = (field[cx][cy] == Tile.FLOOR and x == width - 1) or y in (0, length - 1) or x == 0
        if not edge:
            field[cx][cy] = int(Tile.OCCUPIED)
            if all(_get(field, cx + dx, cy + dy) != Tile.LIT for dx, dy in _NEIGHBOURS):
                if rng.random() <= settings.light_chance:
                    field[cx][cy] = int(Tile.LIT)
            continue

        field[cx][cy] = int(Tile.WALL)
        if x in (0, width - 1) and y in (0, length - 1):
            continue

        roll_door = (
            settings.door_setup_version == 0 and door and _rand_range(rng, 1, 10) == 1
        ) or (not door and _rand_range(rng, x + y, last) == last)
        if roll_door and _door_v0(field, cx, cy, x, y, width, length, xmax, ymax):
            door = True

        if settings.door_setup_version != 1:
            continue

        def rolled(key: str, low: int, target: int) -> bool:
            if doors[key]:
                return _rand_range(rng, 1, 10) == 1
            return _rand_range(rng, low, target) == target

        across_x = lambda: _walkable(_get(field, cx - 1, cy)) and _walkable(_get(field, cx + 1, cy))  # noqa: E731
        across_y = lambda: _walkable(_get(field, cx, cy - 1)) and _walkable(_get(field, cx, cy + 1))  # noqa: E731

        if x == width - 1 and cx != xmax - 1 and rolled("+x", y, length - 3) and across_x():
            field[cx][cy] = int(Tile.OCCUPIED)
            doors["+x"] = True
        elif x == 0 and cx != 0 and rolled("-x", y, length - 3) and across_x():
            field[cx][cy] = int(Tile.OCCUPIED)
            doors["-x"] = True
        elif y == length - 1 and cy != ymax - 1 and rolled("+y", x, width - 3) and across_y():
            field[cx][cy] = int(Tile.OCCUPIED)
            doors["+y"] = True
        elif y == 0 and cy != 0 and rolled("-y", x, width - 3) and across_y():
            field[cx][cy] = int(Tile.OCCUPIED)
            doors["-y"] = True


def place_structures(
    settings: MapSettings, field: Field, xmax: int, ymax: int, rng: random.Random
) -> list[Structure]:
    """Place rectangular buildings into ``field`` and return what was placed.

    Each failed placement costs an attempt; every fifth success in a row
    costs one too.
    """
    placed: list[Structure] = []
    combo = 0
    attempts = settings.max_attempts
    while attempts > 0:
        width = _rand_range(rng, settings.min_structure_width, xmax)
        length = _rand_range(rng, settings.min_structure_length, ymax)
        location = _find_fit(field, xmax, ymax, width, length)
        if location is None:
            attempts -= 1
            combo = 0
            continue
        _build_structure(settings, field, location, width, length, xmax, ymax, rng)
        lx, ly = location
        placed.append(Structure(top_left=(lx, ly), bottom_right=(lx + width - 1, ly + length - 1)))
        combo += 1
        if combo >= 5:
            attempts -= 1
            combo = 0
    return placed


# (step x, step y, base code, guard) in the order the directions are tried.
_DIRECTIONS = (
    (1, 0, 30, lambda i, j, xmax, ymax: i < xmax - 3),
    (-1, 0, 10, lambda i, j, xmax, ymax: i > 2),
    (0, 1, 40, lambda i, j, xmax, ymax: j < ymax - 3),
    (0, -1, 20, lambda i, j, xmax, ymax: j > 2),
)


def _try_stair(field: Field, i: int, j: int, xmax: int, ymax: int, forced: bool) -> bool:
    open_corners = sum(field[i + dx][j + dy] == Tile.FLOOR for dx, dy in _DIAGONALS)
    if open_corners <= 1:
        return False
    for dx, dy, base, guard in _DIRECTIONS:
        if not (
            guard(i, j, xmax, ymax)
            and field[i - dx][j - dy] == Tile.FLOOR
            and field[i + dx][j + dy] == Tile.FLOOR
            and field[i + 2 * dx][j + 2 * dy] == Tile.FLOOR
        ):
            continue
        end = field[i + 3 * dx][j + 3 * dy]
        if end not in (Tile.WALL, Tile.OCCUPIED):
            return False
        if forced:
            field[i - dx][j - dy] = int(Tile.BANNED_FLOOR)
        field[i][j] = base
        field[i + dx][j + dy] = base + 1
        field[i + 2 * dx][j + 2 * dy] = base + 3
        field[i + 3 * dx][j + 3 * dy] = int(
            Tile.BANNED_WALL if end == Tile.WALL else Tile.BANNED_OCCUPIED
        )
        return True
    return False


def place_stairs(
    settings: MapSettings, field: Field, xmax: int, ymax: int, rng: random.Random
) -> list[tuple[int, int]]:
    """Place stairs on open floor and return the cells where each stair starts.

    Stairs are first rolled at random, at most one per x row; if none lands,
    the first spot that can hold one is used. Raises StairPlacementError when
    the floor has no room for any stair.
    """
    placed: list[tuple[int, int]] = []
    for i in range(1, xmax - 1):
        for j in range(1, ymax - 1):
            if field[i][j] == Tile.FLOOR and rng.random() <= settings.stair_chance:
                if _try_stair(field, i, j, xmax, ymax, forced=False):
                    placed.append((i, j))
                    break
    if placed:
        return placed
    for i in range(1, xmax - 1):
        for j in range(1, ymax - 1):
            if field[i][j] == Tile.FLOOR and _try_stair(field, i, j, xmax, ymax, forced=True):
                return [(i, j)]
    log.error("No stairs placed for at least one floor")
    raise StairPlacementError("no stairs placed for at least one floor")


def generate_map(
    settings: MapSettings, grid: LayeredMap, divisions: int, rng: random.Random
) -> None:
    """Fill ``grid`` floor by floor with the first-generation world builder.

    Raises StairPlacementError when a floor gets no stairs; ``grid`` may then
    hold a partial map.
    """
    xmax, ymax = settings.section_size(divisions)
    field = new_field(xmax, ymax)
    for floor in range(settings.floors + 1):
        if floor != settings.floors:
            place_structures(settings, field, xmax, ymax, rng)
            place_stairs(settings, field, xmax, ymax, rng)
        field = setup_next_floor(grid, divisions, field, floor)