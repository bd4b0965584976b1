import random

import pytest

from actionchaos.mapgen_v2 import (
    choose_kit_station_floors,
    connect_structures,
    generate_map_v2,
    place_kit_station,
    place_structures_v2,
)
from actionchaos.settings import MapSettings, Structure, Tile, new_field
from actionchaos.symmetry import LayeredMap

NEIGHBOURS = ((0, -1), (0, 1), (-1, 0), (1, 0), (1, 1), (1, -1), (-1, 1), (-1, -1))


def draw_box(field, top_left, bottom_right):
    (tlx, tly), (brx, bry) = top_left, bottom_right
    for x in range(tlx, brx + 1):
        for y in range(tly, bry + 1):
            edge = x in (tlx, brx) or y in (tly, bry)
            field[x][y] = int(Tile.WALL if edge else Tile.OCCUPIED)
    return Structure(top_left=top_left, bottom_right=bottom_right)


@pytest.mark.parametrize("seed", range(5))
def test_kit_station_floors_are_distinct_and_in_range(seed):
    floors = choose_kit_station_floors(8, 2, random.Random(seed))
    assert len(floors) == 4
    assert len(set(floors)) == 4
    assert all(0 <= f < 8 for f in floors)


def test_kit_station_floors_fall_back_to_one():
    floors = choose_kit_station_floors(2, 4, random.Random(1))
    assert len(floors) == 1
    assert floors[0] in (0, 1)


def test_kit_station_floors_with_no_floors():
    assert choose_kit_station_floors(0, 1, random.Random(1)) == [0]


def test_kit_station_floors_rejects_bad_divisions():
    with pytest.raises(ValueError):
        choose_kit_station_floors(4, 0, random.Random(1))


@pytest.mark.parametrize("seed", range(6))
def test_structures_stay_in_bounds_and_interiors_are_occupied(seed):
    settings = MapSettings()
    field = new_field(30, 30)
    boxes = place_structures_v2(settings, field, 30, 30, random.Random(seed))
    assert boxes
    for box in boxes:
        (tlx, tly), (brx, bry) = box.top_left, box.bottom_right
        assert 0 <= tlx < brx <= 28
        assert 0 <= tly < bry <= 28
        for x in range(tlx + 1, brx):
            for y in range(tly + 1, bry):
                assert field[x][y] in (Tile.OCCUPIED, Tile.LIT)
    xs = [box.top_left[0] for box in boxes]
    assert xs == sorted(xs)


@pytest.mark.parametrize("seed", range(4))
def test_lights_never_touch(seed):
    settings = MapSettings(light_chance=1.0)
    field = new_field(30, 30)
    place_structures_v2(settings, field, 30, 30, random.Random(seed))
    lit = {(x, y) for x, row in enumerate(field) for y, v in enumerate(row) if v == Tile.LIT}
    assert lit
    for x, y in lit:
        assert all((x + dx, y + dy) not in lit for dx, dy in NEIGHBOURS)


def test_no_lights_when_chance_is_negative():
    settings = MapSettings(light_chance=-1.0)
    field = new_field(30, 30)
    boxes = place_structures_v2(settings, field, 30, 30, random.Random(3))
    assert boxes
    values = {v for row in field for v in row}
    assert values <= {Tile.FLOOR, Tile.WALL, Tile.OCCUPIED}
    assert Tile.OCCUPIED in values


def test_no_attempts_places_nothing():
    settings = MapSettings(max_attempts=0)
    field = new_field(20, 20)
    assert place_structures_v2(settings, field, 20, 20, random.Random(0)) == []
    assert field == new_field(20, 20)


def test_field_too_small_places_nothing():
    settings = MapSettings(max_attempts=10)
    field = new_field(5, 5)
    assert place_structures_v2(settings, field, 5, 5, random.Random(0)) == []
    assert field == new_field(5, 5)


@pytest.mark.parametrize("seed", range(5))
def test_neighbours_get_a_shared_door(seed):
    field = new_field(10, 10)
    a = draw_box(field, (0, 0), (4, 6))
    b = draw_box(field, (4, 0), (8, 6))
    connect_structures(field, [a, b], 10, 10, random.Random(seed))
    assert a.neighbors == [b]
    assert b.neighbors == [a]
    shared = [y for y in range(1, 6) if field[4][y] == Tile.OCCUPIED]
    assert len(shared) == 1
    a_bottom = [x for x in range(1, 4) if field[x][6] == Tile.OCCUPIED]
    assert len(a_bottom) == 1
    b_right = [y for y in range(1, 6) if field[8][y] == Tile.OCCUPIED]
    assert len(b_right) == 1


@pytest.mark.parametrize("seed", range(8))
def test_long_open_wall_gets_a_stair(seed):
    field = new_field(15, 12)
    box = draw_box(field, (2, 2), (12, 8))
    connect_structures(field, [box], 15, 12, random.Random(seed))
    for outside, wall in ((1, 2), (9, 8)):
        stair = tuple(field[x][outside] for x in range(6, 9))
        assert stair in ((13, 11, 10), (30, 31, 33))
        before = {field[x][outside] for x in range(3, 6)}
        after = {field[x][outside] for x in range(9, 12)}
        if stair == (13, 11, 10):
            assert before == {Tile.BANNED_OCCUPIED} and after == {Tile.FLOOR}
        else:
            assert before == {Tile.FLOOR} and after == {Tile.BANNED_OCCUPIED}
        assert sum(field[x][wall] == Tile.OCCUPIED for x in range(3, 6)) == 1
        assert sum(field[x][wall] == Tile.OCCUPIED for x in range(9, 12)) == 1
    assert sum(field[2][y] == Tile.OCCUPIED for y in range(3, 8)) == 1
    assert sum(field[12][y] == Tile.OCCUPIED for y in range(3, 8)) == 1


@pytest.mark.parametrize("seed", range(5))
def test_kit_station_goes_inside_the_box(seed):
    field = new_field(8, 8)
    box = draw_box(field, (0, 0), (6, 6))
    spot = place_kit_station(field, [box], random.Random(seed))
    assert spot is not None
    x, y = spot
    assert 1 <= x <= 5 and 1 <= y <= 5
    assert field[x][y] == Tile.KIT_STATION
    assert sum(v == Tile.KIT_STATION for row in field for v in row) == 1


def test_kit_station_without_boxes():
    field = new_field(8, 8)
    assert place_kit_station(field, [], random.Random(0)) is None
    assert field == new_field(8, 8)


def test_kit_station_skips_corridor_box():
    field = new_field(8, 8)
    box = draw_box(field, (0, 0), (2, 4))
    before = [row[:] for row in field]
    assert place_kit_station(field, [box], random.Random(0)) is None
    assert field == before


@pytest.mark.parametrize("seed", range(4))
def test_generated_map_is_mirrored(seed):
    settings = MapSettings(rows=20, columns=20, floors=2)
    grid = LayeredMap(20, 20, 2)
    structures = generate_map_v2(settings, grid, 4, random.Random(seed))
    assert all(s.layer in (0, 1) for s in structures)
    for f in range(3):
        for x in range(10):
            for y in range(10):
                value = grid[x, y, f]
                if value < 10 or value >= 50:
                    assert grid[19 - x, y, f] == value
                    assert grid[x, 19 - y, f] == value
                    assert grid[19 - x, 19 - y, f] == value