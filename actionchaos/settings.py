"""Map and game settings, tile codes and structure records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum

log = logging.getLogger("actionchaos.game")


class WorldGenVersion(Enum):
    """Which world generator builds the map."""

    V1 = "Version 1"
    V2 = "Version 2"


class Tile(IntEnum):
    """Cell codes used in generated fields and in the layered map.

    Stair codes use two digits: the tens digit is the stair direction plus
    one, the units digit the stair part (0 stair, 1 high, 2 low, 3 a high
    stair that becomes a low stair on the floor above).
    """

    EMPTY = 0
    FLOOR = 1
    WALL = 2
    OCCUPIED = 3
    LIT = 4
    BANNED_WALL = 5
    BANNED_OCCUPIED = 6
    BANNED_FLOOR = 7
    STAIR_0 = 10
    STAIR_0_HIGH = 11
    STAIR_0_LOW = 12
    STAIR_0_PENDING = 13
    STAIR_1 = 20
    STAIR_1_HIGH = 21
    STAIR_1_LOW = 22
    STAIR_1_PENDING = 23
    STAIR_2 = 30
    STAIR_2_HIGH = 31
    STAIR_2_LOW = 32
    STAIR_2_PENDING = 33
    STAIR_3 = 40
    STAIR_3_HIGH = 41
    STAIR_3_LOW = 42
    STAIR_3_PENDING = 43
    KIT_STATION = 50
    SHOP_STATION = 60


@dataclass(eq=False)
class Structure:
    """A rectangular building placed on one floor of a field."""

    top_left: tuple[int, int]
    bottom_right: tuple[int, int] = (0, 0)
    layer: int = 0
    neighbors: list[Structure] = field(default_factory=list, repr=False)


@dataclass
class MapSettings:
    """Everything that shapes map generation and wave play."""

    rows: int = 50
    columns: int = 50
    floors: int = 2
    max_attempts: int = 200
    symmetry_lines: int = 4
    light_chance: float = 1.0
    stair_chance: float = 0.3
    min_structure_width: int = 5
    min_structure_length: int = 5
    door_setup_version: int = 0
    world_gen_version: WorldGenVersion = WorldGenVersion.V2
    max_waves: int = 8
    wave_delay: float = 10.0
    spawn_rate: float = 3.0
    spawn_cost_multiplier: int = 4
    spawn_cost_offset: int = 1

    def section_size(self, divisions: int) -> tuple[int, int]:
        """Return the (x, y) size of the section that is generated and mirrored."""
        if divisions == 2:
            return self.rows // 2, self.columns
        if divisions == 4:
            return self.rows // 2, self.columns // 2
        return self.rows, self.columns


def new_field(xmax: int, ymax: int) -> list[list[int]]:
    """Return an ``xmax`` by ``ymax`` field where every cell is floor."""
    return [[int(Tile.FLOOR)] * ymax for _ in range(xmax)]