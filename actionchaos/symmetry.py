"""The layered map and the mirroring of generated fields into it."""

from __future__ import annotations

from collections.abc import Sequence

from .settings import Tile

# Stair directions swap when reflected across one axis.
_X_FLIP = {10: 30, 11: 31, 12: 32, 30: 10, 31: 11, 32: 12}
_Y_FLIP = {20: 40, 21: 41, 22: 42, 40: 20, 41: 21, 42: 22}
_PENDING_STAIRS = frozenset({13, 23, 33, 43})

_DOWNGRADE = {
    Tile.FLOOR: Tile.EMPTY,
    Tile.WALL: Tile.FLOOR,
    Tile.OCCUPIED: Tile.FLOOR,
    Tile.LIT: Tile.FLOOR,
    Tile.BANNED_WALL: Tile.BANNED_FLOOR,
    Tile.BANNED_OCCUPIED: Tile.BANNED_FLOOR,
    Tile.BANNED_FLOOR: Tile.EMPTY,
    Tile.STAIR_0_PENDING: Tile.STAIR_0_LOW,
    Tile.STAIR_1_PENDING: Tile.STAIR_1_LOW,
    Tile.STAIR_2_PENDING: Tile.STAIR_2_LOW,
    Tile.STAIR_3_PENDING: Tile.STAIR_3_LOW,
    Tile.KIT_STATION: Tile.FLOOR,
}


class LayeredMap:
    """A rows x columns grid with ``floors + 1`` layers, indexed ``[x, y, z]``."""

    def __init__(self, rows: int, columns: int, floors: int) -> None:
        self.rows = rows
        self.columns = columns
        self.floors = floors
        self._cells = [
            [[0] * (floors + 1) for _ in range(columns)] for _ in range(rows)
        ]

    def _check(self, key: tuple[int, int, int]) -> tuple[int, int, int]:
        x, y, z = key
        if not (0 <= x < self.rows and 0 <= y < self.columns and 0 <= z <= self.floors):
            raise IndexError(f"cell {key!r} is outside the map")
        return x, y, z

    def __getitem__(self, key: tuple[int, int, int]) -> int:
        x, y, z = self._check(key)
        return self._cells[x][y][z]

    def __setitem__(self, key: tuple[int, int, int], value: int) -> None:
        x, y, z = self._check(key)
        self._cells[x][y][z] = int(value)

    def layer(self, floor: int) -> list[list[int]]:
        """Return a copy of one floor as a list of x rows."""
        if not 0 <= floor <= self.floors:
            raise IndexError(f"floor {floor} is outside the map")
        return [[column[floor] for column in row] for row in self._cells]


def downgrade_tile(value: int) -> int:
    """Return what a cell of this floor becomes as the base of the floor above."""
    return int(_DOWNGRADE.get(value, Tile.EMPTY))


def setup_next_floor(
    grid: LayeredMap,
    divisions: int,
    field: Sequence[Sequence[int]],
    floor: int,
) -> list[list[int]]:
    """Write ``field`` into ``grid`` on ``floor``, mirrored by ``divisions``.

    Returns the field the next floor starts from; ``field`` is left unchanged.
    """
    rows, columns = grid.rows, grid.columns
    for x, line in enumerate(field):
        for y, value in enumerate(line):
            grid[x, y, floor] = value
            if divisions not in (2, 4):
                continue
            if value in _PENDING_STAIRS:
                grid[x, y, floor] = 0
                grid[rows - 1 - x, y, floor] = 0
                if divisions == 4:
                    grid[x, columns - 1 - y, floor] = 0
                    grid[rows - 1 - x, columns - 1 - y, floor] = 0
                continue
            x_mirror = _X_FLIP.get(value, value)
            grid[rows - 1 - x, y, floor] = x_mirror
            if divisions == 4:
                y_mirror = _Y_FLIP.get(value, value)
                grid[x, columns - 1 - y, floor] = y_mirror
                grid[rows - 1 - x, columns - 1 - y, floor] = _Y_FLIP.get(
                    x_mirror, x_mirror
                )
    return [[downgrade_tile(value) for value in line] for line in field]