# actionchaos

Game logic for a wave-based arena shooter. It is plain Python with no dependencies outside the standard library. It covers four areas.

**Map generation.** The package builds layered arena maps out of rectangular structures, walls, doors, ceiling lights and stairs. There are two generators:

- `actionchaos.mapgen_v1.generate_map` places rooms with rolled doors, then adds free-standing stairs. It raises `StairPlacementError` when a floor gets no stairs.
- `actionchaos.mapgen_v2.generate_map_v2` packs rooms along x. It then joins neighbouring rooms with doors, adds stairs against long open walls and puts a kit station on selected floors.

`actionchaos.symmetry.setup_next_floor` writes each generated floor into a `LayeredMap`. It mirrors the floor across one or two axes as it does so.

**World assembly.** The functions in `actionchaos.world` turn the layers into a finished map:

- `build_map` runs the generator chosen by `MapSettings.world_gen_version` and places the shop station. It regenerates the map when either step fails, and raises `RuntimeError` after 100 failed attempts.
- `place_shop_station` places the shop station on its own.
- `find_spawn_point` returns a world position. Pass `centred=True` to scan from the middle of the map, as for the player; by default it scans from the edges, as for enemies.
- `describe_nodes` lists every floor, wall, stair and station as a `PlacedNode`, each with a `NodeKind` and a world position.

**Wave management.** `actionchaos.game.GameMode` handles the game as a sequence of waves:

- `next_wave` builds a new map, finds spawn points and spends the wave's points on a spawn list of `EnemyKind` indexes.
- `add_enemy`, `remove_enemy`, `remove_player` and `remove_currency` track enemies, player currency, and wins and losses.
- The events `on_wave_changed`, `on_currency_changed`, `on_enemy_spawned`, `on_game_won`, `on_game_lost` and `on_player_spotted` accept handlers through `connect`.

**Enemy AI tasks.** `actionchaos.ai` provides behaviour-tree tasks. `Attack`, `Reload`, `GetFlankCheck`, `ResetFlankChance`, `Run`, `Walk` and `HealMeDoc` each command a pawn that implements `AIAgent`. `FindLocation`, `FocusOnPlayer`, `NotifyEnemies` and `Strafing` are also provided. Each task's `execute(owner)` takes a `TaskOwner` and returns a `NodeResult`. The `TaskOwner` holds the pawn, a `Blackboard`, an optional navigation callable and an optional `GameMode`.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
import random

from actionchaos.settings import MapSettings
from actionchaos.world import build_map, describe_nodes

settings = MapSettings(rows=20, columns=20, floors=2)
rng = random.Random(1)
grid = build_map(settings, 4, rng)
for node in describe_nodes(grid, settings)[:5]:
    print(node)
```

The `divisions` argument sets the map's symmetry:

| Value | Symmetry |
|-------|----------|
| 1 | None |
| 2 | Mirrored across one axis |
| 4 | Mirrored across both axes |

`build_map` treats any other value as 2.

All randomness comes from the `random.Random` instance you pass in, so the same seed gives the same map.

Driving a wave:

```python
from actionchaos.game import EnemyKind, GameMode

game = GameMode(settings, [EnemyKind("grunt", cost=1, value=5)], random.Random(2))
game.next_wave()
delay = game.next_spawn_delay
while delay is not None:
    delay = game.spawn_next_enemy(lambda kind, position, yaw: object())
```

## What it does not do

This package contains no rendering, physics, input, user interface or timers, and it has no command to run:

- `describe_nodes` reports what should be placed and where. It does not draw anything.
- `GameMode` returns the delays between spawns instead of scheduling them, and it creates enemies through a callable you supply.
- Pathfinding is also left to the caller, through the navigation callable on `TaskOwner`.