"""Wave-based game flow: maps, spawn lists, enemies, currency and results."""

from __future__ import annotations

import random
from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass
from typing import Any

from .settings import MapSettings, log
from .symmetry import LayeredMap
from .world import PlacedNode, build_map, describe_nodes, find_spawn_point

Position = tuple[float, float, float]
Spawner = Callable[["EnemyKind", Position, int], Any]


@dataclass(frozen=True)
class EnemyKind:
    """An enemy type with what it costs to spawn and what killing it earns."""

    name: str
    cost: int
    value: int


class _Event:
    """A list of handlers called together."""

    def __init__(self) -> None:
        self._handlers: list[Callable[..., Any]] = []

    def connect(self, handler: Callable[..., Any]) -> None:
        self._handlers.append(handler)

    def broadcast(self, *args: Any) -> None:
        for handler in list(self._handlers):
            handler(*args)


class GameMode:
    """Runs waves of enemies on freshly generated maps."""

    def __init__(
        self,
        settings: MapSettings | None = None,
        enemy_kinds: Iterable[EnemyKind] = (),
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings if settings is not None else MapSettings()
        self.enemy_kinds = list(enemy_kinds)
        if any(kind.cost <= 0 for kind in self.enemy_kinds):
            raise ValueError("every enemy kind must cost at least one point")
        self.rng = rng if rng is not None else random.Random()
        self.current_wave = 0
        self.player_currency = 0
        self.player_alive = True
        self.won = False
        self.enemies: dict[Hashable, int] = {}
        self.enemies_killed = 0
        self.spawn_points = 0
        self.grid: LayeredMap | None = None
        self.nodes: list[PlacedNode] = []
        self.player_spawnpoint: Position = (0.0, 0.0, 0.0)
        self.enemy_spawnpoint: Position = (0.0, 0.0, 0.0)
        self.next_spawn_delay: float | None = None
        self._spawn_list: list[int] = []
        self._spawn_index = 0
        self.on_player_spotted = _Event()
        self.on_wave_changed = _Event()
        self.on_currency_changed = _Event()
        self.on_enemy_spawned = _Event()
        self.on_game_won = _Event()
        self.on_game_lost = _Event()

    def next_wave(self) -> None:
        """Start the next wave on a new map with a new spawn list.

        Afterwards ``next_spawn_delay`` holds the wait before the first spawn.
        """
        self.player_alive = True
        self._spawn_index = 0
        self._spawn_list = []
        self.enemies_killed = 0
        self.current_wave += 1
        self.on_wave_changed.broadcast(self.current_wave, self.settings.max_waves)

        self.grid = build_map(self.settings, self.settings.symmetry_lines, self.rng)
        self.nodes = describe_nodes(self.grid, self.settings)
        self.player_spawnpoint = find_spawn_point(
            self.grid, self.settings, self.rng, centred=True
        )
        self.enemy_spawnpoint = find_spawn_point(
            self.grid, self.settings, self.rng, centred=False
        )

        self.build_spawn_list()
        self.on_enemy_spawned.broadcast(0, len(self._spawn_list))
        self.next_spawn_delay = self.settings.wave_delay

    def build_spawn_list(self) -> list[int]:
        """Spend this wave's points on enemies and return their kind indexes."""
        self.spawn_points = (
            self.settings.spawn_cost_offset
            + self.settings.spawn_cost_multiplier * self.current_wave
        )
        spawn_list: list[int] = []
        while self.spawn_points > 0:
            affordable = [
                index
                for index, kind in enumerate(self.enemy_kinds)
                if self.spawn_points >= kind.cost
            ]
            if not affordable:
                log.warning(
                    "Nothing was cheap enough to add to spawn list with %d points remaining",
                    self.spawn_points,
                )
                break
            # The pick is a position in the affordable list, used as a kind index.
            index = self.rng.randint(0, len(affordable) - 1)
            spawn_list.append(index)
            self.spawn_points -= self.enemy_kinds[index].cost
        self._spawn_list = spawn_list
        return list(spawn_list)

    def add_enemy(self, enemy: Hashable, value: int) -> None:
        """Track a spawned enemy and what killing it is worth."""
        self.enemies[enemy] = value

    def remove_enemy(self, enemy: Hashable) -> None:
        """Count a killed enemy; win the wave, or the game, when none are left."""
        self.player_currency += self.enemies[enemy]
        self.on_currency_changed.broadcast(self.player_currency)
        del self.enemies[enemy]
        self.enemies_killed += 1
        self.on_enemy_spawned.broadcast(self.enemies_killed, len(self._spawn_list))
        if len(self._spawn_list) - self.enemies_killed > 0:
            log.warning("%d enemies remaining", len(self.enemies))
            return
        log.warning("You win!! (this wave)")
        if self.current_wave == self.settings.max_waves:
            log.error("You win the game !!!!!!")
            self.won = True
            self.on_game_won.broadcast()
        else:
            self.next_wave()

    def remove_player(self) -> None:
        """Record that the player died and the game is lost."""
        log.warning("You lose!!")
        self.player_alive = False
        self.on_game_lost.broadcast()

    def remove_currency(self, amount: int) -> None:
        """Spend currency, never going below zero."""
        if amount <= self.player_currency:
            self.player_currency -= amount
        else:
            self.player_currency = 0
        self.on_currency_changed.broadcast(self.player_currency)

    def current_wave_list(self) -> list[int]:
        """Return the kind indexes queued for this wave."""
        return list(self._spawn_list)

    def spawn_next_enemy(self, spawn: Spawner) -> float | None:
        """Spawn the next queued enemy with ``spawn(kind, position, yaw)``.

        ``spawn`` returns the enemy, or None when spawning failed. Returns the
        delay before the next attempt, or None when nothing is left to spawn.
        """
        if self._spawn_index >= len(self._spawn_list):
            return None
        kind = self.enemy_kinds[self._spawn_list[self._spawn_index]]
        yaw = self.rng.randint(0, 999)
        enemy = spawn(kind, self.enemy_spawnpoint, yaw)
        if enemy is None:
            log.warning("failed to spawn enemy of cost %d", kind.cost)
            return self.settings.spawn_rate * 2
        self.add_enemy(enemy, kind.value)
        log.warning("spawned enemy of cost %d", kind.cost)
        self._spawn_index += 1
        if self._spawn_index < len(self._spawn_list):
            return self.settings.spawn_rate
        return None