import random

import pytest

from actionchaos.game import EnemyKind, GameMode
from actionchaos.settings import MapSettings, Tile


def _settings(**overrides):
    values = dict(rows=16, columns=16, floors=1, max_attempts=10)
    values.update(overrides)
    return MapSettings(**values)


def _game(kinds=None, **overrides):
    if kinds is None:
        kinds = [EnemyKind("grunt", 1, 3)]
    return GameMode(_settings(**overrides), kinds, random.Random(4))


def _spawn_all(game):
    spawned = []

    def spawn(kind, position, yaw):
        enemy = object()
        spawned.append((enemy, kind, position, yaw))
        return enemy

    while game.spawn_next_enemy(spawn) is not None:
        pass
    return spawned


def _expected_points(game):
    settings = game.settings
    return settings.spawn_cost_offset + settings.spawn_cost_multiplier * game.current_wave


def test_next_wave_starts_first_wave_and_broadcasts():
    game = _game()
    waves = []
    counts = []
    game.on_wave_changed.connect(lambda wave, most: waves.append((wave, most)))
    game.on_enemy_spawned.connect(lambda killed, total: counts.append((killed, total)))
    game.next_wave()
    assert game.current_wave == 1
    assert waves == [(1, game.settings.max_waves)]
    assert counts == [(0, len(game.current_wave_list()))]
    assert game.next_spawn_delay == game.settings.wave_delay
    assert game.grid is not None
    assert len(game.nodes) > 0


def test_spawn_list_with_single_cost_uses_all_points():
    game = _game()
    game.next_wave()
    assert game.current_wave_list() == [0] * _expected_points(game)
    assert game.spawn_points == 0


def test_spawn_list_never_overspends():
    kinds = [EnemyKind("grunt", 1, 1), EnemyKind("brute", 2, 4)]
    game = _game(kinds)
    game.current_wave = 3
    spawn_list = game.build_spawn_list()
    spent = sum(kinds[index].cost for index in spawn_list)
    assert spent == _expected_points(game) - game.spawn_points
    assert game.spawn_points >= 0


def test_spawn_list_empty_when_nothing_affordable():
    game = _game([EnemyKind("tank", 100, 50)])
    game.current_wave = 1
    assert game.build_spawn_list() == []
    assert game.spawn_points == _expected_points(game)


def test_zero_cost_enemy_is_rejected():
    with pytest.raises(ValueError):
        GameMode(_settings(), [EnemyKind("free", 0, 1)], random.Random(0))


def test_spawned_enemies_use_enemy_spawnpoint():
    game = _game()
    game.next_wave()
    spawned = _spawn_all(game)
    assert len(spawned) == len(game.current_wave_list())
    assert all(position == game.enemy_spawnpoint for _, _, position, _ in spawned)
    assert all(0 <= yaw <= 999 for _, _, _, yaw in spawned)
    assert len(game.enemies) == len(spawned)


def test_spawn_delay_between_enemies():
    game = _game()
    game.next_wave()
    delays = []
    while True:
        delay = game.spawn_next_enemy(lambda kind, position, yaw: object())
        if delay is None:
            break
        delays.append(delay)
    assert delays == [game.settings.spawn_rate] * (len(game.current_wave_list()) - 1)


def test_failed_spawn_waits_twice_as_long():
    game = _game()
    game.next_wave()
    delay = game.spawn_next_enemy(lambda kind, position, yaw: None)
    assert delay == game.settings.spawn_rate * 2
    assert game.enemies == {}


def test_killing_everyone_starts_next_wave_and_pays():
    game = _game()
    game.next_wave()
    spawned = _spawn_all(game)
    currency = []
    game.on_currency_changed.connect(currency.append)
    for enemy, _, _, _ in spawned:
        game.remove_enemy(enemy)
    assert game.player_currency == len(spawned) * 3
    assert currency[-1] == game.player_currency
    assert game.current_wave == 2
    assert game.won is False
    assert game.enemies_killed == 0


def test_killing_everyone_on_last_wave_wins():
    game = _game(max_waves=1)
    won = []
    game.on_game_won.connect(lambda: won.append(True))
    game.next_wave()
    for enemy, _, _, _ in _spawn_all(game):
        game.remove_enemy(enemy)
    assert game.won is True
    assert won == [True]
    assert game.current_wave == 1


def test_removing_unknown_enemy_raises():
    game = _game()
    with pytest.raises(KeyError):
        game.remove_enemy("ghost")


def test_remove_currency_clamps_at_zero():
    game = _game()
    game.player_currency = 10
    game.remove_currency(4)
    assert game.player_currency == 6
    game.remove_currency(50)
    assert game.player_currency == 0


def test_remove_player_loses():
    game = _game()
    lost = []
    game.on_game_lost.connect(lambda: lost.append(True))
    game.remove_player()
    assert game.player_alive is False
    assert lost == [True]


def test_player_spawnpoint_is_on_walkable_cell():
    game = _game()
    game.next_wave()
    settings = game.settings
    x, y, z = game.player_spawnpoint
    cell = (
        int((x + settings.rows * 50) // 100),
        int((y + settings.columns * 50) // 100),
        int((z - 90) // 300),
    )
    assert game.grid[cell] in (Tile.FLOOR, Tile.OCCUPIED)