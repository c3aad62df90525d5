import numpy as np
import pytest

from cellular_maps.cellmap import EvolveStrategy, WALL
from cellular_maps.generator import MapConfig, generate_map


def test_default_config():
    result = generate_map(MapConfig(seed=1))

    assert result.map.width == 30
    assert result.map.height == 35
    assert result.map.generation == 3
    assert result.history == []


def test_same_seed_same_map():
    config = MapConfig(width=25, height=20, seed=1234)

    assert generate_map(config).map == generate_map(config).map


def test_explicit_rng_overrides_seed():
    config = MapConfig(width=25, height=20, seed=1)
    a = generate_map(config, rng=np.random.default_rng(99))
    b = generate_map(MapConfig(width=25, height=20, seed=99))

    assert a.map == b.map


def test_zero_steps_keeps_border_walls():
    result = generate_map(MapConfig(width=12, height=10, steps=0, seed=3))
    cave = result.map

    assert all(cave.cell_at(0, c) == WALL for c in range(cave.width))
    assert all(cave.cell_at(r, 0) == WALL for r in range(cave.height))
    assert cave.generation == 0


def test_record_history():
    result = generate_map(MapConfig(width=15, height=15, steps=4, seed=8), record_history=True)

    assert len(result.history) == 5
    np.testing.assert_array_equal(result.history[-1], result.map.to_array())


@pytest.mark.parametrize("overrides", [
    {"width": -1},
    {"height": -3},
    {"wall_probability": 101},
    {"wall_probability": -5},
    {"steps": -1},
])
def test_validate_rejects_bad_values(overrides):
    config = MapConfig(**overrides)
    with pytest.raises(ValueError):
        config.validate()
    with pytest.raises(ValueError):
        generate_map(config)


def test_config_dict_round_trip():
    config = MapConfig(width=10, height=12, wall_probability=45, steps=5, seed=7)
    data = config.to_dict()

    assert data["strategy"] == "default"
    assert MapConfig.from_dict(data) == config


def test_cleaning_strategy_propagates():
    config = MapConfig(width=10, height=10, seed=2, strategy=EvolveStrategy.CLEANING)
    with pytest.raises(NotImplementedError):
        generate_map(config)
