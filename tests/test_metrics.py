import numpy as np
import pytest

from cellular_maps.cellmap import CellularMap
from cellular_maps.generator import MapConfig, generate_map
from cellular_maps.metrics import (
    cave_sizes,
    change_rate,
    find_caves,
    measure_map,
    wall_density,
)

# Two sealed caves: a vertical pair on the left and a single cell on the right
TWO_CAVES = np.array([
    [1, 1, 1, 1, 1],
    [1, 0, 1, 0, 1],
    [1, 0, 1, 1, 1],
    [1, 1, 1, 1, 1],
], dtype=np.uint8)


@pytest.fixture
def two_caves_map():
    cave = CellularMap(5, 4)
    cave.cells[:] = TWO_CAVES.reshape(-1)
    return cave


def test_wall_density(two_caves_map):
    assert wall_density(two_caves_map) == pytest.approx(17 / 20)
    assert wall_density(np.zeros((3, 3))) == 0.0
    assert wall_density(np.zeros((0, 3))) == 0.0


def test_find_caves():
    labeled, count = find_caves(TWO_CAVES)

    assert count == 2
    assert labeled[1, 1] == labeled[2, 1]
    assert labeled[1, 1] != labeled[1, 3]
    assert cave_sizes(labeled, count) == [2, 1]


def test_diagonal_floor_is_not_connected():
    grid = np.array([
        [0, 1],
        [1, 0],
    ])
    _, count = find_caves(grid)
    assert count == 2


def test_cave_sizes_empty():
    labeled, count = find_caves(np.ones((4, 4)))
    assert count == 0
    assert cave_sizes(labeled, count) == []


def test_change_rate():
    before = np.array([[0, 1], [1, 1]])
    after = np.array([[0, 1], [0, 1]])

    assert change_rate(before, after) == 0.25
    assert change_rate(before, before) == 0.0
    with pytest.raises(ValueError):
        change_rate(before, np.zeros((3, 3)))


def test_measure_map(two_caves_map):
    metrics = measure_map(two_caves_map)

    assert metrics.cave_count == 2
    assert metrics.largest_cave == 2
    assert metrics.largest_cave_ratio == pytest.approx(2 / 3)
    assert metrics.mean_cave_size == pytest.approx(1.5)
    assert metrics.final_change_rate == 0.0
    assert set(metrics.to_dict()) == {
        "wall_density", "cave_count", "largest_cave",
        "largest_cave_ratio", "mean_cave_size", "final_change_rate",
    }


def test_measure_solid_map():
    cave = CellularMap(5, 5)
    cave.cells[:] = 1
    metrics = measure_map(cave)

    assert metrics.wall_density == 1.0
    assert metrics.cave_count == 0
    assert metrics.largest_cave_ratio == 0.0


def test_measure_generated_map_with_history():
    result = generate_map(MapConfig(width=30, height=30, steps=3, seed=21), record_history=True)
    metrics = measure_map(result.map, result.history)

    assert 0.0 < metrics.wall_density < 1.0
    assert metrics.final_change_rate == change_rate(result.history[-2], result.history[-1])
