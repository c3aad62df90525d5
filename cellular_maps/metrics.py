"""Cave statistics for finished maps.

A good cave map usually has:
- A moderate wall density (not solid rock, not an open field)
- One dominant connected cave rather than many sealed pockets
- Little change between the last generations (the smoothing has settled)
"""

import numpy as np
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union
from scipy import ndimage

from .cellmap import CellularMap, FLOOR


@dataclass
class MapMetrics:
    """Summary statistics of one map."""
    wall_density: float
    cave_count: int  # 4-connected floor regions
    largest_cave: int  # Cells in the biggest region
    largest_cave_ratio: float  # Largest region / all floor cells
    mean_cave_size: float
    final_change_rate: float  # Fraction of cells flipped by the last recorded step

    def to_dict(self) -> Dict:
        return {
            "wall_density": self.wall_density,
            "cave_count": self.cave_count,
            "largest_cave": self.largest_cave,
            "largest_cave_ratio": self.largest_cave_ratio,
            "mean_cave_size": self.mean_cave_size,
            "final_change_rate": self.final_change_rate,
        }


def _as_grid(cave: Union[CellularMap, np.ndarray]) -> np.ndarray:
    if isinstance(cave, CellularMap):
        return cave.to_array()
    return np.asarray(cave)


def wall_density(cave: Union[CellularMap, np.ndarray]) -> float:
    """Fraction of occupied cells."""
    grid = _as_grid(cave)
    if grid.size == 0:
        return 0.0
    return float(np.count_nonzero(grid) / grid.size)


def find_caves(grid: np.ndarray) -> Tuple[np.ndarray, int]:
    """Label 4-connected floor regions."""
    labeled, num_caves = ndimage.label(np.asarray(grid) == FLOOR)
    return labeled, int(num_caves)


def cave_sizes(labeled: np.ndarray, num_caves: int) -> List[int]:
    """Sizes of all caves, largest first."""
    if num_caves == 0:
        return []
    sizes = ndimage.sum(np.ones_like(labeled), labeled, range(1, num_caves + 1))
    return sorted((int(s) for s in sizes), reverse=True)


def change_rate(before: np.ndarray, after: np.ndarray) -> float:
    """Fraction of cells that differ between two snapshots."""
    before = np.asarray(before)
    after = np.asarray(after)
    if before.shape != after.shape:
        raise ValueError(f"Snapshot shapes differ: {before.shape} vs {after.shape}")
    if before.size == 0:
        return 0.0
    return float(np.sum(before != after) / before.size)


def measure_map(cave: CellularMap, history: Optional[List[np.ndarray]] = None) -> MapMetrics:
    """Compute all statistics for ``cave``; ``history`` adds the final change rate."""
    grid = cave.to_array()
    labeled, num_caves = find_caves(grid)
    sizes = cave_sizes(labeled, num_caves)

    floor_cells = sum(sizes)
    largest = sizes[0] if sizes else 0

    final_change = 0.0
    if history and len(history) >= 2:
        final_change = change_rate(history[-2], history[-1])

    return MapMetrics(
        wall_density=wall_density(grid),
        cave_count=num_caves,
        largest_cave=largest,
        largest_cave_ratio=largest / floor_cells if floor_cells else 0.0,
        mean_cave_size=float(np.mean(sizes)) if sizes else 0.0,
        final_change_rate=final_change,
    )
