"""Cellular Maps - Generate cave-like 2D maps via cellular automaton smoothing."""

from .cellmap import CellularMap, EvolveStrategy, FLOOR, WALL
from .generator import MapConfig, GenerationResult, generate_map
from .metrics import MapMetrics, measure_map

__all__ = [
    "CellularMap",
    "EvolveStrategy",
    "FLOOR",
    "WALL",
    "MapConfig",
    "GenerationResult",
    "generate_map",
    "MapMetrics",
    "measure_map",
]
