"""Map generation pipeline: construct, randomize, then smooth for a number of steps."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from .cellmap import CellularMap, EvolveStrategy

logger = logging.getLogger(__name__)


@dataclass
class MapConfig:
    """Parameters for one generated map."""
    width: int = 30
    height: int = 35
    wall_probability: int = 40  # Percent chance for an interior cell to start as wall
    steps: int = 3  # Smoothing generations
    seed: Optional[int] = None
    strategy: EvolveStrategy = EvolveStrategy.DEFAULT

    def validate(self):
        if self.width < 0:
            raise ValueError(f"width must be non-negative, got {self.width}")
        if self.height < 0:
            raise ValueError(f"height must be non-negative, got {self.height}")
        if not 0 <= self.wall_probability <= 100:
            raise ValueError(f"wall_probability must be in [0, 100], got {self.wall_probability}")
        if self.steps < 0:
            raise ValueError(f"steps must be non-negative, got {self.steps}")

    def to_dict(self) -> Dict:
        return {
            "width": self.width,
            "height": self.height,
            "wall_probability": self.wall_probability,
            "steps": self.steps,
            "seed": self.seed,
            "strategy": self.strategy.value,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "MapConfig":
        data = dict(data)
        if "strategy" in data:
            data["strategy"] = EvolveStrategy(data["strategy"])
        return cls(**data)


@dataclass
class GenerationResult:
    """A finished map and, when recorded, the snapshots that led to it."""
    map: CellularMap
    config: MapConfig
    history: List[np.ndarray] = field(default_factory=list)


def generate_map(
    config: Optional[MapConfig] = None,
    rng: Optional[np.random.Generator] = None,
    record_history: bool = False,
) -> GenerationResult:
    """
    Build a cave map from ``config``.

    The random source defaults to ``np.random.default_rng(config.seed)``, so a
    fixed seed reproduces the same map.
    """
    if config is None:
        config = MapConfig()
    config.validate()
    if rng is None:
        rng = np.random.default_rng(config.seed)

    cave = CellularMap(config.width, config.height, rng=rng)
    cave.random_fill(config.wall_probability)
    history = cave.run(config.steps, strategy=config.strategy, record_history=record_history)

    logger.debug(
        "Generated %dx%d map in %d steps (%d walls)",
        config.width, config.height, config.steps, cave.wall_count(),
    )
    return GenerationResult(map=cave, config=config, history=list(history))
