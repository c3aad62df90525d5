"""Cave map engine: a flat occupancy grid smoothed by a wall-majority cellular automaton."""

import logging
import operator
from enum import Enum
from typing import List, Optional

import numpy as np

logger = logging.getLogger(__name__)

FLOOR = 0
WALL = 1


class EvolveStrategy(Enum):
    DEFAULT = "default"    # 3x3 / 5x5 wall-majority smoothing
    CLEANING = "cleaning"  # Reserved, no behavior defined yet


class CellularMap:
    """Fixed-size cave map stored as a row-major flat uint8 buffer.

    Cell ``(r, c)`` lives at ``cells[r * width + c]``. ``0`` is floor, ``1`` is
    wall; any other non-zero value is tolerated. It counts as occupied for its
    neighbours but evolves by the floor rule itself.
    Positions outside the map always count as walls when neighbours are counted.
    """

    def __init__(self, width: int, height: int, rng: Optional[np.random.Generator] = None):
        width = operator.index(width)
        height = operator.index(height)
        if width < 0 or height < 0:
            raise ValueError(f"Map dimensions must be non-negative, got {width}x{height}")

        self._width = width
        self._height = height
        self._cells = np.zeros(width * height, dtype=np.uint8)
        self.rng = rng
        self.generation = 0
        self._history: List[np.ndarray] = []
        logger.debug("Created %dx%d cellular map", width, height)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def cells(self) -> np.ndarray:
        """Flat row-major cell buffer (length ``width * height``)."""
        return self._cells

    def get_width(self) -> int:
        return self._width

    def get_height(self) -> int:
        return self._height

    def index(self, r: int, c: int) -> int:
        """Row-major offset of ``(r, c)``; raises IndexError outside the map."""
        r = operator.index(r)
        c = operator.index(c)
        if not (0 <= r < self._height and 0 <= c < self._width):
            raise IndexError(
                f"Position ({r}, {c}) outside {self._width}x{self._height} map"
            )
        return r * self._width + c

    def cell_at(self, r: int, c: int) -> int:
        return int(self._cells[self.index(r, c)])

    get_element = cell_at

    def set_cell(self, r: int, c: int, value: int):
        if not 0 <= value <= 255:
            raise ValueError(f"Cell value must fit in a byte, got {value}")
        self._cells[self.index(r, c)] = value

    def is_on_border(self, r: int, c: int) -> bool:
        return r == 0 or c == 0 or r == self._height - 1 or c == self._width - 1

    def is_out_of_bounds(self, r: int, c: int) -> bool:
        return not (0 <= r < self._height and 0 <= c < self._width)

    def is_wall(self, r: int, c: int) -> bool:
        """True for occupied cells and for every position outside the map."""
        if self.is_out_of_bounds(operator.index(r), operator.index(c)):
            return True
        return self._cells[self.index(r, c)] != FLOOR

    def to_array(self) -> np.ndarray:
        """Copy of the map as a (height, width) array."""
        return self._cells.reshape(self._height, self._width).copy()

    def copy(self) -> "CellularMap":
        """Independent copy of the cells; the random source is not shared."""
        other = CellularMap(self._width, self._height)
        other._cells = self._cells.copy()
        other.generation = self.generation
        return other

    def random_fill(self, wall_probability: int, rng: Optional[np.random.Generator] = None):
        """Re-randomize every cell.

        Border cells become walls and the middle row (``height // 2``) becomes
        floor so there is always a corridor through the map. Every other cell
        is a wall when a uniform draw in [0, 100) is below ``wall_probability``.
        """
        wall_probability = operator.index(wall_probability)
        if not 0 <= wall_probability <= 100:
            raise ValueError(f"wall_probability must be in [0, 100], got {wall_probability}")

        if rng is None:
            rng = self.rng
        if rng is None:
            rng = np.random.default_rng()

        h, w = self._height, self._width
        draws = rng.integers(0, 100, size=(h, w))
        grid = (np.asarray(draws) < wall_probability).astype(np.uint8)

        if h > 0 and w > 0:
            grid[h // 2, :] = FLOOR
            grid[0, :] = WALL
            grid[-1, :] = WALL
            grid[:, 0] = WALL
            grid[:, -1] = WALL

        self._cells = grid.reshape(-1)
        self.generation = 0
        self._history = []
        logger.debug(
            "Random fill at %d%%: %d walls out of %d cells",
            wall_probability, int(np.count_nonzero(self._cells)), self._cells.size,
        )

    def count_walls_in_window(self, r: int, c: int, radius: int) -> int:
        """Count walls in the square window of ``radius`` around ``(r, c)``.

        The centre is excluded and every window position that falls outside
        the map counts as a wall.
        """
        center = self.index(r, c)
        if radius < 0:
            raise ValueError(f"radius must be non-negative, got {radius}")

        r0 = max(r - radius, 0)
        r1 = min(r + radius + 1, self._height)
        c0 = max(c - radius, 0)
        c1 = min(c + radius + 1, self._width)

        window = self._cells.reshape(self._height, self._width)[r0:r1, c0:c1]
        in_bounds = window.size
        out_of_bounds = (2 * radius + 1) ** 2 - in_bounds

        occupied = int(np.count_nonzero(window))
        if self._cells[center] != FLOOR:
            occupied -= 1

        return occupied + out_of_bounds

    def count_walls(self, radius: int) -> np.ndarray:
        """Wall counts of :meth:`count_walls_in_window` for every cell at once."""
        if radius < 0:
            raise ValueError(f"radius must be non-negative, got {radius}")

        h, w = self._height, self._width
        if h == 0 or w == 0:
            return np.zeros((h, w), dtype=np.int32)

        occupied = (self._cells.reshape(h, w) != FLOOR).astype(np.int32)
        padded = np.pad(occupied, radius, mode="constant", constant_values=1)
        size = 2 * radius + 1
        windows = np.lib.stride_tricks.sliding_window_view(padded, (size, size))
        return windows.sum(axis=(-2, -1)) - occupied

    def evolve(self, strategy: EvolveStrategy = EvolveStrategy.DEFAULT):
        """Advance the map by one generation using ``strategy``."""
        if strategy == EvolveStrategy.DEFAULT:
            self.evolve_default()
        elif strategy == EvolveStrategy.CLEANING:
            self.evolve_cleaning()
        else:
            raise ValueError(f"Unknown evolve strategy: {strategy!r}")

    def evolve_default(self):
        """One wall-majority smoothing step.

        Walls survive with at least 3 walls in their 3x3 neighbourhood. Floor
        turns to wall with at least 5 walls in the 3x3 neighbourhood, or when
        the 5x5 neighbourhood holds 2 walls or fewer. Only cells holding ``WALL``
        take the wall branch. All counts come from the map as it was before the
        step.
        """
        h, w = self._height, self._width
        n1 = self.count_walls(1)
        n2 = self.count_walls(2)
        walls = self._cells.reshape(h, w) == WALL

        new_grid = np.where(walls, n1 >= 3, (n1 >= 5) | (n2 <= 2)).astype(np.uint8)

        self._cells = new_grid.reshape(-1)
        self.generation += 1
        logger.debug(
            "Generation %d: %d walls", self.generation, int(np.count_nonzero(self._cells))
        )

    def evolve_cleaning(self):
        raise NotImplementedError("The cleaning evolve strategy is reserved and not implemented")

    def run(
        self,
        steps: int,
        strategy: EvolveStrategy = EvolveStrategy.DEFAULT,
        record_history: bool = False,
    ) -> List[np.ndarray]:
        """Evolve ``steps`` times, optionally recording a snapshot before each step."""
        if steps < 0:
            raise ValueError(f"steps must be non-negative, got {steps}")
        for _ in range(steps):
            if record_history:
                self._history.append(self.to_array())
            self.evolve(strategy)
        if record_history:
            self._history.append(self.to_array())
        return self._history

    def get_history(self) -> List[np.ndarray]:
        return self._history

    def wall_count(self) -> int:
        return int(np.count_nonzero(self._cells))

    def __eq__(self, other):
        if not isinstance(other, CellularMap):
            return NotImplemented
        return (
            self._width == other._width
            and self._height == other._height
            and np.array_equal(self._cells, other._cells)
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"CellularMap({self._width}x{self._height}, walls={self.wall_count()})"
