"""World grid — the spatial container for the simulation.

The World owns the heat field and the swarm map (one packed occupancy
cell per tile) and provides the coordinate and neighbour queries used by
bug placement and movement.  Cells are addressed either by ``(x, y)`` or
by their row-major index ``y * width + x``.  Edges wrap around.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from heatbugs.world.cell import (
    EMPTY_CELL,
    Occupant,
    decode_cell,
    encode_cell,
    is_occupied,
    occupied_flags,
)
from heatbugs.world.heat import HeatField

BUG = "@"
EMPTY = "-"

# Von Neumann neighbourhood, in scoring order: up, down, left, right.
NEIGHBOUR_OFFSETS: tuple[tuple[int, int], ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))


@dataclass
class World:
    """A toroidal 2D grid holding heat and bug occupancy.

    Attributes:
        width: Number of columns in the grid.
        height: Number of rows in the grid.
        heat: Double-buffered heat field.
        swarm_map: Packed cells (see ``heatbugs.world.cell``), row-major.
    """

    width: int
    height: int
    heat: HeatField = field(init=False, repr=False)
    swarm_map: NDArray[np.uint16] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Zero the heat buffers and empty the swarm map."""
        self.heat = HeatField(width=self.width, height=self.height)
        self.swarm_map = np.full(self.size, EMPTY_CELL, dtype=np.uint16)

    @property
    def size(self) -> int:
        """Number of cells."""
        return self.width * self.height

    def index_of(self, x: int, y: int) -> int:
        """Row-major index of ``(x, y)``.

        Raises:
            IndexError: If coordinates are out of bounds.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            msg = f"({x}, {y}) out of bounds for {self.width}x{self.height}"
            raise IndexError(msg)
        return y * self.width + x

    def coords_of(self, index: int) -> tuple[int, int]:
        """``(x, y)`` of a row-major index."""
        y, x = divmod(index, self.width)
        return x, y

    def neighbours(self, index: int) -> list[int]:
        """Indices of the four cardinal neighbours, wrapping at edges.

        Order is fixed (up, down, left, right).  On grids narrower than
        three cells the same index may appear more than once.
        """
        x, y = self.coords_of(index)
        return [
            ((y + dy) % self.height) * self.width + (x + dx) % self.width
            for dx, dy in NEIGHBOUR_OFFSETS
        ]

    def neighbour_table(self) -> NDArray[np.intp]:
        """``(size, 4)`` array of every cell's neighbour indices."""
        return np.array([self.neighbours(i) for i in range(self.size)], dtype=np.intp)

    def is_occupied(self, index: int) -> bool:
        """Return True if a bug claims the cell."""
        return is_occupied(self.swarm_map[index])

    def occupancy_mask(self) -> NDArray[np.bool_]:
        """Boolean occupied flag of every cell (a copy)."""
        return occupied_flags(self.swarm_map)

    def occupant_at(self, index: int) -> Occupant | None:
        """Decoded stats of the bug at ``index``, or None."""
        return decode_cell(self.swarm_map[index])

    def occupy(self, index: int, occupant: Occupant) -> None:
        """Mark a free cell as claimed by ``occupant``.

        Raises:
            ValueError: If the cell is already occupied.
        """
        if self.is_occupied(index):
            x, y = self.coords_of(index)
            msg = f"cell ({x}, {y}) is already occupied"
            raise ValueError(msg)
        self.swarm_map[index] = encode_cell(occupant)

    def vacate(self, index: int) -> None:
        """Clear a cell's occupancy."""
        self.swarm_map[index] = EMPTY_CELL

    def occupied_count(self) -> int:
        """Number of claimed cells."""
        return int(np.count_nonzero(occupied_flags(self.swarm_map)))

    def render(self) -> str:
        """ASCII picture of the swarm map, one text row per grid row."""
        mask = self.occupancy_mask().reshape(self.height, self.width)
        return "\n".join(
            "".join(BUG if cell else EMPTY for cell in row) for row in mask
        )
