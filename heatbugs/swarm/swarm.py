"""Swarm — per-bug state arrays and initial placement.

The swarm is stored column-wise (one NumPy array per attribute) so the
movement and reduction phases can work on whole vectors.  ``Bug`` is a
read-only view of one slot for tests and debugging.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from heatbugs.world.cell import Occupant

if TYPE_CHECKING:
    from heatbugs.simulation.config import SimulationConfig
    from heatbugs.simulation.rng import RngBank
    from heatbugs.world.world import World

logger = logging.getLogger(__name__)

NO_TARGET = -1


@dataclass(frozen=True)
class Bug:
    """Snapshot of a single bug.

    Attributes:
        index: Slot in the swarm arrays.
        position: Row-major cell index the bug occupies.
        pending_target: Cell claimed in the running movement pass, or -1.
        ideal_temperature: Temperature the bug is happiest at.
        output_heat: Heat the bug emits into its cell each iteration.
        unhappiness: ``|heat at position - ideal_temperature|``.
    """

    index: int
    position: int
    pending_target: int
    ideal_temperature: int
    output_heat: int
    unhappiness: float


@dataclass
class Swarm:
    """Column-wise state for every bug.

    Attributes:
        position: Current cell of each bug.
        pending_target: Transient movement target (``NO_TARGET`` if none).
        ideal_temperature: Preferred temperature of each bug.
        output_heat: Heat emitted by each bug per iteration.
        unhappiness: Last computed unhappiness of each bug.
    """

    position: NDArray[np.intp]
    pending_target: NDArray[np.intp]
    ideal_temperature: NDArray[np.int64]
    output_heat: NDArray[np.int64]
    unhappiness: NDArray[np.float64]

    @classmethod
    def empty(cls, size: int) -> Swarm:
        """Allocate a swarm of ``size`` unplaced bugs."""
        return cls(
            position=np.full(size, NO_TARGET, dtype=np.intp),
            pending_target=np.full(size, NO_TARGET, dtype=np.intp),
            ideal_temperature=np.zeros(size, dtype=np.int64),
            output_heat=np.zeros(size, dtype=np.int64),
            unhappiness=np.zeros(size, dtype=np.float64),
        )

    def __len__(self) -> int:
        return len(self.position)

    def bug(self, index: int) -> Bug:
        """Return a snapshot of bug ``index``."""
        return Bug(
            index=index,
            position=int(self.position[index]),
            pending_target=int(self.pending_target[index]),
            ideal_temperature=int(self.ideal_temperature[index]),
            output_heat=int(self.output_heat[index]),
            unhappiness=float(self.unhappiness[index]),
        )

    def occupant(self, index: int) -> Occupant:
        """Cell record mirroring bug ``index``'s stats."""
        return Occupant(
            ideal_temperature=int(self.ideal_temperature[index]),
            output_heat=int(self.output_heat[index]),
        )

    def emit_heat(self, world: World) -> None:
        """Every bug adds its output heat to its cell's current heat."""
        np.add.at(
            world.heat.current.reshape(-1),
            self.position,
            self.output_heat.astype(np.float64),
        )


def place_bugs(config: SimulationConfig, world: World, rng_bank: RngBank) -> Swarm:
    """Drop ``config.bugs_number`` bugs onto distinct free cells.

    Bugs are placed in increasing index order.  Each bug draws its ideal
    temperature, its output heat and a candidate cell from its own
    stream.  Occupied candidates are redrawn up to ``world.size`` times;
    after that the bug takes the next free cell scanning forward from its
    last draw, so placement always terminates while a free cell exists.

    Args:
        config: Validated simulation config.
        world: Empty world to populate.
        rng_bank: One generator per bug.

    Returns:
        The placed swarm; unhappiness is left for the caller to compute.

    Raises:
        ValueError: If the world has no free cell left for a bug.
    """
    swarm = Swarm.empty(config.bugs_number)

    for i in range(config.bugs_number):
        rng = rng_bank[i]
        swarm.ideal_temperature[i] = rng.integers(
            config.ideal_temp_min,
            config.ideal_temp_max,
            endpoint=True,
        )
        swarm.output_heat[i] = rng.integers(
            config.heat_output_min,
            config.heat_output_max,
            endpoint=True,
        )

        cell = int(rng.integers(0, world.size))
        attempts = 1
        while world.is_occupied(cell) and attempts < world.size:
            cell = int(rng.integers(0, world.size))
            attempts += 1
        if world.is_occupied(cell):
            cell = _next_free(world, cell)

        world.occupy(cell, swarm.occupant(i))
        swarm.position[i] = cell

    logger.debug("Placed %d bugs on %d cells", config.bugs_number, world.size)
    return swarm


def _next_free(world: World, start: int) -> int:
    """First free cell at or after ``start``, wrapping around."""
    free = np.flatnonzero(~world.occupancy_mask())
    if free.size == 0:
        msg = "no free cell left in the world"
        raise ValueError(msg)
    after = free[free >= start]
    return int(after[0] if after.size else free[0])
