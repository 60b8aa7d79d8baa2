"""Heat field — double-buffered temperature grid, diffusion and evaporation.

The field keeps two same-shaped arrays.  ``current`` is read during an
update and by bug scoring; ``next`` receives the result and becomes
``current`` after ``swap``.  The world is a torus: heat leaving the right
edge enters the left edge.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray


@dataclass
class HeatField:
    """Ping-pong heat buffers over the world.

    Attributes:
        width: Grid columns (must match World).
        height: Grid rows (must match World).
        current: Readable heat values, indexed ``[y, x]``.
        next: Write target for the next update.
    """

    width: int
    height: int
    current: NDArray[np.float64] = field(init=False, repr=False)
    next: NDArray[np.float64] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Allocate both buffers, zeroed."""
        self.current = np.zeros((self.height, self.width), dtype=np.float64)
        self.next = np.zeros((self.height, self.width), dtype=np.float64)

    def swap(self) -> None:
        """Make ``next`` readable and recycle the old ``current``."""
        self.current, self.next = self.next, self.current

    def heat_at(self, index: int) -> float:
        """Read current heat at a row-major cell index."""
        return float(self.current.flat[index])

    def add_heat(self, index: int, amount: float) -> None:
        """Add heat to the current buffer at a row-major cell index."""
        self.current.flat[index] += amount

    def total(self) -> float:
        """Sum of all current heat."""
        return float(self.current.sum())

    def update(self, diffusion_rate: float, evaporation_rate: float) -> None:
        """Diffuse and evaporate ``current`` into ``next``, then swap."""
        diffuse_and_evaporate(
            self.current,
            self.next,
            diffusion_rate,
            evaporation_rate,
        )
        self.swap()


def diffuse(
    current: NDArray[np.float64],
    out: NDArray[np.float64],
    rate: float,
) -> None:
    """Spread heat to the four cardinal neighbours with wraparound.

    Each cell keeps ``1 - rate`` of its heat and gives ``rate / 4`` to each
    neighbour.  Reads only ``current`` and writes only ``out``, so total
    heat is conserved.

    Args:
        current: Heat before diffusion (not modified).
        out: Destination buffer, same shape as ``current``.
        rate: Fraction of heat each cell donates.
    """
    share = current * (rate / 4.0)
    np.multiply(current, 1.0 - rate, out=out)
    out += np.roll(share, 1, axis=0)  # received from the cell above
    out += np.roll(share, -1, axis=0)  # from below
    out += np.roll(share, 1, axis=1)  # from the left
    out += np.roll(share, -1, axis=1)  # from the right


def evaporate(grid: NDArray[np.float64], rate: float) -> None:
    """Lose ``rate`` of every cell's heat to the ether, in-place."""
    grid *= 1.0 - rate


def diffuse_and_evaporate(
    current: NDArray[np.float64],
    out: NDArray[np.float64],
    diffusion_rate: float,
    evaporation_rate: float,
) -> None:
    """Compute one world-heat step from ``current`` into ``out``.

    Diffusion first, then evaporation on the diffused values.

    Args:
        current: Heat at the start of the iteration.
        out: Receives the new heat values.
        diffusion_rate: Fraction shared with neighbours, in [0, 1].
        evaporation_rate: Fraction lost, in [0, 1].
    """
    if out is current:
        msg = "diffusion needs distinct source and destination buffers"
        raise ValueError(msg)
    diffuse(current, out, diffusion_rate)
    evaporate(out, evaporation_rate)
