"""Unhappiness — per-bug discomfort and its population average.

The average is a two-phase reduction: fixed-size contiguous groups are
summed first, then the partial sums are added left to right and divided
by the swarm size.  The grouping never changes, so a given vector always
reduces to the same bits.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from heatbugs.swarm.swarm import Swarm
    from heatbugs.world.heat import HeatField

REDUCTION_GROUP_SIZE = 64


def compute_unhappiness(swarm: Swarm, heat: HeatField) -> None:
    """Refresh every bug's unhappiness from the current heat, in-place."""
    local = heat.current.reshape(-1)[swarm.position]
    np.abs(local - swarm.ideal_temperature, out=swarm.unhappiness)


def partial_sums(
    vector: NDArray[np.float64],
    group_size: int = REDUCTION_GROUP_SIZE,
) -> NDArray[np.float64]:
    """Phase 1: sum each contiguous group of ``group_size`` values.

    The last group is zero-padded.
    """
    if group_size <= 0:
        msg = f"group_size must be positive, got {group_size}"
        raise ValueError(msg)
    groups = -(-len(vector) // group_size)
    padded = np.zeros(groups * group_size, dtype=np.float64)
    padded[: len(vector)] = vector
    return padded.reshape(groups, group_size).sum(axis=1)


def average_unhappiness(
    vector: NDArray[np.float64],
    group_size: int = REDUCTION_GROUP_SIZE,
) -> float:
    """Average of an unhappiness vector via the two-phase reduction.

    Args:
        vector: One unhappiness value per bug.
        group_size: Phase-1 group width.

    Returns:
        Sum of the vector divided by its length.

    Raises:
        ValueError: If the vector is empty.
    """
    if len(vector) == 0:
        msg = "cannot average an empty unhappiness vector"
        raise ValueError(msg)
    total = 0.0
    for partial in partial_sums(vector, group_size):
        total += float(partial)
    return total / len(vector)
