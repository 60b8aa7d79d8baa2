"""Cell — packed occupancy record for one tile of the swarm map.

Each cell of the swarm map is a 16-bit integer laid out as::

    bits 15..8   ideal temperature of the occupant (0-255)
    bit  7       occupied flag
    bits 6..0    output heat of the occupant (0-127)

The occupant's stats are mirrored into the cell so neighbour scoring
never has to look up the bug record.  All bit twiddling stays behind
``encode_cell`` / ``decode_cell`` and the occupancy tests below.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

EMPTY_CELL = 0

_TEMP_SHIFT = 8
_TEMP_MASK = 0xFF
OCCUPIED_BIT = 0x80
_HEAT_MASK = 0x7F


@dataclass(frozen=True)
class Occupant:
    """Stats of the bug claiming a cell.

    Attributes:
        ideal_temperature: Preferred temperature (0-255).
        output_heat: Heat emitted per iteration (0-127).
    """

    ideal_temperature: int
    output_heat: int


def encode_cell(occupant: Occupant | None) -> int:
    """Pack an occupant (or an empty cell) into its integer form.

    Raises:
        ValueError: If a stat does not fit in its bit field.
    """
    if occupant is None:
        return EMPTY_CELL
    if not 0 <= occupant.ideal_temperature <= _TEMP_MASK:
        msg = f"ideal_temperature {occupant.ideal_temperature} does not fit 8 bits"
        raise ValueError(msg)
    if not 0 <= occupant.output_heat <= _HEAT_MASK:
        msg = f"output_heat {occupant.output_heat} does not fit 7 bits"
        raise ValueError(msg)
    return (
        (occupant.ideal_temperature << _TEMP_SHIFT)
        | OCCUPIED_BIT
        | occupant.output_heat
    )


def decode_cell(value: int) -> Occupant | None:
    """Unpack a cell; ``None`` means the cell is free."""
    value = int(value)
    if not value & OCCUPIED_BIT:
        return None
    return Occupant(
        ideal_temperature=(value >> _TEMP_SHIFT) & _TEMP_MASK,
        output_heat=value & _HEAT_MASK,
    )


def is_occupied(value: int) -> bool:
    """Return True if the packed cell has its occupied flag set."""
    return bool(int(value) & OCCUPIED_BIT)


def occupied_flags(values: NDArray[np.uint16]) -> NDArray[np.bool_]:
    """Vectorised ``is_occupied`` over an array of packed cells."""
    return (np.asarray(values) & OCCUPIED_BIT) != 0
