"""RNG bank — one independent random stream per bug slot.

Streams are split from the master seed with ``SeedSequence.spawn`` so a
bug's draws never depend on which thread evaluates it or on how many
draws other bugs consumed.
"""

from __future__ import annotations

import logging
import os

import numpy as np
from numpy.random import Generator, SeedSequence

logger = logging.getLogger(__name__)

# Used when the OS entropy source cannot be read.
DEFAULT_SEED = 0x5EED_B065


def acquire_seed() -> int:
    """Read a 32-bit seed from the OS entropy source.

    Falls back to ``DEFAULT_SEED`` (with a warning) if the source is
    unavailable.
    """
    try:
        return int.from_bytes(os.urandom(4), "little")
    except (OSError, NotImplementedError) as exc:
        logger.warning(
            "Entropy source unavailable (%s); using default seed %d",
            exc,
            DEFAULT_SEED,
        )
        return DEFAULT_SEED


class RngBank:
    """Per-bug seeded generators.

    Attributes:
        seed: Master seed the streams were split from.
    """

    def __init__(self, seed: int, size: int) -> None:
        self.seed = seed
        children = SeedSequence(seed).spawn(size)
        self._streams: list[Generator] = [np.random.default_rng(s) for s in children]

    def __len__(self) -> int:
        return len(self._streams)

    def __getitem__(self, index: int) -> Generator:
        return self._streams[index]
