"""Config — load and validate simulation parameters.

Parameters live in a YAML file (see ``config/default.yaml``) and are
parsed into a typed dataclass here.  ``validate`` enforces every
constraint before the engine allocates anything.
"""

from __future__ import annotations

import dataclasses
import logging
import numbers
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from heatbugs.simulation.errors import (
    BugsOverflow,
    HeatOutputRangeInvalid,
    ParameterInvalid,
    TemperatureRangeInvalid,
    ZeroBugs,
)

logger = logging.getLogger(__name__)

# Ceilings imposed by the packed cell layout (8 and 7 bits).
IDEAL_TEMP_CEILING = 200
HEAT_OUTPUT_CEILING = 100

# Occupancy ratio above which movement contention gets expensive.
HIGH_DENSITY_RATIO = 0.8

INT_FIELDS = (
    "world_width",
    "world_height",
    "bugs_number",
    "ideal_temp_min",
    "ideal_temp_max",
    "heat_output_min",
    "heat_output_max",
    "iteration_count",
    "workers",
)
RATE_FIELDS = ("diffusion_rate", "evaporation_rate", "random_move_chance")


@dataclass(frozen=True)
class SimulationConfig:
    """Immutable per-run simulation configuration.

    Attributes:
        world_width: Number of grid columns.
        world_height: Number of grid rows.
        bugs_number: Size of the swarm (0 < n < world_size).
        diffusion_rate: Fraction of a cell's heat shared with its four
            neighbours each iteration, in [0, 1].
        evaporation_rate: Fraction of heat lost to the ether each
            iteration, in [0, 1].
        random_move_chance: Percent chance, in [0, 100], that a bug picks
            a random free neighbour instead of the best one.
        ideal_temp_min: Lowest ideal temperature a bug can draw.
        ideal_temp_max: Highest ideal temperature a bug can draw.
        heat_output_min: Lowest heat a bug can emit per iteration.
        heat_output_max: Highest heat a bug can emit per iteration.
        seed: Master RNG seed.  ``None`` means "ask the OS".
        iteration_count: Iterations to run (0 = until cancelled).
        workers: Threads used to score bug moves (1 = serial).
        output_path: Where the CLI writes the unhappiness series.
    """

    world_width: int = 5
    world_height: int = 5
    bugs_number: int = 20
    diffusion_rate: float = 0.9
    evaporation_rate: float = 0.01
    random_move_chance: float = 0.0
    ideal_temp_min: int = 20
    ideal_temp_max: int = 30
    heat_output_min: int = 15
    heat_output_max: int = 25
    seed: int | None = None
    iteration_count: int = 1000
    workers: int = 1
    output_path: str = "heatbugs.csv"

    @property
    def world_size(self) -> int:
        """Total number of cells in the world."""
        return self.world_width * self.world_height

    @property
    def is_high_density(self) -> bool:
        """Return True if bugs fill at least 80% of the world."""
        return self.bugs_number >= HIGH_DENSITY_RATIO * self.world_size

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a YAML file.

        Keys that are not config fields are ignored; missing keys keep
        their defaults.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated (not yet validated) SimulationConfig.

        Raises:
            FileNotFoundError: If the config file does not exist.
            ParameterInvalid: If the file is not YAML or not a mapping.
        """
        path = Path(path)
        with path.open("r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                msg = f"Could not parse config file {path}: {exc}"
                raise ParameterInvalid(msg) from exc
        if not isinstance(data, dict):
            msg = f"Config file {path} must hold a mapping of parameters."
            raise ParameterInvalid(msg)
        return cls.from_mapping(data)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> SimulationConfig:
        """Build a config from a plain mapping, ignoring unknown keys."""
        names = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - names)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in names})

    def with_overrides(self, **overrides: Any) -> SimulationConfig:
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)

    def validate(self) -> None:
        """Check every constraint, raising on the first violation.

        The checking order matters: bug count first, then the ideal
        temperature range, then the output heat range.

        Raises:
            ParameterInvalid: A value of the wrong type, or bad dimensions,
                rates, seed or worker count.
            ZeroBugs: ``bugs_number`` is zero.
            BugsOverflow: ``bugs_number >= world_size``.
            TemperatureRangeInvalid: Inverted or too-high ideal range.
            HeatOutputRangeInvalid: Inverted or too-high output range.
        """
        self._check_types()

        if self.world_width <= 0 or self.world_height <= 0:
            msg = (
                f"World dimensions must be positive, got "
                f"{self.world_width}x{self.world_height}."
            )
            raise ParameterInvalid(msg)

        if self.bugs_number <= 0:
            raise ZeroBugs("There are no bugs.")
        if self.bugs_number >= self.world_size:
            msg = (
                f"Number of bugs ({self.bugs_number}) exceeds available "
                f"world slots ({self.world_size - 1} max)."
            )
            raise BugsOverflow(msg)

        if self.ideal_temp_min > self.ideal_temp_max:
            msg = (
                f"Bug's ideal temperature range overlaps: min "
                f"{self.ideal_temp_min} > max {self.ideal_temp_max}."
            )
            raise TemperatureRangeInvalid(msg)
        if self.ideal_temp_max >= IDEAL_TEMP_CEILING or self.ideal_temp_min < 0:
            msg = (
                f"Bug's ideal temperature must lie in [0, {IDEAL_TEMP_CEILING}), "
                f"got [{self.ideal_temp_min}, {self.ideal_temp_max}]."
            )
            raise TemperatureRangeInvalid(msg, code=-9)

        if self.heat_output_min > self.heat_output_max:
            msg = (
                f"Bug's output heat range overlaps: min "
                f"{self.heat_output_min} > max {self.heat_output_max}."
            )
            raise HeatOutputRangeInvalid(msg)
        if self.heat_output_max >= HEAT_OUTPUT_CEILING or self.heat_output_min < 0:
            msg = (
                f"Bug's output heat must lie in [0, {HEAT_OUTPUT_CEILING}), "
                f"got [{self.heat_output_min}, {self.heat_output_max}]."
            )
            raise HeatOutputRangeInvalid(msg, code=-11)

        for name in ("diffusion_rate", "evaporation_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                msg = f"{name} must lie in [0, 1], got {value}."
                raise ParameterInvalid(msg)
        if not 0.0 <= self.random_move_chance <= 100.0:
            msg = (
                f"random_move_chance must lie in [0, 100], "
                f"got {self.random_move_chance}."
            )
            raise ParameterInvalid(msg)
        if self.iteration_count < 0:
            msg = f"iteration_count must be >= 0, got {self.iteration_count}."
            raise ParameterInvalid(msg)
        if self.workers < 1:
            msg = f"workers must be >= 1, got {self.workers}."
            raise ParameterInvalid(msg)
        if self.seed is not None and self.seed < 0:
            msg = f"seed must be non-negative, got {self.seed}."
            raise ParameterInvalid(msg)

        if self.is_high_density:
            logger.warning(
                "Bugs number (%d) close to available world slots (%d).",
                self.bugs_number,
                self.world_size,
            )

    def _check_types(self) -> None:
        """Reject values whose type cannot be used for the field."""
        for name in INT_FIELDS:
            _require_int(name, getattr(self, name))
        if self.seed is not None:
            _require_int("seed", self.seed)
        for name in RATE_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                msg = f"{name} must be a number, got {value!r}."
                raise ParameterInvalid(msg)
        if not isinstance(self.output_path, (str, os.PathLike)):
            msg = f"output_path must be a path, got {self.output_path!r}."
            raise ParameterInvalid(msg)


def _require_int(name: str, value: Any) -> None:
    # bool is an int subclass; a YAML "yes" must not become a 1.
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        msg = f"{name} must be an integer, got {value!r}."
        raise ParameterInvalid(msg)
