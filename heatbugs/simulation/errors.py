"""Errors — the failure taxonomy for configuration and I/O.

Every configuration error is raised eagerly, before any world or swarm
buffer is allocated, so an invalid run never produces output rows.  The
integer ``code`` on each class matches the exit codes historically used
by the heatbugs command-line tool.
"""

from __future__ import annotations


class HeatbugsError(Exception):
    """Base class for all heatbugs errors.

    Attributes:
        code: Negative integer identifying the failure kind.
    """

    code: int = -1

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class ConfigError(HeatbugsError, ValueError):
    """A simulation parameter violates its constraints."""


class ParameterInvalid(ConfigError):
    """A rate, dimension or worker count is out of range."""

    code = -1


class ZeroBugs(ConfigError):
    """The swarm would be empty."""

    code = -6


class BugsOverflow(ConfigError):
    """There are at least as many bugs as world cells."""

    code = -7


class TemperatureRangeInvalid(ConfigError):
    """Ideal temperature range is inverted or exceeds its ceiling."""

    code = -8


class HeatOutputRangeInvalid(ConfigError):
    """Output heat range is inverted or exceeds its ceiling."""

    code = -10


class ResourceUnavailable(HeatbugsError):
    """An external resource (output file, entropy source) is unreachable."""

    code = -12


class InvariantViolation(HeatbugsError):
    """The world's occupancy map disagrees with the swarm's positions."""
