"""Result sinks — where the unhappiness series goes.

A sink is any callable taking one float.  ``CsvResultWriter`` writes one
value per line at full double precision; ``MemorySink`` keeps values in a
list for tests and embedding.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType
from typing import Any, TextIO

from heatbugs.simulation.errors import ResourceUnavailable


@dataclass
class MemorySink:
    """Collects emitted values in order.

    Attributes:
        values: Everything received so far.
    """

    values: list[float] = field(default_factory=list)

    def __call__(self, value: float) -> None:
        self.values.append(float(value))


class CsvResultWriter:
    """Append-only text file, one unhappiness value per line.

    Use as a context manager; the file is truncated on open.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._file: TextIO | None = None
        self._writer: Any = None
        self.rows = 0

    def open(self) -> None:
        """Open (and truncate) the output file.

        Raises:
            ResourceUnavailable: If the file cannot be created.
        """
        try:
            self._file = self.path.open("w", newline="")
        except OSError as exc:
            msg = f"Could not open output file {self.path}: {exc.strerror}"
            raise ResourceUnavailable(msg) from exc
        self._writer = csv.writer(self._file, lineterminator="\n")

    def close(self) -> None:
        """Flush and close the file, if open."""
        if self._file is not None:
            self._file.close()
            self._file = None
            self._writer = None

    def __call__(self, value: float) -> None:
        if self._writer is None:
            msg = "result writer is not open"
            raise RuntimeError(msg)
        self._writer.writerow([float(value)])
        self.rows += 1

    def __enter__(self) -> CsvResultWriter:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
