"""Entry point for ``python -m heatbugs``.

Loads the YAML config (when present), applies command-line overrides,
runs the simulation and writes one average-unhappiness value per line to
the output file.
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import signal
import sys
import threading

from heatbugs.io.results import CsvResultWriter
from heatbugs.simulation.config import SimulationConfig
from heatbugs.simulation.engine import SimulationEngine
from heatbugs.simulation.errors import HeatbugsError

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)

logger = logging.getLogger("heatbugs")


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser (``-h`` is min heat, so help is long-only)."""
    parser = argparse.ArgumentParser(
        prog="heatbugs",
        description="Heatbugs - agents seeking their ideal temperature",
        add_help=False,
    )
    parser.add_argument("--help", action="help", help="Show this message and exit")
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=None,
        help="Path to YAML config file (default: config/default.yaml if present)",
    )
    parser.add_argument(
        "-t",
        dest="ideal_temp_min",
        type=int,
        help="Min ideal temperature",
    )
    parser.add_argument(
        "-T",
        dest="ideal_temp_max",
        type=int,
        help="Max ideal temperature",
    )
    parser.add_argument(
        "-h",
        dest="heat_output_min",
        type=int,
        help="Min output heat",
    )
    parser.add_argument(
        "-H",
        dest="heat_output_max",
        type=int,
        help="Max output heat",
    )
    parser.add_argument(
        "-r",
        dest="random_move_chance",
        type=float,
        help="Random move chance [0..100]",
    )
    parser.add_argument(
        "-n",
        dest="bugs_number",
        type=int,
        help="Number of bugs",
    )
    parser.add_argument(
        "-d",
        dest="diffusion_rate",
        type=float,
        help="Diffusion rate",
    )
    parser.add_argument(
        "-e",
        dest="evaporation_rate",
        type=float,
        help="Evaporation rate",
    )
    parser.add_argument(
        "-w",
        dest="world_width",
        type=int,
        help="World width",
    )
    parser.add_argument(
        "-W",
        dest="world_height",
        type=int,
        help="World height",
    )
    parser.add_argument(
        "-i",
        dest="iteration_count",
        type=int,
        help="Iterations (0 = until interrupted)",
    )
    parser.add_argument("-f", dest="output_path", help="Output file path")
    parser.add_argument("--seed", type=int, help="Master RNG seed")
    parser.add_argument("--workers", type=int, help="Threads used to score moves")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Debug logging",
    )
    verbosity.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Warnings only",
    )
    return parser


def load_config(args: argparse.Namespace) -> SimulationConfig:
    """Merge the YAML file (if any) with command-line overrides."""
    path = args.config
    if path is None and _DEFAULT_CONFIG.exists():
        path = _DEFAULT_CONFIG
    config = SimulationConfig() if path is None else SimulationConfig.from_yaml(path)
    return config.with_overrides(
        ideal_temp_min=args.ideal_temp_min,
        ideal_temp_max=args.ideal_temp_max,
        heat_output_min=args.heat_output_min,
        heat_output_max=args.heat_output_max,
        random_move_chance=args.random_move_chance,
        bugs_number=args.bugs_number,
        diffusion_rate=args.diffusion_rate,
        evaporation_rate=args.evaporation_rate,
        world_width=args.world_width,
        world_height=args.world_height,
        iteration_count=args.iteration_count,
        output_path=args.output_path,
        seed=args.seed,
        workers=args.workers,
    )


def main(argv: list[str] | None = None) -> int:
    """Parse CLI args, run the simulation, write results.

    Returns:
        Process exit status (0 on success).
    """
    args = build_parser().parse_args(argv)
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    cancel = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda *_: cancel.set())
    try:
        config = load_config(args)
        engine = SimulationEngine(config=config)
        with CsvResultWriter(config.output_path) as writer:
            engine.run(sink=writer, cancel=cancel)
    except HeatbugsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except FileNotFoundError as exc:
        print(f"Error: config file not found: {exc.filename}", file=sys.stderr)
        return 1
    finally:
        signal.signal(signal.SIGINT, previous)

    logger.info("Wrote %d values to %s", writer.rows, config.output_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
