"""SimulationEngine — the main iteration loop.

Owns all simulation state for one run and advances it in the canonical
iteration order:

1. Bugs emit heat into the cells they occupy
2. World heat update (diffusion, then evaporation, into the spare
   buffer, which then becomes current)
3. Movement resolution (best place, then any-free-place retries)
4. Unhappiness reduction

Each phase finishes before the next starts.  The initial average,
computed right after placement, is the first value of ``history``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from heatbugs.simulation.config import SimulationConfig
from heatbugs.simulation.errors import InvariantViolation
from heatbugs.simulation.rng import RngBank, acquire_seed
from heatbugs.swarm.movement import MoveReport, MovementResolver
from heatbugs.swarm.swarm import Swarm, place_bugs
from heatbugs.swarm.unhappiness import average_unhappiness, compute_unhappiness
from heatbugs.world.world import World

logger = logging.getLogger(__name__)

Sink = Callable[[float], object]


@dataclass
class SimulationEngine:
    """Drives the simulation forward iteration by iteration.

    Attributes:
        config: Validated simulation configuration.
        seed: Master seed actually used (acquired if the config has none).
        world: Heat field and swarm map.
        swarm: Per-bug state.
        rng_bank: One random stream per bug.
        mover: Movement resolver bound to world and swarm.
        iteration: Completed iterations.
        history: Average unhappiness, initial value first.
        last_move: Report of the most recent movement pass.
    """

    config: SimulationConfig
    seed: int = field(init=False)
    world: World = field(init=False)
    swarm: Swarm = field(init=False)
    rng_bank: RngBank = field(init=False)
    mover: MovementResolver = field(init=False, repr=False)
    iteration: int = 0
    history: list[float] = field(init=False, default_factory=list)
    last_move: MoveReport | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        """Validate the config, then build world, swarm and RNG bank."""
        self.config.validate()
        self.seed = self.config.seed if self.config.seed is not None else acquire_seed()

        self.rng_bank = RngBank(self.seed, self.config.bugs_number)
        self.world = World(
            width=self.config.world_width,
            height=self.config.world_height,
        )
        self.swarm = place_bugs(self.config, self.world, self.rng_bank)
        compute_unhappiness(self.swarm, self.world.heat)
        self.mover = MovementResolver(
            world=self.world,
            swarm=self.swarm,
            rng_bank=self.rng_bank,
            random_move_chance=self.config.random_move_chance,
            workers=self.config.workers,
        )
        self.history.append(average_unhappiness(self.swarm.unhappiness))

        logger.info(
            "Initialised %dx%d world with %d bugs (seed=%d)",
            self.config.world_width,
            self.config.world_height,
            self.config.bugs_number,
            self.seed,
        )
        logger.debug("Initial swarm map:\n%s", self.world.render())

    @property
    def unhappiness(self) -> float:
        """Most recent average unhappiness."""
        return self.history[-1]

    def step(self) -> float:
        """Advance the simulation by one iteration.

        Returns:
            The iteration's average unhappiness.
        """
        self.swarm.emit_heat(self.world)
        self.world.heat.update(
            self.config.diffusion_rate,
            self.config.evaporation_rate,
        )
        self.last_move = self.mover.resolve()

        value = average_unhappiness(self.swarm.unhappiness)
        self.history.append(value)
        self.iteration += 1
        logger.debug(
            "Iteration %d: unhappiness=%.6f moved=%d retries=%d",
            self.iteration,
            value,
            self.last_move.moved,
            self.last_move.retry_rounds,
        )
        return value

    def run(
        self,
        sink: Sink | None = None,
        cancel: threading.Event | None = None,
        iterations: int | None = None,
    ) -> list[float]:
        """Emit the initial value, then iterate until done or cancelled.

        Args:
            sink: Called with every emitted value, in order.
            cancel: Checked before each iteration; when set the loop stops.
            iterations: Overrides ``config.iteration_count`` (0 = forever).

        Returns:
            The values emitted by this call.  In unbounded mode only the
            initial value is kept; use ``sink`` to observe the rest.
        """
        total = self.config.iteration_count if iterations is None else iterations
        emitted = [self.unhappiness]
        if sink is not None:
            sink(self.unhappiness)

        done = 0
        while total == 0 or done < total:
            if cancel is not None and cancel.is_set():
                logger.info("Cancelled after %d iterations", done)
                break
            value = self.step()
            done += 1
            if total:
                emitted.append(value)
            if sink is not None:
                sink(value)

        return emitted

    def check_invariants(self) -> None:
        """Check that every bug owns exactly one distinct occupied cell.

        Raises:
            InvariantViolation: If occupancy and bug positions disagree.
        """
        positions = self.swarm.position
        distinct = len(set(positions.tolist()))
        occupied = self.world.occupied_count()
        n = self.config.bugs_number
        if distinct != n:
            raise InvariantViolation(f"{n - distinct} bugs share a cell")
        if occupied != n:
            raise InvariantViolation(f"{occupied} occupied cells for {n} bugs")
        if not self.world.occupancy_mask()[positions].all():
            raise InvariantViolation("bug on an empty cell")
