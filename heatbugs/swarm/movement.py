"""Movement resolution — every bug tries to step to a better cell.

One pass runs against a single heat snapshot and a single occupancy
snapshot:

1. **Prepare** - clear the retry flag and pending targets, freeze the
   occupancy mask.
2. **Score** - each bug ranks its own cell and its four neighbours by
   ``-|heat - ideal|``; neighbours occupied in the snapshot are out.
   With ``random_move_chance`` percent probability the bug instead puts a
   random free neighbour first.
3. **Best place** - claims are applied in ascending bug index; a cell
   goes to the first bug that asks for it.  A bug always wins its own
   cell because no other bug may target an occupied cell.
4. **Any free place** - losers raise the retry flag.  While it is up,
   every unresolved bug takes its best candidate still unclaimed at the
   start of the round.  The lowest unresolved index always wins, so the
   loop ends within ``len(swarm)`` rounds.
5. **Commit** - vacate old cells, occupy new ones, refresh unhappiness.

Scoring is independent per bug and may run on a thread pool.  Claiming
is serialised, which makes the result identical for any worker count.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from heatbugs.swarm.swarm import NO_TARGET
from heatbugs.swarm.unhappiness import compute_unhappiness

if TYPE_CHECKING:
    from heatbugs.simulation.rng import RngBank
    from heatbugs.swarm.swarm import Swarm
    from heatbugs.world.world import World

logger = logging.getLogger(__name__)

UNCLAIMED = -1


@dataclass
class MoveReport:
    """Outcome of one movement pass.

    Attributes:
        retry_rounds: Any-free-place rounds needed after the best-place
            attempt (0 when nobody collided).
        moved: Number of bugs that changed cell.
        contested: Number of bugs that lost their best-place claim.
    """

    retry_rounds: int = 0
    moved: int = 0
    contested: int = 0


@dataclass
class MovementResolver:
    """Resolves one synchronous move of the whole swarm.

    Attributes:
        world: Grid whose swarm map and heat are read and updated.
        swarm: Bugs to move.
        rng_bank: One generator per bug, used for random moves.
        random_move_chance: Percent chance of a random move, [0, 100].
        workers: Threads used for the scoring phase.
        retry_flag: Raised when a claim fails, cleared each round.
    """

    world: World
    swarm: Swarm
    rng_bank: RngBank
    random_move_chance: float = 0.0
    workers: int = 1
    retry_flag: bool = False
    _neighbours: NDArray[np.intp] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Cache the neighbour table of the world."""
        self._neighbours = self.world.neighbour_table()

    def resolve(self) -> MoveReport:
        """Run a full movement pass and commit it.

        Returns:
            Statistics about the pass.
        """
        occupied = self.prepare()
        preferences = self.score(occupied)
        report = MoveReport()

        claims = np.full(self.world.size, UNCLAIMED, dtype=np.intp)
        unresolved = self.claim_best(preferences, claims)
        report.contested = len(unresolved)

        while self.retry_flag:
            report.retry_rounds += 1
            if report.retry_rounds > len(self.swarm):
                msg = (
                    f"movement retry loop exceeded {len(self.swarm)} rounds "
                    f"with {len(unresolved)} bugs unresolved"
                )
                raise RuntimeError(msg)
            unresolved = self.claim_any_free(unresolved, preferences, claims)

        report.moved = self.commit()
        if report.retry_rounds:
            logger.debug(
                "%d bugs contested, resolved in %d retry rounds",
                report.contested,
                report.retry_rounds,
            )
        return report

    def prepare(self) -> NDArray[np.bool_]:
        """Reset per-pass state and snapshot the occupancy of every cell."""
        self.retry_flag = False
        self.swarm.pending_target.fill(NO_TARGET)
        return self.world.occupancy_mask()

    def score(self, occupied: NDArray[np.bool_]) -> list[list[int]]:
        """Rank candidate cells for every bug.

        Args:
            occupied: Occupancy snapshot taken by ``prepare``.

        Returns:
            Per bug, the cells it may claim ordered from most to least
            wanted.  The bug's own cell is always present.
        """
        heat = self.world.heat.current.reshape(-1)
        count = len(self.swarm)
        if self.workers <= 1 or count < 2:
            return [self._rank(i, heat, occupied) for i in range(count)]

        bounds = np.linspace(0, count, num=min(self.workers, count) + 1, dtype=int)
        chunks = [range(lo, hi) for lo, hi in zip(bounds[:-1], bounds[1:])]
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            ranked = pool.map(
                lambda chunk: [self._rank(i, heat, occupied) for i in chunk],
                chunks,
            )
            return [prefs for part in ranked for prefs in part]

    def claim_best(
        self,
        preferences: list[list[int]],
        claims: NDArray[np.intp],
    ) -> list[int]:
        """Best-place attempt: every bug claims its first choice.

        Returns:
            Indices of the bugs that lost their claim, ascending.
        """
        losers: list[int] = []
        for i, prefs in enumerate(preferences):
            if not self._claim(i, prefs[0], claims):
                losers.append(i)
        return losers

    def claim_any_free(
        self,
        unresolved: list[int],
        preferences: list[list[int]],
        claims: NDArray[np.intp],
    ) -> list[int]:
        """One any-free-place round for the bugs still unresolved.

        Each bug targets its best candidate that was unclaimed when the
        round began, then claims in ascending index.

        Returns:
            Bugs that are still unresolved after the round.
        """
        self.retry_flag = False
        snapshot = claims.copy()
        losers: list[int] = []
        for i in unresolved:
            target = next(c for c in preferences[i] if snapshot[c] == UNCLAIMED)
            if not self._claim(i, target, claims):
                losers.append(i)
        return losers

    def commit(self) -> int:
        """Move every bug to its claimed cell and refresh unhappiness.

        Returns:
            Number of bugs that changed cell.
        """
        swarm = self.swarm
        moved = np.flatnonzero(swarm.pending_target != swarm.position)
        for i in moved:
            self.world.vacate(int(swarm.position[i]))
        for i in moved:
            self.world.occupy(int(swarm.pending_target[i]), swarm.occupant(int(i)))
            swarm.position[i] = swarm.pending_target[i]
        swarm.pending_target.fill(NO_TARGET)
        compute_unhappiness(swarm, self.world.heat)
        return len(moved)

    def _claim(self, bug: int, cell: int, claims: NDArray[np.intp]) -> bool:
        """Compare-and-set claim of ``cell``; raises the retry flag on loss."""
        if claims[cell] != UNCLAIMED:
            self.retry_flag = True
            return False
        claims[cell] = bug
        self.swarm.pending_target[bug] = cell
        return True

    def _rank(
        self,
        bug: int,
        heat: NDArray[np.float64],
        occupied: NDArray[np.bool_],
    ) -> list[int]:
        """Order bug ``bug``'s own cell and free neighbours by preference."""
        position = int(self.swarm.position[bug])
        ideal = float(self.swarm.ideal_temperature[bug])

        free: list[int] = []
        for cell in self._neighbours[position]:
            cell = int(cell)
            if not occupied[cell] and cell not in free:
                free.append(cell)

        candidates = [position, *free]
        # sorted() is stable, so ties keep enumeration order (own cell first).
        ranked = sorted(candidates, key=lambda c: abs(heat[c] - ideal))

        # One draw per bug per pass keeps the stream aligned across runs.
        rng = self.rng_bank[bug]
        roll = rng.random() * 100.0
        if roll < self.random_move_chance and free:
            pick = free[int(rng.integers(len(free)))]
            ranked.remove(pick)
            ranked.insert(0, pick)
        return ranked
