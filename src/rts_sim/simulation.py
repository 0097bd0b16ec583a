"""
First-passage-time simulation of random target search.

One trial seeds every searcher uniformly in the domain (outside the target),
then advances the clock. In every step each live searcher takes a random
displacement, is reflected back into the domain if needed, and is checked
against the target; the first capture ends the trial and its elapsed time is
the first-passage time (FPT). Mergeable ensembles additionally scan every live
pair after each step and merge touching searchers. Interacting ensembles add
pairwise forces to the random displacements before moving.

``StepTooLarge`` from the domain propagates out of a trial unchanged, and a
trial that reaches the clock horizon without a capture raises
``HorizonExceeded``.

``SearchSimulator`` repeats trials over an ensemble, reusing the same searcher
container by renewing its slots between trials.
It reports its progress through ``TrialPhase``: a mergeable trial moves to
``MERGED`` once any pair has merged and stays there until the capture.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Callable

import numpy as np

from . import utils
from .config import SimulationConfig
from .errors import HorizonExceeded
from .linked_list import LinkedList
from .position import Position
from .random_source import RandomSource
from .systems import System
from .targets import Target
from .time_steps import Clock


class TrialPhase(Enum):
    IDLE = "idle"
    SEEDING = "seeding"
    STEPPING = "stepping"
    MERGED = "merged"
    FOUND = "found"
    FINISHED = "finished"


####################################################################################################
# Trial building blocks
####################################################################################################


def seed_searchers(
    system: System, target: Target, searchers: LinkedList, rng: RandomSource
) -> None:
    """Renew every slot, dead or alive, and relink the whole container."""
    for searcher in searchers.contents:
        searcher.renew(system, target, rng)
    searchers.connect_all()


def move_searchers(
    system: System,
    target: Target,
    searchers: LinkedList,
    rng: RandomSource,
    dt: float,
    buffer: Position,
) -> bool:
    """Move every live searcher once; return True as soon as one finds the target."""
    for _, searcher in searchers.iter_single():
        buffer.clear()
        searcher.random_move_into(rng, dt, buffer)
        system.reflect(searcher.pos, buffer)
        if target.contains(searcher.pos):
            return True
    return False


def merge_contacts(searchers: LinkedList) -> int:
    """Merge every live pair in contact; return the number of merges."""
    merged = 0
    for i, s1, j, s2 in searchers.iter_pairs():
        if s1.touches(s2):
            searchers.merge(i, j)
            merged += 1
    return merged


def apply_interactions(
    searchers: LinkedList, moves: list[Position], dt: float, direction: Position
) -> None:
    """Accumulate pairwise force displacements into ``moves`` (indexed by slot)."""
    for i, s1, j, s2 in searchers.iter_pairs():
        distance = s1.direction_into(s2, direction)
        if distance == 0.0:
            continue
        direction.scale(s1.force(distance) * dt)
        moves[i].isub(direction)
        moves[j].iadd(direction)


def first_passage_time(
    system: System,
    target: Target,
    searchers: LinkedList,
    clock: Clock,
    rng: RandomSource,
    *,
    merge: bool = False,
    on_merge: Callable[[int], None] | None = None,
) -> float:
    """
    Step until a searcher finds the target and return the elapsed time.

    With ``merge`` set, touching pairs merge after every step and ``on_merge``
    (if given) receives the number of merges whenever it is non-zero.
    """
    clock.renew()
    buffer = Position.zeros(system.dim)
    for elapsed, dt in clock:
        if move_searchers(system, target, searchers, rng, dt, buffer):
            return elapsed
        if merge:
            merged = merge_contacts(searchers)
            if merged and on_merge is not None:
                on_merge(merged)
    raise HorizonExceeded(clock.tmax)


def interacting_first_passage_time(
    system: System,
    target: Target,
    searchers: LinkedList,
    clock: Clock,
    rng: RandomSource,
    max_displacement: float,
) -> float:
    clock.renew()
    moves = [Position.zeros(system.dim) for _ in range(searchers.capacity)]
    direction = Position.zeros(system.dim)
    for elapsed, dt in clock:
        for move in moves:
            move.clear()
        apply_interactions(searchers, moves, dt, direction)
        for idx, searcher in searchers.iter_single():
            move = moves[idx]
            searcher.random_move_into(rng, dt, move)
            length = move.norm()
            if length > max_displacement:
                move.scale(max_displacement / length)
            system.reflect(searcher.pos, move)
            if target.contains(searcher.pos):
                return elapsed
    raise HorizonExceeded(clock.tmax)


####################################################################################################
# Ensemble driver
####################################################################################################


class SearchSimulator:
    """
    Ensemble driver for one parameter set.

    The domain, target, clock, searcher container and random source are built
    once from the configuration and reused across all trials.
    """

    def __init__(self, config: SimulationConfig | None = None):
        self.config = config or SimulationConfig()
        self.config.validate()
        self.seed = self.config.trial_seed()
        self.rng = RandomSource(self.seed)
        self.system = self.config.system.build()
        self.target = self.config.target.build(self.system.dim)
        self.clock = self.config.time.build()
        self.searchers = self.config.searcher.build(self.system, self.target, self.rng)
        self.phase = TrialPhase.IDLE
        self.trial_merges = 0
        self.fpts: np.ndarray | None = None

    def _record_merges(self, count: int) -> None:
        self.trial_merges += count
        self.phase = TrialPhase.MERGED

    def run_trial(self) -> float:
        """Run a single trial and return its first-passage time."""
        searcher_cfg = self.config.searcher
        self.phase = TrialPhase.SEEDING
        self.trial_merges = 0
        seed_searchers(self.system, self.target, self.searchers, self.rng)
        self.phase = TrialPhase.STEPPING
        if searcher_cfg.interacting:
            fpt = interacting_first_passage_time(
                self.system,
                self.target,
                self.searchers,
                self.clock,
                self.rng,
                searcher_cfg.displacement_limit(self.config.target.size),
            )
        else:
            fpt = first_passage_time(
                self.system,
                self.target,
                self.searchers,
                self.clock,
                self.rng,
                merge=searcher_cfg.kind == "mergeable",
                on_merge=self._record_merges,
            )
        self.phase = TrialPhase.FOUND
        return fpt

    def run(self, writer: utils.FptWriter | None = None) -> utils.FptResult:
        """
        Run ``num_ensemble`` trials, streaming each FPT to ``writer`` if given.
        """
        n = int(self.config.num_ensemble)
        fpts = np.empty(n, dtype=np.float64)
        start_time = time.time()
        report_every = max(1, n // 10)

        for k in range(n):
            fpt = self.run_trial()
            fpts[k] = fpt
            if writer is not None:
                writer.write(fpt)
            if self.config.verbose and (k + 1) % report_every == 0:
                elapsed = time.time() - start_time
                print(
                    f"[rts] Trial {k + 1}/{n}, mfpt={fpts[: k + 1].mean():.5e}, "
                    f"elapsed={elapsed:.1f}s"
                )

        self.phase = TrialPhase.FINISHED
        self.fpts = fpts
        meta = self.config.describe()
        meta["trial_seed"] = int(self.seed)
        meta["time_elapsed"] = time.time() - start_time
        return utils.FptResult(fpts=fpts, meta=meta)


def run_model(params: SimulationConfig | dict | None = None) -> utils.FptResult:
    """
    Run a full ensemble and return its first-passage times.
    """
    if params is None:
        params = SimulationConfig()
    elif isinstance(params, dict):
        params = SimulationConfig.from_dict(params)
    return SearchSimulator(params).run()


__all__ = [
    "TrialPhase",
    "seed_searchers",
    "move_searchers",
    "merge_contacts",
    "apply_interactions",
    "first_passage_time",
    "interacting_first_passage_time",
    "SearchSimulator",
    "run_model",
]
