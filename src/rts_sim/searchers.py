"""
Searchers: particles that move randomly until one of them finds the target.

Three kinds share the same seeding and motion code:

- ``IndependentSearcher``: plain Brownian walker.
- ``MergeableSearcher``: carries a cluster size ``n``; two searchers closer
  than the sum of their contact radii merge and the survivor diffuses with
  ``D_n = D_1 * n**(-alpha)``.
- ``InteractingSearcher``: feels a pairwise repulsive force from every other
  searcher through an ``ExponentialInteraction`` or ``LennardJonesInteraction``.

Motion and initial placement rules are small frozen dataclasses matched
exhaustively where they are consumed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .errors import ConfigurationError, UnsupportedMoveType
from .position import Position
from .random_source import RandomSource
from .systems import System
from .targets import Target


####################################################################################################
# Move and init rules
####################################################################################################


@dataclass(frozen=True)
class Brownian:
    coeff: float = 1.0

    def __post_init__(self):
        if not self.coeff > 0.0:
            raise ConfigurationError(f"diffusion coefficient must be positive, got {self.coeff}")

    def __str__(self) -> str:
        return f"Brownian(D={self.coeff})"


@dataclass(frozen=True)
class Levy:
    """Levy flight; declared so configurations can name it, never simulated."""

    def __str__(self) -> str:
        return "Levy"


MoveType = Brownian | Levy


@dataclass(frozen=True)
class UniformInit:
    def __str__(self) -> str:
        return "Uniform"


@dataclass(frozen=True)
class SpecificPosition:
    pos: Position

    def __str__(self) -> str:
        return str(self.pos)


InitType = UniformInit | SpecificPosition


def parse_move_type(text: str) -> MoveType:
    """
    Parse ``"1.0"``, ``"brownian"``, ``"brownian:0.5"`` or ``"levy"``.
    """
    key = text.strip().lower()
    if key == "levy":
        return Levy()
    if key.startswith("brownian"):
        _, _, key = key.partition(":")
        key = key or "1.0"
    try:
        coeff = float(key)
    except ValueError as exc:
        raise ConfigurationError(f"cannot parse move type from {text!r}") from exc
    return Brownian(coeff)


def parse_init_type(text: str) -> InitType:
    """Parse ``"uniform"`` or a position such as ``"0:0"``."""
    if text.strip().lower() == "uniform":
        return UniformInit()
    return SpecificPosition(Position.from_str(text))


def step_length(mtype: MoveType, dt: float) -> float:
    """Per-axis standard deviation of a single displacement."""
    if isinstance(mtype, Brownian):
        return math.sqrt(2.0 * mtype.coeff * dt)
    if isinstance(mtype, Levy):
        raise UnsupportedMoveType("Levy flights are not provided by this simulator")
    raise UnsupportedMoveType(f"unknown move type {mtype!r}")


####################################################################################################
# Searchers
####################################################################################################


class IndependentSearcher:
    def __init__(self, mtype: MoveType, pos: Position, itype: InitType = UniformInit()):
        self.mtype = mtype
        self.pos = pos.copy()
        self.itype = itype

    @classmethod
    def new_uniform(
        cls, system: System, target: Target, rng: RandomSource, mtype: MoveType, **kwargs
    ):
        """Create a searcher placed uniformly in ``system`` and outside ``target``."""
        searcher = cls(mtype, system.position_outside(), UniformInit(), **kwargs)
        searcher.renew(system, target, rng)
        return searcher

    @property
    def dim(self) -> int:
        return self.pos.dim

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.mtype}, pos={self.pos})"

    def renew(self, system: System, target: Target, rng: RandomSource) -> None:
        """Reset the searcher to a fresh initial position for a new trial."""
        if isinstance(self.itype, SpecificPosition):
            if not system.contains(self.itype.pos):
                raise ConfigurationError(
                    f"initial position {self.itype.pos} lies outside {system!r}"
                )
            self.pos.assign(self.itype.pos)
            return
        while True:
            system.sample_uniform_into(rng, self.pos)
            if not target.contains(self.pos):
                return

    def random_move(self, rng: RandomSource, dt: float) -> Position:
        out = Position.zeros(self.dim)
        self.random_move_into(rng, dt, out)
        return out

    def random_move_into(self, rng: RandomSource, dt: float, out: Position) -> None:
        """Accumulate one random displacement over ``dt`` into ``out``."""
        rng.add_gaussian(out, 0.0, step_length(self.mtype, dt))


class MergeableSearcher(IndependentSearcher):
    def __init__(
        self,
        mtype: MoveType,
        pos: Position,
        itype: InitType = UniformInit(),
        *,
        radius: float,
        alpha: float,
        size: int = 1,
    ):
        if radius <= 0.0:
            raise ConfigurationError(f"contact radius must be positive, got {radius}")
        if size < 1:
            raise ConfigurationError(f"cluster size must be at least 1, got {size}")
        super().__init__(mtype, pos, itype)
        self.base_move = mtype
        self.radius = float(radius)
        self.alpha = float(alpha)
        self.size = int(size)
        self._refresh_move()

    def __repr__(self) -> str:
        return f"MergeableSearcher({self.mtype}, pos={self.pos}, size={self.size})"

    def _refresh_move(self) -> None:
        if not isinstance(self.base_move, Brownian):
            raise UnsupportedMoveType(f"{self.base_move} searchers cannot form clusters")
        self.mtype = Brownian(self.base_move.coeff * self.size ** (-self.alpha))

    @property
    def diffusion(self) -> float:
        return self.mtype.coeff

    def renew(self, system: System, target: Target, rng: RandomSource) -> None:
        super().renew(system, target, rng)
        self.size = 1
        self._refresh_move()

    def add_size(self, size: int) -> None:
        self.size += int(size)
        self._refresh_move()

    def merge(self, other: "MergeableSearcher") -> None:
        self.add_size(other.size)

    def touches(self, other: "MergeableSearcher") -> bool:
        return self.pos.distance(other.pos) < self.radius + other.radius


####################################################################################################
# Interactions
####################################################################################################


@dataclass(frozen=True)
class ExponentialInteraction:
    """Screened repulsion ``V(r) = c exp(-r / gamma)`` normalised per dimension."""

    dim: int
    gamma: float
    strength: float

    def __post_init__(self):
        if self.dim not in (2, 3):
            raise ConfigurationError(
                f"exponential interaction is defined for dim 2 or 3, got {self.dim}"
            )
        if self.gamma <= 0.0:
            raise ConfigurationError(f"gamma must be positive, got {self.gamma}")

    @property
    def coeff_potential(self) -> float:
        if self.dim == 2:
            return self.strength / (2.0 * math.pi * self.gamma**2)
        return self.strength / (8.0 * math.pi * self.gamma**3)

    @property
    def coeff_force(self) -> float:
        return self.coeff_potential / self.gamma

    def potential(self, r: float) -> float:
        return self.coeff_potential * math.exp(-r / self.gamma)

    def force(self, r: float) -> float:
        return self.coeff_force * math.exp(-r / self.gamma)


@dataclass(frozen=True)
class LennardJonesInteraction:
    ptl_size: float
    strength: float

    def __post_init__(self):
        if self.ptl_size <= 0.0:
            raise ConfigurationError(f"particle size must be positive, got {self.ptl_size}")

    def potential(self, r: float) -> float:
        x6 = (self.ptl_size / r) ** 6
        return 4.0 * self.strength * x6 * (x6 - 1.0)

    def force(self, r: float) -> float:
        x = self.ptl_size / r
        x6 = x**6
        return 24.0 * self.strength / self.ptl_size * x6 * x * (2.0 * x6 - 1.0)


Interaction = ExponentialInteraction | LennardJonesInteraction


class InteractingSearcher(IndependentSearcher):
    def __init__(
        self,
        mtype: MoveType,
        pos: Position,
        itype: InitType = UniformInit(),
        *,
        interaction: Interaction,
    ):
        super().__init__(mtype, pos, itype)
        self.interaction = interaction

    def force(self, r: float) -> float:
        return self.interaction.force(r)

    def potential(self, r: float) -> float:
        return self.interaction.potential(r)

    def direction_into(self, other: "InteractingSearcher", out: Position) -> float:
        """
        Write the unit vector pointing from ``self`` to ``other`` into ``out``
        and return their distance. Coincident searchers give a zero vector.
        """
        self.pos.check_dim(other.pos)
        np.subtract(other.pos.coords, self.pos.coords, out=out.coords)
        distance = out.norm()
        if distance > 0.0:
            out.scale(1.0 / distance)
        return distance


__all__ = [
    "Brownian",
    "Levy",
    "MoveType",
    "UniformInit",
    "SpecificPosition",
    "InitType",
    "parse_move_type",
    "parse_init_type",
    "step_length",
    "IndependentSearcher",
    "MergeableSearcher",
    "InteractingSearcher",
    "ExponentialInteraction",
    "LennardJonesInteraction",
    "Interaction",
]
