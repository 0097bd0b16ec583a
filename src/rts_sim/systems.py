"""
Bounded simulation domains.

Each domain answers four questions for a searcher:

- ``contains(pos)``: is the point inside the domain?
- ``sample_uniform(rng)``: draw a point uniformly inside.
- ``reflect(pos, step)``: move ``pos`` by ``step`` in place, bringing it back
  inside if the straight step leaves the domain.
- ``position_outside()``: a sentinel point that is never inside.

The geometry kernels are numba functions on raw float64 arrays. They report
failure through their boolean return value; the Python wrappers turn a failed
reflection into ``StepTooLarge``.

For the circular/spherical domain two reflections are provided. The exact one
intersects the segment ``pos -> pos + step`` with the sphere at parameter
``t`` and mirrors the remaining ``(1 - t) * step`` about the tangent plane:

    r = |pos|, d = |step|, q = pos . step
    t = (-q + sqrt(q^2 + d^2 (r0^2 - r^2))) / d^2
    k = (1 - t)(q + t d^2) / r0^2
    pos' = (1 - 2k) pos + (1 - 2kt) step

The approximate one, used by default, rescales the overshooting point
radially: ``pos' = (2 r0 - s) / s * (pos + step)`` with ``s = |pos + step|``.
Both agree to first order in ``|step| / r0``.
"""

from __future__ import annotations

import math
from enum import Enum

import numpy as np
from numba import njit

from .errors import ConfigurationError, DimensionMismatch, StepTooLarge
from .position import Position
from .random_source import RandomSource


class SystemType(Enum):
    CIRCULAR = "circular"
    CUBIC = "cubic"
    CYLINDRICAL = "cylindrical"


class BoundaryCond(Enum):
    REFLECTIVE = "reflective"
    PERIODIC = "periodic"
    MIXED = "mixed"


####################################################################################################
# Kernels
####################################################################################################


@njit(cache=True)
def _norm_first(x, n):
    total = 0.0
    for i in range(n):
        total += x[i] * x[i]
    return math.sqrt(total)


@njit(cache=True)
def circ_contains(x, r0):
    return _norm_first(x, x.shape[0]) <= r0


@njit(cache=True)
def circ_reflect_approx(x, step, r0):
    """Add ``step`` to ``x`` and rescale radially if it left the sphere."""
    for i in range(x.shape[0]):
        x[i] += step[i]
    s = _norm_first(x, x.shape[0])
    if s <= r0:
        return True
    factor = (2.0 * r0 - s) / s
    for i in range(x.shape[0]):
        x[i] *= factor
    return _norm_first(x, x.shape[0]) <= r0


@njit(cache=True)
def circ_reflect_exact(x, step, r0):
    """Specular reflection of the step ``x -> x + step`` off the sphere of radius r0."""
    n = x.shape[0]
    r2 = 0.0
    d2 = 0.0
    q = 0.0
    s2 = 0.0
    for i in range(n):
        r2 += x[i] * x[i]
        d2 += step[i] * step[i]
        q += x[i] * step[i]
        y = x[i] + step[i]
        s2 += y * y
    if math.sqrt(s2) <= r0:
        for i in range(n):
            x[i] += step[i]
        return True
    if d2 == 0.0:
        return False

    t = (-q + math.sqrt(q * q + d2 * (r0 * r0 - r2))) / d2
    k = (1.0 - t) * (q + t * d2) / (r0 * r0)
    a = 1.0 - 2.0 * k
    b = 1.0 - 2.0 * k * t
    for i in range(n):
        x[i] = a * x[i] + b * step[i]
    return _norm_first(x, n) <= r0


@njit(cache=True)
def cubic_contains(x, half_length):
    for i in range(x.shape[0]):
        if abs(x[i]) > half_length:
            return False
    return True


@njit(cache=True)
def cubic_move(x, step, half_length, periodic):
    for i in range(x.shape[0]):
        x[i] += step[i]
        if abs(x[i]) <= half_length:
            continue
        if periodic:
            if x[i] > 0.0:
                x[i] -= 2.0 * half_length
            else:
                x[i] += 2.0 * half_length
        else:
            if x[i] > 0.0:
                x[i] = 2.0 * half_length - x[i]
            else:
                x[i] = -2.0 * half_length - x[i]
    return cubic_contains(x, half_length)


@njit(cache=True)
def cyl_contains(x, cyl_dim, radius, length):
    if _norm_first(x, cyl_dim) > radius:
        return False
    for i in range(cyl_dim, x.shape[0]):
        if abs(x[i]) > length:
            return False
    return True


@njit(cache=True)
def cyl_move(x, step, cyl_dim, radius, length):
    for i in range(x.shape[0]):
        x[i] += step[i]
    s = _norm_first(x, cyl_dim)
    if s > radius:
        factor = (2.0 * radius - s) / s
        for i in range(cyl_dim):
            x[i] *= factor
    for i in range(cyl_dim, x.shape[0]):
        if x[i] > length:
            x[i] -= 2.0 * length
        elif x[i] < -length:
            x[i] += 2.0 * length
    return cyl_contains(x, cyl_dim, radius, length)


####################################################################################################
# Domains
####################################################################################################


class _System:
    system_type: SystemType
    boundary: BoundaryCond
    dim: int

    def check_dim(self, pos: Position) -> None:
        if pos.dim != self.dim:
            raise DimensionMismatch(self.dim, pos.dim)

    def sample_uniform(self, rng: RandomSource) -> Position:
        pos = Position.zeros(self.dim)
        self.sample_uniform_into(rng, pos)
        return pos

    def _step_too_large(self, step: Position) -> StepTooLarge:
        return StepTooLarge(
            f"step of length {step.norm():.4g} cannot be resolved by one reflection "
            f"in {self}; reduce the time step"
        )


class CircularSystem(_System):
    """Disk (dim=2) or ball (dim>=3) of radius ``radius`` centred at the origin."""

    system_type = SystemType.CIRCULAR
    boundary = BoundaryCond.REFLECTIVE

    def __init__(self, radius: float, dim: int, exact_reflection: bool = False):
        if radius <= 0.0:
            raise ConfigurationError(f"system radius must be positive, got {radius}")
        if dim <= 0:
            raise ConfigurationError(f"dimension must be positive, got {dim}")
        self.radius = float(radius)
        self.dim = int(dim)
        self.exact_reflection = bool(exact_reflection)

    def __repr__(self) -> str:
        return f"CircularSystem(radius={self.radius}, dim={self.dim})"

    def contains(self, pos: Position) -> bool:
        self.check_dim(pos)
        return bool(circ_contains(pos.coords, self.radius))

    def sample_uniform_into(self, rng: RandomSource, out: Position) -> None:
        # Rejection from the bounding hypercube.
        self.check_dim(out)
        while True:
            rng.fill_uniform(out, -self.radius, self.radius)
            if circ_contains(out.coords, self.radius):
                return

    def position_outside(self) -> Position:
        return Position(np.full(self.dim, 2.0 * self.radius))

    def reflect(self, pos: Position, step: Position) -> None:
        if self.exact_reflection:
            self.reflect_exact(pos, step)
        else:
            self.reflect_approx(pos, step)

    def reflect_approx(self, pos: Position, step: Position) -> None:
        self.check_dim(pos)
        self.check_dim(step)
        if not circ_reflect_approx(pos.coords, step.coords, self.radius):
            raise self._step_too_large(step)

    def reflect_exact(self, pos: Position, step: Position) -> None:
        self.check_dim(pos)
        self.check_dim(step)
        if not circ_reflect_exact(pos.coords, step.coords, self.radius):
            raise self._step_too_large(step)


class CubicSystem(_System):
    """Hypercube ``[-L, L]^dim`` with a reflective or periodic boundary."""

    system_type = SystemType.CUBIC

    def __init__(
        self,
        half_length: float,
        dim: int,
        boundary: BoundaryCond = BoundaryCond.REFLECTIVE,
    ):
        if half_length <= 0.0:
            raise ConfigurationError(f"half length must be positive, got {half_length}")
        if dim <= 0:
            raise ConfigurationError(f"dimension must be positive, got {dim}")
        if boundary not in (BoundaryCond.REFLECTIVE, BoundaryCond.PERIODIC):
            raise ConfigurationError(f"cubic system cannot use {boundary.value} boundary")
        self.half_length = float(half_length)
        self.dim = int(dim)
        self.boundary = boundary

    def __repr__(self) -> str:
        return (
            f"CubicSystem(half_length={self.half_length}, dim={self.dim}, "
            f"boundary={self.boundary.value})"
        )

    def contains(self, pos: Position) -> bool:
        self.check_dim(pos)
        return bool(cubic_contains(pos.coords, self.half_length))

    def sample_uniform_into(self, rng: RandomSource, out: Position) -> None:
        self.check_dim(out)
        rng.fill_uniform(out, -self.half_length, self.half_length)

    def position_outside(self) -> Position:
        return Position(np.full(self.dim, 2.0 * self.half_length))

    def reflect(self, pos: Position, step: Position) -> None:
        self.check_dim(pos)
        self.check_dim(step)
        periodic = self.boundary is BoundaryCond.PERIODIC
        if not cubic_move(pos.coords, step.coords, self.half_length, periodic):
            raise self._step_too_large(step)


class CylindricalSystem(_System):
    """
    Cylinder whose first ``cyl_dim`` axes form a reflective disk/ball of
    ``radius`` and whose remaining axes are periodic on ``[-length, length]``.
    """

    system_type = SystemType.CYLINDRICAL
    boundary = BoundaryCond.MIXED

    def __init__(self, cyl_dim: int, radius: float, length: float, dim: int):
        if dim <= 0:
            raise ConfigurationError(f"dimension must be positive, got {dim}")
        if not 0 < cyl_dim <= dim:
            raise ConfigurationError(
                f"cylinder dimension must lie in 1..{dim}, got {cyl_dim}"
            )
        if radius <= 0.0 or length <= 0.0:
            raise ConfigurationError(
                f"cylinder radius and length must be positive, got {radius}, {length}"
            )
        self.cyl_dim = int(cyl_dim)
        self.radius = float(radius)
        self.length = float(length)
        self.dim = int(dim)

    def __repr__(self) -> str:
        return (
            f"CylindricalSystem(cyl_dim={self.cyl_dim}, radius={self.radius}, "
            f"length={self.length}, dim={self.dim})"
        )

    def contains(self, pos: Position) -> bool:
        self.check_dim(pos)
        return bool(cyl_contains(pos.coords, self.cyl_dim, self.radius, self.length))

    def sample_uniform_into(self, rng: RandomSource, out: Position) -> None:
        self.check_dim(out)
        rng.fill_uniform(out, -self.length, self.length)
        disk = out.coords[: self.cyl_dim]
        while True:
            rng.generator.random(out=disk)
            disk *= -2.0 * self.radius
            disk += self.radius
            if _norm_first(disk, self.cyl_dim) < self.radius:
                return

    def position_outside(self) -> Position:
        out = np.full(self.dim, 2.0 * self.length)
        out[: self.cyl_dim] = 2.0 * self.radius
        return Position(out)

    def reflect(self, pos: Position, step: Position) -> None:
        self.check_dim(pos)
        self.check_dim(step)
        if not cyl_move(pos.coords, step.coords, self.cyl_dim, self.radius, self.length):
            raise self._step_too_large(step)


System = CircularSystem | CubicSystem | CylindricalSystem


def make_system(
    system_type: SystemType,
    size: float,
    dim: int,
    *,
    boundary: BoundaryCond = BoundaryCond.REFLECTIVE,
    length: float = 0.0,
    cyl_dim: int = 0,
    exact_reflection: bool = False,
) -> System:
    """Build a domain from its tag; ``size`` is the radius or cube half length."""
    if system_type is SystemType.CIRCULAR:
        if boundary is not BoundaryCond.REFLECTIVE:
            raise ConfigurationError("circular system supports only a reflective boundary")
        return CircularSystem(size, dim, exact_reflection=exact_reflection)
    if system_type is SystemType.CUBIC:
        return CubicSystem(size, dim, boundary)
    if system_type is SystemType.CYLINDRICAL:
        return CylindricalSystem(cyl_dim, size, length, dim)
    raise ConfigurationError(f"unknown system type {system_type!r}")


__all__ = [
    "SystemType",
    "BoundaryCond",
    "CircularSystem",
    "CubicSystem",
    "CylindricalSystem",
    "System",
    "make_system",
    "circ_reflect_exact",
    "circ_reflect_approx",
]
