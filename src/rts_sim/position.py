"""
Fixed-dimension coordinate vectors.

``Position`` wraps a contiguous float64 array. Every binary operation checks
that both operands share a dimension and raises ``DimensionMismatch``
otherwise. Mutating variants (``iadd``, ``isub``, ``scale``, ``clear``,
``assign``) write into the existing buffer and are meant for the per-step hot
loop; the operators ``+``, ``-`` and ``*`` allocate a new vector.
"""

from __future__ import annotations

import math
import numbers
from typing import Iterable

import numpy as np
from numba import njit

from .errors import ConfigurationError, DimensionMismatch


@njit(cache=True)
def _dot(a, b):
    total = 0.0
    for i in range(a.shape[0]):
        total += a[i] * b[i]
    return total


@njit(cache=True)
def _dist(a, b):
    total = 0.0
    for i in range(a.shape[0]):
        d = a[i] - b[i]
        total += d * d
    return math.sqrt(total)


class Position:
    __slots__ = ("coords",)

    # numpy scalars and arrays defer to the operators below.
    __array_ufunc__ = None

    def __init__(self, coords: Iterable[float] | np.ndarray):
        self.coords = np.array(coords, dtype=np.float64).reshape(-1)

    @classmethod
    def zeros(cls, dim: int) -> "Position":
        if dim <= 0:
            raise ConfigurationError(f"dimension must be positive, got {dim}")
        return cls(np.zeros(dim, dtype=np.float64))

    @classmethod
    def from_str(cls, text: str) -> "Position":
        """
        Parse ``"1:2"``, ``"1,2"`` or ``"(1, 2)"`` into a Position.
        """
        body = text.strip().strip("()")
        parts = [p.strip() for p in body.replace(":", ",").split(",")]
        if not body or any(p == "" for p in parts):
            raise ConfigurationError(f"cannot parse position from {text!r}")
        try:
            return cls([float(p) for p in parts])
        except ValueError as exc:
            raise ConfigurationError(f"cannot parse position from {text!r}") from exc

    # ------------------------------------------------------------------ basics

    @property
    def dim(self) -> int:
        return self.coords.shape[0]

    def __len__(self) -> int:
        return self.coords.shape[0]

    def __getitem__(self, idx):
        return self.coords[idx]

    def __setitem__(self, idx, value) -> None:
        self.coords[idx] = value

    def __iter__(self):
        return iter(self.coords.tolist())

    def __eq__(self, other) -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return self.dim == other.dim and bool(np.array_equal(self.coords, other.coords))

    def __repr__(self) -> str:
        return f"Position({self.coords.tolist()})"

    def __str__(self) -> str:
        return ",".join(repr(float(x)) for x in self.coords)

    def copy(self) -> "Position":
        return Position(self.coords.copy())

    def check_dim(self, other: "Position") -> None:
        if not isinstance(other, Position):
            raise TypeError(f"expected a Position, got {type(other).__name__}")
        if other.dim != self.dim:
            raise DimensionMismatch(self.dim, other.dim)

    # ---------------------------------------------------------------- geometry

    def norm(self) -> float:
        return math.sqrt(_dot(self.coords, self.coords))

    def inner(self, other: "Position") -> float:
        self.check_dim(other)
        return float(_dot(self.coords, other.coords))

    def distance(self, other: "Position") -> float:
        self.check_dim(other)
        return float(_dist(self.coords, other.coords))

    # -------------------------------------------------------------- allocating

    def __add__(self, other: "Position") -> "Position":
        if not isinstance(other, Position):
            return NotImplemented
        self.check_dim(other)
        return Position(self.coords + other.coords)

    def __sub__(self, other: "Position") -> "Position":
        if not isinstance(other, Position):
            return NotImplemented
        self.check_dim(other)
        return Position(self.coords - other.coords)

    def __mul__(self, scalar: float) -> "Position":
        if not isinstance(scalar, numbers.Real):
            return NotImplemented
        return Position(self.coords * float(scalar))

    __rmul__ = __mul__

    def __neg__(self) -> "Position":
        return Position(-self.coords)

    # ---------------------------------------------------------------- in place

    def iadd(self, other: "Position") -> None:
        self.check_dim(other)
        self.coords += other.coords

    def isub(self, other: "Position") -> None:
        self.check_dim(other)
        self.coords -= other.coords

    def scale(self, scalar: float) -> None:
        self.coords *= scalar

    def clear(self) -> None:
        self.coords.fill(0.0)

    def assign(self, other: "Position") -> None:
        """Overwrite this vector's coordinates with ``other``'s."""
        self.check_dim(other)
        self.coords[:] = other.coords

    def __iadd__(self, other: "Position") -> "Position":
        self.iadd(other)
        return self

    def __isub__(self, other: "Position") -> "Position":
        self.isub(other)
        return self

    def __imul__(self, scalar: float) -> "Position":
        self.scale(scalar)
        return self


__all__ = ["Position"]
