"""
Exception hierarchy for the target-search simulator.

Every error raised by the package derives from ``SimulationError`` and from the
builtin exception it refines, so callers may catch either.
"""

from __future__ import annotations


class SimulationError(Exception):
    """Base class for all simulator errors."""


class DimensionMismatch(SimulationError, ValueError):
    """Operands of a vector operation have different dimensions."""

    def __init__(self, expected: int, got: int):
        super().__init__(f"dimension mismatch: expected {expected}, got {got}")
        self.expected = expected
        self.got = got


class InvalidIndex(SimulationError, IndexError):
    """Delete or merge on a dead or out-of-range container slot."""


class StepTooLarge(SimulationError, RuntimeError):
    """A single reflection could not bring the particle back inside the domain."""


class UnsupportedMoveType(SimulationError, NotImplementedError):
    """The motion rule is declared but not implemented for this searcher."""


class ConfigurationError(SimulationError, ValueError):
    """Malformed or inconsistent simulation parameters."""


class HorizonExceeded(SimulationError, RuntimeError):
    """A trial reached its time horizon without any searcher finding the target."""

    def __init__(self, tmax: float):
        super().__init__(f"no capture before time horizon tmax={tmax}")
        self.tmax = tmax


__all__ = [
    "SimulationError",
    "DimensionMismatch",
    "InvalidIndex",
    "StepTooLarge",
    "UnsupportedMoveType",
    "ConfigurationError",
    "HorizonExceeded",
]
