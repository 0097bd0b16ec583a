"""
Simulation clocks.

Iterating a clock yields ``(time, dt)`` where ``time`` is the elapsed time
after the step of length ``dt`` has been taken. Iteration ends once the next
step would pass ``tmax``; a ``tmax`` of ``None`` or ``0`` never ends. Call
``renew()`` before reusing a clock for another trial.
"""

from __future__ import annotations

import math
from typing import Iterator

from .errors import ConfigurationError

MIN_DT = 1e-15


def _check_tmax(tmax: float | None) -> float:
    if tmax is None:
        return math.inf
    if tmax < 0.0:
        raise ConfigurationError(f"tmax must be non-negative, got {tmax}")
    return math.inf if tmax == 0.0 else float(tmax)


class ConstStep:
    def __init__(self, dt: float, tmax: float | None = None):
        if dt < MIN_DT:
            raise ConfigurationError(f"time step {dt} is below the minimum {MIN_DT}")
        self.dt = float(dt)
        self.tmax = _check_tmax(tmax)
        self.current = 0.0

    def __repr__(self) -> str:
        return f"ConstStep(dt={self.dt}, tmax={self.tmax})"

    def set_tmax(self, tmax: float | None) -> None:
        self.tmax = _check_tmax(tmax)

    def renew(self) -> None:
        self.current = 0.0

    def __iter__(self) -> Iterator[tuple[float, float]]:
        while True:
            nxt = self.current + self.dt
            if nxt > self.tmax:
                return
            self.current = nxt
            yield nxt, self.dt


class ExponentialStep:
    """
    Step that starts at ``dt_min`` and is multiplied by ``inc`` after every
    ``length`` steps until it reaches ``dt_max``.
    """

    def __init__(
        self,
        dt_min: float,
        dt_max: float,
        length: int,
        inc: float | None = None,
        tmax: float | None = None,
    ):
        if dt_min < MIN_DT:
            raise ConfigurationError(f"time step {dt_min} is below the minimum {MIN_DT}")
        if dt_max < dt_min:
            raise ConfigurationError(f"dt_max={dt_max} is smaller than dt_min={dt_min}")
        if length < 1:
            raise ConfigurationError(f"length must be at least 1, got {length}")
        if inc is None:
            if length == 1:
                inc = 1.2
            elif length < 10:
                inc = length / 2.0
            else:
                inc = 10.0
        if inc <= 1.0:
            raise ConfigurationError(f"increment factor must exceed 1, got {inc}")
        self.dt_min = float(dt_min)
        self.dt_max = float(dt_max)
        self.length = int(length)
        self.inc = float(inc)
        self.tmax = _check_tmax(tmax)
        self.renew()

    def __repr__(self) -> str:
        return (
            f"ExponentialStep(dt_min={self.dt_min}, dt_max={self.dt_max}, "
            f"length={self.length}, inc={self.inc}, tmax={self.tmax})"
        )

    def set_tmax(self, tmax: float | None) -> None:
        self.tmax = _check_tmax(tmax)

    def renew(self) -> None:
        self.current = 0.0
        self.count = 0
        self.dt = self.dt_min

    def __iter__(self) -> Iterator[tuple[float, float]]:
        while True:
            if self.count == self.length and self.dt < self.dt_max:
                self.dt = min(self.dt * self.inc, self.dt_max)
                self.count = 0
            nxt = self.current + self.dt
            if nxt > self.tmax:
                return
            self.count += 1
            self.current = nxt
            yield nxt, self.dt


Clock = ConstStep | ExponentialStep


__all__ = ["ConstStep", "ExponentialStep", "Clock", "MIN_DT"]
