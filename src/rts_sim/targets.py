"""
Target regions searched for by the particles.

Both target kinds are balls; a bulk target sits inside the domain while a
boundary target is centred on the domain edge. A searcher has found the
target once its distance to the centre is strictly below the radius.
"""

from __future__ import annotations

from enum import Enum

from .errors import ConfigurationError
from .position import Position


class TargetType(Enum):
    BULK = "bulk"
    BOUNDARY = "boundary"


class _BallTarget:
    target_type: TargetType

    def __init__(self, center: Position, radius: float):
        if radius <= 0.0:
            raise ConfigurationError(f"target radius must be positive, got {radius}")
        self.center = center.copy()
        self.radius = float(radius)

    @property
    def dim(self) -> int:
        return self.center.dim

    def __repr__(self) -> str:
        return f"{type(self).__name__}(center={self.center}, radius={self.radius})"

    def distance(self, pos: Position) -> float:
        return self.center.distance(pos)

    def contains(self, pos: Position) -> bool:
        return self.center.distance(pos) < self.radius


class BulkTarget(_BallTarget):
    target_type = TargetType.BULK


class BoundaryTarget(_BallTarget):
    target_type = TargetType.BOUNDARY


Target = BulkTarget | BoundaryTarget


def make_target(target_type: TargetType, center: Position, radius: float) -> Target:
    if target_type is TargetType.BULK:
        return BulkTarget(center, radius)
    if target_type is TargetType.BOUNDARY:
        return BoundaryTarget(center, radius)
    raise ConfigurationError(f"unknown target type {target_type!r}")


__all__ = ["TargetType", "BulkTarget", "BoundaryTarget", "Target", "make_target"]
