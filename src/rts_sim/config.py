"""
Configuration dataclasses for a target-search run.

One dataclass per component (domain, target, searchers, clock) plus a
top-level ``SimulationConfig`` nesting them. Each component validates its own
fields and knows how to build the runtime object it describes. Configurations
load from nested dicts or from JSON/TOML files via ``utils.load_params``.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Dict

from . import utils
from .errors import ConfigurationError
from .linked_list import LinkedList
from .position import Position
from .random_source import RandomSource, derive_seed
from .searchers import (
    ExponentialInteraction,
    IndependentSearcher,
    InteractingSearcher,
    Interaction,
    LennardJonesInteraction,
    MergeableSearcher,
    SpecificPosition,
    parse_init_type,
    parse_move_type,
)
from .systems import BoundaryCond, System, SystemType, make_system
from .targets import Target, TargetType, make_target
from .time_steps import Clock, ConstStep, ExponentialStep

SEARCHER_KINDS = ("independent", "mergeable", "exponential", "lennard_jones")
TIME_KINDS = ("constant", "exponential")


def _enum(enum_cls: type[Enum], value: str, what: str):
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError as exc:
        choices = ", ".join(m.value for m in enum_cls)
        raise ConfigurationError(f"unknown {what} {value!r}; expected one of {choices}") from exc


@dataclass
class SystemConfig:
    shape: str = "circular"
    size: float = 10.0
    dim: int = 2
    boundary: str = "reflective"
    length: float = 0.0
    cyl_dim: int = 0
    exact_reflection: bool = False

    @property
    def system_type(self) -> SystemType:
        return _enum(SystemType, self.shape, "system shape")

    @property
    def boundary_cond(self) -> BoundaryCond:
        return _enum(BoundaryCond, self.boundary, "boundary condition")

    def validate(self) -> None:
        if self.dim <= 0:
            raise ConfigurationError(f"dimension must be positive, got {self.dim}")
        if self.size <= 0.0:
            raise ConfigurationError(f"system size must be positive, got {self.size}")
        _enum(SystemType, self.shape, "system shape")
        _enum(BoundaryCond, self.boundary, "boundary condition")

    def build(self) -> System:
        self.validate()
        return make_system(
            self.system_type,
            self.size,
            self.dim,
            boundary=self.boundary_cond,
            length=self.length,
            cyl_dim=self.cyl_dim,
            exact_reflection=self.exact_reflection,
        )


@dataclass
class TargetConfig:
    kind: str = "bulk"
    size: float = 1.0
    center: str | list[float] | None = None

    @property
    def target_type(self) -> TargetType:
        return _enum(TargetType, self.kind, "target type")

    def center_position(self, dim: int) -> Position:
        if self.center is None:
            return Position.zeros(dim)
        if isinstance(self.center, str):
            pos = Position.from_str(self.center)
        else:
            pos = Position(self.center)
        if pos.dim != dim:
            raise ConfigurationError(f"target centre {pos} does not have dimension {dim}")
        return pos

    def validate(self) -> None:
        if self.size <= 0.0:
            raise ConfigurationError(f"target size must be positive, got {self.size}")
        _enum(TargetType, self.kind, "target type")

    def build(self, dim: int) -> Target:
        self.validate()
        return make_target(self.target_type, self.center_position(dim), self.size)


@dataclass
class SearcherConfig:
    kind: str = "independent"
    num_searcher: int = 1
    move: str = "1.0"
    init: str = "uniform"
    # mergeable
    radius: float = 0.05
    alpha: float = 1.0
    # interacting
    gamma: float = 1.0
    strength: float = 1.0
    ptl_size: float = 1.0
    max_displacement: float | None = None

    def validate(self) -> None:
        if self.kind not in SEARCHER_KINDS:
            raise ConfigurationError(
                f"unknown searcher kind {self.kind!r}; expected one of {', '.join(SEARCHER_KINDS)}"
            )
        if self.num_searcher < 1:
            raise ConfigurationError(f"need at least one searcher, got {self.num_searcher}")
        if self.max_displacement is not None and self.max_displacement <= 0.0:
            raise ConfigurationError(
                f"max_displacement must be positive, got {self.max_displacement}"
            )
        parse_move_type(self.move)
        parse_init_type(self.init)

    @property
    def interacting(self) -> bool:
        return self.kind in ("exponential", "lennard_jones")

    def interaction(self, dim: int) -> Interaction:
        if self.kind == "exponential":
            return ExponentialInteraction(dim, self.gamma, self.strength)
        if self.kind == "lennard_jones":
            return LennardJonesInteraction(self.ptl_size, self.strength)
        raise ConfigurationError(f"searcher kind {self.kind!r} has no interaction")

    def displacement_limit(self, target_size: float) -> float:
        """Largest displacement an interacting searcher may take in one step."""
        if self.max_displacement is not None:
            return self.max_displacement
        scale = self.gamma if self.kind == "exponential" else self.ptl_size
        return min(scale, 0.1 * target_size)

    def build(self, system: System, target: Target, rng: RandomSource) -> LinkedList:
        """Create ``num_searcher`` searchers already placed for a first trial."""
        self.validate()
        mtype = parse_move_type(self.move)
        itype = parse_init_type(self.init)
        if isinstance(itype, SpecificPosition) and itype.pos.dim != system.dim:
            raise ConfigurationError(
                f"initial position {itype.pos} does not have dimension {system.dim}"
            )
        searchers = LinkedList()
        for _ in range(self.num_searcher):
            start = system.position_outside()
            if self.kind == "independent":
                searcher = IndependentSearcher(mtype, start, itype)
            elif self.kind == "mergeable":
                searcher = MergeableSearcher(
                    mtype, start, itype, radius=self.radius, alpha=self.alpha
                )
            else:
                searcher = InteractingSearcher(
                    mtype, start, itype, interaction=self.interaction(system.dim)
                )
            searcher.renew(system, target, rng)
            searchers.push(searcher)
        return searchers


@dataclass
class TimeConfig:
    kind: str = "constant"
    dt: float = 1e-2
    dt_max: float = 1.0
    length: int = 10
    inc: float | None = None
    tmax: float = 0.0

    def validate(self) -> None:
        if self.kind not in TIME_KINDS:
            raise ConfigurationError(
                f"unknown time step kind {self.kind!r}; expected one of {', '.join(TIME_KINDS)}"
            )

    def build(self) -> Clock:
        self.validate()
        if self.kind == "constant":
            return ConstStep(self.dt, self.tmax)
        return ExponentialStep(self.dt, self.dt_max, self.length, self.inc, self.tmax)


_SECTIONS = {
    "system": SystemConfig,
    "target": TargetConfig,
    "searcher": SearcherConfig,
    "time": TimeConfig,
}


@dataclass
class SimulationConfig:
    system: SystemConfig = field(default_factory=SystemConfig)
    target: TargetConfig = field(default_factory=TargetConfig)
    searcher: SearcherConfig = field(default_factory=SearcherConfig)
    time: TimeConfig = field(default_factory=TimeConfig)
    num_ensemble: int = 1000
    idx_set: int = 0
    seed: int = 12345
    output_dir: str = "results"
    verbose: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"unknown configuration keys: {sorted(unknown)}")
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            section = _SECTIONS.get(key)
            if section is not None and isinstance(value, dict):
                try:
                    value = section(**value)
                except TypeError as exc:
                    raise ConfigurationError(f"invalid [{key}] section: {exc}") from exc
            kwargs[key] = value
        config = cls(**kwargs)
        config.validate()
        return config

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "SimulationConfig":
        try:
            data = utils.load_params(path)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> None:
        self.system.validate()
        self.target.validate()
        self.searcher.validate()
        self.time.validate()
        if self.num_ensemble < 1:
            raise ConfigurationError(f"num_ensemble must be positive, got {self.num_ensemble}")
        if self.seed < 0:
            raise ConfigurationError(f"seed must be non-negative, got {self.seed}")
        if self.target.size >= self.system.size:
            raise ConfigurationError(
                f"target size {self.target.size} must be smaller than system size {self.system.size}"
            )

    def _seed_params(self) -> tuple[float, ...]:
        s = self.searcher
        if s.kind == "mergeable":
            a, b = s.alpha, s.radius
        elif s.interacting:
            a, b = s.strength, s.gamma if s.kind == "exponential" else s.ptl_size
        else:
            a, b = 0.0, 0.0
        return (
            self.system.size,
            self.system.dim,
            self.target.size,
            s.num_searcher,
            a,
            b,
            self.idx_set,
        )

    def trial_seed(self) -> int:
        """Seed of this parameter set, distinct for every ``idx_set``."""
        return derive_seed(self.seed, *self._seed_params())

    def describe(self) -> Dict[str, Any]:
        """Flat, human-readable description used in output headers."""
        s = self.searcher
        out: Dict[str, Any] = {
            "system_type": self.system.shape,
            "sys_size": self.system.size,
            "dim": self.system.dim,
            "boundary": self.system.boundary,
            "exact_reflection": self.system.exact_reflection,
            "target_type": self.target.kind,
            "target_size": self.target.size,
            "target_pos": str(self.target.center_position(self.system.dim)),
            "searcher": s.kind,
            "num_searcher": s.num_searcher,
            "move": str(parse_move_type(s.move)),
            "init": str(parse_init_type(s.init)),
        }
        if self.system.shape == "cylindrical":
            out["length"] = self.system.length
            out["cyl_dim"] = self.system.cyl_dim
        if s.kind == "mergeable":
            out["radius"] = s.radius
            out["alpha"] = s.alpha
        elif s.kind == "exponential":
            out["gamma"] = s.gamma
            out["strength"] = s.strength
        elif s.kind == "lennard_jones":
            out["ptl_size"] = s.ptl_size
            out["strength"] = s.strength
        out["time_step"] = self.time.kind
        out["dt"] = self.time.dt
        if self.time.kind == "exponential":
            out["dt_max"] = self.time.dt_max
            out["length"] = self.time.length
        out["tmax"] = self.time.tmax
        out["num_ensemble"] = self.num_ensemble
        out["idx_set"] = self.idx_set
        out["seed"] = self.seed
        return out

    def file_fields(self) -> Dict[str, Any]:
        """Parameters that distinguish output file names."""
        fields_ = {
            "sys_size": self.system.size,
            "dim": self.system.dim,
            "target_size": self.target.size,
            "num_searcher": self.searcher.num_searcher,
        }
        if self.searcher.kind == "mergeable":
            fields_["alpha"] = self.searcher.alpha
            fields_["radius"] = self.searcher.radius
        elif self.searcher.interacting:
            fields_["strength"] = self.searcher.strength
            if self.searcher.kind == "exponential":
                fields_["gamma"] = self.searcher.gamma
            else:
                fields_["ptl_size"] = self.searcher.ptl_size
        fields_["dt"] = self.time.dt
        fields_["num_ensemble"] = self.num_ensemble
        fields_["idx_set"] = self.idx_set
        return fields_


__all__ = [
    "SystemConfig",
    "TargetConfig",
    "SearcherConfig",
    "TimeConfig",
    "SimulationConfig",
    "SEARCHER_KINDS",
    "TIME_KINDS",
]
