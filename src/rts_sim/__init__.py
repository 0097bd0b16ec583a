"""
Random Target Search Simulation Library

Brownian searchers confined to a bounded domain look for a fixed target; the
quantity of interest is the first-passage-time distribution. Searchers may
merge into slower clusters on contact or repel each other through a pairwise
potential.

- SearchSimulator / run_model: ensemble driver
- LinkedList: arena-backed searcher container with single and pair cursors
- CircularSystem, CubicSystem, CylindricalSystem: domains with reflection
- SimulationConfig and its component configs
"""

from .errors import (
    ConfigurationError,
    DimensionMismatch,
    HorizonExceeded,
    InvalidIndex,
    SimulationError,
    StepTooLarge,
    UnsupportedMoveType,
)
from .position import Position
from .random_source import RandomSource, derive_seed
from .linked_list import LinkedList, Node
from .systems import (
    BoundaryCond,
    CircularSystem,
    CubicSystem,
    CylindricalSystem,
    SystemType,
    make_system,
)
from .targets import BoundaryTarget, BulkTarget, TargetType, make_target
from .searchers import (
    Brownian,
    ExponentialInteraction,
    IndependentSearcher,
    InteractingSearcher,
    LennardJonesInteraction,
    Levy,
    MergeableSearcher,
    SpecificPosition,
    UniformInit,
)
from .time_steps import ConstStep, ExponentialStep
from .config import (
    SearcherConfig,
    SimulationConfig,
    SystemConfig,
    TargetConfig,
    TimeConfig,
)
from .simulation import SearchSimulator, TrialPhase, run_model
from . import utils

__all__ = [
    # Simulation
    "SearchSimulator",
    "TrialPhase",
    "run_model",
    # Configuration classes
    "SimulationConfig",
    "SystemConfig",
    "TargetConfig",
    "SearcherConfig",
    "TimeConfig",
    # Core structures
    "Position",
    "RandomSource",
    "derive_seed",
    "LinkedList",
    "Node",
    "SystemType",
    "BoundaryCond",
    "CircularSystem",
    "CubicSystem",
    "CylindricalSystem",
    "make_system",
    "TargetType",
    "BulkTarget",
    "BoundaryTarget",
    "make_target",
    "Brownian",
    "Levy",
    "UniformInit",
    "SpecificPosition",
    "IndependentSearcher",
    "MergeableSearcher",
    "InteractingSearcher",
    "ExponentialInteraction",
    "LennardJonesInteraction",
    "ConstStep",
    "ExponentialStep",
    # Errors
    "SimulationError",
    "DimensionMismatch",
    "InvalidIndex",
    "StepTooLarge",
    "UnsupportedMoveType",
    "ConfigurationError",
    "HorizonExceeded",
    # Utilities
    "utils",
]
