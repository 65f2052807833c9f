"""Lid-driven cavity solver framework.

Solver Hierarchy:
-----------------
LidDrivenCavitySolver (abstract base - defines problem and iteration loop)
└── StaggeredACSolver (finite differences, artificial compressibility,
                       staggered grid, optional row decomposition)
"""

from .base import LidDrivenCavitySolver
from .datastructures import (
    Parameters,
    ACParameters,
    SimulationParameters,
    BoundaryConditions,
    CavityBoundaryConditions,
    Metrics,
    Fields,
    TimeSeries,
)
from .exceptions import (
    SolverError,
    AllocationError,
    DivergenceError,
    NonConvergenceError,
    CommunicationError,
)
from .staggered.solver import StaggeredACSolver


__all__ = [
    # Base solver
    "LidDrivenCavitySolver",
    # Data structures
    "Parameters",
    "ACParameters",
    "SimulationParameters",
    "BoundaryConditions",
    "CavityBoundaryConditions",
    "Metrics",
    "Fields",
    "TimeSeries",
    # Errors
    "SolverError",
    "AllocationError",
    "DivergenceError",
    "NonConvergenceError",
    "CommunicationError",
    # Staggered AC solver
    "StaggeredACSolver",
]
