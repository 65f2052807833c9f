"""Staggered-grid artificial-compressibility building blocks.

The solver itself lives in :mod:`solvers.staggered.solver`; it is not
imported here because it depends on :mod:`solvers.base`, which in turn uses
the convergence monitor from this package.
"""

from .grid import StaggeredSolverFields, allocate, field_shapes, cell_centered
from .boundary import BoundaryApplier
from .comm import (
    Communicator,
    SerialCommunicator,
    ThreadGroup,
    ThreadCommunicator,
    MPICommunicator,
    create_communicator,
)
from .partition import Partition, DomainPartition, decompose_rows
from .kernels import KernelSet, get_kernels
from .convergence import Status, Residuals, ConvergenceMonitor

__all__ = [
    "StaggeredSolverFields",
    "allocate",
    "field_shapes",
    "cell_centered",
    "BoundaryApplier",
    "Communicator",
    "SerialCommunicator",
    "ThreadGroup",
    "ThreadCommunicator",
    "MPICommunicator",
    "create_communicator",
    "Partition",
    "DomainPartition",
    "decompose_rows",
    "KernelSet",
    "get_kernels",
    "Status",
    "Residuals",
    "ConvergenceMonitor",
]
