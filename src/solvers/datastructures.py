"""Data structures for solver configuration and results.

Structure:
- Parameters: Input configuration (logged to MLflow at start)
- SimulationParameters: Derived, immutable run constants shared by all components
- BoundaryConditions: Edge values per physical quantity
- Metrics: Output results (logged to MLflow at end)
- Fields: Spatial solution data
- TimeSeries: Convergence history
"""

from dataclasses import dataclass, asdict
from typing import Optional, List, Tuple

import numpy as np
import pandas as pd


# ========================================================
# Parameters (Input Configuration)
# ========================================================


@dataclass
class Parameters:
    """Base solver parameters - input configuration for all solvers."""

    Re: float = 100
    lid_velocity: float = 1.0
    Lx: float = 1.0
    Ly: float = 1.0
    nx: int = 128
    ny: int = 128
    max_iterations: int = 1_000_000
    tolerance: float = 1e-7
    method: str = ""

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        """Flatten to MLflow-friendly params (None values dropped)."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class ACParameters(Parameters):
    """Artificial-compressibility parameters.

    ``CFL`` and ``c2`` default to the Reynolds-number regime table
    (see :func:`select_regime`) when left as None.
    """

    CFL: Optional[float] = None
    c2: Optional[float] = None  # artificial sound speed squared
    parallel: bool = True  # numba prange kernels
    backend: str = "serial"  # "serial" or "mpi"
    log_every: int = 1000
    method: str = "FD-AC-Staggered"


# ========================================================
# Derived simulation constants
# ========================================================


def select_regime(Re: float) -> Tuple[float, float]:
    """Return (cfl, c2) for a Reynolds number."""
    if Re < 500:
        return 0.15, 5.0
    if Re < 2000:
        return 0.20, 5.8
    return 0.05, 5.8


@dataclass(frozen=True)
class BoundaryConditions:
    """Boundary values for one quantity, ordered top, left, bottom, right."""

    top: float = 0.0
    left: float = 0.0
    bottom: float = 0.0
    right: float = 0.0

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.top, self.left, self.bottom, self.right)


@dataclass(frozen=True)
class CavityBoundaryConditions:
    """Dirichlet velocity and Neumann (gradient) pressure conditions."""

    u: BoundaryConditions
    v: BoundaryConditions
    p: BoundaryConditions

    @classmethod
    def lid_driven(cls, lid_velocity: float = 1.0):
        """Moving lid on top, no-slip walls, zero pressure gradient."""
        return cls(
            u=BoundaryConditions(top=lid_velocity),
            v=BoundaryConditions(),
            p=BoundaryConditions(),
        )


@dataclass(frozen=True)
class SimulationParameters:
    """Run constants derived once from the input parameters.

    Attributes
    ----------
    dx, dy : float
        Grid spacing, L / (n - 1).
    dt : float
        Pseudo-time step, cfl * min(dx, dy) / lid_velocity.
    nu : float
        Kinematic viscosity, lid_velocity * L / Re.
    c2 : float
        Artificial compressibility (sound speed squared).
    """

    nx: int
    ny: int
    dx: float
    dy: float
    dt: float
    nu: float
    c2: float
    cfl: float
    Re: float
    lid_velocity: float
    tolerance: float
    max_iterations: int

    @classmethod
    def from_parameters(cls, params: ACParameters):
        if params.nx < 3 or params.ny < 3:
            raise ValueError(f"Grid must have at least 3x3 nodes, got {params.nx}x{params.ny}")
        if params.Re <= 0:
            raise ValueError(f"Reynolds number must be positive, got {params.Re}")
        if params.lid_velocity == 0:
            raise ValueError("Lid velocity must be non-zero")

        cfl, c2 = select_regime(params.Re)
        if params.CFL is not None:
            cfl = params.CFL
        if params.c2 is not None:
            c2 = params.c2

        dx = params.Lx / (params.nx - 1)
        dy = params.Ly / (params.ny - 1)
        return cls(
            nx=params.nx,
            ny=params.ny,
            dx=dx,
            dy=dy,
            dt=cfl * min(dx, dy) / params.lid_velocity,
            nu=params.lid_velocity * params.Lx / params.Re,
            c2=c2,
            cfl=cfl,
            Re=params.Re,
            lid_velocity=params.lid_velocity,
            tolerance=params.tolerance,
            max_iterations=params.max_iterations,
        )

    @property
    def dtdx(self) -> float:
        return self.dt / self.dx

    @property
    def dtdy(self) -> float:
        return self.dt / self.dy

    @property
    def dtdxx(self) -> float:
        return self.dt / (self.dx * self.dx)

    @property
    def dtdyy(self) -> float:
        return self.dt / (self.dy * self.dy)

    @property
    def dtdxdy(self) -> float:
        return self.dt * self.dx * self.dy


# ========================================================
# Metrics (Output Results)
# ========================================================


@dataclass
class Metrics:
    """Solver metrics - output results computed during/after solving."""

    iterations: int = 0
    converged: bool = False
    status: str = "not_started"
    final_residual: float = float("inf")
    wall_time_seconds: float = 0.0
    u_residual: float = 0.0
    v_residual: float = 0.0
    p_residual: float = 0.0
    continuity_residual: float = 0.0

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        """Numeric metrics only (MLflow rejects strings)."""
        return {
            k: float(v) for k, v in asdict(self).items() if not isinstance(v, str)
        }


# ========================================================
# Fields (Spatial Solution Data)
# ========================================================


@dataclass
class Fields:
    """Cell-centred solution fields (u, v, p) on grid nodes (x, y)."""

    u: np.ndarray
    v: np.ndarray
    p: np.ndarray
    x: np.ndarray
    y: np.ndarray

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per grid point."""
        return pd.DataFrame(asdict(self))


# ========================================================
# Time Series (Convergence History)
# ========================================================


@dataclass
class TimeSeries:
    """Convergence history (one value per stored iteration)."""

    iteration: List[int]
    residual: List[float]
    u_residual: List[float]
    v_residual: List[float]
    p_residual: List[float]
    continuity_residual: List[float]

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per iteration."""
        return pd.DataFrame({k: v for k, v in asdict(self).items() if v is not None})

    def to_mlflow_batch(self) -> list:
        """Build MLflow Metric entities for a single ``log_batch`` call."""
        from mlflow.entities import Metric

        batch = []
        for name in ("residual", "u_residual", "v_residual", "p_residual", "continuity_residual"):
            values = getattr(self, name)
            for step, value in zip(self.iteration, values):
                if np.isfinite(value):
                    batch.append(Metric(key=f"ts_{name}", value=float(value), timestamp=0, step=int(step)))
        return batch
