"""Residual norms and the convergence decision."""

import enum
import logging
from dataclasses import dataclass

import numpy as np

log = logging.getLogger(__name__)


class Status(enum.Enum):
    """Outcome of evaluating one iteration."""

    CONTINUE = "continue"
    CONVERGED = "converged"
    DIVERGED = "diverged"
    MAX_ITERATIONS = "max_iterations"

    @property
    def terminal(self) -> bool:
        return self is not Status.CONTINUE


@dataclass(frozen=True)
class Residuals:
    """L2-type norms of one iteration.

    err_u, err_v, err_p are sqrt(dx*dy*dt * sum((next - current)^2));
    err_d is the signed sum of the discrete divergence of the new velocity
    field (no square root); total is the largest of the four.
    """

    err_u: float
    err_v: float
    err_p: float
    err_d: float
    total: float

    @classmethod
    def from_sums(cls, sums, weight: float):
        """Build from the globally reduced (sum_u, sum_v, sum_p, sum_d)."""
        sum_u, sum_v, sum_p, sum_d = (float(s) for s in sums)
        err_u = np.sqrt(weight * sum_u)
        err_v = np.sqrt(weight * sum_v)
        err_p = np.sqrt(weight * sum_p)
        errs = np.array([err_u, err_v, err_p, sum_d])
        # np.max propagates NaN from any component
        return cls(
            err_u=float(err_u),
            err_v=float(err_v),
            err_p=float(err_p),
            err_d=sum_d,
            total=float(np.max(errs)),
        )

    def as_dict(self) -> dict:
        return {
            "residual": self.total,
            "u_residual": self.err_u,
            "v_residual": self.err_v,
            "p_residual": self.err_p,
            "continuity_residual": self.err_d,
        }


class ConvergenceMonitor:
    """Decide whether the pseudo-time iteration continues.

    Parameters
    ----------
    tolerance : float
        Converged once the total residual is at or below this value.
    max_iterations : int
        Hard iteration cap.
    is_root : bool
        Only the root rank logs the terminal decision.
    """

    def __init__(self, tolerance: float, max_iterations: int, is_root: bool = True):
        if tolerance <= 0:
            raise ValueError(f"Tolerance must be positive, got {tolerance}")
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")
        self.tolerance = tolerance
        self.max_iterations = max_iterations
        self.is_root = is_root

    def evaluate(self, iteration: int, residuals: Residuals) -> Status:
        """Classify iteration ``iteration`` (1-based) from its residuals."""
        if not np.isfinite(residuals.total):
            if self.is_root:
                log.error(f"Solution diverged after {iteration} iterations")
            return Status.DIVERGED
        if residuals.total <= self.tolerance:
            if self.is_root:
                log.info(f"Converged after {iteration} iterations")
            return Status.CONVERGED
        if iteration >= self.max_iterations:
            if self.is_root:
                log.error(f"Maximum number of iterations, {iteration}, exceeded")
            return Status.MAX_ITERATIONS
        return Status.CONTINUE
