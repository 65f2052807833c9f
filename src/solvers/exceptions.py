"""Exception hierarchy for the staggered-grid solver."""


class SolverError(RuntimeError):
    """Base class for fatal solver failures."""


class AllocationError(SolverError):
    """A grid buffer could not be allocated."""


class DivergenceError(SolverError):
    """The residual became non-finite."""

    def __init__(self, iteration: int):
        super().__init__(f"Solution diverged after {iteration} iterations")
        self.iteration = iteration


class NonConvergenceError(SolverError):
    """The iteration cap was reached before the tolerance was met."""

    def __init__(self, iteration: int, residual: float):
        super().__init__(
            f"Maximum number of iterations, {iteration}, exceeded "
            f"(residual {residual:.3e})"
        )
        self.iteration = iteration
        self.residual = residual


class CommunicationError(SolverError):
    """A ghost-row exchange or reduction between partitions failed."""
