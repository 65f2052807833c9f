"""Artificial-compressibility finite-difference solver on a staggered grid.

Pseudo-time marching of

    P_t + c^2 div[u] = 0
    u_t + u . grad[u] = - grad[P] + nu div[grad[u]]

to steady state, optionally split into horizontal bands across ranks.
"""

import logging

import numpy as np

from ..base import LidDrivenCavitySolver
from ..datastructures import (
    ACParameters,
    CavityBoundaryConditions,
    Fields,
    SimulationParameters,
)
from .boundary import BoundaryApplier
from .comm import ThreadCommunicator, create_communicator
from .convergence import Residuals
from .grid import StaggeredSolverFields, cell_centered
from .kernels import get_kernels
from .partition import DomainPartition

log = logging.getLogger(__name__)


class StaggeredACSolver(LidDrivenCavitySolver):
    """Explicit artificial-compressibility solver.

    Parameters
    ----------
    params : ACParameters, optional
        Solver configuration; built from ``kwargs`` when omitted.
    comm : Communicator, optional
        Partition channel. Defaults to the backend named in ``params``.
    """

    Parameters = ACParameters

    def __init__(self, params=None, comm=None, **kwargs):
        super().__init__(params, **kwargs)

        self.sim = SimulationParameters.from_parameters(self.params)
        self.comm = comm if comm is not None else create_communicator(self.params.backend)
        self.domain = DomainPartition(self.sim.ny, self.comm)
        self.is_root = self.comm.is_root

        # numba's parallel layer is not safe to enter from several threads
        use_parallel = self.params.parallel and not isinstance(self.comm, ThreadCommunicator)
        self.kernels = get_kernels(use_parallel)

        is_top = self.domain.is_top
        n_rows = self.domain.n_rows
        self.arrays = StaggeredSolverFields.allocate(self.sim.nx, n_rows, is_top)
        self.arrays.initialize(self.sim.lid_velocity, is_top)

        self.boundary = BoundaryApplier(
            CavityBoundaryConditions.lid_driven(self.sim.lid_velocity),
            self.sim.dx,
            self.sim.dy,
            is_bottom=self.domain.is_bottom,
            is_top=is_top,
        )

        # Local update limits (exclusive)
        self._j_hi_u = n_rows + 1
        self._j_hi_p = n_rows + 1
        self._j_hi_v = n_rows + 1 - (1 if is_top else 0)
        self._j_hi_res = self._j_hi_v

        # Ghost rows must agree with the neighbours before the first step
        for buf in (self.arrays.u, self.arrays.v, self.arrays.p):
            self.domain.exchange(buf)

        if self.is_root:
            log.info(
                f"Initialized staggered AC solver: {self.sim.nx}x{self.sim.ny} nodes, "
                f"Re={self.sim.Re}, CFL={self.sim.cfl}, c2={self.sim.c2}, "
                f"dt={self.sim.dt:.4e}, ranks={self.comm.size}, "
                f"kernels={'parallel' if use_parallel else 'serial'}"
            )

    def step(self) -> Residuals:
        """One pseudo-time iteration on this rank's band."""
        a = self.arrays
        sim = self.sim
        k = self.kernels

        self.boundary.apply(a.u, a.v, a.p)

        k.momentum(
            a.u, a.v, a.p, a.u_next, a.v_next,
            sim.dtdx, sim.dtdy, sim.dtdxx, sim.dtdyy, sim.nu,
            self._j_hi_u, self._j_hi_v,
        )
        self.boundary.apply_velocity(a.u_next, a.v_next)
        self.domain.exchange(a.u_next)
        self.domain.exchange(a.v_next)

        k.continuity(a.p, a.u_next, a.v_next, a.p_next, sim.c2, sim.dtdx, sim.dtdy, self._j_hi_p)
        self.boundary.apply_pressure(a.p_next)
        self.domain.exchange(a.p_next)

        local = k.residual_sums(
            a.u, a.v, a.p, a.u_next, a.v_next, a.p_next, sim.dtdx, sim.dtdy, self._j_hi_res
        )
        sums = self.domain.allreduce_sum(local)

        a.swap()
        return Residuals.from_sums(sums, sim.dtdxdy)

    def gather_global(self):
        """Assemble the global staggered (u, v, p) on the root rank.

        Returns None on the other ranks.
        """
        u = self.domain.gather(self.arrays.u, has_top_row=True)
        v = self.domain.gather(self.arrays.v, has_top_row=False)
        p = self.domain.gather(self.arrays.p, has_top_row=True)
        if not self.is_root:
            return None
        return u, v, p

    def _finalize_fields(self):
        """Interpolate the converged solution to the grid nodes (root only)."""
        gathered = self.gather_global()
        if gathered is None:
            return
        u_c, v_c, p_c = cell_centered(*gathered)

        x = np.arange(self.sim.nx) * self.sim.dx
        y = np.arange(self.sim.ny) * self.sim.dy
        X, Y = np.meshgrid(x, y, indexing="ij")
        self.fields = Fields(
            u=u_c.ravel(),
            v=v_c.ravel(),
            p=p_c.ravel(),
            x=X.ravel(),
            y=Y.ravel(),
        )

    def _release(self):
        if not self.arrays.released:
            self.arrays.release()
