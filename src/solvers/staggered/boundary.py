"""Boundary conditions for the staggered cavity grid.

Velocities are Dirichlet on all four walls; pressure is Neumann
(grad[p] = 0 unless a gradient is prescribed), realised by mirroring the
nearest interior value into the halo.
"""

import numpy as np

from ..datastructures import CavityBoundaryConditions


class BoundaryApplier:
    """Enforce cavity boundary conditions on one partition's buffers, in place.

    Parameters
    ----------
    conditions : CavityBoundaryConditions
        Edge values for u, v (Dirichlet) and p (normal gradient).
    dx, dy : float
        Grid spacing, used to scale prescribed pressure gradients.
    is_bottom, is_top : bool
        Whether this partition owns the bottom wall / the lid. Interior
        partition edges are ghost rows filled by the halo exchange instead.
    """

    def __init__(
        self,
        conditions: CavityBoundaryConditions,
        dx: float,
        dy: float,
        is_bottom: bool = True,
        is_top: bool = True,
    ):
        self.conditions = conditions
        self.dx = dx
        self.dy = dy
        self.is_bottom = is_bottom
        self.is_top = is_top

    def apply_velocity(self, u: np.ndarray, v: np.ndarray):
        """Dirichlet values on u and v; side walls win at the corners."""
        ubc = self.conditions.u
        if self.is_bottom:
            u[:, 0] = ubc.bottom
        if self.is_top:
            u[:, -1] = ubc.top
        u[0, :] = ubc.left
        u[-1, :] = ubc.right

        vbc = self.conditions.v
        if self.is_bottom:
            v[:, 0] = vbc.bottom
        if self.is_top:
            v[:, -1] = vbc.top
        v[0, :] = vbc.left
        v[-1, :] = vbc.right

    def apply_pressure(self, p: np.ndarray):
        """Mirror interior pressure into the halo.

        Rows first, then full columns, so each corner picks up its diagonal
        interior neighbour.
        """
        pbc = self.conditions.p
        if self.is_bottom:
            p[1:-1, 0] = p[1:-1, 1] + pbc.bottom * self.dy
        if self.is_top:
            p[1:-1, -1] = p[1:-1, -2] + pbc.top * self.dy
        p[0, :] = p[1, :] + pbc.left * self.dx
        p[-1, :] = p[-2, :] + pbc.right * self.dx

    def apply(self, u: np.ndarray, v: np.ndarray, p: np.ndarray):
        self.apply_velocity(u, v)
        self.apply_pressure(p)
