"""Staggered (Arakawa-C) grid storage.

Layout for an ``nx x ny`` node grid, arrays indexed ``[i, j]`` with ``i``
along x and ``j`` along y:

- u : (nx, ny + 1)      vertical faces, walls at i = 0 and i = nx - 1,
                        ghost rows at j = 0 and j = ny
- v : (nx + 1, ny)      horizontal faces, walls at j = 0 and j = ny - 1,
                        ghost columns at i = 0 and i = nx
- p : (nx + 1, ny + 1)  cell centres with a one-cell halo

A partition owning ``n_rows`` interior cell rows stores ``n_rows + 2`` rows
of u and p (one ghost/boundary row on each side) and the same for v, except
on the partition holding the lid, where v has no row above the top wall.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np

from ..exceptions import AllocationError

log = logging.getLogger(__name__)


def allocate(rows: int, cols: int) -> np.ndarray:
    """Allocate a zero-initialised float64 buffer of shape (rows, cols)."""
    try:
        return np.zeros((rows, cols), dtype=np.float64)
    except MemoryError as exc:
        raise AllocationError(f"Could not allocate a {rows}x{cols} grid buffer") from exc


def field_shapes(nx: int, n_rows: int, is_top: bool = True) -> Dict[str, Tuple[int, int]]:
    """Local buffer extents for a band of ``n_rows`` interior cell rows."""
    return {
        "u": (nx, n_rows + 2),
        "v": (nx + 1, n_rows + 1 if is_top else n_rows + 2),
        "p": (nx + 1, n_rows + 2),
    }


@dataclass
class StaggeredSolverFields:
    """Double-buffered u, v, p for one partition.

    ``u, v, p`` are the current iterate; ``u_next, v_next, p_next`` receive
    the update. :meth:`swap` exchanges the handles without copying.
    """

    u: np.ndarray
    v: np.ndarray
    p: np.ndarray

    u_next: np.ndarray
    v_next: np.ndarray
    p_next: np.ndarray

    released: bool = False

    @classmethod
    def allocate(cls, nx: int, n_rows: int, is_top: bool = True):
        """Allocate all six buffers.

        Parameters
        ----------
        nx : int
            Number of grid nodes in x.
        n_rows : int
            Number of interior cell rows owned by this partition.
        is_top : bool
            Whether the partition holds the lid.
        """
        shapes = field_shapes(nx, n_rows, is_top)
        return cls(
            u=allocate(*shapes["u"]),
            v=allocate(*shapes["v"]),
            p=allocate(*shapes["p"]),
            u_next=allocate(*shapes["u"]),
            v_next=allocate(*shapes["v"]),
            p_next=allocate(*shapes["p"]),
        )

    def initialize(self, lid_velocity: float, is_top: bool = True):
        """Fluid at rest with the lid already moving.

        Zero-fills every buffer, then seeds the two topmost u rows (ghost row
        and first interior row below the lid) with the lid velocity.
        """
        self._check_alive()
        for buf in (self.u, self.v, self.p, self.u_next, self.v_next, self.p_next):
            buf.fill(0.0)
        if is_top:
            self.u[1:-1, -1] = lid_velocity
            self.u[1:-1, -2] = lid_velocity

    def swap(self):
        """Make the freshly computed buffers current."""
        self._check_alive()
        self.u, self.u_next = self.u_next, self.u
        self.v, self.v_next = self.v_next, self.v
        self.p, self.p_next = self.p_next, self.p

    def release(self):
        """Drop all buffers. Must be called exactly once."""
        if self.released:
            raise RuntimeError("Solver fields already released")
        self.u = self.v = self.p = None
        self.u_next = self.v_next = self.p_next = None
        self.released = True
        log.debug("Released staggered solver buffers")

    def checksum(self) -> float:
        """Sum of all current and next values, for buffer-integrity checks."""
        self._check_alive()
        return float(
            sum(
                buf.sum()
                for buf in (self.u, self.v, self.p, self.u_next, self.v_next, self.p_next)
            )
        )

    def _check_alive(self):
        if self.released:
            raise RuntimeError("Solver fields have been released")


def cell_centered(u: np.ndarray, v: np.ndarray, p: np.ndarray):
    """Interpolate global staggered fields to the ``nx x ny`` grid nodes.

    Parameters
    ----------
    u : np.ndarray
        Global u, shape (nx, ny + 1).
    v : np.ndarray
        Global v, shape (nx + 1, ny).
    p : np.ndarray
        Global p, shape (nx + 1, ny + 1).

    Returns
    -------
    u_c, v_c, p_c : np.ndarray
        Fields of shape (nx, ny).
    """
    u_c = 0.5 * (u[:, 1:] + u[:, :-1])
    v_c = 0.5 * (v[1:, :] + v[:-1, :])
    p_c = 0.25 * (p[:-1, :-1] + p[1:, :-1] + p[:-1, 1:] + p[1:, 1:])
    return u_c, v_c, p_c
