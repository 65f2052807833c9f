"""Explicit finite-difference kernels for the artificial-compressibility system.

    P_t + c^2 div[u] = 0
    u_t + u . grad[u] = - grad[P] + nu div[grad[u]]

Second-order central differences on the staggered grid, convective terms in
divergence form with face values averaged as (a + b)^2 / 4.

Every kernel reads the current buffers and writes only interior cells of the
next buffers, so the outer ``prange`` over x-columns is race free. Row limits
are local to a partition: rows ``[1, j_hi)`` are updated, rows 0 and
``j_hi`` are boundary or ghost rows.

Each kernel is compiled twice: a ``parallel=True`` variant for in-process
data parallelism and a serial ``nogil`` variant for callers that already run
one partition per thread.
"""

from dataclasses import dataclass
from typing import Callable

from numba import njit, prange


def _momentum_update(u, v, p, u_next, v_next, dtdx, dtdy, dtdxx, dtdyy, nu, j_hi_u, j_hi_v):
    """x- and y-momentum: u, v (current) -> u_next, v_next."""
    nx_u = u.shape[0]
    for i in prange(1, nx_u - 1):
        for j in range(1, j_hi_u):
            u_next[i, j] = (
                u[i, j]
                - 0.25 * dtdx * ((u[i + 1, j] + u[i, j]) ** 2 - (u[i, j] + u[i - 1, j]) ** 2)
                - 0.25 * dtdy * (
                    (u[i, j + 1] + u[i, j]) * (v[i + 1, j] + v[i, j])
                    - (u[i, j] + u[i, j - 1]) * (v[i + 1, j - 1] + v[i, j - 1])
                )
                - dtdx * (p[i + 1, j] - p[i, j])
                + nu * (
                    dtdxx * (u[i + 1, j] - 2.0 * u[i, j] + u[i - 1, j])
                    + dtdyy * (u[i, j + 1] - 2.0 * u[i, j] + u[i, j - 1])
                )
            )

    nx_v = v.shape[0]
    for i in prange(1, nx_v - 1):
        for j in range(1, j_hi_v):
            v_next[i, j] = (
                v[i, j]
                - 0.25 * dtdx * (
                    (u[i, j + 1] + u[i, j]) * (v[i + 1, j] + v[i, j])
                    - (u[i - 1, j + 1] + u[i - 1, j]) * (v[i, j] + v[i - 1, j])
                )
                - 0.25 * dtdy * ((v[i, j + 1] + v[i, j]) ** 2 - (v[i, j] + v[i, j - 1]) ** 2)
                - dtdy * (p[i, j + 1] - p[i, j])
                + nu * (
                    dtdxx * (v[i + 1, j] - 2.0 * v[i, j] + v[i - 1, j])
                    + dtdyy * (v[i, j + 1] - 2.0 * v[i, j] + v[i, j - 1])
                )
            )


def _continuity_update(p, u_next, v_next, p_next, c2, dtdx, dtdy, j_hi_p):
    """Pressure from the divergence of the *updated* velocities."""
    nx_p = p.shape[0]
    for i in prange(1, nx_p - 1):
        for j in range(1, j_hi_p):
            p_next[i, j] = p[i, j] - c2 * (
                (u_next[i, j] - u_next[i - 1, j]) * dtdx
                + (v_next[i, j] - v_next[i, j - 1]) * dtdy
            )


def _residual_sums(u, v, p, u_next, v_next, p_next, dtdx, dtdy, j_hi):
    """Partial sums for the residual norms over the interior.

    Returns the squared changes of u, v, p and the signed sum of the local
    divergence of the new velocity field. Summed per column first, then
    across columns.
    """
    nx_u = u.shape[0]
    sum_u = 0.0
    sum_v = 0.0
    sum_p = 0.0
    sum_d = 0.0
    for i in prange(1, nx_u - 1):
        col_u = 0.0
        col_v = 0.0
        col_p = 0.0
        col_d = 0.0
        for j in range(1, j_hi):
            du = u_next[i, j] - u[i, j]
            dv = v_next[i, j] - v[i, j]
            dp = p_next[i, j] - p[i, j]
            col_u += du * du
            col_v += dv * dv
            col_p += dp * dp
            col_d += (u_next[i, j] - u_next[i - 1, j]) * dtdx + (
                v_next[i, j] - v_next[i, j - 1]
            ) * dtdy
        sum_u += col_u
        sum_v += col_v
        sum_p += col_p
        sum_d += col_d
    return sum_u, sum_v, sum_p, sum_d


@dataclass(frozen=True)
class KernelSet:
    """One compilation of the three stencil kernels."""

    momentum: Callable
    continuity: Callable
    residual_sums: Callable


PARALLEL_KERNELS = KernelSet(
    momentum=njit(parallel=True, nogil=True)(_momentum_update),
    continuity=njit(parallel=True, nogil=True)(_continuity_update),
    residual_sums=njit(parallel=True, nogil=True)(_residual_sums),
)

SERIAL_KERNELS = KernelSet(
    momentum=njit(nogil=True)(_momentum_update),
    continuity=njit(nogil=True)(_continuity_update),
    residual_sums=njit(nogil=True)(_residual_sums),
)


def get_kernels(parallel: bool) -> KernelSet:
    return PARALLEL_KERNELS if parallel else SERIAL_KERNELS
