"""Tests for the cavity boundary conditions."""

import numpy as np
import pytest

from solvers.datastructures import BoundaryConditions, CavityBoundaryConditions
from solvers.staggered.boundary import BoundaryApplier


@pytest.fixture
def random_fields():
    nx, ny = 7, 6
    rng = np.random.default_rng(42)
    u = rng.standard_normal((nx, ny + 1))
    v = rng.standard_normal((nx + 1, ny))
    p = rng.standard_normal((nx + 1, ny + 1))
    return u, v, p


class TestVelocityBoundary:
    """Dirichlet conditions on u and v."""

    def test_lid_driven_values(self, random_fields):
        u, v, p = random_fields
        applier = BoundaryApplier(CavityBoundaryConditions.lid_driven(1.5), dx=0.1, dy=0.1)
        applier.apply_velocity(u, v)

        assert np.all(u[1:-1, -1] == 1.5)
        assert np.all(u[:, 0] == 0.0)
        assert np.all(u[0, :] == 0.0)
        assert np.all(u[-1, :] == 0.0)
        assert np.all(v[:, 0] == 0.0)
        assert np.all(v[:, -1] == 0.0)
        assert np.all(v[0, :] == 0.0)
        assert np.all(v[-1, :] == 0.0)

    def test_side_walls_win_corners(self, random_fields):
        u, v, _ = random_fields
        conditions = CavityBoundaryConditions(
            u=BoundaryConditions(top=1.0, left=2.0, bottom=3.0, right=4.0),
            v=BoundaryConditions(),
            p=BoundaryConditions(),
        )
        BoundaryApplier(conditions, dx=0.1, dy=0.1).apply_velocity(u, v)

        assert u[0, -1] == 2.0
        assert u[0, 0] == 2.0
        assert u[-1, -1] == 4.0
        assert u[-1, 0] == 4.0
        assert np.all(u[1:-1, -1] == 1.0)
        assert np.all(u[1:-1, 0] == 3.0)

    def test_interior_untouched(self, random_fields):
        u, v, p = random_fields
        u0, v0 = u.copy(), v.copy()
        BoundaryApplier(CavityBoundaryConditions.lid_driven(), dx=0.1, dy=0.1).apply_velocity(u, v)

        np.testing.assert_array_equal(u[1:-1, 1:-1], u0[1:-1, 1:-1])
        np.testing.assert_array_equal(v[1:-1, 1:-1], v0[1:-1, 1:-1])

    def test_interior_partition_keeps_ghost_rows(self, random_fields):
        """Without the bottom wall or lid only the side walls are set."""
        u, v, p = random_fields
        u0 = u.copy()
        applier = BoundaryApplier(
            CavityBoundaryConditions.lid_driven(), dx=0.1, dy=0.1, is_bottom=False, is_top=False
        )
        applier.apply_velocity(u, v)

        np.testing.assert_array_equal(u[1:-1, 0], u0[1:-1, 0])
        np.testing.assert_array_equal(u[1:-1, -1], u0[1:-1, -1])
        assert np.all(u[0, :] == 0.0)


class TestPressureBoundary:
    """Neumann conditions on p."""

    def test_zero_gradient(self, random_fields):
        _, _, p = random_fields
        BoundaryApplier(CavityBoundaryConditions.lid_driven(), dx=0.1, dy=0.1).apply_pressure(p)

        np.testing.assert_array_equal(p[1:-1, 0], p[1:-1, 1])
        np.testing.assert_array_equal(p[1:-1, -1], p[1:-1, -2])
        np.testing.assert_array_equal(p[0, :], p[1, :])
        np.testing.assert_array_equal(p[-1, :], p[-2, :])

    def test_corners_take_diagonal_neighbour(self, random_fields):
        _, _, p = random_fields
        BoundaryApplier(CavityBoundaryConditions.lid_driven(), dx=0.1, dy=0.1).apply_pressure(p)

        assert p[0, 0] == p[1, 1]
        assert p[-1, -1] == p[-2, -2]
        assert p[0, -1] == p[1, -2]
        assert p[-1, 0] == p[-2, 1]

    def test_prescribed_gradient(self, random_fields):
        _, _, p = random_fields
        conditions = CavityBoundaryConditions(
            u=BoundaryConditions(),
            v=BoundaryConditions(),
            p=BoundaryConditions(top=0.0, left=2.0, bottom=0.0, right=0.0),
        )
        BoundaryApplier(conditions, dx=0.25, dy=0.1).apply_pressure(p)

        np.testing.assert_allclose(p[0, :], p[1, :] + 0.5)

    def test_apply_is_idempotent(self, random_fields):
        u, v, p = random_fields
        applier = BoundaryApplier(CavityBoundaryConditions.lid_driven(), dx=0.1, dy=0.1)
        applier.apply(u, v, p)
        snapshot = [a.copy() for a in (u, v, p)]
        applier.apply(u, v, p)

        for before, after in zip(snapshot, (u, v, p)):
            np.testing.assert_array_equal(before, after)
