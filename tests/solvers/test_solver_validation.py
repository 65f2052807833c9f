"""Validation of the staggered AC solver against Ghia et al. (1982).

This module tests that:
1. The solver converges for the Re=100 cavity on a moderate grid
2. The centreline velocity profiles match the Ghia benchmark
"""

import numpy as np
import pytest

from solvers import StaggeredACSolver
from utilities.ghia import compute_ghia_errors, extract_centerlines, load_ghia_data


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(scope="module")
def ghia_data():
    """Load Ghia benchmark data for Re=100."""
    return load_ghia_data(100)


# ============================================================================
# Benchmark data
# ============================================================================


class TestGhiaData:
    """The shipped reference profiles are complete."""

    def test_profiles_loaded(self, ghia_data):
        ghia_u, ghia_v = ghia_data
        assert list(ghia_u.columns) == ["y", "u"]
        assert list(ghia_v.columns) == ["x", "v"]
        assert len(ghia_u) == len(ghia_v) == 17

    def test_wall_values(self, ghia_data):
        ghia_u, ghia_v = ghia_data
        assert ghia_u.loc[ghia_u["y"] == 1.0, "u"].item() == 1.0
        assert ghia_u.loc[ghia_u["y"] == 0.0, "u"].item() == 0.0
        assert np.all(ghia_v.loc[ghia_v["x"].isin([0.0, 1.0]), "v"] == 0.0)

    def test_missing_reynolds_number(self):
        with pytest.raises(FileNotFoundError):
            load_ghia_data(123)


# ============================================================================
# Solver validation
# ============================================================================


@pytest.mark.slow
class TestGhiaValidation:
    """Converged Re=100 solution against the benchmark."""

    @pytest.fixture(scope="class")
    def converged_fields(self):
        params = {
            "Re": 100,
            "nx": 33,
            "ny": 33,
            "tolerance": 1e-6,
            "max_iterations": 500_000,
            "parallel": True,
            "log_every": 20_000,
        }
        solver = StaggeredACSolver(**params)
        solver.solve()
        assert solver.metrics.converged
        return solver.fields.to_dataframe()

    def test_centerline_errors(self, converged_fields):
        # The lid value sits on the u ghost row half a cell above y=1, so the
        # near-lid profile carries an O(h) offset at this resolution
        errors = compute_ghia_errors(converged_fields, Re=100)

        assert errors["ghia_u_max"] < 0.2, f"u max error {errors['ghia_u_max']:.4f}"
        assert errors["ghia_v_max"] < 0.1, f"v max error {errors['ghia_v_max']:.4f}"
        assert errors["ghia_u_rms"] < 0.08
        assert errors["ghia_v_rms"] < 0.05

    def test_minimum_u_location(self, converged_fields, ghia_data):
        """Strongest return flow sits near y=0.45 as in the benchmark."""
        ghia_u, ghia_v = ghia_data
        u_num, _ = extract_centerlines(converged_fields, ghia_u, ghia_v)
        y = ghia_u["y"].to_numpy()
        assert 0.25 < y[np.argmin(u_num)] < 0.65
