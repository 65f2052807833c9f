"""Tests for result persistence and the residual log reader."""

import numpy as np
import pandas as pd
import pytest

from utilities.ghia import fields_to_grid
from utilities.io import (
    ensure_output_dir,
    load_simulation_data,
    read_residual_log,
    save_simulation_data,
)


@pytest.fixture
def run_frames():
    x, y = np.meshgrid(np.linspace(0, 1, 3), np.linspace(0, 1, 4), indexing="ij")
    return {
        "params": pd.DataFrame([{"Re": 100.0, "nx": 3, "ny": 4, "method": "FD-AC-Staggered"}]),
        "metrics": pd.DataFrame([{"iterations": 10, "converged": True, "status": "converged"}]),
        "time_series": pd.DataFrame({"iteration": [1, 2], "residual": [1e-2, 1e-3]}),
        "fields": pd.DataFrame(
            {"u": x.ravel() * 2, "v": y.ravel(), "p": x.ravel() + y.ravel(), "x": x.ravel(), "y": y.ravel()}
        ),
    }


class TestSimulationData:
    def test_round_trip(self, tmp_path, run_frames):
        path = save_simulation_data(tmp_path / "out" / "solution.h5", **run_frames)
        loaded = load_simulation_data(path)

        assert set(loaded) == {"params", "metrics", "time_series", "fields"}
        pd.testing.assert_frame_equal(loaded["fields"], run_frames["fields"])
        assert loaded["metrics"]["status"].item() == "converged"

    def test_unconverged_run_has_no_fields(self, tmp_path, run_frames):
        path = save_simulation_data(
            tmp_path / "solution.h5",
            params=run_frames["params"],
            metrics=run_frames["metrics"],
            time_series=run_frames["time_series"],
            fields=None,
        )
        assert "fields" not in load_simulation_data(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_simulation_data(tmp_path / "nope.h5")

    def test_ensure_output_dir(self, tmp_path):
        path = ensure_output_dir(tmp_path / "a" / "b")
        assert path.is_dir()


class TestResidualLog:
    def test_parse(self, tmp_path):
        path = tmp_path / "residuals.log"
        path.write_text(
            "1 \t 0.50000000 \t 0.10000000 \t 0.20000000 \t 0.50000000 \t -0.00100000\n"
            "2 \t 0.25000000 \t 0.05000000 \t 0.10000000 \t 0.25000000 \t 0.00050000\n"
        )
        df = read_residual_log(path)

        assert df["iteration"].tolist() == [1, 2]
        assert df["residual"].tolist() == [0.5, 0.25]
        assert df["continuity_residual"].tolist() == [-0.001, 0.0005]


class TestFieldsToGrid:
    def test_reshape_ij(self, run_frames):
        fields = run_frames["fields"].sample(frac=1.0, random_state=0)
        x, y, grids = fields_to_grid(fields)

        assert grids["u"].shape == (3, 4)
        np.testing.assert_allclose(grids["u"][:, 0], 2 * x)
        np.testing.assert_allclose(grids["v"][0, :], y)
