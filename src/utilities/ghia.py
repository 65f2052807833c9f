"""Ghia, Ghia & Shin (1982) centreline benchmark data for the cavity."""

import logging
from pathlib import Path
from typing import Dict, Tuple

import numpy as np
import pandas as pd
from scipy.interpolate import RectBivariateSpline

from solvers.metrics import discrete_l2_norm, discrete_linf_error, discrete_rms_error

log = logging.getLogger(__name__)

GHIA_DIR = Path(__file__).resolve().parents[2] / "data" / "validation" / "ghia"


def load_ghia_data(Re: float, data_dir=None) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Load the u(y) at x=0.5 and v(x) at y=0.5 reference profiles.

    Returns
    -------
    ghia_u : pd.DataFrame
        Columns ``y, u``.
    ghia_v : pd.DataFrame
        Columns ``x, v``.
    """
    data_dir = Path(data_dir) if data_dir is not None else GHIA_DIR
    u_file = data_dir / f"ghia_Re{int(Re)}_u_centerline.csv"
    v_file = data_dir / f"ghia_Re{int(Re)}_v_centerline.csv"
    if not u_file.exists() or not v_file.exists():
        raise FileNotFoundError(f"Ghia data for Re={Re} not found in {data_dir}")
    return pd.read_csv(u_file), pd.read_csv(v_file)


def fields_to_grid(fields_df: pd.DataFrame):
    """Reshape a flat fields table to ``[i, j]`` arrays on the node grid.

    Returns
    -------
    x, y : np.ndarray
        Sorted unique node coordinates.
    grids : dict
        ``u``, ``v`` and ``p`` as arrays of shape (len(x), len(y)).
    """
    x = np.sort(fields_df["x"].unique())
    y = np.sort(fields_df["y"].unique())
    sorted_df = fields_df.sort_values(["x", "y"])
    grids = {
        name: sorted_df[name].to_numpy().reshape(len(x), len(y))
        for name in ("u", "v", "p")
    }
    return x, y, grids


def extract_centerlines(fields_df: pd.DataFrame, ghia_u: pd.DataFrame, ghia_v: pd.DataFrame):
    """Interpolate u along x=0.5 and v along y=0.5 to the Ghia sample points."""
    x, y, grids = fields_to_grid(fields_df)
    u_interp = RectBivariateSpline(x, y, grids["u"])
    v_interp = RectBivariateSpline(x, y, grids["v"])

    u_at_x05 = u_interp(0.5, ghia_u["y"].to_numpy(), grid=False)
    v_at_y05 = v_interp(ghia_v["x"].to_numpy(), 0.5, grid=False)
    return u_at_x05, v_at_y05


def compute_ghia_errors(fields_df: pd.DataFrame, Re: float, data_dir=None) -> Dict[str, float]:
    """Max, RMS and L2 centreline errors against the Ghia profiles."""
    ghia_u, ghia_v = load_ghia_data(Re, data_dir)
    u_num, v_num = extract_centerlines(fields_df, ghia_u, ghia_v)
    u_ref = ghia_u["u"].to_numpy()
    v_ref = ghia_v["v"].to_numpy()

    errors = {
        "ghia_u_max": discrete_linf_error(u_ref, u_num),
        "ghia_u_rms": discrete_rms_error(u_ref, u_num),
        "ghia_u_L2": float(discrete_l2_norm(u_num - u_ref, 1.0 / len(u_ref))),
        "ghia_v_max": discrete_linf_error(v_ref, v_num),
        "ghia_v_rms": discrete_rms_error(v_ref, v_num),
        "ghia_v_L2": float(discrete_l2_norm(v_num - v_ref, 1.0 / len(v_ref))),
    }
    log.info(
        f"Ghia errors (Re={Re:.0f}): u_max={errors['ghia_u_max']:.4f}, "
        f"v_max={errors['ghia_v_max']:.4f}"
    )
    return errors
