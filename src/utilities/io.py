"""Reading and writing solver results."""

import logging
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

log = logging.getLogger(__name__)

RESIDUAL_LOG_COLUMNS = [
    "iteration",
    "residual",
    "u_residual",
    "v_residual",
    "p_residual",
    "continuity_residual",
]


def ensure_output_dir(path) -> Path:
    """Create ``path`` (and parents) if missing and return it as a Path."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_simulation_data(
    filepath,
    params: pd.DataFrame,
    metrics: pd.DataFrame,
    time_series: Optional[pd.DataFrame] = None,
    fields: Optional[pd.DataFrame] = None,
) -> Path:
    """Write one run to an HDF5 store, one table per key.

    Keys with no data (``None``) are skipped, so an unconverged run still
    records its parameters, metrics and history.
    """
    filepath = Path(filepath)
    ensure_output_dir(filepath.parent)

    with pd.HDFStore(filepath, mode="w", complevel=5) as store:
        store["params"] = params
        store["metrics"] = metrics
        if time_series is not None:
            store["time_series"] = time_series
        if fields is not None:
            store["fields"] = fields

    log.info(f"Saved simulation data to {filepath}")
    return filepath


def load_simulation_data(filepath) -> Dict[str, pd.DataFrame]:
    """Read every table written by :func:`save_simulation_data`."""
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"No simulation data at {filepath}")

    with pd.HDFStore(filepath, mode="r") as store:
        return {key.lstrip("/"): store[key] for key in store.keys()}


def read_residual_log(filepath) -> pd.DataFrame:
    """Parse a tab-separated residual log into a DataFrame."""
    return pd.read_csv(
        filepath,
        sep=r"\s+",
        header=None,
        names=RESIDUAL_LOG_COLUMNS,
        engine="python",
    )
