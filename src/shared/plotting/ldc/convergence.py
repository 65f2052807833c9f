"""
Convergence Plots for LDC.

Generates residual history plots from the stored time series.
"""

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

log = logging.getLogger(__name__)

RESIDUAL_LABELS = {
    "residual": r"total",
    "u_residual": r"$u$",
    "v_residual": r"$v$",
    "p_residual": r"$p$",
    "continuity_residual": r"$|\nabla \cdot \mathbf{u}|$",
}


def plot_convergence(
    timeseries_df: pd.DataFrame, Re: float, solver: str, N: int, output_dir: Path
) -> Path:
    """Plot convergence history (residuals over iterations)."""
    if timeseries_df.empty:
        log.warning("No timeseries data available for convergence plot")
        return None

    long_df = timeseries_df.melt(
        id_vars="iteration",
        value_vars=[c for c in RESIDUAL_LABELS if c in timeseries_df.columns],
        var_name="quantity",
        value_name="value",
    )
    # err_d is a signed sum; plot its magnitude on the log axis
    long_df["value"] = long_df["value"].abs()
    long_df = long_df[np.isfinite(long_df["value"]) & (long_df["value"] > 0)].copy()
    long_df["quantity"] = long_df["quantity"].map(RESIDUAL_LABELS)

    sns.set_style("darkgrid")
    fig, ax = plt.subplots()
    sns.lineplot(data=long_df, x="iteration", y="value", hue="quantity", ax=ax)
    ax.set_yscale("log")

    ax.set_xlabel(r"Iteration")
    ax.set_ylabel(r"Residual")
    ax.set_title(rf"Convergence History: {solver}, $N={N}$, $\mathrm{{Re}}={Re:.0f}$")
    ax.legend(frameon=True, title=None)

    # Transparent figure, but keep darkgrid axes background
    fig.patch.set_alpha(0.0)

    output_path = Path(output_dir) / "convergence.pdf"
    fig.savefig(output_path, facecolor=(0, 0, 0, 0), bbox_inches="tight")
    plt.close(fig)

    return output_path
