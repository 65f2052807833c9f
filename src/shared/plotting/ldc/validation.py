"""
Validation Plots for LDC.

Compares centreline velocity profiles with the Ghia et al. (1982) benchmark.
"""

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from scipy.interpolate import RectBivariateSpline

from utilities.ghia import fields_to_grid, load_ghia_data

log = logging.getLogger(__name__)

AVAILABLE_RE = [100]


def plot_ghia_comparison(
    fields_df: pd.DataFrame, Re: float, solver: str, N: int, output_dir: Path
) -> Path:
    """Plot u(y) at x=0.5 and v(x) at y=0.5 against the Ghia points.

    Returns None when no benchmark data exists for ``Re``.
    """
    if int(Re) not in AVAILABLE_RE:
        log.warning(f"Ghia data not available for Re={Re}")
        return None

    ghia_u, ghia_v = load_ghia_data(Re)
    x, y, grids = fields_to_grid(fields_df)
    s = np.linspace(0.0, 1.0, 200)
    u_line = RectBivariateSpline(x, y, grids["u"])(0.5, s, grid=False)
    v_line = RectBivariateSpline(x, y, grids["v"])(s, 0.5, grid=False)

    sns.set_style("darkgrid")
    fig, (ax_u, ax_v) = plt.subplots(1, 2, figsize=(11, 4.5))

    ax_u.plot(u_line, s, label=solver)
    ax_u.scatter(ghia_u["u"], ghia_u["y"], marker="o", color="k", zorder=3, label="Ghia et al.")
    ax_u.set_xlabel(r"$u(0.5, y)$")
    ax_u.set_ylabel(r"$y$")

    ax_v.plot(s, v_line, label=solver)
    ax_v.scatter(ghia_v["x"], ghia_v["v"], marker="o", color="k", zorder=3, label="Ghia et al.")
    ax_v.set_xlabel(r"$x$")
    ax_v.set_ylabel(r"$v(x, 0.5)$")

    for ax in (ax_u, ax_v):
        ax.legend(frameon=True)

    fig.suptitle(rf"Centreline Profiles: {solver}, $N={N}$, $\mathrm{{Re}}={Re:.0f}$")
    plt.tight_layout()
    fig.patch.set_alpha(0.0)

    output_path = Path(output_dir) / "ghia_comparison.pdf"
    fig.savefig(output_path, bbox_inches="tight", facecolor=(0, 0, 0, 0))
    plt.close(fig)

    return output_path
