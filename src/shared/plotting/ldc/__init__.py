"""
LDC Plotting Package.

Provides plot generation for lid-driven cavity solver results.
"""

import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd

# Import style module to trigger sns.set_theme() on package import
from . import style  # noqa: F401
from .convergence import plot_convergence
from .fields import plot_fields, plot_streamlines, plot_vorticity
from .validation import plot_ghia_comparison

log = logging.getLogger(__name__)


def generate_plots(
    time_series: Optional[pd.DataFrame],
    fields: Optional[pd.DataFrame],
    Re: float,
    solver: str,
    N: int,
    output_dir: Path,
) -> List[Path]:
    """Write every available plot for one run into ``output_dir``.

    Field plots need a converged solution; the convergence plot only the
    residual history.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    if time_series is not None:
        paths.append(plot_convergence(time_series, Re, solver, N, output_dir))
    if fields is not None:
        paths.append(plot_fields(fields, Re, solver, N, output_dir))
        paths.append(plot_streamlines(fields, Re, solver, N, output_dir))
        paths.append(plot_vorticity(fields, Re, solver, N, output_dir))
        paths.append(plot_ghia_comparison(fields, Re, solver, N, output_dir))

    paths = [p for p in paths if p is not None]
    log.info(f"Generated {len(paths)} plots in {output_dir}")
    return paths


__all__ = [
    "generate_plots",
    "plot_convergence",
    "plot_fields",
    "plot_streamlines",
    "plot_vorticity",
    "plot_ghia_comparison",
]
