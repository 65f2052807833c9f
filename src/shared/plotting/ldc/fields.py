"""
Field Visualization Plots for LDC.

Generates contour plots for pressure/velocity fields,
streamlines, and vorticity.
"""

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from scipy.interpolate import RectBivariateSpline

from utilities.ghia import fields_to_grid

log = logging.getLogger(__name__)


def _fine_grid(fields_df: pd.DataFrame, n_fine: int):
    """Spline the node fields onto an ``n_fine x n_fine`` plotting grid.

    Returned arrays are indexed ``[y, x]`` as matplotlib expects.
    """
    x, y, grids = fields_to_grid(fields_df)
    x_fine = np.linspace(x[0], x[-1], n_fine)
    y_fine = np.linspace(y[0], y[-1], n_fine)
    splines = {name: RectBivariateSpline(y, x, grid.T) for name, grid in grids.items()}
    return x_fine, y_fine, splines


def plot_fields(
    fields_df: pd.DataFrame, Re: float, solver: str, N: int, output_dir: Path
) -> Path:
    """Generate field contour plots (p, u, v)."""
    x_fine, y_fine, splines = _fine_grid(fields_df, 200)
    X_fine, Y_fine = np.meshgrid(x_fine, y_fine)

    panels = [
        ("p", "Pressure", "viridis"),
        ("u", r"$u$-velocity", "RdBu_r"),
        ("v", r"$v$-velocity", "RdBu_r"),
    ]

    fig, axes = plt.subplots(1, 3, figsize=(15, 4.5))
    for ax, (name, title, cmap) in zip(axes, panels):
        values = splines[name](y_fine, x_fine)
        cf = ax.contourf(X_fine, Y_fine, values, levels=30, cmap=cmap)
        ax.set_xlabel(r"$x$", fontsize=11)
        ax.set_ylabel(r"$y$", fontsize=11)
        ax.set_title(title, fontsize=12)
        ax.set_aspect("equal")
        cbar = plt.colorbar(cf, ax=ax, label=rf"${name}$")
        cbar.ax.tick_params(labelsize=9)

    fig.suptitle(
        rf"Solution Fields: {solver}, $N={N}$, $\mathrm{{Re}}={Re:.0f}$",
        fontsize=13,
        y=1.00,
    )
    plt.tight_layout()

    output_path = Path(output_dir) / "fields.pdf"
    fig.savefig(output_path, dpi=300, bbox_inches="tight", transparent=True)
    plt.close(fig)

    return output_path


def plot_streamlines(
    fields_df: pd.DataFrame, Re: float, solver: str, N: int, output_dir: Path
) -> Path:
    """Generate streamline plot with velocity magnitude."""
    x_fine, y_fine, splines = _fine_grid(fields_df, 250)
    U = splines["u"](y_fine, x_fine)
    V = splines["v"](y_fine, x_fine)
    vel_mag = np.sqrt(U**2 + V**2)

    fig, ax = plt.subplots(figsize=(8, 7))
    X_fine, Y_fine = np.meshgrid(x_fine, y_fine)
    cf = ax.contourf(X_fine, Y_fine, vel_mag, levels=40, cmap="coolwarm")

    ax.streamplot(
        x_fine,
        y_fine,
        U,
        V,
        density=2.0,
        linewidth=1.5,
        arrowsize=1.3,
        arrowstyle="->",
        color=(1, 1, 1, 0.7),  # RGBA white with 70% opacity
        zorder=2,
    )

    ax.set_xlabel(r"$x$", fontsize=12)
    ax.set_ylabel(r"$y$", fontsize=12)
    ax.set_title(rf"Streamlines: {solver}, $N={N}$, $\mathrm{{Re}}={Re:.0f}$", fontsize=13)
    ax.set_aspect("equal")

    cbar = plt.colorbar(
        cf,
        ax=ax,
        orientation="horizontal",
        pad=0.08,
        aspect=30,
        label=r"Velocity Magnitude $|\mathbf{u}|$",
    )
    cbar.ax.tick_params(labelsize=10)
    plt.tight_layout()

    output_path = Path(output_dir) / "streamlines.pdf"
    fig.savefig(output_path, dpi=300, bbox_inches="tight", transparent=True)
    plt.close(fig)

    return output_path


def plot_vorticity(
    fields_df: pd.DataFrame, Re: float, solver: str, N: int, output_dir: Path
) -> Path:
    """Generate vorticity contour plot."""
    x_fine, y_fine, splines = _fine_grid(fields_df, 200)
    X_fine, Y_fine = np.meshgrid(x_fine, y_fine)

    # Splines are indexed [y, x]: dx=1 differentiates along y, dy=1 along x
    dvdx = splines["v"](y_fine, x_fine, dy=1)
    dudy = splines["u"](y_fine, x_fine, dx=1)
    vorticity = dvdx - dudy

    sns.set_style("darkgrid")
    fig, ax = plt.subplots(figsize=(7, 6))

    vmax = np.max(np.abs(vorticity))
    cf = ax.contourf(
        X_fine, Y_fine, vorticity, levels=30, vmin=-vmax, vmax=vmax, cmap="RdBu_r"
    )

    ax.set_xlabel(r"$x$", fontsize=11)
    ax.set_ylabel(r"$y$", fontsize=11)
    ax.set_title(rf"Vorticity: {solver}, $N={N}$, $\mathrm{{Re}}={Re:.0f}$", fontsize=12)
    ax.set_aspect("equal")
    cbar = plt.colorbar(
        cf, ax=ax, label=r"$\omega = \partial v/\partial x - \partial u/\partial y$"
    )
    cbar.ax.tick_params(labelsize=10)
    plt.tight_layout()

    fig.patch.set_alpha(0.0)

    output_path = Path(output_dir) / "vorticity.pdf"
    fig.savefig(output_path, dpi=300, bbox_inches="tight", facecolor=(0, 0, 0, 0))
    plt.close(fig)

    return output_path
