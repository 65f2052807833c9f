"""
Plotting Style Configuration for LDC Plots.

Uses seaborn darkgrid theme with serif fonts (mathtext, no LaTeX install needed).
"""

import logging

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import seaborn as sns  # noqa: E402

log = logging.getLogger(__name__)

plt.rcParams.update(
    {
        "text.usetex": False,
        "mathtext.fontset": "cm",
        "font.family": "serif",
        "axes.labelsize": 12,
        "font.size": 11,
        "legend.fontsize": 10,
        "xtick.labelsize": 10,
        "ytick.labelsize": 10,
    }
)

# Use seaborn darkgrid theme (after rcParams to preserve font settings)
sns.set_theme(style="darkgrid", rc={"text.usetex": False, "font.family": "serif"})
