"""Shared error norms for comparing solutions against reference data."""

from __future__ import annotations

import numpy as np


def discrete_l2_norm(values: np.ndarray, h: float) -> float:
    """Approximate L2 norm using composite trapezoidal rule."""
    return np.sqrt(h * np.sum(np.abs(values) ** 2))


def discrete_rms_error(f_exact: np.ndarray, f_num: np.ndarray) -> float:
    """Root-mean-square difference between two samples of equal size."""
    return float(np.sqrt(np.mean((np.asarray(f_num) - np.asarray(f_exact)) ** 2)))


def discrete_linf_error(f_exact: np.ndarray, f_num: np.ndarray) -> float:
    """Compute discrete L-infinity (maximum) error."""
    return float(np.max(np.abs(np.asarray(f_num) - np.asarray(f_exact))))
