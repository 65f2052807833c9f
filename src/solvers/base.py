"""Abstract base solver for lid-driven cavity problem."""

from abc import ABC, abstractmethod
from contextlib import nullcontext
from pathlib import Path
import logging
import time

import numpy as np
import mlflow

from .datastructures import TimeSeries, Metrics
from .exceptions import DivergenceError, NonConvergenceError
from .staggered.convergence import ConvergenceMonitor, Status

log = logging.getLogger(__name__)

RESIDUAL_LOG_FORMAT = "{:d} \t {:.8f} \t {:.8f} \t {:.8f} \t {:.8f} \t {:.8f}\n"


class ResidualHistory:
    """Growable (iteration, err_tot, err_u, err_v, err_p, err_d) table."""

    def __init__(self, capacity: int = 4096):
        self._data = np.empty((capacity, 6))
        self._n = 0

    def append(self, iteration, residuals):
        if self._n == self._data.shape[0]:
            self._data = np.concatenate([self._data, np.empty_like(self._data)])
        self._data[self._n] = (
            iteration, residuals.total, residuals.err_u,
            residuals.err_v, residuals.err_p, residuals.err_d,
        )
        self._n += 1

    def __len__(self):
        return self._n

    @property
    def data(self) -> np.ndarray:
        return self._data[: self._n]


class LidDrivenCavitySolver(ABC):
    """Abstract base solver for lid-driven cavity problem.

    Handles:
    - Parameter management (input configuration)
    - Metrics tracking (output results)
    - Iteration loop with convergence monitoring
    - Residual log and MLflow logging

    Subclasses must:
    - Set Parameters class attribute (e.g., ACParameters)
    - Implement step() - perform one iteration and return its Residuals
    - Implement _finalize_fields() - build the output Fields on the root rank
    - Implement _release() - free the iteration buffers
    """

    Parameters = None  # Subclasses set this to their parameter dataclass

    def __init__(self, params=None, **kwargs):
        """Initialize solver with parameters.

        Parameters
        ----------
        params : Parameters, optional
            Parameters object. If not provided, kwargs are used to create params.
        **kwargs
            Configuration parameters passed to Parameters class if params is None.
        """
        if params is None:
            if self.Parameters is None:
                raise ValueError("Subclass must define Parameters class attribute")
            params = self.Parameters(**kwargs)

        self.params = params
        self.metrics = Metrics()
        self.fields = None  # Built by _finalize_fields() after convergence
        self.time_series = None  # Populated after solve()
        self.is_root = True  # Rank 0 owns logging and output

    @abstractmethod
    def step(self):
        """Perform one pseudo-time iteration.

        Returns
        -------
        Residuals
            Globally reduced residual norms of this iteration.
        """

    @abstractmethod
    def _finalize_fields(self):
        """Build self.fields from the converged solution."""

    @abstractmethod
    def _release(self):
        """Free the iteration buffers."""

    def _store_results(self, history: ResidualHistory, final_iter_count, status,
                       wall_time, max_timeseries_points: int = 1000):
        """Store solve results in self.time_series and self.metrics."""
        data = history.data

        # Downsample time series to max_timeseries_points (first and last kept)
        if len(data) > max_timeseries_points:
            indices = np.linspace(0, len(data) - 1, max_timeseries_points, dtype=int)
            sampled = data[indices]
        else:
            sampled = data

        self.time_series = TimeSeries(
            iteration=sampled[:, 0].astype(int).tolist(),
            residual=sampled[:, 1].tolist(),
            u_residual=sampled[:, 2].tolist(),
            v_residual=sampled[:, 3].tolist(),
            p_residual=sampled[:, 4].tolist(),
            continuity_residual=sampled[:, 5].tolist(),
        )

        # Final values come from the full history, not the downsampled one
        last = data[-1] if len(data) else None
        self.metrics = Metrics(
            iterations=final_iter_count,
            converged=status is Status.CONVERGED,
            status=status.value,
            final_residual=float(last[1]) if last is not None else float("inf"),
            wall_time_seconds=wall_time,
            u_residual=float(last[2]) if last is not None else 0.0,
            v_residual=float(last[3]) if last is not None else 0.0,
            p_residual=float(last[4]) if last is not None else 0.0,
            continuity_residual=float(last[5]) if last is not None else 0.0,
        )

    def solve(self, tolerance: float = None, max_iter: int = None, residual_log=None):
        """Iterate until converged, diverged or out of iterations.

        Stores results in solver attributes:
        - self.fields : Fields dataclass with cell-centred solution (converged only)
        - self.time_series : TimeSeries dataclass with residual history
        - self.metrics : Metrics dataclass with solver metrics

        The iteration buffers are released on every exit path.

        Parameters
        ----------
        tolerance : float, optional
            Convergence tolerance. If None, uses params.tolerance.
        max_iter : int, optional
            Maximum iterations. If None, uses params.max_iterations.
        residual_log : str or Path, optional
            File receiving one tab-separated residual line per iteration
            (written by the root rank only).

        Raises
        ------
        DivergenceError
            The residual became non-finite.
        NonConvergenceError
            max_iter was reached before the tolerance was met.
        """
        if tolerance is None:
            tolerance = self.params.tolerance
        if max_iter is None:
            max_iter = self.params.max_iterations
        monitor = ConvergenceMonitor(tolerance, max_iter, is_root=self.is_root)

        log_every = max(1, getattr(self.params, "log_every", 1000))
        history = ResidualHistory()
        status = Status.CONTINUE
        iteration = 0

        if residual_log is not None and self.is_root:
            Path(residual_log).parent.mkdir(parents=True, exist_ok=True)
            log_ctx = open(residual_log, "w")
        else:
            log_ctx = nullcontext()

        time_start = time.time()
        mlflow_time = 0.0  # Time spent on MLflow logging
        try:
            with log_ctx as log_file:
                while not status.terminal:
                    iteration += 1
                    residuals = self.step()
                    status = monitor.evaluate(iteration, residuals)
                    history.append(iteration, residuals)

                    if log_file is not None and status is not Status.DIVERGED:
                        log_file.write(
                            RESIDUAL_LOG_FORMAT.format(
                                iteration, residuals.total, residuals.err_u,
                                residuals.err_v, residuals.err_p, residuals.err_d,
                            )
                        )

                    if self.is_root and (iteration % log_every == 0 or status.terminal):
                        log.info(
                            f"Iteration {iteration}: err_tot={residuals.total:.6e}, "
                            f"err_u={residuals.err_u:.6e}, err_v={residuals.err_v:.6e}, "
                            f"err_p={residuals.err_p:.6e}, err_d={residuals.err_d:.6e}"
                        )
                        if mlflow.active_run() and status is not Status.DIVERGED:
                            t_log_start = time.time()
                            mlflow.log_metrics(residuals.as_dict(), step=iteration)
                            mlflow_time += time.time() - t_log_start

            wall_time = time.time() - time_start - mlflow_time
            if self.is_root:
                log.info(
                    f"Solver finished in {wall_time:.2f} seconds "
                    f"(excl. {mlflow_time:.2f}s logging), status={status.value}"
                )

            self._store_results(history, iteration, status, wall_time)
            if status is Status.CONVERGED:
                self._finalize_fields()
        finally:
            self._release()

        if status is Status.DIVERGED:
            raise DivergenceError(iteration)
        if status is Status.MAX_ITERATIONS:
            raise NonConvergenceError(iteration, self.metrics.final_residual)

    def save(self, filepath):
        """Save complete solver state to HDF5 file.

        Saves params, metrics, time_series, and fields for later analysis.

        Parameters
        ----------
        filepath : str or Path
            Output file path (use .h5 extension).
        """
        from utilities.io import save_simulation_data

        save_simulation_data(
            filepath,
            params=self.params.to_dataframe(),
            metrics=self.metrics.to_dataframe(),
            time_series=self.time_series.to_dataframe() if self.time_series else None,
            fields=self.fields.to_dataframe() if self.fields else None,
        )

    # ========================================================================
    # MLflow Integration
    # ========================================================================

    def mlflow_log_results(self):
        """Log final metrics and batched residual history to the active run."""
        if not (self.is_root and mlflow.active_run()):
            return
        mlflow.log_metrics(self.metrics.to_mlflow())
        if self.time_series:
            batch = self.time_series.to_mlflow_batch()
            if batch:
                mlflow.tracking.MlflowClient().log_batch(
                    mlflow.active_run().info.run_id, metrics=batch
                )
