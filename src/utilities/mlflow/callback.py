"""Hydra callback for MLflow parent run management during sweeps."""

import logging
import os
import re
from typing import Dict, Optional

from hydra.experimental.callback import Callback
from omegaconf import DictConfig, OmegaConf

log = logging.getLogger(__name__)


class MLflowSweepCallback(Callback):
    """Creates or reuses parent MLflow runs for Hydra multiruns.

    If ``sweep_name`` contains ``${Re}``, one parent run is created per
    Reynolds number and every job of that Re is nested under it:

    - "cavity-sweep"         -> Single parent for all runs
    - "cavity-sweep-Re${Re}" -> Separate parent per Reynolds number
    """

    def __init__(self) -> None:
        self._parent_runs: Dict[str, str] = {}  # sweep_name -> run_id
        self._tracking_uri: Optional[str] = None
        self._experiment_name: Optional[str] = None
        self._base_sweep_name: Optional[str] = None

    def _find_existing_parent(self, sweep_name: str) -> Optional[str]:
        """Find an existing parent run with the same sweep_name."""
        import mlflow

        try:
            runs = mlflow.search_runs(
                experiment_names=[self._experiment_name],
                filter_string=f"tags.sweep = 'parent' AND tags.`mlflow.runName` = '{sweep_name}'",
                order_by=["start_time DESC"],
                max_results=1,
            )
        except mlflow.exceptions.MlflowException as e:
            log.warning(f"Error searching for parent run: {e}")
            return None

        if runs.empty:
            return None
        return runs.iloc[0]["run_id"]

    def _get_or_create_parent(self, sweep_name: str, config: DictConfig) -> str:
        """Get existing parent run or create a new one for this sweep_name."""
        import mlflow

        if sweep_name in self._parent_runs:
            return self._parent_runs[sweep_name]

        existing_id = self._find_existing_parent(sweep_name)
        if existing_id:
            self._parent_runs[sweep_name] = existing_id
            log.info(f"Reusing existing parent run '{sweep_name}': {existing_id}")
            return existing_id

        with mlflow.start_run(run_name=sweep_name) as parent_run:
            parent_id = parent_run.info.run_id
            mlflow.log_dict(OmegaConf.to_container(config), "sweep_config.yaml")
            mlflow.set_tag("sweep", "parent")

            match = re.search(r"Re(\d+)", sweep_name)
            if match:
                mlflow.set_tag("Re", match.group(1))

            # LSF batch job info, when launched on the cluster
            job_id = os.environ.get("LSB_JOBID")
            if job_id:
                mlflow.set_tag("lsf.job_id", job_id)
                mlflow.set_tag("lsf.job_name", os.environ.get("LSB_JOBNAME", ""))

        self._parent_runs[sweep_name] = parent_id
        log.info(f"Created parent run '{sweep_name}': {parent_id}")
        return parent_id

    def on_multirun_start(self, config: DictConfig, **kwargs) -> None:
        """Setup MLflow tracking before sweep starts."""
        import mlflow
        from dotenv import load_dotenv

        from utilities.mlflow.io import setup_mlflow_tracking

        load_dotenv()

        self._tracking_uri = str(config.mlflow.get("tracking_uri", "./mlruns"))
        self._experiment_name = setup_mlflow_tracking(config)
        self._base_sweep_name = config.get("sweep_name", "sweep")

        # Hydra runs child jobs in RUN mode, so flag the sweep explicitly
        os.environ["MLFLOW_SWEEP_ACTIVE"] = "1"

        log.info(f"MLflow sweep callback initialized for experiment: {self._experiment_name}")
        log.debug(f"Tracking URI: {mlflow.get_tracking_uri()}")

    def on_job_start(self, config: DictConfig, **kwargs) -> None:
        """Set parent run ID for each job based on its Re value."""
        import mlflow

        if os.environ.get("MLFLOW_SWEEP_ACTIVE") != "1":
            return

        if self._tracking_uri:
            mlflow.set_tracking_uri(self._tracking_uri)
        if self._experiment_name:
            mlflow.set_experiment(self._experiment_name)

        sweep_name = self._base_sweep_name or config.get("sweep_name", "sweep")
        if "${Re}" in sweep_name or "{Re}" in sweep_name:
            re_value = int(config.get("Re", 100))
            sweep_name = sweep_name.replace("${Re}", str(re_value)).replace(
                "{Re}", str(re_value)
            )

        os.environ["MLFLOW_PARENT_RUN_ID"] = self._get_or_create_parent(sweep_name, config)

    def on_multirun_end(self, config: DictConfig, **kwargs) -> None:
        """Clean up sweep environment flags."""
        if os.environ.get("MLFLOW_SWEEP_ACTIVE") != "1":
            return

        os.environ.pop("MLFLOW_PARENT_RUN_ID", None)
        os.environ.pop("MLFLOW_SWEEP_ACTIVE", None)
        log.info(f"Multirun sweep completed ({len(self._parent_runs)} parent runs)")
