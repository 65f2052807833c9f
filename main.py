"""
Lid-driven cavity - entry point for solving, logging and plotting.

Usage:
    python main.py                                  # Re=100, 128x128
    python main.py Re=1000 N=64
    python main.py -m +experiment=reynolds_sweep
    mpiexec -n 4 python main.py solver.backend=mpi
"""

import logging
import os
import sys
from contextlib import nullcontext
from pathlib import Path

import hydra
import mlflow
from dotenv import load_dotenv
from hydra.core.hydra_config import HydraConfig
from hydra.types import RunMode
from hydra.utils import instantiate
from omegaconf import DictConfig, OmegaConf

load_dotenv()
sys.path.insert(0, str(Path(__file__).parent / "src"))

from solvers.exceptions import SolverError  # noqa: E402
from utilities.ghia import compute_ghia_errors  # noqa: E402
from utilities.mlflow.io import setup_mlflow_tracking  # noqa: E402

log = logging.getLogger(__name__)


def start_run(cfg: DictConfig, solver_name: str):
    """Open an MLflow run, nested under the sweep parent when one is set."""
    parent_run_id = os.environ.get("MLFLOW_PARENT_RUN_ID")
    tags = {"solver": solver_name}
    if parent_run_id:
        tags.update({"mlflow.parentRunId": parent_run_id, "parent_run_id": parent_run_id, "sweep": "child"})
    return mlflow.start_run(
        run_name=f"{solver_name}_N{cfg.N}_Re{cfg.Re:g}", tags=tags, nested=bool(parent_run_id)
    )


def write_outputs(cfg: DictConfig, solver, solver_name: str, output_dir: Path, use_mlflow: bool):
    """Save results, plots and validation errors (root rank only)."""
    h5_path = output_dir / "solution.h5"
    solver.save(h5_path)

    fields_df = solver.fields.to_dataframe() if solver.fields else None
    if use_mlflow:
        solver.mlflow_log_results()
        mlflow.log_artifact(str(h5_path))

    if fields_df is not None and cfg.validation.ghia:
        try:
            errors = compute_ghia_errors(fields_df, cfg.Re)
        except FileNotFoundError as e:
            log.info(f"Skipping Ghia validation: {e}")
        else:
            if use_mlflow:
                mlflow.log_metrics(errors)

    if cfg.plots:
        from shared.plotting.ldc import generate_plots

        time_series_df = solver.time_series.to_dataframe() if solver.time_series else None
        paths = generate_plots(
            time_series_df, fields_df, cfg.Re, solver_name, cfg.N, output_dir / "plots"
        )
        if use_mlflow:
            for path in paths:
                mlflow.log_artifact(str(path), artifact_path="plots")


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Main entry point."""
    solver_cfg = OmegaConf.to_container(cfg.solver, resolve=True)
    solver_name = solver_cfg.pop("name")
    solver = instantiate(solver_cfg, _convert_="partial")
    output_dir = Path(HydraConfig.get().runtime.output_dir)

    use_mlflow = solver.is_root and cfg.mlflow.enabled
    if solver.is_root:
        log.info(f"Solver: {solver_name}, N={cfg.N}, Re={cfg.Re}")
    if use_mlflow:
        log.info(f"MLflow experiment: {setup_mlflow_tracking(cfg)}")

    exit_code = 0
    with start_run(cfg, solver_name) if use_mlflow else nullcontext():
        if use_mlflow:
            mlflow.log_params(solver.params.to_mlflow())
            mlflow.log_dict(OmegaConf.to_container(cfg), "config.yaml")

        try:
            solver.solve(residual_log=output_dir / cfg.residual_log)
        except SolverError as e:
            log.error(f"{type(e).__name__}: {e}")
            exit_code = 1

        if solver.is_root:
            write_outputs(cfg, solver, solver_name, output_dir, use_mlflow)
            if use_mlflow:
                mlflow.set_tag("solver_status", solver.metrics.status)
                mlflow.log_artifact(str(output_dir / cfg.residual_log))
            log.info(
                f"Done: {solver.metrics.iterations} iter, converged={solver.metrics.converged}, "
                f"time={solver.metrics.wall_time_seconds:.2f}s"
            )

    # A failed job must not abort the remaining jobs of a sweep
    if exit_code and HydraConfig.get().mode == RunMode.RUN:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
