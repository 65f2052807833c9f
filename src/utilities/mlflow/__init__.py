"""MLflow utilities for experiment tracking."""

from .io import get_experiment_name, setup_mlflow_tracking

__all__ = [
    "get_experiment_name",
    "setup_mlflow_tracking",
]
