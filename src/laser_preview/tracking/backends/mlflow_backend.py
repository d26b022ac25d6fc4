import logging
import os
from contextlib import contextmanager
from typing import Any

import mlflow

from ..base import ExperimentTracker, RunStatus, flatten_params

logger = logging.getLogger(__name__)

# mlflow rejects param values longer than this
_MAX_PARAM_LENGTH = 500


class MLflowTracker(ExperimentTracker):
    """
    Reports preview runs to MLflow.

    Logging failures after the run has started are downgraded to warnings: a
    tracking server hiccup must not cost the rendered preview.
    """

    def __init__(
        self,
        tracking_uri: str | None = None,
        experiment_name: str = "laser_preview",
        artifact_location: str | None = None,
    ):
        self.tracking_uri = tracking_uri or os.environ.get(
            "MLFLOW_TRACKING_URI", "./mlruns"
        )
        self.experiment_name = experiment_name

        mlflow.set_tracking_uri(self.tracking_uri)
        if mlflow.get_experiment_by_name(experiment_name) is None:
            mlflow.create_experiment(experiment_name, artifact_location=artifact_location)
            logger.info(f"Created MLflow experiment: {experiment_name}")
        mlflow.set_experiment(experiment_name)

    def _safe(self, what: str, fn, *args, **kwargs) -> None:
        try:
            fn(*args, **kwargs)
        except Exception as e:
            logger.warning(f"MLflow {what} failed: {e}")

    @contextmanager
    def start_run(
        self, run_name: str | None, config: dict[str, Any], tags: dict[str, str]
    ):
        mlflow.start_run(run_name=run_name)
        status: RunStatus = "FINISHED"
        try:
            if tags:
                self._safe("set_tags", mlflow.set_tags, tags)
            if config:
                self.log_params(flatten_params(config))
            yield self
        except KeyboardInterrupt:
            status = "KILLED"
            raise
        except Exception as e:
            logger.error(f"Preview run failed: {e}")
            status = "FAILED"
            raise
        finally:
            self.end_run(status)

    def log_params(self, params: dict[str, Any]) -> None:
        params = {k: str(v)[:_MAX_PARAM_LENGTH] for k, v in params.items()}
        self._safe("log_params", mlflow.log_params, params)

    def log_metrics(self, metrics: dict[str, float], step: int | None = None) -> None:
        self._safe("log_metrics", mlflow.log_metrics, metrics, step=step)

    def log_artifact(self, local_path: str, artifact_path: str | None = None) -> None:
        self._safe("log_artifact", mlflow.log_artifact, local_path, artifact_path)

    def end_run(
        self, status: RunStatus = "FINISHED"
    ) -> None:
        if mlflow.active_run():
            self._safe("end_run", mlflow.end_run, status=status)
