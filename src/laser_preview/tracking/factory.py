import logging

from ..schemas.tracking import TrackingConfig
from .base import ExperimentTracker, NullTracker

logger = logging.getLogger(__name__)


def _fallback(cfg: TrackingConfig, msg: str) -> NullTracker:
    if cfg.dependency_policy == "warn":
        logger.warning(f"{msg} Falling back to NullTracker.")
    return NullTracker()


def build_tracker(cfg: TrackingConfig) -> ExperimentTracker:
    """Create the tracker selected by `cfg`.

    A missing or broken backend degrades to a NullTracker so that previews still
    render, unless `cfg.strict` is set.

    Raises:
        ImportError: If MLflow is requested in strict mode but not installed.
        RuntimeError: If the MLflow backend fails to start in strict mode.
    """
    if not cfg.enabled or cfg.backend != "mlflow":
        return NullTracker()

    try:
        import mlflow  # noqa: F401

        from .backends.mlflow_backend import MLflowTracker
    except ImportError as e:
        msg = "MLflow backend requested but 'mlflow' is not installed."
        if cfg.strict:
            raise ImportError(msg) from e
        return _fallback(cfg, msg)

    try:
        return MLflowTracker(
            tracking_uri=cfg.mlflow_tracking_uri,
            experiment_name=cfg.experiment_name,
            artifact_location=cfg.mlflow_artifact_location,
        )
    except Exception as e:
        msg = f"Failed to initialize MLflow backend: {e}"
        if cfg.strict:
            raise RuntimeError(msg) from e
        return _fallback(cfg, msg)
