from typing import Literal

from pydantic import BaseModel, Field


class TrackingConfig(BaseModel):
    """
    Where and how often a preview run reports to an experiment tracker.

    Tracking is off by default; the CLI turns it on with `--track`.
    """

    enabled: bool = False
    backend: Literal["none", "mlflow"] = "none"
    experiment_name: str = "laser_preview"
    run_name: str | None = None
    tags: dict[str, str] = Field(default_factory=dict)

    log_every_n_lines: int = Field(
        500, ge=1, description="Diagnostics cadence in program lines"
    )
    log_config: bool = True  # send the flattened PreviewConfig as run params
    log_artifacts: bool = True  # upload the PNG / plot / raw dump at the end

    strict: bool = False
    dependency_policy: Literal["warn", "silent"] = "warn"
    mlflow_tracking_uri: str | None = None  # ./mlruns when unset
    mlflow_artifact_location: str | None = None
