import logging
from typing import Any

from ..core.canvas import Canvas
from ..diagnostics.recorder import DiagnosticsRecorder
from ..schemas.diagnostics import DiagnosticsConfig
from ..schemas.run_meta import RunMeta
from ..schemas.tracking import TrackingConfig
from ..viz.artifacts_base import ArtifactBuilder
from .factory import build_tracker

logger = logging.getLogger(__name__)


class RunContext:
    """Integration context for run tracking, diagnostics, and artifacts."""

    def __init__(
        self,
        tracking_cfg: TrackingConfig,
        diagnostics_cfg: DiagnosticsConfig,
        run_meta: RunMeta,
        config: dict[str, Any] | None = None,
        artifact_builder: ArtifactBuilder | None = None,
    ):
        self.tracking_cfg = tracking_cfg
        self.diagnostics_cfg = diagnostics_cfg
        self.run_meta = run_meta
        self.config = config or {}

        self.tracker = build_tracker(tracking_cfg)
        self.diagnostics = DiagnosticsRecorder(diagnostics_cfg)
        self.artifact_builder = artifact_builder

        self._tracker_ctx = None
        self.last_metrics: dict[str, float] = {}

    def start(self):
        """Start the tracking run."""
        self._tracker_ctx = self.tracker.start_run(
            run_name=self.tracking_cfg.run_name,
            config=self.config if self.tracking_cfg.log_config else {},
            tags={"source": self.run_meta.source, **self.tracking_cfg.tags},
        )
        self._tracker_ctx.__enter__()

        if self.artifact_builder:
            self.artifact_builder.on_run_start(self.run_meta)

        self.diagnostics.on_chunk_start(0)
        logger.info(f"RunContext started for {self.run_meta.source}")

    def log_progress(
        self, line_no: int, canvas: Canvas, meta: dict[str, Any] | None = None
    ) -> dict[str, float]:
        """Diagnostics -> Metrics -> Tracker, every `log_every_n_lines` lines."""
        if line_no % self.tracking_cfg.log_every_n_lines != 0:
            return {}

        metrics = self.diagnostics.on_chunk_end(line_no, canvas, meta or {})
        if metrics:
            self.tracker.log_metrics(metrics, step=line_no)
            self.last_metrics = metrics
            logger.debug(f"line {line_no}: {metrics}")
        return metrics

    def end(self, result: Any, metrics: dict[str, float] | None = None, status="FINISHED"):
        """End run: final metrics, artifacts, tracker shutdown.

        Returns the artifact paths written.
        """
        paths = []
        if metrics:
            self.tracker.log_metrics(metrics)

        if self.artifact_builder and result is not None:
            try:
                paths = self.artifact_builder.on_run_end(result)
            except Exception as e:
                self.fail(e)
                raise
            if self.tracking_cfg.log_artifacts:
                for p in paths:
                    self.tracker.log_artifact(str(p))

        if self._tracker_ctx:
            self._tracker_ctx.__exit__(None, None, None)
            self._tracker_ctx = None

        logger.info(f"RunContext ended with status {status}")
        return paths

    def fail(self, error: BaseException):
        """Close the tracker run as failed. The error is left for the caller."""
        if self._tracker_ctx:
            self._tracker_ctx.__exit__(type(error), error, error.__traceback__)
            self._tracker_ctx = None
        logger.info("RunContext ended with status FAILED")
