import logging
import time
from typing import Any

import torch

from ..core.canvas import Canvas
from ..schemas.diagnostics import DiagnosticsConfig

logger = logging.getLogger(__name__)


class DiagnosticsRecorder:
    """Records canvas metrics and performs stability checks."""

    def __init__(self, cfg: DiagnosticsConfig):
        self.cfg = cfg
        self.chunk_start_time = 0.0
        self.last_line = 0

    def on_chunk_start(self, line_no: int):
        self.chunk_start_time = time.perf_counter()
        self.last_line = line_no

    def on_chunk_end(
        self,
        line_no: int,
        canvas: Canvas,
        meta: dict[str, Any],
    ) -> dict[str, float]:
        """Compute metrics for the lines processed since the last chunk.

        Args:
            line_no: Number of program lines processed so far
            canvas: The energy canvas
            meta: Run counters (e.g. burns, segments, accepted_energy)
        """
        metrics: dict[str, float | int | None] = {}

        if not self.cfg.enabled or self.cfg.level == "off":
            return metrics

        metrics["canvas/cells"] = canvas.width * canvas.height
        metrics["canvas/grow_count"] = canvas.grow_count
        for key in ("segments", "burns", "accepted_energy"):
            if key in meta:
                metrics[f"run/{key}"] = meta[key]

        E = canvas.area
        if E is not None and E.numel() > 0:
            metrics["canvas/energy_min"] = float(E.min())
            metrics["canvas/energy_max"] = float(E.max())
            metrics["canvas/energy_mean"] = float(E.mean())
            metrics["canvas/energy_sum"] = float(E.sum())

            if self.cfg.level == "verbose":
                metrics["canvas/marked_fraction"] = float(
                    (E > self.cfg.marked_level).float().mean()
                )
                metrics["canvas/saturated_fraction"] = float(
                    (E >= self.cfg.saturation_level).float().mean()
                )

            if self.cfg.check_nan_inf:
                nan_count = torch.isnan(E).sum().item()
                inf_count = torch.isinf(E).sum().item()
                metrics["stability/nan_count"] = nan_count
                metrics["stability/inf_count"] = inf_count

                if self.cfg.strict and (nan_count > 0 or inf_count > 0):
                    raise RuntimeError(
                        f"Stability check failed: NaN={nan_count}, Inf={inf_count}"
                    )

        if self.cfg.perf_profile:
            duration = time.perf_counter() - self.chunk_start_time
            lines = max(line_no - self.last_line, 0)
            metrics["perf/chunk_time_ms"] = duration * 1000.0
            metrics["perf/lines_per_sec"] = lines / (duration + 1e-9)

        # Threshold Policy
        warn_flag = 0
        for name, limit in self.cfg.thresholds.items():
            val = metrics.get(name)
            if val is not None and val > limit:
                warn_flag = 1
                logger.warning(f"Metric {name} exceeded threshold: {val} > {limit}")
                if self.cfg.strict:
                    raise RuntimeError(
                        f"Metric {name} exceeded threshold: {val} > {limit}"
                    )

        metrics["stability/warn_flag"] = warn_flag

        self.on_chunk_start(line_no)
        return metrics
