# src/laser_preview/integrator/runner.py
from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable
from pathlib import Path

from tqdm.auto import tqdm

from laser_preview.core.canvas import CanvasAllocationError
from laser_preview.core.config import PreviewConfig
from laser_preview.core.state import BurnContext
from laser_preview.diagnostics.energy import EnergyMonitor
from laser_preview.gcode.interpreter import MotionInterpreter, open_program
from laser_preview.physics.deposit import EnergyDepositor
from laser_preview.physics.diffusion import DiffusionPropagator
from laser_preview.scan.raster import VectorRasterizer
from laser_preview.schemas.run_meta import RunMeta
from laser_preview.schemas.state import Bounds, PreviewResult, RunStats
from laser_preview.tracking.run_context import RunContext
from laser_preview.utils.profiling import PerformanceTracker
from laser_preview.viz.export import to_grayscale

logger = logging.getLogger(__name__)


class PreviewRunner:
    """
    Runs one G-code program through the burn simulation.

    Wires the context, diffusion propagator, depositor, rasterizer and interpreter
    together, feeds the program lines in order and packs the canvas into a
    `PreviewResult`. A runner holds one canvas: use a new runner per program.

    Args:
        config (PreviewConfig): Run configuration.
        run_context (RunContext | None): Optional tracking/diagnostics hooks.
        progress (bool): Show a tqdm progress bar over program lines.
    """

    def __init__(
        self,
        config: PreviewConfig,
        run_context: RunContext | None = None,
        progress: bool = False,
    ):
        self.config = config
        self.run_context = run_context
        self.progress = progress

        self.ctx = BurnContext.from_config(config)
        self.diffusion = DiffusionPropagator(self.ctx)
        self.depositor = EnergyDepositor(self.ctx, self.diffusion)
        self.rasterizer = VectorRasterizer(self.depositor)
        self.interpreter = MotionInterpreter(self.ctx, self.rasterizer)
        self.energy = EnergyMonitor(self.ctx)

        mat = config.material
        logger.info(
            f"Diffusion kernel: center={mat.diffusion:f} lin={mat.diffusion_lin:f} "
            f"dia={mat.diffusion_dia:f}"
        )

    def run(self, lines: Iterable[str], source: str = "<stdin>") -> PreviewResult:
        """
        Interpret `lines` and return the rendered preview.

        Raises:
            CanvasAllocationError: If the canvas cannot grow. Nothing is rendered.
        """
        rc = self.run_context
        on_line = None
        if rc is not None:
            rc.start()

            def on_line(line_no: int) -> None:
                rc.log_progress(line_no, self.ctx.canvas, self._counters())

        try:
            with PerformanceTracker(f"preview {source}") as perf:
                line_no = self.interpreter.run(
                    tqdm(lines, desc=source, unit="line", disable=not self.progress),
                    on_line=on_line,
                )
        except CanvasAllocationError as e:
            logger.error(f"Out of memory at line {self.interpreter.state.line_no}: {e}")
            if rc is not None:
                rc.fail(e)
            raise
        except Exception as e:
            if rc is not None:
                rc.fail(e)
            raise

        result = self.result(line_no, perf.result.elapsed_ms)
        if rc is not None:
            rc.end(result, metrics=self.energy.report())
        return result

    def run_file(self, path: str | Path) -> PreviewResult:
        """
        Render a program file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            CanvasAllocationError: If the canvas cannot grow.
        """
        with open_program(path) as f:
            result = self.run(f, source=str(path))
        logger.info(f"Interpreted {result.stats.lines} lines from {path}")
        return result

    def result(self, lines: int = 0, elapsed_ms: float | None = None) -> PreviewResult:
        """Pack the current canvas into a `PreviewResult`."""
        canvas = self.ctx.canvas
        if canvas.is_empty:
            # nothing drawn and no minimum size: a single blank pixel at the origin
            canvas.extend(0, 0, 0, 0)

        x0, y0, x1, y1 = canvas.bounds
        logger.info(f"x0={x0} y0={y0} x1={x1} y1={y1}")

        energy = canvas.to_tensor()
        stats = self.ctx.stats
        return PreviewResult(
            pixels=to_grayscale(energy),
            energy=energy,
            bounds=Bounds(x0=x0, y0=y0, x1=x1, y1=y1),
            stats=RunStats(
                lines=lines,
                segments=stats.segments,
                burns=stats.burns,
                accepted_cells=stats.accepted_cells,
                rejected_cells=stats.rejected_cells,
                accepted_energy=stats.accepted_energy,
                retained_energy=canvas.total(),
                canvas_grow_count=canvas.grow_count,
                elapsed_ms=elapsed_ms,
            ),
        )

    def _counters(self) -> dict[str, float]:
        stats = self.ctx.stats
        return {
            "segments": stats.segments,
            "burns": stats.burns,
            "accepted_energy": stats.accepted_energy,
        }


def build_run_meta(config: PreviewConfig, source: str) -> RunMeta:
    return RunMeta(
        source=source,
        started_at=datetime.datetime.now().isoformat(),
        dtype=config.dtype,
        pixel_size=config.beam.pixel_size,
        min_shape=[config.width, config.height],
        material_summary=config.material.model_dump(),
        beam_summary=config.beam.model_dump(),
    )
