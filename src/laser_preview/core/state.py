# src/laser_preview/core/state.py
from __future__ import annotations

from dataclasses import dataclass, field

from laser_preview.core.canvas import Canvas
from laser_preview.core.config import PreviewConfig


@dataclass
class DepositStats:
    """Counters updated by the depositor, read by diagnostics."""

    burns: int = 0
    accepted_cells: int = 0
    rejected_cells: int = 0
    accepted_energy: float = 0.0
    segments: int = 0


@dataclass
class BurnContext:
    """
    Mutable state shared by every stage of a preview run.

    One context is owned by exactly one run. Deposits read the current value of a
    cell before adding to it, so the components working on a context are not
    commutative: segments must be applied in program order and never concurrently.

    Attributes:
        config (PreviewConfig): Immutable run configuration.
        canvas (Canvas): The energy accumulator.
        pixel_energy (float): Energy delivered per cell travelled at the current
                              feed rate [J]. Updated by the interpreter.
        stats (DepositStats): Running counters.
    """

    config: PreviewConfig
    canvas: Canvas
    pixel_energy: float = 0.0
    stats: DepositStats = field(default_factory=DepositStats)

    @classmethod
    def from_config(cls, config: PreviewConfig) -> BurnContext:
        canvas = Canvas(
            width=config.width,
            height=config.height,
            dtype=config.torch_dtype,
            max_cells=config.max_cells,
        )
        ctx = cls(config=config, canvas=canvas)
        if config.initial_feed is not None:
            ctx.pixel_energy = config.beam.pixel_energy(config.initial_feed)
        return ctx


@dataclass
class MotionState:
    """
    Modal state of the G-code interpreter.

    Coordinates are in cells. `target_*` hold the position requested by the line
    being parsed; it becomes the current position at end of line.
    """

    x: float = 0.0
    y: float = 0.0
    target_x: float = 0.0
    target_y: float = 0.0
    spindle: float = 0.0
    spindle_set: bool = False
    feed: float | None = None
    drawing: bool = False
    line_no: int = 0
