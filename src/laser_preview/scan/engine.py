# src/laser_preview/scan/engine.py
from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field


class BurnSegment(BaseModel):
    """
    A single straight beam move committed by the interpreter.

    Coordinates are in cells, already scaled and rounded from program units.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    x_start: float = Field(..., description="Start X [cells]")
    y_start: float = Field(..., description="Start Y [cells]")
    x_end: float = Field(..., description="End X [cells]")
    y_end: float = Field(..., description="End Y [cells]")

    intensity: float = Field(..., description="Spindle ratio times power multiplier")
    line_no: int = Field(0, ge=0, description="Program line that committed the move")

    @property
    def is_point(self) -> bool:
        """True for a zero-length move, which deposits nothing."""
        return self.x_start == self.x_end and self.y_start == self.y_end

    @property
    def length(self) -> float:
        return math.hypot(self.x_end - self.x_start, self.y_end - self.y_start)

    @property
    def steps(self) -> int:
        """Number of beam spots the rasterizer issues for this move."""
        dominant = max(abs(self.x_end - self.x_start), abs(self.y_end - self.y_start))
        return math.ceil(dominant)
