# schemas/state.py
from __future__ import annotations

import torch
from pydantic import BaseModel, ConfigDict

Tensor = torch.Tensor


class Bounds(BaseModel):
    """Canvas rectangle in cells, both corners included."""

    model_config = ConfigDict(frozen=True)

    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def width(self) -> int:
        return self.x1 - self.x0 + 1

    @property
    def height(self) -> int:
        return self.y1 - self.y0 + 1


class RunStats(BaseModel):
    """
    Counters of a finished run (no heavy tensors).
    """

    model_config = ConfigDict(frozen=True)

    lines: int
    segments: int
    burns: int
    accepted_cells: int
    rejected_cells: int
    accepted_energy: float
    retained_energy: float
    canvas_grow_count: int
    elapsed_ms: float | None = None


class PreviewResult(BaseModel):
    """
    Everything produced by a preview run.

    `pixels` is the grayscale rendering handed to the image encoder, row 0 being the
    lowest Y of the canvas. `energy` is the raw field it was computed from.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    pixels: Tensor  # [H,W] uint8
    energy: Tensor  # [H,W] float
    bounds: Bounds
    stats: RunStats

    @property
    def width(self) -> int:
        return self.bounds.width

    @property
    def height(self) -> int:
        return self.bounds.height
