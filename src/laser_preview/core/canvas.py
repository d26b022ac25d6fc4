# src/laser_preview/core/canvas.py
from __future__ import annotations

import logging

import numpy as np
import torch

logger = logging.getLogger(__name__)


class CanvasAllocationError(MemoryError):
    """Raised when the canvas cannot obtain storage for a requested extension."""


class Canvas:
    """
    Dense 2D energy accumulator addressed by signed integer cell coordinates.

    The covered rectangle (x0, y0)-(x1, y1) only ever grows. The backing store is
    a contiguous row-major torch tensor; per-cell access goes through a flat numpy
    view sharing the same memory, so that

        index(x, y) = (y - y0) * width + (x - x0)

    Cells outside the rectangle are implicitly zero until an extension covers them.
    Any extension reallocates the store, so indices computed before a call to
    `extend` or `ensure` must not be reused after it.

    Args:
        width (int): Minimum initial width in cells. 0 leaves the canvas empty.
        height (int): Minimum initial height in cells. 0 leaves the canvas empty.
        dtype (torch.dtype): Floating point dtype of the store.
        max_cells (int | None): Optional ceiling on the number of cells. Extensions
                                beyond it fail like an out-of-memory condition.
    """

    def __init__(
        self,
        width: int = 0,
        height: int = 0,
        dtype: torch.dtype = torch.float32,
        max_cells: int | None = None,
    ):
        self.dtype = dtype
        self.max_cells = max_cells
        self.x0 = self.y0 = 0
        self.x1 = self.y1 = -1
        self.area: torch.Tensor | None = None
        self._cells: np.ndarray | None = None
        self.grow_count = 0

        if width > 0 and height > 0:
            self.extend(0, 0, width - 1, height - 1)

    @property
    def is_empty(self) -> bool:
        return self.area is None

    @property
    def width(self) -> int:
        return 0 if self.is_empty else self.x1 - self.x0 + 1

    @property
    def height(self) -> int:
        return 0 if self.is_empty else self.y1 - self.y0 + 1

    @property
    def bounds(self) -> tuple[int, int, int, int]:
        """Covered rectangle as (x0, y0, x1, y1), both corners included."""
        return self.x0, self.y0, self.x1, self.y1

    def contains(self, x: int, y: int) -> bool:
        return (
            not self.is_empty
            and self.x0 <= x <= self.x1
            and self.y0 <= y <= self.y1
        )

    def index(self, x: int, y: int) -> int:
        return (y - self.y0) * (self.x1 - self.x0 + 1) + (x - self.x0)

    def extend(self, nx0: int, ny0: int, nx1: int, ny1: int) -> None:
        """
        Grow the canvas to cover the union of its rectangle and (nx0,ny0)-(nx1,ny1).

        Corners may be given in any order. Shrinking is never performed. When the
        union equals the current rectangle this is a no-op; otherwise a zeroed store
        is allocated and the previous cells are copied to their new offsets.

        Raises:
            CanvasAllocationError: If the new store cannot be allocated. The canvas
                                   is left untouched in that case.
        """
        if nx0 > nx1:
            nx0, nx1 = nx1, nx0
        if ny0 > ny1:
            ny0, ny1 = ny1, ny0

        if not self.is_empty:
            nx0 = min(nx0, self.x0)
            ny0 = min(ny0, self.y0)
            nx1 = max(nx1, self.x1)
            ny1 = max(ny1, self.y1)
            if (nx0, ny0, nx1, ny1) == self.bounds:
                return

        nw = nx1 - nx0 + 1
        nh = ny1 - ny0 + 1
        if self.max_cells is not None and nw * nh > self.max_cells:
            raise CanvasAllocationError(
                f"Canvas of {nw}x{nh} cells exceeds the limit of {self.max_cells} cells"
            )

        try:
            new_area = torch.zeros((nh, nw), dtype=self.dtype)
        except (RuntimeError, MemoryError) as e:
            raise CanvasAllocationError(
                f"Failed to allocate a {nw}x{nh} canvas: {e}"
            ) from e

        if self.area is not None:
            oy = self.y0 - ny0
            ox = self.x0 - nx0
            new_area[oy : oy + self.height, ox : ox + self.width] = self.area

        logger.debug(
            f"Canvas extended from {self.bounds} to {(nx0, ny0, nx1, ny1)}"
        )
        self.x0, self.y0, self.x1, self.y1 = nx0, ny0, nx1, ny1
        self.area = new_area
        self._cells = new_area.view(-1).numpy()
        self.grow_count += 1

    def ensure(self, x: int, y: int) -> None:
        """Extend the canvas only if cell (x, y) is not covered yet."""
        if not self.contains(x, y):
            self.extend(x, y, x, y)

    def read(self, x: int, y: int) -> float:
        if not self.contains(x, y):
            raise IndexError(f"Cell ({x}, {y}) is outside canvas {self.bounds}")
        return float(self._cells[self.index(x, y)])

    def accumulate(self, x: int, y: int, delta: float) -> None:
        if not self.contains(x, y):
            raise IndexError(f"Cell ({x}, {y}) is outside canvas {self.bounds}")
        self._cells[self.index(x, y)] += delta

    def total(self) -> float:
        """Sum of all stored energy."""
        if self.area is None:
            return 0.0
        return float(self.area.sum())

    def to_tensor(self) -> torch.Tensor:
        """
        Copy of the energy field as a [height, width] tensor, row 0 being y0.
        """
        if self.area is None:
            return torch.zeros((0, 0), dtype=self.dtype)
        return self.area.clone()
