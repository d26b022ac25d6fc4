# src/laser_preview/physics/diffusion.py
from __future__ import annotations

from laser_preview.core.canvas import CanvasAllocationError
from laser_preview.core.state import BurnContext

# Residual energy below which a cell keeps its share and stops spreading.
DIFFUSION_CUTOFF = 0.05

_DIAGONALS = ((-1, -1), (1, -1), (-1, 1), (1, 1))
_ORTHOGONALS = ((0, -1), (-1, 0), (1, 0), (0, 1))


class DiffusionPropagator:
    """
    Spreads energy received by a cell to its 8 neighbours.

    A cell receiving `value` keeps `value * diffusion`. If `value` is at least
    DIFFUSION_CUTOFF, each orthogonal neighbour then receives
    `value * diffusion_lin * diffusion` and each diagonal neighbour
    `value * diffusion_dia * diffusion`, which are spread in turn. Values shrink
    geometrically so the process always ends; it runs on an explicit stack rather
    than native recursion.

    Neighbours may lie outside the canvas, which is extended before each write.
    """

    def __init__(self, ctx: BurnContext, max_items: int = 1_000_000):
        self.ctx = ctx
        self.max_items = max_items

        mat = ctx.config.material
        self.center = mat.diffusion
        self.lin = mat.diffusion_lin * mat.diffusion
        self.dia = mat.diffusion_dia * mat.diffusion

    def spread(self, x: int, y: int, value: float) -> int:
        """
        Deposit `value` at cell (x, y) and diffuse it.

        Returns:
            int: Number of cells written (a cell may be counted more than once).

        Raises:
            CanvasAllocationError: If the canvas cannot grow to a touched cell, or
                                   if a single spread exceeds `max_items` writes.
                                   Validated materials stop long before that
                                   limit; hitting it is treated like running out
                                   of memory.
        """
        canvas = self.ctx.canvas
        stack = [(x, y, value)]
        written = 0

        while stack:
            cx, cy, v = stack.pop()
            canvas.ensure(cx, cy)
            canvas.accumulate(cx, cy, v * self.center)
            written += 1
            if written > self.max_items:
                raise CanvasAllocationError(
                    f"Diffusion from ({x}, {y}) exceeded {self.max_items} writes"
                )

            if v < DIFFUSION_CUTOFF:
                continue

            v_dia = v * self.dia
            v_lin = v * self.lin
            for dx, dy in _DIAGONALS:
                stack.append((cx + dx, cy + dy, v_dia))
            for dx, dy in _ORTHOGONALS:
                stack.append((cx + dx, cy + dy, v_lin))

        return written
