# src/laser_preview/scan/raster.py
from __future__ import annotations

import math

from laser_preview.physics.deposit import EnergyDepositor
from laser_preview.scan.engine import BurnSegment


class VectorRasterizer:
    """
    Cuts a move into 1-cell steps along its dominant axis and burns each step at
    its midpoint.

    The beam travels from the center of the start cell to the center of the end
    cell. Moving from cell (0,0) to cell (4,2), the beam center goes from
    (0.5,0.5) to (4.5,2.5), so the first step spans (0.5,0.5)-(1.5,1.0) and is
    burnt around (1.0,0.75), the second around (2.0,1.25), and so on::

            0   1   2   3   4
          +---+---+---+---+---+
        2 |   |   |   |   | T |
          +---+---+---+-/-+---+
        1 |   |   | / |   |   |
          +---+-/-+---+---+---+
        0 | F |   |   |   |   |
          +---+---+---+---+---+

    A move whose dominant extent is d issues exactly ceil(d) burns.
    """

    def __init__(self, depositor: EnergyDepositor):
        self.depositor = depositor

    def draw(self, x0: float, y0: float, x1: float, y1: float, intensity: float) -> int:
        """
        Burn the move (x0,y0)-(x1,y1) at `intensity`.

        Returns:
            int: Number of burns issued (0 for a zero-length move).

        Raises:
            CanvasAllocationError: Propagated from the first failing burn; the
                                   remaining steps are not drawn.
        """
        dx = x1 - x0
        dy = y1 - y0
        if dx == 0 and dy == 0:
            return 0

        burn = self.depositor.burn

        # Step k covers [start + k, start + k + 1) along the dominant axis, measured
        # from the start cell center. Counting steps instead of accumulating the
        # coordinate keeps the count at ceil(d) whatever the rounding.
        if abs(dx) >= abs(dy):
            if dx < 0:
                x0, y0, x1, y1 = x1, y1, x0, y0
                dx, dy = -dx, -dy
            slope = dy / dx
            steps = math.ceil(dx)
            for k in range(steps):
                burn(x0 + k + 1.0, y0 + 0.5 + (k + 0.5) * slope, intensity)
        else:
            if dy < 0:
                x0, y0, x1, y1 = x1, y1, x0, y0
                dx, dy = -dx, -dy
            slope = dx / dy
            steps = math.ceil(dy)
            for k in range(steps):
                burn(x0 + 0.5 + (k + 0.5) * slope, y0 + k + 1.0, intensity)

        return steps

    def draw_segment(self, segment: BurnSegment) -> int:
        return self.draw(
            segment.x_start,
            segment.y_start,
            segment.x_end,
            segment.y_end,
            segment.intensity,
        )
