# src/laser_preview/physics/deposit.py
from __future__ import annotations

import math

from laser_preview.core.state import BurnContext
from laser_preview.physics.diffusion import DiffusionPropagator
from laser_preview.physics.material import absorbed_weight, marking_threshold

# Beam positions are snapped to 1/SUBPIXEL of a cell. Non-integer cell sizes
# otherwise leave tiny fractional parts that move whole lines by one cell.
SUBPIXEL = 16.0


def snap(value: float) -> float:
    """Round to the nearest 1/SUBPIXEL, halves going away from zero."""
    return math.copysign(math.floor(abs(value) * SUBPIXEL + 0.5), value) / SUBPIXEL


class EnergyDepositor:
    """
    Distributes the energy of a 1x1 cell beam spot over the cells it overlaps.

    Cell (i, j) covers [i, i+1) x [j, j+1). A beam centred on (x, y) covers
    [x-0.5, x+0.5) x [y-0.5, y+0.5) and overlaps at most 4 cells, each receiving
    the bilinear area fraction of the spot it covers. That fraction is then scaled
    by the absorption of the cell, which depends on the energy the cell already
    holds, and only applied when the delivered energy reaches the marking threshold
    of the cell.

    Because absorption and threshold read the current cell values, successive
    burns do not commute. Callers must issue them in program order.
    """

    def __init__(self, ctx: BurnContext, diffusion: DiffusionPropagator | None = None):
        self.ctx = ctx
        self.diffusion = diffusion if diffusion is not None else DiffusionPropagator(ctx)

    def shares(self, x: float, y: float, intensity: float) -> list[tuple[int, int, float, bool]]:
        """
        Compute the per-cell shares of a burn without applying them.

        The 2x2 block is picked by the lower corner of the spot (center - 0.5),
        not by the cell holding the center. The canvas is extended to cover it,
        since the shares depend on the values stored there.

        Args:
            x (float): Beam center X [cells].
            y (float): Beam center Y [cells].
            intensity (float): Spindle ratio times power multiplier.

        Returns:
            list: (cx, cy, share, accepted) for the 4 cells, in the order
                  (x0,y0), (x1,y0), (x0,y1), (x1,y1).
        """
        ctx = self.ctx
        canvas = ctx.canvas
        mat = ctx.config.material

        # spot origin: lower corner of the 1x1 area under the beam
        ox = snap(x) - 0.5
        oy = snap(y) - 0.5

        x0 = math.floor(ox)
        y0 = math.floor(oy)
        x1 = x0 + 1
        y1 = y0 + 1

        if not (canvas.contains(x0, y0) and canvas.contains(x1, y1)):
            canvas.extend(x0, y0, x1, y1)

        fx = ox - x0
        fy = oy - y0
        corners = (
            (x0, y0, (1.0 - fx) * (1.0 - fy)),
            (x1, y0, fx * (1.0 - fy)),
            (x0, y1, (1.0 - fx) * fy),
            (x1, y1, fx * fy),
        )

        delivered = intensity * ctx.pixel_energy
        energy_density_px = ctx.config.energy_density_px

        out = []
        for cx, cy, weight in corners:
            current = canvas.read(cx, cy)
            share = absorbed_weight(weight, current, mat) * intensity
            if share > 1.0:
                share = 1.0
            accepted = delivered >= marking_threshold(current, energy_density_px)
            out.append((cx, cy, share, accepted))
        return out

    def burn(self, x: float, y: float, intensity: float) -> list[tuple[int, int, float]]:
        """
        Deposit one beam spot centred on (x, y).

        All four shares are computed from the values before this burn, then the
        accepted ones are handed to the diffusion propagator.

        Returns:
            list: (cx, cy, share) of the cells that received energy.

        Raises:
            CanvasAllocationError: If the canvas cannot grow. The caller must abort.
        """
        stats = self.ctx.stats
        stats.burns += 1

        applied = []
        for cx, cy, share, accepted in self.shares(x, y, intensity):
            if not accepted:
                stats.rejected_cells += 1
                continue
            self.diffusion.spread(cx, cy, share)
            stats.accepted_cells += 1
            stats.accepted_energy += share
            applied.append((cx, cy, share))
        return applied
