# src/laser_preview/diagnostics/energy.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from laser_preview.core.state import BurnContext

logger = logging.getLogger(__name__)


@dataclass
class EnergyStats:
    delivered: float = 0.0
    retained: float = 0.0

    @property
    def retention(self) -> float:
        """
        Fraction of the accepted shares still present on the canvas.

        The kernel itself sums to 1, but a cell below the diffusion cutoff keeps
        only its center share, so the retention of a run is below 1 whenever
        diffusion is enabled. With zero diffusion it is exactly 1.
        """
        if self.delivered == 0.0:
            return 1.0
        return self.retained / self.delivered


class EnergyMonitor:
    """
    Compares the energy accepted by the depositor with the energy on the canvas.

    Only meaningful for canvases that start blank.
    """

    def __init__(self, ctx: BurnContext):
        self.ctx = ctx
        self.stats = EnergyStats()
        self.baseline = ctx.canvas.total()

    def update(self) -> EnergyStats:
        self.stats.delivered = self.ctx.stats.accepted_energy
        self.stats.retained = self.ctx.canvas.total() - self.baseline
        return self.stats

    def report(self) -> dict[str, float]:
        stats = self.update()
        logger.info(
            f"Energy: accepted={stats.delivered:.4f} retained={stats.retained:.4f} "
            f"({stats.retention * 100.0:.1f}%)"
        )
        return {
            "energy/accepted": stats.delivered,
            "energy/retained": stats.retained,
            "energy/retention": stats.retention,
        }
