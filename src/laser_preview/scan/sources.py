# src/laser_preview/scan/sources.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class BeamConfig(BaseModel):
    """
    Laser beam and output resolution.

    `multiply` scales the spindle-derived intensity of every move, which is the
    usual way to preview a job at a different power setting.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    power: float = Field(10.0, ge=0.0, description="Beam power [W]")
    pixel_size: float = Field(0.1, gt=0.0, description="Cell size [mm/px]")
    multiply: float = Field(
        1.0, description="Multiplier applied to the spindle intensity ratio"
    )

    @property
    def zoom(self) -> float:
        """Cells per millimeter."""
        return 1.0 / self.pixel_size

    def pixel_energy(self, feed: float) -> float:
        """
        Energy delivered per cell travelled at feed rate `feed` [mm/min].

        P [W = J/s] over F/60 [mm/s] gives J/mm; times the cell size gives J/px.

        Raises:
            ValueError: If `feed` is not strictly positive.
        """
        if feed <= 0.0:
            raise ValueError(f"Feed rate must be positive, got {feed}")
        return self.power * self.pixel_size * 60.0 / feed

    def intensity(self, spindle: float) -> float:
        """Unitless beam intensity for a spindle value in 0..255."""
        return spindle / 255.0 * self.multiply
