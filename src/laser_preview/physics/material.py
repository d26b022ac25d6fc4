# src/laser_preview/physics/material.py
from __future__ import annotations

import math

import torch
from pydantic import BaseModel, ConfigDict, Field


class MaterialConfig(BaseModel):
    """
    Optical and thermal response of the engraved material.

    The absorption of a cell is `absorption + absorption_factor * E` where E is the
    energy already accumulated in that cell. A positive factor describes a material
    that darkens and becomes more receptive once marked (clear wood), a negative one
    a coating that stops absorbing once removed (painted aluminum).

    Residual energy spreads to the 8 neighbours of a cell. Orthogonal neighbours
    receive `diffusion_lin`, diagonal ones `diffusion_lin ** sqrt(2)`, and the
    whole 3x3 kernel is normalised by `diffusion` so that its weights sum to 1.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    absorption: float = Field(
        0.75, ge=0.0, le=1.0, description="Baseline absorbed fraction of the beam"
    )
    absorption_factor: float = Field(
        2.0, description="Absorption change per unit of energy already in the cell"
    )
    diffusion_lin: float = Field(
        0.25,
        ge=0.0,
        le=1.0,
        description="Fraction of energy sent to each orthogonal neighbour",
    )
    energy_density: float = Field(
        0.5, ge=0.0, description="Minimum marking energy density [J/mm^2]"
    )

    @property
    def diffusion_dia(self) -> float:
        """Fraction of energy sent to each diagonal neighbour."""
        return self.diffusion_lin ** math.sqrt(2.0)

    @property
    def diffusion(self) -> float:
        """Center normaliser: diffusion * (1 + 4*lin + 4*dia) == 1."""
        return 1.0 / (1.0 + 4.0 * self.diffusion_lin + 4.0 * self.diffusion_dia)

    def kernel(self, dtype: torch.dtype = torch.float64) -> torch.Tensor:
        """
        The normalised 3x3 diffusion kernel, indexed [dy + 1, dx + 1].

        Returns:
            torch.Tensor: Shape (3, 3). Sums to 1 up to rounding.
        """
        lin = self.diffusion_lin
        dia = self.diffusion_dia
        k = torch.tensor(
            [[dia, lin, dia], [lin, 1.0, lin], [dia, lin, dia]], dtype=dtype
        )
        return k * self.diffusion


def clear_wood() -> MaterialConfig:
    """Little absorption at first, much more once already burnt."""
    return MaterialConfig(absorption=0.75, absorption_factor=2.0)


def painted_aluminum() -> MaterialConfig:
    """Full absorption until the paint is gone, nothing afterwards."""
    return MaterialConfig(absorption=1.0, absorption_factor=-1.0)


MATERIAL_PRESETS = {
    "clear_wood": clear_wood,
    "painted_aluminum": painted_aluminum,
}


def absorbed_weight(weight: float, current: float, cfg: MaterialConfig) -> float:
    """
    Scale an overlap weight by the absorption of a cell holding `current` energy.

    With a negative absorption factor the result is clamped at 0: a saturated cell
    absorbs nothing more.
    """
    w = weight * (cfg.absorption + cfg.absorption_factor * current)
    if cfg.absorption_factor < 0.0 and w < 0.0:
        w = 0.0
    return w


def marking_threshold(current: float, energy_density_px: float) -> float:
    """
    Energy [J] a cell holding `current` energy needs to receive a further mark.

    Already marked cells need less. Values of 1.0 and above bring the threshold to
    zero or below, so that any positive energy is accepted. Negative values are
    treated as unmarked.
    """
    return energy_density_px * (1.0 - math.sqrt(max(current, 0.0)))
