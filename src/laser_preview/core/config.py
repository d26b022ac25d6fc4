# src/laser_preview/core/config.py
from __future__ import annotations

from pathlib import Path
from typing import Literal

import torch
from pydantic import BaseModel, ConfigDict, Field, model_validator

from laser_preview.physics.material import MaterialConfig
from laser_preview.scan.sources import BeamConfig


class PreviewConfig(BaseModel):
    """
    Global configuration of a preview run.

    Groups the material response, the beam, and the canvas settings. All lengths
    are in millimeters, energies in Joules, feed rates in mm/min.

    Attributes:
        width (int): Minimum output width in cells. The canvas grows past it as needed.
        height (int): Minimum output height in cells.
        material (MaterialConfig): Absorption, diffusion and marking threshold.
        beam (BeamConfig): Beam power, cell size and intensity multiplier.
        coordinate_grid (int): Sub-cell steps per cell used to round X/Y targets.
                               1 rounds targets to whole cells.
        initial_feed (float | None): Feed rate assumed before the first F word.
                                     If None, no energy is delivered until an F word
                                     is seen.
        max_cells (int | None): Ceiling on the canvas size. Growing beyond it is
                                reported as an allocation failure.
        dtype (str): Floating point precision of the canvas.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    width: int = Field(default=0, ge=0, description="Minimum width [px]")
    height: int = Field(default=0, ge=0, description="Minimum height [px]")

    material: MaterialConfig = Field(default_factory=MaterialConfig)
    beam: BeamConfig = Field(default_factory=BeamConfig)

    coordinate_grid: int = Field(default=1, ge=1, le=16)
    initial_feed: float | None = Field(default=None, gt=0.0)
    max_cells: int | None = Field(default=None, gt=0)
    dtype: Literal["float32", "float64"] = "float32"

    @model_validator(mode="after")
    def _check_minimum_size(self) -> PreviewConfig:
        if self.max_cells is not None and self.width * self.height > self.max_cells:
            raise ValueError(
                f"Minimum canvas {self.width}x{self.height} exceeds max_cells={self.max_cells}"
            )
        return self

    @property
    def energy_density_px(self) -> float:
        """Minimum marking energy per cell [J]."""
        return self.material.energy_density * self.beam.pixel_size**2

    @property
    def torch_dtype(self) -> torch.dtype:
        return torch.float64 if self.dtype == "float64" else torch.float32

    @classmethod
    def from_json_file(cls, path: str | Path) -> PreviewConfig:
        """
        Load and validate a configuration from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist.
            pydantic.ValidationError: If the content is not a valid configuration.
        """
        path = Path(path).expanduser()
        return cls.model_validate_json(path.read_text(encoding="utf-8"))
