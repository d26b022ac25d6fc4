from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class ArtifactConfig(BaseModel):
    """Configuration for the files written at the end of a run."""

    enabled: bool = True
    output: Path | None = None  # PNG path, None writes to stdout
    flip_y: bool = True  # G-code +Y points up in the image
    crop: tuple[int, int, int, int] | None = None  # x0, y0, x1, y1 from the canvas lower-left cell
    plot_path: Path | None = None  # matplotlib heat map of the raw energy
    raw_path: Path | None = None  # torch dump of the PreviewResult
    cmap: str = "inferno"
    vmax: float | None = Field(default=None, gt=0.0)

    @field_validator("crop")
    @classmethod
    def _check_crop(cls, v):
        if v is not None and (v[0] > v[2] or v[1] > v[3]):
            raise ValueError(f"crop rectangle {v} has swapped corners")
        return v
