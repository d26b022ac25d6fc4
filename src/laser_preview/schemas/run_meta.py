from typing import Any

from pydantic import BaseModel, Field


class RunMeta(BaseModel):
    """Metadata about a preview run."""

    source: str  # program file name or "<stdin>"
    started_at: str  # isoformat
    dtype: str
    pixel_size: float
    min_shape: list[int]
    material_summary: dict[str, Any] = Field(default_factory=dict)
    beam_summary: dict[str, Any] = Field(default_factory=dict)
    notes: str | None = None
