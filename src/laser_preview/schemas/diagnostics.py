from typing import Literal

from pydantic import BaseModel, Field


class DiagnosticsConfig(BaseModel):
    """
    Canvas health checks computed at the tracking cadence.

    `thresholds` maps a metric name (e.g. `canvas/energy_max`) to an upper limit;
    a breach is logged, or raised when `strict` is set.
    """

    enabled: bool = True
    level: Literal["off", "basic", "verbose"] = "basic"
    check_nan_inf: bool = True
    perf_profile: bool = True
    strict: bool = False
    thresholds: dict[str, float] = Field(default_factory=dict)

    # verbose level only
    marked_level: float = Field(
        0.0, ge=0.0, description="Cells above this energy count as marked"
    )
    saturation_level: float = Field(
        1.0, gt=0.0, description="Cells at or above this energy render black"
    )
