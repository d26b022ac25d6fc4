import logging
from pathlib import Path

from ..schemas.artifacts import ArtifactConfig
from ..schemas.state import PreviewResult
from ..utils.io import save_state
from .artifacts_base import ArtifactBuilder
from .export import crop_grayscale, write_png

logger = logging.getLogger(__name__)


class PreviewArtifactBuilder(ArtifactBuilder):
    """Writes the PNG preview and the optional plot and raw dump of a run."""

    def __init__(self, cfg: ArtifactConfig, pixel_size: float = 0.1):
        super().__init__()
        self.cfg = cfg
        self.pixel_size = pixel_size

    def on_run_end(self, result: PreviewResult) -> list[Path]:
        if not self.cfg.enabled:
            logger.debug("Artifacts disabled, nothing written")
            return []

        start = len(self.written)
        pixels = result.pixels
        if self.cfg.crop is not None:
            x0, y0, x1, y1 = self.cfg.crop
            pixels = crop_grayscale(pixels, x0, y0, x1, y1)

        png = write_png(pixels, self.cfg.output, flip_y=self.cfg.flip_y)
        if png is not None:
            self._record(png)

        if self.cfg.plot_path is not None:
            from .static import plot_energy_field

            self.cfg.plot_path.parent.mkdir(parents=True, exist_ok=True)
            plot_energy_field(
                result,
                self.pixel_size,
                save_path=str(self.cfg.plot_path),
                cmap=self.cfg.cmap,
                vmax=self.cfg.vmax,
            )
            self._record(self.cfg.plot_path)

        if self.cfg.raw_path is not None:
            self._record(save_state(result, self.cfg.raw_path))

        return self.written[start:]
