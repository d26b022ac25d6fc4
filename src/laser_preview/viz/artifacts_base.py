import abc
import logging
from pathlib import Path
from typing import Any

from ..schemas.run_meta import RunMeta

logger = logging.getLogger(__name__)


class ArtifactBuilder(abc.ABC):
    """
    Base class for the files produced by a preview run.

    Subclasses implement `on_run_end` and call `_record` for every file they
    write; `written` then lists the outputs of the run in order.
    """

    def __init__(self):
        self.meta: RunMeta | None = None
        self.written: list[Path] = []

    def on_run_start(self, meta: RunMeta) -> None:
        self.meta = meta
        self.written = []
        logger.debug(f"Artifacts for {meta.source} started at {meta.started_at}")

    def _record(self, path: Path) -> Path:
        path = Path(path).resolve()
        self.written.append(path)
        logger.debug(f"Recorded artifact {path}")
        return path

    @abc.abstractmethod
    def on_run_end(self, result: Any) -> list[Path]:
        """Write the final outputs of the run. Returns the files written."""
