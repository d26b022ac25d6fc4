import logging
from contextlib import AbstractContextManager, contextmanager
from typing import Any, Literal, Protocol

logger = logging.getLogger(__name__)

RunStatus = Literal["FINISHED", "FAILED", "KILLED"]


def flatten_params(config: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten a nested config dump into dotted keys, e.g. `material.absorption`."""
    flat: dict[str, Any] = {}
    for k, v in config.items():
        key = f"{prefix}{k}"
        if isinstance(v, dict):
            flat.update(flatten_params(v, prefix=f"{key}."))
        elif isinstance(v, (list, tuple)):
            flat[key] = ",".join(str(item) for item in v)
        elif v is not None:
            flat[key] = v
    return flat


class ExperimentTracker(Protocol):
    """
    What a `RunContext` needs from a tracking backend.

    `start_run` returns a context manager; leaving it with an exception marks the
    preview run as failed.
    """

    def start_run(
        self, run_name: str | None, config: dict[str, Any], tags: dict[str, str]
    ) -> AbstractContextManager[Any]: ...

    def log_params(self, params: dict[str, Any]) -> None: ...

    def log_metrics(self, metrics: dict[str, float], step: int | None = None) -> None: ...

    def log_artifact(self, local_path: str, artifact_path: str | None = None) -> None: ...

    def end_run(self, status: RunStatus = "FINISHED") -> None: ...


class NullTracker:
    """
    Tracker used when no backend is configured.

    Nothing is stored; metrics and artifact paths go to the DEBUG log so that a
    run with `--log-level DEBUG` still shows its diagnostics.
    """

    @contextmanager
    def start_run(
        self, run_name: str | None, config: dict[str, Any], tags: dict[str, str]
    ):
        logger.debug(f"Untracked run {run_name or '<unnamed>'} tags={tags}")
        status: RunStatus = "FINISHED"
        try:
            yield self
        except Exception:
            status = "FAILED"
            raise
        finally:
            self.end_run(status)

    def log_params(self, params: dict[str, Any]) -> None:
        logger.debug(f"params: {len(params)} values")

    def log_metrics(self, metrics: dict[str, float], step: int | None = None) -> None:
        where = "final" if step is None else f"line {step}"
        logger.debug(f"metrics ({where}): {metrics}")

    def log_artifact(self, local_path: str, artifact_path: str | None = None) -> None:
        logger.debug(f"artifact: {local_path}")

    def end_run(self, status: RunStatus = "FINISHED") -> None:
        logger.debug(f"Untracked run ended: {status}")
