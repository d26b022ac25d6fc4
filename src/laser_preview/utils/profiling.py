from __future__ import annotations

import logging
import time
import tracemalloc
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class ProfileResult:
    name: str
    elapsed_ms: float
    peak_mem_mb: float
    success: bool = True


class PerformanceTracker:
    """
    A simple context manager for timing a preview run.
    Measures wall-clock time and, optionally, peak Python heap usage.
    """

    def __init__(self, name: str, trace_memory: bool = False):
        self.name = name
        self.trace_memory = trace_memory
        self.start_time = 0.0
        self.result: Optional[ProfileResult] = None

    def __enter__(self) -> PerformanceTracker:
        if self.trace_memory:
            tracemalloc.start()
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed_ms = (time.perf_counter() - self.start_time) * 1000.0
        peak_mb = 0.0
        if self.trace_memory:
            _, peak = tracemalloc.get_traced_memory()
            tracemalloc.stop()
            peak_mb = peak / (1024 * 1024)

        self.result = ProfileResult(
            name=self.name,
            elapsed_ms=elapsed_ms,
            peak_mem_mb=peak_mb,
            success=(exc_type is None),
        )
        logger.debug(f"{self.name}: {elapsed_ms:.1f} ms")
