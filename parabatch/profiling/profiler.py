"""
Batch profiler.

Measures wall-clock time, process memory delta and throughput for a batch run.

Example:
    >>> profiler = BatchProfiler()
    >>> profiler.start()
    >>> results = processor.process(data, transform)
    >>> profiler.add_processed_items(len(results))
    >>> metrics = profiler.stop()
    >>> print(metrics.throughput)

Memory is read from the whole process (resident set size), so the delta is
only an approximation of the batch's cost when other work shares the process.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Optional

import psutil

from ..errors import ProfilerStateError
from .metrics import PerformanceMetrics

if TYPE_CHECKING:  # pragma: no cover
    from ..tracking import MlflowLogger

logger = logging.getLogger(__name__)


def process_memory_bytes() -> int:
    """Return the resident set size of the current process in bytes."""
    return psutil.Process().memory_info().rss


class BatchProfiler:
    """
    Start/stop scoped recorder for elapsed time, memory and throughput.

    The item counter is never inferred: callers (or a processor that was
    handed this profiler) must report processed items through
    :meth:`add_processed_items`, otherwise throughput is reported as 0.

    A profiler can be reused for several start/stop cycles but must be driven
    from one thread per cycle.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        memory_probe: Callable[[], int] = process_memory_bytes,
        tracker: Optional["MlflowLogger"] = None,
    ) -> None:
        self._clock = clock
        self._memory_probe = memory_probe
        self._tracker = tracker
        self._start_time: float | None = None
        self._start_memory = 0
        self._items_processed = 0
        self.last_metrics: PerformanceMetrics | None = None

    @property
    def is_running(self) -> bool:
        return self._start_time is not None

    @property
    def items_processed(self) -> int:
        return self._items_processed

    def start(self) -> None:
        """Capture baseline time and memory and reset the item counter."""
        self._start_time = self._clock()
        self._start_memory = self._memory_probe()
        self._items_processed = 0
        logger.debug("Batch profiling started")

    def add_processed_items(self, count: int) -> None:
        self._items_processed += count

    def stop(self) -> PerformanceMetrics:
        """
        Stop profiling and return the snapshot for this cycle.

        Raises:
            ProfilerStateError: If :meth:`start` was not called first
        """
        if self._start_time is None:
            raise ProfilerStateError("BatchProfiler.stop() called before start()")

        end_time = self._clock()
        end_memory = self._memory_probe()

        total_time_ms = (end_time - self._start_time) * 1000.0
        memory_used_bytes = end_memory - self._start_memory
        if self._items_processed > 0 and total_time_ms > 0:
            throughput = self._items_processed / (total_time_ms / 1000.0)
        else:
            throughput = 0.0

        metrics = PerformanceMetrics(
            total_time_ms=total_time_ms,
            memory_used_bytes=memory_used_bytes,
            items_processed=self._items_processed,
            throughput=throughput,
        )
        self._start_time = None
        self.last_metrics = metrics

        logger.info(
            "Batch profiling stopped: %.0fms, %.2f MB, %d items, %.2f items/s",
            metrics.total_time_ms,
            metrics.memory_used_mb,
            metrics.items_processed,
            metrics.throughput,
        )

        if self._tracker is not None:
            self._tracker.log_performance(metrics)
        return metrics

    def __enter__(self) -> "BatchProfiler":
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()
