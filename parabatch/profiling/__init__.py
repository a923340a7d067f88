"""Timing, memory and throughput measurement for batch runs."""

from .metrics import PerformanceMetrics
from .profiler import BatchProfiler, process_memory_bytes

__all__ = [
    "BatchProfiler",
    "PerformanceMetrics",
    "process_memory_bytes",
]
