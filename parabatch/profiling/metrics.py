from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class PerformanceMetrics:
    """Performance snapshot for one profiled batch run.

    Attributes:
        total_time_ms: Wall-clock time between start and stop
        memory_used_bytes: Process memory delta (negative if memory was freed)
        items_processed: Items reported through ``add_processed_items``
        throughput: Items per second, 0.0 when no items or no elapsed time
    """

    total_time_ms: float
    memory_used_bytes: int
    items_processed: int
    throughput: float

    @property
    def total_time_seconds(self) -> float:
        return self.total_time_ms / 1000.0

    @property
    def memory_used_mb(self) -> float:
        return self.memory_used_bytes / (1024.0 * 1024.0)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        return (
            f"PerformanceMetrics(total_time={self.total_time_ms:.0f}ms "
            f"({self.total_time_seconds:.2f}s), memory={self.memory_used_mb:.2f}MB, "
            f"items={self.items_processed}, throughput={self.throughput:.2f} items/s)"
        )
