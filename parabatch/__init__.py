"""parabatch: bounded parallel batch processing with profiling."""

from .errors import (
    ConfigurationError,
    ParabatchError,
    ProcessingCancelled,
    ProcessingFailure,
    ProfilerStateError,
)
from .parallel import (
    ParallelBatchProcessor,
    PartitionStrategy,
    ProcessorConfig,
    StreamingBatchProcessor,
    load_processor_config,
    log_progress,
    process_batch,
)
from .profiling import BatchProfiler, PerformanceMetrics
from .types import Chunk, ChunkProgress
from .utils import BackoffStrategy, RetryPolicy, setup_logging

__version__ = "1.0.0"

__all__ = [
    "BackoffStrategy",
    "BatchProfiler",
    "Chunk",
    "ChunkProgress",
    "ConfigurationError",
    "ParabatchError",
    "ParallelBatchProcessor",
    "PartitionStrategy",
    "PerformanceMetrics",
    "ProcessingCancelled",
    "ProcessingFailure",
    "ProcessorConfig",
    "ProfilerStateError",
    "RetryPolicy",
    "StreamingBatchProcessor",
    "load_processor_config",
    "log_progress",
    "process_batch",
    "setup_logging",
]
