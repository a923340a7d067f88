"""
parabatch Parallel Processing Module.

This module turns large in-memory batches into results using bounded
parallel execution instead of sequential iteration.

Key Components:
    - ParallelBatchProcessor: Chunked parallel map with fail-fast semantics
    - StreamingBatchProcessor: Memory-bounded variant for lazy inputs
    - PartitionStrategy: STATIC (fixed lanes) or DYNAMIC (load-balanced)
    - ProcessorConfig: Immutable configuration, env and YAML loaders

Production Usage:
    For batch jobs such as financial reconciliation or bulk imports:
    - Pick chunk_size so each chunk takes well over a millisecond
    - Use DYNAMIC when per-item cost varies, STATIC when it is uniform
    - A single failing item aborts the whole batch

Example:
    >>> from parabatch.parallel import ParallelBatchProcessor
    >>> processor = ParallelBatchProcessor(parallelism=8, chunk_size=1000)
    >>> results = processor.process(records, reconcile)
"""

from .config import (
    ProcessorConfig,
    ProcessorSettings,
    available_parallelism,
    load_processor_config,
)
from .partition import iter_chunks, partition
from .processor import ParallelBatchProcessor, log_progress, process_batch
from .strategy import PartitionStrategy
from .streaming import StreamingBatchProcessor, StreamingStats

__all__ = [
    "ParallelBatchProcessor",
    "PartitionStrategy",
    "ProcessorConfig",
    "ProcessorSettings",
    "StreamingBatchProcessor",
    "StreamingStats",
    "available_parallelism",
    "iter_chunks",
    "load_processor_config",
    "log_progress",
    "partition",
    "process_batch",
]
