"""
Streaming Batch Processor.

Processes inputs that are too large (or too lazy) to hold in memory at once.
The input iterable is consumed chunk by chunk and only a bounded window of
chunks is in flight at any time, so memory use is proportional to
``max_in_flight * chunk_size`` rather than to the batch size.

Features:
    - Lazy chunking of any iterable (generators, file readers, cursors)
    - Bounded number of submitted chunks
    - Per-chunk results yielded in input order
    - Same fail-fast, cancellation and shutdown rules as the in-memory
      processor

Example:
    >>> streamer = StreamingBatchProcessor(ProcessorConfig(chunk_size=500))
    >>> for block in streamer.process_streaming(read_rows(path), parse_row):
    ...     write_rows(block)
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Deque, Iterable, Iterator, List, Tuple, TypeVar

from ..errors import ConfigurationError, ProcessingFailure
from ..types import Chunk
from .config import ProcessorConfig
from .partition import iter_chunks
from .processor import WORKER_THREAD_PREFIX, _abort, _run_chunk, shutdown_executor
from .strategy import PartitionStrategy

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class StreamingStats:
    """Statistics for the most recent streaming run.

    Attributes:
        chunks_processed: Number of chunks yielded so far
        items_processed: Number of items yielded so far
        max_in_flight_observed: Largest number of chunks submitted at once
        total_time_sec: Wall-clock time of the run
    """

    chunks_processed: int = 0
    items_processed: int = 0
    max_in_flight_observed: int = 0
    total_time_sec: float = 0.0


class StreamingBatchProcessor:
    """
    Memory-bounded chunk processor for lazily produced inputs.

    Unlike :class:`ParallelBatchProcessor`, which partitions a sequence up
    front, this processor pulls chunks from the input only when a slot in the
    in-flight window is free and yields each chunk's results as soon as all
    earlier chunks have been yielded.

    Chunks are always scheduled dynamically: the total number of chunks is
    unknown up front, so STATIC lanes cannot be assigned. A STATIC config is
    accepted and logged, and its other settings still apply.
    """

    def __init__(
        self,
        config: ProcessorConfig | None = None,
        max_in_flight: int | None = None,
    ) -> None:
        """
        Initialize streaming processor.

        Args:
            config: Processor configuration (default: ``ProcessorConfig()``)
            max_in_flight: Maximum chunks submitted at once
                (default: ``2 * parallelism``)
        """
        self._config = config or ProcessorConfig()
        if max_in_flight is None:
            max_in_flight = 2 * self._config.parallelism
        if max_in_flight < 1:
            raise ConfigurationError(f"max_in_flight must be >= 1, got {max_in_flight}")
        self._max_in_flight = max_in_flight
        self._stats = StreamingStats()

        if self._config.strategy is PartitionStrategy.STATIC:
            logger.info(
                "Streaming schedules chunks dynamically; strategy=static is ignored"
            )

        logger.debug(
            "StreamingBatchProcessor initialized: parallelism=%d, chunk_size=%d, max_in_flight=%d",
            self._config.parallelism,
            self._config.chunk_size,
            max_in_flight,
        )

    @property
    def config(self) -> ProcessorConfig:
        return self._config

    @property
    def max_in_flight(self) -> int:
        return self._max_in_flight

    @property
    def stats(self) -> StreamingStats:
        """Get statistics of the current or last run."""
        return self._stats

    def process_streaming(
        self,
        items: Iterable[T],
        transform: Callable[[T], R],
        cancel_event: threading.Event | None = None,
    ) -> Iterator[List[R]]:
        """
        Process ``items`` lazily, yielding one result list per chunk.

        Args:
            items: Any iterable; it is consumed at most one window ahead
            transform: Per-item function, must be safe to call concurrently
            cancel_event: Cooperative cancellation, checked between items

        Yields:
            Result list for each chunk, in input order

        Raises:
            ProcessingFailure: If ``transform`` raised for any item
            ProcessingCancelled: If ``cancel_event`` was set
        """
        self._stats = StreamingStats()
        start_time = time.monotonic()
        chunks = iter_chunks(items, self._config.chunk_size)
        stop_event = threading.Event()
        in_flight: Deque[Tuple[Chunk[T], Future]] = deque()
        force_shutdown = False

        executor = ThreadPoolExecutor(
            max_workers=self._config.parallelism,
            thread_name_prefix=WORKER_THREAD_PREFIX,
        )
        try:
            exhausted = False
            while True:
                while not exhausted and len(in_flight) < self._max_in_flight:
                    chunk = next(chunks, None)
                    if chunk is None:
                        exhausted = True
                        break
                    future = executor.submit(
                        _run_chunk, chunk, transform, stop_event, cancel_event
                    )
                    in_flight.append((chunk, future))
                    self._stats.max_in_flight_observed = max(
                        self._stats.max_in_flight_observed, len(in_flight)
                    )

                if not in_flight:
                    break

                chunk, future = in_flight.popleft()
                try:
                    block = future.result()
                except ProcessingFailure as exc:
                    logger.error("Streaming batch aborted: %s", exc)
                    raise

                self._stats.chunks_processed += 1
                self._stats.items_processed += len(chunk)
                logger.debug("Streaming chunk %d complete (%d items)", chunk.index, len(chunk))
                yield block
        except KeyboardInterrupt:
            logger.warning("Streaming batch interrupted, cancelling pending chunks")
            force_shutdown = True
            _abort(stop_event, [f for _, f in in_flight])
            raise
        except BaseException:
            # Includes GeneratorExit when the consumer stops iterating early.
            _abort(stop_event, [f for _, f in in_flight])
            raise
        finally:
            shutdown_executor(
                executor,
                [f for _, f in in_flight],
                self._config.shutdown_timeout,
                force=force_shutdown,
            )
            self._stats.total_time_sec = time.monotonic() - start_time

        logger.info(
            "Streaming batch complete: %d items in %d chunks, %.1fs",
            self._stats.items_processed,
            self._stats.chunks_processed,
            self._stats.total_time_sec,
        )

    def process(
        self,
        items: Iterable[T],
        transform: Callable[[T], R],
        cancel_event: threading.Event | None = None,
    ) -> List[R]:
        """Collect :meth:`process_streaming` into one list."""
        results: List[R] = []
        for block in self.process_streaming(items, transform, cancel_event):
            results.extend(block)
        return results
