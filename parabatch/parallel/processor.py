"""
Parallel batch processor.

Turns a large in-memory sequence of independent items into a list of results
by splitting it into chunks and running the chunks on a bounded thread pool.

Architecture:
    - Chunk-level parallelism (each chunk is transformed item by item)
    - One worker pool per ``process()`` call, torn down before returning
    - Two scheduling policies (see :class:`PartitionStrategy`)
    - Fail-fast: the first item failure aborts the whole batch

Ordering:
    Chunk results are reassembled by chunk index, so the output is always an
    order-preserving map: ``result[i] == transform(items[i])``.

Thread Safety:
    ``transform`` is called concurrently from several worker threads. Any
    state it shares must be synchronized by the caller. Progress callbacks
    and profiler updates always run on the thread that called ``process()``.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed, wait
from typing import (
    TYPE_CHECKING,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    TypeVar,
)

from ..errors import ProcessingCancelled, ProcessingFailure
from ..types import Chunk, ChunkProgress
from .config import DEFAULT_CHUNK_SIZE, DEFAULT_SHUTDOWN_TIMEOUT, ProcessorConfig
from .partition import partition
from .strategy import PartitionStrategy

if TYPE_CHECKING:  # pragma: no cover
    from ..profiling import BatchProfiler

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

ProgressCallback = Callable[[ChunkProgress], None]

WORKER_THREAD_PREFIX = "parabatch_worker"


class ParallelBatchProcessor:
    """
    Chunked parallel map over a batch of items.

    Example:
        >>> processor = ParallelBatchProcessor(parallelism=8, chunk_size=1000)
        >>> results = processor.process(data, lambda item: item * 2)

    Production Usage:
        >>> # Heterogeneous per-item cost, progress reporting and profiling
        >>> profiler = BatchProfiler()
        >>> processor = ParallelBatchProcessor(
        ...     parallelism=16,
        ...     chunk_size=500,
        ...     strategy=PartitionStrategy.DYNAMIC,
        ... )
        >>> profiler.start()
        >>> results = processor.process(
        ...     records,
        ...     reconcile,
        ...     progress_callback=log_progress,
        ...     profiler=profiler,
        ... )
        >>> metrics = profiler.stop()
    """

    def __init__(
        self,
        parallelism: int | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        strategy: PartitionStrategy | str = PartitionStrategy.DYNAMIC,
        shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
        *,
        cpu_count: Callable[[], Optional[int]] = os.cpu_count,
    ) -> None:
        """
        Initialize the processor.

        Args:
            parallelism: Number of worker threads (default: logical CPU count)
            chunk_size: Number of items per chunk (1000-5000 balances
                parallelism against per-chunk overhead)
            strategy: Scheduling policy, enum member or its string value
            shutdown_timeout: Seconds to wait for workers to drain on teardown
            cpu_count: Source of the default parallelism

        Raises:
            ConfigurationError: If any value is out of range
        """
        self._config = ProcessorConfig.create(
            parallelism=parallelism,
            chunk_size=chunk_size,
            strategy=strategy,
            shutdown_timeout=shutdown_timeout,
            cpu_count=cpu_count,
        )

        logger.debug(
            "ParallelBatchProcessor initialized: parallelism=%d, chunk_size=%d, strategy=%s",
            self._config.parallelism,
            self._config.chunk_size,
            self._config.strategy.value,
        )

    @classmethod
    def from_config(cls, config: ProcessorConfig) -> "ParallelBatchProcessor":
        return cls(
            parallelism=config.parallelism,
            chunk_size=config.chunk_size,
            strategy=config.strategy,
            shutdown_timeout=config.shutdown_timeout,
        )

    @property
    def config(self) -> ProcessorConfig:
        """Get current configuration."""
        return self._config

    def process(
        self,
        items: Optional[Sequence[T]],
        transform: Callable[[T], R],
        *,
        progress_callback: ProgressCallback | None = None,
        profiler: Optional["BatchProfiler"] = None,
        cancel_event: threading.Event | None = None,
    ) -> List[R]:
        """
        Apply ``transform`` to every item using a bounded worker pool.

        Args:
            items: Items to process; ``None`` or empty returns ``[]`` without
                creating a pool
            transform: Per-item function, must be safe to call concurrently
            progress_callback: Called with a :class:`ChunkProgress` after each
                chunk completes
            profiler: If given, receives ``add_processed_items`` per completed
                chunk (it is neither started nor stopped here)
            cancel_event: Cooperative cancellation, checked between items

        Returns:
            Results in input order, same length as ``items``

        Raises:
            ProcessingFailure: If ``transform`` raised an ``Exception`` for any
                item
            ProcessingCancelled: If ``cancel_event`` was set
            Exception: Errors raised by ``progress_callback`` or the
                profiler propagate unchanged, not as ``ProcessingFailure``
            BaseException: Non-``Exception`` errors from ``transform`` (e.g.
                ``SystemExit``) and ``KeyboardInterrupt`` propagate unchanged
        """
        if not items:
            logger.warning("Empty or null items list provided")
            return []

        config = self._config
        total_items = len(items)

        logger.info(
            "Starting parallel batch processing: %d items, parallelism=%d, chunk_size=%d, strategy=%s",
            total_items,
            config.parallelism,
            config.chunk_size,
            config.strategy.value,
        )
        start_time = time.monotonic()

        chunks = partition(items, config.chunk_size)
        logger.debug("Partitioned into %d chunks", len(chunks))

        stop_event = threading.Event()
        chunk_futures: List[Future] = []
        worker_futures: List[Future] = []
        force_shutdown = False

        executor = ThreadPoolExecutor(
            max_workers=config.parallelism,
            thread_name_prefix=WORKER_THREAD_PREFIX,
        )
        try:
            self._submit(
                executor,
                chunks,
                transform,
                stop_event,
                cancel_event,
                chunk_futures,
                worker_futures,
            )
            results = _collect_results(
                chunks,
                chunk_futures,
                total_items,
                progress_callback,
                profiler,
            )
        except KeyboardInterrupt:
            logger.warning("Batch processing interrupted, cancelling pending chunks")
            force_shutdown = True
            _abort(stop_event, chunk_futures)
            raise
        except BaseException:
            _abort(stop_event, chunk_futures)
            raise
        finally:
            shutdown_executor(
                executor,
                worker_futures,
                config.shutdown_timeout,
                force=force_shutdown,
            )

        duration_ms = (time.monotonic() - start_time) * 1000
        throughput = total_items / (duration_ms / 1000) if duration_ms > 0 else 0.0
        logger.info(
            "Batch processing completed: %d items in %.0fms (%.2f items/s)",
            total_items,
            duration_ms,
            throughput,
        )
        return results

    def _submit(
        self,
        executor: ThreadPoolExecutor,
        chunks: List[Chunk[T]],
        transform: Callable[[T], R],
        stop_event: threading.Event,
        cancel_event: threading.Event | None,
        chunk_futures: List[Future],
        worker_futures: List[Future],
    ) -> None:
        """
        Dispatch chunks according to the configured strategy.

        ``chunk_futures`` receives one future per chunk in partition order;
        ``worker_futures`` receives the executor futures that must drain on
        shutdown (the chunk futures themselves for DYNAMIC, the lanes for
        STATIC).
        """
        if self._config.strategy is PartitionStrategy.STATIC:
            lane_count = min(self._config.parallelism, len(chunks))
            chunk_futures.extend(Future() for _ in chunks)
            for lane in range(lane_count):
                worker_futures.append(
                    executor.submit(
                        _run_lane,
                        chunks[lane::lane_count],
                        chunk_futures[lane::lane_count],
                        transform,
                        stop_event,
                        cancel_event,
                    )
                )
            logger.debug("Assigned %d chunks to %d static lanes", len(chunks), lane_count)
            return

        for chunk in chunks:
            future = executor.submit(_run_chunk, chunk, transform, stop_event, cancel_event)
            chunk_futures.append(future)
            worker_futures.append(future)


def process_batch(
    items: Optional[Sequence[T]],
    transform: Callable[[T], R],
    **options,
) -> List[R]:
    """
    One-shot convenience wrapper around :class:`ParallelBatchProcessor`.

    Keyword options are split between the constructor (``parallelism``,
    ``chunk_size``, ``strategy``, ``shutdown_timeout``) and ``process()``.

    Example:
        >>> from parabatch import process_batch
        >>> process_batch(range(10), str, parallelism=2, chunk_size=3)
    """
    ctor_keys = ("parallelism", "chunk_size", "strategy", "shutdown_timeout", "cpu_count")
    ctor_kwargs = {k: options.pop(k) for k in ctor_keys if k in options}
    processor = ParallelBatchProcessor(**ctor_kwargs)
    return processor.process(items, transform, **options)


def log_progress(progress: ChunkProgress) -> None:
    """Ready-made progress callback that logs percent complete."""
    logger.info(
        "Progress: %d/%d items (%.1f%%), %d/%d chunks",
        progress.completed_items,
        progress.total_items,
        progress.percent,
        progress.completed_chunks,
        progress.total_chunks,
    )


def shutdown_executor(
    executor: ThreadPoolExecutor,
    futures: Sequence[Future],
    timeout: float,
    *,
    force: bool = False,
) -> None:
    """
    Shut an executor down, forcing termination after ``timeout`` seconds.

    Graceful shutdown stops new submissions and waits for ``futures`` to
    finish. If they have not drained by the deadline, queued work is
    cancelled and still-running threads are abandoned; this is logged, never
    raised.
    """
    if force:
        executor.shutdown(wait=False, cancel_futures=True)
        return

    executor.shutdown(wait=False)
    _, not_done = wait(futures, timeout=timeout)
    if not_done:
        logger.warning(
            "Executor did not terminate in %.0fs (%d tasks still running), forcing shutdown",
            timeout,
            len(not_done),
        )
        executor.shutdown(wait=False, cancel_futures=True)


def _run_chunk(
    chunk: Chunk[T],
    transform: Callable[[T], R],
    stop_event: threading.Event,
    cancel_event: threading.Event | None,
) -> List[R]:
    """Transform one chunk item by item, in order."""
    logger.debug("Processing chunk %d (%d items)", chunk.index, len(chunk))
    results: List[R] = []
    for offset, item in enumerate(chunk.items):
        if stop_event.is_set():
            raise ProcessingCancelled(f"Chunk {chunk.index} abandoned after batch failure")
        if cancel_event is not None and cancel_event.is_set():
            raise ProcessingCancelled("Batch cancelled by caller")
        try:
            results.append(transform(item))
        except Exception as exc:
            raise ProcessingFailure(
                item_index=chunk.start + offset,
                chunk_index=chunk.index,
                cause=exc,
            ) from exc
    return results


def _run_lane(
    chunks: Sequence[Chunk[T]],
    futures: Sequence[Future],
    transform: Callable[[T], R],
    stop_event: threading.Event,
    cancel_event: threading.Event | None,
) -> None:
    """Run a STATIC lane: its pre-assigned chunks, one after another.

    Every chunk future is resolved before the lane exits, including when the
    transform raises a ``BaseException`` that is not an ``Exception``.
    """
    for position, (chunk, future) in enumerate(zip(chunks, futures)):
        if not future.set_running_or_notify_cancel():
            continue
        try:
            future.set_result(_run_chunk(chunk, transform, stop_event, cancel_event))
        except BaseException as exc:
            future.set_exception(exc)
            for remaining in futures[position + 1 :]:
                remaining.cancel()
            if isinstance(exc, Exception):
                return
            raise


def _collect_results(
    chunks: List[Chunk[T]],
    futures: List[Future],
    total_items: int,
    progress_callback: ProgressCallback | None,
    profiler: Optional["BatchProfiler"],
) -> List[R]:
    """Wait for every chunk, failing on the first error observed."""
    future_to_chunk: Dict[Future, Chunk[T]] = dict(zip(futures, chunks))
    chunk_results: List[Optional[List[R]]] = [None] * len(chunks)
    completed_items = 0

    for completed_chunks, future in enumerate(as_completed(future_to_chunk), start=1):
        chunk = future_to_chunk[future]
        try:
            chunk_results[chunk.index] = future.result()
        except ProcessingFailure as exc:
            logger.error("Batch aborted: %s", exc)
            raise

        completed_items += len(chunk)
        logger.debug(
            "Chunk %d complete (%d/%d chunks)",
            chunk.index,
            completed_chunks,
            len(chunks),
        )
        if profiler is not None:
            profiler.add_processed_items(len(chunk))
        if progress_callback is not None:
            progress_callback(
                ChunkProgress(
                    chunk_index=chunk.index,
                    chunk_size=len(chunk),
                    completed_chunks=completed_chunks,
                    total_chunks=len(chunks),
                    completed_items=completed_items,
                    total_items=total_items,
                )
            )

    return [result for block in chunk_results for result in block or ()]


def _abort(stop_event: threading.Event, futures: Sequence[Future]) -> None:
    stop_event.set()
    for future in futures:
        future.cancel()
