"""
Sequential vs. parallel benchmark.

Runs the same transform once in a plain loop and once through
:class:`ParallelBatchProcessor`, then reports the speed-up.

Usage:
    parabatch-benchmark --items 100000 --parallelism 8 --chunk-size 1000
    parabatch-benchmark --config configs/processor.yaml --strategy static

CPU-bound pure-Python transforms hold the GIL, so thread pools mostly help
transforms that release it (I/O, C extensions, ``time.sleep``); use
``--io-latency`` to simulate such work.
"""

from __future__ import annotations

import argparse
import logging
import time
from dataclasses import dataclass
from functools import partial
from typing import Callable, List, Optional, Sequence, TypeVar

from dotenv import load_dotenv

from .parallel import ParallelBatchProcessor, ProcessorConfig, load_processor_config
from .profiling import BatchProfiler, PerformanceMetrics
from .utils import setup_logging

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def simulate_work(item: int, io_latency: float = 0.0) -> int:
    """Deterministic per-item work: 100 rounds of doubling modulo one million."""
    result = item
    for _ in range(100):
        result = (result * 2) % 1_000_000
    if io_latency:
        time.sleep(io_latency)
    return result


@dataclass(frozen=True)
class BenchmarkReport:
    items: int
    sequential_ms: float
    parallel_metrics: PerformanceMetrics

    @property
    def parallel_ms(self) -> float:
        return self.parallel_metrics.total_time_ms

    @property
    def improvement_pct(self) -> float:
        if self.sequential_ms <= 0:
            return 0.0
        return (self.sequential_ms - self.parallel_ms) / self.sequential_ms * 100

    @property
    def speedup(self) -> float:
        if self.parallel_ms <= 0:
            return 0.0
        return self.sequential_ms / self.parallel_ms


def run_benchmark(
    items: Sequence[T],
    transform: Callable[[T], R],
    processor: ParallelBatchProcessor,
    profiler: Optional[BatchProfiler] = None,
    clock: Callable[[], float] = time.monotonic,
) -> BenchmarkReport:
    """
    Time a sequential pass and a profiled parallel pass over ``items``.

    Raises:
        RuntimeError: If the two passes disagree on the results
    """
    start = clock()
    sequential: List[R] = [transform(item) for item in items]
    sequential_ms = (clock() - start) * 1000
    logger.info("Sequential pass: %d items in %.0fms", len(sequential), sequential_ms)

    profiler = profiler or BatchProfiler(clock=clock)
    profiler.start()
    parallel = processor.process(items, transform, profiler=profiler)
    metrics = profiler.stop()

    if parallel != sequential:
        raise RuntimeError("Parallel results differ from sequential results")

    return BenchmarkReport(
        items=len(items),
        sequential_ms=sequential_ms,
        parallel_metrics=metrics,
    )


def format_report(report: BenchmarkReport) -> str:
    return "\n".join(
        [
            "=== Results ===",
            f"Items: {report.items}",
            f"Sequential processing time: {report.sequential_ms:.0f}ms",
            f"Parallel processing time: {report.parallel_ms:.0f}ms",
            f"Throughput: {report.parallel_metrics.throughput:.2f} items/s",
            f"Memory used: {report.parallel_metrics.memory_used_mb:.2f} MB",
            f"Performance improvement: {report.improvement_pct:.1f}%",
            f"Speed-up factor: {report.speedup:.1f}x",
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compare sequential and parallel batch processing."
    )
    parser.add_argument("--items", type=int, default=100_000, help="Number of test items")
    parser.add_argument("--config", type=str, help="Processor config YAML")
    parser.add_argument("--parallelism", type=int, help="Worker threads (default: CPU count)")
    parser.add_argument("--chunk-size", type=int, help="Items per chunk")
    parser.add_argument(
        "--strategy",
        choices=["static", "dynamic"],
        help="Scheduling policy",
    )
    parser.add_argument(
        "--io-latency",
        type=float,
        default=0.0,
        help="Seconds of simulated blocking I/O per item",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    return parser


def resolve_config(args: argparse.Namespace) -> ProcessorConfig:
    """Merge YAML file, PARABATCH_* environment and command-line options."""
    base = load_processor_config(args.config).config if args.config else None
    config = ProcessorConfig.from_env(base)
    return ProcessorConfig.create(
        parallelism=args.parallelism if args.parallelism is not None else config.parallelism,
        chunk_size=args.chunk_size if args.chunk_size is not None else config.chunk_size,
        strategy=args.strategy or config.strategy,
        shutdown_timeout=config.shutdown_timeout,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    config = resolve_config(args)
    processor = ParallelBatchProcessor.from_config(config)
    data = list(range(args.items))
    transform = partial(simulate_work, io_latency=args.io_latency)

    print(f"Generated {len(data)} test items")
    print(
        f"Config: parallelism={config.parallelism}, chunk_size={config.chunk_size}, "
        f"strategy={config.strategy.value}\n"
    )
    report = run_benchmark(data, transform, processor)
    print(format_report(report))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
