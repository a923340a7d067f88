#!/usr/bin/env python3
"""
Run the benchmark workload through the processor using a YAML configuration.
"""

import argparse
from functools import partial

from dotenv import load_dotenv

from parabatch import BatchProfiler, ParallelBatchProcessor, ProcessorConfig
from parabatch.benchmark import simulate_work
from parabatch.parallel import load_processor_config, log_progress
from parabatch.utils import setup_logging


def main() -> None:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Run a parabatch batch from config YAML.")
    parser.add_argument("config", help="Path to processor config YAML")
    parser.add_argument("--log-file", help="Optional log file path")
    parser.add_argument("--progress", action="store_true", help="Log progress per chunk")
    args = parser.parse_args()

    setup_logging("INFO", log_file=args.log_file, show_threads=True)

    settings = load_processor_config(args.config)
    config = ProcessorConfig.from_env(settings.config)
    items = list(range(int(settings.extra.get("items", 10_000))))
    transform = partial(simulate_work, io_latency=float(settings.extra.get("io_latency", 0.0)))

    processor = ParallelBatchProcessor.from_config(config)
    with BatchProfiler() as profiler:
        results = processor.process(
            items,
            transform,
            progress_callback=log_progress if args.progress else None,
            profiler=profiler,
        )

    print(f"Processed {len(results)} items with {config.to_dict()}")
    print(profiler.last_metrics)


if __name__ == "__main__":
    main()
