from unittest.mock import MagicMock

import pytest

from parabatch.errors import ProfilerStateError
from parabatch.profiling import BatchProfiler, PerformanceMetrics, process_memory_bytes


def make_profiler(times, memory, **kwargs):
    clock = iter(times)
    probe = iter(memory)
    return BatchProfiler(clock=lambda: next(clock), memory_probe=lambda: next(probe), **kwargs)


def test_throughput_over_one_second():
    profiler = make_profiler([10.0, 11.0], [1000, 1000])
    profiler.start()
    profiler.add_processed_items(5)
    metrics = profiler.stop()

    assert metrics.total_time_ms == pytest.approx(1000.0)
    assert metrics.items_processed == 5
    assert metrics.throughput == pytest.approx(5.0)


def test_memory_delta_may_be_negative():
    profiler = make_profiler([0.0, 0.5], [5000, 3000])
    profiler.start()
    metrics = profiler.stop()
    assert metrics.memory_used_bytes == -2000


def test_zero_items_reports_zero_throughput():
    profiler = make_profiler([0.0, 3.0], [0, 0])
    profiler.start()
    assert profiler.stop().throughput == 0.0


def test_zero_elapsed_reports_zero_throughput():
    profiler = make_profiler([1.0, 1.0], [0, 0])
    profiler.start()
    profiler.add_processed_items(10)
    metrics = profiler.stop()
    assert metrics.total_time_ms == 0.0
    assert metrics.throughput == 0.0


def test_stop_before_start_is_rejected():
    profiler = BatchProfiler()
    with pytest.raises(ProfilerStateError):
        profiler.stop()


def test_profiler_is_reusable_and_resets_counter():
    profiler = make_profiler([0.0, 1.0, 5.0, 7.0], [0, 0, 0, 0])
    profiler.start()
    profiler.add_processed_items(3)
    first = profiler.stop()
    assert not profiler.is_running

    profiler.start()
    assert profiler.items_processed == 0
    profiler.add_processed_items(4)
    second = profiler.stop()

    assert first.items_processed == 3
    assert second.items_processed == 4
    assert second.throughput == pytest.approx(2.0)


def test_context_manager_stores_last_metrics():
    profiler = make_profiler([0.0, 0.25], [0, 1024 * 1024])
    with profiler as p:
        assert p.is_running
        p.add_processed_items(1)
    assert profiler.last_metrics is not None
    assert profiler.last_metrics.memory_used_mb == pytest.approx(1.0)
    assert profiler.last_metrics.throughput == pytest.approx(4.0)


def test_tracker_receives_snapshot():
    tracker = MagicMock()
    profiler = make_profiler([0.0, 1.0], [0, 0], tracker=tracker)
    profiler.start()
    metrics = profiler.stop()
    tracker.log_performance.assert_called_once_with(metrics)


def test_metrics_derived_values():
    metrics = PerformanceMetrics(
        total_time_ms=2500.0,
        memory_used_bytes=3 * 1024 * 1024,
        items_processed=100,
        throughput=40.0,
    )
    assert metrics.total_time_seconds == 2.5
    assert metrics.memory_used_mb == 3.0
    assert metrics.to_dict()["items_processed"] == 100
    text = str(metrics)
    assert "2500ms" in text
    assert "3.00MB" in text
    assert "40.00 items/s" in text


def test_process_memory_probe_reads_real_process():
    assert process_memory_bytes() > 0
