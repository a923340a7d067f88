from unittest.mock import MagicMock

from parabatch.profiling import PerformanceMetrics
from parabatch.tracking import MlflowLogger

METRICS = PerformanceMetrics(
    total_time_ms=1500.0,
    memory_used_bytes=2048,
    items_processed=300,
    throughput=200.0,
)


def enabled_logger():
    logger = MlflowLogger(environ={})
    logger._enabled = True
    logger._mlflow = MagicMock()
    return logger


def test_disabled_by_default():
    logger = MlflowLogger(environ={})
    assert not logger.enabled
    logger.log_performance(METRICS)


def test_logs_metrics_in_new_run():
    logger = enabled_logger()
    logger._mlflow.active_run.return_value = None

    logger.log_performance(METRICS, params={"parallelism": 4})

    logger._mlflow.start_run.assert_called_once_with(run_name="parabatch")
    logger._mlflow.log_params.assert_called_once_with({"parallelism": 4})
    logger._mlflow.log_metrics.assert_called_once_with(
        {
            "total_time_ms": 1500.0,
            "memory_used_bytes": 2048.0,
            "items_processed": 300.0,
            "throughput": 200.0,
        }
    )


def test_reuses_active_run():
    logger = enabled_logger()
    logger._mlflow.active_run.return_value = object()

    logger.log_performance(METRICS)

    logger._mlflow.start_run.assert_not_called()
    logger._mlflow.log_params.assert_not_called()
    logger._mlflow.log_metrics.assert_called_once()
