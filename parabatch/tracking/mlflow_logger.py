from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

if TYPE_CHECKING:  # pragma: no cover
    from ..profiling import PerformanceMetrics


class MlflowLogger:
    """
    Optional MLflow logger for batch runs. Enabled by setting
    PARABATCH_ENABLE_MLFLOW=1 and installing the mlflow package
    (``pip install parabatch[tracking]``).
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        env = os.environ if environ is None else environ
        self._enabled = env.get("PARABATCH_ENABLE_MLFLOW", "0").lower() in (
            "1",
            "true",
            "yes",
        )
        self._mlflow = None
        self._run_name = env.get("PARABATCH_MLFLOW_RUN_NAME", "parabatch")
        if self._enabled:
            try:
                import mlflow  # type: ignore

                self._mlflow = mlflow
            except Exception:
                self._enabled = False
                self._mlflow = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    def log_performance(
        self,
        metrics: "PerformanceMetrics",
        params: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log a profiling snapshot, plus optional run parameters (e.g. config)."""
        if not (self._enabled and self._mlflow):
            return
        values = {
            "total_time_ms": float(metrics.total_time_ms),
            "memory_used_bytes": float(metrics.memory_used_bytes),
            "items_processed": float(metrics.items_processed),
            "throughput": float(metrics.throughput),
        }

        def action() -> None:
            if params:
                self._mlflow.log_params(params)
            self._mlflow.log_metrics(values)

        self._in_run(action)

    def _in_run(self, action) -> None:
        assert self._mlflow is not None

        active = self._mlflow.active_run()
        if active:
            action()
            return

        with self._mlflow.start_run(run_name=self._run_name):
            action()
