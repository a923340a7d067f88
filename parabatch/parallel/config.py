"""
Processor configuration.

``ProcessorConfig`` is built once and shared by every call made with it. It can
be created directly, from ``PARABATCH_*`` environment variables, or from a
YAML file:

    parallelism: 8
    chunk_size: 500
    strategy: static
    shutdown_timeout: 120
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import yaml

from ..errors import ConfigurationError
from .strategy import PartitionStrategy

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_SHUTDOWN_TIMEOUT = 300.0

_CONFIG_KEYS = {"parallelism", "chunk_size", "strategy", "shutdown_timeout"}


def available_parallelism(
    cpu_count: Callable[[], Optional[int]] = os.cpu_count,
) -> int:
    """Return the host's logical CPU count, never less than 1."""
    return max(1, cpu_count() or 1)


@dataclass(frozen=True)
class ProcessorConfig:
    """Immutable configuration for :class:`ParallelBatchProcessor`.

    Attributes:
        parallelism: Number of worker threads (default: logical CPU count)
        chunk_size: Items per chunk (default 1000)
        strategy: Scheduling policy (default DYNAMIC)
        shutdown_timeout: Grace period in seconds for pool teardown
    """

    parallelism: int = field(default_factory=available_parallelism)
    chunk_size: int = DEFAULT_CHUNK_SIZE
    strategy: PartitionStrategy = PartitionStrategy.DYNAMIC
    shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT

    def __post_init__(self) -> None:
        try:
            strategy = PartitionStrategy.parse(self.strategy)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        object.__setattr__(self, "strategy", strategy)

        if isinstance(self.parallelism, bool) or not isinstance(self.parallelism, int):
            raise ConfigurationError(
                f"parallelism must be an integer, got {self.parallelism!r}"
            )
        if self.parallelism < 1:
            raise ConfigurationError(f"parallelism must be >= 1, got {self.parallelism}")
        if isinstance(self.chunk_size, bool) or not isinstance(self.chunk_size, int):
            raise ConfigurationError(
                f"chunk_size must be an integer, got {self.chunk_size!r}"
            )
        if self.chunk_size < 1:
            raise ConfigurationError(f"chunk_size must be >= 1, got {self.chunk_size}")
        if isinstance(self.shutdown_timeout, bool) or not isinstance(
            self.shutdown_timeout, (int, float)
        ):
            raise ConfigurationError(
                f"shutdown_timeout must be a number, got {self.shutdown_timeout!r}"
            )
        if self.shutdown_timeout <= 0:
            raise ConfigurationError(
                f"shutdown_timeout must be > 0, got {self.shutdown_timeout}"
            )

    @classmethod
    def create(
        cls,
        parallelism: int | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        strategy: PartitionStrategy | str = PartitionStrategy.DYNAMIC,
        shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
        cpu_count: Callable[[], Optional[int]] = os.cpu_count,
    ) -> "ProcessorConfig":
        """Build a config, resolving a missing ``parallelism`` via ``cpu_count``."""
        if parallelism is None:
            parallelism = available_parallelism(cpu_count)
        return cls(
            parallelism=parallelism,
            chunk_size=chunk_size,
            strategy=strategy,  # type: ignore[arg-type]
            shutdown_timeout=shutdown_timeout,
        )

    @classmethod
    def from_env(
        cls,
        base: "ProcessorConfig | None" = None,
        environ: Mapping[str, str] | None = None,
    ) -> "ProcessorConfig":
        """Apply ``PARABATCH_*`` overrides on top of ``base`` (or the defaults)."""
        env = os.environ if environ is None else environ
        cfg = base or cls()
        overrides: Dict[str, Any] = {}

        raw = env.get("PARABATCH_PARALLELISM")
        if raw:
            overrides["parallelism"] = _parse_int("PARABATCH_PARALLELISM", raw)
        raw = env.get("PARABATCH_CHUNK_SIZE")
        if raw:
            overrides["chunk_size"] = _parse_int("PARABATCH_CHUNK_SIZE", raw)
        raw = env.get("PARABATCH_STRATEGY")
        if raw:
            overrides["strategy"] = raw
        raw = env.get("PARABATCH_SHUTDOWN_TIMEOUT")
        if raw:
            overrides["shutdown_timeout"] = _parse_float("PARABATCH_SHUTDOWN_TIMEOUT", raw)

        if not overrides:
            return cfg
        return replace(cfg, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parallelism": self.parallelism,
            "chunk_size": self.chunk_size,
            "strategy": self.strategy.value,
            "shutdown_timeout": self.shutdown_timeout,
        }


@dataclass
class ProcessorSettings:
    config: ProcessorConfig
    extra: Dict[str, Any]


def load_processor_config(path: str | Path) -> ProcessorSettings:
    """
    Load a processor configuration from a YAML file.

    Missing keys fall back to the defaults; keys the processor does not know
    are returned untouched in ``extra``.

    Raises:
        ConfigurationError: If the file is not a YAML mapping or holds
            invalid values
    """
    data = yaml.safe_load(Path(path).read_text()) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a mapping, got {type(data).__name__}")

    kwargs = {k: v for k, v in data.items() if k in _CONFIG_KEYS}
    if "shutdown_timeout" in kwargs:
        kwargs["shutdown_timeout"] = _parse_float(
            "shutdown_timeout", kwargs["shutdown_timeout"]
        )
    return ProcessorSettings(
        config=ProcessorConfig.create(**kwargs),
        extra={k: v for k, v in data.items() if k not in _CONFIG_KEYS},
    )


def _parse_int(name: str, raw: Any) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def _parse_float(name: str, raw: Any) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
