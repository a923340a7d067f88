"""Retry policy for per-item transforms.

The processor never retries on its own: a failing item aborts the batch.
Transforms that hit transient errors (network, locks, throttling) can be
wrapped before they are handed to the processor:

    policy = RetryPolicy(max_attempts=5, retry_on=(ConnectionError,))
    results = processor.process(rows, policy.wrap(fetch_row))
"""

from __future__ import annotations

import functools
import logging
import os
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Tuple, Type, TypeVar

from ..errors import ConfigurationError

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)

ExceptionTypes = Tuple[Type[BaseException], ...]


class BackoffStrategy(Enum):
    """How the delay grows between attempts."""

    FIXED = "fixed"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry wrapper with configurable backoff and exception filters.

    Attributes:
        max_attempts: Total attempts per call, including the first
        backoff: Delay growth strategy
        base_delay: Delay before the second attempt, in seconds
        max_delay: Upper bound for any single delay
        retry_on: Exceptions that may be retried
        give_up_on: Exceptions that are never retried, even if they match
            ``retry_on``
        sleep: Sleep function, replaceable in tests
    """

    max_attempts: int = 3
    backoff: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    base_delay: float = 1.0
    max_delay: float = 30.0
    retry_on: ExceptionTypes = (Exception,)
    give_up_on: ExceptionTypes = ()
    sleep: Callable[[float], None] = time.sleep

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ConfigurationError("retry delays must be >= 0")
        if isinstance(self.backoff, str):
            try:
                object.__setattr__(self, "backoff", BackoffStrategy(self.backoff.lower()))
            except ValueError as exc:
                raise ConfigurationError(f"Unknown backoff strategy: {self.backoff!r}") from exc

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> "RetryPolicy":
        """Read ``PARABATCH_RETRY_*`` variables; keyword overrides win."""
        env = os.environ if environ is None else environ
        kwargs: dict[str, Any] = {}
        try:
            if env.get("PARABATCH_RETRY_MAX_ATTEMPTS"):
                kwargs["max_attempts"] = int(env["PARABATCH_RETRY_MAX_ATTEMPTS"])
            if env.get("PARABATCH_RETRY_BASE_DELAY"):
                kwargs["base_delay"] = float(env["PARABATCH_RETRY_BASE_DELAY"])
        except ValueError as exc:
            raise ConfigurationError(f"Invalid retry setting: {exc}") from exc
        if env.get("PARABATCH_RETRY_BACKOFF"):
            kwargs["backoff"] = env["PARABATCH_RETRY_BACKOFF"]
        kwargs.update(overrides)
        return cls(**kwargs)

    def delay_for(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based)."""
        if self.backoff is BackoffStrategy.FIXED:
            delay = self.base_delay
        elif self.backoff is BackoffStrategy.LINEAR:
            delay = self.base_delay * attempt
        else:
            delay = self.base_delay * (2 ** (attempt - 1))
        return min(delay, self.max_delay)

    def is_retryable(self, exc: BaseException) -> bool:
        if self.give_up_on and isinstance(exc, self.give_up_on):
            return False
        return isinstance(exc, self.retry_on)

    def call(self, func: Callable[..., R], *args: Any, **kwargs: Any) -> R:
        """Call ``func`` and retry retryable failures; re-raise the last one."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if attempt >= self.max_attempts or not self.is_retryable(e):
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "Transform failed (attempt %d/%d), retrying in %.1fs: %s",
                    attempt,
                    self.max_attempts,
                    delay,
                    str(e)[:200],
                )
                self.sleep(delay)
        raise RuntimeError("Unexpected state in RetryPolicy.call")

    def wrap(self, transform: Callable[[T], R]) -> Callable[[T], R]:
        """Return ``transform`` with this policy applied to every call."""

        @functools.wraps(transform)
        def wrapper(item: T) -> R:
            return self.call(transform, item)

        return wrapper
