"""Utility helpers for parabatch."""

from .logging_config import setup_logging
from .retry import BackoffStrategy, RetryPolicy

__all__ = [
    "setup_logging",
    "BackoffStrategy",
    "RetryPolicy",
]
