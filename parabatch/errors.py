"""
Exception hierarchy for parabatch.

Every error raised by the library derives from :class:`ParabatchError` so
callers can catch library failures without masking unrelated exceptions.
"""

from __future__ import annotations


class ParabatchError(Exception):
    """Base class for all parabatch errors."""


class ConfigurationError(ParabatchError, ValueError):
    """Raised when processor or profiler configuration is invalid."""


class ProcessingFailure(ParabatchError):
    """
    An item transformation raised while processing a batch.

    The batch is aborted and no partial result is returned. The original
    exception is available both as ``cause`` and as ``__cause__``.

    Attributes:
        item_index: Position of the failing item in the input sequence
        chunk_index: Index of the chunk that contained the item
        cause: The exception raised by the transform
    """

    def __init__(
        self,
        item_index: int,
        chunk_index: int,
        cause: BaseException,
    ) -> None:
        self.item_index = item_index
        self.chunk_index = chunk_index
        self.cause = cause
        super().__init__(
            f"Transform failed on item {item_index} (chunk {chunk_index}): "
            f"{type(cause).__name__}: {cause}"
        )


class ProcessingCancelled(ParabatchError):
    """Raised when a caller-supplied cancel event stops a batch."""


class ProfilerStateError(ParabatchError, RuntimeError):
    """Raised when the profiler is stopped without having been started."""
