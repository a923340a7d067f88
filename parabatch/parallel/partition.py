"""Splitting of input sequences into chunks."""

from __future__ import annotations

from itertools import islice
from typing import Iterable, Iterator, List, Sequence, TypeVar

from ..errors import ConfigurationError
from ..types import Chunk

T = TypeVar("T")


def partition(items: Sequence[T], chunk_size: int) -> List[Chunk[T]]:
    """
    Split ``items`` into contiguous chunks of at most ``chunk_size`` elements.

    N items yield ``ceil(N / chunk_size)`` chunks; only the last one may be
    shorter. The chunks are disjoint and cover the input exactly.

    Args:
        items: Sequence to split
        chunk_size: Maximum number of items per chunk

    Returns:
        List of chunks in input order

    Raises:
        ConfigurationError: If ``chunk_size`` is smaller than 1
    """
    if chunk_size < 1:
        raise ConfigurationError(f"chunk_size must be >= 1, got {chunk_size}")

    return [
        Chunk(index=idx, start=start, items=tuple(items[start : start + chunk_size]))
        for idx, start in enumerate(range(0, len(items), chunk_size))
    ]


def iter_chunks(items: Iterable[T], chunk_size: int) -> Iterator[Chunk[T]]:
    """Lazily chunk an arbitrary iterable without materializing it."""
    if chunk_size < 1:
        raise ConfigurationError(f"chunk_size must be >= 1, got {chunk_size}")

    iterator = iter(items)
    index = 0
    start = 0
    while True:
        block = tuple(islice(iterator, chunk_size))
        if not block:
            return
        yield Chunk(index=index, start=start, items=block)
        index += 1
        start += len(block)
