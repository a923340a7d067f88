from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Chunk(Generic[T]):
    """
    Contiguous, read-only slice of a batch assigned to one worker task.

    ``start`` is the offset of the first item in the original input, so item
    ``j`` of the chunk is input item ``start + j``.
    """

    index: int
    start: int
    items: Tuple[T, ...]

    def __len__(self) -> int:
        return len(self.items)

    @property
    def end(self) -> int:
        return self.start + len(self.items)


@dataclass(frozen=True)
class ChunkProgress:
    """Progress snapshot handed to progress callbacks after each chunk."""

    chunk_index: int
    chunk_size: int
    completed_chunks: int
    total_chunks: int
    completed_items: int
    total_items: int

    @property
    def percent(self) -> float:
        if self.total_items == 0:
            return 100.0
        return 100.0 * self.completed_items / self.total_items
