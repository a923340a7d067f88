from __future__ import annotations

from enum import Enum


class PartitionStrategy(Enum):
    """
    Scheduling policy used to map chunks onto worker threads.

    STATIC:
        Exactly ``parallelism`` worker lanes. Chunk ``i`` is assigned to lane
        ``i % parallelism`` before any work starts and each lane runs its
        chunks one after another. Best for homogeneous per-item cost.
    DYNAMIC:
        Every chunk is queued as its own task; idle workers take the next
        pending chunk. Best for heterogeneous per-item cost.
    """

    STATIC = "static"
    DYNAMIC = "dynamic"

    @classmethod
    def parse(cls, value: "PartitionStrategy | str") -> "PartitionStrategy":
        """Accept an enum member or its (case-insensitive) name or value."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for member in cls:
            if normalized in (member.value, member.name.lower()):
                return member
        raise ValueError(
            f"Unknown strategy: {value!r}. Must be one of {[m.value for m in cls]}"
        )
