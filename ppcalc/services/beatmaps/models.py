"""Models for the beatmap file cache."""

import time
from dataclasses import dataclass, field


@dataclass(slots=True)
class CachedBeatmap:
    """A beatmap file held by the cache.

    Replaced wholesale on refetch, never mutated in place.
    """

    beatmap_id: int
    content: bytes = field(repr=False)
    fetched_at: float  # time.time() when downloaded (file mtime for disk entries)

    @property
    def size_bytes(self) -> int:
        return len(self.content)

    def age(self, now: float | None = None) -> float:
        return (now if now is not None else time.time()) - self.fetched_at

    def is_expired(self, ttl_seconds: float, now: float | None = None) -> bool:
        return self.age(now) > ttl_seconds
