"""In-process memoization of derived beatmap artifacts."""

import asyncio
import functools
import threading
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, cast

from cachetools import LRUCache

from ppcalc.models import ModSet, Ruleset
from ppcalc.utils.logger import logger

_MISSING = object()


class ArtifactKind(StrEnum):
    """Artifacts memoized independently of each other."""

    BEATMAP = "beatmap"
    PLAYABLE_BEATMAP = "playable_beatmap"
    DIFFICULTY_ATTRIBUTES = "difficulty_attributes"


@dataclass(frozen=True, slots=True)
class DifficultyKey:
    """Identity of every artifact derived from one beatmap.

    ``object_limit`` is set only for failed plays and holds the number of hit
    objects the score went through; None means the full beatmap.
    """

    beatmap_id: int
    ruleset: Ruleset
    object_limit: int | None
    mod_set: ModSet

    def __str__(self) -> str:
        limit = "full" if self.object_limit is None else self.object_limit
        return f"{self.beatmap_id}/{self.ruleset.name.lower()}/{limit}/{self.mod_set}"


@dataclass(slots=True)
class MemoizerStats:
    hits: int = 0
    misses: int = 0
    bypassed: int = 0


class ArtifactMemoizer:
    """Composite-key cache for parsed beatmaps, playable beatmaps and difficulty attributes.

    One store per ``ArtifactKind``: a miss on one kind does not imply a miss on
    another. Artifacts keyed by a mod set containing a non-deterministic mod are
    always recomputed and never stored.

    Concurrent misses on the same key may compute twice (last write wins) unless
    ``single_flight`` is enabled, in which case callers share one in-flight
    computation per key.
    """

    def __init__(
        self,
        enabled: bool = True,
        max_entries: int | None = None,
        single_flight: bool = False,
    ):
        """Initialize the memoizer.

        Args:
            enabled: Whether computed artifacts are stored at all
            max_entries: Per-kind LRU bound. None keeps every artifact for the
                process lifetime
            single_flight: Share one computation between concurrent misses on a key
        """
        self._enabled = enabled
        self._max_entries = max_entries
        self._single_flight = single_flight
        self._lock = threading.Lock()
        self._stores: dict[ArtifactKind, MutableMapping[DifficultyKey, Any]] = {
            kind: self._new_store() for kind in ArtifactKind
        }
        self._in_flight: dict[tuple[ArtifactKind, DifficultyKey], asyncio.Future[Any]] = {}
        self.stats = MemoizerStats()

    def _new_store(self) -> MutableMapping[DifficultyKey, Any]:
        if self._max_entries is None:
            return {}
        return LRUCache(maxsize=self._max_entries)

    def _is_cacheable(self, key: DifficultyKey) -> bool:
        return self._enabled and key.mod_set.is_deterministic

    def _lookup(self, key: DifficultyKey, kind: ArtifactKind) -> Any:
        with self._lock:
            return self._stores[kind].get(key, _MISSING)

    def _store(self, key: DifficultyKey, kind: ArtifactKind, artifact: Any) -> None:
        with self._lock:
            self._stores[kind][key] = artifact

    def get(self, key: DifficultyKey, kind: ArtifactKind) -> Any | None:
        """Return a stored artifact without computing it."""
        artifact = self._lookup(key, kind)
        return None if artifact is _MISSING else artifact

    async def get_or_compute[T](
        self,
        key: DifficultyKey,
        kind: ArtifactKind,
        compute: Callable[[], T],
    ) -> T:
        """Return the artifact for ``(key, kind)``, computing it on a miss.

        ``compute`` is synchronous and runs in a worker thread. If the caller is
        cancelled while it runs, the result is discarded.

        Args:
            key: Beatmap/ruleset/limit/mods identity
            kind: Which artifact store to use
            compute: Pure function of ``key`` producing the artifact

        Returns:
            The stored or freshly computed artifact
        """
        if not self._is_cacheable(key):
            self.stats.bypassed += 1
            logger.debug(f"Bypassing {kind} cache for {key}")
            return await asyncio.to_thread(compute)

        artifact = self._lookup(key, kind)
        if artifact is not _MISSING:
            self.stats.hits += 1
            logger.debug(f"{kind} cache hit for {key}")
            return cast("T", artifact)

        self.stats.misses += 1
        if not self._single_flight:
            return await self._compute_and_store(key, kind, compute)

        flight_key = (kind, key)
        future = self._in_flight.get(flight_key)
        if future is None:
            future = asyncio.ensure_future(self._compute_and_store(key, kind, compute))
            self._in_flight[flight_key] = future
            future.add_done_callback(functools.partial(self._finish_flight, flight_key))
        else:
            logger.debug(f"Joining in-flight {kind} computation for {key}")
        # One waiter being cancelled must not cancel the shared computation
        return cast("T", await asyncio.shield(future))

    def _finish_flight(
        self, flight_key: tuple[ArtifactKind, DifficultyKey], _: asyncio.Future[Any]
    ) -> None:
        self._in_flight.pop(flight_key, None)

    async def _compute_and_store[T](
        self,
        key: DifficultyKey,
        kind: ArtifactKind,
        compute: Callable[[], T],
    ) -> T:
        artifact = await asyncio.to_thread(compute)
        self._store(key, kind, artifact)
        logger.debug(f"Cached {kind} for {key}")
        return artifact

    def invalidate(self, key: DifficultyKey, kind: ArtifactKind | None = None) -> None:
        """Drop the artifacts for ``key``, of one kind or of every kind."""
        kinds = [kind] if kind is not None else list(ArtifactKind)
        with self._lock:
            for k in kinds:
                self._stores[k].pop(key, None)

    def clear(self) -> None:
        """Drop every stored artifact and reset the counters."""
        with self._lock:
            for kind in ArtifactKind:
                self._stores[kind] = self._new_store()
        self.stats = MemoizerStats()

    def size(self, kind: ArtifactKind | None = None) -> int:
        with self._lock:
            if kind is not None:
                return len(self._stores[kind])
            return sum(len(store) for store in self._stores.values())
