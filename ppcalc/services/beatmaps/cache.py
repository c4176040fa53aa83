"""Two-tier cache for beatmap files: memory first, persistent disk storage behind it."""

import asyncio
import os
import tempfile
import time
from pathlib import Path
from types import TracebackType
from typing import Self

import httpx
from cachetools import TTLCache
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from ppcalc.exceptions import FetchError, StorageError, ValidationError
from ppcalc.services.beatmaps.models import CachedBeatmap
from ppcalc.utils.logger import logger

DEFAULT_DOWNLOAD_URL = "https://osu.ppy.sh/osu/"
MIN_BEATMAP_SIZE = 30
CACHING_DAYS = 7


class BeatmapCache:
    """Two-tier cache: in-memory (fast, O(1) lookup) + disk (persistent across restarts).

    On cache miss, downloads the ``.osu`` file from the remote store, writes it to
    disk atomically and keeps it in memory. Concurrent requests for the same beatmap
    wait on a per-beatmap lock so that only one download is issued; requests for
    different beatmaps never block each other.

    Disk entries are fresh while their modification time is within the retention
    window. Expired entries are not deleted, the next successful download replaces them.
    """

    def __init__(
        self,
        base_dir: Path,
        download_url: str = DEFAULT_DOWNLOAD_URL,
        ttl_days: float = CACHING_DAYS,
        min_size: int = MIN_BEATMAP_SIZE,
        timeout: float = 30.0,
        max_attempts: int = 3,
        retry_delay: float = 3.0,
        memory_ttl_minutes: int = 30,
        memory_max_entries: int = 256,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the cache.

        Args:
            base_dir: Directory holding one ``<beatmap_id>.osu`` file per beatmap
            download_url: Base URL of the remote store; the beatmap id is appended
            ttl_days: Retention window for cached files in days
            min_size: Content smaller than this many bytes is treated as invalid
            timeout: HTTP timeout for a single download attempt in seconds
            max_attempts: Number of download attempts before giving up
            retry_delay: Delay between download attempts in seconds
            memory_ttl_minutes: Time-to-live for in-memory entries in minutes
            memory_max_entries: Maximum number of beatmaps in the in-memory TTLCache
            client: HTTP client to use. If None, the cache creates and owns one
        """
        self._base_dir = base_dir
        self._download_url = download_url.rstrip("/")
        self._ttl_seconds = ttl_days * 24 * 3600
        self._min_size = min_size
        self._timeout = timeout
        self._max_attempts = max(1, max_attempts)
        self._retry_delay = retry_delay
        self._locks: dict[int, asyncio.Lock] = {}
        self._memory_cache: TTLCache[int, CachedBeatmap] = TTLCache(
            maxsize=memory_max_entries, ttl=memory_ttl_minutes * 60
        )
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _beatmap_path(self, beatmap_id: int) -> Path:
        return self._base_dir / f"{beatmap_id}.osu"

    def _beatmap_url(self, beatmap_id: int) -> str:
        return f"{self._download_url}/{beatmap_id}"

    def _get_lock(self, beatmap_id: int) -> asyncio.Lock:
        if beatmap_id not in self._locks:
            self._locks[beatmap_id] = asyncio.Lock()
        return self._locks[beatmap_id]

    def _get_from_memory(self, beatmap_id: int) -> CachedBeatmap | None:
        """Get beatmap from memory cache if present and still within the retention window.

        The TTLCache expires entries after the memory TTL; entries promoted from disk
        may additionally run past the file retention window, so that is checked here.

        Args:
            beatmap_id: Beatmap ID

        Returns:
            CachedBeatmap if valid, None otherwise
        """
        entry: CachedBeatmap | None = self._memory_cache.get(beatmap_id)
        if entry is not None and entry.is_expired(self._ttl_seconds):
            self._memory_cache.pop(beatmap_id, None)
            return None
        return entry

    def _put_to_memory(self, beatmap_id: int, content: bytes, fetched_at: float) -> CachedBeatmap:
        entry = CachedBeatmap(beatmap_id=beatmap_id, content=content, fetched_at=fetched_at)
        self._memory_cache[beatmap_id] = entry
        return entry

    def _load_from_disk(self, beatmap_id: int) -> CachedBeatmap | None:
        """Load beatmap from disk cache (synchronous, call via to_thread).

        Args:
            beatmap_id: Beatmap ID

        Returns:
            CachedBeatmap if a fresh, valid file exists, None otherwise

        Raises:
            StorageError: If an existing file cannot be read
        """
        path = self._beatmap_path(beatmap_id)
        try:
            stat = path.stat()
            if time.time() - stat.st_mtime > self._ttl_seconds:
                logger.debug(f"Disk cache expired for beatmap {beatmap_id}")
                return None
            content = path.read_bytes()
        except (FileNotFoundError, NotADirectoryError):
            # Never cached, or removed between stat and read
            return None
        except OSError as e:
            raise StorageError(f"Failed to read beatmap {beatmap_id} from {path}: {e}") from e

        entry = CachedBeatmap(beatmap_id=beatmap_id, content=content, fetched_at=stat.st_mtime)
        if entry.size_bytes < self._min_size:
            logger.warning(
                f"Ignoring undersized cached file for beatmap {beatmap_id} "
                f"({entry.size_bytes} bytes)"
            )
            return None
        return entry

    def _write_to_disk(self, beatmap_id: int, content: bytes) -> None:
        """Write beatmap to disk cache (synchronous, call via to_thread).

        Writes to a temporary file in the cache directory and swaps it in, so an
        existing entry is never left half-written.

        Args:
            beatmap_id: Beatmap ID
            content: Raw ``.osu`` file content

        Raises:
            StorageError: If the file cannot be written
        """
        path = self._beatmap_path(beatmap_id)
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._base_dir, prefix=f".{beatmap_id}.", suffix=".tmp"
            )
            tmp_path = Path(tmp_name)
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(content)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, path)
            except BaseException:
                tmp_path.unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write beatmap {beatmap_id} to {path}: {e}") from e

    async def _lookup(self, beatmap_id: int) -> CachedBeatmap | None:
        """Memory first, then disk. Disk hits are promoted into memory."""
        cached = self._get_from_memory(beatmap_id)
        if cached is not None:
            logger.debug(f"Memory cache hit for beatmap {beatmap_id}")
            return cached

        disk_entry = await asyncio.to_thread(self._load_from_disk, beatmap_id)
        if disk_entry is not None:
            logger.debug(f"Disk cache hit for beatmap {beatmap_id}")
            return self._put_to_memory(beatmap_id, disk_entry.content, disk_entry.fetched_at)

        return None

    async def fetch(self, beatmap_id: int) -> bytes:
        """Return the ``.osu`` file content for a beatmap, downloading it if needed.

        Three-level lookup:
        1. Memory hit -> return immediately
        2. Disk hit (fresh and valid) -> load into memory, return
        3. Cache miss -> download under the per-beatmap lock -> write to disk -> return

        Args:
            beatmap_id: Beatmap ID

        Returns:
            Raw beatmap file content

        Raises:
            FetchError: If the remote store keeps failing after all attempts
            ValidationError: If the remote store keeps returning undersized content
            StorageError: If the cached file cannot be read or the downloaded one written
        """
        cached = await self._lookup(beatmap_id)
        if cached is not None:
            return cached.content

        # Lock to prevent duplicate downloads for the same beatmap
        lock = self._get_lock(beatmap_id)
        async with lock:
            # Double-check after acquiring lock
            cached = await self._lookup(beatmap_id)
            if cached is not None:
                logger.debug(f"Cache hit for beatmap {beatmap_id} (after lock)")
                return cached.content

            logger.info(f"Cache miss, downloading beatmap {beatmap_id}")
            content = await self._download(beatmap_id)

            await asyncio.to_thread(self._write_to_disk, beatmap_id, content)
            entry = self._put_to_memory(beatmap_id, content, time.time())
            logger.info(f"Cached beatmap {beatmap_id} ({entry.size_bytes} bytes)")
            return content

    async def _download(self, beatmap_id: int) -> bytes:
        """Download a beatmap, retrying failed and undersized responses.

        Raises:
            FetchError: The last failure once all attempts are exhausted
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_fixed(self._retry_delay),
            retry=retry_if_exception_type(FetchError),
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            return await retrying(self._download_once, beatmap_id)
        except FetchError:
            logger.error(f"Giving up on beatmap {beatmap_id} after {self._max_attempts} attempts")
            raise

    def _log_retry(self, retry_state: RetryCallState) -> None:
        beatmap_id = retry_state.args[0]
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"[Retry] Attempt {retry_state.attempt_number}/{self._max_attempts} to download "
            f"beatmap {beatmap_id} failed: {error}"
        )

    async def _download_once(self, beatmap_id: int) -> bytes:
        url = self._beatmap_url(beatmap_id)
        try:
            response = await self._client.get(url, timeout=self._timeout)
        except httpx.TimeoutException as e:
            raise FetchError(f"Download of beatmap {beatmap_id} timed out") from e
        except httpx.HTTPError as e:
            raise FetchError(f"Cannot download beatmap {beatmap_id}: {e}") from e

        content = response.content
        if not response.is_success:
            raise FetchError(
                f"Failed to download beatmap {beatmap_id}. Status code: {response.status_code}",
                status_code=response.status_code,
                size=len(content),
            )

        if len(content) < self._min_size:
            preview = content[:64].decode(errors="replace")
            raise ValidationError(
                f"Beatmap {beatmap_id} content is {len(content)} bytes "
                f"(minimum {self._min_size}): {preview!r}",
                status_code=response.status_code,
                size=len(content),
            )

        return content

    async def is_cached(self, beatmap_id: int) -> bool:
        """Whether a fresh, valid entry exists in memory or on disk. Nothing is promoted."""
        if self._get_from_memory(beatmap_id) is not None:
            return True
        return await asyncio.to_thread(self._load_from_disk, beatmap_id) is not None

    def clear_memory(self) -> None:
        """Drop the in-memory tier. Disk entries are kept."""
        self._memory_cache.clear()

    async def close(self) -> None:
        """Close the owned HTTP client and clear memory cache and locks."""
        if self._owns_client:
            await self._client.aclose()
        self._memory_cache.clear()
        self._locks.clear()
        logger.info("Beatmap cache shutdown complete")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
