"""Lyrics cache — stale-while-revalidate over a key/value store.

Entries live under "lyric_<title>_<artist>" (normalized). A hit is served
immediately; past TTL_REVALIDATE_MS a background refresh is kicked off. Entries
nobody has read for TTL_EXPIRE_MS are swept by invalidate_if_stale(); hits
refresh lastAccessed at most once per TOUCH_INTERVAL_MS.
"""
import asyncio
import logging
from typing import Callable, Optional

from .config import CACHE_KEY_PREFIX, TTL_REVALIDATE_MS, TTL_EXPIRE_MS, TOUCH_INTERVAL_MS
from .errors import format_error
from .models import CacheEntry, LyricLine, Query
from .sources import SourceOrchestrator
from .utils import cache_key, now_ms

logger = logging.getLogger(__name__)


class LyricsCache:
    def __init__(
        self,
        backend,
        orchestrator: SourceOrchestrator,
        clock: Callable[[], int] = now_ms,
        ttl_revalidate: int = TTL_REVALIDATE_MS,
        ttl_expire: int = TTL_EXPIRE_MS,
        touch_interval: int = TOUCH_INTERVAL_MS,
    ):
        self.backend = backend
        self.orchestrator = orchestrator
        self._clock = clock
        self.ttl_revalidate = ttl_revalidate
        self.ttl_expire = ttl_expire
        self.touch_interval = touch_interval
        self._refreshing: set[str] = set()
        self._tasks: set[asyncio.Task] = set()

    async def get(self, query: Query) -> list[LyricLine]:
        key = cache_key(query.title, query.artist)
        entry = self._read(key)

        if entry is not None:
            now = self._clock()
            if now - entry.last_accessed_at >= self.touch_interval:
                entry.last_accessed_at = now
                self._write(entry)
            if now - entry.updated_at > self.ttl_revalidate:
                self._schedule_refresh(key, query)
            return entry.lines

        return await self.fetch_and_store(query)

    async def fetch_and_store(self, query: Query) -> list[LyricLine]:
        """Resolve from the catalog; anything beyond the lone sentinel line is cached."""
        lines = await self.orchestrator.resolve(query)
        if len(lines) > 1:
            now = self._clock()
            self._write(CacheEntry(
                key=cache_key(query.title, query.artist),
                lines=lines,
                created_at=now,
                updated_at=now,
                last_accessed_at=now,
                meta={
                    "title": query.title,
                    "artist": query.artist,
                    "album": query.album,
                    "duration": query.duration,
                },
            ))
        return lines

    def invalidate_if_stale(self) -> int:
        """Drop entries untouched for longer than the expiry horizon. Returns how many."""
        now = self._clock()
        expired = []
        for key, value in self.backend.items():
            if not key.startswith(CACHE_KEY_PREFIX) or not isinstance(value, dict):
                continue
            last = value.get("lastAccessed") or value.get("createdAt") or now
            if not isinstance(last, (int, float)) or isinstance(last, bool):
                logger.warning("Cache GC skipping %s: bad timestamp %r", key, last)
                continue
            if now - last > self.ttl_expire:
                expired.append(key)
        if not expired:
            return 0
        try:
            self.backend.remove(expired)
        except Exception as e:
            format_error("cache_write", str(e), operation="gc")
            return 0
        logger.info("Cache GC removed %d expired entries", len(expired))
        return len(expired)

    def entry_count(self) -> int:
        return sum(1 for key in self.backend.keys() if key.startswith(CACHE_KEY_PREFIX))

    async def drain(self):
        """Wait for in-flight background refreshes."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ── Internals ─────────────────────────────────────────────────────────────

    def _read(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = self.backend.get(key)
            if not raw:
                return None
            entry = CacheEntry.from_json(raw)
        except Exception as e:
            format_error("cache_read", str(e), key=key)
            return None
        if not entry.lines:
            return None
        entry.key = key
        return entry

    def _write(self, entry: CacheEntry):
        try:
            self.backend.set(entry.key, entry.to_json())
        except Exception as e:
            format_error("cache_write", str(e), key=entry.key)

    def _schedule_refresh(self, key: str, query: Query):
        if key in self._refreshing:
            return
        self._refreshing.add(key)
        logger.info("Revalidating stale lyrics for %r by %r", query.title, query.artist)
        task = asyncio.create_task(self._refresh(key, query))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _refresh(self, key: str, query: Query):
        try:
            await self.fetch_and_store(query)
        except Exception:
            logger.exception("Background refresh failed for %s", key)
        finally:
            self._refreshing.discard(key)
