"""Source orchestrator — race four lookup strategies, keep the best by priority.

Strategies, highest priority first:
  get_with_album  exact lookup with title/artist/duration/album
  get_no_album    the same without album (album metadata is often wrong)
  search_raw      free-text search, candidates ranked by scoring.score()
  search_clean    the same after stripping "(Official Video)"-style noise,
                  only when that actually changes the text

All run concurrently. A failing strategy is just a None; the others carry on.
"""
import asyncio
import logging
from typing import Optional

import httpx

from . import lrc
from .catalog import CatalogClient
from .models import LyricLine, Query, not_found
from .scoring import best_candidate
from .utils import sanitize, clean_text

logger = logging.getLogger(__name__)

STRATEGY_ORDER = ("get_with_album", "get_no_album", "search_raw", "search_clean")


class SourceOrchestrator:
    def __init__(self, catalog: CatalogClient):
        self.catalog = catalog

    async def resolve(self, query: Query) -> list[LyricLine]:
        """Lyrics for the query, or the not-found sentinel. Never raises."""
        title = sanitize(query.title)
        artist = sanitize(query.artist)
        album = sanitize(query.album)
        clean = Query(
            title=title,
            artist=artist,
            album=album,
            language=query.language,
            duration=query.duration,
        )

        tasks = {
            "get_with_album": self._try_get(clean, include_album=True),
            "get_no_album": self._try_get(clean, include_album=False),
            "search_raw": self._try_search(clean),
        }

        c_title = clean_text(title)
        c_artist = clean_text(artist)
        if (c_title, c_artist) != (title, artist) and c_title and c_artist:
            cleaned = Query(
                title=c_title,
                artist=c_artist,
                album=album,
                language=query.language,
                duration=query.duration,
            )
            tasks["search_clean"] = self._try_search(cleaned)

        names = list(tasks)
        results = await asyncio.gather(*tasks.values(), return_exceptions=True)
        outcome = dict(zip(names, results))

        for name in STRATEGY_ORDER:
            result = outcome.get(name)
            if isinstance(result, BaseException):
                logger.debug("Strategy %s crashed: %r", name, result)
                continue
            if result:
                logger.info("Lyrics for %r by %r via %s (%d lines)", title, artist, name, len(result))
                return result

        logger.info("No lyrics for %r by %r (%d strategies tried)", title, artist, len(names))
        return not_found()

    async def _try_get(self, query: Query, include_album: bool) -> Optional[list[LyricLine]]:
        if not query.title or not query.artist or not query.duration:
            return None
        # Without an album both get strategies would send the same request
        if include_album and not query.album:
            return None
        try:
            record = await self.catalog.get_exact(
                query.title,
                query.artist,
                query.duration,
                album_name=query.album if include_album else "",
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("Exact lookup failed for %r: %s", query.title, e)
            return None
        if record is None:
            return None
        return lrc.parse(record.synced_lyrics) or None

    async def _try_search(self, query: Query) -> Optional[list[LyricLine]]:
        q = f"{query.title} {query.artist}".strip()
        if not q:
            return None
        try:
            records = await self.catalog.search(q)
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("Search failed for %r: %s", q, e)
            return None

        candidates = [r for r in records if r.synced_lyrics]
        if not candidates:
            return None
        best = best_candidate(candidates, query)
        if best is None:
            return None
        return lrc.parse(best.synced_lyrics) or None
