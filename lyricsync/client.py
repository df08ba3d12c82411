"""HTTP client for the lyrics service, used by player-side collaborators."""
import logging
from typing import Optional

import httpx

from .config import SERVICE_URL, CATALOG_TIMEOUT
from .errors import HostInvalidated
from .models import LyricLine, Query, not_found
from .playback import TrackSession

logger = logging.getLogger(__name__)


class ServiceClient:
    def __init__(
        self,
        base_url: str = SERVICE_URL,
        timeout: float = CATALOG_TIMEOUT * 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    async def fetch_lyrics(self, query: Query) -> list[LyricLine]:
        """
        GET /api/lyrics. A {success: false} reply degrades to the not-found line;
        a dead transport raises HostInvalidated.
        """
        params = {
            "title": query.title,
            "artist": query.artist,
            "album": query.album,
            "lang": query.language,
            "duration": query.duration,
        }
        try:
            r = await self._client.get("/api/lyrics", params=params)
        except httpx.TransportError as e:
            raise HostInvalidated(str(e)) from e

        if r.status_code >= 500:
            raise HostInvalidated(f"service returned HTTP {r.status_code}")
        try:
            body = r.json()
        except ValueError:
            return not_found()
        if not isinstance(body, dict):
            return not_found()
        if not body.get("success") or not body.get("data"):
            logger.info("Service could not fetch lyrics: %s", body.get("error", "no data"))
            return not_found()
        return [LyricLine.from_json(item) for item in body["data"]]

    def track_session(self, on_lyrics, on_error=None, **kwargs) -> TrackSession:
        """A TrackSession that fetches through this client."""
        return TrackSession(self.fetch_lyrics, on_lyrics, on_error, **kwargs)

    async def aclose(self):
        await self._client.aclose()
