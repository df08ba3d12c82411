"""LRCLIB catalog client — exact lookup and free-text search."""
import logging
from typing import Optional

import httpx

from .config import CATALOG_HOST, CATALOG_TIMEOUT, USER_AGENT, CLIENT_NAME
from .models import CatalogRecord

logger = logging.getLogger(__name__)


class CatalogClient:
    """
    Thin async wrapper over the catalog's two read endpoints.
    A missing record is a normal outcome (None / []); transport errors and
    non-success statuses raise httpx errors for the caller to absorb.
    """

    def __init__(
        self,
        host: str = CATALOG_HOST,
        timeout: float = CATALOG_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.host = host.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.host,
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": USER_AGENT, "Lrclib-Client": CLIENT_NAME},
        )

    async def get_exact(
        self,
        track_name: str,
        artist_name: str,
        duration: float,
        album_name: str = "",
    ) -> Optional[CatalogRecord]:
        """GET /api/get — single record, or None on 404."""
        params = {
            "track_name": track_name,
            "artist_name": artist_name,
            "duration": int(round(duration)),
        }
        if album_name:
            params["album_name"] = album_name

        r = await self._client.get("/api/get", params=params)
        if r.status_code == 404:
            return None
        r.raise_for_status()
        data = r.json()
        if not isinstance(data, dict):
            return None
        return CatalogRecord.from_json(data)

    async def search(self, q: str) -> list[CatalogRecord]:
        """GET /api/search?q= — candidate records, possibly empty."""
        r = await self._client.get("/api/search", params={"q": q})
        r.raise_for_status()
        data = r.json()
        if not isinstance(data, list):
            return []
        return [CatalogRecord.from_json(item) for item in data if isinstance(item, dict)]

    async def ping(self) -> bool:
        try:
            r = await self._client.get("/api/search", params={"q": "ping"}, timeout=5)
            return r.status_code < 500
        except httpx.HTTPError:
            return False

    async def aclose(self):
        await self._client.aclose()
