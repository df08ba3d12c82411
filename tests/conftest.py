"""Test configuration and fixtures.

Provides reusable fixtures for:
- Error log redirection into a temp directory
- A controllable millisecond clock
- Fake LRCLIB catalog responses via httpx.MockTransport
"""

import json

import httpx
import pytest

from lyricsync import errors
from lyricsync.catalog import CatalogClient

CATALOG_HOST = "https://catalog.test"
DAY_MS = 24 * 60 * 60 * 1000


def lrc_doc(*texts: str, step: int = 5) -> str:
    """'[00:00.00] a\\n[00:05.00] b ...'"""
    return "\n".join(f"[00:{i * step:02d}.00] {text}" for i, text in enumerate(texts))


def record(
    track: str = "Song",
    artist: str = "Band",
    duration: float = 200,
    synced: str | None = None,
    instrumental: bool = False,
) -> dict:
    """A catalog record as LRCLIB returns it."""
    return {
        "id": 1,
        "trackName": track,
        "artistName": artist,
        "albumName": "Album",
        "duration": duration,
        "instrumental": instrumental,
        "plainLyrics": None,
        "syncedLyrics": synced,
    }


class FakeClock:
    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance_days(self, days: float):
        self.now += int(days * DAY_MS)


class CatalogRecorder:
    """Routes /api/get and /api/search to canned handlers and records every call."""

    def __init__(self, get=None, search=None):
        self.get = get or (lambda params: None)
        self.search = search or (lambda params: [])
        self.calls: list[tuple[str, dict]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        params = dict(request.url.params)
        self.calls.append((request.url.path, params))
        if request.url.path == "/api/get":
            body = self.get(params)
            if isinstance(body, httpx.Response):
                return body
            if body is None:
                return httpx.Response(404, json={"code": 404, "name": "TrackNotFound"})
            return httpx.Response(200, json=body)
        if request.url.path == "/api/search":
            body = self.search(params)
            if isinstance(body, httpx.Response):
                return body
            return httpx.Response(200, content=json.dumps(body))
        return httpx.Response(404)

    def paths(self) -> list[str]:
        return [path for path, _ in self.calls]


@pytest.fixture(autouse=True)
def _isolated_error_log(tmp_path, monkeypatch):
    monkeypatch.setattr(errors, "DATA_DIR", tmp_path)
    monkeypatch.setattr(errors, "ERRORS_LOG", tmp_path / "errors.log")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_catalog():
    def _make(recorder: CatalogRecorder) -> CatalogClient:
        return CatalogClient(host=CATALOG_HOST, transport=httpx.MockTransport(recorder))

    return _make
