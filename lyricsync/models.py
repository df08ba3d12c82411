"""Data shapes shared by the lyrics pipeline and the player state store."""
import math
from dataclasses import dataclass, field, asdict
from typing import Optional

NOT_FOUND_TEXT = "Lyrics not found"


@dataclass(frozen=True)
class LyricLine:
    time: float
    text: str

    def to_json(self) -> dict:
        return {"time": self.time, "text": self.text}

    @classmethod
    def from_json(cls, data: dict) -> "LyricLine":
        return cls(time=float(data.get("time", 0)), text=str(data.get("text", "")))


def _finite(value, default: float = 0.0) -> Optional[float]:
    """Non-negative finite float, or default for junk, NaN and infinities."""
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return max(0.0, number)


def not_found() -> list[LyricLine]:
    """The sentinel reply when every lookup strategy came up empty."""
    return [LyricLine(0.0, NOT_FOUND_TEXT)]


@dataclass
class Query:
    title: str
    artist: str
    album: str = ""
    language: str = ""
    duration: float = 0.0

    @classmethod
    def from_request(cls, data: dict) -> "Query":
        """Build from a fetchLyrics payload: {title, artist, album, lang, duration}."""
        return cls(
            title=str(data.get("title") or ""),
            artist=str(data.get("artist") or ""),
            album=str(data.get("album") or ""),
            language=str(data.get("lang") or ""),
            duration=_finite(data.get("duration")),
        )


@dataclass
class CatalogRecord:
    track_name: str
    artist_name: str
    album_name: str = ""
    duration: float = 0.0
    synced_lyrics: Optional[str] = None
    instrumental: bool = False

    @classmethod
    def from_json(cls, data: dict) -> "CatalogRecord":
        """Catalog JSON is untrusted — anything missing or odd falls back to empty."""
        synced = data.get("syncedLyrics")
        return cls(
            track_name=str(data.get("trackName") or ""),
            artist_name=str(data.get("artistName") or ""),
            album_name=str(data.get("albumName") or ""),
            duration=_finite(data.get("duration")),
            synced_lyrics=synced if isinstance(synced, str) and synced else None,
            instrumental=bool(data.get("instrumental", False)),
        )


@dataclass
class CacheEntry:
    key: str
    lines: list[LyricLine]
    created_at: int
    updated_at: int
    last_accessed_at: int
    meta: dict = field(default_factory=dict)

    def to_json(self) -> dict:
        return {
            "key": self.key,
            "lyrics": [line.to_json() for line in self.lines],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "lastAccessed": self.last_accessed_at,
            "meta": self.meta,
        }

    @classmethod
    def from_json(cls, data: dict) -> "CacheEntry":
        created = int(data.get("createdAt") or 0)
        return cls(
            key=str(data.get("key", "")),
            lines=[LyricLine.from_json(item) for item in data.get("lyrics") or []],
            created_at=created,
            updated_at=int(data.get("updatedAt") or 0),
            last_accessed_at=int(data.get("lastAccessed") or created),
            meta=dict(data.get("meta") or {}),
        )


PLAYER_STATUSES = ("playing", "paused")

# Collaborators speak camelCase; the store speaks snake_case.
_STATE_FIELDS = {
    "title": "title",
    "artist": "artist",
    "album": "album",
    "artworkUrl": "artwork_url",
    "artwork": "artwork_url",
    "status": "status",
    "currentTime": "current_time",
    "duration": "duration",
}


@dataclass
class PlayerState:
    instance_id: str
    title: str = ""
    artist: str = ""
    album: str = ""
    artwork_url: Optional[str] = None
    status: str = "paused"
    current_time: float = 0.0
    duration: float = 0.0
    last_updated: int = 0

    def merged(self, snapshot: dict) -> "PlayerState":
        """Return a copy with the known snapshot fields applied on top."""
        values = asdict(self)
        for src, dest in _STATE_FIELDS.items():
            if src not in snapshot:
                continue
            value = snapshot[src]
            if dest in ("current_time", "duration"):
                value = _finite(value, None)
                if value is None:
                    continue
            elif dest == "status":
                if value not in PLAYER_STATUSES:
                    continue
            elif dest == "artwork_url":
                value = str(value) if value else None
            else:
                value = str(value or "")
            values[dest] = value
        return PlayerState(**values)

    def to_json(self) -> dict:
        return {
            "instanceId": self.instance_id,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "artworkUrl": self.artwork_url,
            "status": self.status,
            "currentTime": self.current_time,
            "duration": self.duration,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_json(cls, data: dict) -> "PlayerState":
        state = cls(instance_id=str(data.get("instanceId", "")))
        state = state.merged(data)
        state.last_updated = int(data.get("lastUpdated") or 0)
        return state
