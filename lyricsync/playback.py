"""Track-change flow on the player side: latest request wins, stale results are dropped."""
import asyncio
import inspect
import logging
import math
from typing import Any, Awaitable, Callable, Optional

from .config import DURATION_MAX_RETRIES, DURATION_RETRY_DELAY
from .errors import HostInvalidated
from .models import LyricLine, Query, not_found

logger = logging.getLogger(__name__)

INVALIDATED_MESSAGE = "Lyrics service unavailable. Please reload."


class CancelToken:
    def __init__(self, sequence: "RequestSequence", number: int):
        self._sequence = sequence
        self.number = number

    @property
    def is_current(self) -> bool:
        return self._sequence.current == self.number


class RequestSequence:
    """Monotonic counter; each begin() supersedes every earlier token."""

    def __init__(self):
        self.current = 0

    def begin(self) -> CancelToken:
        self.current += 1
        return CancelToken(self, self.current)


def valid_duration(value: Any) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


async def retry_until(
    probe: Callable[[], Any],
    accept: Callable[[Any], bool] = bool,
    attempts: int = DURATION_MAX_RETRIES,
    delay: float = DURATION_RETRY_DELAY,
    backoff: float = 1.0,
    token: Optional[CancelToken] = None,
) -> Optional[Any]:
    """
    Call probe() until accept(value) holds, at most `attempts` times.
    Sleeps `delay` (scaled by `backoff`) between tries. Returns None on
    exhaustion or as soon as the token is superseded.
    """
    for attempt in range(attempts):
        value = probe()
        if inspect.isawaitable(value):
            value = await value
        if accept(value):
            return value
        if attempt < attempts - 1:
            await asyncio.sleep(delay)
            delay *= backoff
        if token is not None and not token.is_current:
            return None
    return None


class TrackSession:
    """
    One player's view of the current song.

    fetch_lyrics: async callable Query -> list[LyricLine]; raises HostInvalidated
                  when the service can no longer be reached.
    on_lyrics:    receives the lines for the song that is still current.
    on_error:     receives a terminal message once, after HostInvalidated.
    """

    def __init__(
        self,
        fetch_lyrics: Callable[[Query], Awaitable[list[LyricLine]]],
        on_lyrics: Callable[[list[LyricLine]], None],
        on_error: Optional[Callable[[str], None]] = None,
        attempts: int = DURATION_MAX_RETRIES,
        delay: float = DURATION_RETRY_DELAY,
    ):
        self._fetch = fetch_lyrics
        self._on_lyrics = on_lyrics
        self._on_error = on_error
        self._attempts = attempts
        self._delay = delay
        self.sequence = RequestSequence()
        self.song_id: Optional[str] = None
        self.invalidated = False

    async def track_changed(
        self,
        title: str,
        artist: str,
        album: str = "",
        language: str = "",
        duration_probe: Optional[Callable[[], Any]] = None,
    ) -> Optional[list[LyricLine]]:
        """Returns the lines delivered, or None when superseded, duplicate or invalidated."""
        if self.invalidated or not title:
            return None

        song_id = f"{title}|||{artist}"
        if song_id == self.song_id:
            return None
        self.song_id = song_id
        token = self.sequence.begin()

        duration = 0.0
        if duration_probe is not None:
            found = await retry_until(
                duration_probe,
                accept=valid_duration,
                attempts=self._attempts,
                delay=self._delay,
                token=token,
            )
            duration = float(found) if found is not None else 0.0

        if not token.is_current:
            return None

        query = Query(title=title, artist=artist, album=album, language=language, duration=duration)
        try:
            lines = await self._fetch(query)
        except HostInvalidated as e:
            logger.warning("Service channel lost: %s", e)
            self.invalidated = True
            if self._on_error:
                self._on_error(INVALIDATED_MESSAGE)
            return None

        if not token.is_current:
            logger.debug("Dropping lyrics for superseded song %r", title)
            return None

        lines = lines or not_found()
        self._on_lyrics(lines)
        return lines
