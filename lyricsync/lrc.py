"""LRC parsing — "[mm:ss.xx] text" documents into timed lines."""
import re
from typing import Optional

from .models import LyricLine

_TIMESTAMP = re.compile(r"\[(\d{2}):(\d{2})\.(\d{2,3})\]")


def parse(document: Optional[str]) -> Optional[list[LyricLine]]:
    """
    Turn a synced-lyrics document into LyricLines, in document order.
    Untagged lines and tags with no text are dropped. Returns None for empty input.
    """
    if not document:
        return None

    result = []
    for raw in document.splitlines():
        match = _TIMESTAMP.search(raw)
        if not match:
            continue
        text = _TIMESTAMP.sub("", raw, count=1).strip()
        if not text:
            continue
        minutes = int(match.group(1))
        seconds = int(match.group(2))
        # ".5", ".50" and ".500" are all half a second
        fraction = float("0." + match.group(3))
        result.append(LyricLine(time=minutes * 60 + seconds + fraction, text=text))
    return result
