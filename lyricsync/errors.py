"""Structured error logging — JSON to errors.log, plus the service error types."""
import json
import logging
import sys
from datetime import datetime

from .config import ERRORS_LOG, DATA_DIR, DEV_MODE

logger = logging.getLogger(__name__)

_FRIENDLY_MESSAGES = {
    "lyrics_fetch": "Couldn't load lyrics right now.",
    "cache_read": "Lyrics cache unreadable — fetching fresh.",
    "cache_write": "Couldn't save lyrics to the cache.",
    "session_save": "Couldn't save player state.",
}


class HostInvalidated(Exception):
    """The channel to the lyrics service is gone; only a manual reload recovers."""


def format_error(stage: str, raw: str = "", **context) -> str:
    entry = {
        "timestamp": datetime.now().isoformat(),
        "stage": stage,
        "context": context or None,
        "error": raw,
        "python": sys.version.split()[0],
    }

    _append_to_log(entry)
    logger.error("Error at %s: %s", stage, raw)

    if DEV_MODE:
        return json.dumps(entry, indent=2, ensure_ascii=False)
    return _FRIENDLY_MESSAGES.get(stage, f"Something went wrong ({stage}).")


def _append_to_log(entry: dict):
    try:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        with open(ERRORS_LOG, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")
    except OSError:
        pass
