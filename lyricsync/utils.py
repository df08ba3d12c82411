"""Text helpers for track metadata: sanitizing, cleanup, normalization, cache keys."""
import re
import time

from .config import CACHE_KEY_PREFIX

# Latin digits/letters plus Hiragana, Katakana, CJK unified ideographs, Hangul syllables
_NON_KEY_CHARS = re.compile(r"[^a-z0-9\u3040-\u309f\u30a0-\u30ff\u4e00-\u9fff\uac00-\ud7af]")
_WHITESPACE = re.compile(r"[\s\u3000]+")

# "(Official Video)", "[MV]", "【Live】" ... and everything after the bracket
_BRACKETED = re.compile(r"\s*[(\[{<\uff08\u3010].*?[)\]}>\uff09\u3011].*$")
_PROMO = re.compile(
    r"\b(?:official\s+(?:music\s+)?video|music\s+video|lyric\s+video|official\s+audio|audio|hq|mv|pv)\b",
    re.IGNORECASE,
)
_FEATURING = re.compile(r"\s+(?:feat\.?|ft\.?|featuring)\s+.*$", re.IGNORECASE)


def sanitize(text: str) -> str:
    """Collapse runs of whitespace (incl. ideographic space) and trim."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def clean_text(text: str) -> str:
    """Strip bracketed suffixes, promo tokens and featuring credits."""
    if not text:
        return ""
    text = _BRACKETED.sub("", text)
    text = _FEATURING.sub("", text)
    text = _PROMO.sub("", text)
    return sanitize(text).strip(" -")


def normalize(text: str) -> str:
    if not text:
        return ""
    return _NON_KEY_CHARS.sub("", text.casefold())


def match_key(text: str) -> str:
    """Casefolded letters and digits of any script, for comparing names."""
    if not text:
        return ""
    return "".join(ch for ch in text.casefold() if ch.isalnum())


def cache_key(title: str, artist: str) -> str:
    return f"{CACHE_KEY_PREFIX}{normalize(title)}_{normalize(artist)}"


def fmt_time(seconds: float) -> str:
    m, s = divmod(int(seconds), 60)
    return f"{m}:{s:02d}"


def now_ms() -> int:
    return int(time.time() * 1000)
