"""Candidate ranking for catalog search results."""
import re

from .models import CatalogRecord, Query
from .utils import match_key

# Tuning constants: hand-picked, never calibrated against labelled data.
ACCEPT_THRESHOLD = 70
REJECT_ARTIST = -9999
REJECT_DURATION = -1000

ARTIST_EXACT = 100
ARTIST_PARTIAL = 80
DURATION_CLOSE_S = 2
DURATION_NEAR_S = 5
DURATION_MAX_S = 10
DURATION_CLOSE_BONUS = 50
DURATION_NEAR_BONUS = 20
DURATION_OFF_PENALTY = -50
TITLE_EXACT = 40
TITLE_PARTIAL = 20
SCRIPT_BONUS = 100
INSTRUMENTAL_PENALTY = -100

# Primary language subtag -> script the lyrics should be written in
SCRIPT_PATTERNS: dict[str, re.Pattern] = {
    "ja": re.compile(r"[\u3040-\u30ff\u4e00-\u9fff]"),
    "ko": re.compile(r"[\uac00-\ud7af]"),
    "zh": re.compile(r"[\u4e00-\u9fff]"),
    "ru": re.compile(r"[\u0400-\u04ff]"),
}


def artist_match(candidate: str, query: str) -> int:
    """100 exact, 80 containment either way, 0 no overlap (or nothing to compare)."""
    a = match_key(candidate)
    b = match_key(query)
    if not a or not b:
        return 0
    if a == b:
        return ARTIST_EXACT
    if a in b or b in a:
        return ARTIST_PARTIAL
    return 0


def primary_language(tag: str) -> str:
    """'ja-JP' -> 'ja'"""
    return (tag or "").split("-")[0].split("_")[0].strip().lower()


def score(candidate: CatalogRecord, query: Query) -> int:
    artist_score = artist_match(candidate.artist_name, query.artist)
    if artist_score == 0:
        return REJECT_ARTIST
    total = artist_score

    if query.duration > 0 and candidate.duration > 0:
        diff = abs(candidate.duration - query.duration)
        if diff <= DURATION_CLOSE_S:
            total += DURATION_CLOSE_BONUS
        elif diff <= DURATION_NEAR_S:
            total += DURATION_NEAR_BONUS
        elif diff > DURATION_MAX_S:
            return REJECT_DURATION
        else:
            total += DURATION_OFF_PENALTY

    c_title = match_key(candidate.track_name)
    q_title = match_key(query.title)
    if c_title == q_title:
        total += TITLE_EXACT
    elif c_title in q_title or q_title in c_title:
        total += TITLE_PARTIAL

    pattern = SCRIPT_PATTERNS.get(primary_language(query.language))
    if pattern and pattern.search(candidate.synced_lyrics or ""):
        total += SCRIPT_BONUS

    if candidate.instrumental:
        total += INSTRUMENTAL_PENALTY

    return total


def is_acceptable(value: int) -> bool:
    return value > ACCEPT_THRESHOLD


def best_candidate(candidates: list[CatalogRecord], query: Query):
    """Highest-scoring candidate above the threshold, or None."""
    ranked = sorted(
        ((score(c, query), c) for c in candidates),
        key=lambda pair: pair[0],
        reverse=True,
    )
    if ranked and is_acceptable(ranked[0][0]):
        return ranked[0][1]
    return None
