import pytest

from lyricsync.models import CatalogRecord, Query
from lyricsync.scoring import (
    ACCEPT_THRESHOLD,
    REJECT_ARTIST,
    REJECT_DURATION,
    best_candidate,
    is_acceptable,
    primary_language,
    score,
)

ENGLISH = "[00:01.00] hello\n[00:02.00] world"
JAPANESE = "[00:01.00] 夜に駆ける\n[00:02.00] 沈むように"


def candidate(**kw) -> CatalogRecord:
    base = dict(track_name="Song", artist_name="Band", duration=200.0, synced_lyrics=ENGLISH)
    base.update(kw)
    return CatalogRecord(**base)


def query(**kw) -> Query:
    base = dict(title="Song", artist="Band", duration=200.0)
    base.update(kw)
    return Query(**base)


def test_perfect_match():
    assert score(candidate(), query()) == 100 + 50 + 40


@pytest.mark.parametrize(
    "title, duration, language",
    [("Song", 200.0, ""), ("Totally different", 0.0, "ja"), ("Song", 500.0, "ru")],
)
def test_artist_without_overlap_is_always_rejected(title, duration, language):
    result = score(candidate(artist_name="Someone Else"), query(title=title, duration=duration, language=language))
    assert result == REJECT_ARTIST
    assert result < ACCEPT_THRESHOLD


def test_empty_artist_is_not_a_match():
    assert score(candidate(artist_name=""), query()) == REJECT_ARTIST
    assert score(candidate(), query(artist="!!!")) == REJECT_ARTIST


def test_partial_artist_match():
    assert score(candidate(artist_name="The Band"), query()) == 80 + 50 + 40


def test_eleven_seconds_off_is_rejected_even_with_perfect_metadata():
    assert score(candidate(duration=211.0), query()) == REJECT_DURATION


@pytest.mark.parametrize(
    "duration, expected",
    [(201.5, 190), (204.0, 160), (207.0, 90), (210.0, 90), (0.0, 140)],
)
def test_duration_bands(duration, expected):
    assert score(candidate(duration=duration), query()) == expected


def test_unknown_query_duration_skips_the_check():
    assert score(candidate(duration=999.0), query(duration=0.0)) == 140


def test_title_containment():
    assert score(candidate(track_name="Song (Remastered)"), query()) == 100 + 50 + 20
    assert score(candidate(track_name="Elsewhere"), query()) == 100 + 50


def test_script_bonus_uses_primary_subtag():
    jp = candidate(synced_lyrics=JAPANESE)
    assert score(jp, query(language="ja-JP")) == 190 + 100
    assert score(jp, query(language="en-US")) == 190
    assert score(candidate(), query(language="ja")) == 190


def test_instrumental_penalty():
    assert score(candidate(instrumental=True), query()) == 90


def test_threshold_is_strict():
    assert not is_acceptable(ACCEPT_THRESHOLD)
    assert is_acceptable(ACCEPT_THRESHOLD + 1)


def test_primary_language():
    assert primary_language("ja-JP") == "ja"
    assert primary_language("zh_Hant") == "zh"
    assert primary_language("") == ""


def test_best_candidate_picks_highest_acceptable():
    weak = candidate(track_name="Other", artist_name="The Band", duration=207.0)  # 80 - 50 = 30
    strong = candidate()
    assert best_candidate([weak, strong], query()) is strong
    assert best_candidate([weak], query()) is None
    assert best_candidate([], query()) is None


KINO = "Кино"
KUKUSHKA = "Кукушка"
RUSSIAN = "[00:01.00] Песен еще\n[00:02.00] не написано"


def test_cyrillic_artist_matches_and_earns_the_script_bonus():
    ru = candidate(track_name=KUKUSHKA, artist_name=KINO, duration=400.0, synced_lyrics=RUSSIAN)
    q = query(title=KUKUSHKA, artist=KINO, duration=400.0, language="ru-RU")
    assert score(ru, q) == 100 + 50 + 40 + 100
    assert best_candidate([ru], q) is ru


def test_different_cyrillic_artists_are_still_rejected():
    ru = candidate(track_name=KUKUSHKA, artist_name=KINO, synced_lyrics=RUSSIAN)
    assert score(ru, query(title=KUKUSHKA, artist="Аквариум")) == REJECT_ARTIST
