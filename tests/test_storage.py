from lyricsync.storage import JsonFileStore, MemoryStore


def test_memory_store_basics():
    store = MemoryStore({"a": 1})
    store.set("b", {"nested": True})
    store.remove(["a", "missing"])
    assert store.keys() == ["b"]
    assert store.get("a", "default") == "default"
    assert store.items() == [("b", {"nested": True})]


def test_json_store_survives_reopen(tmp_path):
    path = tmp_path / "nested" / "cache.json"
    store = JsonFileStore(path)
    store.set("lyric_song_band", {"lyrics": [{"time": 0.5, "text": "夜に駆ける"}]})

    reopened = JsonFileStore(path)
    assert reopened.get("lyric_song_band")["lyrics"][0]["text"] == "夜に駆ける"
    assert not path.with_suffix(".tmp").exists()


def test_json_store_remove_persists(tmp_path):
    path = tmp_path / "session.json"
    store = JsonFileStore(path)
    store.set("activePlayers", {"1": {}})
    store.remove(["activePlayers"])
    assert JsonFileStore(path).keys() == []


def test_corrupt_file_starts_empty(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text("{not json")
    assert JsonFileStore(path).keys() == []

    path.write_text("[1, 2, 3]")
    assert JsonFileStore(path).keys() == []


class Ticker:
    def __init__(self):
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_json_store_batches_writes_within_the_flush_interval(tmp_path):
    path = tmp_path / "session.json"
    ticker = Ticker()
    store = JsonFileStore(path, flush_interval=2.0, clock=ticker)

    store.set("activePlayers", {"1": {"currentTime": 1}})
    assert JsonFileStore(path).get("activePlayers") == {"1": {"currentTime": 1}}

    ticker.now += 0.5
    store.set("activePlayers", {"1": {"currentTime": 2}})
    assert JsonFileStore(path).get("activePlayers") == {"1": {"currentTime": 1}}

    ticker.now += 2.0
    store.set("activePlayers", {"1": {"currentTime": 3}})
    assert JsonFileStore(path).get("activePlayers") == {"1": {"currentTime": 3}}


def test_flush_writes_pending_changes(tmp_path):
    path = tmp_path / "cache.json"
    ticker = Ticker()
    store = JsonFileStore(path, flush_interval=60.0, clock=ticker)
    store.set("a", 1)
    store.set("b", 2)
    assert JsonFileStore(path).keys() == ["a"]
    store.flush()
    assert JsonFileStore(path).keys() == ["a", "b"]
