"""Key/value persistence — a JSON file on disk, or a dict for tests and sessions."""
import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

logger = logging.getLogger(__name__)


class MemoryStore:
    def __init__(self, initial: Optional[dict] = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any):
        self._data[key] = value

    def remove(self, keys: Iterable[str]):
        for key in keys:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)

    def items(self) -> list[tuple[str, Any]]:
        return list(self._data.items())

    def flush(self):
        """Nothing to persist."""


class JsonFileStore(MemoryStore):
    """
    Whole-file JSON store. Loaded once, rewritten atomically on change, at most
    once per flush_interval seconds; flush() writes whatever is still pending.
    A corrupt or unreadable file starts empty; write errors propagate (OSError).
    """

    def __init__(self, path: Path, flush_interval: float = 0.0, clock: Callable[[], float] = time.monotonic):
        self.path = Path(path)
        self.flush_interval = flush_interval
        self._clock = clock
        self._dirty = False
        self._last_flush: Optional[float] = None
        super().__init__(self._load())

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable store %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def set(self, key: str, value: Any):
        super().set(key, value)
        self._changed()

    def remove(self, keys: Iterable[str]):
        keys = list(keys)
        if not any(k in self._data for k in keys):
            return
        super().remove(keys)
        self._changed()

    def flush(self):
        """Atomic write — write to tmp then replace."""
        if not self._dirty:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(self._data, ensure_ascii=False), encoding="utf-8")
        tmp.replace(self.path)
        self._dirty = False
        self._last_flush = self._clock()

    def _changed(self):
        self._dirty = True
        if self._last_flush is None or self._clock() - self._last_flush >= self.flush_interval:
            self.flush()
