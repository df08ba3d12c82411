"""Player state store — which instance is playing what, with observer fan-out."""
import logging
from typing import Callable, Iterable, Optional

from .config import STORE_KEY
from .errors import format_error
from .models import PlayerState
from .utils import now_ms

logger = logging.getLogger(__name__)

STORE_UPDATED = "storeUpdated"


class SessionRepository:
    """Persists the instance map under a single session-scoped key."""

    def __init__(self, backend, key: str = STORE_KEY):
        self.backend = backend
        self.key = key

    def load(self) -> dict[str, PlayerState]:
        raw = self.backend.get(self.key) or {}
        if not isinstance(raw, dict):
            return {}
        states = {}
        for instance_id, data in raw.items():
            if isinstance(data, dict):
                state = PlayerState.from_json(data)
                state.instance_id = str(instance_id)
                states[str(instance_id)] = state
        return states

    def save(self, states: dict[str, PlayerState]):
        self.backend.set(self.key, {iid: s.to_json() for iid, s in states.items()})

    def clear(self):
        self.backend.remove([self.key])


class PlayerStateStore:
    def __init__(
        self,
        repository: SessionRepository,
        publish: Optional[Callable[[str, dict], None]] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.repository = repository
        self._publish = publish
        self._clock = clock
        try:
            self._states = repository.load()
        except Exception as e:
            format_error("session_save", str(e), operation="load")
            self._states = {}

    def upsert(self, instance_id: str, snapshot: dict) -> PlayerState:
        instance_id = str(instance_id)
        current = self._states.get(instance_id) or PlayerState(instance_id=instance_id)
        state = current.merged(snapshot)
        state.instance_id = instance_id
        state.last_updated = self._clock()
        self._states[instance_id] = state
        self._changed()
        return state

    def remove(self, instance_id: str) -> bool:
        if self._states.pop(str(instance_id), None) is None:
            return False
        logger.info("Player %s removed", instance_id)
        self._changed()
        return True

    def snapshot(self) -> dict[str, PlayerState]:
        return dict(self._states)

    def to_json(self) -> dict:
        return {iid: state.to_json() for iid, state in self._states.items()}

    def reconcile(self, live_ids: Iterable[str]) -> list[str]:
        """Drop zombie entries whose instance is no longer alive. Returns the removed ids."""
        live = {str(i) for i in live_ids}
        zombies = [iid for iid in self._states if iid not in live]
        if not zombies:
            return []
        for iid in zombies:
            del self._states[iid]
        logger.info("Reconciled away %d zombie player(s): %s", len(zombies), ", ".join(zombies))
        self._changed()
        return zombies

    def reset(self):
        """Fresh process: nothing from a previous run is trusted."""
        self._states = {}
        try:
            self.repository.clear()
        except Exception as e:
            format_error("session_save", str(e), operation="clear")

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, instance_id) -> bool:
        return str(instance_id) in self._states

    def _changed(self):
        try:
            self.repository.save(self._states)
        except Exception as e:
            format_error("session_save", str(e))
        if self._publish is None:
            return
        try:
            self._publish(STORE_UPDATED, {"store": self.to_json()})
        except Exception as e:
            logger.debug("storeUpdated not delivered: %s", e)
