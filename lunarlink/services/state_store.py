import json
import logging
import threading
import time
from typing import Callable, Dict, Optional, Tuple

import redis

from lunarlink.core.config import settings
from lunarlink.services.issuance import IssuanceState

logger = logging.getLogger(__name__)

KEY_PREFIX = "issuance:"


class MemoryStateStore:
    """
    In-process store for per-session issuance state.

    Fine for a single worker. Deployments with several workers should set
    REDIS_URL so every worker sees the same state. Idle states are not kept,
    and entries expire ``ttl_seconds`` after their last save.
    """

    def __init__(self, ttl_seconds: int = 3600, clock: Callable[[], float] = time.monotonic) -> None:
        self._lock = threading.Lock()
        self._states: Dict[str, Tuple[IssuanceState, float]] = {}
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def active_sessions(self) -> int:
        with self._lock:
            self._prune()
            return len(self._states)

    def load(self, session_id: str) -> IssuanceState:
        with self._lock:
            self._prune()
            entry = self._states.get(session_id)
        return entry[0] if entry else IssuanceState()

    def save(self, session_id: str, state: IssuanceState) -> None:
        with self._lock:
            self._prune()
            if state == IssuanceState():
                self._states.pop(session_id, None)
            else:
                self._states[session_id] = (state, self.clock() + self.ttl_seconds)
        logger.debug(f"Saved issuance state for session {session_id}: {state.status.value}")

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._states.pop(session_id, None)

    # Caller holds the lock
    def _prune(self) -> None:
        now = self.clock()
        expired = [sid for sid, (_, expires_at) in self._states.items() if expires_at <= now]
        for sid in expired:
            del self._states[sid]


class RedisStateStore:
    """
    Redis-backed store; state is kept as JSON under ``issuance:<session id>``
    and expires with the session.
    """

    def __init__(self, client: redis.Redis, ttl_seconds: int = 3600):
        self.redis_client = client
        self.ttl_seconds = ttl_seconds

    def load(self, session_id: str) -> IssuanceState:
        raw = self.redis_client.get(KEY_PREFIX + session_id)
        if not raw:
            return IssuanceState()
        return IssuanceState.from_dict(json.loads(raw))

    def save(self, session_id: str, state: IssuanceState) -> None:
        if state == IssuanceState():
            self.redis_client.delete(KEY_PREFIX + session_id)
        else:
            self.redis_client.set(KEY_PREFIX + session_id, json.dumps(state.to_dict()), ex=self.ttl_seconds)
        logger.debug(f"Saved issuance state for session {session_id}: {state.status.value}")

    def delete(self, session_id: str) -> None:
        self.redis_client.delete(KEY_PREFIX + session_id)


_store = None


def build_state_store(redis_url: Optional[str] = None, ttl_seconds: int = 3600):
    if redis_url:
        client = redis.Redis.from_url(redis_url, decode_responses=True)
        logger.info("Issuance state stored in Redis")
        return RedisStateStore(client, ttl_seconds=ttl_seconds)
    logger.info("Issuance state stored in process memory")
    return MemoryStateStore(ttl_seconds=ttl_seconds)


def get_state_store():
    """Dependency returning the process-wide state store."""
    global _store
    if _store is None:
        _store = build_state_store(settings.redis_url, settings.issuance_state_ttl_seconds)
    return _store
