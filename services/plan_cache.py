import hashlib
import json
import logging
import threading
import time
from typing import Callable, Dict, Optional, Sequence, Tuple

from models import Plan, PlanOptions, Vehicle, Zone

logger = logging.getLogger(__name__)


def plan_fingerprint(
    zones: Sequence[Zone],
    vehicles: Sequence[Vehicle],
    strategy: str,
    options: PlanOptions,
) -> str:
    """
    Stable key for a planning input. The payload is JSON-dumped with
    sort_keys=True so field order does not affect the hash.
    """
    payload = {
        "zones": [z.model_dump(mode="json") for z in zones],
        "vehicles": [v.model_dump(mode="json") for v in vehicles],
        "strategy": strategy.lower(),
        "options": options.model_dump(mode="json"),
    }
    msg = json.dumps(payload, sort_keys=True, ensure_ascii=False)
    return hashlib.sha256(msg.encode("utf-8")).hexdigest()


class PlanCache:
    """
    In-memory plan memoisation keyed by `plan_fingerprint`.
    TTL is enforced on read; expired entries are treated as misses and are
    swept out on every write.
    """

    def __init__(self, ttl_s: int, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = int(ttl_s)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[float, Plan]] = {}

    def get(self, key: str) -> Optional[Plan]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug("cache: MISS key=%s", key[:12])
                return None
            ts, plan = entry
            age = self._clock() - ts
            if age > self._ttl:
                del self._entries[key]
                logger.debug("cache: EXPIRED key=%s age=%.1fs ttl=%ss", key[:12], age, self._ttl)
                return None
        logger.debug("cache: HIT key=%s age=%.1fs", key[:12], age)
        return plan.model_copy(deep=True)

    def _evict_expired(self, now: float) -> int:
        stale = [k for k, (ts, _) in self._entries.items() if now - ts > self._ttl]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def set(self, key: str, plan: Plan) -> None:
        with self._lock:
            now = self._clock()
            evicted = self._evict_expired(now)
            self._entries[key] = (now, plan.model_copy(deep=True))
        logger.debug("cache: SET key=%s evicted=%d", key[:12], evicted)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
