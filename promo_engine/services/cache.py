"""
TTL cache for admin list screens.

Instances are created by the app and injected into routes; there is no
module-level cache state. Only definitions are cached. Anything derived from
the clock (offer status) is recomputed by the caller on every read.
"""
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class DefinitionCache:
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._generation = 0
        self._lock = threading.Lock()

    def get_or_load(self, key: str, loader: Callable[[], Any]) -> Any:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and now - entry[0] < self.ttl_seconds:
                return entry[1]
            generation = self._generation
        value = loader()
        with self._lock:
            # an invalidation during the load means the value may predate the write
            if self._generation == generation:
                self._entries[key] = (now, value)
            else:
                logger.debug("Not caching %s; invalidated while loading", key)
        logger.debug("Cache miss for %s; loaded fresh definitions", key)
        return value

    def invalidate(self, key: Optional[str] = None) -> None:
        with self._lock:
            self._generation += 1
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)
