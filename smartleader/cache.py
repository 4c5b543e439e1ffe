# smartleader/cache.py
"""In-process TTL cache for Firestore reads.

Entries are keyed by collection name plus the JSON form of the query, so
`clear("projects")` can drop every cached read of that collection at once.
Writes in `crud` clear their collection; nothing else invalidates.
"""
import copy
import json
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from . import config
from .utils import logger


@dataclass
class CacheEntry:
    payload: Any
    captured_at: float


class FirestoreCache:
    def __init__(self, ttl: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl = config.CACHE_TTL_SECONDS if ttl is None else ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def key(collection: str, query: Optional[dict] = None) -> str:
        return f"{collection}_{json.dumps(query or {}, sort_keys=True, default=str)}"

    def get(self, collection: str, query: Optional[dict] = None):
        key = self.key(collection, query)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug("Cache miss %s", key)
                return None
            if self._clock() - entry.captured_at >= self.ttl:
                logger.debug("Cache expired %s", key)
                del self._entries[key]
                return None
            logger.debug("Cache hit %s", key)
            return copy.deepcopy(entry.payload)

    def set(self, collection: str, query: Optional[dict], payload) -> None:
        key = self.key(collection, query)
        with self._lock:
            self._entries[key] = CacheEntry(copy.deepcopy(payload), self._clock())

    def clear(self, collection: Optional[str] = None) -> None:
        with self._lock:
            if collection is None:
                self._entries.clear()
                return
            # the query part always starts with "{", so "projects" never matches "projects_archive"
            prefix = f"{collection}_{{"
            for key in [k for k in self._entries if k.startswith(prefix)]:
                del self._entries[key]

    def size(self) -> int:
        return len(self._entries)


cache = FirestoreCache()
