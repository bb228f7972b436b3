"""
In-memory extraction result cache.

Keyed by a content fingerprint (document bytes plus the parameters that shape
extraction), never by request identity. Entries are trusted only after the
caller re-runs the quality gate on them.
"""

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple

from resume_ingest.core.schemas import ExtractionResult

logger = logging.getLogger(__name__)


def fingerprint(data: bytes, params: Optional[Dict[str, Any]] = None) -> str:
    h = hashlib.sha256()
    h.update(data)
    h.update(b"\x00")
    h.update(json.dumps(params or {}, sort_keys=True, default=str).encode("utf-8"))
    return h.hexdigest()


class ExtractionCache:
    """TTL cache with FIFO eviction once max_entries is reached."""

    def __init__(self, ttl_s: float = 86400, max_entries: int = 1000, clock: Callable[[], float] = time.monotonic):
        self.ttl_s = ttl_s
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, ExtractionResult]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[ExtractionResult]:
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            stored_at, result = item
            if self._clock() - stored_at > self.ttl_s:
                del self._entries[key]
                logger.debug("Cache entry expired")
                return None
            return result

    def put(self, key: str, result: ExtractionResult) -> None:
        if self.max_entries <= 0:
            return
        with self._lock:
            # Re-inserting keeps the original slot; FIFO order is by first insertion
            self._entries[key] = (self._clock(), result)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def evict(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
