"""Bounded in-process memo of oracle results."""

import hashlib
import logging
import threading
from collections import OrderedDict
from typing import Optional

from .models import ExtractionResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 1000
DEFAULT_KEY_LENGTH = 200


class ExtractionCache:
    """FIFO-bounded map from message fingerprint to extraction result.

    Safe to share between worker threads: every read and write takes a single
    lock. Losing the cache only costs extra oracle calls.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE, key_length: int = DEFAULT_KEY_LENGTH):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.key_length = key_length
        self._entries: OrderedDict[str, ExtractionResult] = OrderedDict()
        self._lock = threading.Lock()

    def key_for(self, subject: str, body: str) -> str:
        """Fingerprint the first key_length characters of subject + body."""
        content = f"{subject}{body}"[: self.key_length]
        return hashlib.sha256(content.encode("utf-8", errors="replace")).hexdigest()

    def get(self, key: str) -> Optional[ExtractionResult]:
        """Return the cached result for key, or None."""
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, value: ExtractionResult) -> None:
        """Store a result, evicting the oldest entry when full."""
        with self._lock:
            if key in self._entries:
                # Re-insert keeps the original slot in the eviction order.
                self._entries[key] = value
                return
            while len(self._entries) >= self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted cache entry {evicted[:12]}")
            self._entries[key] = value

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict[str, int]:
        """Get current size and capacity."""
        with self._lock:
            return {"size": len(self._entries), "max_size": self.max_size}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
