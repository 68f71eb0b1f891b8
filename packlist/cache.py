# packlist/cache.py
import time
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    """
    Process-local response cache.

    Entries are `(value, inserted_at)`; an entry older than `ttl` seconds is
    dropped on read, and every `set()` sweeps out the expired ones. Writers call `invalidate()` after every successful
    mutation so reads never outlive the data they were built from.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, inserted_at = entry
        if self._clock() - inserted_at >= self.ttl:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        if self.ttl <= 0:
            return
        now = self._clock()
        self._purge(now)
        self._entries[key] = (value, now)

    def _purge(self, now: float) -> None:
        expired = [k for k, (_, inserted_at) in self._entries.items() if now - inserted_at >= self.ttl]
        for key in expired:
            del self._entries[key]

    def invalidate(self, prefix: Optional[str] = None) -> None:
        if prefix is None:
            self._entries.clear()
            return
        for key in [k for k in self._entries if k.startswith(prefix)]:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)
