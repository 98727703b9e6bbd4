from __future__ import annotations

import time
from typing import Dict, Optional, Tuple

CacheEntry = Tuple[float, bytes]


class ResponseCache:
    def __init__(self, max_entries: int = 16) -> None:
        self._max_entries = max_entries
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str, ttl: float) -> Optional[bytes]:
        entry = self._entries.get(key)
        if not entry:
            return None
        timestamp, data = entry
        if time.time() - timestamp > ttl:
            self._entries.pop(key, None)
            return None
        return data

    def put(self, key: str, data: bytes) -> None:
        if key not in self._entries and len(self._entries) >= self._max_entries:
            oldest = min(self._entries.items(), key=lambda item: item[1][0])[0]
            self._entries.pop(oldest, None)
        self._entries[key] = (time.time(), data)

    def clear(self) -> None:
        self._entries.clear()


CACHE = ResponseCache()

# Last successfully served PNG per effect.
_last_good_png: Dict[str, bytes] = {}


def remember_last_good(effect: str, data: bytes) -> None:
    _last_good_png[effect] = data


def last_good_png(effect: str) -> Optional[bytes]:
    return _last_good_png.get(effect) or None
