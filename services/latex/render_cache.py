"""Bounded, thread-safe memo cache for rendered markup."""
from __future__ import annotations

import hashlib
import threading
from collections import OrderedDict


def cache_key(text: str, autofix: bool) -> str:
    digest = hashlib.sha256(text.encode("utf-8", errors="surrogatepass")).hexdigest()
    return f"{digest}:{int(autofix)}"


class RenderCache:
    """LRU map from ``(text, autofix)`` to markup. ``max_entries=0`` disables it."""

    def __init__(self, max_entries: int = 512) -> None:
        self.max_entries = max_entries
        self._entries: OrderedDict[str, str] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, text: str, autofix: bool) -> str | None:
        if self.max_entries <= 0:
            return None
        key = cache_key(text, autofix)
        with self._lock:
            markup = self._entries.get(key)
            if markup is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return markup

    def put(self, text: str, autofix: bool, markup: str) -> None:
        if self.max_entries <= 0:
            return
        key = cache_key(text, autofix)
        with self._lock:
            self._entries[key] = markup
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
