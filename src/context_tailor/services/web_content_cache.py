"""Bounded TTL cache of fetched web page content, keyed by normalized URL."""

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import urlsplit, urlunsplit

import logfire

DEFAULT_TTL_SECONDS = 60 * 60
DEFAULT_MAX_ENTRIES = 100


def normalize_url(url: str) -> str:
    """Lower-case scheme and host, drop the fragment and any trailing slash."""
    parts = urlsplit(url.strip())
    path = parts.path.rstrip("/")
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, parts.query, ""))


@dataclass
class _Entry:
    content: str
    expires_at: float


class WebContentCache:
    """Insertion-ordered cache: the oldest entry is evicted when full.

    Expired entries are removed when read. All mutation happens under one
    lock so concurrent requests can share an instance.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.Lock()
        self.metrics = {"hits": 0, "misses": 0, "evictions": 0}

    def get(self, url: str) -> str | None:
        key = normalize_url(url)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.metrics["misses"] += 1
                return None
            if self._clock() > entry.expires_at:
                del self._entries[key]
                self.metrics["misses"] += 1
                return None
            self.metrics["hits"] += 1
            return entry.content

    def set(self, url: str, content: str) -> None:
        key = normalize_url(url)
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self.metrics["evictions"] += 1
                logfire.debug("Evicted cached web content", url=evicted)
            # re-setting keeps the original insertion slot
            expires_at = self._clock() + self.ttl_seconds
            self._entries[key] = _Entry(content=content, expires_at=expires_at)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, url: object) -> bool:
        if not isinstance(url, str):
            return False
        return self.get(url) is not None


__all__ = ["WebContentCache", "normalize_url", "DEFAULT_TTL_SECONDS", "DEFAULT_MAX_ENTRIES"]
