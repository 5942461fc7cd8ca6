import threading
from typing import Any

import cachetools


URI_CACHE_MAXSIZE = 100
URI_CACHE_TTL = 60 * 120


def cache_key(method: str, uri: object) -> str:
    return method.upper() + str(uri)


class ResolutionCache:
    '''
    Bounded LRU mapping of `METHOD + uri` to resolved targets, every entry
    living at most `ttl` seconds. Values are stored and returned as is.

    `cachetools.TTLCache` is not thread-safe, so every access goes through
    a lock; recency ordering stays approximate under concurrent readers.
    '''
    __slots__ = ('_cache', '_lock')

    def __init__(
        self,
        maxsize: int = URI_CACHE_MAXSIZE,
        ttl: float = URI_CACHE_TTL,
        *,
        timer=None,
    ) -> None:
        if timer is None:
            self._cache: cachetools.TTLCache = cachetools.TTLCache(maxsize=maxsize, ttl=ttl)
        else:
            self._cache = cachetools.TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._cache.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._cache[key] = value

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._cache

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)
