import math
import time
from typing import Callable, Optional

from cachetools import TTLCache


class ResponseCache:
    """
    In-memory store of serialized responses with a fixed time-to-live.

    Expiry is checked on read, so an expired entry always behaves as a miss.
    Size is unbounded unless ``maxsize`` is given.
    """

    def __init__(self, ttl: float, maxsize: Optional[int] = None, timer: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._store = TTLCache(maxsize=maxsize or math.inf, ttl=ttl, timer=timer)

    def get(self, key: str) -> Optional[str]:
        return self._store.get(key)

    def set(self, key: str, value: str, ttl: Optional[float] = None) -> None:
        # TTLCache has one TTL per instance; a per-call ttl is only honoured
        # when it matches the cache's own.
        if ttl is not None and ttl != self.ttl:
            raise ValueError(f"Unsupported TTL {ttl}; this cache uses {self.ttl}")
        self._store[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)


def search_key(query: str, page: int) -> str:
    return f"search:{query}:{page}"


def movie_key(imdb_id: str) -> str:
    return f"movie:{imdb_id}"


POPULAR_KEY = "popular:movies"
