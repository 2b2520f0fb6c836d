import time
from typing import Any, Dict, List, Optional, Tuple

_MISSING = object()


class TTLCache:
    """
    Small in-process cache keyed by lower-cased token address.

    Entries older than ttl_seconds are dropped on read. A stored None (or an
    empty list) is a valid cached answer, so use contains()/get(default=...)
    to tell a negative result from a miss.
    """

    def __init__(self, ttl_seconds: float, clock=time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._store: Dict[str, Tuple[Any, float]] = {}

    @staticmethod
    def _key(key: str) -> str:
        return key.lower()

    def get(self, key: str, default: Any = None) -> Any:
        k = self._key(key)
        entry = self._store.get(k)
        if entry is None:
            return default
        value, stored_at = entry
        if self._clock() - stored_at > self._ttl:
            self._store.pop(k, None)
            return default
        return value

    def contains(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def put(self, key: str, value: Any) -> None:
        self._store[self._key(key)] = (value, self._clock())

    def age(self, key: str) -> Optional[float]:
        entry = self._store.get(self._key(key))
        return None if entry is None else self._clock() - entry[1]

    def clear(self, key: Optional[str] = None) -> None:
        if key is None:
            self._store.clear()
        else:
            self._store.pop(self._key(key), None)

    def keys(self) -> List[str]:
        return list(self._store.keys())

    def __len__(self) -> int:
        return len(self._store)
