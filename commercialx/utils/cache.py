"""
In-memory TTL cache for provider responses.

VIN decodes never change for a given VIN, so the enrichment service keeps
them around for a long time instead of hitting NHTSA/EPA again. Expired
entries are swept from ``set`` at most once per cleanup interval.
"""
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

DEFAULT_CLEANUP_INTERVAL_SECONDS = 10 * 60


class TTLCache:
    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.time,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL_SECONDS,
    ):
        self.ttl = ttl_seconds
        self.cleanup_interval = cleanup_interval
        self._clock = clock
        self._data: Dict[Hashable, Tuple[float, Any]] = {}
        self._last_cleanup = clock()

    def get(self, key: Hashable) -> Optional[Any]:
        item = self._data.get(key)
        if not item:
            return None
        ts, val = item
        if (self._clock() - ts) > self.ttl:
            self._data.pop(key, None)
            return None
        return val

    def set(self, key: Hashable, val: Any) -> None:
        now = self._clock()
        if (now - self._last_cleanup) >= self.cleanup_interval:
            self.cleanup()
        self._data[key] = (now, val)

    def cleanup(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        now = self._clock()
        self._last_cleanup = now
        expired = [k for k, (ts, _) in self._data.items() if (now - ts) > self.ttl]
        for k in expired:
            del self._data[k]
        return len(expired)

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


def nhtsa_key(vin: str) -> str:
    return f"nhtsa:{vin}"


def epa_key(year: int, make: str, model: str) -> str:
    return f"epa:{year}:{make}:{model}"
