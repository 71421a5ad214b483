"""In-process cache with per-entry time-to-live."""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheElement:
    """Entry as recorded by a cache backend."""
    key: str
    value: Any
    creation_time: float
    expiration_time: Optional[float]

    def is_expired(self, now: float) -> bool:
        return self.expiration_time is not None and now >= self.expiration_time


def resolve_expiration(
    creation_time: float,
    time_to_live: Optional[int],
    default_time_to_live: int
) -> Optional[float]:
    """
    Apply the time-to-live rules shared by all cache backends.

    Args:
        creation_time: Insertion time in epoch seconds
        time_to_live: None for the cache default, 0 for no expiry,
            otherwise seconds until expiry
        default_time_to_live: The cache's default (0 means no expiry)

    Returns:
        Expiration time in epoch seconds, or None if the entry never expires
    """
    if time_to_live is None or time_to_live < 0:
        time_to_live = default_time_to_live
    if time_to_live == 0:
        return None
    return creation_time + time_to_live


class MemoryCache:
    """Thread-safe in-memory cache with time-based expiration."""

    def __init__(
        self,
        name: str,
        default_time_to_live: int = 300,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the cache.

        Args:
            name: Cache name, used for logging
            default_time_to_live: Default TTL in seconds (0 = never expire)
            clock: Source of the current time in epoch seconds
        """
        self.name = name
        self.default_time_to_live = default_time_to_live
        self.clock = clock
        self._elements: Dict[str, CacheElement] = {}
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0
        logger.debug(
            f"Initialized {name} cache with {default_time_to_live}s default TTL"
        )

    def put(self, key: str, value: Any, time_to_live: Optional[int] = None) -> CacheElement:
        """Store a value, replacing any existing entry under the key."""
        now = self.clock()
        element = CacheElement(
            key=key,
            value=value,
            creation_time=now,
            expiration_time=resolve_expiration(
                now, time_to_live, self.default_time_to_live
            )
        )
        with self._lock:
            self._elements[key] = element
        return element

    def get_element(self, key: str) -> Optional[CacheElement]:
        with self._lock:
            element = self._elements.get(key)
            if element is None:
                self.misses += 1
                return None
            if element.is_expired(self.clock()):
                del self._elements[key]
                self.misses += 1
                return None
            self.hits += 1
            return element

    def get(self, key: str) -> Optional[Any]:
        element = self.get_element(key)
        return element.value if element else None

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._elements.pop(key, None) is not None

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self.hits + self.misses
            return {
                'name': self.name,
                'size': len(self._elements),
                'hits': self.hits,
                'misses': self.misses,
                'hit_ratio': self.hits / total if total else 0
            }
