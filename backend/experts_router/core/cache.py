"""
Experts Router - TTL Cache
==========================
Process-local, time-bounded memoization for "fetch all X" operations.

One CacheCell per collection, each with its own age. A refresh either
replaces the stored value completely or fails and leaves the previous
value in place. Concurrent refreshes of the same expired cell are allowed
to race; each computes the same value.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


Clock = Callable[[], float]


# Cache keys
EXPERTS = "experts"
STATES = "states"
CITIES = "cities"
CATEGORIES = "categories"
SKILLS = "skills"
CERTIFICATIONS = "certifications"
ROUTE_MANIFEST = "route-manifest"


class CacheCell:
    """
    Holds (value, fetched_at, ttl) for a single fetch function.

    A value is fresh while `now - fetched_at < ttl`. When the fetch fails
    and `serve_stale_on_error` is set, the previous value (if any) is
    returned instead of raising.
    """

    def __init__(
        self,
        fetch: Callable[[], Any],
        ttl_seconds: float,
        serve_stale_on_error: bool = False,
        clock: Optional[Clock] = None,
        name: str = "cache",
    ):
        self.fetch = fetch
        self.ttl_seconds = ttl_seconds
        self.serve_stale_on_error = serve_stale_on_error
        self.clock = clock or time.monotonic
        self.name = name
        self._value: Any = None
        self._fetched_at: Optional[float] = None

    def has_value(self) -> bool:
        return self._fetched_at is not None

    def age(self) -> Optional[float]:
        if self._fetched_at is None:
            return None
        return self.clock() - self._fetched_at

    def is_fresh(self) -> bool:
        age = self.age()
        return age is not None and age < self.ttl_seconds

    def peek(self) -> Any:
        """Current value without fetching (None when empty)."""
        return self._value

    def get(self) -> Any:
        if self.is_fresh():
            return self._value
        return self._refresh()

    def force_refresh(self, fetch: Optional[Callable[[], Any]] = None) -> Any:
        """Refresh now, ignoring age; `fetch` overrides the registered function once."""
        return self._refresh(fetch)

    def invalidate(self) -> None:
        self._value = None
        self._fetched_at = None

    def _refresh(self, fetch: Optional[Callable[[], Any]] = None) -> Any:
        try:
            value = (fetch or self.fetch)()
        except Exception as e:
            if self.serve_stale_on_error and self.has_value():
                logger.warning(f"Refresh of '{self.name}' failed, serving stale value: {e}")
                return self._value
            raise
        self._value = value
        self._fetched_at = self.clock()
        logger.info(f"Cache '{self.name}' refreshed")
        return value


class CacheManager:
    """
    Registry of named cache cells.

    Constructed once at process start and passed to whatever needs cached
    collections; torn down with the process.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or time.monotonic
        self._cells: Dict[str, CacheCell] = {}

    def register(
        self,
        key: str,
        fetch: Callable[[], Any],
        ttl_seconds: float,
        serve_stale_on_error: bool = False,
    ) -> CacheCell:
        cell = CacheCell(
            fetch,
            ttl_seconds,
            serve_stale_on_error=serve_stale_on_error,
            clock=self.clock,
            name=key,
        )
        self._cells[key] = cell
        return cell

    def cell(self, key: str) -> CacheCell:
        try:
            return self._cells[key]
        except KeyError:
            raise KeyError(f"Unknown cache key: {key}") from None

    def keys(self):
        return list(self._cells)

    def get(self, key: str) -> Any:
        return self.cell(key).get()

    def peek(self, key: str) -> Any:
        return self.cell(key).peek()

    def force_refresh(self, key: str) -> Any:
        return self.cell(key).force_refresh()

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one cell's value, or every cell's when key is None."""
        if key is None:
            for cell in self._cells.values():
                cell.invalidate()
            return
        self.cell(key).invalidate()
