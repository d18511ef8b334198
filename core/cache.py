# =============================================================================
# core/cache.py  —  TTL Memoization Cache
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Memoizes formatted tool output (page text, database tables) under string
#   keys such as "page:<id>" for a fixed number of minutes.
#
# TWO WAYS AN ENTRY DIES:
#   1. Lazy expiry — get() notices the entry is too old and deletes it.
#   2. Periodic sweep — a background asyncio task calls sweep() once per TTL
#      period.  This catches keys that are written once and never read
#      again, which lazy expiry alone would keep forever.
#
#   Both are idempotent, so running them together is safe.  Because the
#   sweep period equals the TTL, an expired entry can stay physically present
#   for up to one more TTL interval.  get_stats() reports that raw count.
#
# CONCURRENCY:
#   Everything runs on one asyncio event loop and no method here awaits, so
#   each get/set/sweep is a single uninterrupted step.  No locks needed.
# =============================================================================

import asyncio
import logging
import time
from typing import Any, Callable

from core.models import CacheEntry, CacheStats, CachingConfig

logger = logging.getLogger(__name__)

_MS_PER_MINUTE = 60 * 1000

# A zero TTL is legal, but a zero sweep period would spin the event loop.
_MIN_SWEEP_INTERVAL_S = 0.001


class TTLCache:
    """Key/value store whose entries expire ``ttl_minutes`` after being set.

    Args:
        ttl_minutes: Entry lifetime.  Also the period of the background sweep.
        settings: Caching configuration.  ``settings.enabled`` is consulted on
            every ``get``/``set``; it is never copied.
        clock: Monotonic clock in seconds.  Injectable for tests.

    Example:
        async with TTLCache(5, config.caching) as cache:
            cache.set("page:abc", text)
            cache.get("page:abc")
    """

    def __init__(
        self,
        ttl_minutes: float,
        settings: CachingConfig,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store: dict[str, CacheEntry] = {}
        self._ttl_ms = ttl_minutes * _MS_PER_MINUTE
        self._settings = settings
        self._clock = clock
        self._sweeper: asyncio.Task | None = None
        self._holders = 0

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def _is_expired(self, entry: CacheEntry, now_ms: float) -> bool:
        return now_ms - entry.created_at_ms > self._ttl_ms

    def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` if disabled, missing or expired."""
        if not self._settings.enabled:
            return None

        entry = self._store.get(key)
        if entry is None:
            return None

        if self._is_expired(entry, self._now_ms()):
            del self._store[key]
            return None

        return entry.value

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``.  No-op while caching is disabled."""
        if not self._settings.enabled:
            return
        self._store[key] = CacheEntry(value=value, created_at_ms=self._now_ms())

    def clear(self) -> None:
        """Drop every entry, whether or not caching is enabled."""
        self._store.clear()

    def get_stats(self) -> CacheStats:
        return CacheStats(
            size=len(self._store),
            ttl_minutes=self._ttl_ms / _MS_PER_MINUTE,
        )

    def sweep(self) -> int:
        """Delete all expired entries and return how many were removed."""
        now_ms = self._now_ms()
        expired = [k for k, e in self._store.items() if self._is_expired(e, now_ms)]
        for key in expired:
            del self._store[key]
        if expired:
            logger.debug("Swept %d expired cache entries", len(expired))
        return len(expired)

    # -------------------------------------------------------------------------
    # Background sweep lifecycle
    # -------------------------------------------------------------------------
    @property
    def sweeping(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    async def _sweep_forever(self) -> None:
        interval = max(self._ttl_ms / 1000, _MIN_SWEEP_INTERVAL_S)
        while True:
            await asyncio.sleep(interval)
            self.sweep()

    def start(self) -> None:
        """Schedule the periodic sweep on the running event loop.

        Calling ``start()`` again replaces the previous sweep task.
        """
        self.stop()
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())

    def stop(self) -> None:
        """Cancel the periodic sweep so the process can exit cleanly."""
        if self._sweeper is not None:
            self._sweeper.cancel()

    # The cache is shared by every session the server lifespan opens, so
    # `async with` is reference counted: the first holder starts the sweep
    # and the last one to leave stops it.
    async def __aenter__(self) -> "TTLCache":
        self._holders += 1
        if not self.sweeping:
            self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self._holders = max(self._holders - 1, 0)
        if self._holders:
            return

        task = self._sweeper
        self.stop()
        self._sweeper = None
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            # Our own cancel() is expected; a cancel aimed at the caller is not.
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
