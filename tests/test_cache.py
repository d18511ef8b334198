"""
Tests for core.cache.TTLCache.

Covers:
- get/set round trip, overwrite, missing keys
- lazy expiry on read and the periodic sweep
- the live enable/disable toggle
- clear() and get_stats()
- background sweep task lifecycle
"""

import asyncio

import pytest

from core.cache import TTLCache
from core.models import CachingConfig


class TestTTLCacheBasics:
    """Round trip and bookkeeping with a frozen clock."""

    def test_set_then_get(self, caching, clock):
        """A value set within the TTL is returned unchanged."""
        cache = TTLCache(1, caching, clock=clock)
        cache.set("page:abc", {"text": "hello"})
        assert cache.get("page:abc") == {"text": "hello"}

    def test_get_missing_key(self, caching, clock):
        """Unknown keys report absent."""
        cache = TTLCache(1, caching, clock=clock)
        assert cache.get("nope") is None

    def test_overwrite_replaces_value_and_resets_age(self, caching, clock):
        """Setting a key twice keeps the newest value with a fresh timestamp."""
        cache = TTLCache(1, caching, clock=clock)
        cache.set("k", "old")
        clock.advance(50)
        cache.set("k", "new")
        clock.advance(50)
        assert cache.get("k") == "new"
        assert cache.get_stats().size == 1

    def test_clear(self, caching, clock):
        """clear() removes every entry."""
        cache = TTLCache(1, caching, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()
        assert cache.get_stats().size == 0
        assert cache.get("a") is None
        assert cache.get("b") is None

    def test_stats_report_ttl_in_minutes(self, caching, clock):
        """TTL is reported in the minutes it was configured with."""
        cache = TTLCache(5, caching, clock=clock)
        stats = cache.get_stats()
        assert stats.ttl_minutes == 5
        assert stats.size == 0


class TestTTLCacheExpiry:
    """Lazy expiry and the sweep."""

    def test_entry_expires_after_ttl(self, caching, clock):
        """An entry older than the TTL reads as absent and is deleted."""
        cache = TTLCache(1, caching, clock=clock)
        cache.set("k", "v")
        clock.advance(61)
        assert cache.get("k") is None
        assert cache.get_stats().size == 0

    def test_entry_at_exact_ttl_is_still_live(self, caching, clock):
        """Expiry requires age strictly greater than the TTL."""
        cache = TTLCache(1, caching, clock=clock)
        cache.set("k", "v")
        clock.advance(60)
        assert cache.get("k") == "v"

    def test_stats_count_expired_but_unswept_entries(self, caching, clock):
        """get_stats() is the raw count and never evicts."""
        cache = TTLCache(1, caching, clock=clock)
        cache.set("k", "v")
        clock.advance(120)
        assert cache.get_stats().size == 1

    def test_sweep_removes_only_expired_entries(self, caching, clock):
        """sweep() deletes stale keys and keeps fresh ones."""
        cache = TTLCache(1, caching, clock=clock)
        cache.set("old", 1)
        clock.advance(45)
        cache.set("fresh", 2)
        clock.advance(30)

        assert cache.sweep() == 1
        assert cache.get_stats().size == 1
        assert cache.get("fresh") == 2

    def test_sweep_is_idempotent(self, caching, clock):
        """A second sweep with nothing expired removes nothing."""
        cache = TTLCache(1, caching, clock=clock)
        cache.set("k", "v")
        clock.advance(61)
        assert cache.sweep() == 1
        assert cache.sweep() == 0

    def test_zero_ttl_expires_immediately(self, caching, clock):
        """TTL of zero is legal; any elapsed time expires the entry."""
        cache = TTLCache(0, caching, clock=clock)
        cache.set("k", "v")
        assert cache.get("k") == "v"
        clock.advance(0.01)
        assert cache.get("k") is None


class TestTTLCacheToggle:
    """The enabled flag is read on every call."""

    def test_disabled_set_stores_nothing(self, clock):
        """With caching disabled, set() is a no-op."""
        settings = CachingConfig(enabled=False)
        cache = TTLCache(1, settings, clock=clock)
        cache.set("k", "v")
        assert cache.get_stats().size == 0
        assert cache.get("k") is None

    def test_disabling_at_runtime_hides_existing_entries(self, caching, clock):
        """Flipping the toggle off makes get() report absent immediately."""
        cache = TTLCache(1, caching, clock=clock)
        cache.set("k", "v")
        caching.enabled = False
        assert cache.get("k") is None

        caching.enabled = True
        assert cache.get("k") == "v"

    def test_clear_ignores_toggle(self, caching, clock):
        """clear() empties the store even when caching is disabled."""
        cache = TTLCache(1, caching, clock=clock)
        cache.set("k", "v")
        caching.enabled = False
        cache.clear()
        assert cache.get_stats().size == 0


class TestTTLCacheSweeper:
    """Background sweep task on a real event loop and clock."""

    @pytest.mark.asyncio
    async def test_value_expires_in_real_time(self, caching):
        """A 60ms TTL expires an entry after ~80ms."""
        cache = TTLCache(0.001, caching)
        cache.set("foo", "bar")
        await asyncio.sleep(0.08)
        assert cache.get("foo") is None

    @pytest.mark.asyncio
    async def test_background_sweep_evicts_unread_entries(self, caching):
        """Entries that are never read are removed by the periodic sweep."""
        async with TTLCache(0.001, caching) as cache:
            cache.set("write-only", 1)
            assert cache.sweeping
            await asyncio.sleep(0.25)
            assert cache.get_stats().size == 0

    @pytest.mark.asyncio
    async def test_context_exit_stops_sweep(self, caching):
        """Leaving the context cancels the sweep task."""
        async with TTLCache(1, caching) as cache:
            assert cache.sweeping
        assert not cache.sweeping

    @pytest.mark.asyncio
    async def test_stop_cancels_sweep(self, caching):
        """stop() cancels a task started with start()."""
        cache = TTLCache(1, caching)
        cache.start()
        assert cache.sweeping
        cache.stop()
        await asyncio.sleep(0)
        assert not cache.sweeping

    @pytest.mark.asyncio
    async def test_restart_replaces_previous_task(self, caching):
        """Calling start() twice leaves exactly one live sweep task."""
        cache = TTLCache(1, caching)
        cache.start()
        first = cache._sweeper
        cache.start()
        await asyncio.sleep(0)
        assert first.cancelled()
        assert cache.sweeping
        cache.stop()

    def test_stop_without_start_is_harmless(self, caching):
        """stop() before start() does nothing."""
        TTLCache(1, caching).stop()

    @pytest.mark.asyncio
    async def test_nested_contexts_share_one_sweep(self, caching):
        """The sweep keeps running until the last holder leaves."""
        cache = TTLCache(1, caching)
        async with cache:
            first = cache._sweeper
            async with cache:
                assert cache._sweeper is first
            assert cache.sweeping
        assert not cache.sweeping

    @pytest.mark.asyncio
    async def test_overlapping_holders_in_separate_tasks(self, caching):
        cache = TTLCache(1, caching)
        entered = asyncio.Event()
        release = asyncio.Event()

        async def session():
            async with cache:
                entered.set()
                await release.wait()

        other = asyncio.create_task(session())
        async with cache:
            await entered.wait()
            release.set()
            await other
            assert cache.sweeping
        assert not cache.sweeping

    @pytest.mark.asyncio
    async def test_cancelling_caller_during_exit_propagates(self, caching):
        """A cancel aimed at the exiting task is not swallowed with the sweep's."""
        cache = TTLCache(1, caching)
        entered = asyncio.Event()
        release = asyncio.Event()

        async def session():
            async with cache:
                entered.set()
                await release.wait()
            return "finished"

        holder = asyncio.create_task(session())
        await entered.wait()
        release.set()
        await asyncio.sleep(0)  # holder is now awaiting the cancelled sweep
        holder.cancel()

        with pytest.raises(asyncio.CancelledError):
            await holder
        assert holder.cancelled()
        assert not cache.sweeping
