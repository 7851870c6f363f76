"""
Tests for the single-flight manifest cache.

Tests cover:
- De-duplication of concurrent same-key lookups
- Independence of different keys
- Failure eviction and the cache_failures option
- Caller cancellation not cancelling the shared lookup
- Invalidation hooks
"""

from __future__ import annotations

import asyncio

import pytest

from update_engine.updates.single_flight import ManifestCache

# =============================================================================
# De-duplication Tests
# =============================================================================


class TestDeduplication:
    """Tests for at-most-one-in-flight-per-key behavior."""

    @pytest.mark.asyncio
    async def test_concurrent_same_key_runs_factory_once(self) -> None:
        """Test concurrent callers share one computation and one result."""
        cache = ManifestCache()
        calls = 0
        release = asyncio.Event()

        async def factory() -> dict[str, str]:
            nonlocal calls
            calls += 1
            await release.wait()
            return {"version": "3.2.0"}

        first = asyncio.create_task(cache.get_or_fetch("pkg@latest", factory))
        second = asyncio.create_task(cache.get_or_fetch("pkg@latest", factory))
        await asyncio.sleep(0)
        release.set()

        results = await asyncio.gather(first, second)

        assert calls == 1
        assert results[0] is results[1]
        assert results[0] == {"version": "3.2.0"}

    @pytest.mark.asyncio
    async def test_settled_result_is_reused(self) -> None:
        """Test a later call returns the cached result without recomputing."""
        cache = ManifestCache()
        calls = 0

        async def factory() -> str:
            nonlocal calls
            calls += 1
            return f"result-{calls}"

        assert await cache.get_or_fetch("key", factory) == "result-1"
        assert await cache.get_or_fetch("key", factory) == "result-1"
        assert calls == 1
        assert "key" in cache

    @pytest.mark.asyncio
    async def test_different_keys_do_not_block_each_other(self) -> None:
        """Test a stalled lookup does not hold up a lookup for another key."""
        cache = ManifestCache()
        unblock = asyncio.Event()

        async def stalled() -> str:
            await unblock.wait()
            return "stalled"

        async def quick() -> str:
            return "quick"

        pending = asyncio.create_task(cache.get_or_fetch("a@latest", stalled))
        await asyncio.sleep(0)

        result = await asyncio.wait_for(cache.get_or_fetch("b@latest", quick), timeout=1)

        assert result == "quick"
        assert not pending.done()

        unblock.set()
        assert await pending == "stalled"


# =============================================================================
# Failure Handling Tests
# =============================================================================


class TestFailureHandling:
    """Tests for failure propagation and eviction."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_see_same_failure(self) -> None:
        """Test every caller of a failing lookup receives the error."""
        cache = ManifestCache()
        calls = 0
        release = asyncio.Event()

        async def factory() -> str:
            nonlocal calls
            calls += 1
            await release.wait()
            raise RuntimeError("registry down")

        first = asyncio.create_task(cache.get_or_fetch("pkg@next", factory))
        second = asyncio.create_task(cache.get_or_fetch("pkg@next", factory))
        await asyncio.sleep(0)
        release.set()

        results = await asyncio.gather(first, second, return_exceptions=True)

        assert calls == 1
        assert all(isinstance(r, RuntimeError) for r in results)

    @pytest.mark.asyncio
    async def test_failure_is_evicted_by_default(self) -> None:
        """Test a failed lookup is retried by the next call."""
        cache = ManifestCache()
        attempts = 0

        async def factory() -> str:
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise RuntimeError("transient")
            return "ok"

        with pytest.raises(RuntimeError, match="transient"):
            await cache.get_or_fetch("key", factory)

        assert "key" not in cache
        assert await cache.get_or_fetch("key", factory) == "ok"
        assert attempts == 2

    @pytest.mark.asyncio
    async def test_failure_kept_when_cache_failures_enabled(self) -> None:
        """Test failures stay cached when cache_failures is set."""
        cache = ManifestCache(cache_failures=True)
        attempts = 0

        async def factory() -> str:
            nonlocal attempts
            attempts += 1
            raise RuntimeError("permanent")

        for _ in range(2):
            with pytest.raises(RuntimeError, match="permanent"):
                await cache.get_or_fetch("key", factory)

        assert attempts == 1
        assert "key" in cache

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_shared_lookup(self) -> None:
        """Test cancelling one waiter leaves the lookup running for the others."""
        cache = ManifestCache()
        release = asyncio.Event()

        async def factory() -> str:
            await release.wait()
            return "done"

        impatient = asyncio.create_task(cache.get_or_fetch("key", factory))
        patient = asyncio.create_task(cache.get_or_fetch("key", factory))
        await asyncio.sleep(0)

        impatient.cancel()
        with pytest.raises(asyncio.CancelledError):
            await impatient

        release.set()
        assert await patient == "done"
        assert "key" in cache


# =============================================================================
# Invalidation Tests
# =============================================================================


class TestInvalidation:
    """Tests for explicit invalidation hooks."""

    @pytest.mark.asyncio
    async def test_invalidate_single_key(self) -> None:
        """Test invalidate drops one key and forces a refetch."""
        cache = ManifestCache()
        calls = 0

        async def factory() -> int:
            nonlocal calls
            calls += 1
            return calls

        await cache.get_or_fetch("key", factory)

        assert cache.invalidate("key") is True
        assert cache.invalidate("key") is False
        assert await cache.get_or_fetch("key", factory) == 2

    @pytest.mark.asyncio
    async def test_invalidate_prefix_and_clear(self) -> None:
        """Test prefix invalidation and clear."""
        cache = ManifestCache()

        async def factory() -> str:
            return "value"

        for key in ("pkg@latest", "pkg@1.0.0", "pkg-other@latest"):
            await cache.get_or_fetch(key, factory)

        assert cache.invalidate_prefix("pkg@") == 2
        assert len(cache) == 1
        assert "pkg-other@latest" in cache

        cache.clear()
        assert len(cache) == 0
