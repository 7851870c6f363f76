"""
Single-flight memoization for asynchronous lookups.

ManifestCache maps a key to the shared asyncio future computing its value.
The first caller for a key starts the computation; every later caller with
the same key awaits that same future, so a key is fetched at most once at a
time and all callers observe the same result or the same exception.

Lookups for different keys never wait on each other.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from update_engine.logging import get_logger

logger = get_logger(__name__)


class ManifestCache:
    """
    Process-lifetime cache of in-flight and settled lookups.

    Successful results never expire. Failed lookups are evicted once they
    settle so a later call can retry, unless ``cache_failures`` is set.
    Cancelled lookups are always evicted.

    The check-and-insert in ``get_or_fetch`` runs without an intervening
    ``await``, which makes it atomic with respect to other coroutines on the
    event loop.

    Attributes:
        cache_failures: Keep failed lookups cached.
    """

    def __init__(self, *, cache_failures: bool = False) -> None:
        """
        Initialize an empty cache.

        Args:
            cache_failures: Keep failed lookups cached for the process lifetime.
        """
        self.cache_failures = cache_failures
        self._entries: dict[str, asyncio.Future[Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    async def get_or_fetch(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
    ) -> Any:
        """
        Return the value for ``key``, starting ``factory()`` if no lookup exists.

        Args:
            key: Cache key.
            factory: Zero-argument coroutine function computing the value.

        Returns:
            The (possibly shared) result.

        Raises:
            Exception: Whatever the shared computation raised.
        """
        future = self._entries.get(key)
        if future is None:
            future = asyncio.ensure_future(factory())
            self._entries[key] = future
            future.add_done_callback(lambda done, key=key: self._on_settled(key, done))
            logger.debug("Started lookup", extra={"cache_key": key})
        else:
            logger.debug(
                "Joined cached lookup",
                extra={"cache_key": key, "settled": future.done()},
            )

        # A caller being cancelled must not cancel the lookup other callers share
        return await asyncio.shield(future)

    def _on_settled(self, key: str, future: asyncio.Future[Any]) -> None:
        """Evict failed or cancelled lookups."""
        if future.cancelled():
            failed = True
        else:
            # Retrieving the exception also marks it as observed
            failed = future.exception() is not None
            if failed and self.cache_failures:
                return

        if failed and self._entries.get(key) is future:
            del self._entries[key]
            logger.debug("Evicted failed lookup", extra={"cache_key": key})

    def invalidate(self, key: str) -> bool:
        """
        Drop one key.

        A lookup still in flight keeps running for the callers already
        awaiting it; the next call for the key starts a new lookup.

        Returns:
            True if the key was cached.
        """
        return self._entries.pop(key, None) is not None

    def invalidate_prefix(self, prefix: str) -> int:
        """
        Drop every key starting with ``prefix``.

        Returns:
            Number of keys dropped.
        """
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def clear(self) -> None:
        """Drop every key."""
        self._entries.clear()
