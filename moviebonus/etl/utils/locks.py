"""Per-key asyncio locks.

Serializes work on the same key (e.g. one movie external id) while
letting different keys proceed concurrently.
"""

import asyncio
from collections.abc import AsyncIterator, Iterable
from contextlib import AsyncExitStack, asynccontextmanager


class KeyedLock:
    """Registry of asyncio locks indexed by string key.

    Locks are created lazily and live as long as the registry, which is
    scoped to one pipeline run.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for a single key."""
        async with self._lock_for(key):
            yield

    @asynccontextmanager
    async def hold_many(self, keys: Iterable[str]) -> AsyncIterator[None]:
        """Hold the locks for several keys at once.

        Keys are deduplicated and acquired in sorted order so that two
        batches sharing keys cannot deadlock each other.
        """
        async with AsyncExitStack() as stack:
            for key in sorted(set(keys)):
                await stack.enter_async_context(self._lock_for(key))
            yield

    def is_locked(self, key: str) -> bool:
        """Check whether a writer currently holds the key."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()
