"""
Per-item serialization of mutating operations.

Each key gets its own asyncio.Lock, created on first use and discarded once
nobody holds or waits for it. Unrelated keys never contend.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from stockledger.config import get_logger

logger = get_logger(__name__)


class ItemLockManager:
    """Registry of reference-counted locks keyed by item (or product) id."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """
        Hold the lock for ``key`` for the duration of the block.

        Usage:
            async with locks.hold(item_id):
                ...read, compute, commit...
        """
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @property
    def active_keys(self) -> list[str]:
        return list(self._locks)
