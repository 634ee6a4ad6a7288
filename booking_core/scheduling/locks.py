"""
Booking Locks

Per-(provider, date) serialization of booking writes inside one process.
"""

import asyncio
from collections import defaultdict
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import date
from typing import AsyncIterator, Dict, Tuple

import structlog

logger = structlog.get_logger(__name__)

LockKey = Tuple[str, date]


class BookingLockManager:
    """
    Registry of asyncio locks keyed by (provider_id, date).

    Locks are created on first use and dropped once nobody holds or waits
    for them. Multiple keys are always acquired in sorted order so two
    writers touching the same pair of dates cannot deadlock.
    """

    def __init__(self):
        self._locks: Dict[LockKey, asyncio.Lock] = {}
        self._users: Dict[LockKey, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, provider_id: str, *dates: date) -> AsyncIterator[None]:
        """Hold the locks of ``provider_id`` for every date given."""
        keys = sorted({(provider_id, d) for d in dates})

        async with AsyncExitStack() as stack:
            for key in keys:
                await stack.enter_async_context(self._acquire(key))
            yield

    @asynccontextmanager
    async def _acquire(self, key: LockKey) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] += 1

        try:
            async with lock:
                logger.debug("booking_lock_acquired", provider_id=key[0], date=key[1].isoformat())
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def is_locked(self, provider_id: str, on_date: date) -> bool:
        lock = self._locks.get((provider_id, on_date))
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
