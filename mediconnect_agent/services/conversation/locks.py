"""
Per-phone serialization of message processing.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class ConversationLocks:
    """
    Registry of ``asyncio.Lock`` objects keyed by phone number.

    Messages from one number are processed one at a time; different numbers
    run concurrently. Locks are dropped once nobody holds or waits on them.
    Only serializes within a single process.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
