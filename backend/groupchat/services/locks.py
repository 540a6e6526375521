import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


def device_lock_key(user_id: int, ip: str, name: str) -> str:
    return f"device:{user_id}:{ip}:{name}"


def chat_lock_key(chat_id: int) -> str:
    return f"chat:{chat_id}"


class KeyedLocks:
    """Registry of asyncio locks, one per entity key.

    A lock lives only while some coroutine holds it or waits for it.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
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

    def __contains__(self, key: str) -> bool:
        return key in self._locks
