"""Helpers for the marketplace handler."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator  # noqa: TC003
from contextlib import asynccontextmanager
from dataclasses import dataclass, field


@dataclass(slots=True)
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


class KeyedLock:
    """A registry of ``asyncio.Lock`` objects, one per key.

    Serializes work on the same key while letting different keys run
    concurrently. Entries are dropped once no task holds or waits on them,
    so the registry only grows with the number of keys in flight.

    Examples:
        ```python
        locks = KeyedLock()
        async with locks.hold("42"):
            ...  # no other task holds "42" here
        ```
    """

    def __init__(self) -> None:
        self._entries: dict[str, _LockEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def locked(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.lock.locked()

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _LockEntry()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                del self._entries[key]
