"""
Per-Shortcut Write Locks

Visit writes for the same shortcut are serialized in-process; writes for
different shortcuts never wait on each other.

Locks are held in a WeakValueDictionary: an entry lives only while some
coroutine holds or waits on the lock. The registry therefore does not grow
with every name ever visited, and no lock outlives the event loop it was
used on.
"""

import asyncio
import weakref


class ShortcutLocks:
    """Registry of per-shortcut asyncio locks, shared by every ingestor in the process."""

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get(self, shortcut_name: str) -> asyncio.Lock:
        lock = self._locks.get(shortcut_name)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[shortcut_name] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


shortcut_locks = ShortcutLocks()
