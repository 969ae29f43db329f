"""In-process exclusive locks keyed by entity, e.g. ``("character", id)``.

Keys are always acquired in sorted order so that multi-entity operations
cannot deadlock each other, and every wait is bounded by a timeout.
"""

from __future__ import annotations

import logging
import threading
import time
import weakref
from contextlib import contextmanager
from typing import Hashable, Iterator, Tuple

from .errors import Busy

logger = logging.getLogger(__name__)

LockKey = Tuple[str, Hashable]


class _KeyLock:
    # threading.Lock itself cannot be weak-referenced
    __slots__ = ("lock", "__weakref__")

    def __init__(self):
        self.lock = threading.Lock()


class LockRegistry:
    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[LockKey, _KeyLock]" = weakref.WeakValueDictionary()

    def _lock_for(self, key: LockKey) -> _KeyLock:
        with self._guard:
            holder = self._locks.get(key)
            if holder is None:
                holder = _KeyLock()
                self._locks[key] = holder
            return holder

    @staticmethod
    def ordered(keys) -> list:
        return sorted(set(keys), key=lambda k: (k[0], str(k[1])))

    @contextmanager
    def hold(self, *keys: LockKey, timeout: float | None = None) -> Iterator[list]:
        """Acquire every key (ascending order) or raise ``Busy``."""
        timeout = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + timeout
        acquired = []
        try:
            for key in self.ordered(keys):
                holder = self._lock_for(key)
                remaining = max(0.0, deadline - time.monotonic())
                if not holder.lock.acquire(timeout=remaining):
                    logger.warning("lock_timeout key=%s timeout=%s", key, timeout)
                    raise Busy(key, timeout)
                acquired.append(holder)
            yield [k for k in self.ordered(keys)]
        finally:
            for holder in reversed(acquired):
                holder.lock.release()
