"""RootCache: Bounded set of merkle roots whose signatures were verified.

Roots are kept in a fixed number of slots. A write cursor walks the slots
modulo capacity, so once the cache is full each insertion evicts the oldest
root. Evicted roots are simply re-verified the next time they are seen.

.. code-block:: python

    >>> cache = RootCache(capacity=2)
    >>> cache.insert(b"\\x01" * 32), cache.insert(b"\\x02" * 32), cache.insert(b"\\x03" * 32)
    (True, True, True)
    >>> cache.contains(b"\\x01" * 32)
    False
    >>> cache.insert(bytes(32))
    False
"""

from __future__ import annotations

import logging

from .CommitteeFeed import ZERO_HASH

logger = logging.getLogger(__name__)

DEFAULT_ROOT_CACHE_CAPACITY = 16


class RootCache:
    """Ring buffer of trusted merkle roots.

    :ivar capacity: Maximum number of cached roots.
    """

    def __init__(self, capacity: int = DEFAULT_ROOT_CACHE_CAPACITY) -> None:
        """Initialize an empty cache.

        :param capacity: Maximum number of cached roots (at least 1).
        :raises ValueError: If capacity is not positive.
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self.capacity = capacity
        self._slots: list[bytes | None] = [None] * capacity
        self._index: dict[bytes, int] = {}
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._index)

    def contains(self, root: bytes) -> bool:
        """Check whether a root is currently cached.

        :param root: 32-byte merkle root.
        :returns: True if the root was inserted and not yet evicted.
        """
        return bytes(root) in self._index

    def insert(self, root: bytes) -> bool:
        """Insert a verified root, evicting the oldest one when full.

        Inserting a root that is already cached changes nothing.

        :param root: 32-byte merkle root.
        :returns: False if the root is the zero hash, True otherwise.
        """
        root = bytes(root)
        if root == ZERO_HASH:
            return False
        if root in self._index:
            return True

        evicted = self._slots[self._cursor]
        if evicted is not None:
            del self._index[evicted]
            logger.debug(f"Evicted root 0x{evicted.hex()} from slot {self._cursor}")

        self._slots[self._cursor] = root
        self._index[root] = self._cursor
        self._cursor = (self._cursor + 1) % self.capacity
        return True

    def snapshot(self) -> tuple[list[bytes | None], int]:
        """Capture the cache state so it can be restored after a failed call."""
        return list(self._slots), self._cursor

    def restore(self, state: tuple[list[bytes | None], int]) -> None:
        """Restore a state captured by :meth:`snapshot`."""
        slots, cursor = state
        self._slots = list(slots)
        self._cursor = cursor
        self._index = {root: i for i, root in enumerate(self._slots) if root is not None}
