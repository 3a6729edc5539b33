"""PriceStore: Persistence interface for the last known price of each pair.

Records are stored as words packed by :mod:`.PriceEncoder`. The engine only
ever reads a record before deciding and writes it when accepting a feed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .PriceEncoder import StoredPriceRecord, unpack


class PriceStore(ABC):
    """Abstract store of one packed price word per pair index."""

    @abstractmethod
    def get(self, pair: int) -> StoredPriceRecord:
        """Get the last stored record of a pair.

        :param pair: Pair index.
        :returns: The stored record, or a zero record if the pair was never set.
        """
        pass

    @abstractmethod
    def set(self, pair: int, packed_word: int) -> None:
        """Store a packed price word for a pair.

        :param pair: Pair index.
        :param packed_word: Word produced by :func:`.PriceEncoder.pack`.
        """
        pass


class InMemoryPriceStore(PriceStore):
    """Price store backed by a dict of packed words."""

    def __init__(self, words: dict[int, int] | None = None) -> None:
        """Initialize the store.

        :param words: Optional initial mapping of pair index to packed word.
        """
        self._words: dict[int, int] = dict(words or {})

    def get(self, pair: int) -> StoredPriceRecord:
        word = self._words.get(pair)
        if word is None:
            return StoredPriceRecord()
        return unpack(word)

    def set(self, pair: int, packed_word: int) -> None:
        self._words[pair] = packed_word

    def get_word(self, pair: int) -> int:
        """Return the raw packed word of a pair (0 if unset)."""
        return self._words.get(pair, 0)


class PriceStoreTransaction(PriceStore):
    """Write buffer over another store.

    Reads see pending writes first. Nothing reaches the underlying store until
    :meth:`commit`; dropping the transaction discards every pending write.

    :ivar store: The underlying store.
    """

    def __init__(self, store: PriceStore) -> None:
        """Open a transaction over ``store``.

        :param store: Store receiving the writes on commit.
        """
        self.store = store
        self._pending: dict[int, int] = {}

    def get(self, pair: int) -> StoredPriceRecord:
        if pair in self._pending:
            return unpack(self._pending[pair])
        return self.store.get(pair)

    def set(self, pair: int, packed_word: int) -> None:
        self._pending[pair] = packed_word

    @property
    def pending_writes(self) -> int:
        """Number of pairs with a buffered write."""
        return len(self._pending)

    def commit(self) -> None:
        """Flush buffered writes to the underlying store, in write order."""
        for pair, word in self._pending.items():
            self.store.set(pair, word)
        self._pending.clear()

    def rollback(self) -> None:
        """Discard buffered writes."""
        self._pending.clear()
