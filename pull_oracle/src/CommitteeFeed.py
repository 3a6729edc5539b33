"""CommitteeFeed: Data model of committee-signed price batches.

A committee signs one merkle root over a group of feeds. A batch carries any
number of such signed groups and is processed atomically. Each feed is a
merkle leaf whose hash is the keccak256 of a fixed little-endian encoding:

    pair (4) | price (16) | timestamp (8) | decimals (2) | round (8)

The off-chain proof producer uses the same layout, so any change here breaks
proof verification.

.. code-block:: python

    >>> feed = CommitteeFeed(pair=1, price=100, timestamp=0, decimals=8, round=10)
    >>> len(encode_leaf(feed))
    38
"""

from __future__ import annotations

from dataclasses import dataclass, field

from web3 import Web3

# Byte widths of the canonical leaf encoding, in field order.
PAIR_BYTES = 4
PRICE_BYTES = 16
TIMESTAMP_BYTES = 8
DECIMALS_BYTES = 2
ROUND_BYTES = 8

LEAF_ENCODING_SIZE = PAIR_BYTES + PRICE_BYTES + TIMESTAMP_BYTES + DECIMALS_BYTES + ROUND_BYTES

ZERO_HASH = bytes(32)


@dataclass(frozen=True)
class CommitteeFeed:
    """One price observation signed by a committee.

    :ivar pair: Pair index (u32).
    :ivar price: Fixed-point price magnitude (u128).
    :ivar timestamp: Observation time in milliseconds (u64).
    :ivar decimals: Number of decimals of ``price`` (u16).
    :ivar round: Committee round (u64).
    """

    pair: int
    price: int
    timestamp: int
    decimals: int
    round: int


@dataclass(frozen=True)
class FeedGroup:
    """The leaves authenticated by one signed root, with their multi-proof.

    :ivar feeds: Merkle leaves, order-significant.
    :ivar proof: Interior hashes consumed by the multi-proof.
    :ivar flags: Reconstruction flags, one per combination step.
    """

    feeds: tuple[CommitteeFeed, ...] = ()
    proof: tuple[bytes, ...] = ()
    flags: tuple[bool, ...] = ()


@dataclass(frozen=True)
class SignedBatchEntry:
    """A committee root, its signature and the group it authenticates.

    :ivar committee_id: Id of the signing committee (u64).
    :ivar root: 32-byte merkle root.
    :ivar signature: BLS signature as two field elements.
    :ivar group: Feeds and multi-proof under ``root``.
    """

    committee_id: int
    root: bytes
    signature: tuple[int, int]
    group: FeedGroup = field(default_factory=FeedGroup)


@dataclass(frozen=True)
class OracleProofBatch:
    """Ordered signed entries processed as one atomic unit.

    :ivar entries: Signed entries in submission order.
    """

    entries: tuple[SignedBatchEntry, ...] = ()

    @property
    def feed_count(self) -> int:
        """Total number of feeds across all entries."""
        return sum(len(entry.group.feeds) for entry in self.entries)

    def feeds(self) -> list[CommitteeFeed]:
        """Return all feeds flattened in batch order."""
        return [feed for entry in self.entries for feed in entry.group.feeds]


@dataclass(frozen=True)
class ResolvedOutput:
    """Resolution result for a single processed feed.

    :ivar pair: Pair index.
    :ivar price: Price reported back to the caller.
    :ivar decimals: Decimals of ``price``.
    :ivar timestamp: Timestamp of the reported price.
    :ivar round: Round of the reported price.
    :ivar updated: Whether the store was written for this feed.
    """

    pair: int
    price: int
    decimals: int
    timestamp: int
    round: int
    updated: bool


@dataclass(frozen=True)
class PriceUpdateEvent:
    """Change notification emitted once per processed batch.

    :ivar pairs: Pair index per processed feed.
    :ivar prices: Reported price per processed feed.
    :ivar update_mask: 1 where the store was updated, 0 otherwise.
    """

    pairs: tuple[int, ...]
    prices: tuple[int, ...]
    update_mask: tuple[int, ...]

    @classmethod
    def from_outputs(cls, outputs: list[ResolvedOutput]) -> PriceUpdateEvent:
        """Build the notification from resolved outputs."""
        return cls(
            pairs=tuple(o.pair for o in outputs),
            prices=tuple(o.price for o in outputs),
            update_mask=tuple(1 if o.updated else 0 for o in outputs),
        )


def encode_leaf(feed: CommitteeFeed) -> bytes:
    """Encode a feed into its canonical little-endian leaf bytes.

    :param feed: Feed to encode.
    :returns: 38-byte leaf encoding.
    :raises OverflowError: If a field exceeds its byte width.
    """
    return b"".join(
        (
            feed.pair.to_bytes(PAIR_BYTES, "little"),
            feed.price.to_bytes(PRICE_BYTES, "little"),
            feed.timestamp.to_bytes(TIMESTAMP_BYTES, "little"),
            feed.decimals.to_bytes(DECIMALS_BYTES, "little"),
            feed.round.to_bytes(ROUND_BYTES, "little"),
        )
    )


def hash_leaf(feed: CommitteeFeed) -> bytes:
    """Compute the merkle leaf hash of a feed.

    :param feed: Feed to hash.
    :returns: 32-byte keccak256 digest of :func:`encode_leaf`.
    """
    return bytes(Web3.keccak(encode_leaf(feed)))
