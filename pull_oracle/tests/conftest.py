"""Shared fixtures for the pull oracle tests."""

from typing import Callable

import pytest

from pull_oracle.src.CommitteeFeed import (
    CommitteeFeed,
    FeedGroup,
    SignedBatchEntry,
    hash_leaf,
)
from pull_oracle.src.MerkleTree import MerkleTree
from pull_oracle.src.SignatureVerifier import SignatureVerifier

SIGNATURE = (11, 22)


class StubSignatureVerifier(SignatureVerifier):
    """Signature verifier with a fixed answer that records its calls."""

    def __init__(self, valid: bool = True) -> None:
        self.valid = valid
        self.calls: list[tuple[bytes, tuple[int, int], int]] = []

    def verify(self, root: bytes, signature: tuple[int, int], committee_id: int) -> bool:
        self.calls.append((root, signature, committee_id))
        return self.valid


def feed(pair: int, round: int, price: int = 1_000_000, decimals: int = 8) -> CommitteeFeed:
    """Build a feed whose timestamp equals its round."""
    return CommitteeFeed(pair=pair, price=price, timestamp=round, decimals=decimals, round=round)


@pytest.fixture
def signature_verifier() -> StubSignatureVerifier:
    return StubSignatureVerifier()


@pytest.fixture
def failing_signature_verifier() -> StubSignatureVerifier:
    return StubSignatureVerifier(valid=False)


@pytest.fixture
def make_feed() -> Callable[..., CommitteeFeed]:
    return feed


@pytest.fixture
def make_entry() -> Callable[..., SignedBatchEntry]:
    """Factory signing a tree over ``feeds`` and proving all of them.

    Extra ``siblings`` are added to the tree but left out of the proof, so the
    multi-proof needs interior proof hashes.
    """

    def _make_entry(
        feeds: list[CommitteeFeed],
        committee_id: int = 1,
        siblings: list[CommitteeFeed] | None = None,
    ) -> SignedBatchEntry:
        all_feeds = list(feeds) + list(siblings or [])
        tree = MerkleTree([hash_leaf(f) for f in all_feeds])
        order, proof, flags = tree.multiproof(list(range(len(feeds))))
        return SignedBatchEntry(
            committee_id=committee_id,
            root=tree.root,
            signature=SIGNATURE,
            group=FeedGroup(
                feeds=tuple(all_feeds[i] for i in order),
                proof=tuple(proof),
                flags=tuple(flags),
            ),
        )

    return _make_entry
