"""OracleProofProcessor: Verification and resolution of committee price batches.

Algorithm:
    Phase 1 - root admission, one pass over the batch entries:
        1. Skip roots already in the root cache
        2. Verify the committee signature of every other root
        3. Cache the root once its signature verified

    Phase 2 - leaf resolution, second pass in batch order:
        1. Verify the group's multi-proof against its root
        2. Reject the batch if a feed's price does not fit the stored word
        3. Resolve every feed against the stored record of its pair:
            - newer round within the future window: store it (updated)
            - round beyond the future window: reject the whole batch
            - older round: report the stored record (stale)
            - same round: report the feed itself (redundant)

    Finally one :class:`PriceUpdateEvent` is emitted for the whole batch.

All signatures are checked before any proof. Proofs are checked on every
call, cached roots included.

Any error aborts the batch. The processor does not undo its own cache
insertions or store writes: that is the job of the execution context running
it (see :class:`.PullOracle.PullOracle`).
"""

from __future__ import annotations

import logging
from typing import Callable

from .CommitteeFeed import (
    CommitteeFeed,
    OracleProofBatch,
    PriceUpdateEvent,
    ResolvedOutput,
    hash_leaf,
)
from .errors import (
    DataNotVerified,
    FutureRoundTooFar,
    InvalidProof,
    InvalidRoot,
    PriceOutOfRange,
)
from .MultiProofVerifier import MultiProofVerifier
from .PriceEncoder import MAX_PRICE, pack
from .PriceStore import PriceStore
from .RootCache import RootCache
from .SignatureVerifier import SignatureVerifier

logger = logging.getLogger(__name__)

# Converts host clock seconds into the millisecond scale of committee rounds.
MILLISECOND_CONVERSION_FACTOR = 1000


class OracleProofProcessor:
    """Two-phase engine turning a signed batch into resolved outputs.

    :ivar root_cache: Cache of roots whose signatures were verified.
    :ivar signature_verifier: Committee signature verifier.
    :ivar price_store: Store of the last known record per pair.
    :ivar proof_verifier: Multi-proof verifier.
    """

    def __init__(
        self,
        root_cache: RootCache,
        signature_verifier: SignatureVerifier,
        price_store: PriceStore,
        proof_verifier: MultiProofVerifier | None = None,
        listeners: list[Callable[[PriceUpdateEvent], None]] | None = None,
    ) -> None:
        """Initialize the processor.

        :param root_cache: Cache of verified roots.
        :param signature_verifier: Verifier for uncached roots.
        :param price_store: Store read before and written on acceptance.
        :param proof_verifier: Multi-proof verifier (default: MultiProofVerifier()).
        :param listeners: Callables receiving the per-batch change notification.
        """
        self.root_cache = root_cache
        self.signature_verifier = signature_verifier
        self.price_store = price_store
        self.proof_verifier = proof_verifier or MultiProofVerifier()
        self._listeners: list[Callable[[PriceUpdateEvent], None]] = list(listeners or [])

    def process_batch(
        self,
        batch: OracleProofBatch,
        current_time: int,
        time_delta_allowance: int,
        round_conversion_factor: int = MILLISECOND_CONVERSION_FACTOR,
    ) -> list[ResolvedOutput]:
        """Verify a batch and resolve each of its feeds.

        :param batch: Signed batch to process.
        :param current_time: Current host time (block timestamp).
        :param time_delta_allowance: How far ahead of the converted current
            time a round may be, in round units.
        :param round_conversion_factor: Multiplier converting ``current_time``
            into round units (default: 1000, seconds to milliseconds).
        :returns: One output per feed, in flattened batch order.
        :raises DataNotVerified: If an uncached root's signature fails.
        :raises InvalidRoot: If a root cannot be cached (zero hash).
        :raises InvalidProof: If a group's multi-proof does not match its root.
        :raises FutureRoundTooFar: If a feed's round is beyond the future window.
        :raises PriceOutOfRange: If a feed's price does not fit the stored word.
        """
        total_feeds = self._admit_roots(batch)

        converted_time = current_time * round_conversion_factor
        max_future_round = converted_time + time_delta_allowance

        outputs: list[ResolvedOutput] = []
        for entry in batch.entries:
            group = entry.group
            leaf_hashes = [hash_leaf(feed) for feed in group.feeds]
            if not self.proof_verifier.verify(
                leaf_hashes, group.proof, group.flags, entry.root
            ):
                logger.warning(
                    f"Invalid multi-proof for root 0x{entry.root.hex()} "
                    f"(committee {entry.committee_id}, {len(group.feeds)} feeds)"
                )
                raise InvalidProof(entry.root)

            for feed in group.feeds:
                outputs.append(
                    self._resolve_feed(feed, converted_time, max_future_round)
                )

        event = PriceUpdateEvent.from_outputs(outputs)
        updated = sum(event.update_mask)
        logger.info(
            f"Processed batch: entries={len(batch.entries)}, feeds={total_feeds}, "
            f"updated={updated}, unchanged={total_feeds - updated}"
        )
        for listener in self._listeners:
            listener(event)

        return outputs

    def _admit_roots(self, batch: OracleProofBatch) -> int:
        """Verify and cache every uncached root of the batch.

        :param batch: Batch whose roots to admit.
        :returns: Total number of feeds in the batch.
        """
        total_feeds = 0
        for entry in batch.entries:
            total_feeds += len(entry.group.feeds)

            if self.root_cache.contains(entry.root):
                logger.debug(f"Root 0x{entry.root.hex()} already verified, skipping")
                continue

            if not self.signature_verifier.verify(
                entry.root, entry.signature, entry.committee_id
            ):
                logger.warning(
                    f"Signature of committee {entry.committee_id} not verified "
                    f"for root 0x{entry.root.hex()}"
                )
                raise DataNotVerified(entry.root, entry.committee_id)

            if not self.root_cache.insert(entry.root):
                raise InvalidRoot(entry.root)
            logger.debug(
                f"Cached root 0x{entry.root.hex()} of committee {entry.committee_id}"
            )

        return total_feeds

    def _resolve_feed(
        self,
        feed: CommitteeFeed,
        converted_time: int,
        max_future_round: int,
    ) -> ResolvedOutput:
        """Apply the round resolution policy to one verified feed.

        :param feed: Verified feed.
        :param converted_time: Current time in round units.
        :param max_future_round: Largest acceptable round.
        :returns: The resolved output for the feed.
        :raises PriceOutOfRange: If the price does not fit the stored word.
        :raises FutureRoundTooFar: If the round is beyond ``max_future_round``.
        """
        if feed.price > MAX_PRICE:
            logger.warning(f"Pair {feed.pair}: price {feed.price} exceeds {MAX_PRICE}")
            raise PriceOutOfRange(feed.pair, feed.price)

        last = self.price_store.get(feed.pair)

        if last.round < feed.round <= max_future_round:
            self.price_store.set(
                feed.pair, pack(feed.round, feed.decimals, feed.timestamp, feed.price)
            )
            logger.debug(
                f"Pair {feed.pair}: round {last.round} -> {feed.round}, price {feed.price}"
            )
            return ResolvedOutput(
                pair=feed.pair,
                price=feed.price,
                decimals=feed.decimals,
                timestamp=feed.timestamp,
                round=feed.round,
                updated=True,
            )

        if feed.round > max_future_round:
            overage = feed.round - converted_time
            logger.warning(
                f"Pair {feed.pair}: round {feed.round} is {overage} ahead of current "
                f"time (max future round {max_future_round})"
            )
            raise FutureRoundTooFar(overage)

        if feed.round < last.round:
            logger.debug(f"Pair {feed.pair}: stale round {feed.round} < {last.round}")
            return ResolvedOutput(
                pair=feed.pair,
                price=last.price,
                decimals=last.decimals,
                timestamp=last.timestamp,
                round=last.round,
                updated=False,
            )

        logger.debug(f"Pair {feed.pair}: round {feed.round} already stored")
        return ResolvedOutput(
            pair=feed.pair,
            price=feed.price,
            decimals=feed.decimals,
            timestamp=feed.timestamp,
            round=feed.round,
            updated=False,
        )
