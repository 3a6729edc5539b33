"""PullOracle: Atomic execution context around the proof processor.

Plays the role of the pull contract: it decodes proof bytes, reads the host
clock, and runs :class:`OracleProofProcessor` as one all-or-nothing state
transition. Calls are serialized by a lock. Store writes are buffered in a
:class:`PriceStoreTransaction` and the root cache is snapshotted, so a failing
batch leaves both exactly as they were. Change notifications are delivered to
listeners only after the batch committed.

.. code-block:: python

    oracle = PullOracle(signature_verifier=ContractSignatureVerifier(contract))
    oracle.add_listener(lambda event: print(event.pairs, event.update_mask))
    outputs = oracle.verify_oracle_proof(proof_bytes)
    record = oracle.get_svalue(0)
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from .CommitteeFeed import OracleProofBatch, PriceUpdateEvent, ResolvedOutput
from .OracleProofCodec import decode_oracle_proof
from .OracleProofProcessor import MILLISECOND_CONVERSION_FACTOR, OracleProofProcessor
from .PriceEncoder import StoredPriceRecord
from .PriceStore import InMemoryPriceStore, PriceStore, PriceStoreTransaction
from .RootCache import DEFAULT_ROOT_CACHE_CAPACITY, RootCache
from .SignatureVerifier import SignatureVerifier

logger = logging.getLogger(__name__)

# How far ahead of the current time (in ms) a committee round may be.
DEFAULT_TIME_DELTA_ALLOWANCE = 60_000


class PullOracle:
    """Contract-like facade verifying oracle proofs atomically.

    :ivar signature_verifier: Committee signature verifier.
    :ivar price_store: Committed price store.
    :ivar root_cache: Cache of verified roots.
    :ivar time_delta_allowance: Future window for rounds, in round units.
    :ivar round_conversion_factor: Clock to round unit multiplier.
    """

    def __init__(
        self,
        signature_verifier: SignatureVerifier,
        price_store: PriceStore | None = None,
        root_cache_capacity: int = DEFAULT_ROOT_CACHE_CAPACITY,
        time_delta_allowance: int = DEFAULT_TIME_DELTA_ALLOWANCE,
        round_conversion_factor: int = MILLISECOND_CONVERSION_FACTOR,
        clock_fn: Callable[[], int] | None = None,
    ) -> None:
        """Initialize the oracle.

        :param signature_verifier: Verifier for committee signatures.
        :param price_store: Store of last known prices (default: in-memory).
        :param root_cache_capacity: Number of verified roots to remember.
        :param time_delta_allowance: Future window for rounds (default: 60000).
        :param round_conversion_factor: Clock to round multiplier (default: 1000).
        :param clock_fn: Callable returning the current time in seconds
            (default: wall clock).
        """
        self.signature_verifier = signature_verifier
        self.price_store = price_store if price_store is not None else InMemoryPriceStore()
        self.root_cache = RootCache(root_cache_capacity)
        self.time_delta_allowance = time_delta_allowance
        self.round_conversion_factor = round_conversion_factor
        self.clock_fn = clock_fn or (lambda: int(time.time()))

        self._listeners: list[Callable[[PriceUpdateEvent], None]] = []
        self._lock = threading.Lock()

    def add_listener(self, listener: Callable[[PriceUpdateEvent], None]) -> None:
        """Register a callable receiving each committed batch's notification."""
        self._listeners.append(listener)

    def verify_oracle_proof(self, proof_bytes: bytes) -> list[ResolvedOutput]:
        """Decode and process ABI encoded proof bytes.

        :param proof_bytes: Proof bytes from the pull service.
        :returns: Resolved outputs in batch order.
        :raises OracleProofError: If decoding or any verification step fails.
        """
        return self.verify_batch(decode_oracle_proof(proof_bytes))

    def verify_batch(self, batch: OracleProofBatch) -> list[ResolvedOutput]:
        """Process a decoded batch as one atomic state transition.

        :param batch: Batch to process.
        :returns: Resolved outputs in batch order.
        :raises OracleProofError: If any verification step fails; no state
            changes persist in that case.
        """
        with self._lock:
            transaction = PriceStoreTransaction(self.price_store)
            cache_state = self.root_cache.snapshot()
            events: list[PriceUpdateEvent] = []

            processor = OracleProofProcessor(
                root_cache=self.root_cache,
                signature_verifier=self.signature_verifier,
                price_store=transaction,
                listeners=[events.append],
            )
            try:
                outputs = processor.process_batch(
                    batch,
                    current_time=self.clock_fn(),
                    time_delta_allowance=self.time_delta_allowance,
                    round_conversion_factor=self.round_conversion_factor,
                )
            except Exception as e:
                transaction.rollback()
                self.root_cache.restore(cache_state)
                logger.warning(f"Batch rejected ({type(e).__name__}): {e}")
                raise

            transaction.commit()

        for event in events:
            for listener in self._listeners:
                listener(event)
        return outputs

    def get_svalue(self, pair: int) -> StoredPriceRecord:
        """Get the committed record of a pair (zero record if never set)."""
        return self.price_store.get(pair)

    def get_svalues(self, pairs: list[int]) -> list[StoredPriceRecord]:
        """Get the committed records of several pairs, in the given order."""
        return [self.price_store.get(pair) for pair in pairs]
