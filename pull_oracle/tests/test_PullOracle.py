"""Unit tests for PullOracle."""

import threading
from dataclasses import replace

import pytest

from pull_oracle.src.CommitteeFeed import OracleProofBatch, PriceUpdateEvent
from pull_oracle.src.errors import (
    FutureRoundTooFar,
    InvalidProof,
    PriceOutOfRange,
    ProofDecodeError,
)
from pull_oracle.src.OracleProofCodec import encode_oracle_proof
from pull_oracle.src.PriceEncoder import StoredPriceRecord, pack
from pull_oracle.src.PriceStore import InMemoryPriceStore
from pull_oracle.src.PullOracle import DEFAULT_TIME_DELTA_ALLOWANCE, PullOracle


@pytest.fixture
def oracle(signature_verifier) -> PullOracle:
    # max future round = 0 * 1000 + 1000
    return PullOracle(
        signature_verifier=signature_verifier,
        price_store=InMemoryPriceStore({1: pack(5, 8, 5, 500), 2: pack(5, 8, 5, 500)}),
        root_cache_capacity=4,
        time_delta_allowance=1000,
        clock_fn=lambda: 0,
    )


class TestPullOracleInit:
    """Test PullOracle defaults."""

    def test_defaults(self, signature_verifier) -> None:
        """Default store, allowance and clock should be set up."""
        oracle = PullOracle(signature_verifier=signature_verifier)

        assert oracle.time_delta_allowance == DEFAULT_TIME_DELTA_ALLOWANCE
        assert oracle.round_conversion_factor == 1000
        assert isinstance(oracle.price_store, InMemoryPriceStore)
        assert oracle.clock_fn() > 0


class TestVerifyBatch:
    """Test atomic batch processing."""

    def test_commits_accepted_feeds(self, oracle, make_entry, make_feed) -> None:
        """Accepted feeds should be visible through the getters."""
        outputs = oracle.verify_batch(
            OracleProofBatch(entries=(make_entry([make_feed(1, 6, price=600)]),))
        )

        assert outputs[0].updated is True
        assert oracle.get_svalue(1) == StoredPriceRecord(round=6, decimals=8, timestamp=6, price=600)

    def test_future_round_rolls_back_everything(self, oracle, make_entry, make_feed) -> None:
        """A late failing entry should leave every pair and the root cache unchanged."""
        events: list[PriceUpdateEvent] = []
        oracle.add_listener(events.append)
        good = make_entry([make_feed(1, 6), make_feed(2, 7)], committee_id=1)
        bad = make_entry([make_feed(3, 5000)], committee_id=2)

        with pytest.raises(FutureRoundTooFar):
            oracle.verify_batch(OracleProofBatch(entries=(good, bad)))

        assert oracle.get_svalues([1, 2, 3]) == [
            StoredPriceRecord(round=5, decimals=8, timestamp=5, price=500),
            StoredPriceRecord(round=5, decimals=8, timestamp=5, price=500),
            StoredPriceRecord(),
        ]
        assert not oracle.root_cache.contains(good.root)
        assert not oracle.root_cache.contains(bad.root)
        assert events == []

    def test_wide_price_rolls_back_everything(self, oracle, make_entry, make_feed) -> None:
        """A price too wide to store should leave earlier accepted pairs unchanged."""
        good = make_entry([make_feed(1, 6)], committee_id=1)
        bad = make_entry([make_feed(2, 7, price=2**100)], committee_id=2)

        with pytest.raises(PriceOutOfRange):
            oracle.verify_batch(OracleProofBatch(entries=(good, bad)))

        assert oracle.get_svalue(1).round == 5
        assert oracle.get_svalue(2).round == 5
        assert len(oracle.root_cache) == 0

    def test_invalid_proof_rolls_back_cache(
        self, oracle, signature_verifier, make_entry, make_feed
    ) -> None:
        """Roots admitted in a failed call should be verified again next time."""
        entry = make_entry([make_feed(1, 6)])
        broken = make_entry([make_feed(2, 6)], committee_id=2)
        broken = replace(broken, root=entry.root)

        with pytest.raises(InvalidProof):
            oracle.verify_batch(OracleProofBatch(entries=(entry, broken)))
        assert len(oracle.root_cache) == 0

        oracle.verify_batch(OracleProofBatch(entries=(entry,)))
        assert len(signature_verifier.calls) == 2
        assert oracle.get_svalue(1).round == 6

    def test_listener_gets_event_after_commit(self, oracle, make_entry, make_feed) -> None:
        """Listeners should see committed state and one event per call."""
        seen: list[tuple[PriceUpdateEvent, StoredPriceRecord]] = []
        oracle.add_listener(lambda event: seen.append((event, oracle.get_svalue(1))))

        oracle.verify_batch(
            OracleProofBatch(entries=(make_entry([make_feed(1, 6, price=600), make_feed(2, 4)]),))
        )

        assert len(seen) == 1
        event, record = seen[0]
        assert event.pairs == (1, 2)
        assert event.prices == (600, 500)
        assert event.update_mask == (1, 0)
        assert record.round == 6

    def test_clock_read_per_call(self, signature_verifier, make_entry, make_feed) -> None:
        """The future window should follow the clock."""
        now = [0]
        oracle = PullOracle(signature_verifier, time_delta_allowance=0, clock_fn=lambda: now[0])
        batch = OracleProofBatch(entries=(make_entry([make_feed(1, 3000)]),))

        with pytest.raises(FutureRoundTooFar):
            oracle.verify_batch(batch)

        now[0] = 3
        assert oracle.verify_batch(batch)[0].updated is True

    def test_concurrent_calls_serialized(self, oracle, make_entry, make_feed) -> None:
        """Concurrent calls on the same pair should each see a consistent store."""
        batches = [
            OracleProofBatch(entries=(make_entry([make_feed(1, r)], committee_id=r),))
            for r in range(6, 26)
        ]
        threads = [threading.Thread(target=oracle.verify_batch, args=(b,)) for b in batches]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert oracle.get_svalue(1).round == 25


class TestVerifyOracleProof:
    """Test the bytes entry point."""

    def test_decodes_and_processes(self, oracle, make_entry, make_feed) -> None:
        """Encoded proof bytes should be processed like a batch."""
        data = encode_oracle_proof(OracleProofBatch(entries=(make_entry([make_feed(2, 9)]),)))

        outputs = oracle.verify_oracle_proof(data)

        assert [(o.pair, o.round, o.updated) for o in outputs] == [(2, 9, True)]
        assert oracle.get_svalue(2).round == 9

    def test_malformed_bytes(self, oracle) -> None:
        """Undecodable bytes should raise ProofDecodeError."""
        with pytest.raises(ProofDecodeError):
            oracle.verify_oracle_proof(b"\x00")


class TestGetters:
    """Test stored record getters."""

    def test_unknown_pair(self, oracle) -> None:
        """Never-set pairs should read as zero."""
        assert oracle.get_svalue(42) == StoredPriceRecord()

    def test_get_svalues_order(self, oracle) -> None:
        """Records should be returned in request order."""
        records = oracle.get_svalues([42, 1])
        assert records[0] == StoredPriceRecord()
        assert records[1].round == 5
