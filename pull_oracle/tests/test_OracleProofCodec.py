"""Unit tests for OracleProofCodec."""

import pytest
from eth_abi import encode as abi_encode

from pull_oracle.src.CommitteeFeed import FeedGroup, OracleProofBatch, SignedBatchEntry
from pull_oracle.src.errors import ProofDecodeError
from pull_oracle.src.OracleProofCodec import (
    ORACLE_PROOF_TYPE,
    decode_oracle_proof,
    encode_oracle_proof,
)


class TestDecodeOracleProof:
    """Test decoding of pull service proof bytes."""

    def test_decodes_abi_tuple(self) -> None:
        """Hand-built ABI bytes should decode into the batch model."""
        root = b"\xaa" * 32
        sibling = b"\xbb" * 32
        data = abi_encode(
            [ORACLE_PROOF_TYPE],
            [
                (
                    [
                        (
                            7,
                            root,
                            [11, 22],
                            (
                                [(1, 6_500_000_000_000, 1_700_000_000_000, 8, 1_700_000_000_000)],
                                [sibling],
                                [False],
                            ),
                        )
                    ],
                )
            ],
        )

        batch = decode_oracle_proof(data)

        assert len(batch.entries) == 1
        entry = batch.entries[0]
        assert entry.committee_id == 7
        assert entry.root == root
        assert entry.signature == (11, 22)
        assert entry.group.proof == (sibling,)
        assert entry.group.flags == (False,)
        (f,) = entry.group.feeds
        assert f.pair == 1
        assert f.price == 6_500_000_000_000
        assert f.decimals == 8
        assert f.round == 1_700_000_000_000

    def test_encoder_output_decodes(self, make_feed) -> None:
        """Bytes from encode_oracle_proof should decode to an equal batch."""
        batch = OracleProofBatch(
            entries=(
                SignedBatchEntry(
                    committee_id=1,
                    root=b"\x01" * 32,
                    signature=(3, 4),
                    group=FeedGroup(feeds=(make_feed(1, 5), make_feed(2, 6)), proof=(), flags=(True,)),
                ),
                SignedBatchEntry(committee_id=2, root=b"\x02" * 32, signature=(5, 6)),
            )
        )
        assert decode_oracle_proof(encode_oracle_proof(batch)) == batch

    def test_empty_batch(self) -> None:
        """A proof with no entries decodes to an empty batch."""
        data = abi_encode([ORACLE_PROOF_TYPE], [([],)])
        assert decode_oracle_proof(data) == OracleProofBatch()

    def test_garbage_raises(self) -> None:
        """Malformed bytes should raise ProofDecodeError."""
        with pytest.raises(ProofDecodeError, match="Malformed oracle proof"):
            decode_oracle_proof(b"\x01\x02\x03")


class TestEncodeOracleProof:
    """Test encoding of batches."""

    def test_out_of_range_field(self) -> None:
        """Fields that do not fit their ABI type should raise ValueError."""
        batch = OracleProofBatch(
            entries=(
                SignedBatchEntry(
                    committee_id=2**64,
                    root=b"\x01" * 32,
                    signature=(1, 2),
                ),
            )
        )
        with pytest.raises(ValueError, match="Cannot encode oracle proof"):
            encode_oracle_proof(batch)
