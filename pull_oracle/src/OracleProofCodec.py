"""OracleProofCodec: ABI encoding of oracle proof batches.

The pull service returns proofs as Ethereum ABI encoded bytes of::

    OracleProof {
        data: {
            committee_id: uint64,
            root: bytes32,
            sigs: uint256[2],
            committee_data: {
                committee_feed: {
                    pair: uint32, price: uint128, timestamp: uint64,
                    decimals: uint16, round: uint64,
                }[],
                proofs: bytes32[],
                flags: bool[],
            },
        }[]
    }

The same bytes are passed to the pull contract's ``verifyOracleProof``.
"""

from __future__ import annotations

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError, EncodingError

from .CommitteeFeed import (
    CommitteeFeed,
    FeedGroup,
    OracleProofBatch,
    SignedBatchEntry,
)
from .errors import ProofDecodeError

COMMITTEE_FEED_TYPE = "(uint32,uint128,uint64,uint16,uint64)"
COMMITTEE_DATA_TYPE = f"({COMMITTEE_FEED_TYPE}[],bytes32[],bool[])"
ORACLE_PROOF_TYPE = f"((uint64,bytes32,uint256[2],{COMMITTEE_DATA_TYPE})[])"


def decode_oracle_proof(data: bytes) -> OracleProofBatch:
    """Decode ABI encoded proof bytes into a batch.

    :param data: Proof bytes as returned by the pull service.
    :returns: The decoded batch.
    :raises ProofDecodeError: If the bytes are not a valid encoding.
    """
    try:
        ((entries,),) = abi_decode([ORACLE_PROOF_TYPE], bytes(data))
    except (DecodingError, ValueError) as e:
        raise ProofDecodeError(f"Malformed oracle proof: {e}") from e

    return OracleProofBatch(
        entries=tuple(
            SignedBatchEntry(
                committee_id=committee_id,
                root=bytes(root),
                signature=(sigs[0], sigs[1]),
                group=FeedGroup(
                    feeds=tuple(
                        CommitteeFeed(
                            pair=pair,
                            price=price,
                            timestamp=timestamp,
                            decimals=decimals,
                            round=round_,
                        )
                        for pair, price, timestamp, decimals, round_ in feeds
                    ),
                    proof=tuple(bytes(p) for p in proofs),
                    flags=tuple(flags),
                ),
            )
            for committee_id, root, sigs, (feeds, proofs, flags) in entries
        )
    )


def encode_oracle_proof(batch: OracleProofBatch) -> bytes:
    """Encode a batch into proof bytes.

    :param batch: Batch to encode.
    :returns: ABI encoded proof bytes.
    :raises ValueError: If a field does not fit its ABI type.
    """
    entries = [
        (
            entry.committee_id,
            bytes(entry.root),
            list(entry.signature),
            (
                [
                    (f.pair, f.price, f.timestamp, f.decimals, f.round)
                    for f in entry.group.feeds
                ],
                [bytes(p) for p in entry.group.proof],
                list(entry.group.flags),
            ),
        )
        for entry in batch.entries
    ]
    try:
        return abi_encode([ORACLE_PROOF_TYPE], [(entries,)])
    except EncodingError as e:
        raise ValueError(f"Cannot encode oracle proof: {e}") from e
