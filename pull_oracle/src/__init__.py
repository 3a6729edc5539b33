"""
Pull Oracle - Committee Proof Verification Module

This module verifies committee-signed price proofs and resolves them per pair:
- CommitteeFeed: Feed, batch and output data model with canonical leaf hashing
- RootCache: Ring buffer of roots whose committee signature was verified
- MultiProofVerifier: Merkle multi-proof verification
- MerkleTree: Producer-side tree and multi-proof generation
- PriceEncoder: Packing of stored price records into one 256-bit word
- OracleProofProcessor: Two-phase verification and round resolution engine
- PullOracle: Atomic execution context around the processor
- ProofRelayer: Polling loop relaying pull-service proofs to a target
"""

from .CommitteeFeed import (
    CommitteeFeed,
    FeedGroup,
    OracleProofBatch,
    PriceUpdateEvent,
    ResolvedOutput,
    SignedBatchEntry,
)
from .errors import (
    DataNotVerified,
    FutureRoundTooFar,
    InvalidProof,
    InvalidRoot,
    OracleProofError,
    PriceOutOfRange,
    ProofDecodeError,
)
from .MerkleTree import MerkleTree
from .MultiProofVerifier import MultiProofVerifier
from .OracleProofCodec import decode_oracle_proof, encode_oracle_proof
from .OracleProofProcessor import MILLISECOND_CONVERSION_FACTOR, OracleProofProcessor
from .PriceEncoder import MAX_PRICE, StoredPriceRecord, pack, unpack
from .PriceStore import InMemoryPriceStore, PriceStore, PriceStoreTransaction
from .PullOracle import DEFAULT_TIME_DELTA_ALLOWANCE, PullOracle
from .RootCache import DEFAULT_ROOT_CACHE_CAPACITY, RootCache
from .SignatureVerifier import ContractSignatureVerifier, SignatureVerifier

__all__ = [
    "CommitteeFeed",
    "ContractSignatureVerifier",
    "DEFAULT_ROOT_CACHE_CAPACITY",
    "DEFAULT_TIME_DELTA_ALLOWANCE",
    "DataNotVerified",
    "FeedGroup",
    "FutureRoundTooFar",
    "InMemoryPriceStore",
    "InvalidProof",
    "InvalidRoot",
    "MAX_PRICE",
    "MILLISECOND_CONVERSION_FACTOR",
    "MerkleTree",
    "MultiProofVerifier",
    "OracleProofBatch",
    "OracleProofError",
    "OracleProofProcessor",
    "PriceOutOfRange",
    "PriceStore",
    "PriceStoreTransaction",
    "PriceUpdateEvent",
    "ProofDecodeError",
    "PullOracle",
    "ResolvedOutput",
    "RootCache",
    "SignatureVerifier",
    "SignedBatchEntry",
    "StoredPriceRecord",
    "decode_oracle_proof",
    "encode_oracle_proof",
    "pack",
    "unpack",
]
