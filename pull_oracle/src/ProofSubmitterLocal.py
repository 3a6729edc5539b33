"""LocalProofSubmitter: Verifies proofs with the in-process PullOracle."""

from __future__ import annotations

from .CommitteeFeed import ResolvedOutput
from .ProofSubmitter import ProofSubmitter
from .PullOracle import PullOracle


class LocalProofSubmitter(ProofSubmitter):
    """Proof submitter running the verification engine in-process.

    :ivar oracle: Oracle receiving the proofs.
    """

    def __init__(self, oracle: PullOracle) -> None:
        """Initialize the submitter.

        :param oracle: Oracle receiving the proofs.
        """
        self.oracle = oracle

    def time_delta_allowance(self) -> int:
        return self.oracle.time_delta_allowance

    def submit(self, proof_bytes: bytes) -> list[ResolvedOutput]:
        """Verify the proof locally.

        :param proof_bytes: Proof bytes from the pull service.
        :returns: Resolved outputs in batch order.
        :raises OracleProofError: If the batch is rejected.
        """
        return self.oracle.verify_oracle_proof(proof_bytes)
