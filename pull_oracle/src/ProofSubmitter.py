"""ProofSubmitter: Abstract base class for proof submission targets."""

from abc import abstractmethod
from typing import Any


class ProofSubmitter:
    """Abstract base class for proof submission targets.

    A target is anything exposing the pull oracle entry point: the in-process
    :class:`.PullOracle.PullOracle` or a deployed pull contract.
    """

    @abstractmethod
    def time_delta_allowance(self) -> int:
        """Fetch how far ahead of the current time a round may be.

        :returns: Allowance in milliseconds.
        """
        pass

    @abstractmethod
    def submit(self, proof_bytes: bytes) -> Any:
        """Submit ABI encoded proof bytes for verification.

        :param proof_bytes: Proof bytes from the pull service.
        :returns: Submission result.
        """
        pass
