"""Exceptions raised while verifying oracle proofs.

Every :class:`OracleProofError` is fatal to the batch being processed: the
execution context discards all tentative state changes and the error is
surfaced to the caller unchanged.
"""

from __future__ import annotations


class OracleProofError(Exception):
    """Base exception for oracle proof verification errors."""

    pass


class InvalidRoot(OracleProofError):
    """Raised when the root cache rejects a merkle root (the zero hash).

    :ivar root: The rejected root.
    """

    def __init__(self, root: bytes):
        """Initialize the error.

        :param root: The rejected root.
        """
        self.root = root
        super().__init__(f"Invalid merkle root 0x{root.hex()}")


class DataNotVerified(OracleProofError):
    """Raised when the committee signature over a root does not verify.

    :ivar root: Root whose signature failed.
    :ivar committee_id: Committee that supposedly signed the root.
    """

    def __init__(self, root: bytes, committee_id: int):
        """Initialize the error.

        :param root: Root whose signature failed.
        :param committee_id: Committee that supposedly signed the root.
        """
        self.root = root
        self.committee_id = committee_id
        super().__init__(
            f"Signature of committee {committee_id} over root 0x{root.hex()} not verified"
        )


class InvalidProof(OracleProofError):
    """Raised when a multi-proof does not reconstruct the signed root.

    :ivar root: The root the proof was checked against.
    """

    def __init__(self, root: bytes):
        """Initialize the error.

        :param root: The root the proof was checked against.
        """
        self.root = root
        super().__init__(f"Multi-proof does not match root 0x{root.hex()}")


class FutureRoundTooFar(OracleProofError):
    """Raised when a feed's round lies beyond the allowed future window.

    :ivar overage: How far the round is ahead of the current time, in round units.
    """

    def __init__(self, overage: int):
        """Initialize the error.

        :param overage: ``round - current_time * round_conversion_factor``.
        """
        self.overage = overage
        super().__init__(f"Round is {overage} ahead of current time")


class PriceOutOfRange(OracleProofError):
    """Raised when a feed's price does not fit the stored price field.

    :ivar pair: Pair index of the feed.
    :ivar price: The rejected price.
    """

    def __init__(self, pair: int, price: int):
        """Initialize the error.

        :param pair: Pair index of the feed.
        :param price: The rejected price.
        """
        self.pair = pair
        self.price = price
        super().__init__(f"Price {price} of pair {pair} exceeds the stored price width")


class ProofDecodeError(OracleProofError):
    """Raised when proof bytes are not a valid oracle proof encoding."""

    pass
