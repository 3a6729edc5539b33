"""SignatureVerifier: Committee signature checks over merkle roots."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from web3.exceptions import ContractLogicError

if TYPE_CHECKING:
    from web3.contract import Contract

logger = logging.getLogger(__name__)


class SignatureVerifier(ABC):
    """Abstract verifier of committee signatures over merkle roots."""

    @abstractmethod
    def verify(self, root: bytes, signature: tuple[int, int], committee_id: int) -> bool:
        """Check that ``committee_id`` signed ``root``.

        :param root: 32-byte merkle root.
        :param signature: BLS signature as two field elements.
        :param committee_id: Id of the signing committee.
        :returns: True if the signature is valid.
        """
        pass


class ContractSignatureVerifier(SignatureVerifier):
    """Delegates signature checks to an on-chain BLS verifier contract.

    The contract is expected to expose
    ``verifySignature(bytes32 root, uint256[2] signature, uint64 committeeId)
    returns (bool)``. A reverted call counts as an invalid signature.

    :ivar contract: Verifier contract instance.
    """

    def __init__(self, contract: Contract) -> None:
        """Initialize the verifier.

        :param contract: Web3 contract bound to the verifier address.
        """
        self.contract = contract

    def verify(self, root: bytes, signature: tuple[int, int], committee_id: int) -> bool:
        try:
            result = self.contract.functions.verifySignature(
                bytes(root), list(signature), committee_id
            ).call()
        except ContractLogicError as e:
            logger.warning(
                f"Signature check reverted for committee {committee_id}, "
                f"root 0x{bytes(root).hex()}: {e}"
            )
            return False
        return bool(result)
