"""ContractProofSubmitter: Submits proofs to a deployed pull contract."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .ProofSubmitter import ProofSubmitter

if TYPE_CHECKING:
    from web3 import Web3
    from web3.contract import Contract

logger = logging.getLogger(__name__)


class ContractProofSubmitter(ProofSubmitter):
    """Proof submitter sending ``verifyOracleProof`` transactions.

    Uses direct Web3 transaction submission with the default account.

    :ivar w3: Web3 instance for transaction submission.
    :ivar contract: Pull contract instance.
    """

    def __init__(self, w3: Web3, contract: Contract) -> None:
        """Initialize the submitter.

        :param w3: Web3 instance with a default signing account.
        :param contract: Pull contract exposing ``verifyOracleProof(bytes)``.
        """
        self.w3 = w3
        self.contract = contract

    def time_delta_allowance(self) -> int:
        """Read ``TIME_DELTA_ALLOWANCE`` from the pull contract."""
        return int(self.contract.functions.TIME_DELTA_ALLOWANCE().call())

    def submit(self, proof_bytes: bytes) -> Any:
        """Send the proof to the pull contract and wait for the receipt.

        :param proof_bytes: Proof bytes from the pull service.
        :returns: Transaction receipt.
        :raises RuntimeError: If the transaction reverted.
        """
        sender = self.w3.eth.default_account
        call = self.contract.functions.verifyOracleProof(proof_bytes)

        gas_estimate = call.estimate_gas({"from": sender})
        logger.debug(f"verifyOracleProof gas estimate: {gas_estimate}")

        tx_hash = call.transact(
            {
                "from": sender,
                "gas": gas_estimate,
                "gasPrice": self.w3.eth.gas_price,
            }
        )
        tx_receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash)

        if tx_receipt["status"] != 1:
            raise RuntimeError(f"verifyOracleProof reverted in tx {tx_hash.hex()}")

        logger.info(
            f"verifyOracleProof included in block {tx_receipt['blockNumber']} "
            f"(tx {tx_hash.hex()}, gas used {tx_receipt['gasUsed']})"
        )
        return tx_receipt
