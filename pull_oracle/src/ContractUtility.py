"""ContractUtility: Web3 initialization, contract ABI loading and block timing."""

import json
import logging
from pathlib import Path

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.middleware import SignAndSendRawMiddlewareBuilder

from .OracleProofProcessor import MILLISECOND_CONVERSION_FACTOR

logger = logging.getLogger(__name__)


class ContractUtility:
    """Utility for Web3 connection and contract ABI loading.

    :ivar rpc_url: Chain RPC URL.
    :ivar w3: Configured Web3 instance.
    :ivar account: Signing account, if a private key was given.
    """

    def __init__(self, rpc_url: str, private_key: str | None = None) -> None:
        """Initialize the contract utility.

        :param rpc_url: RPC URL of the chain hosting the pull contract.
        :param private_key: Optional hex private key used to sign transactions.
        """
        self.rpc_url = rpc_url
        self.w3 = Web3(Web3.HTTPProvider(rpc_url))
        self.account: LocalAccount | None = None

        if private_key:
            self.account = Account.from_key(private_key)
            self.w3.middleware_onion.add(SignAndSendRawMiddlewareBuilder.build(self.account))
            self.w3.eth.default_account = self.account.address
            logger.info(f"Using wallet address {self.account.address}")

    @staticmethod
    def get_contract(contract_name: str) -> list:
        """Fetch the ABI of a contract from the resources folder.

        :param contract_name: Name of the contract (e.g., "OraclePull").
        :returns: Contract ABI.
        """
        output_path = (
            Path(__file__).parent.parent / "resources" / f"{contract_name}.json"
        ).resolve()

        with open(output_path, "r") as file:
            contract_data = json.load(file)

        return contract_data["abi"]

    def sample_block_time(self, sample_size: int) -> tuple[int, float]:
        """Read the latest block time and the average block interval.

        :param sample_size: Number of recent block intervals to average over.
        :returns: Tuple of (latest block time in ms, average block time in ms).
        """
        latest = self.w3.eth.get_block("latest")
        current_time = int(latest["timestamp"]) * MILLISECOND_CONVERSION_FACTOR

        span = min(sample_size, int(latest["number"]))
        if span < 1:
            return current_time, 0.0

        oldest = self.w3.eth.get_block(int(latest["number"]) - span)
        average = (
            (int(latest["timestamp"]) - int(oldest["timestamp"]))
            / span
            * MILLISECOND_CONVERSION_FACTOR
        )
        return current_time, average
