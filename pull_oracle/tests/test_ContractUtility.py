"""Unit tests for ContractUtility."""

from unittest.mock import MagicMock

from pull_oracle.src.ContractUtility import ContractUtility


class TestGetContract:
    """Test ABI loading from resources."""

    def test_pull_contract_abi(self) -> None:
        """The pull contract ABI should expose the proof entry point."""
        abi = ContractUtility.get_contract("OraclePull")
        names = {item.get("name") for item in abi}
        assert "verifyOracleProof" in names
        assert "TIME_DELTA_ALLOWANCE" in names

    def test_signature_verifier_abi(self) -> None:
        """The verifier ABI should expose verifySignature."""
        abi = ContractUtility.get_contract("SignatureVerifier")
        assert any(item.get("name") == "verifySignature" for item in abi)


class TestSampleBlockTime:
    """Test chain time sampling."""

    def make_utility(self, blocks: dict) -> ContractUtility:
        utility = ContractUtility("http://localhost:8545")
        utility.w3 = MagicMock()
        utility.w3.eth.get_block.side_effect = lambda ref: blocks[ref]
        return utility

    def test_average_over_sample(self) -> None:
        """Average block time should span the sampled blocks."""
        utility = self.make_utility(
            {
                "latest": {"number": 1000, "timestamp": 1_700_000_600},
                900: {"number": 900, "timestamp": 1_700_000_000},
            }
        )

        current, average = utility.sample_block_time(100)

        assert current == 1_700_000_600_000
        assert average == 6000.0

    def test_sample_clamped_to_chain_height(self) -> None:
        """A sample larger than the chain should use every block."""
        utility = self.make_utility(
            {
                "latest": {"number": 4, "timestamp": 40},
                0: {"number": 0, "timestamp": 0},
            }
        )
        assert utility.sample_block_time(100) == (40_000, 10_000.0)

    def test_genesis_only(self) -> None:
        """With only the genesis block the average is zero."""
        utility = self.make_utility({"latest": {"number": 0, "timestamp": 5}})
        assert utility.sample_block_time(10) == (5000, 0.0)
