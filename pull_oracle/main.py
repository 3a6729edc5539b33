#!/usr/bin/env python3
"""Pull Oracle Relayer.

Requests committee-signed price proofs from the pull service for the pairs
that are due, and submits them either to a deployed pull contract or to the
in-process verification engine.

Start with env vars or CLI args. CLI args take precedence.
"""

import argparse
import asyncio
import logging
import os
import sys

from .src.ContractUtility import ContractUtility
from .src.ProofRelayer import OracleSchedule, ProofRelayer
from .src.ProofSubmitter import ProofSubmitter
from .src.ProofSubmitterContract import ContractProofSubmitter
from .src.ProofSubmitterLocal import LocalProofSubmitter
from .src.PullOracle import DEFAULT_TIME_DELTA_ALLOWANCE, PullOracle
from .src.PullServiceClient import PullServiceClient
from .src.RootCache import DEFAULT_ROOT_CACHE_CAPACITY
from .src.SignatureVerifier import ContractSignatureVerifier

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

TARGETS = ("contract", "local")


def parse_oracles(oracles_str: str | None) -> list[OracleSchedule]:
    """Parse comma-separated pair schedules.

    Format: index1=resolution1,index2=resolution2 (resolutions in ms)
    Example: 0=60000,21=300000

    :param oracles_str: Comma-separated schedule string.
    :returns: List of pair schedules.
    :raises ValueError: If an item is malformed.
    """
    if not oracles_str:
        return []

    schedules = []
    for item in oracles_str.split(","):
        item = item.strip()
        if not item:
            continue
        index, sep, resolution = item.partition("=")
        if not sep:
            raise ValueError(f"Invalid oracle schedule '{item}'. Expected 'index=resolution_ms'")
        schedules.append(
            OracleSchedule(price_index=int(index.strip()), resolution=int(resolution.strip()))
        )
    return schedules


def build_submitter(args: argparse.Namespace, contract_utility: ContractUtility) -> ProofSubmitter:
    """Create the submission target selected on the command line.

    :param args: Parsed CLI arguments.
    :param contract_utility: Connected contract utility.
    :returns: Configured proof submitter.
    """
    w3 = contract_utility.w3

    if args.target == "contract":
        contract = w3.eth.contract(
            address=args.pull_oracle_address,
            abi=ContractUtility.get_contract("OraclePull"),
        )
        return ContractProofSubmitter(w3, contract)

    verifier_contract = w3.eth.contract(
        address=args.signature_verifier_address,
        abi=ContractUtility.get_contract("SignatureVerifier"),
    )
    oracle = PullOracle(
        signature_verifier=ContractSignatureVerifier(verifier_contract),
        root_cache_capacity=args.root_cache_capacity,
        time_delta_allowance=args.time_delta_allowance,
        clock_fn=lambda: int(w3.eth.get_block("latest")["timestamp"]),
    )
    oracle.add_listener(
        lambda event: logger.info(
            f"PriceUpdate pairs={list(event.pairs)} prices={list(event.prices)} "
            f"updateMask={list(event.update_mask)}"
        )
    )
    return LocalProofSubmitter(oracle)


def main() -> None:
    """Main entry point for the pull oracle relayer CLI."""
    parser = argparse.ArgumentParser(
        description="Pull Oracle Relayer: committee-signed price proof verification",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Relay BTC/USD (0) every minute and index 21 every 5 minutes to a pull contract
  python -m pull_oracle.main --oracles 0=60000,21=300000 \\
      --pull-oracle-address 0x... --chain-rpc-url https://rpc.example

  # Verify proofs in-process, checking signatures through a verifier contract
  python -m pull_oracle.main --target local --oracles 0=60000 \\
      --signature-verifier-address 0x...

Environment variables (CLI args take precedence):
  CHAIN_RPC_URL, PULL_SERVICE_URL, TARGET, PULL_ORACLE_ADDRESS,
  SIGNATURE_VERIFIER_ADDRESS, CHAIN_TYPE, ORACLES, BLOCK_SAMPLE_SIZE,
  DELAY_MULTIPLIER, POLL_PERIOD, TIME_DELTA_ALLOWANCE, ROOT_CACHE_CAPACITY,
  PRIVATE_KEY
""",
    )

    parser.add_argument(
        "--chain-rpc-url",
        dest="chain_rpc_url",
        type=str,
        help="RPC URL of the chain hosting the contracts",
        default=os.environ.get("CHAIN_RPC_URL") or "http://localhost:8545",
    )

    parser.add_argument(
        "--pull-service-url",
        dest="pull_service_url",
        type=str,
        help="Base URL of the proof pull service",
        default=os.environ.get("PULL_SERVICE_URL") or "http://127.0.0.1:9000",
    )

    parser.add_argument(
        "--target",
        type=str,
        choices=TARGETS,
        help="Where proofs are verified: deployed pull contract or in-process engine",
        default=os.environ.get("TARGET") or "contract",
    )

    parser.add_argument(
        "--pull-oracle-address",
        dest="pull_oracle_address",
        type=str,
        help="Address of the pull oracle contract (target=contract)",
        default=os.environ.get("PULL_ORACLE_ADDRESS"),
    )

    parser.add_argument(
        "--signature-verifier-address",
        dest="signature_verifier_address",
        type=str,
        help="Address of the committee signature verifier contract (target=local)",
        default=os.environ.get("SIGNATURE_VERIFIER_ADDRESS"),
    )

    parser.add_argument(
        "--chain-type",
        dest="chain_type",
        type=str,
        help="Proof encoding requested from the pull service (default: evm)",
        default=os.environ.get("CHAIN_TYPE") or "evm",
    )

    parser.add_argument(
        "--oracles",
        type=str,
        help="Comma-separated pair schedules index=resolution_ms (e.g., 0=60000,21=300000)",
        default=os.environ.get("ORACLES"),
    )

    parser.add_argument(
        "--block-sample-size",
        dest="block_sample_size",
        type=int,
        help="Number of blocks sampled for the average block time (default: 100)",
        default=int(os.environ.get("BLOCK_SAMPLE_SIZE") or "100"),
    )

    parser.add_argument(
        "--delay-multiplier",
        dest="delay_multiplier",
        type=float,
        help="Minimum wait before submitting, in average blocks (default: 1.0)",
        default=float(os.environ.get("DELAY_MULTIPLIER") or "1.0"),
    )

    parser.add_argument(
        "--poll-period",
        dest="poll_period",
        type=float,
        help="Seconds between relay cycles (default: 1.0)",
        default=float(os.environ.get("POLL_PERIOD") or "1.0"),
    )

    parser.add_argument(
        "--time-delta-allowance",
        dest="time_delta_allowance",
        type=int,
        help=f"Future window for rounds in ms, target=local (default: {DEFAULT_TIME_DELTA_ALLOWANCE})",
        default=int(os.environ.get("TIME_DELTA_ALLOWANCE") or DEFAULT_TIME_DELTA_ALLOWANCE),
    )

    parser.add_argument(
        "--root-cache-capacity",
        dest="root_cache_capacity",
        type=int,
        help=f"Verified roots remembered, target=local (default: {DEFAULT_ROOT_CACHE_CAPACITY})",
        default=int(os.environ.get("ROOT_CACHE_CAPACITY") or DEFAULT_ROOT_CACHE_CAPACITY),
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Validate arguments
    try:
        schedules = parse_oracles(args.oracles)
    except ValueError as e:
        parser.error(str(e))

    if not schedules:
        parser.error("At least one pair schedule must be specified (--oracles)")

    if args.block_sample_size < 1:
        parser.error("--block-sample-size must be at least 1")

    if args.delay_multiplier < 0:
        parser.error("--delay-multiplier must not be negative")

    if args.poll_period <= 0:
        parser.error("--poll-period must be positive")

    if args.root_cache_capacity < 1:
        parser.error("--root-cache-capacity must be at least 1")

    if args.target == "contract" and not args.pull_oracle_address:
        parser.error("--pull-oracle-address is required with --target contract")

    if args.target == "local" and not args.signature_verifier_address:
        parser.error("--signature-verifier-address is required with --target local")

    private_key = os.environ.get("PRIVATE_KEY")
    if args.target == "contract" and not private_key:
        parser.error("PRIVATE_KEY must be set to submit transactions")

    # Log configuration
    logger.info("=" * 60)
    logger.info("Pull Oracle Relayer")
    logger.info("=" * 60)
    logger.info(f"Chain RPC:         {args.chain_rpc_url}")
    logger.info(f"Pull Service:      {args.pull_service_url}")
    logger.info(f"Target:            {args.target}")
    if args.target == "contract":
        logger.info(f"Pull Oracle:       {args.pull_oracle_address}")
    else:
        logger.info(f"Sig Verifier:      {args.signature_verifier_address}")
        logger.info(f"Delta Allowance:   {args.time_delta_allowance}ms")
        logger.info(f"Root Cache:        {args.root_cache_capacity}")
    logger.info(f"Chain Type:        {args.chain_type}")
    logger.info(
        "Pairs:             "
        + ", ".join(f"{s.price_index}@{s.resolution}ms" for s in schedules)
    )
    logger.info(f"Block Sample:      {args.block_sample_size}")
    logger.info(f"Delay Multiplier:  {args.delay_multiplier}")
    logger.info(f"Poll Period:       {args.poll_period}s")
    logger.info("=" * 60)

    try:
        contract_utility = ContractUtility(args.chain_rpc_url, private_key=private_key)
        relayer = ProofRelayer(
            client=PullServiceClient(args.pull_service_url),
            submitter=build_submitter(args, contract_utility),
            schedules=schedules,
            clock_fn=lambda: contract_utility.sample_block_time(args.block_sample_size),
            chain_type=args.chain_type,
            delay_multiplier=args.delay_multiplier,
            poll_period=args.poll_period,
        )
        asyncio.run(relayer.run())
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
