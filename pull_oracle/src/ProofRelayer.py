"""ProofRelayer: Fetches proofs for due pairs and submits them for verification.

Each cycle:
    1. Sample the current chain time and average block time
    2. Pick the pair indexes whose resolution elapsed since their last update
    3. Request a proof for them from the pull service
    4. Wait until the newest round in the proof falls inside the target's
       future window (at least ``delay_multiplier`` average blocks)
    5. Submit the proof and mark the pairs as updated

Schedules are sorted by resolution, so the scan stops at the first pair that
is not due yet: pairs with a longer resolution cannot be due before it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable

from .CommitteeFeed import OracleProofBatch
from .errors import OracleProofError
from .OracleProofCodec import decode_oracle_proof
from .ProofSubmitter import ProofSubmitter
from .PullServiceClient import PullServiceClient, PullServiceError

logger = logging.getLogger(__name__)


@dataclass
class OracleSchedule:
    """Update schedule of one pair.

    :ivar price_index: Pair index requested from the pull service.
    :ivar resolution: Minimum milliseconds between two updates.
    :ivar last_updated: Chain time (ms) of the last successful submission.
    """

    price_index: int
    resolution: int
    last_updated: int = 0


class ProofRelayer:
    """Polling loop relaying pull-service proofs to a submission target.

    :ivar client: Pull service client.
    :ivar submitter: Target receiving the proofs.
    :ivar schedules: Pair schedules sorted by resolution.
    :ivar chain_type: Chain encoding requested from the pull service.
    :ivar delay_multiplier: Minimum wait before submitting, in average blocks.
    :ivar poll_period: Seconds between two cycles.
    """

    def __init__(
        self,
        client: PullServiceClient,
        submitter: ProofSubmitter,
        schedules: list[OracleSchedule],
        clock_fn: Callable[[], tuple[int, float]],
        chain_type: str = "evm",
        delay_multiplier: float = 1.0,
        poll_period: float = 1.0,
    ) -> None:
        """Initialize the relayer.

        :param client: Pull service client.
        :param submitter: Target receiving the proofs.
        :param schedules: Pair schedules.
        :param clock_fn: Callable returning (current time ms, average block time ms).
        :param chain_type: Chain encoding requested (default: "evm").
        :param delay_multiplier: Minimum wait before submitting, in average
            blocks (default: 1.0).
        :param poll_period: Seconds between cycles (default: 1.0).
        :raises ValueError: If no schedules are given.
        """
        if not schedules:
            raise ValueError("At least one pair schedule must be specified")

        self.client = client
        self.submitter = submitter
        self.schedules = sorted(schedules, key=lambda s: s.resolution)
        self.clock_fn = clock_fn
        self.chain_type = chain_type
        self.delay_multiplier = delay_multiplier
        self.poll_period = poll_period

    def filter_pair_indexes_to_update(self, current_time: int) -> list[int]:
        """Get the pair indexes due for an update.

        :param current_time: Current chain time in milliseconds.
        :returns: Due pair indexes, shortest resolution first.
        """
        due: list[int] = []
        for schedule in self.schedules:
            if current_time - schedule.last_updated < schedule.resolution:
                break
            due.append(schedule.price_index)
        return due

    def mark_updated(self, pair_indexes: list[int], current_time: int) -> None:
        """Record a successful submission for the given pair indexes."""
        indexes = set(pair_indexes)
        for schedule in self.schedules:
            if schedule.price_index in indexes:
                schedule.last_updated = current_time

    def compute_delay(
        self,
        batch: OracleProofBatch,
        current_time: int,
        average_block_time: float,
        time_delta_allowance: int,
    ) -> float:
        """Compute how long to wait before submitting a proof.

        :param batch: Decoded proof.
        :param current_time: Current chain time in milliseconds.
        :param average_block_time: Average block time in milliseconds.
        :param time_delta_allowance: Target's future window in milliseconds.
        :returns: Delay in milliseconds.
        """
        delay = average_block_time * self.delay_multiplier
        feeds = batch.feeds()
        if not feeds:
            return delay

        max_future_time = current_time + time_delta_allowance
        newest_round = max(feed.round for feed in feeds)
        if newest_round > max_future_time:
            delay = max(delay, newest_round - max_future_time)
        return delay

    async def relay_once(self) -> Any:
        """Run one fetch and submit cycle.

        :returns: The submission result, or None if nothing was submitted.
        """
        current_time, average_block_time = self.clock_fn()
        pair_indexes = self.filter_pair_indexes_to_update(current_time)
        if not pair_indexes:
            logger.debug("No pair due for update")
            return None

        logger.info(f"Requesting proof for pair indexes {pair_indexes}")
        try:
            response = await self.client.get_proof(pair_indexes, self.chain_type)
            batch = decode_oracle_proof(response.proof_bytes)
        except (PullServiceError, OracleProofError) as e:
            logger.warning(f"Failed to fetch proof for {pair_indexes}: {e}")
            return None

        if batch.feed_count == 0:
            logger.info("No proof data found")
            return None

        for feed in batch.feeds():
            logger.debug(
                f"Pair {feed.pair}: price={feed.price}, decimals={feed.decimals}, "
                f"timestamp={feed.timestamp}, round={feed.round}"
            )

        try:
            allowance = self.submitter.time_delta_allowance()
            delay = self.compute_delay(batch, current_time, average_block_time, allowance)
            logger.info(f"Waiting {delay:.0f}ms for the proof to become valid")
            await asyncio.sleep(delay / 1000)

            result = self.submitter.submit(response.proof_bytes)
        except Exception as e:
            logger.error(f"Failed to submit proof for {pair_indexes}: {e}")
            return None

        self.mark_updated(pair_indexes, current_time)
        logger.info(f"Proof for {pair_indexes} submitted. Result: {result}")
        return result

    async def run(self) -> None:
        """Relay proofs until cancelled."""
        logger.info(
            f"Starting relay loop for pair indexes "
            f"{[s.price_index for s in self.schedules]}"
        )
        try:
            while True:
                await self.relay_once()
                await asyncio.sleep(self.poll_period)
        finally:
            await self.client.aclose()
