"""PullServiceClient: REST client for the proof-generation service.

The service signs nothing itself: it returns committee-signed proofs for the
requested pair indexes, encoded for the requested chain type.

.. code-block:: python

    async with PullServiceClient("https://rpc-testnet-dora.example") as client:
        response = await client.get_proof([0, 21], chain_type="evm")
        batch = decode_oracle_proof(response.proof_bytes)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class PullServiceError(Exception):
    """Raised when the pull service cannot be reached or answers garbage."""

    pass


class PullServiceHTTPError(PullServiceError):
    """Raised when the pull service answers with a non-2xx status.

    :ivar status_code: HTTP status code from the failed request.
    """

    def __init__(self, status_code: int, message: str):
        """Initialize the HTTP error.

        :param status_code: HTTP status code.
        :param message: Error message from response.
        """
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {message}")


@dataclass
class PullResponse:
    """Proof returned by ``/get_proof``.

    :ivar pair_indexes: Pair indexes covered by the proof.
    :ivar proof_bytes: ABI encoded oracle proof.
    """

    pair_indexes: list[int]
    proof_bytes: bytes

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> PullResponse:
        """Parse a ``/get_proof`` JSON body.

        ``proof_bytes`` may be a hex string (with or without ``0x``) or a list
        of byte values.

        :param data: Decoded JSON body.
        :returns: Parsed response.
        :raises PullServiceError: If the body is malformed.
        """
        try:
            raw = data["proof_bytes"]
            if isinstance(raw, str):
                proof_bytes = bytes.fromhex(raw[2:] if raw.startswith("0x") else raw)
            else:
                proof_bytes = bytes(raw)
            pair_indexes = [int(i) for i in data.get("pair_indexes", [])]
        except (KeyError, ValueError, TypeError) as e:
            raise PullServiceError(f"Malformed get_proof response: {e}") from e
        return cls(pair_indexes=pair_indexes, proof_bytes=proof_bytes)


class PullServiceClient:
    """Async client of the pull service REST API.

    :cvar DEFAULT_TIMEOUT: Default HTTP request timeout in seconds.
    :ivar base_url: Service base URL.
    :ivar timeout: Request timeout in seconds.
    """

    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        base_url: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        :param base_url: Service base URL (e.g., "https://rpc-testnet-dora.example").
        :param timeout: Request timeout in seconds (default: 10).
        :param transport: Optional httpx transport, mainly for tests.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(30.0, connect=10.0),
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> PullServiceClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if not self._client.is_closed:
            await self._client.aclose()

    async def get_proof(self, pair_indexes: list[int], chain_type: str = "evm") -> PullResponse:
        """Request a proof for a set of pairs.

        :param pair_indexes: Pair indexes to include.
        :param chain_type: Target chain encoding (evm, sui, aptos, radix, ...).
        :returns: The proof response.
        :raises PullServiceHTTPError: On non-2xx response.
        :raises PullServiceError: On network/timeout errors or malformed body.
        """
        url = f"{self.base_url}/get_proof"
        payload = {"pair_indexes": list(pair_indexes), "chain_type": chain_type}

        try:
            response = await self._client.post(url, json=payload, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise PullServiceError(f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            raise PullServiceError(f"Request failed: {e}") from e

        if not response.is_success:
            logger.debug(
                f"HTTP POST {url} failed with status {response.status_code}: "
                f"{response.text[:200]}"
            )
            raise PullServiceHTTPError(response.status_code, response.text[:200])

        try:
            data = response.json()
        except ValueError as e:
            raise PullServiceError(f"Invalid JSON from pull service: {e}") from e
        return PullResponse.from_json(data)
