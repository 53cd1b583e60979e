"""
HTTP data provider speaking a small JSON REST contract.

Endpoints, relative to the provider's base URL::

    GET /headers?from=<height>&limit=<count>
        {"headers": [{"height": 1, "raw": "<160 hex chars>"}, ...]}

    GET /address/<address>/transactions?from=<height>
        {"transactions": [{"txid": "...", "blockHeight": 1, "blockHash": "..."}, ...]}

Hashes are written in display order, the way block explorers print them.

Status codes map onto the provider error contract:

- 410 Gone, 416 Range Not Satisfiable: history not retained (failover)
- 429, 5xx, timeouts and connection errors: transient (retry)
- any other 4xx, or a malformed body: irrecoverable
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ecash_spec.exceptions import (
    ProviderFailedError,
    ProviderRangeUnavailableError,
    ProviderTransientError,
)
from ecash_spec.subspecs.containers import Header, ProviderId, TransactionItem
from ecash_spec.types import Bytes32, CamelModel, Uint64

from .config import REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

HEADERS_ENDPOINT = "/headers"
"""Header range endpoint."""

TRANSACTIONS_ENDPOINT = "/address/{address}/transactions"
"""Per-address transaction history endpoint."""

RANGE_UNAVAILABLE_STATUSES = frozenset({410, 416})
"""Statuses meaning the provider no longer retains the requested history."""

TRANSIENT_STATUSES = frozenset({408, 429})
"""Client-range statuses that are worth retrying."""


class RawHeader(CamelModel):
    """One header as served by the provider."""

    height: int
    raw: str


class HeadersResponse(CamelModel):
    """Body of a header range response."""

    headers: list[RawHeader]


class TransactionRecord(CamelModel):
    """One transaction as served by the provider."""

    txid: str
    block_height: int
    block_hash: str


class TransactionsResponse(CamelModel):
    """Body of a transaction history response."""

    transactions: list[TransactionRecord]


class HttpDataProvider:
    """
    DataProvider backed by an HTTP JSON API.

    The client is created lazily and reused across requests. Call `close`
    (or use the provider as an async context manager) to release it.
    """

    def __init__(
        self,
        base_url: str,
        provider_id: ProviderId,
        *,
        timeout: float = REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the provider.

        Args:
            base_url: Root URL of the API (e.g., "https://chronik.example.org").
            provider_id: Identity recorded in the sync cursor.
            timeout: Per-request timeout in seconds.
            transport: Optional transport override, used by tests.
        """
        self.base_url = base_url.rstrip("/")
        self.provider_id = provider_id
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpDataProvider:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def _get_json(self, path: str, params: dict[str, Any], from_height: int) -> Any:
        """Issue a GET request and classify every failure by the error contract."""
        name = self.provider_id.value
        try:
            response = await self._get_client().get(path, params=params)
        except httpx.TimeoutException as exc:
            raise ProviderTransientError(f"Request to {path} timed out", provider=name) from exc
        except httpx.RequestError as exc:
            raise ProviderTransientError(
                f"Network error while requesting {path}: {exc}", provider=name
            ) from exc

        status = response.status_code
        if status in RANGE_UNAVAILABLE_STATUSES:
            raise ProviderRangeUnavailableError(
                f"History from height {from_height} is not retained",
                provider=name,
                from_height=from_height,
            )
        if status in TRANSIENT_STATUSES or status >= 500:
            raise ProviderTransientError(f"HTTP {status} from {path}", provider=name)
        if status >= 400:
            raise ProviderFailedError(
                f"HTTP {status} from {path}: {response.text[:200]}", provider=name
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ProviderFailedError(f"Response from {path} is not JSON", provider=name) from exc

    async def fetch_headers(self, from_height: int, limit: int) -> list[Header]:
        """Fetch up to `limit` consecutive headers starting at `from_height`."""
        payload = await self._get_json(
            HEADERS_ENDPOINT, {"from": from_height, "limit": limit}, from_height
        )
        try:
            body = HeadersResponse.model_validate(payload)
            headers = [
                Header.deserialize(bytes.fromhex(item.raw), item.height) for item in body.headers
            ]
        except (ValidationError, ValueError, OverflowError) as exc:
            raise ProviderFailedError(
                f"Malformed header response: {exc}", provider=self.provider_id.value
            ) from exc

        for offset, header in enumerate(headers):
            if int(header.height) != from_height + offset:
                raise ProviderFailedError(
                    f"Header response is not contiguous from height {from_height}",
                    provider=self.provider_id.value,
                )
        if len(headers) > limit:
            raise ProviderFailedError(
                f"Asked for {limit} headers, received {len(headers)}",
                provider=self.provider_id.value,
            )

        logger.debug("Fetched %s headers from %s", len(headers), self.provider_id.value)
        return headers

    async def fetch_transactions(self, address: str, from_height: int) -> list[TransactionItem]:
        """Fetch transactions touching `address` confirmed at or above `from_height`."""
        path = TRANSACTIONS_ENDPOINT.format(address=address)
        payload = await self._get_json(path, {"from": from_height}, from_height)
        try:
            body = TransactionsResponse.model_validate(payload)
            items = [
                TransactionItem(
                    txid=Bytes32.from_display_hex(record.txid),
                    block_height=Uint64(record.block_height),
                    block_hash=Bytes32.from_display_hex(record.block_hash),
                )
                for record in body.transactions
            ]
        except (ValidationError, ValueError, OverflowError) as exc:
            raise ProviderFailedError(
                f"Malformed transaction response: {exc}", provider=self.provider_id.value
            ) from exc
        return sorted(items, key=lambda item: int(item.block_height))
