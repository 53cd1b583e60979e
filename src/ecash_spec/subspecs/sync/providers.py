"""
Remote data provider interface.

A provider serves headers and wallet transactions from some remote index.
Providers differ in how much history they retain and how reliable they are;
`FailoverTransactionProvider` hides those differences from the sync service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ecash_spec.subspecs.containers import Header, ProviderId, TransactionItem


class DataProvider(Protocol):
    """
    Protocol for remote history providers.

    Error contract
    --------------
    - `ProviderRangeUnavailableError`: the provider does not retain the range.
    - `ProviderTransientError`: retry later, the same request may succeed.
    - `ProviderFailedError`: the provider cannot serve this request, ever.
    """

    provider_id: ProviderId
    """Identity recorded in the sync cursor for data this provider produced."""

    async def fetch_headers(self, from_height: int, limit: int) -> list[Header]:
        """
        Fetch up to `limit` consecutive headers starting at `from_height`.

        Returns:
            Headers in ascending height order. Empty once the tip is passed.
        """
        ...

    async def fetch_transactions(self, address: str, from_height: int) -> list[TransactionItem]:
        """
        Fetch transactions touching `address` confirmed at or above `from_height`.

        Returns:
            Transactions in ascending height order.
        """
        ...
