"""LedgerClient protocol - capability surface over one Flow access node."""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from casino_treasury.models.transactions import (
    AccountInfo,
    BlockHeader,
    TransactionStatusView,
)


class LedgerClient(Protocol):
    """Thin wrapper over a ledger access endpoint.

    Implementations raise NetworkError for transport failures and never
    retry on their own; RetryPolicy owns retries and failover.
    """

    endpoint: str

    async def submit_transaction(self, signed: dict[str, Any]) -> str:
        """Send a signed transaction body. Returns the transaction id."""
        ...

    async def get_transaction(self, transaction_id: str) -> TransactionStatusView:
        """Current status, block id, events and error message of a transaction."""
        ...

    async def query(self, script: str, args: Sequence[dict[str, Any]] = ()) -> Any:
        """Run a read-only script against the latest sealed state."""
        ...

    async def get_current_block_height(self) -> int:
        """Height of the latest sealed block."""
        ...

    async def get_latest_block(self) -> BlockHeader:
        """Latest sealed block header (reference block for new transactions)."""
        ...

    async def get_block(self, block_id: str) -> BlockHeader:
        """Header of a specific block."""
        ...

    async def get_account(self, address: str) -> AccountInfo:
        """Account balance and keys with their current sequence numbers."""
        ...

    async def close(self) -> None:
        ...
