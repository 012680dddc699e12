"""SealWaiter protocol - awaits a terminal ledger state."""

from __future__ import annotations

from typing import Protocol

from casino_treasury.models.transactions import (
    PendingTransaction,
    SealedTransactionResult,
)


class SealWaiter(Protocol):
    async def await_seal(
        self,
        pending: PendingTransaction,
        timeout: float | None = None,
    ) -> SealedTransactionResult:
        """Block until sealed or the timeout elapses (status EXPIRED, no raise)."""
        ...
