"""TransactionSubmitter protocol - builds, signs and submits templated transactions."""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from casino_treasury.models.transactions import PendingTransaction


class TransactionSubmitter(Protocol):
    """Submits one state-changing transaction signed by the treasury."""

    async def submit(
        self,
        operation: str,
        args: Mapping[str, Any],
        signer: Any | None = None,
    ) -> PendingTransaction:
        """Validate args against the operation's template and submit it."""
        ...
