"""Seal waiter - polls a submitted transaction until it is sealed."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from casino_treasury.errors import NetworkError
from casino_treasury.flow.retry import RetryPolicy
from casino_treasury.models.transactions import (
    LedgerStatus,
    PendingTransaction,
    SealedTransactionResult,
    SealStatus,
    TransactionStatusView,
)

log = logging.getLogger(__name__)

EXPIRED_MESSAGE = "transaction expired before inclusion"


class PollingSealWaiter:
    """Waits for a transaction to reach an irreversible state.

    Only a ``Sealed`` ledger status is terminal. Reaching the deadline is
    reported as ``SealStatus.EXPIRED``, never raised, and the transaction id
    is kept so the caller can reconcile later.
    """

    def __init__(
        self,
        retry: RetryPolicy,
        timeout: float = 30.0,
        poll_interval: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._retry = retry
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._sleep = sleep

    async def await_seal(
        self,
        pending: PendingTransaction,
        timeout: float | None = None,
    ) -> SealedTransactionResult:
        tx_id = pending.transaction_id
        budget = self._timeout if timeout is None else timeout
        deadline = time.monotonic() + budget
        last_seen = LedgerStatus.UNKNOWN

        while True:
            try:
                view = await self._retry.call(
                    lambda c: c.get_transaction(tx_id), op="get_transaction",
                )
            except NetworkError as exc:
                log.warning("Polling tx %s failed: %s", tx_id[:16], exc)
            else:
                if view.status != last_seen:
                    log.debug("tx %s status %s", tx_id[:16], view.status.value)
                    last_seen = view.status
                if view.is_terminal:
                    return await self._terminal(view)

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            await self._sleep(min(self._poll_interval, remaining))

        log.warning(
            "tx %s not sealed within %.1fs (last status %s)",
            tx_id[:16], budget, last_seen.value,
        )
        return SealedTransactionResult(transaction_id=tx_id, status=SealStatus.EXPIRED)

    async def _terminal(self, view: TransactionStatusView) -> SealedTransactionResult:
        if view.status is LedgerStatus.EXPIRED:
            log.warning("tx %s expired before inclusion", view.transaction_id[:16])
            return SealedTransactionResult(
                transaction_id=view.transaction_id,
                status=SealStatus.SEALED_FAILED,
                block_id=view.block_id,
                error_message=EXPIRED_MESSAGE,
            )

        failed = view.status_code != 0 or bool(view.error_message)
        height = await self._block_height(view.block_id)
        result = SealedTransactionResult(
            transaction_id=view.transaction_id,
            status=SealStatus.SEALED_FAILED if failed else SealStatus.SEALED_OK,
            block_id=view.block_id,
            block_height=height,
            events=view.events,
            error_message=(
                view.error_message or f"execution failed with status code {view.status_code}"
            ) if failed else None,
            raw_output=view.raw_output,
        )
        if failed:
            log.warning(
                "tx %s sealed with error (code %d): %s",
                view.transaction_id[:16], view.status_code, view.error_message,
            )
        else:
            log.info("tx %s sealed in block %s", view.transaction_id[:16], height)
        return result

    async def _block_height(self, block_id: str | None) -> int | None:
        if not block_id:
            return None
        try:
            header = await self._retry.call(lambda c: c.get_block(block_id), op="get_block")
        except Exception as exc:
            log.debug("Block height lookup for %s failed: %s", block_id[:16], exc)
            return None
        return header.height
