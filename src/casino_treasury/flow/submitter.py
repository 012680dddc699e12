"""Treasury transaction submitter - templates, signing and submission."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from casino_treasury.errors import (
    AmbiguousSubmission,
    ConfigurationError,
    NetworkError,
    TransactionRejected,
)
from casino_treasury.flow.retry import RetryPolicy
from casino_treasury.flow.signer import SignedTransaction, TreasurySigner
from casino_treasury.flow.templates import get_template
from casino_treasury.interfaces.ledger import LedgerClient
from casino_treasury.models.transactions import PendingTransaction, TransactionRequest

log = logging.getLogger(__name__)


class FlowTransactionSubmitter:
    """Builds, signs and submits templated transactions for the treasury.

    Submissions from one signing identity are serialized: the sequence
    number fetch, reference block fetch, signing and submission happen
    under a per-signer lock so two requests never race for the same
    sequence number. Seal waiting happens outside the lock.

    The access node reports the sequence number of sealed state only, so
    the submitter remembers the next number it handed out per signing key
    and uses whichever is higher. A rejected submission drops that memory
    and the next one starts again from the ledger.
    """

    def __init__(
        self,
        retry: RetryPolicy,
        signer: TreasurySigner | None,
        contract_addresses: Mapping[str, str],
        gas_limit: int = 9999,
    ) -> None:
        self._retry = retry
        self._signer = signer
        self._addresses = dict(contract_addresses)
        self._gas_limit = gas_limit
        self._locks: dict[str, asyncio.Lock] = {}
        self._next_seq: dict[tuple[str, int], int] = {}

    @property
    def signer(self) -> TreasurySigner | None:
        return self._signer

    def _lock_for(self, address: str) -> asyncio.Lock:
        lock = self._locks.get(address)
        if lock is None:
            lock = self._locks[address] = asyncio.Lock()
        return lock

    def prepare(
        self,
        operation: str,
        args: Mapping[str, Any],
        signer: TreasurySigner | None = None,
    ) -> TransactionRequest:
        """Validate arguments and render the script. No network access."""
        template = get_template(operation)
        arguments = template.bind(args)
        script = template.render(self._addresses)
        signer = signer or self._signer
        return TransactionRequest(
            operation=operation,
            arguments=arguments,
            signer=signer.address if signer else "",
            script=script,
            template_version=template.version,
        )

    async def submit(
        self,
        operation: str,
        args: Mapping[str, Any],
        signer: TreasurySigner | None = None,
    ) -> PendingTransaction:
        request = self.prepare(operation, args, signer)
        signer = signer or self._signer
        if signer is None:
            raise ConfigurationError("no treasury signing key configured")

        encoded_args = get_template(operation).encode_arguments(request.arguments)
        slot = (signer.address, signer.key_index)
        attempt_state: dict[str, SignedTransaction] = {}

        async def _attempt(client: LedgerClient) -> str:
            try:
                account = await client.get_account(signer.address)
                block = await client.get_latest_block()
            except NetworkError as exc:
                # Nothing state-changing has been sent yet.
                raise NetworkError(
                    f"preparing {operation}: {exc.message}",
                    request_sent=False,
                    endpoint=exc.endpoint,
                ) from exc

            key = account.key(signer.key_index)
            if key is None or key.revoked:
                raise ConfigurationError(
                    f"key {signer.key_index} of {signer.address} is missing or revoked"
                )
            seq = max(key.sequence_number, self._next_seq.get(slot, 0))

            signed = signer.sign_transaction(
                request.script,
                encoded_args,
                reference_block_id=block.id,
                sequence_number=seq,
                gas_limit=self._gas_limit,
            )
            attempt_state["signed"] = signed
            return await client.submit_transaction(signed.body)

        async with self._lock_for(signer.address):
            try:
                tx_id = await self._retry.call(_attempt, idempotent=False, op=operation)
            except AmbiguousSubmission as exc:
                signed = attempt_state.get("signed")
                if signed:
                    # The transaction may still land.
                    self._next_seq[slot] = signed.sequence_number + 1
                local_id = signed.transaction_id if signed else None
                log.error(
                    "%s submission ambiguous; reconcile tx %s before retrying",
                    operation, (local_id or "?")[:16],
                )
                raise AmbiguousSubmission(
                    exc.message, transaction_id=local_id, endpoint=exc.endpoint,
                ) from exc
            except TransactionRejected as exc:
                signed = attempt_state.get("signed")
                self._next_seq.pop(slot, None)
                raise TransactionRejected(
                    exc.message,
                    transaction_id=signed.transaction_id if signed else None,
                    error_message=exc.error_message,
                ) from exc
            signed = attempt_state["signed"]
            self._next_seq[slot] = signed.sequence_number + 1

        if tx_id and tx_id != signed.transaction_id:
            log.warning(
                "Access node returned tx id %s, expected %s",
                tx_id[:16], signed.transaction_id[:16],
            )
        tx_id = tx_id or signed.transaction_id

        log.info(
            "Submitted %s v%d (tx=%s, seq=%d)",
            operation, request.template_version, tx_id[:16], signed.sequence_number,
        )
        return PendingTransaction(
            transaction_id=tx_id,
            operation=operation,
            submitted_at=datetime.now(timezone.utc).isoformat(),
        )
