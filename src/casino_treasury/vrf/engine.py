"""Commit/reveal randomness engine driving the FlowVRF contract."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Mapping

from casino_treasury.errors import (
    CommitFailed,
    RandomUnavailable,
    RevealFailed,
    TransactionFailure,
    TransactionTimeout,
)
from casino_treasury.flow import cadence
from casino_treasury.flow.retry import RetryPolicy
from casino_treasury.flow.templates import RANDOM_VALUE_SCRIPT, resolve_imports
from casino_treasury.interfaces.submitter import TransactionSubmitter
from casino_treasury.interfaces.waiter import SealWaiter
from casino_treasury.models.config import CommitmentMode
from casino_treasury.models.outcomes import EntropyRequest
from casino_treasury.models.transactions import SealedTransactionResult, SealStatus
from casino_treasury.vrf.commitment import (
    commitment_hash,
    new_request_id,
    new_salt,
    new_seed,
)

log = logging.getLogger(__name__)


class CommitRevealEngine:
    """Produces verifiable random values in two ledger phases.

    1. Commit: publish a commitment to a secret seed and wait for it to seal.
    2. Wait until the chain has advanced ``reveal_delay_blocks`` past the
       commit block.
    3. Reveal: publish the seed, wait for it to seal, then read the value
       the contract derived.

    A phase that fails or does not seal in time aborts the round; no random
    value is ever returned without both phases sealed successfully.
    """

    def __init__(
        self,
        submitter: TransactionSubmitter,
        waiter: SealWaiter,
        retry: RetryPolicy,
        contract_addresses: Mapping[str, str],
        reveal_delay_blocks: int = 1,
        seed_length: int = 32,
        commitment: CommitmentMode = CommitmentMode.HASH,
        block_poll_interval: float = 1.0,
        delay_timeout: float = 60.0,
        request_prefix: str = "api",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._submitter = submitter
        self._waiter = waiter
        self._retry = retry
        self._addresses = dict(contract_addresses)
        self._reveal_delay = max(0, reveal_delay_blocks)
        self._seed_length = seed_length
        self._mode = CommitmentMode(commitment)
        self._poll_interval = block_poll_interval
        self._delay_timeout = delay_timeout
        self._prefix = request_prefix
        self._sleep = sleep

    @property
    def mode(self) -> CommitmentMode:
        return self._mode

    async def generate_random(
        self,
        request_id: str | None = None,
        seed: str | None = None,
        game_type: str | None = None,
    ) -> EntropyRequest:
        request_id = request_id or new_request_id(self._prefix, game_type)
        seed = seed or new_seed(self._seed_length)

        if self._mode is CommitmentMode.HASH:
            salt = new_salt()
            commitment = commitment_hash(salt, request_id, seed)
            commit_op, commit_args = "vrf_commit", {"requestId": request_id, "commitment": commitment}
            reveal_op = "vrf_reveal"
            reveal_args = {"requestId": request_id, "randomSeed": seed, "salt": salt}
        else:
            commitment = seed
            commit_op, commit_args = "vrf_commit_raw", {"requestId": request_id, "randomSeed": seed}
            reveal_op, reveal_args = "vrf_reveal_raw", {"requestId": request_id, "randomSeed": seed}

        log.info("VRF %s: committing (%s mode)", request_id, self._mode.value)
        pending = await self._submitter.submit(commit_op, commit_args)
        commit = await self._waiter.await_seal(pending)
        self._require_sealed(commit, "commit", CommitFailed)
        log.info("VRF %s: commit sealed (tx=%s)", request_id, commit.transaction_id[:16])

        await self._wait_for_reveal_height(commit)

        pending = await self._submitter.submit(reveal_op, reveal_args)
        reveal = await self._waiter.await_seal(pending)
        self._require_sealed(reveal, "reveal", RevealFailed)
        log.info("VRF %s: reveal sealed (tx=%s)", request_id, reveal.transaction_id[:16])

        value = await self._read_random(request_id)
        return EntropyRequest(
            request_id=request_id,
            commit_tx=commit.transaction_id,
            reveal_tx=reveal.transaction_id,
            random_value=value,
            commit_status=commit.status,
            reveal_status=reveal.status,
            commitment=commitment,
            commit_block_id=commit.block_id,
            reveal_block_id=reveal.block_id,
            reveal_block_height=reveal.block_height,
        )

    @staticmethod
    def _require_sealed(
        sealed: SealedTransactionResult,
        phase: str,
        failure: type[TransactionFailure],
    ) -> None:
        if sealed.status is SealStatus.SEALED_OK:
            return
        if sealed.status is SealStatus.EXPIRED:
            raise TransactionTimeout(
                f"{phase} transaction not sealed in time",
                transaction_id=sealed.transaction_id,
                phase=phase,
            )
        raise failure(
            f"{phase} transaction failed: {sealed.error_message}",
            transaction_id=sealed.transaction_id,
            error_message=sealed.error_message,
        )

    async def _current_height(self) -> int:
        return await self._retry.call(
            lambda c: c.get_current_block_height(), op="get_current_block_height",
        )

    async def _wait_for_reveal_height(self, commit: SealedTransactionResult) -> None:
        if self._reveal_delay == 0:
            return
        base = commit.block_height
        if base is None:
            base = await self._current_height()
        target = base + self._reveal_delay
        deadline = time.monotonic() + self._delay_timeout

        while True:
            height = await self._current_height()
            if height >= target:
                log.debug("Reveal delay satisfied at height %d (target %d)", height, target)
                return
            if time.monotonic() >= deadline:
                raise TransactionTimeout(
                    f"chain did not reach height {target} (at {height})",
                    transaction_id=commit.transaction_id,
                    phase="reveal_delay",
                )
            await self._sleep(self._poll_interval)

    async def _read_random(self, request_id: str) -> str:
        script = resolve_imports(RANDOM_VALUE_SCRIPT, self._addresses)
        arg = cadence.encode(request_id, "String")
        value = await self._retry.call(
            lambda c: c.query(script, [arg]), op="getRandomValue",
        )
        if value is None or value == "":
            raise RandomUnavailable(
                f"no random value for request {request_id}", request_id=request_id,
            )
        return str(value)
