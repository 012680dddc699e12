"""Casino gateway - the request/response contracts of the treasury endpoints.

Each operation takes the decoded JSON body, validates it completely before
touching the ledger, and returns a JSON-serializable dict. Failures raise
CasinoError subclasses; ``status_code`` and ``to_dict()`` give the HTTP
answer.
"""

from __future__ import annotations

import logging
import re
import secrets
import time
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from casino_treasury.errors import ValidationError
from casino_treasury.flow import cadence
from casino_treasury.flow.templates import ADDRESS_RE, get_template
from casino_treasury.interfaces import (
    BalanceGuard,
    EntropyEngine,
    ResultExtractor,
    SealWaiter,
    TransactionSubmitter,
)
from casino_treasury.models.config import LimitsConfig
from casino_treasury.models.outcomes import GameType
from casino_treasury.models.responses import (
    DepositResponse,
    EntropyResponse,
    GameVRFResponse,
    WithdrawResponse,
)
from casino_treasury.models.transactions import PendingTransaction, SealStatus

log = logging.getLogger(__name__)

_TX_ID_RE = re.compile(r"^(0x)?[a-fA-F0-9]{64}$")
_GAME_TAG_RE = re.compile(r"^[A-Za-z0-9_-]{1,32}$")

_WITHDRAW_STATUS = {
    SealStatus.SEALED_OK: "sealed",
    SealStatus.SEALED_FAILED: "failed",
    SealStatus.EXPIRED: "expired",
}
_DEPOSIT_STATUS = {
    SealStatus.SEALED_OK: "confirmed",
    SealStatus.SEALED_FAILED: "failed",
    SealStatus.EXPIRED: "pending",
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── Input validation ───────────────────────────────────────


def parse_address(body: Mapping[str, Any], key: str = "userAddress") -> str:
    value = body.get(key)
    if not value:
        raise ValidationError(f"missing required field: {key}")
    addr = str(value).strip()
    if not ADDRESS_RE.match(addr):
        raise ValidationError(f"invalid Flow address format: {addr}")
    return addr.lower()


def parse_amount(body: Mapping[str, Any], key: str = "amount") -> Decimal:
    value = body.get(key)
    if value is None or value == "":
        raise ValidationError(f"missing required field: {key}")
    if isinstance(value, bool):
        raise ValidationError(f"invalid {key}: {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"invalid {key}: {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(f"invalid {key}: {value!r}")
    if amount > cadence.UFIX64_MAX:
        raise ValidationError(f"{key} exceeds the largest UFix64 amount")
    if amount <= 0:
        raise ValidationError(f"{key} must be a positive number")
    amount = amount.quantize(cadence.UFIX64_PLACES)
    if amount <= 0:
        raise ValidationError(f"{key} is below the smallest UFix64 unit")
    return amount


def check_range(amount: Decimal, low: Decimal, high: Decimal, what: str) -> None:
    if amount < low:
        raise ValidationError(f"{what} below minimum of {low} FLOW")
    if amount > high:
        raise ValidationError(f"{what} above maximum of {high} FLOW")


def parse_game_type(body: Mapping[str, Any]) -> GameType:
    raw = body.get("gameType")
    if not raw:
        raise ValidationError("missing required field: gameType")
    try:
        return GameType.parse(raw)
    except ValueError:
        valid = ", ".join(g.value.lower() for g in GameType)
        raise ValidationError(f"invalid game type {raw!r}; must be one of {valid}") from None


class CasinoGateway:
    """Deposit, withdraw, game and entropy operations over the treasury."""

    def __init__(
        self,
        submitter: TransactionSubmitter,
        waiter: SealWaiter,
        extractor: ResultExtractor,
        guard: BalanceGuard,
        engine: EntropyEngine,
        treasury_address: str,
        explorer_url: str,
        network: str = "testnet",
        limits: LimitsConfig | None = None,
    ) -> None:
        self._submitter = submitter
        self._waiter = waiter
        self._extractor = extractor
        self._guard = guard
        self._engine = engine
        self._treasury = treasury_address
        self._explorer = explorer_url.rstrip("/")
        self._network = network
        self._limits = limits or LimitsConfig()

    def explorer_link(self, transaction_id: str) -> str:
        return f"{self._explorer}/tx/{transaction_id}"

    # ── Deposit ────────────────────────────────────────────

    async def deposit(self, body: Mapping[str, Any]) -> dict[str, Any]:
        """Record a player's transfer into the treasury."""
        user = parse_address(body)
        amount = parse_amount(body)
        tx_hash = body.get("transactionHash") or None
        if tx_hash is not None and not _TX_ID_RE.match(str(tx_hash)):
            raise ValidationError(f"invalid transactionHash: {tx_hash}")
        if tx_hash is not None:
            tx_hash = str(tx_hash).removeprefix("0x").lower()

        status = "confirmed"
        if tx_hash and self._limits.verify_deposits:
            sealed = await self._waiter.await_seal(
                PendingTransaction(transaction_id=tx_hash, operation="deposit"),
            )
            status = _DEPOSIT_STATUS[sealed.status]

        deposit_id = f"deposit_{int(time.time() * 1000)}_{secrets.token_hex(5)}"
        log.info("Deposit %s: %s FLOW from %s (%s)", deposit_id, amount, user, status)
        return DepositResponse(
            deposit_id=deposit_id,
            amount=float(amount),
            user_address=user,
            treasury_address=self._treasury,
            status=status,
            timestamp=_now(),
            explorer_url=self.explorer_link(tx_hash) if tx_hash else None,
        ).to_dict()

    # ── Withdraw ───────────────────────────────────────────

    async def withdraw(self, body: Mapping[str, Any]) -> dict[str, Any]:
        """Transfer FLOW from the treasury to a player and wait for the seal."""
        user = parse_address(body)
        amount = parse_amount(body)
        check_range(amount, self._limits.min_withdraw, self._limits.max_withdraw, "withdrawal")
        args = {"amount": amount, "recipientAddress": user}
        get_template("treasury_withdraw").bind(args)

        decision = await self._guard.check_sufficient(amount)
        pending = await self._submitter.submit("treasury_withdraw", args)
        sealed = await self._waiter.await_seal(pending)

        status = _WITHDRAW_STATUS[sealed.status]
        log.info(
            "Withdrawal of %s FLOW to %s: %s (tx=%s)",
            amount, user, status, sealed.transaction_id[:16],
        )
        return WithdrawResponse(
            transaction_id=sealed.transaction_id,
            status=status,
            amount=float(amount),
            user_address=user,
            treasury_address=self._treasury,
            block_id=sealed.block_id,
            events=[
                {"type": e.type, "data": e.fields if e.fields is not None else e.raw}
                for e in sealed.events
            ],
            error_message=sealed.error_message,
            explorer_url=self.explorer_link(sealed.transaction_id),
            balance_known=decision.known,
        ).to_dict()

    # ── Games ──────────────────────────────────────────────

    async def play_game(self, body: Mapping[str, Any]) -> dict[str, Any]:
        """Play one treasury-sponsored game and return its verified outcome."""
        game = parse_game_type(body)
        user = parse_address(body)
        bet = parse_amount(body, "betAmount")
        check_range(bet, self._limits.min_bet, self._limits.max_bet, "bet")
        params = body.get("gameParams") or {}
        if not isinstance(params, Mapping):
            raise ValidationError("gameParams must be an object")

        args = {**params, "playerAddress": user, "betAmount": bet}
        get_template(game.operation).bind(args)

        await self._guard.check_sufficient(bet)
        pending = await self._submitter.submit(game.operation, args)
        sealed = await self._waiter.await_seal(pending)
        outcome = self._extractor.extract(sealed, game)

        if outcome.metadata.low_assurance:
            log.warning(
                "%s tx %s: seed derived from transaction id",
                game.value, sealed.transaction_id[:16],
            )
        return GameVRFResponse(
            random_number=outcome.random_seed,
            game_result=outcome.to_dict(),
            transaction_id=sealed.transaction_id,
            block_id=sealed.block_id,
            block_height=sealed.block_height,
            game_type=game.value.lower(),
            user_address=user,
            bet_amount=float(bet),
            explorer_url=self.explorer_link(sealed.transaction_id),
            seed_assurance="low" if outcome.metadata.low_assurance else "committed",
        ).to_dict()

    # ── Entropy ────────────────────────────────────────────

    async def generate_entropy(self, body: Mapping[str, Any]) -> dict[str, Any]:
        """Run one commit/reveal round and return the value with its proof."""
        game_type = body.get("gameType")
        if game_type is not None and not _GAME_TAG_RE.match(str(game_type)):
            raise ValidationError(f"invalid gameType: {game_type!r}")
        config = body.get("gameConfig")
        if config is not None and not isinstance(config, Mapping):
            raise ValidationError("gameConfig must be an object")

        entropy = await self._engine.generate_random(
            game_type=str(game_type) if game_type is not None else None,
        )
        return EntropyResponse(
            random_value=entropy.random_value or "",
            request_id=entropy.request_id,
            commit_tx=entropy.commit_tx or "",
            reveal_tx=entropy.reveal_tx or "",
            block_id=entropy.reveal_block_id,
            block_height=entropy.reveal_block_height,
            explorer_url=self.explorer_link(entropy.reveal_tx or ""),
            commitment=entropy.commitment,
            network=self._network,
            game_type=str(game_type) if game_type is not None else None,
            generated_at=_now(),
        ).to_dict()
