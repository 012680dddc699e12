"""Game result extractor - structured events first, text report as fallback."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from casino_treasury.errors import ParseError, TransactionFailure, TransactionTimeout
from casino_treasury.flow.report import TextReport, parse_mapping, parse_report
from casino_treasury.models.outcomes import (
    ExtractionMetadata,
    GameOutcome,
    GameType,
    missing_result_fields,
)
from casino_treasury.models.transactions import (
    LedgerEvent,
    SealedTransactionResult,
    SealStatus,
)

log = logging.getLogger(__name__)

GAME_PLAYED_SUFFIX = ".CasinoGames.GamePlayed"


def seed_from_transaction_id(transaction_id: str) -> int:
    """Low-assurance seed: the last 8 hex digits of the transaction id."""
    return int(transaction_id[-8:], 16)


def _decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    if value is None:
        return default
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return default


def _seed(value: Any, tx_id: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ParseError(f"randomSeed is not an integer: {value!r}", transaction_id=tx_id) from None


class GameResultExtractor:
    """Turns a sealed game transaction into a GameOutcome."""

    def __init__(self, casino_address: str | None = None) -> None:
        addr = casino_address or ""
        self._casino_address = addr[2:] if addr.startswith("0x") else addr

    def _is_game_event(self, event_type: str) -> bool:
        if not event_type.endswith(GAME_PLAYED_SUFFIX):
            return False
        if self._casino_address:
            return event_type.lower() == f"a.{self._casino_address}{GAME_PLAYED_SUFFIX}".lower()
        return True

    def _find_event(self, events: tuple[LedgerEvent, ...]) -> LedgerEvent | None:
        for event in events:
            if self._is_game_event(event.type):
                return event
        return None

    def extract(
        self,
        sealed: SealedTransactionResult,
        game_type: GameType,
    ) -> GameOutcome:
        tx_id = sealed.transaction_id
        if sealed.status is SealStatus.SEALED_FAILED:
            raise TransactionFailure(
                f"game transaction failed: {sealed.error_message}",
                transaction_id=tx_id,
                error_message=sealed.error_message,
            )
        if sealed.status is SealStatus.EXPIRED:
            raise TransactionTimeout(
                "game transaction not sealed in time", transaction_id=tx_id, phase="seal",
            )

        event = self._find_event(sealed.events)
        if event is not None and event.fields is not None:
            outcome = self._from_event(sealed, event, game_type)
            if outcome is not None:
                return outcome

        text = "\n".join(
            t for t in [*(e.raw for e in sealed.events if e.raw), sealed.raw_output] if t
        )
        report = parse_report(text, self._casino_address or None)
        if not report.empty:
            log.warning("tx %s: using text report fallback", tx_id[:16])
            return self._from_report(sealed, report, game_type)

        raise ParseError(
            f"no {game_type.value} result in events or text output", transaction_id=tx_id,
        )

    def _from_event(
        self,
        sealed: SealedTransactionResult,
        event: LedgerEvent,
        game_type: GameType,
    ) -> GameOutcome | None:
        fields = event.fields or {}
        reported = fields.get("gameType")
        if reported and str(reported).upper() != game_type.value:
            raise ParseError(
                f"event reports game {reported}, expected {game_type.value}",
                transaction_id=sealed.transaction_id,
            )

        raw_result = fields.get("gameResult") or {}
        if isinstance(raw_result, str):
            payload = parse_mapping(raw_result)
        else:
            payload = {str(k): str(v) for k, v in dict(raw_result).items()}
        if missing_result_fields(game_type, payload):
            log.warning(
                "tx %s: GamePlayed event lacks %s result fields",
                sealed.transaction_id[:16], game_type.value,
            )
            return None

        seed = fields.get("randomSeed")
        meta = ExtractionMetadata(source="event", seed_source="event", event_type=event.type)
        if seed is None:
            seed = seed_from_transaction_id(sealed.transaction_id)
            meta = ExtractionMetadata(
                source="event", seed_source="transaction_id",
                low_assurance=True, event_type=event.type,
            )

        return self._build(
            sealed, game_type, payload,
            player=str(fields.get("player") or ""),
            bet_amount=_decimal(fields.get("betAmount")),
            payout=_decimal(fields.get("payout")),
            seed=_seed(seed, sealed.transaction_id),
            meta=meta,
        )

    def _from_report(
        self,
        sealed: SealedTransactionResult,
        report: TextReport,
        game_type: GameType,
    ) -> GameOutcome:
        reported = report.values.get("gameType")
        if reported and reported.upper() != game_type.value:
            raise ParseError(
                f"report shows game {reported}, expected {game_type.value}",
                transaction_id=sealed.transaction_id,
            )
        if missing := missing_result_fields(game_type, report.game_result):
            raise ParseError(
                f"{game_type.value} result missing {', '.join(missing)}",
                transaction_id=sealed.transaction_id,
            )

        if report.random_seed is not None:
            seed = report.random_seed
            meta = ExtractionMetadata(
                source="text_report", seed_source="text_report", event_type=report.event_type,
            )
        else:
            seed = seed_from_transaction_id(sealed.transaction_id)
            meta = ExtractionMetadata(
                source="text_report", seed_source="transaction_id",
                low_assurance=True, event_type=report.event_type,
            )

        return self._build(
            sealed, game_type, dict(report.game_result),
            player=report.values.get("player", ""),
            bet_amount=_decimal(report.values.get("betAmount")),
            payout=report.payout if report.payout is not None else Decimal("0"),
            seed=seed,
            meta=meta,
            block_id=sealed.block_id or report.block_id,
        )

    def _build(
        self,
        sealed: SealedTransactionResult,
        game_type: GameType,
        payload: dict[str, str],
        *,
        player: str,
        bet_amount: Decimal,
        payout: Decimal,
        seed: int,
        meta: ExtractionMetadata,
        block_id: str | None = None,
    ) -> GameOutcome:
        try:
            return GameOutcome(
                game_type=game_type,
                player=player,
                bet_amount=bet_amount,
                result_payload=payload,
                payout=payout,
                random_seed=seed,
                transaction_id=sealed.transaction_id,
                block_id=block_id or sealed.block_id,
                metadata=meta,
            )
        except ValueError as exc:
            raise ParseError(str(exc), transaction_id=sealed.transaction_id) from exc
