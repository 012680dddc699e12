"""GameResultExtractor: structured events, text fallback and failure paths."""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import pytest

from casino_treasury.errors import ParseError, TransactionFailure, TransactionTimeout
from casino_treasury.flow.extractor import GameResultExtractor, seed_from_transaction_id
from casino_treasury.flow.report import parse_report
from casino_treasury.models.outcomes import GameType
from casino_treasury.models.transactions import LedgerEvent, SealStatus
from tests.factories import (
    GAME_PLAYED,
    PLAYER,
    make_game_event,
    make_report,
    make_sealed,
    make_tx_id,
)


# ── Structured events ────────────────────────────────────────────


def test_extract_from_event(extractor):
    sealed = make_sealed(events=(make_game_event(),))

    outcome = extractor.extract(sealed, GameType.ROULETTE)

    assert outcome.game_type is GameType.ROULETTE
    assert outcome.player == PLAYER
    assert outcome.bet_amount == Decimal("1")
    assert outcome.payout == Decimal("2")
    assert outcome.random_seed == 123456789
    assert outcome.result_payload == {"winningNumber": "17", "color": "black"}
    assert outcome.metadata.source == "event"
    assert outcome.metadata.low_assurance is False
    assert outcome.transaction_id == sealed.transaction_id


@pytest.mark.parametrize("game, result", [
    ("MINES", {"hitMine": "false", "multiplier": "1.2"}),
    ("PLINKO", {"finalPosition": "8", "multiplier": "0.5"}),
    ("WHEEL", {"winningSegment": "12", "multiplier": "2"}),
])
def test_extract_each_game_type(extractor, game, result):
    sealed = make_sealed(events=(make_game_event(game_type=game, result=result),))
    outcome = extractor.extract(sealed, GameType.parse(game))
    assert outcome.result_payload == result


def test_unrelated_events_are_ignored(extractor):
    other = LedgerEvent(type="A.1654653399040a61.FlowToken.TokensWithdrawn", fields={"amount": 1})
    sealed = make_sealed(events=(other, make_game_event()))
    assert extractor.extract(sealed, GameType.ROULETTE).random_seed == 123456789


def test_event_from_other_contract_address_is_ignored():
    extractor = GameResultExtractor("0x2083a55fb16f8f60")
    impostor = make_game_event(event_type="A.0000000000000001.CasinoGames.GamePlayed")
    with pytest.raises(ParseError):
        extractor.extract(make_sealed(events=(impostor,)), GameType.ROULETTE)


def test_game_type_mismatch_is_parse_error(extractor):
    sealed = make_sealed(events=(make_game_event(game_type="MINES", result={"hitMine": "true"}),))
    with pytest.raises(ParseError, match="expected ROULETTE"):
        extractor.extract(sealed, GameType.ROULETTE)


def test_negative_payout_is_parse_error(extractor):
    sealed = make_sealed(events=(make_game_event(payout="-1"),))
    with pytest.raises(ParseError):
        extractor.extract(sealed, GameType.ROULETTE)


def test_missing_seed_in_event_falls_back_to_transaction_id(extractor):
    tx_id = make_tx_id("no-seed")
    sealed = make_sealed(events=(make_game_event(random_seed=None),), transaction_id=tx_id)

    outcome = extractor.extract(sealed, GameType.ROULETTE)

    assert outcome.random_seed == int(tx_id[-8:], 16)
    assert outcome.metadata.seed_source == "transaction_id"
    assert outcome.metadata.low_assurance is True



@pytest.mark.parametrize("seed", ["abc", "12.5", [1, 2]])
def test_non_integer_seed_is_parse_error(extractor, seed):
    tx_id = make_tx_id("bad-seed")
    sealed = make_sealed(events=(make_game_event(random_seed=seed),), transaction_id=tx_id)
    with pytest.raises(ParseError) as exc_info:
        extractor.extract(sealed, GameType.ROULETTE)
    assert exc_info.value.transaction_id == tx_id


# ── Text report fallback ─────────────────────────────────────────


def test_text_fallback_matches_structured_payload(extractor):
    """Same game data via event and via report → identical result payload."""
    result = {"finalPosition": "3", "multiplier": "5.6"}
    structured = extractor.extract(
        make_sealed(events=(make_game_event(game_type="PLINKO", result=result),)),
        GameType.PLINKO,
    )
    textual = extractor.extract(
        make_sealed(raw_output=make_report(game_type="PLINKO", result=result)),
        GameType.PLINKO,
    )

    assert textual.result_payload == structured.result_payload
    assert textual.random_seed == structured.random_seed
    assert textual.payout == structured.payout
    assert textual.player == structured.player
    assert textual.metadata.source == "text_report"
    assert textual.metadata.seed_source == "text_report"
    assert not textual.metadata.low_assurance


def test_report_block_id_fills_missing_seal_block(extractor):
    sealed = replace(make_sealed(raw_output=make_report()), block_id=None)
    outcome = extractor.extract(sealed, GameType.ROULETTE)
    assert outcome.block_id == "b" * 64


def test_seal_block_id_takes_precedence_over_report(extractor):
    outcome = extractor.extract(make_sealed(raw_output=make_report()), GameType.ROULETTE)
    assert outcome.block_id == "c" * 64


def test_undecodable_event_text_is_used(extractor):
    raw_event = LedgerEvent(type=GAME_PLAYED, fields=None, raw=make_report())
    outcome = extractor.extract(make_sealed(events=(raw_event,)), GameType.ROULETTE)
    assert outcome.result_payload["winningNumber"] == "17"
    assert outcome.metadata.source == "text_report"


def test_text_fallback_from_log_lines_only(extractor):
    """Scenario C: no seed anywhere → transaction id seed, flagged low assurance."""
    tx_id = make_tx_id("log-lines")
    text = "\n".join([
        'Log 0: "Treasury sponsoring roulette for player: 0x01cf0e2f2f715450"',
        'Log 1: "Winning number: 17"',
        'Log 2: "Payout: 0.00000000 FLOW"',
    ])

    outcome = extractor.extract(make_sealed(raw_output=text, transaction_id=tx_id), GameType.ROULETTE)

    assert outcome.result_payload == {"winningNumber": "17"}
    assert outcome.payout == Decimal("0")
    assert outcome.random_seed == seed_from_transaction_id(tx_id)
    assert outcome.metadata.low_assurance is True
    assert outcome.metadata.seed_source == "transaction_id"


def test_missing_fields_everywhere_is_parse_error(extractor):
    sealed = make_sealed(raw_output='Log 0: "Multiplier: 2.0"')
    with pytest.raises(ParseError):
        extractor.extract(sealed, GameType.WHEEL)


def test_no_output_at_all_is_parse_error(extractor):
    with pytest.raises(ParseError):
        extractor.extract(make_sealed(), GameType.MINES)


def test_report_parser_reads_block_id_and_values():
    report = parse_report(make_report(game_type="WHEEL", result={"winningSegment": "4"}))
    assert report.block_id == "b" * 64
    assert report.values["gameType"] == "WHEEL"
    assert report.game_result == {"winningSegment": "4"}
    assert report.random_seed == 123456789


# ── Failed or unresolved seals ───────────────────────────────────


def test_sealed_failed_raises_transaction_failure(extractor):
    sealed = make_sealed(status=SealStatus.SEALED_FAILED, error_message="panic: out of range")
    with pytest.raises(TransactionFailure) as exc_info:
        extractor.extract(sealed, GameType.ROULETTE)
    assert exc_info.value.transaction_id == sealed.transaction_id
    assert exc_info.value.error_message == "panic: out of range"


def test_expired_raises_timeout(extractor):
    sealed = make_sealed(status=SealStatus.EXPIRED)
    with pytest.raises(TransactionTimeout) as exc_info:
        extractor.extract(sealed, GameType.ROULETTE)
    assert exc_info.value.transaction_id == sealed.transaction_id
