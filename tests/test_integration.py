"""End-to-end flows through a fully wired TreasuryContext on the fake ledger."""

from __future__ import annotations

from decimal import Decimal

import pytest

from casino_treasury.context import TreasuryContext
from casino_treasury.errors import ConfigurationError, NetworkError, ValidationError
from casino_treasury.models.config import LimitsConfig, TreasuryConfig
from tests.conftest import TREASURY_ADDRESS, make_test_config
from tests.factories import PLAYER, make_game_event, make_report
from tests.mocks import FakeLedger, derived_random


async def test_context_wires_one_retry_policy(context, ledger):
    assert context.retry.clients == [ledger]
    assert context.signer is not None
    assert context.signer.address == TREASURY_ADDRESS


async def test_game_round_trip(context, ledger):
    """play → sign → submit → seal → extract, all through the context."""
    ledger.respond = lambda tx: ledger.sealed_ok(
        tx, events=(make_game_event(game_type="WHEEL", result={"winningSegment": "9"}),),
    )

    body = await context.gateway.play_game({
        "gameType": "Wheel", "userAddress": PLAYER, "betAmount": "3",
    })

    assert body["gameResult"]["result"] == {"winningSegment": "9"}
    assert body["transactionId"] == ledger.submitted[0].transaction_id
    assert ledger.submitted[0].operation == "play_wheel"


async def test_game_round_trip_from_text_output(context, ledger):
    ledger.respond = lambda tx: ledger.sealed_ok(
        tx, raw_output=make_report(game_type="PLINKO", result={"finalPosition": "2"}),
    )

    body = await context.gateway.play_game({
        "gameType": "plinko", "userAddress": PLAYER, "betAmount": "1",
        "gameParams": {"riskLevel": "low", "rows": 8},
    })

    assert body["gameResult"]["result"] == {"finalPosition": "2"}
    assert ledger.submitted[0].arguments[2:] == ["low", 8]


async def test_entropy_round_trip(context, ledger):
    body = await context.gateway.generate_entropy({"gameType": "dice"})
    request_id = body["entropyProof"]["requestId"]
    assert body["randomValue"] == derived_random(request_id)
    assert [tx.operation for tx in ledger.submitted] == ["vrf_commit", "vrf_reveal"]


async def test_failover_to_second_access_node(test_config):
    """First node refuses every call → second node serves the request."""
    broken = FakeLedger(endpoint="fake://down", treasury=TREASURY_ADDRESS)
    healthy = FakeLedger(endpoint="fake://up", treasury=TREASURY_ADDRESS)
    broken.read_errors["get_account"] = [
        NetworkError("connection refused", request_sent=False) for _ in range(10)
    ]

    async with TreasuryContext(test_config, clients=[broken, healthy]) as ctx:
        body = await ctx.gateway.withdraw({"userAddress": PLAYER, "amount": "1"})

    assert body["status"] == "sealed"
    assert broken.submitted == []
    assert len(healthy.submitted) == 1
    assert broken.closed and healthy.closed


async def test_context_without_key_is_read_only(ledger):
    cfg = make_test_config(treasury=TreasuryConfig(address=TREASURY_ADDRESS))
    async with TreasuryContext(cfg, clients=[ledger]) as ctx:
        view = await ctx.guard.account_view()
        assert view.available == Decimal("500")
        with pytest.raises(ConfigurationError):
            await ctx.gateway.withdraw({"userAddress": PLAYER, "amount": "1"})
    assert ledger.submitted == []


async def test_limits_come_from_config(ledger):
    cfg = make_test_config(limits=LimitsConfig(max_bet=Decimal("2")))
    async with TreasuryContext(cfg, clients=[ledger]) as ctx:
        with pytest.raises(ValidationError, match="maximum"):
            await ctx.gateway.play_game({"gameType": "wheel", "userAddress": PLAYER, "betAmount": 3})
