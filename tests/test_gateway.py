"""CasinoGateway: request validation, response contracts and scenarios A-D."""

from __future__ import annotations

from decimal import Decimal

import pytest

from casino_treasury.api.gateway import CasinoGateway
from casino_treasury.errors import (
    InsufficientFunds,
    TransactionFailure,
    TransactionTimeout,
    ValidationError,
)
from casino_treasury.flow.waiter import PollingSealWaiter
from casino_treasury.models.config import LimitsConfig
from casino_treasury.models.transactions import LedgerStatus, TransactionStatusView
from casino_treasury.policy.guard import TreasuryBalanceGuard
from tests.conftest import TREASURY_ADDRESS
from tests.factories import PLAYER, make_game_event, make_tx_id
from tests.mocks import block_id_for


def _gateway(submitter, waiter, extractor, guard, engine, test_config, **limits):
    return CasinoGateway(
        submitter, waiter, extractor, guard, engine,
        treasury_address=TREASURY_ADDRESS,
        explorer_url=test_config.explorer_url,
        limits=LimitsConfig(**limits),
    )


def _seal_with_game_event(ledger, **event_kwargs):
    ledger.respond = lambda tx: ledger.sealed_ok(
        tx, events=(make_game_event(transaction_id=tx.transaction_id, **event_kwargs),),
    )


# ── Scenario A: deposit ──────────────────────────────────────────


async def test_deposit_is_recorded(gateway, ledger):
    body = await gateway.deposit({"userAddress": "0x0123456789abcdef", "amount": 0.5})

    assert body["success"] is True
    assert body["status"] == "confirmed"
    assert body["amount"] == 0.5
    assert body["userAddress"] == "0x0123456789abcdef"
    assert body["treasuryAddress"] == TREASURY_ADDRESS
    assert body["currency"] == "FLOW"
    assert body["depositId"].startswith("deposit_")
    assert body["explorerUrl"] is None
    assert ledger.log == []


async def test_deposit_hash_becomes_explorer_link(gateway):
    tx_hash = make_tx_id("deposit")
    body = await gateway.deposit({"userAddress": PLAYER, "amount": "2", "transactionHash": tx_hash})
    assert body["explorerUrl"] == f"https://testnet.flowscan.io/tx/{tx_hash}"


@pytest.mark.parametrize("body", [
    {"amount": 1},
    {"userAddress": "0x123", "amount": 1},
    {"userAddress": PLAYER},
    {"userAddress": PLAYER, "amount": 0},
    {"userAddress": PLAYER, "amount": -3},
    {"userAddress": PLAYER, "amount": "lots"},
    {"userAddress": PLAYER, "amount": "1e20"},
    {"userAddress": PLAYER, "amount": 1e21},
    {"userAddress": PLAYER, "amount": "99999999999999999999999"},
    {"userAddress": PLAYER, "amount": "-1e30"},
    {"userAddress": PLAYER, "amount": 1, "transactionHash": "not-a-hash"},
])
async def test_deposit_rejects_malformed_input(gateway, ledger, body):
    with pytest.raises(ValidationError) as exc_info:
        await gateway.deposit(body)
    assert exc_info.value.status_code == 400
    assert ledger.log == []


@pytest.mark.parametrize("view_status, code, expected", [
    (LedgerStatus.SEALED, 0, "confirmed"),
    (LedgerStatus.SEALED, 1, "failed"),
])
async def test_verified_deposit_follows_seal(
    submitter, waiter, extractor, guard, engine, test_config, ledger,
    view_status, code, expected,
):
    gateway = _gateway(submitter, waiter, extractor, guard, engine, test_config, verify_deposits=True)
    tx_hash = make_tx_id(f"deposit-{code}")
    ledger.set_view(TransactionStatusView(
        tx_hash, view_status, status_code=code, block_id=block_id_for(900),
        error_message="panic" if code else None,
    ))

    body = await gateway.deposit({"userAddress": PLAYER, "amount": 1, "transactionHash": tx_hash})

    assert body["status"] == expected
    assert body["success"] is (expected == "confirmed")


async def test_unsealed_verified_deposit_stays_pending(
    retry, submitter, extractor, guard, engine, test_config,
):
    waiter = PollingSealWaiter(retry, timeout=0.05, poll_interval=0.01)
    gateway = _gateway(submitter, waiter, extractor, guard, engine, test_config, verify_deposits=True)

    body = await gateway.deposit({
        "userAddress": PLAYER, "amount": 1, "transactionHash": "0x" + make_tx_id("unseen"),
    })

    assert body["status"] == "pending"
    assert body["success"] is True


# ── Scenario B: game VRF ─────────────────────────────────────────


async def test_roulette_game(gateway, ledger):
    _seal_with_game_event(ledger)

    body = await gateway.play_game({
        "gameType": "roulette", "userAddress": PLAYER,
        "betAmount": 1.0, "gameParams": {"betType": "red"},
    })

    assert body["success"] is True
    assert body["gameResult"]["gameType"] == "ROULETTE"
    assert body["gameResult"]["result"]["winningNumber"] == "17"
    assert isinstance(body["randomNumber"], int) and body["randomNumber"] >= 0
    assert body["gameType"] == "roulette"
    assert body["betAmount"] == 1.0
    assert body["seedAssurance"] == "committed"
    tx = ledger.submitted[0]
    assert body["transactionId"] == tx.transaction_id
    assert body["blockId"] == block_id_for(tx.height)
    assert body["blockHeight"] == tx.height
    assert body["explorerUrl"].endswith(tx.transaction_id)
    assert tx.operation == "play_roulette"
    assert tx.arguments[2] == "red"


async def test_game_params_reach_the_template(gateway, ledger):
    _seal_with_game_event(ledger, game_type="MINES", result={"hitMine": "false"})

    await gateway.play_game({
        "gameType": "MINES", "userAddress": PLAYER, "betAmount": "0.25",
        "gameParams": {"mineCount": 5, "revealedTiles": [0, 7]},
    })

    assert ledger.submitted[0].arguments == [PLAYER, Decimal("0.25"), 5, [0, 7], False]


async def test_game_checks_balance_for_bet(gateway, ledger):
    _seal_with_game_event(ledger)
    await gateway.play_game({"gameType": "roulette", "userAddress": PLAYER, "betAmount": 1})
    assert ledger.log[0] == ("query", "balance")
    assert ledger.log[1] == ("submit", "play_roulette")


async def test_seed_from_transaction_id_is_reported(gateway, ledger):
    _seal_with_game_event(ledger, random_seed=None)
    body = await gateway.play_game({"gameType": "roulette", "userAddress": PLAYER, "betAmount": 1})
    assert body["seedAssurance"] == "low"
    assert body["randomNumber"] == int(body["transactionId"][-8:], 16)


@pytest.mark.parametrize("body", [
    {"userAddress": PLAYER, "betAmount": 1},
    {"gameType": "baccarat", "userAddress": PLAYER, "betAmount": 1},
    {"gameType": "wheel", "userAddress": "0xZZ", "betAmount": 1},
    {"gameType": "wheel", "userAddress": PLAYER, "betAmount": 0},
    {"gameType": "wheel", "userAddress": PLAYER, "betAmount": 101},
    {"gameType": "wheel", "userAddress": PLAYER, "betAmount": "0.0001"},
    {"gameType": "wheel", "userAddress": PLAYER, "betAmount": "1e21"},
    {"gameType": "mines", "userAddress": PLAYER, "betAmount": 1, "gameParams": {"mineCount": "lots"}},
    {"gameType": "mines", "userAddress": PLAYER, "betAmount": 1, "gameParams": ["not", "a", "map"]},
])
async def test_game_rejects_bad_requests_before_ledger(gateway, ledger, body):
    with pytest.raises(ValidationError):
        await gateway.play_game(body)
    assert ledger.log == []
    assert ledger.submitted == []


async def test_failed_game_transaction_surfaces_chain_message(gateway, ledger):
    ledger.respond = lambda tx: ledger.sealed_failed(tx, "pre-condition failed: Game type must be WHEEL")
    with pytest.raises(TransactionFailure) as exc_info:
        await gateway.play_game({"gameType": "wheel", "userAddress": PLAYER, "betAmount": 1})
    assert exc_info.value.error_message == "pre-condition failed: Game type must be WHEEL"
    assert exc_info.value.transaction_id == ledger.submitted[0].transaction_id


# ── Scenario C: soft balance policy ──────────────────────────────


async def test_withdrawal_over_balance_still_submits(gateway, ledger):
    """Shortfall → transaction submitted anyway, chain verdict returned."""
    ledger.balance = Decimal("1")
    message = "[Error Code: 1101] Amount withdrawn must be less than or equal than the balance"
    ledger.respond = lambda tx: ledger.sealed_failed(tx, message)

    body = await gateway.withdraw({"userAddress": PLAYER, "amount": 50})

    assert len(ledger.submitted) == 1
    assert body["success"] is False
    assert body["status"] == "failed"
    assert body["errorMessage"] == message
    assert body["transactionId"] == ledger.submitted[0].transaction_id


async def test_withdrawal_seals(gateway, ledger):
    body = await gateway.withdraw({"userAddress": PLAYER, "amount": "2.5"})

    tx = ledger.submitted[0]
    assert body["success"] is True
    assert body["status"] == "sealed"
    assert body["amount"] == 2.5
    assert body["blockId"] == block_id_for(tx.height)
    assert body["errorMessage"] is None
    assert tx.operation == "treasury_withdraw"
    assert tx.arguments == [Decimal("2.5"), PLAYER]


async def test_enforced_balance_blocks_withdrawal(
    retry, submitter, waiter, extractor, engine, test_config, ledger,
):
    guard = TreasuryBalanceGuard(
        retry, TREASURY_ADDRESS, test_config.contract_addresses(), enforce=True,
    )
    gateway = _gateway(submitter, waiter, extractor, guard, engine, test_config)
    ledger.balance = Decimal("1")

    with pytest.raises(InsufficientFunds):
        await gateway.withdraw({"userAddress": PLAYER, "amount": 50})
    assert ledger.submitted == []


@pytest.mark.parametrize("amount", [0, -1, "0.0000001", 1001, "1e20", "99999999999999999999999"])
async def test_withdrawal_limits(gateway, ledger, amount):
    with pytest.raises(ValidationError):
        await gateway.withdraw({"userAddress": PLAYER, "amount": amount})
    assert ledger.log == []


# ── Scenario D: seal timeout ─────────────────────────────────────


async def test_unsealed_withdrawal_returns_expired(
    retry, submitter, extractor, guard, engine, test_config, ledger,
):
    ledger.pending_polls = 10_000
    waiter = PollingSealWaiter(retry, timeout=0.05, poll_interval=0.01)
    gateway = _gateway(submitter, waiter, extractor, guard, engine, test_config)

    body = await gateway.withdraw({"userAddress": PLAYER, "amount": 1})

    assert body["status"] == "expired"
    assert body["success"] is False
    assert body["transactionId"] == ledger.submitted[0].transaction_id
    assert body["blockId"] is None


async def test_unsealed_game_is_unresolved_with_tx_id(
    retry, submitter, extractor, guard, engine, test_config, ledger,
):
    ledger.pending_polls = 10_000
    waiter = PollingSealWaiter(retry, timeout=0.05, poll_interval=0.01)
    gateway = _gateway(submitter, waiter, extractor, guard, engine, test_config)

    with pytest.raises(TransactionTimeout) as exc_info:
        await gateway.play_game({"gameType": "plinko", "userAddress": PLAYER, "betAmount": 1})

    assert exc_info.value.status_code == 504
    assert exc_info.value.to_dict()["transactionId"] == ledger.submitted[0].transaction_id


# ── Entropy ──────────────────────────────────────────────────────


async def test_entropy_response_carries_proof(gateway, ledger):
    body = await gateway.generate_entropy({"gameType": "slots", "gameConfig": {"reels": 5}})

    commit, reveal = ledger.submitted
    proof = body["entropyProof"]
    assert body["success"] is True
    assert body["randomValue"]
    assert proof["commitTx"] == commit.transaction_id
    assert proof["revealTx"] == reveal.transaction_id
    assert proof["requestId"].startswith("api_slots_")
    assert proof["commitment"] == commit.arguments[1]
    assert proof["blockNumber"] == reveal.height
    assert proof["network"] == "flow-testnet"
    assert body["metadata"]["gameType"] == "slots"
    assert body["metadata"]["algorithm"] == "commit-reveal"


async def test_entropy_without_game_type(gateway):
    body = await gateway.generate_entropy({})
    assert body["entropyProof"]["requestId"].startswith("api_entropy_")
    assert body["metadata"]["gameType"] is None


@pytest.mark.parametrize("body", [
    {"gameType": "no spaces allowed"},
    {"gameType": "x" * 33},
    {"gameConfig": "not-a-map"},
])
async def test_entropy_rejects_bad_input(gateway, ledger, body):
    with pytest.raises(ValidationError):
        await gateway.generate_entropy(body)
    assert ledger.log == []
