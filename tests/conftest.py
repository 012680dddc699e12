"""Shared fixtures for casino_treasury tests."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pytest_metadata.plugin import metadata_key

from casino_treasury.api.gateway import CasinoGateway
from casino_treasury.context import TreasuryContext
from casino_treasury.flow.extractor import GameResultExtractor
from casino_treasury.flow.retry import RetryPolicy
from casino_treasury.flow.signer import TreasurySigner
from casino_treasury.flow.submitter import FlowTransactionSubmitter
from casino_treasury.flow.waiter import PollingSealWaiter
from casino_treasury.models.config import (
    CasinoConfig,
    ContractsConfig,
    LimitsConfig,
    NetworkConfig,
    RetryConfig,
    SealConfig,
    TreasuryConfig,
    VRFConfig,
)
from casino_treasury.policy.guard import TreasuryBalanceGuard
from casino_treasury.vrf.engine import CommitRevealEngine

from tests.factories import CASINO_ADDRESS, PLAYER
from tests.mocks import FakeLedger, RecordingSleep

TREASURY_ADDRESS = CASINO_ADDRESS
VRF_ADDRESS = "0x8c5303eaa26202d6"
# Throwaway P-256 test key; never funded.
TEST_PRIVATE_KEY = "1b3f2c4d5e6f708192a3b4c5d6e7f8091a2b3c4d5e6f708192a3b4c5d6e7f809"

EXPLORER_BASE = "https://testnet.flowscan.io"


def flowscan_link(kind: str, id: str, label: str | None = None) -> str:
    """Build an HTML anchor to flowscan for the report."""
    url = f"{EXPLORER_BASE}/{kind}/{id}"
    text = label or f"{id[:8]}...{id[-4:]}"
    return f'<a href="{url}" target="_blank">{text}</a>'


# ── Report metadata & explorer links ─────────────────────────────


def pytest_configure(config):
    """Add network info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Network"] = "Flow Testnet (simulated)"
    meta["Casino Contract"] = CASINO_ADDRESS
    meta["VRF Contract"] = VRF_ADDRESS
    meta["Treasury Account"] = TREASURY_ADDRESS


def pytest_html_results_summary(prefix, summary, postfix):
    """Inject clickable explorer links into the report summary."""
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>Flow Testnet Explorer Links</strong><br/>"
        f'Treasury: {flowscan_link("account", TREASURY_ADDRESS, TREASURY_ADDRESS)}<br/>'
        f'VRF Contract: {flowscan_link("account", VRF_ADDRESS, VRF_ADDRESS)}'
        "</div>"
    )


def make_test_config(**overrides) -> CasinoConfig:
    """Build a CasinoConfig suitable for testing."""
    defaults = dict(
        network=NetworkConfig(name="testnet", access_nodes=["fake://access-1"]),
        treasury=TreasuryConfig(address=TREASURY_ADDRESS, private_key=TEST_PRIVATE_KEY),
        contracts=ContractsConfig(casino=CASINO_ADDRESS, vrf=VRF_ADDRESS),
        retry=RetryConfig(max_attempts=3, base_delay=0.0, max_delay=0.0),
        seal=SealConfig(timeout=2.0, poll_interval=0.01),
        vrf=VRFConfig(block_poll_interval=0.0, delay_timeout=2.0),
        limits=LimitsConfig(),
    )
    defaults.update(overrides)
    return CasinoConfig(**defaults)


@pytest.fixture
def test_config():
    """Default CasinoConfig for tests."""
    return make_test_config()


@pytest.fixture
def ledger():
    return FakeLedger(treasury=TREASURY_ADDRESS)


@pytest.fixture
def no_sleep():
    return RecordingSleep()


@pytest.fixture
def retry(ledger, no_sleep):
    return RetryPolicy([ledger], max_attempts=3, base_delay=0.0, max_delay=0.0, sleep=no_sleep)


@pytest.fixture
def signer():
    return TreasurySigner(TREASURY_ADDRESS, TEST_PRIVATE_KEY)


@pytest.fixture
def submitter(retry, signer, test_config):
    return FlowTransactionSubmitter(retry, signer, test_config.contract_addresses())


@pytest.fixture
def waiter(retry):
    return PollingSealWaiter(retry, timeout=2.0, poll_interval=0.01)


@pytest.fixture
def extractor():
    return GameResultExtractor(CASINO_ADDRESS)


@pytest.fixture
def guard(retry, test_config):
    return TreasuryBalanceGuard(
        retry, TREASURY_ADDRESS, test_config.contract_addresses(),
        estimated_fee=Decimal("0.001"),
    )


@pytest.fixture
def engine(submitter, waiter, retry, test_config):
    return CommitRevealEngine(
        submitter, waiter, retry, test_config.contract_addresses(),
        block_poll_interval=0.0, delay_timeout=2.0,
    )


@pytest.fixture
def gateway(submitter, waiter, extractor, guard, engine, test_config):
    return CasinoGateway(
        submitter, waiter, extractor, guard, engine,
        treasury_address=TREASURY_ADDRESS,
        explorer_url=test_config.explorer_url,
        network="testnet",
        limits=test_config.limits,
    )


@pytest.fixture
async def context(test_config, ledger):
    """Fully wired TreasuryContext over the fake ledger."""
    ctx = TreasuryContext(test_config, clients=[ledger])
    yield ctx
    await ctx.close()


@pytest.fixture
def player():
    return PLAYER
