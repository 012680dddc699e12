"""Per-process wiring of all treasury components."""

from __future__ import annotations

import logging

from casino_treasury.api.gateway import CasinoGateway
from casino_treasury.flow.access import FlowAccessClient
from casino_treasury.flow.extractor import GameResultExtractor
from casino_treasury.flow.retry import RetryPolicy
from casino_treasury.flow.signer import TreasurySigner, normalize_address
from casino_treasury.flow.submitter import FlowTransactionSubmitter
from casino_treasury.flow.waiter import PollingSealWaiter
from casino_treasury.interfaces.ledger import LedgerClient
from casino_treasury.models.config import CasinoConfig
from casino_treasury.policy.guard import TreasuryBalanceGuard
from casino_treasury.vrf.engine import CommitRevealEngine

log = logging.getLogger(__name__)


class TreasuryContext:
    """Builds every component once from configuration.

    Without a private key the context still serves read-only operations;
    submitting then raises ConfigurationError. ``clients`` may be passed to
    substitute the ledger (tests).
    """

    def __init__(
        self,
        cfg: CasinoConfig,
        clients: list[LedgerClient] | None = None,
    ) -> None:
        self.cfg = cfg
        self.clients: list[LedgerClient] = clients or [
            FlowAccessClient(node, timeout=cfg.network.request_timeout)
            for node in cfg.access_nodes
        ]
        addresses = cfg.contract_addresses()
        treasury_address = normalize_address(cfg.treasury.address) if cfg.treasury.address else ""

        self.retry = RetryPolicy(
            self.clients,
            max_attempts=cfg.retry.max_attempts,
            base_delay=cfg.retry.base_delay,
            max_delay=cfg.retry.max_delay,
        )

        self.signer: TreasurySigner | None = None
        if cfg.treasury.private_key:
            self.signer = TreasurySigner(
                cfg.treasury.address,
                cfg.treasury.private_key,
                key_index=cfg.treasury.key_index,
                signature_algorithm=cfg.treasury.signature_algorithm,
                hash_algorithm=cfg.treasury.hash_algorithm,
            )
        else:
            log.warning("No treasury private key configured; submissions disabled")

        self.submitter = FlowTransactionSubmitter(
            self.retry, self.signer, addresses, gas_limit=cfg.treasury.gas_limit,
        )
        self.waiter = PollingSealWaiter(
            self.retry, timeout=cfg.seal.timeout, poll_interval=cfg.seal.poll_interval,
        )
        self.extractor = GameResultExtractor(cfg.contracts.casino or None)
        self.guard = TreasuryBalanceGuard(
            self.retry,
            treasury_address,
            addresses,
            estimated_fee=cfg.limits.estimated_fee,
            enforce=cfg.limits.enforce_balance,
        )
        self.engine = CommitRevealEngine(
            self.submitter,
            self.waiter,
            self.retry,
            addresses,
            reveal_delay_blocks=cfg.vrf.reveal_delay_blocks,
            seed_length=cfg.vrf.seed_length,
            commitment=cfg.vrf.commitment,
            block_poll_interval=cfg.vrf.block_poll_interval,
            delay_timeout=cfg.vrf.delay_timeout,
            request_prefix=cfg.vrf.request_prefix,
        )
        self.gateway = CasinoGateway(
            self.submitter,
            self.waiter,
            self.extractor,
            self.guard,
            self.engine,
            treasury_address=treasury_address,
            explorer_url=cfg.explorer_url,
            network=cfg.network.name,
            limits=cfg.limits,
        )

    async def close(self) -> None:
        for client in self.clients:
            await client.close()

    async def __aenter__(self) -> "TreasuryContext":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()
