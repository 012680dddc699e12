"""Treasury balance guard - advises whether the treasury can cover a transaction."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Mapping

from casino_treasury.errors import InsufficientFunds, InsufficientFundsWarning
from casino_treasury.flow import cadence
from casino_treasury.flow.retry import RetryPolicy
from casino_treasury.flow.templates import (
    BALANCE_SCRIPT,
    VAULT_BALANCE_SCRIPT,
    resolve_imports,
)
from casino_treasury.models.treasury import BalanceDecision, TreasuryAccountView

log = logging.getLogger(__name__)


class TreasuryBalanceGuard:
    """Reads the treasury balance before sponsored transactions.

    Soft-fail: an unreadable balance or a shortfall still lets the request
    proceed (the ledger rejects underfunded transfers anyway). With
    ``enforce=True`` a known shortfall raises InsufficientFunds instead.
    """

    def __init__(
        self,
        retry: RetryPolicy,
        treasury_address: str,
        contract_addresses: Mapping[str, str],
        estimated_fee: Decimal = Decimal("0.001"),
        enforce: bool = False,
    ) -> None:
        self._retry = retry
        self._address = treasury_address
        self._addresses = dict(contract_addresses)
        self._estimated_fee = estimated_fee
        self._enforce = enforce

    @property
    def enforce(self) -> bool:
        return self._enforce

    async def _run_balance(self, script: str) -> Decimal | None:
        arg = cadence.encode(self._address, "Address")
        value = await self._retry.call(lambda c: c.query(script, [arg]), op="balance query")
        if value is None:
            return None
        return Decimal(str(value))

    async def _primary_balance(self) -> Decimal | None:
        try:
            return await self._run_balance(BALANCE_SCRIPT)
        except Exception as exc:
            log.warning("Primary treasury balance query failed: %s", exc)
            return None

    async def _vault_balance(self) -> Decimal | None:
        try:
            script = resolve_imports(VAULT_BALANCE_SCRIPT, self._addresses)
            return await self._run_balance(script)
        except Exception as exc:
            log.warning("Vault balance query failed: %s", exc)
            return None

    async def account_view(self) -> TreasuryAccountView:
        primary = await self._primary_balance()
        secondary = None
        if not primary:
            secondary = await self._vault_balance()
        return TreasuryAccountView(
            address=self._address,
            primary_balance=primary,
            secondary_balance=secondary,
            observed_at=datetime.now(timezone.utc).isoformat(),
        )

    async def check_sufficient(self, required: Decimal) -> BalanceDecision:
        required = Decimal(str(required))
        if not self._address:
            log.warning("Treasury address not configured; skipping balance check")
            return BalanceDecision(
                proceed=True, available=None, required=required,
                known=False, sufficient=None, source="unknown",
            )

        view = await self.account_view()
        available = view.available
        if view.primary_balance:
            source = "primary"
        elif view.secondary_balance is not None:
            source = "vault"
        elif view.primary_balance is not None:
            source = "primary"
        else:
            source = "unknown"

        if available is None:
            log.warning("Could not read treasury balance; proceeding without check")
            return BalanceDecision(
                proceed=True, available=None, required=required,
                known=False, sufficient=None, source="unknown",
            )

        needed = required + self._estimated_fee
        if available >= needed:
            log.debug("Treasury balance %s covers %s (%s)", available, needed, source)
            return BalanceDecision(
                proceed=True, available=available, required=required,
                known=True, sufficient=True, source=source,
            )

        warning = InsufficientFundsWarning(available, needed)
        if self._enforce:
            log.error("Treasury balance %s below required %s; blocking", available, needed)
            raise InsufficientFunds(
                "insufficient treasury balance",
                available=str(available),
                required=str(needed),
            )
        log.warning("%s; proceeding, ledger will reject if underfunded", warning)
        return BalanceDecision(
            proceed=True, available=available, required=required,
            known=True, sufficient=False, source=source, warning=warning,
        )
