"""BalanceGuard protocol - advises whether the treasury can sponsor a transaction."""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from casino_treasury.models.treasury import BalanceDecision, TreasuryAccountView


class BalanceGuard(Protocol):
    async def check_sufficient(self, required: Decimal) -> BalanceDecision:
        """Return advice. Only raises when hard enforcement is configured."""
        ...

    async def account_view(self) -> TreasuryAccountView:
        """Snapshot of the treasury balances."""
        ...
