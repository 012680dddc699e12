"""Treasury account snapshots and balance-guard decisions."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from casino_treasury.errors import InsufficientFundsWarning


@dataclass(frozen=True)
class TreasuryAccountView:
    """Balances as observed at query time. Not a live reference."""

    address: str
    primary_balance: Decimal | None
    secondary_balance: Decimal | None = None
    observed_at: str = ""

    @property
    def available(self) -> Decimal | None:
        if self.primary_balance:
            return self.primary_balance
        if self.secondary_balance is not None:
            return self.secondary_balance
        return self.primary_balance


@dataclass(frozen=True)
class BalanceDecision:
    """Advice from the balance guard.

    ``known`` is False when no balance could be read; ``available`` is then
    None and ``proceed`` is still True.
    """

    proceed: bool
    available: Decimal | None
    required: Decimal
    known: bool
    sufficient: bool | None
    source: str  # "primary" | "vault" | "unknown"
    warning: InsufficientFundsWarning | None = None
