"""Treasury policy - balance checks before sponsored transactions."""

from casino_treasury.policy.guard import TreasuryBalanceGuard

__all__ = ["TreasuryBalanceGuard"]
