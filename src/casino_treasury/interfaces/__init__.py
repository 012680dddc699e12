"""Protocol interfaces for all casino_treasury components."""

from casino_treasury.interfaces.ledger import LedgerClient
from casino_treasury.interfaces.submitter import TransactionSubmitter
from casino_treasury.interfaces.waiter import SealWaiter
from casino_treasury.interfaces.extractor import ResultExtractor
from casino_treasury.interfaces.guard import BalanceGuard
from casino_treasury.interfaces.entropy import EntropyEngine

__all__ = [
    "LedgerClient",
    "TransactionSubmitter",
    "SealWaiter",
    "ResultExtractor",
    "BalanceGuard",
    "EntropyEngine",
]
