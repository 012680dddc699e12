"""Flow ledger integration components."""

from casino_treasury.flow.access import FlowAccessClient
from casino_treasury.flow.extractor import GameResultExtractor
from casino_treasury.flow.retry import RetryPolicy
from casino_treasury.flow.signer import TreasurySigner
from casino_treasury.flow.submitter import FlowTransactionSubmitter
from casino_treasury.flow.waiter import PollingSealWaiter

__all__ = [
    "FlowAccessClient",
    "GameResultExtractor",
    "RetryPolicy",
    "TreasurySigner",
    "FlowTransactionSubmitter",
    "PollingSealWaiter",
]
