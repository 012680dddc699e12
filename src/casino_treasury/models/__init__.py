"""Data models for casino_treasury."""

from casino_treasury.models.transactions import (
    AccountInfo,
    AccountKey,
    Argument,
    BlockHeader,
    LedgerEvent,
    LedgerStatus,
    PendingTransaction,
    SealedTransactionResult,
    SealStatus,
    TransactionRequest,
    TransactionStatusView,
)
from casino_treasury.models.outcomes import (
    EntropyRequest,
    ExtractionMetadata,
    GameOutcome,
    GameType,
    REQUIRED_RESULT_FIELDS,
)
from casino_treasury.models.treasury import BalanceDecision, TreasuryAccountView
from casino_treasury.models.config import (
    CasinoConfig,
    CommitmentMode,
    ContractsConfig,
    LimitsConfig,
    NetworkConfig,
    RetryConfig,
    SealConfig,
    TreasuryConfig,
    VRFConfig,
)
from casino_treasury.models.responses import (
    DepositResponse,
    EntropyResponse,
    GameVRFResponse,
    WithdrawResponse,
)

__all__ = [
    "AccountInfo", "AccountKey", "Argument", "BlockHeader", "LedgerEvent",
    "LedgerStatus", "PendingTransaction", "SealedTransactionResult", "SealStatus",
    "TransactionRequest", "TransactionStatusView",
    "EntropyRequest", "ExtractionMetadata", "GameOutcome", "GameType",
    "REQUIRED_RESULT_FIELDS",
    "BalanceDecision", "TreasuryAccountView",
    "CasinoConfig", "CommitmentMode", "ContractsConfig", "LimitsConfig",
    "NetworkConfig", "RetryConfig", "SealConfig", "TreasuryConfig", "VRFConfig",
    "DepositResponse", "EntropyResponse", "GameVRFResponse", "WithdrawResponse",
]
