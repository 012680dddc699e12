"""Ledger transaction models: requests, pending handles and sealed results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SealStatus(str, Enum):
    """Terminal classification of an awaited transaction."""

    SEALED_OK = "SEALED_OK"
    SEALED_FAILED = "SEALED_FAILED"
    EXPIRED = "EXPIRED"  # deadline passed, fate unknown


class LedgerStatus(str, Enum):
    """Transaction status as reported by the Flow access API."""

    UNKNOWN = "Unknown"
    PENDING = "Pending"
    FINALIZED = "Finalized"
    EXECUTED = "Executed"
    SEALED = "Sealed"
    EXPIRED = "Expired"

    @classmethod
    def parse(cls, value: Any) -> "LedgerStatus":
        try:
            return cls(str(value).capitalize())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class Argument:
    """One typed transaction argument, in template parameter order."""

    name: str
    cadence_type: str
    value: Any


@dataclass(frozen=True)
class TransactionRequest:
    """A fully validated transaction ready to be signed."""

    operation: str
    arguments: tuple[Argument, ...]
    signer: str  # treasury address for sponsored flows
    script: str = ""
    template_version: int = 1


@dataclass(frozen=True)
class PendingTransaction:
    """Opaque handle returned at submission time."""

    transaction_id: str
    operation: str = ""
    submitted_at: str = ""


@dataclass(frozen=True)
class LedgerEvent:
    """An event emitted by a transaction.

    ``fields`` is None when the payload could not be decoded; ``raw`` then
    carries its text for the degraded parser.
    """

    type: str
    fields: dict[str, Any] | None = None
    transaction_id: str = ""
    event_index: int = 0
    raw: str | None = None


@dataclass(frozen=True)
class TransactionStatusView:
    """One observation of a transaction's status (not necessarily terminal)."""

    transaction_id: str
    status: LedgerStatus
    status_code: int = 0
    block_id: str | None = None
    events: tuple[LedgerEvent, ...] = ()
    error_message: str | None = None
    raw_output: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (LedgerStatus.SEALED, LedgerStatus.EXPIRED)


@dataclass(frozen=True)
class SealedTransactionResult:
    """Terminal result of awaiting a transaction. Produced only by SealWaiter."""

    transaction_id: str
    status: SealStatus
    block_id: str | None = None
    block_height: int | None = None
    events: tuple[LedgerEvent, ...] = ()
    error_message: str | None = None
    raw_output: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is SealStatus.SEALED_OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "transactionId": self.transaction_id,
            "status": self.status.value,
            "blockId": self.block_id,
            "blockHeight": self.block_height,
            "events": [
                {"type": e.type, "data": e.fields, "eventIndex": e.event_index}
                for e in self.events
            ],
            "errorMessage": self.error_message,
        }


@dataclass(frozen=True)
class BlockHeader:
    id: str
    height: int
    parent_id: str = ""
    timestamp: str = ""


@dataclass(frozen=True)
class AccountKey:
    index: int
    sequence_number: int
    public_key: str = ""
    weight: int = 1000
    revoked: bool = False


@dataclass(frozen=True)
class AccountInfo:
    address: str
    balance: int = 0  # smallest units (1e-8 FLOW)
    keys: tuple[AccountKey, ...] = field(default_factory=tuple)

    def key(self, index: int) -> AccountKey | None:
        for k in self.keys:
            if k.index == index:
                return k
        return None
