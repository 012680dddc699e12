"""JSON-serializable responses returned by the gateway operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class DepositResponse:
    deposit_id: str
    amount: float
    user_address: str
    treasury_address: str
    status: str  # "confirmed" | "pending" | "failed"
    timestamp: str
    explorer_url: str | None = None
    currency: str = "FLOW"

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.status != "failed",
            "depositId": self.deposit_id,
            "amount": self.amount,
            "userAddress": self.user_address,
            "treasuryAddress": self.treasury_address,
            "currency": self.currency,
            "status": self.status,
            "timestamp": self.timestamp,
            "explorerUrl": self.explorer_url,
        }


@dataclass
class WithdrawResponse:
    transaction_id: str
    status: str  # "sealed" | "failed" | "expired"
    amount: float
    user_address: str
    treasury_address: str
    block_id: str | None = None
    events: list[dict[str, Any]] = field(default_factory=list)
    error_message: str | None = None
    explorer_url: str | None = None
    balance_known: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.status == "sealed",
            "transactionId": self.transaction_id,
            "status": self.status,
            "amount": self.amount,
            "userAddress": self.user_address,
            "treasuryAddress": self.treasury_address,
            "blockId": self.block_id,
            "events": self.events,
            "errorMessage": self.error_message,
            "explorerUrl": self.explorer_url,
            "currency": "FLOW",
        }


@dataclass
class GameVRFResponse:
    random_number: int
    game_result: dict[str, Any]
    transaction_id: str
    block_id: str | None
    block_height: int | None
    game_type: str
    user_address: str
    bet_amount: float
    explorer_url: str
    seed_assurance: str = "committed"  # "committed" | "low"

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "randomNumber": self.random_number,
            "gameResult": self.game_result,
            "transactionId": self.transaction_id,
            "blockId": self.block_id,
            "blockHeight": self.block_height,
            "gameType": self.game_type,
            "userAddress": self.user_address,
            "betAmount": self.bet_amount,
            "explorerUrl": self.explorer_url,
            "seedAssurance": self.seed_assurance,
        }


@dataclass
class EntropyResponse:
    random_value: str
    request_id: str
    commit_tx: str
    reveal_tx: str
    block_id: str | None
    block_height: int | None
    explorer_url: str
    commitment: str | None
    network: str
    game_type: str | None = None
    generated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "randomValue": self.random_value,
            "entropyProof": {
                "requestId": self.request_id,
                "commitTx": self.commit_tx,
                "revealTx": self.reveal_tx,
                "transactionHash": self.reveal_tx,
                "blockId": self.block_id,
                "blockNumber": self.block_height,
                "commitment": self.commitment,
                "explorerUrl": self.explorer_url,
                "network": f"flow-{self.network}",
                "source": "Flow VRF",
            },
            "metadata": {
                "source": "Flow VRF",
                "network": f"flow-{self.network}",
                "algorithm": "commit-reveal",
                "gameType": self.game_type,
                "generatedAt": self.generated_at,
            },
        }
