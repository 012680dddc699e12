"""Domain views derived from sealed transactions: game outcomes and entropy."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from casino_treasury.models.transactions import SealStatus


class GameType(str, Enum):
    ROULETTE = "ROULETTE"
    MINES = "MINES"
    PLINKO = "PLINKO"
    WHEEL = "WHEEL"

    @classmethod
    def parse(cls, value: str) -> "GameType":
        """Case-insensitive lookup. Raises ValueError for unknown games."""
        return cls(str(value).strip().upper())

    @property
    def operation(self) -> str:
        """Name of the transaction template that plays this game."""
        return f"play_{self.value.lower()}"


# Fields each game's result map must carry.
REQUIRED_RESULT_FIELDS: dict[GameType, tuple[str, ...]] = {
    GameType.ROULETTE: ("winningNumber",),
    GameType.MINES: ("hitMine",),
    GameType.PLINKO: ("finalPosition",),
    GameType.WHEEL: ("winningSegment",),
}


def missing_result_fields(game_type: GameType, payload: dict[str, Any]) -> list[str]:
    return [f for f in REQUIRED_RESULT_FIELDS[game_type] if f not in payload]


@dataclass(frozen=True)
class ExtractionMetadata:
    """Where an outcome's data came from.

    ``low_assurance`` is set when the seed was derived from the transaction
    id rather than read from the protocol's committed seed.
    """

    source: str = "event"  # "event" | "text_report"
    seed_source: str = "event"  # "event" | "text_report" | "transaction_id"
    low_assurance: bool = False
    event_type: str | None = None


@dataclass(frozen=True)
class GameOutcome:
    game_type: GameType
    player: str
    bet_amount: Decimal
    result_payload: dict[str, str]
    payout: Decimal
    random_seed: int
    transaction_id: str = ""
    block_id: str | None = None
    metadata: ExtractionMetadata = field(default_factory=ExtractionMetadata)

    def __post_init__(self) -> None:
        if self.payout < 0:
            raise ValueError(f"payout must be >= 0, got {self.payout}")
        missing = missing_result_fields(self.game_type, self.result_payload)
        if missing:
            raise ValueError(
                f"{self.game_type.value} result missing fields: {', '.join(missing)}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "gameType": self.game_type.value,
            "player": self.player,
            "betAmount": str(self.bet_amount),
            "payout": str(self.payout),
            "result": dict(self.result_payload),
            "randomSeed": self.random_seed,
        }


@dataclass(frozen=True)
class EntropyRequest:
    """Provenance of one commit/reveal round.

    ``random_value`` may only be present once both phases sealed successfully.
    """

    request_id: str
    commit_tx: str | None = None
    reveal_tx: str | None = None
    random_value: str | None = None
    commit_status: SealStatus | None = None
    reveal_status: SealStatus | None = None
    commitment: str | None = None
    commit_block_id: str | None = None
    reveal_block_id: str | None = None
    reveal_block_height: int | None = None

    def __post_init__(self) -> None:
        if self.random_value is not None and not (
            self.commit_status is SealStatus.SEALED_OK
            and self.reveal_status is SealStatus.SEALED_OK
        ):
            raise ValueError(
                "random value requires both commit and reveal to be SEALED_OK"
            )

    @property
    def complete(self) -> bool:
        return self.random_value is not None
