"""ResultExtractor protocol - turns sealed transactions into game outcomes."""

from __future__ import annotations

from typing import Protocol

from casino_treasury.models.outcomes import GameOutcome, GameType
from casino_treasury.models.transactions import SealedTransactionResult


class ResultExtractor(Protocol):
    def extract(
        self,
        sealed: SealedTransactionResult,
        game_type: GameType,
    ) -> GameOutcome:
        """Parse the game result from events, falling back to text output."""
        ...
