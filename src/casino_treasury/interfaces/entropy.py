"""EntropyEngine protocol - verifiable randomness via commit/reveal."""

from __future__ import annotations

from typing import Protocol

from casino_treasury.models.outcomes import EntropyRequest


class EntropyEngine(Protocol):
    async def generate_random(
        self,
        request_id: str | None = None,
        seed: str | None = None,
        game_type: str | None = None,
    ) -> EntropyRequest:
        """Commit, wait, reveal, then read the derived random value."""
        ...
