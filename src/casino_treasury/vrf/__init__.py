"""Commit/reveal randomness."""

from casino_treasury.vrf.engine import CommitRevealEngine

__all__ = ["CommitRevealEngine"]
