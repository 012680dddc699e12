"""Seeds, salts, request ids and commitments for the commit/reveal protocol."""

from __future__ import annotations

import hashlib
import hmac
import secrets
import time

SALT_LENGTH = 16  # bytes


def new_seed(length: int = 32) -> str:
    """Hex-encoded seed from the OS CSPRNG."""
    if length < 16:
        raise ValueError(f"seed length must be at least 16 bytes, got {length}")
    return secrets.token_hex(length)


def new_salt(length: int = SALT_LENGTH) -> str:
    return secrets.token_hex(length)


def new_request_id(prefix: str = "api", game_type: str | None = None) -> str:
    """``{prefix}_{game}_{ms}_{token}``, unique per call."""
    game = (game_type or "entropy").lower()
    return f"{prefix}_{game}_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


def commitment_hash(salt: str, request_id: str, seed: str) -> str:
    """sha3_256(salt || request_id || seed), hex encoded."""
    return hashlib.sha3_256(f"{salt}{request_id}{seed}".encode("utf-8")).hexdigest()


def verify_commitment(commitment: str, salt: str, request_id: str, seed: str) -> bool:
    return hmac.compare_digest(commitment, commitment_hash(salt, request_id, seed))
