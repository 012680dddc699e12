"""Treasury signing identity - RLP envelope encoding and ECDSA signatures.

The treasury is proposer, payer and sole authorizer of every sponsored
transaction, so a single envelope signature is enough.
"""

from __future__ import annotations

import base64
import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Sequence

import rlp
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from casino_treasury.errors import ConfigurationError

log = logging.getLogger(__name__)

TRANSACTION_DOMAIN_TAG = b"FLOW-V0.0-transaction".ljust(32, b"\x00")

_CURVES = {
    "ECDSA_P256": ec.SECP256R1,
    "ECDSA_SECP256K1": ec.SECP256K1,
}
_HASHES = {
    "SHA3_256": hashes.SHA3_256,
    "SHA2_256": hashes.SHA256,
}


def address_bytes(address: str) -> bytes:
    """8-byte big-endian form of a Flow address (``0x`` optional)."""
    raw = address[2:] if address.startswith("0x") else address
    return bytes.fromhex(raw.rjust(16, "0"))


def normalize_address(address: str) -> str:
    return "0x" + address_bytes(address).hex()


@dataclass(frozen=True)
class EnvelopeFields:
    """Everything covered by the envelope signature."""

    script: str
    arguments: tuple[bytes, ...]
    reference_block_id: str
    gas_limit: int
    proposer: str
    key_index: int
    sequence_number: int
    payer: str
    authorizers: tuple[str, ...]

    def payload(self) -> list[Any]:
        return [
            self.script.encode("utf-8"),
            list(self.arguments),
            bytes.fromhex(self.reference_block_id),
            self.gas_limit,
            address_bytes(self.proposer),
            self.key_index,
            self.sequence_number,
            address_bytes(self.payer),
            [address_bytes(a) for a in self.authorizers],
        ]

    def envelope_message(self) -> bytes:
        """Domain-tagged bytes the payer signs (no payload signatures)."""
        return TRANSACTION_DOMAIN_TAG + rlp.encode([self.payload(), []])

    def transaction_id(self, envelope_signature: bytes) -> str:
        """Id the network will assign to the signed transaction."""
        encoded = rlp.encode([
            self.payload(),
            [],
            [[0, self.key_index, envelope_signature]],
        ])
        return hashlib.sha3_256(encoded).hexdigest()


@dataclass(frozen=True)
class SignedTransaction:
    """A signed transaction body ready for the access API."""

    transaction_id: str
    body: dict[str, Any]
    sequence_number: int


class TreasurySigner:
    """ECDSA signer for the treasury account key."""

    def __init__(
        self,
        address: str,
        private_key_hex: str,
        key_index: int = 0,
        signature_algorithm: str = "ECDSA_P256",
        hash_algorithm: str = "SHA3_256",
    ) -> None:
        if not address:
            raise ConfigurationError("treasury address is not configured")
        if not private_key_hex:
            raise ConfigurationError("treasury private key is not configured")

        curve = _CURVES.get(signature_algorithm.upper())
        if curve is None:
            raise ConfigurationError(f"unsupported signature algorithm: {signature_algorithm}")
        hash_cls = _HASHES.get(hash_algorithm.upper())
        if hash_cls is None:
            raise ConfigurationError(f"unsupported hash algorithm: {hash_algorithm}")

        try:
            secret = int(private_key_hex.removeprefix("0x"), 16)
            self._key = ec.derive_private_key(secret, curve())
        except ValueError as exc:
            raise ConfigurationError(f"invalid treasury private key: {exc}") from exc

        self._hash_cls = hash_cls
        self.address = normalize_address(address)
        self.key_index = key_index

    @property
    def public_key_hex(self) -> str:
        """Uncompressed public key without the 0x04 prefix, as Flow stores it."""
        point = self._key.public_key().public_bytes(
            Encoding.X962, PublicFormat.UncompressedPoint,
        )
        return point[1:].hex()

    def sign(self, message: bytes) -> bytes:
        """Sign and return the raw 64-byte r||s signature."""
        der = self._key.sign(message, ec.ECDSA(self._hash_cls()))
        r, s = decode_dss_signature(der)
        return r.to_bytes(32, "big") + s.to_bytes(32, "big")

    def sign_transaction(
        self,
        script: str,
        arguments: Sequence[bytes],
        reference_block_id: str,
        sequence_number: int,
        gas_limit: int,
    ) -> SignedTransaction:
        """Build the envelope for a treasury-sponsored transaction and sign it."""
        fields = EnvelopeFields(
            script=script,
            arguments=tuple(arguments),
            reference_block_id=reference_block_id,
            gas_limit=gas_limit,
            proposer=self.address,
            key_index=self.key_index,
            sequence_number=sequence_number,
            payer=self.address,
            authorizers=(self.address,),
        )
        signature = self.sign(fields.envelope_message())
        tx_id = fields.transaction_id(signature)
        addr = self.address[2:]

        body = {
            "script": base64.b64encode(script.encode("utf-8")).decode("ascii"),
            "arguments": [base64.b64encode(a).decode("ascii") for a in arguments],
            "reference_block_id": reference_block_id,
            "gas_limit": str(gas_limit),
            "payer": addr,
            "proposal_key": {
                "address": addr,
                "key_index": str(self.key_index),
                "sequence_number": str(sequence_number),
            },
            "authorizers": [addr],
            "payload_signatures": [],
            "envelope_signatures": [
                {
                    "address": addr,
                    "key_index": str(self.key_index),
                    "signature": base64.b64encode(signature).decode("ascii"),
                }
            ],
        }
        log.debug("Signed tx %s (seq=%d)", tx_id[:16], sequence_number)
        return SignedTransaction(transaction_id=tx_id, body=body, sequence_number=sequence_number)
