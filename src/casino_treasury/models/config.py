"""Configuration models for the treasury service."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class CommitmentMode(str, Enum):
    """What the VRF commit transaction publishes."""

    HASH = "hash"  # sha3_256(salt || request_id || seed), pre-image revealed later
    RAW = "raw"  # the seed itself, visible on-chain before reveal


@dataclass(frozen=True)
class NetworkDefaults:
    access_nodes: tuple[str, ...]
    explorer_url: str
    flow_token: str
    fungible_token: str


NETWORKS: dict[str, NetworkDefaults] = {
    "testnet": NetworkDefaults(
        access_nodes=(
            "https://rest-testnet.onflow.org",
            "https://testnet.onflow.org",
            "https://access-testnet.onflow.org",
        ),
        explorer_url="https://testnet.flowscan.io",
        flow_token="0x7e60df042a9c0868",
        fungible_token="0x9a0766d93b6608b7",
    ),
    "mainnet": NetworkDefaults(
        access_nodes=("https://rest-mainnet.onflow.org",),
        explorer_url="https://flowscan.io",
        flow_token="0x1654653399040a61",
        fungible_token="0xf233dcee88fe0abe",
    ),
}


@dataclass
class NetworkConfig:
    name: str = "testnet"
    access_nodes: list[str] = field(default_factory=list)  # empty = network defaults
    explorer_url: str = ""
    request_timeout: float = 10.0  # seconds per HTTP call


@dataclass
class TreasuryConfig:
    address: str = ""
    private_key: str = ""  # hex; loaded from env var CASINO_TREASURY_PRIVATE_KEY
    key_index: int = 0
    signature_algorithm: str = "ECDSA_P256"
    hash_algorithm: str = "SHA3_256"
    gas_limit: int = 9999


@dataclass
class ContractsConfig:
    casino: str = ""  # CasinoGames contract account
    vrf: str = ""  # FlowVRF contract account
    flow_token: str = ""  # empty = network default
    fungible_token: str = ""


@dataclass
class RetryConfig:
    max_attempts: int = 3
    base_delay: float = 0.5  # seconds, doubled per attempt
    max_delay: float = 5.0


@dataclass
class SealConfig:
    timeout: float = 30.0  # seconds; bet-processing SLA
    poll_interval: float = 1.0


@dataclass
class VRFConfig:
    reveal_delay_blocks: int = 1
    seed_length: int = 32  # bytes
    commitment: CommitmentMode = CommitmentMode.HASH
    block_poll_interval: float = 1.0
    delay_timeout: float = 60.0
    request_prefix: str = "api"


@dataclass
class LimitsConfig:
    min_bet: Decimal = Decimal("0.001")
    max_bet: Decimal = Decimal("100")
    min_withdraw: Decimal = Decimal("0.001")
    max_withdraw: Decimal = Decimal("1000")
    estimated_fee: Decimal = Decimal("0.001")
    enforce_balance: bool = False  # hard-block known shortfalls
    verify_deposits: bool = False


@dataclass
class CasinoConfig:
    """Complete service configuration."""

    network: NetworkConfig = field(default_factory=NetworkConfig)
    treasury: TreasuryConfig = field(default_factory=TreasuryConfig)
    contracts: ContractsConfig = field(default_factory=ContractsConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    seal: SealConfig = field(default_factory=SealConfig)
    vrf: VRFConfig = field(default_factory=VRFConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    log_level: str = "info"

    @property
    def network_defaults(self) -> NetworkDefaults:
        return NETWORKS.get(self.network.name, NETWORKS["testnet"])

    @property
    def access_nodes(self) -> list[str]:
        return list(self.network.access_nodes or self.network_defaults.access_nodes)

    @property
    def explorer_url(self) -> str:
        return (self.network.explorer_url or self.network_defaults.explorer_url).rstrip("/")

    def contract_addresses(self) -> dict[str, str]:
        """Import aliases resolved into Cadence templates."""
        defaults = self.network_defaults
        return {
            "CasinoGames": self.contracts.casino,
            "FlowVRF": self.contracts.vrf,
            "FlowToken": self.contracts.flow_token or defaults.flow_token,
            "FungibleToken": self.contracts.fungible_token or defaults.fungible_token,
        }
