"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from decimal import Decimal, InvalidOperation
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from casino_treasury.errors import ConfigurationError
from casino_treasury.models.config import CasinoConfig, CommitmentMode


def _decimal(section: str, key: str, value) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ConfigurationError(f"[{section}] {key}: not a number: {value!r}") from None


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "CASINO_",
) -> CasinoConfig:
    """Load service configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (CASINO_TREASURY_PRIVATE_KEY, etc.)
        2. TOML config file
        3. Defaults from CasinoConfig and the network table
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = CasinoConfig()

    # ── Network section ────────────────────────────────────
    network = raw.get("network", {})
    if v := network.get("name"):
        cfg.network.name = str(v)
    if v := network.get("access_nodes"):
        cfg.network.access_nodes = [str(n) for n in v]
    if v := network.get("explorer_url"):
        cfg.network.explorer_url = str(v)
    if v := network.get("request_timeout"):
        cfg.network.request_timeout = float(v)

    # ── Treasury section ───────────────────────────────────
    treasury = raw.get("treasury", {})
    if v := treasury.get("address"):
        cfg.treasury.address = str(v)
    if v := treasury.get("private_key"):
        cfg.treasury.private_key = str(v)
    if (v := treasury.get("key_index")) is not None:
        cfg.treasury.key_index = int(v)
    if v := treasury.get("signature_algorithm"):
        cfg.treasury.signature_algorithm = str(v)
    if v := treasury.get("hash_algorithm"):
        cfg.treasury.hash_algorithm = str(v)
    if v := treasury.get("gas_limit"):
        cfg.treasury.gas_limit = int(v)

    # ── Contracts section ──────────────────────────────────
    contracts = raw.get("contracts", {})
    if v := contracts.get("casino"):
        cfg.contracts.casino = str(v)
    if v := contracts.get("vrf"):
        cfg.contracts.vrf = str(v)
    if v := contracts.get("flow_token"):
        cfg.contracts.flow_token = str(v)
    if v := contracts.get("fungible_token"):
        cfg.contracts.fungible_token = str(v)

    # ── Retry section ──────────────────────────────────────
    retry = raw.get("retry", {})
    if v := retry.get("max_attempts"):
        cfg.retry.max_attempts = int(v)
    if (v := retry.get("base_delay")) is not None:
        cfg.retry.base_delay = float(v)
    if v := retry.get("max_delay"):
        cfg.retry.max_delay = float(v)

    # ── Seal section ───────────────────────────────────────
    seal = raw.get("seal", {})
    if v := seal.get("timeout"):
        cfg.seal.timeout = float(v)
    if v := seal.get("poll_interval"):
        cfg.seal.poll_interval = float(v)

    # ── VRF section ────────────────────────────────────────
    vrf = raw.get("vrf", {})
    if (v := vrf.get("reveal_delay_blocks")) is not None:
        cfg.vrf.reveal_delay_blocks = int(v)
    if v := vrf.get("seed_length"):
        cfg.vrf.seed_length = int(v)
    if v := vrf.get("commitment"):
        try:
            cfg.vrf.commitment = CommitmentMode(str(v).lower())
        except ValueError:
            raise ConfigurationError(f"[vrf] commitment must be 'hash' or 'raw', got {v!r}") from None
    if v := vrf.get("block_poll_interval"):
        cfg.vrf.block_poll_interval = float(v)
    if v := vrf.get("delay_timeout"):
        cfg.vrf.delay_timeout = float(v)
    if v := vrf.get("request_prefix"):
        cfg.vrf.request_prefix = str(v)

    # ── Limits section ─────────────────────────────────────
    limits = raw.get("limits", {})
    for key in ("min_bet", "max_bet", "min_withdraw", "max_withdraw", "estimated_fee"):
        if (v := limits.get(key)) is not None:
            setattr(cfg.limits, key, _decimal("limits", key, v))
    if (v := limits.get("enforce_balance")) is not None:
        cfg.limits.enforce_balance = bool(v)
    if (v := limits.get("verify_deposits")) is not None:
        cfg.limits.verify_deposits = bool(v)

    # ── Logging section ────────────────────────────────────
    logging_raw = raw.get("logging", {})
    if v := logging_raw.get("level"):
        cfg.log_level = str(v)

    # ── Environment variable overrides (highest priority) ──
    if key := os.environ.get(f"{env_prefix}TREASURY_PRIVATE_KEY"):
        cfg.treasury.private_key = key
    if addr := os.environ.get(f"{env_prefix}TREASURY_ADDRESS"):
        cfg.treasury.address = addr
    if net := os.environ.get(f"{env_prefix}NETWORK"):
        cfg.network.name = net
    if node := os.environ.get(f"{env_prefix}ACCESS_NODE"):
        cfg.network.access_nodes = [n.strip() for n in node.split(",") if n.strip()]
    if casino := os.environ.get(f"{env_prefix}CASINO_CONTRACT"):
        cfg.contracts.casino = casino
    if vrf_addr := os.environ.get(f"{env_prefix}VRF_CONTRACT"):
        cfg.contracts.vrf = vrf_addr

    _validate(cfg)
    return cfg


def _validate(cfg: CasinoConfig) -> None:
    limits = cfg.limits
    if limits.min_bet <= 0 or limits.max_bet < limits.min_bet:
        raise ConfigurationError("[limits] bet range is invalid")
    if limits.min_withdraw <= 0 or limits.max_withdraw < limits.min_withdraw:
        raise ConfigurationError("[limits] withdrawal range is invalid")
    if cfg.vrf.seed_length < 16:
        raise ConfigurationError("[vrf] seed_length must be at least 16 bytes")
    if cfg.retry.max_attempts < 1:
        raise ConfigurationError("[retry] max_attempts must be at least 1")
