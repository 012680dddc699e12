"""Versioned Cadence templates for every treasury-sponsored operation.

Templates import contracts through placeholders (``import CasinoGames from
0xCasinoGames``) that are resolved against the configured contract
addresses at submission time. Each template declares its parameters so
arguments can be validated and coerced before anything is signed.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from casino_treasury.errors import ConfigurationError, ValidationError
from casino_treasury.flow import cadence
from casino_treasury.models.transactions import Argument

ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{16}$")

_IMPORT_RE = re.compile(r"^(\s*import\s+\w+\s+from\s+)0x(\w+)[ \t]*$", re.MULTILINE)
_HEX_RE = re.compile(r"^[a-fA-F0-9]{1,16}$")

_UINT_BOUNDS = {"UInt8": 2 ** 8 - 1, "UInt64": 2 ** 64 - 1}


def resolve_imports(source: str, addresses: Mapping[str, str]) -> str:
    """Replace ``0xAlias`` import placeholders with configured addresses."""

    def _sub(match: re.Match) -> str:
        prefix, target = match.group(1), match.group(2)
        if target in addresses:
            addr = addresses[target]
            if not addr:
                raise ConfigurationError(f"contract address for {target} is not configured")
            return f"{prefix}{addr if addr.startswith('0x') else '0x' + addr}"
        if _HEX_RE.match(target):
            return match.group(0)
        raise ConfigurationError(f"unknown contract import alias: 0x{target}")

    return _IMPORT_RE.sub(_sub, source)


# ── Argument coercion ──────────────────────────────────────


def coerce(name: str, value: Any, cadence_type: str) -> Any:
    """Validate ``value`` against a Cadence type, returning the normalized value."""
    if cadence_type.startswith("[") and cadence_type.endswith("]"):
        inner = cadence_type[1:-1]
        if isinstance(value, str):
            try:
                value = json.loads(value or "[]")
            except ValueError:
                raise ValidationError(f"{name}: expected a list, got {value!r}") from None
        if not isinstance(value, (list, tuple)):
            raise ValidationError(f"{name}: expected a list, got {type(value).__name__}")
        return [coerce(f"{name}[{i}]", v, inner) for i, v in enumerate(value)]

    if cadence_type == "Address":
        addr = str(value).strip()
        if not addr.startswith("0x"):
            addr = f"0x{addr}"
        if not ADDRESS_RE.match(addr):
            raise ValidationError(f"{name}: invalid Flow address {value!r}")
        return addr.lower()

    if cadence_type == "UFix64":
        if isinstance(value, bool):
            raise ValidationError(f"{name}: expected an amount, got a boolean")
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{name}: invalid amount {value!r}") from None
        if not amount.is_finite() or amount < 0 or amount > cadence.UFIX64_MAX:
            raise ValidationError(f"{name}: amount out of range: {value!r}")
        return amount.quantize(cadence.UFIX64_PLACES)

    if cadence_type in _UINT_BOUNDS:
        if isinstance(value, bool):
            raise ValidationError(f"{name}: expected an integer, got a boolean")
        try:
            number = int(str(value).strip())
        except ValueError:
            raise ValidationError(f"{name}: invalid integer {value!r}") from None
        if not 0 <= number <= _UINT_BOUNDS[cadence_type]:
            raise ValidationError(f"{name}: {number} out of range for {cadence_type}")
        return number

    if cadence_type == "Bool":
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in ("true", "1"):
            return True
        if text in ("false", "0"):
            return False
        raise ValidationError(f"{name}: invalid boolean {value!r}")

    if cadence_type == "String":
        if isinstance(value, (dict, list, tuple)):
            raise ValidationError(f"{name}: expected a string")
        return str(value)

    raise ValidationError(f"{name}: unsupported parameter type {cadence_type}")


@dataclass(frozen=True)
class Param:
    name: str
    cadence_type: str
    required: bool = True
    default: Any = None
    aliases: tuple[str, ...] = ()


@dataclass(frozen=True)
class Template:
    """A Cadence transaction or script with its declared parameters."""

    operation: str
    version: int
    params: tuple[Param, ...]
    source: str

    def render(self, addresses: Mapping[str, str]) -> str:
        return resolve_imports(self.source, addresses)

    def bind(self, args: Mapping[str, Any]) -> tuple[Argument, ...]:
        """Map caller arguments onto the parameter list, in declared order."""
        bound = []
        for param in self.params:
            value = None
            for key in (param.name, *param.aliases):
                if args.get(key) is not None:
                    value = args[key]
                    break
            if value is None:
                if param.required:
                    raise ValidationError(
                        f"{self.operation}: missing required argument '{param.name}'"
                    )
                value = param.default
            bound.append(Argument(
                name=param.name,
                cadence_type=param.cadence_type,
                value=coerce(param.name, value, param.cadence_type),
            ))
        return tuple(bound)

    def encode_arguments(self, arguments: tuple[Argument, ...]) -> list[bytes]:
        return [
            cadence.encode_bytes(cadence.encode(a.value, a.cadence_type))
            for a in arguments
        ]


# ── Game transactions ──────────────────────────────────────

_PLAY_ROULETTE = """\
import CasinoGames from 0xCasinoGames

transaction(playerAddress: Address, betAmount: UFix64, betType: String, betNumbers: [UInt8]) {
    var gameResult: CasinoGames.GameResult?

    prepare(treasury: &Account) {
        self.gameResult = nil
        log("Treasury sponsoring roulette for player: ".concat(playerAddress.toString()))
    }

    execute {
        self.gameResult = CasinoGames.playRoulette(
            player: playerAddress,
            betAmount: betAmount,
            betType: betType,
            betNumbers: betNumbers
        )
        log("Winning number: ".concat(self.gameResult!.result["winningNumber"] ?? "unknown"))
        log("Random seed: ".concat(self.gameResult!.randomSeed.toString()))
        log("Payout: ".concat(self.gameResult!.payout.toString()).concat(" FLOW"))
    }

    post {
        self.gameResult != nil: "Game result must be set"
        self.gameResult!.gameType == "ROULETTE": "Game type must be ROULETTE"
        self.gameResult!.player == playerAddress: "Player address must match"
    }
}
"""

_PLAY_MINES = """\
import CasinoGames from 0xCasinoGames

transaction(playerAddress: Address, betAmount: UFix64, mineCount: UInt8, revealedTiles: [UInt8], cashOut: Bool) {
    var gameResult: CasinoGames.GameResult?

    prepare(treasury: &Account) {
        self.gameResult = nil
        log("Treasury sponsoring mines for player: ".concat(playerAddress.toString()))
    }

    execute {
        self.gameResult = CasinoGames.playMines(
            player: playerAddress,
            betAmount: betAmount,
            mineCount: mineCount,
            revealedTiles: revealedTiles,
            cashOut: cashOut
        )
        log("Hit mine: ".concat(self.gameResult!.result["hitMine"] ?? "false"))
        log("Random seed: ".concat(self.gameResult!.randomSeed.toString()))
        log("Payout: ".concat(self.gameResult!.payout.toString()).concat(" FLOW"))
    }

    post {
        self.gameResult != nil: "Game result must be set"
        self.gameResult!.gameType == "MINES": "Game type must be MINES"
        self.gameResult!.player == playerAddress: "Player address must match"
    }
}
"""

_PLAY_PLINKO = """\
import CasinoGames from 0xCasinoGames

transaction(playerAddress: Address, betAmount: UFix64, risk: String, rows: UInt8) {
    var gameResult: CasinoGames.GameResult?

    prepare(treasury: &Account) {
        self.gameResult = nil
        log("Treasury sponsoring plinko for player: ".concat(playerAddress.toString()))
    }

    execute {
        self.gameResult = CasinoGames.playPlinko(
            player: playerAddress,
            betAmount: betAmount,
            risk: risk,
            rows: rows
        )
        log("Final position: ".concat(self.gameResult!.result["finalPosition"] ?? "unknown"))
        log("Multiplier: ".concat(self.gameResult!.result["multiplier"] ?? "1.0"))
        log("Random seed: ".concat(self.gameResult!.randomSeed.toString()))
        log("Payout: ".concat(self.gameResult!.payout.toString()).concat(" FLOW"))
    }

    post {
        self.gameResult != nil: "Game result must be set"
        self.gameResult!.gameType == "PLINKO": "Game type must be PLINKO"
        self.gameResult!.player == playerAddress: "Player address must match"
        self.gameResult!.betAmount == betAmount: "Bet amount must match"
    }
}
"""

_PLAY_WHEEL = """\
import CasinoGames from 0xCasinoGames

transaction(playerAddress: Address, betAmount: UFix64, segments: UInt8) {
    var gameResult: CasinoGames.GameResult?

    prepare(treasury: &Account) {
        self.gameResult = nil
        log("Treasury sponsoring wheel for player: ".concat(playerAddress.toString()))
    }

    execute {
        self.gameResult = CasinoGames.playWheel(
            player: playerAddress,
            betAmount: betAmount,
            segments: segments
        )
        log("Winning segment: ".concat(self.gameResult!.result["winningSegment"] ?? "unknown"))
        log("Multiplier: ".concat(self.gameResult!.result["multiplier"] ?? "1.0"))
        log("Random seed: ".concat(self.gameResult!.randomSeed.toString()))
        log("Payout: ".concat(self.gameResult!.payout.toString()).concat(" FLOW"))
    }

    post {
        self.gameResult != nil: "Game result must be set"
        self.gameResult!.gameType == "WHEEL": "Game type must be WHEEL"
        self.gameResult!.player == playerAddress: "Player address must match"
    }
}
"""

# ── VRF transactions ───────────────────────────────────────

_VRF_COMMIT = """\
import FlowVRF from 0xFlowVRF

transaction(requestId: String, commitment: String) {
    prepare(treasury: &Account) {}

    execute {
        FlowVRF.commitHash(requestId: requestId, commitment: commitment)
    }
}
"""

_VRF_REVEAL = """\
import FlowVRF from 0xFlowVRF

transaction(requestId: String, randomSeed: String, salt: String) {
    prepare(treasury: &Account) {}

    execute {
        FlowVRF.revealHash(requestId: requestId, randomSeed: randomSeed, salt: salt)
    }
}
"""

_VRF_COMMIT_RAW = """\
import FlowVRF from 0xFlowVRF

transaction(requestId: String, randomSeed: String) {
    prepare(treasury: &Account) {}

    execute {
        FlowVRF.commitRandom(requestId: requestId, randomSeed: randomSeed)
    }
}
"""

_VRF_REVEAL_RAW = """\
import FlowVRF from 0xFlowVRF

transaction(requestId: String, randomSeed: String) {
    prepare(treasury: &Account) {}

    execute {
        FlowVRF.revealRandom(requestId: requestId, randomSeed: randomSeed)
    }
}
"""

# ── Treasury transfers ─────────────────────────────────────

_TREASURY_WITHDRAW = """\
import FungibleToken from 0xFungibleToken
import FlowToken from 0xFlowToken

transaction(amount: UFix64, recipientAddress: Address) {
    let sentVault: @{FungibleToken.Vault}

    prepare(treasury: auth(BorrowValue) &Account) {
        let vaultRef = treasury.storage.borrow<auth(FungibleToken.Withdraw) &FlowToken.Vault>(
            from: /storage/flowTokenVault
        ) ?? panic("Could not borrow reference to the treasury's Vault!")

        if vaultRef.balance < amount {
            panic("Insufficient FLOW balance in treasury")
        }

        self.sentVault <- vaultRef.withdraw(amount: amount)
    }

    execute {
        let receiverRef = getAccount(recipientAddress).capabilities.borrow<&{FungibleToken.Receiver}>(
            /public/flowTokenReceiver
        ) ?? panic("Could not borrow receiver reference to the recipient account")

        receiverRef.deposit(from: <-self.sentVault)
    }
}
"""

# ── Read-only scripts ──────────────────────────────────────

BALANCE_SCRIPT = """\
access(all) fun main(address: Address): UFix64 {
    return getAccount(address).balance
}
"""

VAULT_BALANCE_SCRIPT = """\
import FungibleToken from 0xFungibleToken

access(all) fun main(address: Address): UFix64 {
    let vaultRef = getAccount(address).capabilities.borrow<&{FungibleToken.Balance}>(
        /public/flowTokenBalance
    ) ?? panic("Could not borrow Balance reference to the Vault")
    return vaultRef.balance
}
"""

RANDOM_VALUE_SCRIPT = """\
import FlowVRF from 0xFlowVRF

access(all) fun main(requestId: String): String? {
    return FlowVRF.getRandomValue(requestId: requestId)
}
"""

_PLAYER = Param("playerAddress", "Address", aliases=("userAddress",))
_BET = Param("betAmount", "UFix64")

TEMPLATES: dict[str, Template] = {
    t.operation: t
    for t in (
        Template("play_roulette", 1, (
            _PLAYER, _BET,
            Param("betType", "String", required=False, default="red"),
            Param("betNumbers", "[UInt8]", required=False, default=[]),
        ), _PLAY_ROULETTE),
        Template("play_mines", 1, (
            _PLAYER, _BET,
            Param("mineCount", "UInt8", required=False, default=3),
            Param("revealedTiles", "[UInt8]", required=False, default=[]),
            Param("cashOut", "Bool", required=False, default=False),
        ), _PLAY_MINES),
        Template("play_plinko", 1, (
            _PLAYER, _BET,
            Param("risk", "String", required=False, default="medium", aliases=("riskLevel",)),
            Param("rows", "UInt8", required=False, default=16),
        ), _PLAY_PLINKO),
        Template("play_wheel", 1, (
            _PLAYER, _BET,
            Param("segments", "UInt8", required=False, default=54),
        ), _PLAY_WHEEL),
        Template("vrf_commit", 2, (
            Param("requestId", "String"),
            Param("commitment", "String"),
        ), _VRF_COMMIT),
        Template("vrf_reveal", 2, (
            Param("requestId", "String"),
            Param("randomSeed", "String"),
            Param("salt", "String"),
        ), _VRF_REVEAL),
        Template("vrf_commit_raw", 1, (
            Param("requestId", "String"),
            Param("randomSeed", "String"),
        ), _VRF_COMMIT_RAW),
        Template("vrf_reveal_raw", 1, (
            Param("requestId", "String"),
            Param("randomSeed", "String"),
        ), _VRF_REVEAL_RAW),
        Template("treasury_withdraw", 1, (
            Param("amount", "UFix64"),
            Param("recipientAddress", "Address", aliases=("userAddress",)),
        ), _TREASURY_WITHDRAW),
    )
}


def get_template(operation: str) -> Template:
    try:
        return TEMPLATES[operation]
    except KeyError:
        raise ValidationError(f"unknown operation: {operation!r}") from None
