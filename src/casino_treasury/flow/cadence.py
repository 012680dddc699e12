"""JSON-Cadence encoding for transaction arguments, script results and events."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

INT_TYPES = frozenset({
    "Int", "Int8", "Int16", "Int32", "Int64", "Int128", "Int256",
    "UInt", "UInt8", "UInt16", "UInt32", "UInt64", "UInt128", "UInt256",
    "Word8", "Word16", "Word32", "Word64",
})
FIX_TYPES = frozenset({"UFix64", "Fix64"})
COMPOSITE_TYPES = frozenset({"Struct", "Resource", "Event", "Contract", "Enum"})

UFIX64_PLACES = Decimal("0.00000001")
UFIX64_MAX = Decimal("184467440737.09551615")


@dataclass(frozen=True)
class Composite:
    """A decoded struct, resource or event value."""

    id: str
    fields: dict[str, Any] = field(default_factory=dict)
    kind: str = "Struct"


def format_ufix64(value: Decimal | int | float | str) -> str:
    """Render a fixed-point amount with exactly eight decimal places."""
    return f"{Decimal(str(value)).quantize(UFIX64_PLACES):f}"


def encode(value: Any, cadence_type: str) -> dict[str, Any]:
    """Encode a Python value as a JSON-Cadence object of the given type.

    Supports the scalar types used by the casino templates, optionals
    (``T?``) and arrays (``[T]``).
    """
    if cadence_type.endswith("?"):
        inner = cadence_type[:-1]
        return {
            "type": "Optional",
            "value": None if value is None else encode(value, inner),
        }
    if cadence_type.startswith("[") and cadence_type.endswith("]"):
        inner = cadence_type[1:-1]
        return {"type": "Array", "value": [encode(v, inner) for v in value]}
    if cadence_type in INT_TYPES:
        return {"type": cadence_type, "value": str(int(value))}
    if cadence_type in FIX_TYPES:
        return {"type": cadence_type, "value": format_ufix64(value)}
    if cadence_type == "Bool":
        return {"type": "Bool", "value": bool(value)}
    if cadence_type == "Address":
        addr = str(value)
        if not addr.startswith("0x"):
            addr = f"0x{addr}"
        return {"type": "Address", "value": addr}
    if cadence_type in ("String", "Character"):
        return {"type": cadence_type, "value": str(value)}
    raise ValueError(f"unsupported Cadence type: {cadence_type}")


def decode(obj: Any) -> Any:
    """Decode a JSON-Cadence object into plain Python values."""
    if not isinstance(obj, dict) or "type" not in obj:
        return obj

    kind = obj["type"]
    value = obj.get("value")

    if kind == "Optional":
        return None if value is None else decode(value)
    if kind == "Void":
        return None
    if kind == "Bool":
        return bool(value)
    if kind in ("String", "Character", "Address"):
        return value
    if kind in INT_TYPES:
        return int(value)
    if kind in FIX_TYPES:
        try:
            return Decimal(value)
        except (InvalidOperation, TypeError):
            return value
    if kind == "Array":
        return [decode(v) for v in value or []]
    if kind == "Dictionary":
        return {decode(item["key"]): decode(item["value"]) for item in value or []}
    if kind in COMPOSITE_TYPES:
        return Composite(
            id=value.get("id", ""),
            fields={f["name"]: decode(f["value"]) for f in value.get("fields", [])},
            kind=kind,
        )
    if kind == "Path":
        return f"/{value['domain']}/{value['identifier']}"
    if kind == "Type":
        static = value.get("staticType") if isinstance(value, dict) else value
        if isinstance(static, dict):
            return static.get("typeID", static.get("kind", ""))
        return static
    return value


def to_b64(obj: dict[str, Any]) -> str:
    """Serialize a JSON-Cadence object the way the access API expects it."""
    return base64.b64encode(encode_bytes(obj)).decode("ascii")


def encode_bytes(obj: dict[str, Any]) -> bytes:
    return json.dumps(obj, separators=(",", ":")).encode("utf-8")


def from_b64(data: str) -> Any:
    """Decode a base64 JSON-Cadence payload into Python values."""
    return decode(json.loads(base64.b64decode(data)))
