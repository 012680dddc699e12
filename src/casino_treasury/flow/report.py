"""Parser for the human-readable transaction report.

Used only when structured events are unavailable. Understands the event
block of the Flow CLI report (``Type A.<addr>.CasinoGames.GamePlayed``
followed by ``- name (Type): value`` lines) and the log lines the game
templates print (``Winning number: 17``, ``Payout: 1.5 FLOW`` ...).
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

log = logging.getLogger(__name__)

_EVENT_TYPE_RE = re.compile(r"Type\s+(A\.([0-9a-fA-F]+)\.CasinoGames\.GamePlayed)")
_NEXT_EVENT_RE = re.compile(r"^\s*(?:Index|Type)\s", re.MULTILINE)
_VALUE_RE = re.compile(r"^\s*-\s*(\w+)\s*\(([^)]*)\):\s*(.+?)\s*$", re.MULTILINE)
_BLOCK_ID_RE = re.compile(r"Block ID\s+([0-9a-fA-F]{64})")
_LOOSE_PAIR_RE = re.compile(r'"?(\w+)"?\s*:\s*"?([^",}]*)"?')

# Log line label -> result field.
LOG_FIELDS = {
    "Winning number": "winningNumber",
    "Hit mine": "hitMine",
    "Final position": "finalPosition",
    "Winning segment": "winningSegment",
    "Multiplier": "multiplier",
}
_LOG_VALUE = r"{label}:\s*\"?([^\s\"]+)"
_SEED_RE = re.compile(r"Random seed:\s*\"?(\d+)")
_PAYOUT_RE = re.compile(r"Payout:\s*\"?([0-9.]+)\s*FLOW")


@dataclass
class TextReport:
    """Whatever could be recovered from a text report."""

    game_result: dict[str, str] = field(default_factory=dict)
    values: dict[str, str] = field(default_factory=dict)
    event_type: str | None = None
    random_seed: int | None = None
    payout: Decimal | None = None
    block_id: str | None = None

    @property
    def empty(self) -> bool:
        return not (self.game_result or self.values or self.random_seed is not None)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def parse_mapping(text: str) -> dict[str, str]:
    """Parse a printed ``{String:String}`` value into a str->str dict."""
    text = text.strip()
    try:
        data = json.loads(text)
    except ValueError:
        data = None
    if isinstance(data, dict):
        return {str(k): str(v).lower() if isinstance(v, bool) else str(v) for k, v in data.items()}
    inner = text.strip("{}")
    return {k: v.strip() for k, v in _LOOSE_PAIR_RE.findall(inner)}


def _event_values(text: str, casino_address: str | None) -> tuple[str | None, dict[str, str]]:
    for match in _EVENT_TYPE_RE.finditer(text):
        if casino_address and match.group(2).lower() != casino_address.lower():
            continue
        rest = text[match.end():]
        stop = _NEXT_EVENT_RE.search(rest)
        block = rest[:stop.start()] if stop else rest
        values = {m.group(1): _unquote(m.group(3)) for m in _VALUE_RE.finditer(block)}
        return match.group(1), values
    return None, {}


def parse_report(text: str, casino_address: str | None = None) -> TextReport:
    """Extract a game result from report text. Never raises."""
    report = TextReport()
    if not text:
        return report

    addr = casino_address[2:] if casino_address and casino_address.startswith("0x") else casino_address
    report.event_type, report.values = _event_values(text, addr)

    if raw_result := report.values.get("gameResult"):
        report.game_result = parse_mapping(raw_result)

    for label, name in LOG_FIELDS.items():
        if name in report.game_result:
            continue
        if m := re.search(_LOG_VALUE.format(label=label), text):
            report.game_result[name] = m.group(1)

    seed_text = report.values.get("randomSeed")
    if seed_text is None and (m := _SEED_RE.search(text)):
        seed_text = m.group(1)
    if seed_text is not None:
        try:
            report.random_seed = int(seed_text)
        except ValueError:
            log.debug("Unparseable random seed in report: %r", seed_text)

    payout_text = report.values.get("payout")
    if payout_text is None and (m := _PAYOUT_RE.search(text)):
        payout_text = m.group(1)
    if payout_text is not None:
        try:
            report.payout = Decimal(payout_text)
        except InvalidOperation:
            log.debug("Unparseable payout in report: %r", payout_text)

    if m := _BLOCK_ID_RE.search(text):
        report.block_id = m.group(1)
    return report
