"""Flow Access REST client - the LedgerClient used in production."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Sequence

import httpx

from casino_treasury.errors import NetworkError, QueryFailed, TransactionRejected
from casino_treasury.flow import cadence
from casino_treasury.flow.signer import normalize_address
from casino_treasury.models.transactions import (
    AccountInfo,
    AccountKey,
    BlockHeader,
    LedgerEvent,
    LedgerStatus,
    TransactionStatusView,
)

log = logging.getLogger(__name__)

# Raised before any byte of the request reached the server.
_NOT_SENT = (httpx.ConnectError, httpx.ConnectTimeout, httpx.UnsupportedProtocol)


def _decode_event(raw: dict[str, Any]) -> LedgerEvent:
    """Decode one REST event. Undecodable payloads keep their text in ``raw``."""
    event_type = raw.get("type", "")
    tx_id = raw.get("transaction_id", "")
    index = int(raw.get("event_index", 0) or 0)
    payload = raw.get("payload", "")

    try:
        text = base64.b64decode(payload).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        log.debug("Event %s#%d payload is not base64 text", tx_id[:16], index)
        return LedgerEvent(type=event_type, transaction_id=tx_id, event_index=index, raw=payload)

    try:
        value = cadence.decode(json.loads(text))
    except (ValueError, KeyError, TypeError, AttributeError):
        log.debug("Event %s#%d payload is not JSON-Cadence", tx_id[:16], index)
        return LedgerEvent(type=event_type, transaction_id=tx_id, event_index=index, raw=text)

    fields = value.fields if isinstance(value, cadence.Composite) else None
    return LedgerEvent(
        type=event_type,
        fields=fields,
        transaction_id=tx_id,
        event_index=index,
        raw=None if fields is not None else text,
    )


class FlowAccessClient:
    """LedgerClient over one Flow access node's REST API (``/v1``).

    Does not retry. Transport failures become NetworkError with
    ``request_sent`` telling RetryPolicy whether a resend is safe.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{self.endpoint}/v1",
            timeout=httpx.Timeout(timeout, connect=min(timeout, 5.0)),
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except _NOT_SENT as exc:
            raise NetworkError(
                f"{method} {path}: {exc!r}", request_sent=False, endpoint=self.endpoint,
            ) from exc
        except httpx.TransportError as exc:
            raise NetworkError(
                f"{method} {path}: {exc!r}", request_sent=True, endpoint=self.endpoint,
            ) from exc

    def _server_error(self, resp: httpx.Response, what: str) -> NetworkError:
        return NetworkError(
            f"{what}: HTTP {resp.status_code} {resp.text[:200]}",
            request_sent=True,
            endpoint=self.endpoint,
        )

    # ── Transactions ───────────────────────────────────────

    async def submit_transaction(self, signed: dict[str, Any]) -> str:
        resp = await self._request("POST", "/transactions", json=signed)
        if resp.status_code >= 500 or resp.status_code == 429:
            raise self._server_error(resp, "submit_transaction")
        if resp.status_code >= 400:
            message = _error_message(resp)
            log.warning("Access node rejected transaction: %s", message)
            raise TransactionRejected(
                f"transaction rejected: {message}", error_message=message,
            )
        tx_id = resp.json().get("id", "")
        log.debug("Submitted tx %s via %s", tx_id[:16], self.endpoint)
        return tx_id

    async def get_transaction(self, transaction_id: str) -> TransactionStatusView:
        resp = await self._request("GET", f"/transaction_results/{transaction_id}")
        if resp.status_code == 404:
            # Not yet visible to this node.
            return TransactionStatusView(transaction_id, LedgerStatus.UNKNOWN)
        if resp.status_code >= 400:
            raise self._server_error(resp, "get_transaction")

        data = resp.json()
        events = tuple(_decode_event(e) for e in data.get("events") or [])
        return TransactionStatusView(
            transaction_id=transaction_id,
            status=LedgerStatus.parse(data.get("status", "")),
            status_code=int(data.get("status_code", 0) or 0),
            block_id=data.get("block_id") or None,
            events=events,
            error_message=data.get("error_message") or None,
        )

    # ── Scripts ────────────────────────────────────────────

    async def query(self, script: str, args: Sequence[dict[str, Any]] = ()) -> Any:
        body = {
            "script": base64.b64encode(script.encode("utf-8")).decode("ascii"),
            "arguments": [cadence.to_b64(a) for a in args],
        }
        resp = await self._request(
            "POST", "/scripts", params={"block_height": "sealed"}, json=body,
        )
        if resp.status_code >= 500:
            raise self._server_error(resp, "query")
        if resp.status_code >= 400:
            raise QueryFailed(f"script failed: {_error_message(resp)}")
        return cadence.from_b64(resp.json())

    # ── Blocks & accounts ──────────────────────────────────

    async def get_latest_block(self) -> BlockHeader:
        resp = await self._request("GET", "/blocks", params={"height": "sealed"})
        if resp.status_code >= 400:
            raise self._server_error(resp, "get_latest_block")
        return _block_header(resp.json()[0])

    async def get_current_block_height(self) -> int:
        return (await self.get_latest_block()).height

    async def get_block(self, block_id: str) -> BlockHeader:
        resp = await self._request("GET", f"/blocks/{block_id}")
        if resp.status_code >= 400:
            raise self._server_error(resp, "get_block")
        data = resp.json()
        return _block_header(data[0] if isinstance(data, list) else data)

    async def get_account(self, address: str) -> AccountInfo:
        addr = address[2:] if address.startswith("0x") else address
        resp = await self._request(
            "GET", f"/accounts/{addr}",
            params={"block_height": "sealed", "expand": "keys"},
        )
        if resp.status_code >= 400:
            raise self._server_error(resp, "get_account")
        data = resp.json()
        keys = tuple(
            AccountKey(
                index=int(k["index"]),
                sequence_number=int(k["sequence_number"]),
                public_key=k.get("public_key", ""),
                weight=int(k.get("weight", 0)),
                revoked=bool(k.get("revoked", False)),
            )
            for k in data.get("keys") or []
        )
        return AccountInfo(
            address=normalize_address(data.get("address", addr)),
            balance=int(data.get("balance", 0) or 0),
            keys=keys,
        )


def _block_header(raw: dict[str, Any]) -> BlockHeader:
    header = raw.get("header", raw)
    return BlockHeader(
        id=header["id"],
        height=int(header["height"]),
        parent_id=header.get("parent_id", ""),
        timestamp=header.get("timestamp", ""),
    )


def _error_message(resp: httpx.Response) -> str:
    try:
        return str(resp.json().get("message", resp.text))
    except ValueError:
        return resp.text[:500]
