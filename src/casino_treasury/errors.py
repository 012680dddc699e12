"""Error taxonomy shared by every component.

Each error carries the HTTP status code the gateway would answer with and
enough context (transaction id, chain error message) for reconciliation.
"""

from __future__ import annotations

from typing import Any


class CasinoError(Exception):
    """Base class for all casino_treasury errors."""

    status_code = 500
    kind = "internal_error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = {k: v for k, v in details.items() if v is not None}

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.kind, "details": self.message}
        body.update(self.details)
        return body


class ValidationError(CasinoError):
    """Bad or missing input. Never retried."""

    status_code = 400
    kind = "validation_error"


class InsufficientFunds(ValidationError):
    """Known treasury shortfall, raised only when balance enforcement is on."""

    kind = "insufficient_funds"


class ConfigurationError(CasinoError):
    """Missing signing key, contract address or other required setting."""

    status_code = 500
    kind = "configuration_error"


class NetworkError(CasinoError):
    """Transport failure talking to an access node.

    ``request_sent`` is False only when the request provably never left the
    process (connection refused, DNS failure). Anything else is ambiguous for
    state-changing calls.
    """

    status_code = 502
    kind = "network_error"

    def __init__(
        self,
        message: str,
        *,
        request_sent: bool = True,
        endpoint: str | None = None,
    ) -> None:
        super().__init__(message, endpoint=endpoint)
        self.request_sent = request_sent
        self.endpoint = endpoint


class AmbiguousSubmission(NetworkError):
    """A submission failed after it may have reached the network.

    Never resubmitted. ``transaction_id`` is the locally computed id so the
    caller can reconcile once the ledger answers.
    """

    kind = "ambiguous_submission"

    def __init__(
        self,
        message: str,
        *,
        transaction_id: str | None = None,
        endpoint: str | None = None,
    ) -> None:
        super().__init__(message, request_sent=True, endpoint=endpoint)
        self.transaction_id = transaction_id
        if transaction_id:
            self.details["transactionId"] = transaction_id


class QueryFailed(CasinoError):
    """A read-only script executed but the ledger reported an error."""

    status_code = 502
    kind = "query_failed"


class TransactionFailure(CasinoError):
    """The ledger sealed the transaction but execution reverted."""

    status_code = 422
    kind = "transaction_failed"

    def __init__(
        self,
        message: str,
        *,
        transaction_id: str | None = None,
        error_message: str | None = None,
    ) -> None:
        super().__init__(
            message,
            transactionId=transaction_id,
            errorMessage=error_message,
        )
        self.transaction_id = transaction_id
        self.error_message = error_message


class TransactionRejected(TransactionFailure):
    """The access node refused the transaction outright (never included)."""

    kind = "transaction_rejected"


class CommitFailed(TransactionFailure):
    kind = "commit_failed"


class RevealFailed(TransactionFailure):
    kind = "reveal_failed"


class TransactionTimeout(CasinoError):
    """No terminal state observed within budget. The outcome is unresolved."""

    status_code = 504
    kind = "transaction_unresolved"

    def __init__(
        self,
        message: str,
        *,
        transaction_id: str | None = None,
        phase: str | None = None,
    ) -> None:
        super().__init__(message, transactionId=transaction_id, phase=phase)
        self.transaction_id = transaction_id
        self.phase = phase


class ParseError(CasinoError):
    """Expected result data is absent from both events and text output."""

    status_code = 502
    kind = "parse_error"

    def __init__(self, message: str, *, transaction_id: str | None = None) -> None:
        super().__init__(message, transactionId=transaction_id)
        self.transaction_id = transaction_id


class RandomUnavailable(CasinoError):
    """The reveal sealed but the contract returned no random value."""

    status_code = 502
    kind = "random_unavailable"

    def __init__(self, message: str, *, request_id: str | None = None) -> None:
        super().__init__(message, requestId=request_id)
        self.request_id = request_id


class InsufficientFundsWarning(UserWarning):
    """Soft signal: the treasury looks short. Logged, never blocks."""

    def __init__(self, available, required) -> None:
        super().__init__(
            f"treasury balance {available} below required {required}"
        )
        self.available = available
        self.required = required
