"""Retry policy with backoff and failover across equivalent access nodes."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Sequence, TypeVar

from casino_treasury.errors import AmbiguousSubmission, ConfigurationError, NetworkError
from casino_treasury.interfaces.ledger import LedgerClient

log = logging.getLogger(__name__)

T = TypeVar("T")


class EndpointHealth:
    """Failure bookkeeping for one access node."""

    def __init__(self, client: LedgerClient) -> None:
        self.client = client
        self.failures = 0
        self.successes = 0
        self.last_failure: float | None = None

    def record_success(self) -> None:
        self.successes += 1
        self.failures = 0

    def record_failure(self) -> None:
        self.failures += 1
        self.last_failure = time.monotonic()

    def status(self) -> dict:
        return {
            "endpoint": self.client.endpoint,
            "consecutive_failures": self.failures,
            "successes": self.successes,
        }


class RetryPolicy:
    """Runs ledger calls with bounded retries, backoff and endpoint failover.

    ``fn`` receives the LedgerClient to use for this attempt. Idempotent
    calls are retried on any NetworkError. Non-idempotent calls are retried
    only when the failed request provably never left the process; otherwise
    AmbiguousSubmission is raised immediately.
    """

    def __init__(
        self,
        clients: Sequence[LedgerClient],
        max_attempts: int = 3,
        base_delay: float = 0.5,
        max_delay: float = 5.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if not clients:
            raise ConfigurationError("no access nodes configured")
        self._endpoints = [EndpointHealth(c) for c in clients]
        self._active = 0
        self._max_attempts = max(1, max_attempts)
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._sleep = sleep

    @property
    def clients(self) -> list[LedgerClient]:
        return [e.client for e in self._endpoints]

    @property
    def current(self) -> LedgerClient:
        return self._endpoints[self._active].client

    def get_status(self) -> list[dict]:
        return [e.status() for e in self._endpoints]

    def _backoff(self, attempt: int) -> float:
        return min(self._base_delay * (2 ** attempt), self._max_delay)

    def _failover(self) -> None:
        if len(self._endpoints) < 2:
            return
        previous = self._endpoints[self._active].client.endpoint
        self._active = (self._active + 1) % len(self._endpoints)
        log.info(
            "Switching access node: %s -> %s",
            previous, self._endpoints[self._active].client.endpoint,
        )

    async def call(
        self,
        fn: Callable[[LedgerClient], Awaitable[T]],
        *,
        idempotent: bool = True,
        op: str = "ledger call",
    ) -> T:
        last_error: NetworkError | None = None

        for attempt in range(self._max_attempts):
            health = self._endpoints[self._active]
            try:
                result = await fn(health.client)
            except NetworkError as exc:
                health.record_failure()
                if not idempotent and exc.request_sent:
                    log.error(
                        "%s failed after the request was sent via %s; not retrying: %s",
                        op, health.client.endpoint, exc,
                    )
                    raise AmbiguousSubmission(
                        f"{op} outcome unknown: {exc.message}",
                        endpoint=health.client.endpoint,
                    ) from exc

                last_error = exc
                log.warning(
                    "%s failed via %s (attempt %d/%d): %s",
                    op, health.client.endpoint, attempt + 1, self._max_attempts, exc,
                )
                if attempt + 1 >= self._max_attempts:
                    break
                self._failover()
                await self._sleep(self._backoff(attempt))
            else:
                health.record_success()
                return result

        assert last_error is not None
        log.error("%s failed on all attempts: %s", op, last_error)
        raise NetworkError(
            f"{op} failed after {self._max_attempts} attempts: {last_error.message}",
            request_sent=last_error.request_sent,
            endpoint=last_error.endpoint,
        ) from last_error
