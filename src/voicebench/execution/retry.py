"""Retry policy shared by provider calls, transcription, and the judge.

A RetryPolicy bundles the attempt budget, a backoff function, and a
retryable-predicate. Each collaborator builds its own policy but they
all run through the same loop. The sleep function is injectable so
tests can record delays instead of waiting.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import openai
import structlog

logger = structlog.get_logger()

# Exception types considered transient (network-level issues)
TRANSIENT_EXCEPTIONS: tuple[type[Exception], ...] = (TimeoutError, ConnectionError)

# HTTP status codes considered transient (rate-limit, server errors)
TRANSIENT_STATUS_CODES: frozenset[int] = frozenset({429, 500, 502, 503})

BackoffFn = Callable[[int, Exception], float]


def status_code_of(exc: Exception) -> int | None:
    """Return the HTTP status attached to an SDK exception, if any."""
    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    return status if isinstance(status, int) else None


def is_transient(exc: Exception) -> bool:
    """Check if an exception represents a transient error.

    Matches against known transient exception types, then checks
    for HTTP status code attributes commonly set by SDK exceptions.
    """
    if isinstance(exc, TRANSIENT_EXCEPTIONS):
        return True
    return status_code_of(exc) in TRANSIENT_STATUS_CODES


def is_rate_limited(exc: Exception) -> bool:
    """True for HTTP 429 or an SDK ``rate_limit_exceeded`` error code."""
    return status_code_of(exc) == 429 or getattr(exc, "code", None) == "rate_limit_exceeded"


def is_connection_error(exc: Exception) -> bool:
    """True for timeouts and connection failures, including the OpenAI SDK's."""
    return isinstance(exc, (*TRANSIENT_EXCEPTIONS, openai.APIConnectionError))


def exponential_jitter(base: float = 1.0, cap: float = 30.0) -> BackoffFn:
    """Backoff of base * 2**attempt plus up to one base of jitter, capped."""

    def backoff(attempt: int, exc: Exception) -> float:
        return min(base * (2**attempt) + random.uniform(0, base), cap)  # noqa: S311

    return backoff


def linear(step: float = 1.0) -> BackoffFn:
    """Backoff of step * attempt."""

    def backoff(attempt: int, exc: Exception) -> float:
        return step * attempt

    return backoff


def fixed(delay: float) -> BackoffFn:
    """Constant backoff."""

    def backoff(attempt: int, exc: Exception) -> float:
        return delay

    return backoff


@dataclass
class RetryPolicy:
    """Bounded retry with a pluggable backoff and retryable check.

    Attributes:
        max_attempts: Total calls allowed, including the first one.
        backoff: Maps (1-based failed attempt, exception) to seconds.
        is_retryable: Decides whether an exception may be retried.
        sleep: Awaitable sleep; replaced in tests.
        name: Label used in log events.
    """

    max_attempts: int = 3
    backoff: BackoffFn = field(default_factory=linear)
    is_retryable: Callable[[Exception], bool] = is_transient
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    name: str = "call"

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    async def run(
        self,
        coro_factory: Callable[[], Awaitable[Any]],
    ) -> tuple[Any, int, list[str]]:
        """Execute coro_factory until it succeeds or retries run out.

        Returns:
            Tuple of (result, retries_used, list of retried error type names).

        Raises:
            Exception: The last exception if it is not retryable or the
                attempt budget is exhausted.
        """
        retries_used = 0
        error_types: list[str] = []

        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await coro_factory()
                return (result, retries_used, error_types)
            except Exception as exc:
                if attempt == self.max_attempts or not self.is_retryable(exc):
                    raise

                delay = self.backoff(attempt, exc)
                retries_used += 1
                error_types.append(type(exc).__name__)
                logger.warning(
                    "retry.scheduled",
                    call=self.name,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    delay_seconds=round(delay, 3),
                    error=type(exc).__name__,
                )
                await self.sleep(delay)

        # Unreachable, but satisfies type checker
        raise RuntimeError("Retry loop exited unexpectedly")  # pragma: no cover
