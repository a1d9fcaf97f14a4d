"""Caller-side async retry driven by ``NetworkError.can_retry``.

``fetch_helper`` never loops; this module is the outer loop that callers
compose around it (typically wrapping the token-refresh layer). Retriability
is read from the classified error only, never inferred from exception types.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
import random
import time
from typing import TYPE_CHECKING, TypeVar

from collab_fetch.errors import NetworkError, find_network_error

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times, and how patiently, to retry a retriable NetworkError.

    Three attempts cover the common truncated-body and dropped-connection
    cases; a server ``Retry-After`` can still stretch one delay past
    ``max_delay_s`` but never past ``max_elapsed_s``.
    """

    max_attempts: int = 3
    initial_delay_s: float = 0.5
    backoff_multiplier: float = 2.0
    max_delay_s: float = 8.0
    jitter: bool = True
    max_elapsed_s: float | None = 30.0

    def __post_init__(self) -> None:
        """Reject values that would make the loop spin or never stop."""
        problems = [
            msg
            for bad, msg in (
                (self.max_attempts < 1, "max_attempts must be >= 1"),
                (self.initial_delay_s < 0, "initial_delay_s must be >= 0"),
                (self.backoff_multiplier <= 0, "backoff_multiplier must be > 0"),
                (self.max_delay_s < 0, "max_delay_s must be >= 0"),
                (
                    self.max_elapsed_s is not None and self.max_elapsed_s < 0,
                    "max_elapsed_s must be >= 0 or None",
                ),
            )
            if bad
        ]
        if problems:
            raise ValueError("RetryPolicy." + "; ".join(problems))

    def backoff(self, retry_number: int) -> float:
        """Delay before retry ``retry_number`` (1-based), before Retry-After."""
        delay = min(
            self.max_delay_s,
            self.initial_delay_s * self.backoff_multiplier ** (retry_number - 1),
        )
        if delay <= 0:
            return 0.0
        # Full jitter spreads reconnect storms after a storage outage.
        return random.uniform(0, delay) if self.jitter else delay  # noqa: S311


def should_retry(exc: BaseException) -> bool:
    """Return True when ``exc`` carries a retriable NetworkError.

    Cancellation is never retried; unclassified exceptions are not either.
    """
    if isinstance(exc, asyncio.CancelledError):
        return False
    network_error = find_network_error(exc)
    return network_error is not None and network_error.can_retry


def _delay_for(
    policy: RetryPolicy, retry_number: int, error: NetworkError | None
) -> float:
    delay = policy.backoff(retry_number)
    if error is not None and error.retry_after_s is not None and error.retry_after_s >= 0:
        delay = max(delay, float(error.retry_after_s))
    return delay


async def retry_async(
    factory: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    should_retry: Callable[[BaseException], bool] = should_retry,
) -> T:
    """Await ``factory()`` until it succeeds or the failure is final.

    A failure is final when ``should_retry`` says so, when attempts run out,
    or when ``policy.max_elapsed_s`` leaves no time for another wait. The
    last exception is always re-raised as-is.
    """
    deadline = (
        time.monotonic() + policy.max_elapsed_s
        if policy.max_elapsed_s is not None
        else None
    )
    attempt = 0
    while True:
        attempt += 1
        try:
            return await factory()
        except Exception as exc:
            if attempt >= policy.max_attempts or not should_retry(exc):
                raise
            error = find_network_error(exc)
            delay = _delay_for(policy, attempt, error)
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise
                delay = min(delay, remaining)

            if error is not None:
                logger.debug(
                    "Attempt %d/%d failed with %d (%s); retrying in %.2fs",
                    attempt,
                    policy.max_attempts,
                    error.status_code,
                    error.kind.value,
                    delay,
                )
            else:
                logger.debug(
                    "Attempt %d/%d failed (%s); retrying in %.2fs",
                    attempt,
                    policy.max_attempts,
                    type(exc).__name__,
                    delay,
                )
        if delay > 0:
            await asyncio.sleep(delay)
