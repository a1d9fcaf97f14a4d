"""Retry filters: predicates deciding whether a status code may be retried.

Filters are plain callables so callers can pass lambdas too. All filters
built here are total over ``int`` and never raise.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from collab_fetch._http import DEFAULT_NON_RETRIABLE_STATUS_CODES

RetryFilter = Callable[[int], bool]
"""Return True when a request that failed with ``status_code`` may be retried."""


def no_retry() -> RetryFilter:
    """Never retry; for non-idempotent writes."""

    def _filter(status_code: int) -> bool:  # noqa: ARG001
        return False

    return _filter


def allow_list(retriable_codes: Iterable[int]) -> RetryFilter:
    """Retry only the listed status codes."""
    codes = frozenset(retriable_codes)

    def _filter(status_code: int) -> bool:
        return status_code in codes

    return _filter


def block_list(non_retriable_codes: Iterable[int]) -> RetryFilter:
    """Retry everything except the listed status codes."""
    codes = frozenset(non_retriable_codes)

    def _filter(status_code: int) -> bool:
        return status_code not in codes

    return _filter


# Only exclude codes that are known to be permanent; 429 and 5xx stay retriable.
DEFAULT_RETRY_FILTER: RetryFilter = block_list(DEFAULT_NON_RETRIABLE_STATUS_CODES)
