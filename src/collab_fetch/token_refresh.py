"""One-shot token refresh around any async operation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from collab_fetch.errors import find_network_error

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def get_with_retry_for_token_refresh(
    get: Callable[[bool], Awaitable[T]],
) -> T:
    """Run ``get(False)``; on a 401/403, run ``get(True)`` exactly once.

    ``get`` receives ``force_refresh`` and is expected to re-acquire its
    credential when it is True. The second attempt's outcome is final,
    whether it succeeds or fails. Any other failure is re-raised unchanged.
    Nothing is ever swallowed: callers always get a value or an exception.
    """
    try:
        return await get(False)
    except Exception as exc:
        network_error = find_network_error(exc)
        if network_error is None or not network_error.is_auth_failure:
            raise
        logger.info(
            "Auth failure (HTTP %d); refreshing token and retrying once",
            network_error.status_code,
        )

    return await get(True)
